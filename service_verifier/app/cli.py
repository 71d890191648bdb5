"""
Command line verification of a single service-account token.
"""

import asyncio
import json
import sys
from typing import Optional

import typer

from shared.config import get_config
from shared.errors import VerifierException
from shared.logging import configure_logging
from .jwks.transport import HttpxTransport
from .validation.pipeline import VerificationPipeline

app = typer.Typer(help="Verify service-account JWTs against their published keys")


async def _verify(token: str, endpoint: Optional[str], timeout: Optional[float]):
    config = get_config("verifier", 0)
    if endpoint:
        config.jwk_endpoint = endpoint
    if timeout is not None:
        config.http_timeout = timeout

    transport = HttpxTransport(timeout=config.http_timeout)
    async with VerificationPipeline.from_config(config, transport=transport) as pipeline:
        return await pipeline.verify(token)


@app.command("verify")
def verify(
    token: str = typer.Argument(..., help="Compact JWT to verify"),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Key endpoint template containing '{issuer}'"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", min=0.001, help="HTTP timeout in seconds"
    ),
    log_level: str = typer.Option("warning", "--log-level", help="Log level (logs go to stderr)"),
):
    """
    Verify TOKEN and print its claims as JSON.
    """
    configure_logging("verifier", log_level, stream=sys.stderr)

    try:
        claims = asyncio.run(_verify(token, endpoint, timeout))
    except VerifierException as exc:
        typer.echo(f"{exc.code}: {exc.message}", err=True)
        raise typer.Exit(code=1)

    typer.echo(json.dumps(claims.to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
