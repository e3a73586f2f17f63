"""Command line entry issuing one request against a configured backend.

    xrequest /items --config myserver.yaml
    xrequest /items/1 DELETE --config myserver.yaml --env production

Backend packages can expose the same command bound to their own settings
with ``build_cli(config)``.
"""

from __future__ import annotations

import os
from pathlib import Path
from pprint import pformat
from typing import Any, Optional

import typer

from .log import configure_logging
from .networking.client import create_client
from .networking.config import DEFAULT_ENVIRONMENT, BackendConfig, load_config


def _echo_outcome(error: Optional[BaseException], response: Any, body: Any) -> int:
    status = response.status_code if response is not None else "-"
    headers = response.headers if response is not None else {}
    if error is not None:
        typer.secho(f"ERROR status:{status}", fg=typer.colors.RED)
    else:
        typer.secho(f"OK status:{status}", fg=typer.colors.GREEN)
    typer.echo(f"headers:{pformat(headers)}")
    typer.echo(f"body:{pformat(body)}")
    if error is not None:
        typer.echo(f"err:{error!r}")
        return 1
    return 0


def run_request(config: BackendConfig, url: str | None, method: str, environment: str | None) -> int:
    """Issue ``method url`` against ``config`` and print the outcome."""
    if not url:
        typer.echo("usage: xrequest URL [METHOD] --config FILE")
        if config.example:
            typer.echo(f"example: {config.example}")
        return 2

    typer.echo(f"environment={environment or os.getenv('ENVIRONMENT', DEFAULT_ENVIRONMENT)}")
    typer.echo(f"using settings:{pformat(config)}")
    client = create_client(config)
    exit_codes: list[int] = []
    client.request(
        {"method": method.upper(), "url": url},
        lambda error, response, body: exit_codes.append(_echo_outcome(error, response, body)),
    )
    return exit_codes[0]


def build_cli(config: BackendConfig) -> typer.Typer:
    """Return a command bound to the settings of one backend."""
    backend_app = typer.Typer(help=f"Issue one request against {config.name}")

    @backend_app.command()
    def request(
        url: Optional[str] = typer.Argument(None, help="Path or absolute URL"),
        method: str = typer.Argument("GET", help="HTTP method"),
        log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
    ) -> None:
        configure_logging(log_level)
        raise typer.Exit(code=run_request(config, url, method, None))

    return backend_app


app = typer.Typer(help="Issue one request against a configured backend")


@app.command()
def main(
    url: Optional[str] = typer.Argument(None, help="Path or absolute URL"),
    method: str = typer.Argument("GET", help="HTTP method"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML file with the backend settings"
    ),
    env: Optional[str] = typer.Option(
        None, "--env", help="Settings section to use (defaults to $ENVIRONMENT)"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Request URL from the backend described by --config."""
    configure_logging(log_level)
    backend = load_config(config, env) if config is not None else BackendConfig()
    raise typer.Exit(code=run_request(backend, url, method, env))


if __name__ == "__main__":
    app()
