"""Command line interface for running the discovery feeder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn
import yaml
from pydantic import ValidationError

from autosd.channels import read_file_sd
from autosd.config import AutoSDConfig, DiscoveryConfig, HttpConfig, load_config
from autosd.service import DiscoveryService

app = typer.Typer(help="CLI for the autosd file_sd feeder")

LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s caller=%(name)s:%(lineno)d msg=%(message)s"


@app.callback()
def main() -> None:
    """autosd CLI entry point."""
    pass


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _effective_config(
    config_path: Optional[Path],
    host: Optional[str] = None,
    port: Optional[int] = None,
    refresh_interval: Optional[float] = None,
    output: Optional[Path] = None,
) -> AutoSDConfig:
    config = load_config(str(config_path) if config_path else None)
    if host is not None:
        config.http.host = host
    if port is not None:
        config.http = HttpConfig(**{**config.http.model_dump(), "port": port})
    if refresh_interval is not None:
        config.discovery = DiscoveryConfig(
            **{**config.discovery.model_dump(), "refresh_interval": refresh_interval}
        )
    if output is not None:
        config.output.path = str(output)
    return config


@app.command("serve")
def serve(
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
    host: Optional[str] = typer.Option(None, help="Bind address for registrations"),
    port: Optional[int] = typer.Option(None, help="Port for registrations"),
    refresh_interval: Optional[float] = typer.Option(
        None, help="Seconds between reconciliation cycles"
    ),
    output: Optional[Path] = typer.Option(None, help="file_sd JSON file to write"),
) -> None:
    """
    Accept agent registrations and keep the discovery file up to date.

    Starts the HTTP registration endpoint and the reconciliation loop. Every
    cycle rewrites the file_sd document watched by Prometheus.

    Example:
        autosd serve --port 8082 --output /opt/file_sd/autosd.json
        curl -X POST localhost:8082/client \\
            -d '{"targets": ["10.0.0.1:9100"], "labels": {"app": "svc-a"}}'
    """
    try:
        config = _effective_config(config_path, host, port, refresh_interval, output)
    except ValidationError as exc:
        typer.secho(f"Invalid configuration: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    configure_logging(config.log_level)
    service = DiscoveryService(config)
    uvicorn.run(
        service.create_app(),
        host=config.http.host,
        port=config.http.port,
        log_level=config.log_level.lower(),
    )


@app.command("config")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file"),
) -> None:
    """Print the effective configuration as YAML."""
    config = _effective_config(config_path)
    typer.echo(yaml.safe_dump(config.model_dump(), sort_keys=False).rstrip())


@app.command("targets")
def show_targets(path: Path) -> None:
    """
    List the target groups stored in a discovery file.

    Example:
        autosd targets /opt/file_sd/autosd.json
        # Output: 10.0.0.1:9100    __meta_app=svc-a, __meta_metrics_path=/metrics
    """
    if not path.exists():
        typer.secho("Discovery file does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        groups = read_file_sd(path)
    except ValueError as exc:
        typer.secho(f"Cannot read {path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if not groups:
        typer.echo("No target groups found")
        return
    for group in groups:
        labels = ", ".join(
            f"{name}={value}" for name, value in sorted(group.get("labels", {}).items())
        )
        typer.echo(f"{','.join(group.get('targets', []))}\t{labels}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
