"""Main CLI implementation using Typer."""

from pathlib import Path
from typing import Optional, Callable, Any

import typer
from pydantic import ValidationError
from rich.console import Console

from cidata.cli.commands import (
    create_volume,
    show_volume,
    show_status,
    remove_volume,
    list_pools,
    render_image,
    show_fingerprint,
)
from cidata.config import load_config, load_spec
from cidata.errors import CidataError, ConnectionUnavailable, describe
from cidata.models.cloudinit import CloudInitSpec
from cidata.models.config import CidataConfig
from cidata.providers.cloudinit import CloudInitProvider
from cidata.utils.logging import setup_logging


# Create Typer app
app = typer.Typer(
    name="cidata",
    help="Build, upload and reconcile cloud-init seed volumes on libvirt",
    add_completion=False,
)

# Console for rich output
console = Console(stderr=True)


def _fail(message: str, error: Optional[BaseException] = None):
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(1) from error


def _load_settings(config_path: Optional[str]) -> CidataConfig:
    """Load configuration and set up logging, exiting on invalid config."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        _fail(str(e), e)
    setup_logging(config.log_level)
    return config


def _load_seed_spec(spec_file: Path, config: CidataConfig) -> CloudInitSpec:
    try:
        return load_spec(spec_file, config.defaults)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        _fail(str(e), e)


def _open_backend(uri: str):
    """Open the libvirt storage backend."""
    # Imported here so commands that never touch libvirt work without the bindings
    try:
        from cidata.backend.libvirt import LibvirtBackend
    except ImportError as e:
        raise ConnectionUnavailable(f"libvirt bindings are not installed: {e}") from e

    return LibvirtBackend.open(uri)


def _run_cli_command(
    handler: Callable[..., Any],
    config: CidataConfig,
    uri: Optional[str],
    **kwargs: Any,
):
    """Helper to run a CLI command with a provider and error handling."""
    try:
        backend = _open_backend(uri or config.libvirt.uri)
        try:
            handler(CloudInitProvider(backend), **kwargs)
        finally:
            backend.close()
    except CidataError as e:
        _fail(describe(e), e)


@app.command("create")
def create_command(
    spec_file: Path = typer.Argument(..., help="Seed volume spec (YAML)"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print the volume key"),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    uri: Optional[str] = typer.Option(
        None, "--uri", help="libvirt connection URI"
    ),
):
    """Create a seed volume and print its key."""
    settings = _load_settings(config)
    spec = _load_seed_spec(spec_file, settings)
    _run_cli_command(create_volume, settings, uri, spec=spec, quiet=quiet)


@app.command("read")
def read_command(
    volume_key: str = typer.Argument(..., help="Volume key"),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    uri: Optional[str] = typer.Option(
        None, "--uri", help="libvirt connection URI"
    ),
):
    """Show the fields stored in a seed volume."""
    settings = _load_settings(config)
    _run_cli_command(show_volume, settings, uri, volume_key=volume_key)


@app.command("status")
def status_command(
    volume_key: str = typer.Argument(..., help="Volume key"),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    uri: Optional[str] = typer.Option(
        None, "--uri", help="libvirt connection URI"
    ),
):
    """Show whether a seed volume exists."""
    settings = _load_settings(config)
    _run_cli_command(show_status, settings, uri, volume_key=volume_key)


@app.command("delete")
def delete_command(
    volume_key: str = typer.Argument(..., help="Volume key"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Force removal without confirmation"
    ),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    uri: Optional[str] = typer.Option(
        None, "--uri", help="libvirt connection URI"
    ),
):
    """Delete a seed volume."""
    if not force:
        confirm = typer.confirm(f"Delete volume {volume_key}?")
        if not confirm:
            raise typer.Abort()
    settings = _load_settings(config)
    _run_cli_command(remove_volume, settings, uri, volume_key=volume_key)


@app.command("pools")
def pools_command(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
    uri: Optional[str] = typer.Option(
        None, "--uri", help="libvirt connection URI"
    ),
):
    """List storage pools."""
    settings = _load_settings(config)
    _run_cli_command(list_pools, settings, uri)


@app.command("render")
def render_command(
    spec_file: Path = typer.Argument(..., help="Seed volume spec (YAML)"),
    output: Path = typer.Option(..., "--output", "-o", help="ISO file to write"),
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file"
    ),
):
    """Package a seed image locally without uploading it."""
    settings = _load_settings(config)
    spec = _load_seed_spec(spec_file, settings)
    try:
        render_image(spec, output)
    except (CidataError, OSError) as e:
        _fail(describe(e), e)


@app.command("fingerprint")
def fingerprint_command(
    value: Optional[str] = typer.Argument(None, help="User-data, raw or base64"),
    file: Optional[Path] = typer.Option(None, "--file", "-f", help="Read user-data from a file"),
    encoding: str = typer.Option("auto", "--encoding", "-e", help="auto, raw or base64"),
):
    """Print the encoding-insensitive fingerprint of user-data."""
    if encoding not in ("auto", "raw", "base64"):
        _fail(f"Invalid encoding: {encoding}")
    if value is None and file is None:
        _fail("Specify user-data or use --file")
    try:
        show_fingerprint(value=value, file=file, encoding=encoding)
    except (CidataError, OSError) as e:
        _fail(describe(e), e)


def main():
    """Main entry point for CLI."""
    app()
