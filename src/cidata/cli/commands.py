"""Command implementations for CLI."""

from pathlib import Path
from typing import Any, Callable, Optional

from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from cidata.errors import PartialCreateError
from cidata.models.cloudinit import CloudInitSpec
from cidata.providers.base import ProviderStatus
from cidata.providers.cloudinit import CloudInitProvider
from cidata.seed import build, package
from cidata.utils.hashing import UserDataEncoding, fingerprint


console = Console()
stderr_console = Console(stderr=True)


def _run_action(description: str, action: Callable[[], Any], quiet: bool = False) -> Any:
    """Helper to run a backend action with a progress spinner."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=stderr_console,
        disable=quiet,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)
        result = action()
        progress.update(task, completed=True)

    return result


def create_volume(provider: CloudInitProvider, spec: CloudInitSpec, quiet: bool = False):
    """Create a seed volume and print its key."""
    try:
        key = _run_action(
            f"Creating cloud-init volume {spec.name}...",
            lambda: provider.create(spec),
            quiet=quiet,
        )
    except PartialCreateError as e:
        # Print the key first so the volume is not lost
        console.print(e.volume_key)
        raise

    if not quiet:
        stderr_console.print(f"[green]✓[/green] Created {spec.pool}/{spec.name}")
    console.print(key)


def show_volume(provider: CloudInitProvider, volume_key: str):
    """Show the fields reconstructed from a stored seed volume."""
    state = _run_action("Reading cloud-init volume...", lambda: provider.read(volume_key))

    table = Table(title="Cloud-init volume")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for field, value in state.dict().items():
        table.add_row(field, "" if value is None else str(value))

    console.print(table)


def show_status(provider: CloudInitProvider, volume_key: str):
    """Print whether a seed volume still exists."""
    status = provider.status(volume_key)
    style = {
        ProviderStatus.PRESENT: "green",
        ProviderStatus.ABSENT: "yellow",
    }.get(status, "red")
    console.print(f"[{style}]{status.value}[/{style}]")


def remove_volume(provider: CloudInitProvider, volume_key: str):
    """Delete a seed volume."""
    _run_action(f"Deleting {volume_key}...", lambda: provider.delete(volume_key))
    console.print(f"[green]✓[/green] Deleted {volume_key}")


def list_pools(provider: CloudInitProvider):
    """List storage pools on the backend."""
    table = Table(title="Storage pools")
    table.add_column("Name", style="cyan")

    for name in provider.backend.list_pools():
        table.add_row(name)

    console.print(table)


def render_image(spec: CloudInitSpec, output: Path):
    """Package a seed image to a local file without uploading it."""
    image = package(build(spec))
    output.write_bytes(image)
    console.print(f"[green]✓[/green] Wrote {len(image)} bytes to {output}")


def show_fingerprint(
    value: Optional[str] = None,
    file: Optional[Path] = None,
    encoding: UserDataEncoding = "auto",
):
    """Print the fingerprint of user-data given inline or in a file."""
    user_data = file.read_text() if file else (value or "")
    console.print(fingerprint(user_data, encoding))
