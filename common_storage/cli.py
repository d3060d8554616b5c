"""
Common Storage CLI Tool

Command-line access to the configured storage backend.

Usage:
    common-storage ping  - Check connectivity
    common-storage ls PREFIX  - List files
    common-storage cat PATH  - Print a file
    common-storage put LOCAL_PATH PATH  - Upload a local file
    common-storage rm PREFIX  - Delete files under a prefix
    common-storage combine PREFIX TO_PATH  - Combine files under a prefix into one
    common-storage sign PATH  - Create a signed read URL

The backend and bucket come from STORAGE_BACKEND / DEFAULT_BUCKET
(environment or .env).
"""
import asyncio
import sys
from datetime import timedelta

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from common_storage import __version__
from common_storage.bucket import StorageBucket
from common_storage.config import configure_logging, get_settings
from common_storage.exceptions import StorageError
from common_storage.factory import create_storage

# Load environment variables
load_dotenv()

console = Console()


def get_bucket(bucket_name: str | None) -> StorageBucket:
    """Build a bucket wrapper for the configured backend."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    return StorageBucket(create_storage(settings), bucket_name or settings.DEFAULT_BUCKET)


def run(coro):
    """Run a coroutine, turning storage errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except (StorageError, ValueError) as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="Common Storage")
@click.option("--bucket", "bucket_name", default=None, help="Bucket (defaults to DEFAULT_BUCKET)")
@click.pass_context
def main(ctx: click.Context, bucket_name: str | None):
    """
    Common Storage - uniform bucket/path access to blob storage.
    """
    ctx.obj = {"bucket_name": bucket_name}


@main.command()
@click.pass_context
def ping(ctx: click.Context):
    """Check credentials and connectivity."""
    bucket = get_bucket(ctx.obj["bucket_name"])
    run(bucket.ping())
    console.print(f"[green]✓[/green] Connected ({bucket.bucket_name})")


@main.command(name="ls")
@click.argument("prefix", default="")
@click.option("--limit", default=0, help="Maximum number of files (0 = all)")
@click.option("--names-only", is_flag=True, help="Show file names without folders")
@click.pass_context
def list_files(ctx: click.Context, prefix: str, limit: int, names_only: bool):
    """
    List files whose path starts with PREFIX.

    Example:
        common-storage ls test/subdir --limit 10
    """
    bucket = get_bucket(ctx.obj["bucket_name"])
    names = run(bucket.get_file_names(prefix, full_paths=not names_only, limit=limit))

    if not names:
        console.print(f"[yellow]No files found under '{prefix}'[/yellow]")
        return

    table = Table(title=f"{bucket.bucket_name}/{prefix} ({len(names)} files)", show_header=True, header_style="bold cyan")
    table.add_column("Path", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)


@main.command()
@click.argument("path")
@click.pass_context
def cat(ctx: click.Context, path: str):
    """Print a file to stdout."""
    bucket = get_bucket(ctx.obj["bucket_name"])
    content = run(bucket.require_file(path))
    click.echo(content, nl=False)


@main.command()
@click.argument("local_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("path")
@click.pass_context
def put(ctx: click.Context, local_path: str, path: str):
    """Upload LOCAL_PATH to PATH."""
    bucket = get_bucket(ctx.obj["bucket_name"])
    run(bucket.upload_file(local_path, path))
    console.print(f"[green]✓[/green] Uploaded {local_path} -> {bucket.bucket_name}/{path}")


@main.command()
@click.argument("prefix")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def rm(ctx: click.Context, prefix: str, yes: bool):
    """Delete every file whose path starts with PREFIX."""
    bucket = get_bucket(ctx.obj["bucket_name"])
    if not yes:
        click.confirm(f"Delete everything under {bucket.bucket_name}/{prefix}?", abort=True)
    run(bucket.delete_path(prefix))
    console.print(f"[green]✓[/green] Deleted {bucket.bucket_name}/{prefix}*")


@main.command()
@click.argument("prefix")
@click.argument("to_path")
@click.option("--to-bucket", default=None, help="Destination bucket")
@click.pass_context
def combine(ctx: click.Context, prefix: str, to_path: str, to_bucket: str | None):
    """
    Combine all files under PREFIX into TO_PATH, deleting the sources.

    Example:
        common-storage combine logs/2024-01-01/ logs/2024-01-01.ndjson
    """
    bucket = get_bucket(ctx.obj["bucket_name"])
    names = run(bucket.get_file_names(prefix))
    console.print(Panel(
        f"[bold cyan]{len(names)}[/bold cyan] files -> [cyan]{to_bucket or bucket.bucket_name}/{to_path}[/cyan]",
        title="Combining",
        border_style="cyan",
    ))
    run(bucket.combine_files(names, to_path, to_bucket))
    console.print("[green]✓[/green] Combined")


@main.command()
@click.argument("path")
@click.option("--hours", default=1, help="Validity in hours (max 168)")
@click.pass_context
def sign(ctx: click.Context, path: str, hours: int):
    """Create a signed read URL for PATH."""
    bucket = get_bucket(ctx.obj["bucket_name"])
    url = run(bucket.get_signed_url(path, timedelta(hours=hours)))
    click.echo(url)


if __name__ == "__main__":
    main()
