"""FieldAgent upload CLI.

Uploads a file to Sentera cloud storage through the FieldAgent GraphQL API
and prints the resulting file ID, ready to be passed to a mutation that
accepts a file key (import_mosaic, import_feature_set, ...).

Usage:
    fieldagent-upload [global options] [command] [options]

Examples:
    # Multipart upload of a mosaic into a survey
    fieldagent-upload multipart ortho.tif --content-type image/tiff \\
        --parent-id <survey sentera id> --owner-type MOSAIC

    # Single PUT upload of a small file
    fieldagent-upload single boundary.geojson --content-type application/json

    # Show how a file would be split into parts
    fieldagent-upload plan 12582912

Options fall back to the FILE_PATH, CONTENT_TYPE, PARENT_SENTERA_ID and
OWNER_TYPE environment variables. The token is read from
FIELDAGENT_ACCESS_TOKEN or fieldagent_access_token.txt.
"""

from pathlib import Path

import click
from rich.console import Console
from rich.progress import (
  BarColumn,
  DownloadColumn,
  Progress,
  TextColumn,
  TimeRemainingColumn,
)
from rich.table import Table

from .client import GatewayClientConfig
from .config.constants import MIN_PART_SIZE
from .config.logging import setup_logging
from .exceptions import FileUploadError
from .uploads import (
  FileUploadOwner,
  MultipartUploadConfig,
  plan_parts,
  upload_file,
  upload_file_single,
)

console = Console()


def _fail(error: FileUploadError) -> None:
  console.print(f"[red]Failed:[/red] {error.message}")
  if error.details:
    for key, value in error.details.items():
      console.print(f"  [dim]{key}:[/dim] {value}")
  raise SystemExit(1)


@click.group()
@click.option(
  "--server",
  envvar="FIELDAGENT_SERVER",
  help="FieldAgent server URL (default: https://api.sentera.com)",
)
@click.pass_context
def cli(ctx, server):
  """FieldAgent uploads - send files to Sentera cloud storage."""
  config = GatewayClientConfig.from_env()
  if server:
    config = config.with_overrides(endpoint=server.rstrip("/") + "/graphql")
  ctx.obj = config


@cli.command("multipart")
@click.argument(
  "file_path",
  envvar="FILE_PATH",
  type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
  "--content-type", envvar="CONTENT_TYPE", required=True, help="MIME content type"
)
@click.option(
  "--parent-id",
  envvar="PARENT_SENTERA_ID",
  required=True,
  help="Sentera ID of the resource the file owner is created in",
)
@click.option(
  "--owner-type",
  envvar="OWNER_TYPE",
  required=True,
  help="Type of file owner to create (MOSAIC, FEATURE_SET, ...)",
)
@click.option(
  "--concurrency",
  type=click.IntRange(1, 32),
  default=None,
  help="Parts uploaded at the same time (default: UPLOAD_MAX_CONCURRENCY)",
)
@click.pass_obj
def multipart(client_config, file_path, content_type, parent_id, owner_type, concurrency):
  """Upload FILE_PATH in 5 MiB parts."""
  upload_config = (
    MultipartUploadConfig(max_concurrency=concurrency)
    if concurrency
    else MultipartUploadConfig()
  )
  owner = FileUploadOwner(parent_sentera_id=parent_id, owner_type=owner_type)
  file_size = file_path.stat().st_size

  console.print(f"\n[bold]Uploading[/bold] {file_path.name} ({file_size:,} bytes)")

  with Progress(
    TextColumn("[cyan]{task.description}"),
    BarColumn(),
    DownloadColumn(),
    TimeRemainingColumn(),
    console=console,
  ) as progress:
    task = progress.add_task("parts", total=file_size)

    def on_part(spec, result):
      progress.advance(task, spec.byte_length)

    try:
      file_id = upload_file(
        file_path,
        content_type,
        owner,
        client_config=client_config,
        upload_config=upload_config,
        progress_callback=on_part,
      )
    except FileUploadError as e:
      progress.stop()
      _fail(e)

  console.print(f"[green]Done![/green] File {file_path} was uploaded.")
  console.print(f"[bold]File ID:[/bold] {file_id}")


@cli.command("single")
@click.argument(
  "file_path",
  envvar="FILE_PATH",
  type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
  "--content-type", envvar="CONTENT_TYPE", required=True, help="MIME content type"
)
@click.pass_obj
def single(client_config, file_path, content_type):
  """Upload FILE_PATH with a single PUT."""
  console.print(f"\n[bold]Uploading[/bold] {file_path.name}")

  try:
    file_id = upload_file_single(file_path, content_type, client_config=client_config)
  except FileUploadError as e:
    _fail(e)

  console.print(f"[green]Done![/green] File {file_path} was uploaded.")
  console.print(f"[bold]File ID:[/bold] {file_id}")


@cli.command("plan")
@click.argument("size", type=click.IntRange(min=0))
def plan(size):
  """Show how SIZE bytes would be split into parts."""
  try:
    parts = plan_parts(size, MIN_PART_SIZE)
  except FileUploadError as e:
    _fail(e)

  table = Table(title="Part Plan", show_header=True, header_style="bold cyan")
  table.add_column("Part", justify="right")
  table.add_column("Offset", justify="right")
  table.add_column("Length", justify="right")
  for spec in parts:
    table.add_row(
      str(spec.part_number), f"{spec.byte_offset:,}", f"{spec.byte_length:,}"
    )

  console.print(table)
  console.print(f"\n[bold]Total:[/bold] {len(parts):,} parts, {size:,} bytes")


def main():
  setup_logging()
  cli()


if __name__ == "__main__":
  main()
