"""Command-line interface for Manifest Upload."""

from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from rich.console import Console
from typing_extensions import Annotated

from manifest_upload import __version__
from manifest_upload.config import Config, S3Config
from manifest_upload.config_manager import get_config_path, load_config, save_config
from manifest_upload.exceptions import ManifestUploadError
from manifest_upload.sync_engine import ManifestUpload

app = typer.Typer(
    name="manifest-upload",
    help="Upload a directory to S3 and publish a SHA256 manifest of its contents",
    add_completion=False,
)
# stdout is reserved for the manifest itself
console = Console(stderr=True)


class Messages:
    CONFIG_LOAD_ERROR = "Error loading configuration: {error}"
    UPLOAD_ERROR = "Upload failed: {error}"
    CONFIG_SAVED = "Configuration saved to {path}"
    NOTHING_TO_SAVE = "Nothing to save. Pass at least one option"


def error_msg(message: str) -> str:
    """Format error message with consistent styling."""
    return f"[red]{message}[/red]"


def success_msg(message: str) -> str:
    """Format success message with consistent styling."""
    return f"[green]{message}[/green]"


def _apply_overrides(config: Config, values: Dict[str, Any]) -> None:
    """Apply profile/region/endpoint/concurrency values that are set."""
    if values.get("profile"):
        config.aws.profile = values["profile"]
    if values.get("region"):
        config.aws.region = values["region"]
    if values.get("endpoint_url"):
        config.aws.endpoint_url = values["endpoint_url"]
    if values.get("max_concurrency") is not None:
        config.s3 = S3Config(
            max_concurrency=int(values["max_concurrency"]),
            part_size=config.s3.part_size,
            chunk_size=config.s3.chunk_size,
        )


def _load_and_configure(
    profile: Optional[str] = None,
    region: Optional[str] = None,
    endpoint_url: Optional[str] = None,
    max_concurrency: Optional[int] = None,
    verbose: bool = False,
) -> Config:
    """Build configuration: command-line options over the user config file over environment."""
    try:
        config = Config.from_env()
        _apply_overrides(config, load_config(get_config_path()) or {})
        _apply_overrides(config, {
            "profile": profile,
            "region": region,
            "endpoint_url": endpoint_url,
            "max_concurrency": max_concurrency,
        })
        config.verbose = config.verbose or verbose
        return config
    except (ValueError, yaml.YAMLError) as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(1)


def _resolve_local_path(local_path: Optional[str]) -> Path:
    """Resolve the local file or directory to upload."""
    if local_path:
        return Path(local_path).resolve()
    return Path.cwd()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"manifest-upload {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[Optional[bool], typer.Option(
        "--version", callback=_version_callback, is_eager=True, help="Show version and exit",
    )] = None,
) -> None:
    """Upload a directory to S3 and publish a SHA256 manifest of its contents."""


@app.command()
def upload(
    dst: Annotated[str, typer.Option("--dst", help="Destination, [s3://]bucket/prefix")],
    src: Annotated[Optional[str], typer.Option("--src", help="Local file or directory to upload (default: current directory)")] = None,
    manifest: Annotated[Path, typer.Option("--manifest", help="Local directory to write manifest.json to")] = Path("."),
    profile: Annotated[Optional[str], typer.Option(help="AWS profile")] = None,
    region: Annotated[Optional[str], typer.Option(help="AWS region")] = None,
    endpoint_url: Annotated[Optional[str], typer.Option(help="S3-compatible endpoint URL")] = None,
    max_concurrency: Annotated[Optional[int], typer.Option(min=1, help="Maximum files uploaded at once")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
) -> None:
    """Upload files and print the manifest of their SHA256 digests."""
    config = _load_and_configure(profile, region, endpoint_url, max_concurrency, verbose)
    local_path = _resolve_local_path(src)

    try:
        engine = ManifestUpload(config, console=console)
        result = engine.run(local_path, dst, manifest)
    except ManifestUploadError as e:
        console.print(error_msg(Messages.UPLOAD_ERROR.format(error=e)))
        if config.verbose:
            console.print_exception()
        raise typer.Exit(1)

    typer.echo(result.manifest_bytes.decode("utf-8"))


@app.command("config")
def configure(
    profile: Annotated[Optional[str], typer.Option(help="Default AWS profile")] = None,
    region: Annotated[Optional[str], typer.Option(help="Default AWS region")] = None,
    endpoint_url: Annotated[Optional[str], typer.Option(help="Default S3-compatible endpoint URL")] = None,
    max_concurrency: Annotated[Optional[int], typer.Option(min=1, help="Default upload concurrency")] = None,
) -> None:
    """Save default options to the user config file."""
    updates = {
        "profile": profile,
        "region": region,
        "endpoint_url": endpoint_url,
        "max_concurrency": max_concurrency,
    }
    updates = {key: value for key, value in updates.items() if value is not None}
    if not updates:
        console.print(error_msg(Messages.NOTHING_TO_SAVE))
        raise typer.Exit(1)

    config_path = get_config_path()
    try:
        existing = load_config(config_path) or {}
    except (ValueError, yaml.YAMLError) as e:
        console.print(error_msg(Messages.CONFIG_LOAD_ERROR.format(error=e)))
        raise typer.Exit(1)

    save_config(config_path, {**existing, **updates})
    console.print(success_msg(Messages.CONFIG_SAVED.format(path=config_path)))


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
