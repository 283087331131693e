"""ytscribe config command — show/set configuration."""

from __future__ import annotations

import typer
from pydantic import ValidationError
from rich.console import Console

from ytscribe.cli.output import error, output_json, output_text
from ytscribe.core.config import (
    FILE_KEYS,
    YTScribeConfig,
    _load_config_file,
    get_config,
    resolve_api_key,
    save_config,
)

config_app = typer.Typer()

_console = Console(stderr=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration."""
    config = get_config()
    output_json({
        "api_base_url": config.api_base_url,
        "api_key": "***" if resolve_api_key(config) else "(not set)",
        "transcribe_model": config.transcribe_model,
        "db_path": str(config.db_path),
        "downloads_dir": str(config.downloads_dir),
        "max_workers": config.max_workers,
        "subscriber_queue_size": config.subscriber_queue_size,
        "oversize_policy": config.oversize_policy,
        "cookies_browser": config.cookies_browser or "(not set)",
        "cookies_file": config.cookies_file or "(not set)",
    })


@config_app.command("path")
def config_path() -> None:
    """Show path to the database file."""
    config = get_config()
    output_text(str(config.db_path))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help=f"One of: {', '.join(FILE_KEYS)}"),
    value: str = typer.Argument(..., help="New value"),
) -> None:
    """Persist a single setting to config.json."""
    if key not in FILE_KEYS:
        error(f"Unknown config key: {key}. Use one of: {', '.join(FILE_KEYS)}")
        raise typer.Exit(1)

    data = _load_config_file()
    data[key] = value
    try:
        # Reject values the settings model would refuse at load time
        checked = YTScribeConfig(**{k: v for k, v in data.items() if k in FILE_KEYS})
    except ValidationError as e:
        error(f"Invalid value for {key}: {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    data[key] = checked.model_dump(mode="json")[key]
    path = save_config(data)
    _console.print(f"  [green]✓[/green] {key} saved to {path}")
