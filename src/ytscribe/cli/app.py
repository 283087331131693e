"""Typer root app — wires all subcommands together."""

from __future__ import annotations

import json

import typer

from ytscribe import __version__

app = typer.Typer(
    name="ytscribe",
    help="ytscribe — download YouTube audio and transcribe it.",
    add_completion=False,
    no_args_is_help=True,
)


@app.command("version")
def version_cmd() -> None:
    """Print version info as JSON."""
    print(json.dumps({"version": __version__, "package": "ytscribe"}))


# --- Register direct commands ---

from ytscribe.cli.process import register as register_process  # noqa: E402
from ytscribe.cli.list_cmd import register as register_list  # noqa: E402
from ytscribe.cli.info import register as register_info  # noqa: E402
from ytscribe.cli.transcript import register as register_transcript  # noqa: E402
from ytscribe.cli.config_cmd import config_app  # noqa: E402

register_process(app)
register_list(app)
register_info(app)
register_transcript(app)
app.add_typer(config_app, name="config", help="Show/set configuration")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
