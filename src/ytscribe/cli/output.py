"""CLI output helpers. JSON and transcripts to stdout, everything else to stderr."""

from __future__ import annotations

import json
import sys


def output_json(data: dict | list) -> None:
    """Write one line of JSON to stdout. Non-ASCII titles are kept as-is."""
    print(json.dumps(data, ensure_ascii=False, default=str))


def output_text(text: str) -> None:
    print(text)


def error(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)


def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def progress(message: str) -> None:
    print(message, file=sys.stderr)
