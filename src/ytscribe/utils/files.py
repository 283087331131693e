"""Temporary file helpers."""

from __future__ import annotations

import sys
from pathlib import Path


def discard(path: Path | None) -> bool:
    """Best-effort delete. Returns True if the file is gone afterwards.

    Deleting a file that is already gone is not an error; any other
    failure is reported on stderr and never raised.
    """
    if path is None:
        return True
    try:
        Path(path).unlink(missing_ok=True)
        return True
    except OSError as e:
        print(f"  Warning: failed to clean up {path}: {e}", file=sys.stderr)
        return False
