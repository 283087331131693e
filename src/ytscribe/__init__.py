"""ytscribe — transcribe YouTube videos with live progress."""

__version__ = "0.1.0"
