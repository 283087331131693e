"""ytscribe transcript command — output transcript in VTT/SRT/text."""

from __future__ import annotations

from pathlib import Path

import typer

from ytscribe.cli.output import error, output_text
from ytscribe.core.config import get_config
from ytscribe.db.models import TranscriptRecord
from ytscribe.db.repository import Repository


def _fmt_vtt_time(secs: float) -> str:
    h = int(secs // 3600)
    m = int((secs % 3600) // 60)
    s = int(secs % 60)
    ms = int((secs % 1) * 1000)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def _fmt_srt_time(secs: float) -> str:
    return _fmt_vtt_time(secs).replace(".", ",")


def render_transcript(transcript: TranscriptRecord, fmt: str) -> str:
    """Render a transcript as vtt, srt, or text. Raises ValueError on unknown format."""
    if fmt == "vtt":
        lines = ["WEBVTT", ""]
        for seg in transcript.segments:
            lines.append(f"{_fmt_vtt_time(seg.start)} --> {_fmt_vtt_time(seg.end)}")
            lines.append(seg.text)
            lines.append("")
        return "\n".join(lines)

    if fmt == "srt":
        lines: list[str] = []
        for i, seg in enumerate(transcript.segments, 1):
            lines.append(str(i))
            lines.append(f"{_fmt_srt_time(seg.start)} --> {_fmt_srt_time(seg.end)}")
            lines.append(seg.text)
            lines.append("")
        return "\n".join(lines)

    if fmt == "text":
        return transcript.content

    raise ValueError(f"Unknown format: {fmt}. Use vtt, srt, or text.")


def register(app: typer.Typer) -> None:
    @app.command("transcript")
    def transcript_cmd(
        video_id: int = typer.Argument(..., help="Video ID"),
        format: str = typer.Option("vtt", "--format", "-f", help="Output format: vtt, srt, text"),
        db: str = typer.Option(None, "--db", help="Database path override"),
    ) -> None:
        """Output transcript for a video in VTT, SRT, or plain text."""
        config = get_config(db_path=Path(db) if db else None)
        repo = Repository(config.db_path)

        try:
            if repo.get_video(video_id) is None:
                error(f"Video not found: {video_id}")
                raise typer.Exit(1)

            transcript = repo.get_transcript(video_id)
            if transcript is None:
                error(f"No transcript found for video: {video_id}")
                raise typer.Exit(1)

            try:
                output_text(render_transcript(transcript, format))
            except ValueError as e:
                error(str(e))
                raise typer.Exit(1)
        finally:
            repo.close()
