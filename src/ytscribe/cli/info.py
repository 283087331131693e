"""ytscribe info command."""

from __future__ import annotations

from pathlib import Path

import typer

from ytscribe.cli.output import error, output_json
from ytscribe.core.config import get_config
from ytscribe.db.repository import Repository


def register(app: typer.Typer) -> None:
    @app.command("info")
    def info_cmd(
        video_id: int = typer.Argument(..., help="Video ID to inspect"),
        db: str = typer.Option(None, "--db", help="Database path override"),
    ) -> None:
        """Show detailed info for a specific video."""
        config = get_config(db_path=Path(db) if db else None)
        repo = Repository(config.db_path)

        try:
            video = repo.get_video(video_id)
            if video is None:
                error(f"Video not found: {video_id}")
                raise typer.Exit(1)
            transcript = repo.get_transcript(video_id)
            info = video.model_dump(mode="json")
            info["transcript"] = (
                {
                    "id": transcript.id,
                    "language": transcript.language,
                    "segments": len(transcript.segments),
                    "characters": len(transcript.content),
                }
                if transcript
                else None
            )
            output_json(info)
        finally:
            repo.close()
