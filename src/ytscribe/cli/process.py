"""ytscribe add / retry commands — run the pipeline and stream its progress."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import typer
from rich.console import Console

from ytscribe.cli.output import error, output_json, progress, warn
from ytscribe.core.config import get_config
from ytscribe.db.models import VideoStatus
from ytscribe.db.repository import Repository
from ytscribe.pipeline.progress import ProgressBus, ProgressEvent, ProgressStage, Subscription
from ytscribe.pipeline.runner import PipelineRunner, build_pipeline
from ytscribe.utils.youtube import extract_video_id

_console = Console(stderr=True)

_STAGE_STYLE = {
    ProgressStage.PENDING: "dim",
    ProgressStage.DOWNLOADING: "cyan",
    ProgressStage.EXTRACTING: "cyan",
    ProgressStage.TRANSCRIBING: "magenta",
    ProgressStage.COMPLETE: "bold green",
    ProgressStage.ERROR: "bold red",
}


def _render(event: ProgressEvent, as_sse: bool) -> None:
    if as_sse:
        print(event.to_sse(), end="", flush=True)
        return
    style = _STAGE_STYLE.get(event.stage, "")
    pct = f" {event.progress:>3d}%" if event.progress is not None else ""
    line = f"[{style}]{event.stage.value:<12}[/{style}]{pct} {event.message or ''}"
    if event.error:
        line += f" [red]{event.error}[/red]"
    _console.print(line)


def watch_events(
    sub: Subscription,
    is_running: Callable[[], bool],
    render: Callable[[ProgressEvent], None],
    poll: float = 0.5,
) -> None:
    """Render events until a terminal one, or until the run is gone.

    A run can finish between a poll timeout and the ``is_running`` check, so
    whatever is still queued is rendered before giving up.
    """
    while True:
        event = sub.get(timeout=poll)
        if event is None:
            if is_running():
                continue
            while True:
                event = sub.get(timeout=0)
                if event is None:
                    return
                render(event)
                if event.stage.is_terminal:
                    return
        render(event)
        if event.stage.is_terminal:
            return


def _run_and_watch(repo: Repository, runner: PipelineRunner, bus: ProgressBus,
                   video_id: int, start, sse: bool) -> None:
    """Subscribe, start the run via ``start()``, stream events, then report."""
    with bus.subscribe(video_id) as sub:
        if not start():
            error(f"Video {video_id} could not be started")
            raise typer.Exit(1)
        progress(f"Processing video {video_id}...")
        watch_events(sub, lambda: runner.is_running(video_id), lambda e: _render(e, sse))
    if sub.dropped:
        warn(f"{sub.dropped} progress events were dropped")
    runner.wait(video_id)

    video = repo.get_video(video_id)
    transcript = repo.get_transcript(video_id)
    if not sse:
        output_json({
            "video_id": video_id,
            "status": video.status.value if video else None,
            "title": video.title if video else None,
            "language": transcript.language if transcript else None,
            "segments": len(transcript.segments) if transcript else 0,
        })
    if video is None or video.status != VideoStatus.COMPLETED:
        raise typer.Exit(1)


def register(app: typer.Typer) -> None:
    @app.command("add")
    def add(
        url: str = typer.Argument(..., help="YouTube video URL"),
        sse: bool = typer.Option(False, "--sse", help="Write raw SSE frames to stdout instead of a summary"),
        db: str = typer.Option(None, "--db", help="Database path override"),
    ) -> None:
        """Add a YouTube video and transcribe it."""
        youtube_id = extract_video_id(url)
        if youtube_id is None:
            error(f"Invalid YouTube URL: {url}")
            raise typer.Exit(1)

        config = get_config(db_path=Path(db) if db else None)
        repo = Repository(config.db_path)
        bus = ProgressBus(queue_size=config.subscriber_queue_size)
        runner = PipelineRunner(build_pipeline(config, repo, bus), max_workers=config.max_workers)

        try:
            video = repo.insert_video(url, youtube_id)
            _run_and_watch(repo, runner, bus, video.id, lambda: runner.submit(video.id), sse)
        finally:
            runner.shutdown()
            repo.close()

    @app.command("retry")
    def retry(
        video_id: int = typer.Argument(..., help="ID of a failed video"),
        sse: bool = typer.Option(False, "--sse", help="Write raw SSE frames to stdout instead of a summary"),
        db: str = typer.Option(None, "--db", help="Database path override"),
    ) -> None:
        """Retry transcription for a failed video."""
        config = get_config(db_path=Path(db) if db else None)
        repo = Repository(config.db_path)
        bus = ProgressBus(queue_size=config.subscriber_queue_size)
        runner = PipelineRunner(build_pipeline(config, repo, bus), max_workers=config.max_workers)

        try:
            video = repo.get_video(video_id)
            if video is None:
                error(f"Video not found: {video_id}")
                raise typer.Exit(1)
            if video.status != VideoStatus.FAILED:
                error(f"Can only retry videos with failed status, current status: {video.status.value}")
                raise typer.Exit(1)
            _run_and_watch(repo, runner, bus, video_id, lambda: runner.retry(video_id), sse)
        finally:
            runner.shutdown()
            repo.close()
