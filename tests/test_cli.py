"""Tests for the ytscribe command line."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ytscribe import __version__
from ytscribe.cli.app import app
from ytscribe.cli.process import watch_events
from ytscribe.cli.transcript import render_transcript
from ytscribe.core.exceptions import DownloadError
from ytscribe.db.models import Segment, TranscriptRecord, VideoStatus
from ytscribe.db.repository import Repository
from ytscribe.pipeline.process import Pipeline
from ytscribe.pipeline.progress import ProgressBus, ProgressEvent, ProgressStage
from ytscribe.providers.base import (
    MediaFetcher,
    MetadataProvider,
    TranscriptionProvider,
    TranscriptionResult,
    TranscriptSegment,
)

runner = CliRunner()

URL = "https://youtu.be/dQw4w9WgXcQ"


class _NoMetadata(MetadataProvider):
    def fetch(self, url):
        raise DownloadError("offline", url=url)


class _Fetcher(MediaFetcher):
    def __init__(self, out_dir: Path, fail: bool = False):
        self.out_dir = out_dir
        self.fail = fail

    def download(self, url):
        if self.fail:
            raise DownloadError("network unreachable", url=url)
        path = self.out_dir / "dQw4w9WgXcQ.m4a"
        path.write_bytes(b"\x00" * 64)
        return path


class _Transcriber(TranscriptionProvider):
    def transcribe(self, audio_path):
        return TranscriptionResult(
            text="never gonna",
            segments=[TranscriptSegment(0.0, 1.5, "never gonna")],
        )


@pytest.fixture()
def db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr("ytscribe.core.config.CONFIG_FILE_PATH", tmp_path / "config.json")
    return tmp_path / "cli.db"


def _fake_build(tmp_path: Path, fail: bool = False):
    def build(config, repo, bus):
        return Pipeline(repo, _NoMetadata(), _Fetcher(tmp_path, fail), _Transcriber(), bus)
    return build


def _transcript() -> TranscriptRecord:
    return TranscriptRecord(
        id=1,
        video_id=1,
        content="Hello there. General Kenobi.",
        segments=[
            Segment(start=0.0, end=1.5, text="Hello there."),
            Segment(start=3661.25, end=3662.0, text="General Kenobi."),
        ],
    )


# ---------------------------------------------------------------------------
# Simple commands
# ---------------------------------------------------------------------------

def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"version": __version__, "package": "ytscribe"}


def test_list_empty(db: Path) -> None:
    result = runner.invoke(app, ["list", "--db", str(db)])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"videos": [], "total": 0}


def test_list_rejects_unknown_status(db: Path) -> None:
    result = runner.invoke(app, ["list", "--status", "bogus", "--db", str(db)])
    assert result.exit_code == 1


def test_info_missing_video(db: Path) -> None:
    result = runner.invoke(app, ["info", "42", "--db", str(db)])
    assert result.exit_code == 1


def test_add_rejects_invalid_url(db: Path) -> None:
    result = runner.invoke(app, ["add", "https://example.com/watch", "--db", str(db)])
    assert result.exit_code == 1
    assert not db.exists()


# ---------------------------------------------------------------------------
# add / retry
# ---------------------------------------------------------------------------

def test_add_processes_video(db: Path, tmp_path: Path) -> None:
    with patch("ytscribe.cli.process.build_pipeline", side_effect=_fake_build(tmp_path)):
        result = runner.invoke(app, ["add", URL, "--db", str(db)])

    assert result.exit_code == 0
    repo = Repository(db)
    try:
        [video] = repo.list_videos()
        assert video.youtube_id == "dQw4w9WgXcQ"
        assert video.status == VideoStatus.COMPLETED
        assert repo.get_transcript(video.id).content == "never gonna"
    finally:
        repo.close()
    assert not (tmp_path / "dQw4w9WgXcQ.m4a").exists()


def test_add_failure_exits_nonzero(db: Path, tmp_path: Path) -> None:
    with patch("ytscribe.cli.process.build_pipeline", side_effect=_fake_build(tmp_path, fail=True)):
        result = runner.invoke(app, ["add", URL, "--db", str(db)])

    assert result.exit_code == 1
    repo = Repository(db)
    try:
        assert repo.list_videos()[0].status == VideoStatus.FAILED
    finally:
        repo.close()


def test_retry_failed_video(db: Path, tmp_path: Path) -> None:
    repo = Repository(db)
    video = repo.insert_video(URL, "dQw4w9WgXcQ")
    repo.update_status(video.id, VideoStatus.FAILED)
    repo.close()

    with patch("ytscribe.cli.process.build_pipeline", side_effect=_fake_build(tmp_path)):
        result = runner.invoke(app, ["retry", str(video.id), "--db", str(db)])

    assert result.exit_code == 0
    repo = Repository(db)
    try:
        assert repo.get_video(video.id).status == VideoStatus.COMPLETED
    finally:
        repo.close()


def test_retry_refuses_completed_video(db: Path) -> None:
    repo = Repository(db)
    video = repo.insert_video(URL, "dQw4w9WgXcQ")
    repo.update_status(video.id, VideoStatus.COMPLETED)
    repo.close()

    result = runner.invoke(app, ["retry", str(video.id), "--db", str(db)])
    assert result.exit_code == 1


# ---------------------------------------------------------------------------
# transcript
# ---------------------------------------------------------------------------

def test_render_vtt() -> None:
    out = render_transcript(_transcript(), "vtt")
    assert out.startswith("WEBVTT\n\n00:00:00.000 --> 00:00:01.500\nHello there.")
    assert "01:01:01.250 --> 01:01:02.000" in out


def test_render_srt() -> None:
    out = render_transcript(_transcript(), "srt")
    assert out.startswith("1\n00:00:00,000 --> 00:00:01,500\nHello there.\n")
    assert "\n2\n01:01:01,250 --> 01:01:02,000\n" in out


def test_render_text() -> None:
    assert render_transcript(_transcript(), "text") == "Hello there. General Kenobi."


def test_render_unknown_format() -> None:
    with pytest.raises(ValueError):
        render_transcript(_transcript(), "docx")


def test_transcript_command(db: Path) -> None:
    repo = Repository(db)
    video = repo.insert_video(URL, "dQw4w9WgXcQ")
    repo.insert_transcript(
        video.id, content="hi", segments=[TranscriptSegment(0.0, 1.0, "hi")], language="en"
    )
    repo.close()

    result = runner.invoke(app, ["transcript", str(video.id), "--format", "text", "--db", str(db)])
    assert result.exit_code == 0
    assert result.stdout.strip() == "hi"


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

def test_config_set_normalises_value(db: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("YTSCRIBE_OVERSIZE_POLICY", raising=False)
    result = runner.invoke(app, ["config", "set", "oversize_policy", "REJECT"])
    assert result.exit_code == 0

    saved = json.loads((db.parent / "config.json").read_text())
    assert saved["oversize_policy"] == "reject"


def test_config_set_rejects_bad_value(db: Path) -> None:
    result = runner.invoke(app, ["config", "set", "max_workers", "0"])
    assert result.exit_code == 1
    assert not (db.parent / "config.json").exists()


def test_config_set_unknown_key(db: Path) -> None:
    result = runner.invoke(app, ["config", "set", "colour", "blue"])
    assert result.exit_code == 1


def test_config_show_masks_key(db: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("YTSCRIBE_API_KEY", "sk-secret")
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    shown = json.loads(result.stdout)
    assert shown["api_key"] == "***"
    assert "sk-secret" not in result.stdout


# ---------------------------------------------------------------------------
# Event streaming
# ---------------------------------------------------------------------------

def test_watch_renders_events_queued_after_last_poll() -> None:
    bus = ProgressBus()
    sub = bus.subscribe(1)
    rendered: list[ProgressEvent] = []

    def finished_meanwhile() -> bool:
        # The run publishes its tail and exits between the poll and this check
        bus.emit(1, ProgressStage.TRANSCRIBING, progress=100)
        bus.emit(1, ProgressStage.COMPLETE, message="Processing complete!")
        return False

    watch_events(sub, finished_meanwhile, rendered.append, poll=0.01)

    assert [e.stage for e in rendered] == [ProgressStage.TRANSCRIBING, ProgressStage.COMPLETE]


def test_watch_stops_at_terminal_event() -> None:
    bus = ProgressBus()
    sub = bus.subscribe(1)
    bus.emit(1, ProgressStage.ERROR, error="boom")
    bus.emit(1, ProgressStage.PENDING)
    rendered: list[ProgressEvent] = []

    watch_events(sub, lambda: True, rendered.append, poll=0.01)

    assert [e.stage for e in rendered] == [ProgressStage.ERROR]


def test_watch_gives_up_when_run_dies_silently() -> None:
    sub = ProgressBus().subscribe(1)
    rendered: list[ProgressEvent] = []
    watch_events(sub, lambda: False, rendered.append, poll=0.01)
    assert rendered == []
