"""CRUD operations for videos and transcripts."""

from __future__ import annotations

import contextlib
import json
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from ytscribe.core.exceptions import DatabaseError
from ytscribe.db.connection import get_connection
from ytscribe.db.models import Segment, TranscriptRecord, VideoRecord, VideoStatus
from ytscribe.db.schema import migrate


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _video_from_row(row: sqlite3.Row) -> VideoRecord:
    return VideoRecord(**dict(row))


def _transcript_from_row(row: sqlite3.Row) -> TranscriptRecord:
    data = dict(row)
    segments = json.loads(data.pop("segments_json") or "[]")
    return TranscriptRecord(**data, segments=[Segment(**s) for s in segments])


class Repository:
    """Video record store.

    A single connection is shared by every pipeline worker thread, so all
    statements run under ``self._lock``. sqlite errors surface as
    ``DatabaseError``.
    """

    def __init__(self, db_path: Path | None = None):
        self.conn = get_connection(db_path)
        self._lock = threading.RLock()
        migrate(self.conn)

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def _write(self, sql: str, params: tuple) -> sqlite3.Cursor:
        with self._lock:
            try:
                cur = self.conn.execute(sql, params)
                self.conn.commit()
                return cur
            except sqlite3.Error as e:
                with contextlib.suppress(sqlite3.Error):
                    self.conn.rollback()
                raise DatabaseError(str(e)) from e

    def _read(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self.conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise DatabaseError(str(e)) from e

    # --- Videos ---

    def insert_video(
        self,
        youtube_url: str,
        youtube_id: str,
        *,
        title: str | None = None,
        duration: int | None = None,
        thumbnail_url: str | None = None,
    ) -> VideoRecord:
        now = _now()
        cur = self._write(
            """INSERT INTO videos (youtube_url, youtube_id, title, duration, thumbnail_url,
               status, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                youtube_url, youtube_id, title, duration, thumbnail_url,
                VideoStatus.PENDING.value, now, now,
            ),
        )
        video = self.get_video(cur.lastrowid)
        if video is None:
            raise DatabaseError(f"Inserted video {cur.lastrowid} could not be read back")
        return video

    def get_video(self, video_id: int) -> VideoRecord | None:
        rows = self._read("SELECT * FROM videos WHERE id = ?", (video_id,))
        return _video_from_row(rows[0]) if rows else None

    def list_videos(self, status: VideoStatus | None = None) -> list[VideoRecord]:
        if status is not None:
            rows = self._read(
                "SELECT * FROM videos WHERE status = ? ORDER BY id DESC",
                (VideoStatus(status).value,),
            )
        else:
            rows = self._read("SELECT * FROM videos ORDER BY id DESC")
        return [_video_from_row(r) for r in rows]

    def update_status(self, video_id: int, status: VideoStatus) -> None:
        """Set a video's status. Raises DatabaseError if the video does not exist."""
        cur = self._write(
            "UPDATE videos SET status = ?, updated_at = ? WHERE id = ?",
            (VideoStatus(status).value, _now(), video_id),
        )
        if cur.rowcount == 0:
            raise DatabaseError(f"Video not found: {video_id}")

    def update_metadata(
        self,
        video_id: int,
        *,
        title: str | None,
        duration: int | None,
        thumbnail_url: str | None,
    ) -> None:
        cur = self._write(
            """UPDATE videos SET title = ?, duration = ?, thumbnail_url = ?, updated_at = ?
               WHERE id = ?""",
            (title, duration, thumbnail_url, _now(), video_id),
        )
        if cur.rowcount == 0:
            raise DatabaseError(f"Video not found: {video_id}")

    def reset_for_retry(self, video_id: int) -> bool:
        """Move a failed video back to pending. Returns False if it was not failed."""
        cur = self._write(
            "UPDATE videos SET status = ?, updated_at = ? WHERE id = ? AND status = ?",
            (VideoStatus.PENDING.value, _now(), video_id, VideoStatus.FAILED.value),
        )
        return cur.rowcount > 0

    def delete_video(self, video_id: int) -> None:
        self._write("DELETE FROM videos WHERE id = ?", (video_id,))

    # --- Transcripts ---

    def insert_transcript(
        self,
        video_id: int,
        *,
        content: str,
        segments: Iterable,
        language: str,
    ) -> TranscriptRecord:
        """Persist a transcript. ``segments`` items need start/end/text attributes."""
        segments_json = json.dumps(
            [{"start": float(s.start), "end": float(s.end), "text": s.text} for s in segments],
            ensure_ascii=False,
        )
        cur = self._write(
            """INSERT INTO transcripts (video_id, content, segments_json, language, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (video_id, content, segments_json, language, _now()),
        )
        rows = self._read("SELECT * FROM transcripts WHERE id = ?", (cur.lastrowid,))
        return _transcript_from_row(rows[0])

    def get_transcript(self, video_id: int) -> TranscriptRecord | None:
        """Latest transcript for a video, or None."""
        rows = self._read(
            "SELECT * FROM transcripts WHERE video_id = ? ORDER BY id DESC LIMIT 1",
            (video_id,),
        )
        return _transcript_from_row(rows[0]) if rows else None

    def count_transcripts(self, video_id: int) -> int:
        rows = self._read("SELECT COUNT(*) FROM transcripts WHERE video_id = ?", (video_id,))
        return rows[0][0] if rows else 0
