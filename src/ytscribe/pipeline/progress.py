"""Progress event bus for streaming pipeline status to live consumers.

The pipeline publishes a ProgressEvent at each stage transition. SSE
handlers, the CLI or admin tooling subscribe per video (or to every video)
and receive events through their own bounded queue, so a slow or abandoned
subscriber can only lose its own events and never stalls the publisher.
"""

from __future__ import annotations

import json
import queue
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator

from ytscribe.core.constants import DEFAULT_SUBSCRIBER_QUEUE_SIZE


class ProgressStage(str, Enum):
    PENDING = "pending"
    DOWNLOADING = "downloading"
    EXTRACTING = "extracting"
    TRANSCRIBING = "transcribing"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProgressStage.COMPLETE, ProgressStage.ERROR)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ProgressEvent:
    """A progress event emitted during pipeline execution.

    Attributes:
        video_id: ID of the video record being processed.
        stage: Processing stage shown to the user.
        progress: Progress within this stage, 0 to 100.
        message: Human-readable status message.
        error: Error message, only set for the error stage.
        timestamp: ISO-8601 UTC emission time.
    """

    video_id: int
    stage: ProgressStage
    progress: int | None = None
    message: str | None = None
    error: str | None = None
    timestamp: str = field(default_factory=_utc_timestamp)

    def __post_init__(self) -> None:
        if self.progress is not None and not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be between 0 and 100, got {self.progress}")

    def to_dict(self) -> dict:
        """Wire representation consumed by SSE clients."""
        data: dict = {"videoId": self.video_id, "stage": ProgressStage(self.stage).value}
        if self.progress is not None:
            data["progress"] = self.progress
        if self.message is not None:
            data["message"] = self.message
        if self.error is not None:
            data["error"] = self.error
        data["timestamp"] = self.timestamp
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_sse(self) -> str:
        return f"data: {self.to_json()}\n\n"


_ALL = object()
_CLOSED = object()


class Subscription:
    """A single listener's view of the bus.

    Iterate to receive events; iteration ends once the subscription is
    cancelled. ``cancel()`` is idempotent and also runs on context exit.
    """

    def __init__(self, bus: ProgressBus, key: object, maxsize: int):
        self._bus = bus
        self.key = key
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._cancelled = threading.Event()
        self.dropped = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _offer(self, event: ProgressEvent) -> None:
        if self._cancelled.is_set():
            return
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self.dropped += 1

    def get(self, timeout: float | None = None) -> ProgressEvent | None:
        """Next event, or None on timeout or cancellation."""
        if self._cancelled.is_set() and self._queue.empty():
            return None
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if item is _CLOSED else item

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self._bus._unregister(self)
        # Wake a reader blocked in get(); make room if the queue is full
        while True:
            try:
                self._queue.put_nowait(_CLOSED)
                break
            except queue.Full:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    pass

    def __iter__(self) -> Iterator[ProgressEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event

    def until_terminal(self, timeout: float | None = None) -> Iterator[ProgressEvent]:
        """Yield events up to and including the first complete/error event.

        Stops early (without raising) if no event arrives within ``timeout``.
        """
        while True:
            event = self.get(timeout=timeout)
            if event is None:
                return
            yield event
            if ProgressStage(event.stage).is_terminal:
                return

    def sse(self, timeout: float | None = None) -> Iterator[str]:
        """SSE frames (``data: {...}\\n\\n``) until a terminal stage, then cancel."""
        try:
            for event in self.until_terminal(timeout=timeout):
                yield event.to_sse()
        finally:
            self.cancel()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()


class ProgressBus:
    """Process-local, in-memory fan-out of ProgressEvents.

    Construct one per process and pass it to the pipeline and to whatever
    streams events out. Nothing is persisted.
    """

    def __init__(self, queue_size: int = DEFAULT_SUBSCRIBER_QUEUE_SIZE):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscribers: dict[object, list[Subscription]] = {}

    def publish(self, event: ProgressEvent) -> None:
        """Deliver to the event's video channel and the global channel. Never blocks."""
        with self._lock:
            targets = list(self._subscribers.get(event.video_id, ()))
            targets.extend(self._subscribers.get(_ALL, ()))
        for sub in targets:
            sub._offer(event)

    def emit(
        self,
        video_id: int,
        stage: ProgressStage,
        *,
        progress: int | None = None,
        message: str | None = None,
        error: str | None = None,
    ) -> ProgressEvent:
        event = ProgressEvent(
            video_id=video_id,
            stage=ProgressStage(stage),
            progress=progress,
            message=message,
            error=error,
        )
        self.publish(event)
        return event

    def subscribe(self, video_id: int) -> Subscription:
        return self._register(video_id)

    def subscribe_all(self) -> Subscription:
        return self._register(_ALL)

    def subscriber_count(self, video_id: int | None = None) -> int:
        with self._lock:
            if video_id is not None:
                return len(self._subscribers.get(video_id, ()))
            return sum(len(subs) for subs in self._subscribers.values())

    def _register(self, key: object) -> Subscription:
        sub = Subscription(self, key, self.queue_size)
        with self._lock:
            self._subscribers.setdefault(key, []).append(sub)
        return sub

    def _unregister(self, sub: Subscription) -> None:
        with self._lock:
            subs = self._subscribers.get(sub.key)
            if not subs:
                return
            try:
                subs.remove(sub)
            except ValueError:
                return
            if not subs:
                del self._subscribers[sub.key]
