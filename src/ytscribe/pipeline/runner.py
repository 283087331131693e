"""Background execution of pipeline runs."""

from __future__ import annotations

import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from ytscribe.core.config import YTScribeConfig
from ytscribe.core.exceptions import PipelineError
from ytscribe.db.repository import Repository
from ytscribe.pipeline.process import Pipeline
from ytscribe.pipeline.progress import ProgressBus
from ytscribe.providers.openai import OpenAITranscriber
from ytscribe.providers.ytdlp import YtDlpAudioFetcher, YtDlpMetadataProvider


def build_pipeline(config: YTScribeConfig, repo: Repository, bus: ProgressBus) -> Pipeline:
    """Wire the production providers into a Pipeline."""
    return Pipeline(
        repo=repo,
        metadata_provider=YtDlpMetadataProvider(config),
        fetcher=YtDlpAudioFetcher(config),
        transcriber=OpenAITranscriber(config),
        bus=bus,
    )


class PipelineRunner:
    """Fire-and-forget pipeline execution on a bounded thread pool.

    At most one run per video id is in flight at a time; a second submit
    for the same id is refused until the first finishes. Errors from a run
    are reported on stderr and never reach the caller.
    """

    def __init__(self, pipeline: Pipeline, max_workers: int = 2):
        self.pipeline = pipeline
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="ytscribe-pipeline"
        )
        self._lock = threading.Lock()
        self._in_flight: dict[int, Future] = {}

    def submit(self, video_id: int) -> bool:
        """Queue a run. Returns False if one is already running for this video."""
        with self._lock:
            if video_id in self._in_flight:
                return False
            future = self._executor.submit(self.pipeline.process_video, video_id)
            self._in_flight[video_id] = future
        future.add_done_callback(lambda f, vid=video_id: self._on_done(vid, f))
        return True

    def retry(self, video_id: int) -> bool:
        """Reset a failed video to pending and run it again.

        Returns False if the video is not in the failed state or a run is
        already in flight.
        """
        with self._lock:
            if video_id in self._in_flight:
                return False
        if not self.pipeline.repo.reset_for_retry(video_id):
            return False
        return self.submit(video_id)

    def is_running(self, video_id: int) -> bool:
        with self._lock:
            return video_id in self._in_flight

    def wait(self, video_id: int, timeout: float | None = None) -> None:
        """Block until the in-flight run for video_id (if any) finishes."""
        with self._lock:
            future = self._in_flight.get(video_id)
        if future is not None:
            future.exception(timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _on_done(self, video_id: int, future: Future) -> None:
        with self._lock:
            if self._in_flight.get(video_id) is future:
                del self._in_flight[video_id]

        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            return
        if isinstance(error, PipelineError):
            print(
                f"  Error: pipeline for video {video_id} failed [{error.code.value}]: {error}",
                file=sys.stderr,
            )
        else:
            print(
                f"  Error: pipeline for video {video_id} crashed: {error!r}",
                file=sys.stderr,
            )

    def __enter__(self) -> PipelineRunner:
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)
