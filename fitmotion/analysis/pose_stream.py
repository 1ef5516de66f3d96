"""
Pose stream: single-consumer serialization point for asynchronous producers.

A camera/detector pipeline typically delivers poses from its own thread at
the camera's frame rate. The analyzer must see them one at a time and in
order, so frames go through a bounded queue drained by exactly one worker
thread. Frames may be dropped here (throttling, full queue, stale
timestamps) but are never reordered.
"""

import logging
import threading
from queue import Empty, Full, Queue
from typing import Callable, Optional, Union

from fitmotion.analysis.analyzer import AnalysisResult, ExerciseAnalyzer
from fitmotion.analysis.exercise import ExerciseType, TrainingMode
from fitmotion.analysis.pose_geometry import BodyPose, PoseFrame
from fitmotion.config import Settings, get_settings

logger = logging.getLogger(__name__)

_STOP = object()


class PoseStream:
    """
    Feeds an ExerciseAnalyzer from a bounded queue on one worker thread.

    Usage:
        with PoseStream(analyzer, result_callback=on_result) as stream:
            for frame in detector_frames():
                stream.submit(frame)
    """

    def __init__(
        self,
        analyzer: ExerciseAnalyzer,
        result_callback: Optional[Callable[[AnalysisResult], None]] = None,
        settings: Optional[Settings] = None,
        name: str = "pose_stream"
    ):
        self.settings = settings or get_settings()
        self.analyzer = analyzer
        self.result_callback = result_callback
        self.name = name

        self.queue_size = self.settings.stream_queue_size
        self.frame_interval = self.settings.stream_frame_interval

        self._queue: Queue = Queue(maxsize=self.queue_size)
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._running = False

        self._last_timestamp: Optional[float] = None

        # Stats
        self._submitted = 0
        self._accepted = 0
        self._dropped_throttled = 0
        self._dropped_full = 0
        self._dropped_stale = 0
        self._processed = 0

    # ========================================
    # Producer side
    # ========================================

    def submit(self, frame: Union[PoseFrame, BodyPose]) -> bool:
        """
        Offer a frame for analysis without blocking the producer.

        Returns:
            True if the frame was queued, False if it was dropped

        Raises:
            RuntimeError: The stream is not running
        """
        with self._lock:
            # Checked under the lock so no frame can be queued behind the stop marker
            if not self._running:
                raise RuntimeError(f"PoseStream '{self.name}' is not running")

            index = self._submitted
            self._submitted += 1

            if index % self.frame_interval != 0:
                self._dropped_throttled += 1
                return False

            if self._last_timestamp is not None and frame.timestamp <= self._last_timestamp:
                self._dropped_stale += 1
                logger.warning(
                    f"Dropped stale frame t={frame.timestamp:.3f} "
                    f"(last accepted t={self._last_timestamp:.3f})"
                )
                return False

            try:
                self._queue.put_nowait(frame)
            except Full:
                self._dropped_full += 1
                logger.warning(f"Queue full ({self.queue_size}), dropped frame t={frame.timestamp:.3f}")
                return False

            self._last_timestamp = frame.timestamp
            self._accepted += 1
            return True

    def configure(
        self,
        exercise_type: Union[ExerciseType, str],
        training_mode: Optional[Union[TrainingMode, str]] = None
    ):
        """Reconfigure the analyzer, serialized with in-flight ingest calls."""
        self.analyzer.configure(exercise_type, training_mode)

    # ========================================
    # Consumer side
    # ========================================

    def _run(self):
        """Worker loop: the only caller of analyzer.ingest while running."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                result = self.analyzer.ingest(item)
                with self._lock:
                    self._processed += 1
                if self.result_callback is not None:
                    try:
                        self.result_callback(result)
                    except Exception as e:
                        logger.exception(f"Result callback failed: {e}")
            finally:
                self._queue.task_done()

    def _clear_queue(self):
        while True:
            try:
                self._queue.get_nowait()
            except Empty:
                break
            self._queue.task_done()

    # ========================================
    # Lifecycle
    # ========================================

    def start(self):
        """
        Start the worker thread.

        Raises:
            RuntimeError: A previous worker is still finishing its last frame
        """
        with self._lock:
            if self._running:
                return
            if self._thread is not None and self._thread.is_alive():
                raise RuntimeError(f"PoseStream '{self.name}' worker from the previous run is still alive")
            self._running = True
        self._thread = threading.Thread(target=self._run, name=f"{self.name}_worker", daemon=True)
        self._thread.start()
        logger.info(f"PoseStream '{self.name}' started (queue: {self.queue_size}, interval: {self.frame_interval})")

    def stop(self, drain: bool = True, timeout: Optional[float] = None):
        """
        Stop accepting frames and join the worker.

        Args:
            drain: Analyze frames already queued before stopping
            timeout: Maximum seconds to wait for the worker
        """
        with self._lock:
            was_running = self._running
            self._running = False

        if was_running:
            if not drain:
                self._clear_queue()
            self._queue.put(_STOP)

        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning(f"PoseStream '{self.name}' worker still busy after {timeout}s")
                return
            self._thread = None

        if was_running:
            logger.info(f"PoseStream '{self.name}' stopped: {self.get_stats()}")

    def is_running(self) -> bool:
        return self._running

    def get_stats(self) -> dict:
        """Stream statistics."""
        with self._lock:
            return {
                "name": self.name,
                "is_running": self._running,
                "submitted": self._submitted,
                "accepted": self._accepted,
                "processed": self._processed,
                "dropped_throttled": self._dropped_throttled,
                "dropped_full": self._dropped_full,
                "dropped_stale": self._dropped_stale,
                "queue_size": self._queue.qsize(),
                "queue_capacity": self.queue_size,
            }

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
