"""Chunked recording from a microphone stream on a background thread."""

import logging
from threading import Thread, Event, Lock, current_thread
from typing import Callable, Optional, Protocol

from .analyser import FrequencyAnalyser

logger = logging.getLogger(__name__)


class AudioInputStream(Protocol):
    """What the recorder needs from a microphone."""
    sample_rate: int
    channels: int
    sample_width: int

    def read(self, frames: int) -> bytes:
        ...


class ChunkRecorder:
    """Reads small blocks continuously and emits a chunk every timeslice.

    Every block is also fed to the analyser so the level meter tracks the
    live input rather than the chunk cadence.
    """

    def __init__(
        self,
        stream: AudioInputStream,
        on_data: Callable[[bytes], None],
        analyser: Optional[FrequencyAnalyser] = None,
        timeslice_ms: int = 100,
        block_frames: int = 256,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """Initialize the recorder.

        Args:
            stream: Open input stream to read from
            on_data: Called with each non-empty chunk, in order
            analyser: Optional level analyser fed with every block
            timeslice_ms: How often accumulated audio is emitted
            block_frames: Frames per read from the stream
            on_error: Called from the recording thread if a read fails,
                after the partial tail has been flushed
        """
        self.stream = stream
        self.on_data = on_data
        self.on_error = on_error
        self.analyser = analyser
        self.timeslice_ms = timeslice_ms
        self.block_frames = block_frames

        bytes_per_frame = stream.channels * stream.sample_width
        self.timeslice_bytes = int(stream.sample_rate * timeslice_ms / 1000) * bytes_per_frame

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self._stop_lock = Lock()
        self._pending = bytearray()
        self.total_chunks = 0
        self.total_bytes = 0

    @property
    def state(self) -> str:
        if self.recording_thread is not None and not self.stop_event.is_set():
            return "recording"
        return "inactive"

    def start(self) -> None:
        if self.recording_thread is not None:
            logger.warning("Recorder already started")
            return

        self.stop_event.clear()
        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "ChunkRecorderThread"
        self.recording_thread.start()
        logger.debug(f"Recorder started: {self.timeslice_ms}ms timeslice, "
                     f"{self.timeslice_bytes} bytes/chunk")

    def stop(self, timeout: float = 2.0) -> None:
        """Stop recording and flush the last partial chunk. Idempotent."""
        with self._stop_lock:
            if self.stop_event.is_set() or self.recording_thread is None:
                return
            self.stop_event.set()

        # stop() may be reached from on_error, on the recording thread itself
        if self.recording_thread is not current_thread() and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=timeout)
            if self.recording_thread.is_alive():
                logger.warning("Recorder thread did not stop cleanly")

        logger.info(f"Recorder stopped. Total chunks: {self.total_chunks}, bytes: {self.total_bytes}")

    def _record_continuously(self) -> None:
        error = None
        try:
            while not self.stop_event.is_set():
                block = self.stream.read(self.block_frames)
                if not block:
                    continue
                if self.analyser is not None:
                    self.analyser.feed(block)
                self._pending.extend(block)
                if len(self._pending) >= self.timeslice_bytes:
                    self._emit()
        except (OSError, IOError) as e:
            logger.error(f"Audio read failed, recorder stopping: {e}")
            error = e
        finally:
            self._emit()

        if error is not None and self.on_error is not None:
            self.on_error(error)

    def _emit(self) -> None:
        if not self._pending:
            return
        chunk = bytes(self._pending)
        self._pending.clear()
        self.total_chunks += 1
        self.total_bytes += len(chunk)
        self.on_data(chunk)
