"""Voice capture state machine with silence-triggered auto-stop.

States run ``idle -> listening -> processing -> idle | error``. A session is
identified by a generation number that is bumped on every start and reset;
timer, poll, recorder and network callbacks carry the generation they were
created for and do nothing once it is stale.
"""

import asyncio
import logging
import threading
from functools import partial
from typing import Any, Callable, List, Optional, Tuple

from ..audio.analyser import FrequencyAnalyser
from ..audio.clip import encode_wav
from ..audio.microphone import MicrophoneStream
from ..audio.recorder import ChunkRecorder
from ..exceptions import CaptureError, NoAudioRecorded
from ..models.capture import CaptureState, CaptureStateEvent, CaptureStats
from ..models.transcription import FormType, TranscriptionResponse
from .client import TranscriptionClient
from .publisher import CaptureEventPublisher
from .scheduler import Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)

FFT_SIZE = 256
SILENCE_THRESHOLD = 10.0
FRAME_INTERVAL_MS = 1000.0 / 60
MICROPHONE_DISCONNECTED = "Microphone disconnected"


class CaptureController:
    """Records one voice entry at a time and hands back the structured result."""

    def __init__(
        self,
        client: TranscriptionClient,
        form_type: FormType = FormType.EXPENSE,
        on_result: Optional[Callable[[TranscriptionResponse], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        silence_timeout_ms: float = 2000,
        silence_threshold: float = SILENCE_THRESHOLD,
        monitor_delay_ms: float = 500,
        frame_interval_ms: float = FRAME_INTERVAL_MS,
        timeslice_ms: int = 100,
        sample_rate: int = 16000,
        channels: int = 1,
        microphone_factory: Optional[Callable[[], Any]] = None,
        analyser_factory: Optional[Callable[[], Any]] = None,
        recorder_factory: Optional[Callable[..., Any]] = None,
        scheduler: Optional[Scheduler] = None,
        publisher: Optional[CaptureEventPublisher] = None,
    ):
        """Initialize the controller.

        Args:
            client: Uploads finished clips to the transcription endpoint
            form_type: Which form the structured result should fill
            on_result: Called with ``{transcript, structured}`` on success
            on_error: Called with a human-readable message on failure
            silence_timeout_ms: Continuous silence that ends a recording
            silence_threshold: Mean byte magnitude below which input is silent
            monitor_delay_ms: Warm-up before silence monitoring starts
            frame_interval_ms: Level polling period
            timeslice_ms: Recorder chunk interval
            microphone_factory: Builds an unopened input stream
            analyser_factory: Builds the level analyser
            recorder_factory: ``(stream, on_data, analyser, timeslice_ms, on_error=...)`` -> recorder
            scheduler: Timer source for polls and the silence timer
            publisher: Optional pub/sub publisher for state and results
        """
        self.form_type = form_type
        self.on_result = on_result
        self.on_error = on_error
        self.silence_timeout = silence_timeout_ms / 1000.0
        self.silence_threshold = silence_threshold
        self.monitor_delay = monitor_delay_ms / 1000.0
        self.frame_interval = frame_interval_ms / 1000.0
        self.timeslice_ms = timeslice_ms
        self.sample_rate = sample_rate
        self.channels = channels

        self._client = client
        self._microphone_factory = microphone_factory or (
            lambda: MicrophoneStream(sample_rate=sample_rate, channels=channels)
        )
        self._analyser_factory = analyser_factory or (lambda: FrequencyAnalyser(fft_size=FFT_SIZE))
        self._recorder_factory = recorder_factory or (
            lambda stream, on_data, analyser, timeslice, on_error=None: ChunkRecorder(
                stream, on_data, analyser=analyser, timeslice_ms=timeslice, on_error=on_error
            )
        )
        self._scheduler = scheduler or ThreadingScheduler()
        self._publisher = publisher

        self._lock = threading.RLock()
        self._state = CaptureState.IDLE
        self.error_message: Optional[str] = None
        self._generation = 0
        self._chunks: List[bytes] = []
        self._finalizing = False

        # Session resources, owned only while listening
        self._stream = None
        self._analyser = None
        self._recorder = None
        self._poll_handle = None
        self._silence_timer = None

    @classmethod
    def from_config(cls, config, client: Optional[TranscriptionClient] = None, **kwargs) -> "CaptureController":
        """Build a controller from ``capture.*`` and ``client.*`` settings."""
        if client is None:
            client = TranscriptionClient(
                config.get('client.server_url', 'http://localhost:8080'),
                timeout_seconds=config.get('client.timeout_seconds', 90),
            )
        return cls(
            client,
            silence_timeout_ms=config.get('capture.silence_timeout_ms', 2000),
            silence_threshold=config.get('capture.silence_threshold', SILENCE_THRESHOLD),
            monitor_delay_ms=config.get('capture.monitor_delay_ms', 500),
            timeslice_ms=config.get('capture.timeslice_ms', 100),
            sample_rate=config.get('capture.sample_rate', 16000),
            channels=config.get('capture.channels', 1),
            **kwargs,
        )

    @property
    def state(self) -> CaptureState:
        return self._state

    # Public operations

    def start_listening(self) -> None:
        """Open the microphone and start recording a new entry."""
        self._teardown()
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._chunks = []
            self._finalizing = False
            self.error_message = None
            event = self._transition(CaptureState.LISTENING)
        self._publish(event)
        logger.info(f"Listening for {self.form_type.value} input (session {generation})")

        stream = None
        try:
            stream = self._microphone_factory()
            stream.open()
            analyser = self._analyser_factory()
            recorder = self._recorder_factory(
                stream, partial(self._on_data, generation), analyser, self.timeslice_ms,
                on_error=partial(self._on_recorder_error, generation),
            )
        except (CaptureError, OSError) as e:
            self._release((None, stream, None))
            self._fail(generation, str(e) or "Failed to start recording")
            return

        with self._lock:
            stale = generation != self._generation
            if not stale:
                self._stream, self._analyser, self._recorder = stream, analyser, recorder
                recorder.start()
                self._poll_handle = self._scheduler.call_later(
                    self.monitor_delay, partial(self._poll, generation)
                )
        if stale:
            logger.debug(f"Session {generation} was reset while opening the microphone")
            self._release((None, stream, analyser))

    def stop_listening(self) -> None:
        """Finish the recording now instead of waiting for silence."""
        with self._lock:
            generation = self._generation
        self._stop_and_process(generation)

    def reset(self) -> None:
        """Abandon whatever is in progress and return to idle."""
        with self._lock:
            self._generation += 1
            resources = self._detach()
            self._chunks = []
            self._finalizing = False
            self.error_message = None
            event = self._transition(CaptureState.IDLE)
        self._release(resources)
        self._publish(event)
        logger.info("Capture reset")

    def close(self) -> None:
        """Release everything; the controller may still be restarted."""
        self.reset()

    def toggle(self) -> None:
        """Voice button behaviour: stop while listening, ignore while processing, else start."""
        state = self._state
        if state is CaptureState.LISTENING:
            self.stop_listening()
        elif state is CaptureState.PROCESSING:
            logger.debug("Toggle ignored while processing")
        else:
            self.start_listening()

    def get_stats(self) -> CaptureStats:
        with self._lock:
            return CaptureStats(
                state=self._state,
                generation=self._generation,
                chunk_count=len(self._chunks),
                buffered_bytes=sum(len(c) for c in self._chunks),
                silence_timer_pending=self._silence_timer is not None,
                error_message=self.error_message,
            )

    def __enter__(self) -> "CaptureController":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # Recording callbacks

    def _on_data(self, generation: int, chunk: bytes) -> None:
        with self._lock:
            if chunk and generation == self._generation and self._state is CaptureState.LISTENING:
                self._chunks.append(chunk)

    def _on_recorder_error(self, generation: int, error: Exception) -> None:
        with self._lock:
            if (generation != self._generation or self._state is not CaptureState.LISTENING
                    or self._finalizing):
                return
            # Claim the session so a concurrent stop or silence timeout backs off
            self._finalizing = True
        logger.warning(f"Recorder lost the input device: {error}")
        self._fail(generation, MICROPHONE_DISCONNECTED)

    def _poll(self, generation: int) -> None:
        with self._lock:
            if (generation != self._generation or self._state is not CaptureState.LISTENING
                    or self._finalizing or self._analyser is None):
                return

            level = self._analyser.average_level()
            if level < self.silence_threshold:
                if self._silence_timer is None:
                    logger.debug(f"Silence (level {level:.1f}), arming {self.silence_timeout:.1f}s timer")
                    self._silence_timer = self._scheduler.call_later(
                        self.silence_timeout, partial(self._on_silence_timeout, generation)
                    )
            elif self._silence_timer is not None:
                logger.debug(f"Sound resumed (level {level:.1f}), silence timer cancelled")
                self._silence_timer.cancel()
                self._silence_timer = None

            self._poll_handle = self._scheduler.call_later(
                self.frame_interval, partial(self._poll, generation)
            )

    def _on_silence_timeout(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._silence_timer = None
        logger.info(f"{self.silence_timeout:.1f}s of silence, finishing recording")
        self._stop_and_process(generation)

    # Finalization and processing

    def _stop_and_process(self, generation: int) -> None:
        with self._lock:
            if (generation != self._generation or self._state is not CaptureState.LISTENING
                    or self._finalizing):
                return
            self._finalizing = True
            self._cancel_timers()
            recorder, self._recorder = self._recorder, None

        # Outside the lock: the recorder thread delivers its last chunk through _on_data
        self._release((recorder, None, None))

        with self._lock:
            if generation != self._generation:
                return
            resources = self._detach()
            chunks, self._chunks = self._chunks, []
        self._release(resources)

        total_bytes = sum(len(c) for c in chunks)
        if total_bytes == 0:
            self._fail(generation, NoAudioRecorded().message)
            return

        with self._lock:
            if generation != self._generation:
                return
            event = self._transition(CaptureState.PROCESSING)
        self._publish(event)

        clip = encode_wav(chunks, sample_rate=self.sample_rate, channels=self.channels)
        logger.info(f"Recording finished: {len(chunks)} chunks, {total_bytes} bytes")
        self._scheduler.call_later(0.0, partial(self._process_audio, generation, clip))

    def _process_audio(self, generation: int, clip: bytes) -> None:
        with self._lock:
            if generation != self._generation:
                logger.info(f"Session {generation} was reset before upload, dropping clip")
                return
        try:
            result = asyncio.run(self._client.transcribe(clip, self.form_type))
        except CaptureError as e:
            self._fail(generation, e.message)
            return
        except Exception as e:
            logger.exception("Unexpected error while processing audio")
            self._fail(generation, str(e) or "Failed to process audio")
            return

        with self._lock:
            if generation != self._generation or self._state is not CaptureState.PROCESSING:
                logger.info(f"Discarding result for stale session {generation}")
                return
            event = self._transition(CaptureState.IDLE)
        self._publish(event)

        logger.info(f"Transcript received: '{result.transcript}'")
        if self._publisher is not None:
            self._publisher.publish_result(result)
        if self.on_result is not None:
            self.on_result(result)

    def _fail(self, generation: int, message: str) -> None:
        with self._lock:
            if generation != self._generation:
                return
            resources = self._detach()
            self._chunks = []
            self.error_message = message
            event = self._transition(CaptureState.ERROR)
        self._release(resources)
        self._publish(event)

        logger.error(f"Voice input failed: {message}")
        if self.on_error is not None:
            self.on_error(message)

    # Resource handling

    def _transition(self, new_state: CaptureState) -> CaptureStateEvent:
        """Must be called with the lock held."""
        previous, self._state = self._state, new_state
        return CaptureStateEvent(
            previous=previous,
            current=new_state,
            generation=self._generation,
            error_message=self.error_message,
        )

    def _publish(self, event: CaptureStateEvent) -> None:
        if self._publisher is not None:
            self._publisher.publish_state(event)

    def _cancel_timers(self) -> None:
        if self._poll_handle is not None:
            self._poll_handle.cancel()
            self._poll_handle = None
        if self._silence_timer is not None:
            self._silence_timer.cancel()
            self._silence_timer = None

    def _detach(self) -> Tuple[Any, Any, Any]:
        """Take ownership of the session resources. Must be called with the lock held."""
        self._cancel_timers()
        resources = (self._recorder, self._stream, self._analyser)
        self._recorder = self._stream = self._analyser = None
        return resources

    def _teardown(self) -> None:
        with self._lock:
            resources = self._detach()
        self._release(resources)

    @staticmethod
    def _release(resources: Tuple[Any, Any, Any]) -> None:
        """Stop the recorder, close the stream and the analyser.

        Each step runs even if an earlier one fails, and failures are logged
        rather than raised so teardown works from any state.
        """
        recorder, stream, analyser = resources
        steps = []
        if recorder is not None:
            steps.append(("recorder", recorder.stop))
        if stream is not None:
            steps.append(("microphone", stream.close))
        if analyser is not None:
            steps.append(("analyser", analyser.close))

        for name, release in steps:
            try:
                release()
            except Exception as e:
                logger.warning(f"Error releasing {name}: {e}")
