"""Pytest configuration and fixtures for finvoice tests."""

import pytest
import logging
from typing import Any, Callable, List, Optional

import numpy as np

from finvoice.config import FinVoiceConfig
from finvoice.exceptions import PermissionDenied
from finvoice.models.transcription import FormType, TranscriptionResponse


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    for marker in ("unit", "integration", "slow", "hardware"):
        config.addinivalue_line("markers", f"{marker}: {marker} tests")


@pytest.fixture(autouse=True)
def clear_api_keys(monkeypatch):
    """Keep real credentials from the environment out of every test."""
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


@pytest.fixture
def config():
    """Default configuration with both API keys set."""
    cfg = FinVoiceConfig()
    cfg.set('groq.api_key', 'test-groq-key')
    cfg.set('gemini.api_key', 'test-gemini-key')
    return cfg


@pytest.fixture
def sample_audio_chunk():
    """100 ms of 16-bit 440 Hz sine at 16 kHz."""
    sample_rate = 16000
    samples = 1600
    t = np.arange(samples) / sample_rate
    wave_data = 0.5 * np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000):
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.arange(samples) / sample_rate
            wave_data = 0.5 * np.sin(2 * np.pi * 1000 * t)
        elif pattern == "noise":
            wave_data = np.random.default_rng(0).uniform(-1, 1, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        return (wave_data * 32767).astype(np.int16).tobytes()

    return generate_audio


# Deterministic time for the capture controller

class ManualHandle:
    def __init__(self, due: float, seq: int, callback: Callable[[], None]):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose clock only moves when a test calls ``advance``."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._handles: List[ManualHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualHandle:
        self._seq += 1
        handle = ManualHandle(self.now + max(delay, 0.0), self._seq, callback)
        self._handles.append(handle)
        return handle

    def pending(self) -> List[ManualHandle]:
        return [h for h in self._handles if not h.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.due <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self._handles.remove(handle)
            self.now = max(self.now, handle.due)
            handle.callback()
        self.now = target

    def run_pending(self) -> None:
        self.advance(0.0)


class FakeMicrophone:
    sample_rate = 16000
    channels = 1
    sample_width = 2

    def __init__(self, error: Optional[Exception] = None, close_error: Optional[Exception] = None):
        self.error = error
        self.close_error = close_error
        self.open_calls = 0
        self.close_calls = 0
        self.is_open = False

    def open(self) -> None:
        self.open_calls += 1
        if self.error is not None:
            raise self.error
        self.is_open = True

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False
        if self.close_error is not None:
            raise self.close_error


class FakeAnalyser:
    def __init__(self):
        self.level = 0.0
        self.close_calls = 0

    def average_level(self) -> float:
        return self.level

    def close(self) -> None:
        self.close_calls += 1


class FakeRecorder:
    def __init__(self, stream, on_data, analyser, timeslice_ms, on_error=None):
        self.stream = stream
        self.on_data = on_data
        self.on_error = on_error
        self.analyser = analyser
        self.timeslice_ms = timeslice_ms
        self.started = False
        self.stop_calls = 0
        self.final_chunk = b""

    def start(self) -> None:
        self.started = True

    def emit(self, chunk: bytes) -> None:
        self.on_data(chunk)

    def fail(self, error: Exception) -> None:
        """Report a read failure the way the recording thread does."""
        self.on_error(error)

    def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_calls == 1 and self.final_chunk:
            self.on_data(self.final_chunk)


class FakeTranscriptionClient:
    def __init__(self, response: Optional[TranscriptionResponse] = None, error: Optional[Exception] = None):
        self.response = response or TranscriptionResponse(
            transcript="beli kopi dua puluh ribu",
            structured={"amount": 20000, "category": "🍔 Food & Beverages"},
        )
        self.error = error
        self.calls: List[Any] = []

    async def transcribe(self, audio: bytes, form_type: FormType) -> TranscriptionResponse:
        self.calls.append((audio, form_type))
        if self.error is not None:
            raise self.error
        return self.response


class CaptureRig:
    """Controller wired to fakes, plus handles to inspect them."""

    def __init__(self, **controller_kwargs):
        from finvoice.capture.controller import CaptureController

        self.scheduler = ManualScheduler()
        self.client = controller_kwargs.pop("client", None) or FakeTranscriptionClient()
        self.microphone_error = controller_kwargs.pop("microphone_error", None)
        self.microphone_close_error = controller_kwargs.pop("microphone_close_error", None)
        self.microphones: List[FakeMicrophone] = []
        self.analysers: List[FakeAnalyser] = []
        self.recorders: List[FakeRecorder] = []
        self.results: List[TranscriptionResponse] = []
        self.errors: List[str] = []

        self.controller = CaptureController(
            self.client,
            on_result=self.results.append,
            on_error=self.errors.append,
            microphone_factory=self._make_microphone,
            analyser_factory=self._make_analyser,
            recorder_factory=self._make_recorder,
            scheduler=self.scheduler,
            **controller_kwargs,
        )

    def _make_microphone(self) -> FakeMicrophone:
        microphone = FakeMicrophone(self.microphone_error, self.microphone_close_error)
        self.microphones.append(microphone)
        return microphone

    def _make_analyser(self) -> FakeAnalyser:
        analyser = FakeAnalyser()
        self.analysers.append(analyser)
        return analyser

    def _make_recorder(self, stream, on_data, analyser, timeslice_ms, on_error=None) -> FakeRecorder:
        recorder = FakeRecorder(stream, on_data, analyser, timeslice_ms, on_error)
        self.recorders.append(recorder)
        return recorder

    @property
    def microphone(self) -> FakeMicrophone:
        return self.microphones[-1]

    @property
    def analyser(self) -> FakeAnalyser:
        return self.analysers[-1]

    @property
    def recorder(self) -> FakeRecorder:
        return self.recorders[-1]

    def set_level(self, level: float) -> None:
        self.analyser.level = level

    def any_microphone_open(self) -> bool:
        return any(m.is_open for m in self.microphones)


@pytest.fixture
def make_rig():
    """Factory for capture rigs with custom controller arguments."""
    rigs = []

    def _make(**kwargs) -> CaptureRig:
        rig = CaptureRig(**kwargs)
        rigs.append(rig)
        return rig

    yield _make
    for rig in rigs:
        rig.controller.close()


@pytest.fixture
def rig(make_rig) -> CaptureRig:
    return make_rig()


@pytest.fixture
def denied_microphone_error():
    return PermissionDenied("Permission denied by user")
