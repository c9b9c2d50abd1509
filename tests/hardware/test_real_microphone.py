"""Real hardware tests for microphone capture.

These tests require an actual input device and verify that the capture
primitives work against it.

Run with: pytest tests/hardware/ -v -s -m hardware
"""

import io
import time
import wave

import pytest

from finvoice.audio import ChunkRecorder, FrequencyAnalyser, MicrophoneStream, encode_wav

pytest.importorskip("pyaudio")


@pytest.mark.hardware
class TestRealMicrophone:
    """Tests that require real audio hardware to run."""

    def test_record_two_seconds(self):
        """Test two seconds from the default microphone become a valid WAV clip."""
        print("\nHARDWARE TEST: recording 2 seconds from the default microphone...")

        microphone = MicrophoneStream(sample_rate=16000, channels=1)
        analyser = FrequencyAnalyser()
        chunks = []

        microphone.open()
        recorder = ChunkRecorder(microphone, chunks.append, analyser=analyser, timeslice_ms=100)
        try:
            recorder.start()
            levels = []
            start_time = time.time()
            while time.time() - start_time < 2.0:
                levels.append(analyser.average_level())
                time.sleep(1 / 60)
        finally:
            recorder.stop()
            microphone.close()
            analyser.close()

        print(f"Captured {len(chunks)} chunks, peak level {max(levels):.1f}")
        assert 15 <= len(chunks) <= 25

        clip = encode_wav(chunks, sample_rate=16000, channels=1)
        with wave.open(io.BytesIO(clip), 'rb') as wf:
            duration = wf.getnframes() / wf.getframerate()
        assert 1.5 <= duration <= 2.5
