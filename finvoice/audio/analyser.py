"""Frequency-domain level analysis for silence detection.

Mirrors what a Web Audio ``AnalyserNode`` reports through
``getByteFrequencyData``: the most recent ``fft_size`` samples are windowed
(Blackman), transformed, smoothed over time, converted to decibels and mapped
from ``[min_decibels, max_decibels]`` onto ``0..255``.
"""

import logging
import threading

import numpy as np
from scipy.signal import get_window

logger = logging.getLogger(__name__)


class FrequencyAnalyser:
    """Level meter fed with raw 16-bit PCM."""

    def __init__(self, fft_size: int = 256, smoothing: float = 0.8,
                 min_decibels: float = -100.0, max_decibels: float = -30.0):
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {fft_size}")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError(f"smoothing must be in [0, 1), got {smoothing}")

        self.fft_size = fft_size
        self.frequency_bin_count = fft_size // 2
        self.smoothing = smoothing
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self._window = get_window("blackman", fft_size, fftbins=False)
        self._samples = np.zeros(fft_size, dtype=np.float64)
        self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)
        self._lock = threading.Lock()
        self.closed = False

    def feed(self, pcm: bytes) -> None:
        """Push new audio; only the last ``fft_size`` samples are kept."""
        if not pcm or self.closed:
            return
        samples = np.frombuffer(pcm[:len(pcm) - len(pcm) % 2], dtype=np.int16).astype(np.float64) / 32768.0
        with self._lock:
            if len(samples) >= self.fft_size:
                self._samples = samples[-self.fft_size:].copy()
            else:
                self._samples = np.concatenate((self._samples[len(samples):], samples))

    def get_byte_frequency_data(self) -> np.ndarray:
        """Current spectrum as ``frequency_bin_count`` bytes."""
        with self._lock:
            spectrum = np.abs(np.fft.rfft(self._samples * self._window))[:self.frequency_bin_count]
            spectrum /= self.fft_size
            self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * spectrum
            smoothed = self._smoothed.copy()

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = (decibels - self.min_decibels) * scale
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)

    def average_level(self) -> float:
        """Mean of the byte frequency data (0..255)."""
        return float(np.mean(self.get_byte_frequency_data()))

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        with self._lock:
            self._samples[:] = 0.0
            self._smoothed[:] = 0.0
        logger.debug("Frequency analyser closed")
