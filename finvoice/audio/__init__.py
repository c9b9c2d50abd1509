"""Audio capture and analysis module."""

from .microphone import MicrophoneStream
from .analyser import FrequencyAnalyser
from .recorder import ChunkRecorder
from .clip import encode_wav

__all__ = [
    'MicrophoneStream',
    'FrequencyAnalyser',
    'ChunkRecorder',
    'encode_wav',
]
