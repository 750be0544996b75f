"""
Overtime Runner audio - chiptune sound cues.
"""

from .engine import AudioEngine, get_audio_engine

__all__ = ["AudioEngine", "get_audio_engine"]
