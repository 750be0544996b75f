"""
Overtime Runner audio engine - short chiptune cues.

Every SoundEvent maps to a few oscillator tones that are mixed into one
buffer at init and played through pygame.mixer.
"""

import pygame
import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from overtime.game.sounds import SoundEvent

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100


def square(t: NDArray[np.float64], freq: float) -> NDArray[np.float64]:
    """Square wave oscillator."""
    return np.where((t * freq) % 1 < 0.5, 1.0, -1.0)


def triangle(t: NDArray[np.float64], freq: float) -> NDArray[np.float64]:
    """Triangle wave oscillator."""
    p = (t * freq) % 1
    return 4 * np.abs(p - 0.5) - 1


def sine(t: NDArray[np.float64], freq: float) -> NDArray[np.float64]:
    """Sine wave oscillator."""
    return np.sin(2 * np.pi * freq * t)


def saw(t: NDArray[np.float64], freq: float) -> NDArray[np.float64]:
    """Sawtooth wave."""
    return 2 * ((t * freq) % 1) - 1


OSCILLATORS = {
    "square": square,
    "triangle": triangle,
    "sine": sine,
    "sawtooth": saw,
}


@dataclass(frozen=True)
class Tone:
    frequency: float
    duration: float  # seconds
    wave: str = "sine"
    volume: float = 0.3
    offset: float = 0.0  # seconds after cue start


CUES: dict[SoundEvent, tuple[Tone, ...]] = {
    SoundEvent.JUMP: (Tone(400, 0.1, "square", 0.2),),
    SoundEvent.COLLECT: (
        Tone(800, 0.1, "sine", 0.25),
        Tone(1000, 0.1, "sine", 0.25, 0.05),
    ),
    SoundEvent.COFFEE: (Tone(600, 0.15, "triangle", 0.25),),
    SoundEvent.LAPTOP: (
        Tone(1200, 0.2, "sawtooth", 0.2),
        Tone(1400, 0.15, "sawtooth", 0.2, 0.1),
    ),
    SoundEvent.JASMINE: (
        Tone(1000, 0.15, "sine", 0.3),
        Tone(1200, 0.15, "sine", 0.3, 0.1),
        Tone(1400, 0.2, "sine", 0.3, 0.2),
    ),
    SoundEvent.CRASH: (Tone(100, 0.3, "sawtooth", 0.3),),
    # C5 E5 G5 fanfare
    SoundEvent.VICTORY: (
        Tone(523, 0.2, "sine", 0.25),
        Tone(659, 0.2, "sine", 0.25, 0.2),
        Tone(784, 0.3, "sine", 0.25, 0.4),
    ),
    SoundEvent.OVERTIME: (
        Tone(300, 0.2, "square", 0.3),
        Tone(250, 0.2, "square", 0.3, 0.2),
        Tone(200, 0.3, "square", 0.3, 0.4),
    ),
}


def render_cue(tones: tuple[Tone, ...], sample_rate: int = SAMPLE_RATE) -> NDArray[np.int16]:
    """Mix a cue's tones into mono 16-bit samples."""
    length = max(tone.offset + tone.duration for tone in tones)
    mix = np.zeros(int(length * sample_rate) + 1, dtype=np.float64)

    for tone in tones:
        start = int(tone.offset * sample_rate)
        n = int(tone.duration * sample_rate)
        t = np.arange(n) / sample_rate
        mix[start:start + n] += OSCILLATORS[tone.wave](t, tone.frequency) * tone.volume

    return (np.clip(mix, -1.0, 1.0) * 32767).astype(np.int16)


class AudioEngine:
    """Plays the cue for each SoundEvent. Silently does nothing until ``init``."""

    def __init__(self) -> None:
        self._initialized = False
        self._sounds: dict[SoundEvent, pygame.mixer.Sound] = {}
        self._volume_master = 1.0
        self._muted = False

    @property
    def muted(self) -> bool:
        return self._muted

    def init(self) -> bool:
        """Initialize the audio system."""
        try:
            pygame.mixer.pre_init(SAMPLE_RATE, -16, 2, 4096)
            pygame.mixer.init()
            pygame.mixer.set_num_channels(16)
            self._initialized = True
            logger.info("Audio engine initialized")
            self._generate_all_sounds()
            return True
        except pygame.error as e:
            logger.error(f"Failed to initialize audio: {e}")
            return False

    def _create_sound(self, samples: NDArray[np.int16]) -> pygame.mixer.Sound:
        """Create a pygame Sound from mono samples (duplicated to stereo)."""
        stereo = np.repeat(samples, 2)
        return pygame.mixer.Sound(buffer=stereo.tobytes())

    def _generate_all_sounds(self) -> None:
        for sound, tones in CUES.items():
            self._sounds[sound] = self._create_sound(render_cue(tones))
        logger.info(f"Generated {len(self._sounds)} sounds")

    def play(self, sound: SoundEvent, volume: float = 1.0) -> pygame.mixer.Channel | None:
        """Play a sound effect."""
        if not self._initialized or self._muted:
            return None

        cue = self._sounds.get(sound)
        if cue is None:
            logger.warning(f"Sound not found: {sound}")
            return None

        cue.set_volume(volume * self._volume_master)
        return cue.play()

    def set_muted(self, muted: bool) -> None:
        self._muted = muted

    def cleanup(self) -> None:
        """Cleanup audio resources."""
        if self._initialized:
            pygame.mixer.quit()
            self._initialized = False
            logger.info("Audio engine cleaned up")


# Global audio engine instance
_audio_engine: AudioEngine | None = None


def get_audio_engine() -> AudioEngine:
    """Get the global audio engine instance."""
    global _audio_engine
    if _audio_engine is None:
        _audio_engine = AudioEngine()
    return _audio_engine
