# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import io
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pygame
import soundfile as sf

from ..core.errors import AudioDecodeError
from .power import loudness_envelope

# Configure module-level logger
logger = logging.getLogger(__name__)


@dataclass
class PreparedTrack:
    name: str
    data: bytes                        # raw encoded bytes, handed to the output device
    duration: float                    # seconds
    envelope: Optional[np.ndarray] = None  # normalized loudness per window, None if unavailable


def decode_track(name: str, data: bytes) -> PreparedTrack:
    """
    Decodes audio bytes with soundfile to learn the duration and loudness envelope.

    Raises:
        AudioDecodeError: if the bytes are not a format soundfile can read.
    """
    try:
        samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=False)
    except (RuntimeError, TypeError, ValueError) as e:
        raise AudioDecodeError(f"Could not decode audio '{name}': {e}") from e

    if sample_rate <= 0 or len(samples) == 0:
        raise AudioDecodeError(f"Audio '{name}' contains no samples")

    duration = len(samples) / float(sample_rate)
    return PreparedTrack(name, data, duration, loudness_envelope(samples, sample_rate))


# --- Helper Functions ---

def init_pygame_mixer() -> bool:
    if not pygame.mixer.get_init():
        try:
            pygame.mixer.init()
        except pygame.error as e:
            logger.error(f"Failed to initialize Pygame mixer: {e}")
            return False
    return True


class PygameMixerBackend:
    """Local playback through pygame.mixer.music, looping forever until stopped."""

    def prepare(self, name: str, data: bytes) -> PreparedTrack:
        return decode_track(name, data)

    def start(self, track: PreparedTrack, volume: float, offset: float = 0.0):
        if not init_pygame_mixer():
            raise AudioDecodeError("Pygame mixer is not available")
        try:
            pygame.mixer.music.load(io.BytesIO(track.data))
            pygame.mixer.music.set_volume(volume)
            if offset > 0:
                pygame.mixer.music.play(loops=-1, start=offset)
            else:
                pygame.mixer.music.play(loops=-1)
        except pygame.error as e:
            raise AudioDecodeError(f"Pygame failed to play '{track.name}': {e}") from e
        logger.info(f"[Audio] Playing {track.name} via Pygame ({track.duration:.1f}s, looping)")

    def pause(self):
        if pygame.mixer.get_init():
            pygame.mixer.music.pause()

    def unpause(self):
        if pygame.mixer.get_init():
            pygame.mixer.music.unpause()

    def stop(self):
        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
            pygame.mixer.music.unload()

    def seek(self, track: PreparedTrack, volume: float, offset: float):
        # music.set_pos is format dependent; restart at the offset instead
        self.start(track, volume, offset)

    def set_volume(self, volume: float):
        if pygame.mixer.get_init():
            pygame.mixer.music.set_volume(volume)


class NullAudioBackend:
    """Silent backend for headless hosts (AUDIO_MODE=null). Still decodes so duration and envelope are real."""

    def prepare(self, name: str, data: bytes) -> PreparedTrack:
        return decode_track(name, data)

    def start(self, track: PreparedTrack, volume: float, offset: float = 0.0):
        logger.info(f"[Audio] AUDIO_MODE=null, not playing {track.name} ({track.duration:.1f}s)")

    def pause(self):
        pass

    def unpause(self):
        pass

    def stop(self):
        pass

    def seek(self, track: PreparedTrack, volume: float, offset: float):
        pass

    def set_volume(self, volume: float):
        pass


def create_backend(mode: str):
    """Returns the output backend for an AUDIO_MODE value."""
    if mode == "null":
        return NullAudioBackend()
    if mode != "pygame":
        logger.warning(f"Unknown AUDIO_MODE '{mode}', using pygame")
    return PygameMixerBackend()
