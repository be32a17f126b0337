"""Flowfield package root.

Exports the high-level objects external users need; the core package is
imported first so the audio and remote subpackages always find it initialised.
"""

from .core import (
    DEFAULT_TIMELINE, RGB, KeyPoint, ParameterFrame, SceneEngine, SceneType, Timeline, TimelinePlayer, load_timeline
)
from .audio import AudioTransport, TransportState
from .remote import RemoteControlChannel

__version__ = "0.1.0"
