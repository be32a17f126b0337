"""Core components for the Flowfield engine.

This package contains the emotion timeline model and loader, the timeline player,
and the SceneEngine that fuses timeline, audio power and user settings into one
ParameterFrame per tick.
"""

from .errors import AssetNotFoundError, AudioDecodeError, FlowfieldError, MessageDecodeError, TimelineParseError
from .model import RGB, KeyPoint, ParameterFrame, SceneType, Timeline
from .timeline import DEFAULT_TIMELINE, TimelineLoader, load_timeline, parse_timeline
from .runtime import DisplayLink, LoggingRenderer, SceneEngine, TimelinePlayer
