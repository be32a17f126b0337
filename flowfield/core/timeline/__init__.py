"""Emotion script loading.

- parse_timeline / load_timeline for the JSON script format.
- DEFAULT_TIMELINE, the built-in firefly script used as fallback.
- TimelineLoader for background loading with hot swap.
"""

from .default_timeline import (
    DEFAULT_COLOR, DEFAULT_COLOR_HEX, DEFAULT_FIREFLY_SCRIPT, DEFAULT_INTENSITY, DEFAULT_TIMELINE
)
from .timeline_loader import TimelineLoader, load_timeline, parse_timeline
