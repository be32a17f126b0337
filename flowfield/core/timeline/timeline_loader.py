# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import json
import logging
import threading
from typing import Callable, Optional, Union

from ..errors import TimelineParseError
from ..model.emotion_timeline import KeyPoint, Timeline
from .default_timeline import DEFAULT_TIMELINE

logger = logging.getLogger(__name__)

# Field names per script dialect: (key points list, offset, intensity, color)
_CAMEL_FIELDS = ("keyPoints", "timeOffset", "emotionIntensity", "targetColorHex")
_SNAKE_FIELDS = ("key_points", "timestamp", "emotion_intensity", "target_color_hex")


def _number(value, what: str) -> float:
    # bool is an int subclass; true/false is not a number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TimelineParseError(f"{what} must be a number, got {value!r}")
    return float(value)


def parse_timeline(data: Union[bytes, str], name: str = "") -> Timeline:
    """
    Parses an emotion script into a Timeline.

    Accepts the camelCase shape ({duration, keyPoints: [{timeOffset, emotionIntensity,
    targetColorHex}]}) as well as the older snake_case shape ({duration, key_points:
    [{timestamp, emotion_intensity, target_color_hex}]}).

    Raises:
        TimelineParseError: if the data is not a valid script.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise TimelineParseError(f"Script is not valid UTF-8: {e}") from e

    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise TimelineParseError(f"Script is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise TimelineParseError("Script root must be a JSON object")

    fields = _CAMEL_FIELDS if _CAMEL_FIELDS[0] in raw else _SNAKE_FIELDS
    list_key, offset_key, intensity_key, color_key = fields

    duration = _number(raw.get("duration"), "duration")
    if duration <= 0:
        raise TimelineParseError(f"duration must be positive, got {duration}")

    raw_points = raw.get(list_key)
    if not isinstance(raw_points, list):
        raise TimelineParseError(f"'{list_key}' must be a list")

    key_points = []
    for index, point in enumerate(raw_points):
        if not isinstance(point, dict):
            raise TimelineParseError(f"key point #{index} must be an object")

        offset = _number(point.get(offset_key), f"key point #{index} {offset_key}")
        if offset < 0:
            raise TimelineParseError(f"key point #{index} has negative offset {offset}")

        intensity = _number(point.get(intensity_key), f"key point #{index} {intensity_key}")
        if not 0.0 <= intensity <= 1.0:
            logger.warning(f"Key point #{index} intensity {intensity} outside [0, 1], clamping")
            intensity = max(0.0, min(1.0, intensity))

        try:
            key_points.append(KeyPoint(offset, intensity, point.get(color_key)))
        except ValueError as e:
            raise TimelineParseError(f"key point #{index}: {e}") from e

    script_name = raw.get("name")
    description = raw.get("description")
    return Timeline(
        duration=duration,
        key_points=tuple(key_points),
        name=script_name if isinstance(script_name, str) else name,
        description=description if isinstance(description, str) else "",
    )


def load_timeline(data: Optional[Union[bytes, str]], name: str = "") -> Timeline:
    """
    Parses a script, falling back to the default timeline when the data is missing or malformed.
    Never raises for data problems.
    """
    if data is None:
        logger.warning(f"Emotion script '{name}' not found, using default timeline")
        return DEFAULT_TIMELINE
    try:
        return parse_timeline(data, name)
    except TimelineParseError as e:
        logger.warning(f"Failed to parse emotion script '{name}': {e}. Using default timeline")
        return DEFAULT_TIMELINE


def _spawn_thread(target: Callable, *args):
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


class TimelineLoader:
    """
    Installs the default timeline immediately and hot-swaps a better one when a background load finishes.

    Every request bumps a generation token. A background result is installed only if its
    token still matches the latest request, so a slow load for a scene the user has
    already left is discarded instead of overwriting the active scene.
    """

    def __init__(self, asset_provider, install: Callable[[Timeline, int], None],
                 dispatch: Optional[Callable] = None,
                 run_in_background: Optional[Callable] = None):
        """
        Args:
            asset_provider: Collaborator with get(name) -> bytes | None.
            install: Called on the owning context with (timeline, generation).
            dispatch: Marshals a call onto the owning context. Defaults to calling directly.
            run_in_background: Runs target(*args) off the owning context. Defaults to a daemon thread.
        """
        self.asset_provider = asset_provider
        self.install = install
        self.dispatch = dispatch or (lambda fn, *args: fn(*args))
        self.run_in_background = run_in_background or _spawn_thread
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def request(self, script_name: str) -> int:
        """Installs the default timeline now and starts loading `script_name`. Returns the new generation."""
        with self._lock:
            self._generation += 1
            generation = self._generation

        self.install(DEFAULT_TIMELINE, generation)
        self.run_in_background(self._load_in_background, script_name, generation)
        return generation

    def cancel(self):
        """Invalidates any in-flight load without installing anything."""
        with self._lock:
            self._generation += 1

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _load_in_background(self, script_name: str, generation: int):
        if not self._is_current(generation):
            return
        try:
            data = self.asset_provider.get(script_name)
        except Exception as e:
            logger.warning(f"Asset provider failed for '{script_name}': {e}. Keeping default timeline")
            return

        if data is None:
            logger.info(f"No script asset '{script_name}', keeping default timeline")
            return

        try:
            timeline = parse_timeline(data, script_name)
        except TimelineParseError as e:
            logger.warning(f"Failed to parse emotion script '{script_name}': {e}. Keeping default timeline")
            return

        self.dispatch(self._deliver, timeline, generation)

    def _deliver(self, timeline: Timeline, generation: int):
        if not self._is_current(generation):
            logger.debug(f"Discarding stale timeline '{timeline.name}' (generation {generation} != {self._generation})")
            return
        logger.info(f"Emotion script '{timeline.name}' loaded ({len(timeline.key_points)} key points, {timeline.duration:.0f}s)")
        self.install(timeline, generation)
