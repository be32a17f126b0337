# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

from bisect import bisect_left, bisect_right
from typing import NamedTuple, Optional, Tuple

from ..model.emotion_timeline import RGB, KeyPoint, Timeline
from ..timeline.default_timeline import DEFAULT_COLOR, DEFAULT_INTENSITY, DEFAULT_TIMELINE


class _LoadedTimeline(NamedTuple):
    timeline: Timeline
    points: Tuple[KeyPoint, ...]   # sorted by time_offset
    offsets: Tuple[float, ...]


def _prepare(timeline: Timeline) -> _LoadedTimeline:
    points = timeline.sorted_key_points()
    return _LoadedTimeline(timeline, points, tuple(kp.time_offset for kp in points))


class TimelinePlayer:
    """
    Looping playback clock over an emotion Timeline.

    All queries are pure functions of (timeline, start instant, timestamp). The
    timeline and its sorted keypoints live in one immutable record that is
    swapped with a single assignment, so a concurrent reader sees either the old
    timeline or the new one in full.
    """

    def __init__(self, timeline: Timeline = DEFAULT_TIMELINE):
        self._loaded = _prepare(timeline)
        self.start_instant: Optional[float] = None
        self._stopped_elapsed = 0.0
        self._last_elapsed = 0.0   # position seen by the latest query while running

    @property
    def timeline(self) -> Timeline:
        return self._loaded.timeline

    @property
    def is_running(self) -> bool:
        return self.start_instant is not None

    def set_timeline(self, timeline: Timeline):
        """Replaces the timeline. Does not touch the clock."""
        self._loaded = _prepare(timeline)

    # ----- clock -----

    def start(self, now: float):
        self.start_instant = now
        self._stopped_elapsed = 0.0
        self._last_elapsed = 0.0

    def stop(self, now: Optional[float] = None):
        """
        Stops the clock. Later queries return the value at the position where it stopped:
        `now` when given, otherwise the position of the most recent query.
        """
        if self.start_instant is not None:
            if now is not None:
                self._stopped_elapsed = self._wrap(now - self.start_instant)
            else:
                self._stopped_elapsed = self._last_elapsed
        self.start_instant = None

    def reset(self, now: float):
        self.stop()
        self.start(now)

    def resume(self, now: float):
        """Restarts the clock from the position frozen by stop()."""
        if self.start_instant is None:
            self.start_instant = now - self._stopped_elapsed

    def _wrap(self, seconds: float) -> float:
        # Python's float modulo is non-negative for a positive divisor
        return seconds % self._loaded.timeline.duration

    def elapsed_at(self, timestamp: float) -> float:
        if self.start_instant is None:
            return self._wrap(self._stopped_elapsed)
        elapsed = self._wrap(timestamp - self.start_instant)
        self._last_elapsed = elapsed
        return elapsed

    # ----- sampling -----

    def intensity_at(self, timestamp: float) -> float:
        return self.sample_at(timestamp)[0]

    def color_at(self, timestamp: float) -> RGB:
        return self.sample_at(timestamp)[1]

    def sample_at(self, timestamp: float) -> Tuple[float, RGB]:
        """Returns (intensity, color) interpolated at `timestamp`, both from the same timeline."""
        loaded = self._loaded
        duration = loaded.timeline.duration
        if self.start_instant is None:
            elapsed = self._stopped_elapsed % duration
        else:
            elapsed = (timestamp - self.start_instant) % duration
            self._last_elapsed = elapsed

        points = loaded.points
        if not points:
            return DEFAULT_INTENSITY, DEFAULT_COLOR
        if len(points) == 1:
            return points[0].emotion_intensity, points[0].color

        prev, prev_t, nxt, next_t = self._bracket(loaded, elapsed, duration)

        interval = next_t - prev_t
        if interval <= 0:
            return prev.emotion_intensity, prev.color

        progress = max(0.0, min(1.0, (elapsed - prev_t) / interval))
        intensity = prev.emotion_intensity + progress * (nxt.emotion_intensity - prev.emotion_intensity)
        return intensity, prev.color.lerp(nxt.color, progress)

    @staticmethod
    def _bracket(loaded: _LoadedTimeline, elapsed: float, duration: float):
        points, offsets = loaded.points, loaded.offsets
        last = len(points) - 1

        index = bisect_right(offsets, elapsed) - 1
        if index < 0:
            # Before the first keypoint: come in from the last one of the previous cycle
            return points[last], offsets[last] - duration, points[0], offsets[0]

        if offsets[index] == elapsed:
            # Several keypoints on this exact instant: the earliest listed wins
            index = bisect_left(offsets, elapsed)

        if index == last:
            return points[last], offsets[last], points[0], offsets[0] + duration
        return points[index], offsets[index], points[index + 1], offsets[index + 1]
