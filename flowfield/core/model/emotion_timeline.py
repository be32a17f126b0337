# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import re
from dataclasses import dataclass, field
from typing import NamedTuple, Tuple

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


class RGB(NamedTuple):
    """Color as three normalized float channels."""
    r: float
    g: float
    b: float

    @classmethod
    def from_hex(cls, hex_string: str) -> "RGB":
        """Parse "#RRGGBB". Raises ValueError without the '#' prefix or on non-hex content."""
        if not isinstance(hex_string, str) or not _HEX_COLOR.match(hex_string):
            raise ValueError(f"Invalid color hex: {hex_string!r}")
        value = int(hex_string[1:], 16)
        return cls(
            ((value >> 16) & 0xFF) / 255.0,
            ((value >> 8) & 0xFF) / 255.0,
            (value & 0xFF) / 255.0,
        )

    def to_hex(self) -> str:
        channels = (max(0, min(255, int(round(c * 255)))) for c in self)
        return "#{:02X}{:02X}{:02X}".format(*channels)

    def lerp(self, other: "RGB", progress: float) -> "RGB":
        return RGB(*(a + progress * (b - a) for a, b in zip(self, other)))


@dataclass(frozen=True)
class KeyPoint:
    time_offset: float       # seconds from the start of the loop
    emotion_intensity: float  # 0..1
    color_hex: str           # "#RRGGBB"
    color: RGB = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "color", RGB.from_hex(self.color_hex))


@dataclass(frozen=True)
class Timeline:
    duration: float                  # loop length in seconds, > 0
    key_points: Tuple[KeyPoint, ...]  # file order; the player sorts by time_offset
    name: str = ""
    description: str = ""

    def __post_init__(self):
        if not self.duration > 0:
            raise ValueError(f"Timeline duration must be positive, got {self.duration}")
        object.__setattr__(self, "key_points", tuple(self.key_points))

    def sorted_key_points(self) -> Tuple[KeyPoint, ...]:
        # sorted() is stable, so keypoints sharing an offset keep file order
        return tuple(sorted(self.key_points, key=lambda kp: kp.time_offset))
