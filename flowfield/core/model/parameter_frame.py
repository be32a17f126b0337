# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

from dataclasses import dataclass

from .emotion_timeline import RGB


@dataclass(frozen=True)
class ParameterFrame:
    intensity: float             # timeline emotion intensity, 0..1
    color: RGB                   # timeline color, normalized channels
    audio_power: float           # music loudness, 0..1
    brightness: float            # user brightness, 0..1
    is_night: bool
    particle_density_hint: int   # renderer maps this to actual particle counts
    timestamp: float             # engine clock value the frame was computed for
    scene_name: str = ""
    timeline_generation: int = 0
