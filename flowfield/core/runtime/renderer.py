# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import logging

from ..model.parameter_frame import ParameterFrame

logger = logging.getLogger(__name__)


class LoggingRenderer:
    """Reference rendering collaborator: logs a summary of every `every`-th frame."""

    def __init__(self, every: int = 60):
        self.every = max(1, every)
        self.frames = 0
        self.scene = None

    def scene_did_load(self, name: str):
        self.scene = name
        logger.info(f"[Render] Scene loaded: {name}")

    def scene_did_unload(self, name: str):
        logger.info(f"[Render] Scene unloaded: {name}")
        self.scene = None

    def on_frame(self, frame: ParameterFrame):
        self.frames += 1
        if self.frames % self.every:
            return
        logger.info(
            f"[Render] {frame.scene_name or '-'} intensity={frame.intensity:.2f} color={frame.color.to_hex()} "
            f"power={frame.audio_power:.2f} brightness={frame.brightness:.2f} "
            f"night={frame.is_night} particles={frame.particle_density_hint}"
        )
