# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

from enum import Enum


class SceneType(Enum):
    FIREFLY = "firefly"

    @property
    def display_name(self) -> str:
        return {
            SceneType.FIREFLY: "Firefly Dream",
        }[self]

    @property
    def emotion_script_name(self) -> str:
        return f"{self.value}_emotion_script"

    @property
    def background_music_name(self) -> str:
        return f"{self.value}_music"

    @classmethod
    def from_name(cls, name: str) -> "SceneType":
        """Resolve a scene by its value ("firefly") or member name ("FIREFLY")."""
        try:
            return cls(name)
        except ValueError:
            return cls[name.upper()]
