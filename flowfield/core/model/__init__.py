from .emotion_timeline import RGB, KeyPoint, Timeline
from .parameter_frame import ParameterFrame
from .scene_type import SceneType
