from .display_link import DisplayLink
from .engine import SceneEngine, is_night_now
from .renderer import LoggingRenderer
from .timeline_player import TimelinePlayer
