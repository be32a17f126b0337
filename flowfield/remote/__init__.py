"""Remote control link to the companion device.

- RemoteMessage union and its JSON wire codec.
- RemoteControlChannel with reachability-aware delivery.
- UDP and in-process loopback transports.
"""

from .channel import DeliveryResult, RemoteControlChannel
from .messages import (
    NightModeToggle, PlayPause, RemoteMessage, SceneChange, VolumeChange, decode_message, encode_message
)
from .transports import LoopbackRemoteTransport, UdpRemoteTransport
