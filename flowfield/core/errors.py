# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

"""Exception types raised by the low-level parsing and decoding helpers.

None of these escape the engine: each is caught at the component seam that
owns the fallback (default timeline, idle transport, dropped message).
"""


class FlowfieldError(Exception):
    """Base class for all Flowfield errors."""


class TimelineParseError(FlowfieldError, ValueError):
    """An emotion script could not be parsed into a Timeline."""


class AssetNotFoundError(FlowfieldError, LookupError):
    """The asset provider has no asset under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Asset not found: {name}")
        self.name = name


class AudioDecodeError(FlowfieldError):
    """Raw audio bytes could not be decoded or prepared for playback."""


class MessageDecodeError(FlowfieldError, ValueError):
    """An inbound remote payload does not match any known message shape."""
