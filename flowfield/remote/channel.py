# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import logging
import threading
from collections import OrderedDict
from enum import Enum
from typing import Callable, List, Optional

from ..core.errors import MessageDecodeError
from .messages import RemoteMessage, decode_message, encode_message

logger = logging.getLogger(__name__)


class DeliveryResult(Enum):
    DIRECT = "direct"    # sent on the low-latency path
    QUEUED = "queued"    # handed to store-and-forward, delivered on reconnect
    DROPPED = "dropped"  # peer neither reachable nor paired


class RemoteControlChannel:
    """
    Bidirectional control link to the companion device.

    Outbound messages go direct when the peer is reachable, through the transport's
    store-and-forward queue when it is only paired, and nowhere otherwise. Inbound
    payloads are decoded, marshalled onto the owning context through `dispatch`,
    de-duplicated by message id, then handed to the registered handlers.
    """

    def __init__(self, transport=None, dispatch: Optional[Callable] = None, dedupe_window: int = 256):
        self.transport = transport
        self.dispatch = dispatch or (lambda fn, *args: fn(*args))
        self.reachable = False
        self.paired = False
        self._handlers: List[Callable[[RemoteMessage], None]] = []
        self._seen_ids = OrderedDict()
        self._dedupe_window = dedupe_window
        self._state_lock = threading.Lock()

        if transport is not None:
            transport.set_channel(self)

    # ----- link state -----

    def update_state(self, reachable: Optional[bool] = None, paired: Optional[bool] = None):
        """Reachability/pairing callback for the platform transport. Safe to call from any thread."""
        with self._state_lock:
            changed = False
            if reachable is not None and reachable != self.reachable:
                self.reachable = reachable
                changed = True
            if paired is not None and paired != self.paired:
                self.paired = paired
                changed = True
        if changed:
            logger.info(f"[Remote] Link state: reachable={self.reachable} paired={self.paired}")

    # ----- outbound -----

    def send(self, message: RemoteMessage) -> DeliveryResult:
        if self.transport is None:
            logger.warning(f"[Remote] No transport configured, dropping {type(message).__name__}")
            return DeliveryResult.DROPPED

        payload = encode_message(message)
        with self._state_lock:
            reachable, paired = self.reachable, self.paired

        if reachable:
            try:
                self.transport.send_message(payload)
                return DeliveryResult.DIRECT
            except OSError as e:
                logger.warning(f"[Remote] Direct send of {type(message).__name__} failed: {e}")
                if not paired:
                    return DeliveryResult.DROPPED

        if paired:
            self.transport.transfer_user_info(payload)
            logger.debug(f"[Remote] Peer unreachable, queued {type(message).__name__}")
            return DeliveryResult.QUEUED

        logger.warning(f"[Remote] Peer neither reachable nor paired, dropping {type(message).__name__}")
        return DeliveryResult.DROPPED

    # ----- inbound -----

    def on_receive(self, handler: Callable[[RemoteMessage], None]) -> Callable[[], None]:
        """Registers a handler for decoded inbound messages. Returns an unsubscribe function."""
        self._handlers.append(handler)

        def unsubscribe():
            if handler in self._handlers:
                self._handlers.remove(handler)
        return unsubscribe

    def handle_payload(self, payload) -> Optional[RemoteMessage]:
        """Entry point for raw inbound payloads from the transport. Unknown shapes are dropped."""
        try:
            message = decode_message(payload)
        except MessageDecodeError as e:
            logger.warning(f"[Remote] Dropping malformed message: {e}")
            return None
        self.dispatch(self._deliver, message)
        return message

    def _deliver(self, message: RemoteMessage):
        if message.message_id in self._seen_ids:
            logger.debug(f"[Remote] Ignoring duplicate {type(message).__name__} {message.message_id}")
            return
        self._seen_ids[message.message_id] = True
        while len(self._seen_ids) > self._dedupe_window:
            self._seen_ids.popitem(last=False)

        for handler in list(self._handlers):
            try:
                handler(message)
            except Exception as e:
                logger.error(f"[Remote] Handler failed for {type(message).__name__}: {e}", exc_info=True)
