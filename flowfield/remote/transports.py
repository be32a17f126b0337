# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import json
import logging
import socket
import threading
import time
from collections import deque
from typing import Callable, Optional

logger = logging.getLogger(__name__)

HEARTBEAT_PAYLOAD = json.dumps({"heartbeat": True}).encode("utf-8")
MAX_OUTBOX = 1000


class LoopbackRemoteTransport:
    """
    In-process transport. Two instances linked with `link()` behave like a paired
    phone and companion: direct sends arrive immediately while reachable, queued
    transfers are held until the link becomes reachable again.
    """

    def __init__(self, paired: bool = True, reachable: bool = True):
        self.channel = None
        self.peer: Optional["LoopbackRemoteTransport"] = None
        self.paired = paired
        self.reachable = reachable
        self.outbox = deque(maxlen=MAX_OUTBOX)
        self.sent = []  # every payload that left this side, in order

    @staticmethod
    def link(a: "LoopbackRemoteTransport", b: "LoopbackRemoteTransport"):
        a.peer, b.peer = b, a

    def set_channel(self, channel):
        self.channel = channel
        channel.update_state(reachable=self.reachable and self.peer is not None, paired=self.paired)

    def set_reachable(self, reachable: bool):
        self.reachable = reachable
        if self.channel is not None:
            self.channel.update_state(reachable=reachable)
        if reachable:
            self.flush()

    def send_message(self, payload: bytes):
        if not self.reachable or self.peer is None:
            raise ConnectionError("Loopback peer is not reachable")
        self.sent.append(payload)
        if self.peer.channel is not None:
            self.peer.channel.handle_payload(payload)

    def transfer_user_info(self, payload: bytes):
        self.outbox.append(payload)
        if self.reachable:
            self.flush()

    def flush(self):
        while self.outbox and self.reachable and self.peer is not None:
            self.send_message(self.outbox.popleft())

    def start(self):
        pass

    def close(self):
        pass


class UdpRemoteTransport:
    """
    Datagram link to the companion device.

    Reachability follows heartbeats: the peer counts as reachable while a datagram
    has arrived within `heartbeat_timeout` seconds. Queued transfers are held in an
    outbox and flushed when the peer comes back.
    """

    def __init__(self, host: str, port: int, listen_port: int, paired: bool = True,
                 heartbeat_interval: float = 1.0, heartbeat_timeout: float = 3.0,
                 clock: Callable[[], float] = time.monotonic):
        self.address = (host, port)
        self.listen_port = listen_port
        self.paired = paired
        self.heartbeat_interval = heartbeat_interval
        self.heartbeat_timeout = heartbeat_timeout
        self.clock = clock

        self.channel = None
        self.outbox = deque(maxlen=MAX_OUTBOX)
        self._outbox_lock = threading.Lock()
        self._socket: Optional[socket.socket] = None
        self._stop = threading.Event()
        self._threads = []
        self._last_heard: Optional[float] = None
        self._reachable = False

    def set_channel(self, channel):
        self.channel = channel
        channel.update_state(reachable=False, paired=self.paired)

    def start(self):
        if self._socket is not None:
            return
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        s.bind(("0.0.0.0", self.listen_port))
        s.settimeout(0.2)
        self._socket = s
        self._stop.clear()
        for target in (self._receive_loop, self._heartbeat_loop):
            thread = threading.Thread(target=target, daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.info(f"[Remote] Listening on udp/{self.listen_port}, peer {self.address[0]}:{self.address[1]}")

    def close(self):
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=0.5)
        self._threads = []
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError as e:
                logger.warning(f"[Remote] Error closing socket: {e}")
        self._socket = None

    # ----- outbound -----

    def send_message(self, payload: bytes):
        if self._socket is None:
            raise ConnectionError("UDP transport is not started")
        self._socket.sendto(payload, self.address)

    def transfer_user_info(self, payload: bytes):
        with self._outbox_lock:
            if len(self.outbox) == self.outbox.maxlen:
                logger.warning("[Remote] Outbox full, dropping oldest queued message")
            self.outbox.append(payload)

    def flush(self):
        with self._outbox_lock:
            pending = list(self.outbox)
            self.outbox.clear()
        for index, payload in enumerate(pending):
            try:
                self.send_message(payload)
            except OSError as e:
                logger.warning(f"[Remote] Flush interrupted: {e}")
                with self._outbox_lock:
                    self.outbox.extendleft(reversed(pending[index:]))
                return
        if pending:
            logger.info(f"[Remote] Delivered {len(pending)} queued message(s)")

    # ----- background loops -----

    def _set_reachable(self, reachable: bool):
        if reachable == self._reachable:
            return
        self._reachable = reachable
        if self.channel is not None:
            self.channel.update_state(reachable=reachable)
        if reachable:
            self.flush()

    def _receive_loop(self):
        while not self._stop.is_set():
            try:
                payload, _ = self._socket.recvfrom(65536)
            except socket.timeout:
                continue
            except OSError as e:
                if not self._stop.is_set():
                    logger.warning(f"[Remote] Receive error: {e}")
                continue

            self._last_heard = self.clock()
            self._set_reachable(True)
            if payload == HEARTBEAT_PAYLOAD:
                continue
            if self.channel is not None:
                self.channel.handle_payload(payload)

    def _heartbeat_loop(self):
        while not self._stop.is_set():
            try:
                self.send_message(HEARTBEAT_PAYLOAD)
            except OSError as e:
                logger.debug(f"[Remote] Heartbeat failed: {e}")

            if self._last_heard is not None and self.clock() - self._last_heard > self.heartbeat_timeout:
                self._set_reachable(False)

            self._stop.wait(self.heartbeat_interval)
