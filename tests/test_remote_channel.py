"""
Companion link: message codec, delivery paths, de-duplication and store-and-forward.

    python -m pytest tests/test_remote_channel.py -v
"""

import json

import pytest

from flowfield.core.errors import MessageDecodeError
from flowfield.remote import (
    DeliveryResult, LoopbackRemoteTransport, NightModeToggle, PlayPause, RemoteControlChannel, SceneChange,
    UdpRemoteTransport, VolumeChange, decode_message, encode_message
)
from flowfield.remote.transports import HEARTBEAT_PAYLOAD


class RecordingTransport:
    def __init__(self, fail_direct=False):
        self.fail_direct = fail_direct
        self.direct = []
        self.queued = []
        self.channel = None

    def set_channel(self, channel):
        self.channel = channel

    def send_message(self, payload):
        if self.fail_direct:
            raise ConnectionError("link went away")
        self.direct.append(payload)

    def transfer_user_info(self, payload):
        self.queued.append(payload)


def _linked_pair(phone_reachable=True):
    phone = LoopbackRemoteTransport(reachable=phone_reachable)
    companion = LoopbackRemoteTransport()
    LoopbackRemoteTransport.link(phone, companion)
    return RemoteControlChannel(phone), RemoteControlChannel(companion), phone, companion


class TestCodec:

    def test_wire_keys(self):
        assert json.loads(encode_message(PlayPause("a")))["playPause"] is True
        assert json.loads(encode_message(VolumeChange(0.4, "b")))["changeVolume"] == 0.4
        assert json.loads(encode_message(SceneChange("firefly", "c")))["switchScene"] == "firefly"
        body = json.loads(encode_message(NightModeToggle("d")))
        assert body == {"toggleNightMode": True, "messageId": "d"}

    def test_decode_from_dict_str_and_bytes(self):
        assert decode_message({"playPause": True}).__class__ is PlayPause
        assert decode_message('{"changeVolume": 1}').level == 1.0
        message = decode_message(b'{"switchScene": "firefly", "messageId": "x1"}')
        assert message == SceneChange("firefly", "x1")

    def test_missing_message_id_is_generated(self):
        first = decode_message({"toggleNightMode": True})
        second = decode_message({"toggleNightMode": True})
        assert first.message_id and first.message_id != second.message_id

    @pytest.mark.parametrize("payload", [
        b"\xff\xfe",
        "not json",
        "[1, 2]",
        {},
        {"unknownCommand": True},
        {"playPause": True, "toggleNightMode": True},
        {"changeVolume": "loud"},
        {"changeVolume": True},
        {"switchScene": ""},
        {"switchScene": 5},
    ])
    def test_malformed_payloads_raise(self, payload):
        with pytest.raises(MessageDecodeError):
            decode_message(payload)

    def test_encode_rejects_unknown_objects(self):
        with pytest.raises(TypeError):
            encode_message("playPause")


class TestDelivery:

    def test_without_transport_drops(self):
        assert RemoteControlChannel().send(PlayPause()) == DeliveryResult.DROPPED

    def test_reachable_goes_direct(self):
        transport = RecordingTransport()
        channel = RemoteControlChannel(transport)
        channel.update_state(reachable=True, paired=True)
        assert channel.send(VolumeChange(0.5)) == DeliveryResult.DIRECT
        assert len(transport.direct) == 1 and transport.queued == []

    def test_paired_but_unreachable_is_queued(self):
        transport = RecordingTransport()
        channel = RemoteControlChannel(transport)
        channel.update_state(reachable=False, paired=True)
        assert channel.send(PlayPause()) == DeliveryResult.QUEUED
        assert len(transport.queued) == 1

    def test_neither_reachable_nor_paired_drops(self):
        transport = RecordingTransport()
        channel = RemoteControlChannel(transport)
        assert channel.send(PlayPause()) == DeliveryResult.DROPPED
        assert transport.direct == [] and transport.queued == []

    def test_direct_failure_falls_back_to_queue_when_paired(self):
        transport = RecordingTransport(fail_direct=True)
        channel = RemoteControlChannel(transport)
        channel.update_state(reachable=True, paired=True)
        assert channel.send(SceneChange("firefly")) == DeliveryResult.QUEUED

    def test_direct_failure_drops_when_unpaired(self):
        transport = RecordingTransport(fail_direct=True)
        channel = RemoteControlChannel(transport)
        channel.update_state(reachable=True, paired=False)
        assert channel.send(SceneChange("firefly")) == DeliveryResult.DROPPED


class TestInbound:

    def test_decoded_message_reaches_handlers(self):
        channel = RemoteControlChannel()
        received = []
        channel.on_receive(received.append)
        channel.handle_payload(b'{"changeVolume": 0.25, "messageId": "m1"}')
        assert received == [VolumeChange(0.25, "m1")]

    def test_malformed_payload_is_dropped(self):
        channel = RemoteControlChannel()
        received = []
        channel.on_receive(received.append)
        assert channel.handle_payload(b'{"bogus": 1}') is None
        assert received == []

    def test_duplicate_message_ids_are_ignored(self):
        channel = RemoteControlChannel()
        received = []
        channel.on_receive(received.append)
        for _ in range(3):
            channel.handle_payload({"playPause": True, "messageId": "same"})
        assert len(received) == 1

    def test_payloads_without_message_id_are_not_deduplicated(self):
        channel = RemoteControlChannel()
        received = []
        channel.on_receive(received.append)
        channel.handle_payload({"playPause": True})
        channel.handle_payload({"playPause": True})
        assert len(received) == 2
        assert received[0].message_id != received[1].message_id

    def test_outbound_messages_always_carry_an_id(self):
        for message in (PlayPause(), VolumeChange(0.4), SceneChange("firefly"), NightModeToggle()):
            assert json.loads(encode_message(message))["messageId"] == message.message_id

    def test_dedupe_window_is_bounded(self):
        channel = RemoteControlChannel(dedupe_window=2)
        received = []
        channel.on_receive(received.append)
        for message_id in ("a", "b", "c", "a"):
            channel.handle_payload({"toggleNightMode": True, "messageId": message_id})
        assert [m.message_id for m in received] == ["a", "b", "c", "a"]

    def test_handlers_run_on_dispatch_context(self):
        queued = []
        channel = RemoteControlChannel(dispatch=lambda fn, *args: queued.append((fn, args)))
        received = []
        channel.on_receive(received.append)
        channel.handle_payload({"playPause": True})
        assert received == []
        for fn, args in queued:
            fn(*args)
        assert len(received) == 1

    def test_failing_handler_does_not_block_others(self):
        channel = RemoteControlChannel()
        received = []

        def broken(message):
            raise RuntimeError("boom")

        channel.on_receive(broken)
        channel.on_receive(received.append)
        channel.handle_payload({"playPause": True})
        assert len(received) == 1

    def test_unsubscribe(self):
        channel = RemoteControlChannel()
        received = []
        unsubscribe = channel.on_receive(received.append)
        unsubscribe()
        channel.handle_payload({"playPause": True})
        assert received == []


class TestLoopback:

    def test_direct_delivery_between_linked_channels(self):
        phone, companion, _, _ = _linked_pair()
        received = []
        companion.on_receive(received.append)

        assert phone.send(SceneChange("firefly", "s1")) == DeliveryResult.DIRECT
        assert received == [SceneChange("firefly", "s1")]

    def test_store_and_forward_flushes_on_reconnect(self):
        phone, companion, phone_transport, _ = _linked_pair(phone_reachable=False)
        received = []
        companion.on_receive(received.append)

        assert phone.send(VolumeChange(0.4, "v1")) == DeliveryResult.QUEUED
        assert phone.send(PlayPause("p1")) == DeliveryResult.QUEUED
        assert received == []

        phone_transport.set_reachable(True)
        assert received == [VolumeChange(0.4, "v1"), PlayPause("p1")]
        assert phone.reachable

    def test_retried_volume_is_idempotent(self):
        phone, companion, phone_transport, _ = _linked_pair()
        levels = []
        companion.on_receive(lambda m: levels.append(m.level))

        message = VolumeChange(0.4)
        phone.send(message)
        phone.send(message)
        phone.send(VolumeChange(0.4))
        assert levels == [0.4, 0.4]
        assert len(phone_transport.sent) == 3


class FakeSocket:
    def __init__(self, fail_after=None):
        self.sent = []
        self.fail_after = fail_after

    def sendto(self, payload, address):
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            raise OSError("network unreachable")
        self.sent.append((payload, address))


class TestUdpTransport:

    def test_send_before_start_raises(self):
        transport = UdpRemoteTransport("127.0.0.1", 9000, 9001)
        with pytest.raises(ConnectionError):
            transport.send_message(b"{}")

    def test_channel_starts_unreachable_but_paired(self):
        transport = UdpRemoteTransport("127.0.0.1", 9000, 9001, paired=True)
        channel = RemoteControlChannel(transport)
        assert not channel.reachable and channel.paired

    def test_outbox_flushed_when_peer_heard(self):
        transport = UdpRemoteTransport("127.0.0.1", 9000, 9001)
        channel = RemoteControlChannel(transport)
        transport._socket = FakeSocket()

        assert channel.send(PlayPause("q1")) == DeliveryResult.QUEUED
        transport._set_reachable(True)

        assert channel.reachable
        assert [payload for payload, _ in transport._socket.sent] == [encode_message(PlayPause("q1"))]
        assert len(transport.outbox) == 0

    def test_interrupted_flush_keeps_remaining_messages(self):
        transport = UdpRemoteTransport("127.0.0.1", 9000, 9001)
        transport._socket = FakeSocket(fail_after=1)
        for payload in (b"1", b"2", b"3"):
            transport.transfer_user_info(payload)
        transport.flush()
        assert list(transport.outbox) == [b"2", b"3"]

    def test_heartbeat_payload_is_not_a_command(self):
        with pytest.raises(MessageDecodeError):
            decode_message(HEARTBEAT_PAYLOAD)
