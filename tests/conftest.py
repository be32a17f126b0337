"""Shared fakes for the Flowfield tests: manual clock, in-memory assets, recording collaborators."""

import pytest

from flowfield.audio.backends import PreparedTrack
from flowfield.core.errors import AudioDecodeError


class ManualClock:
    def __init__(self, t=1000.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds
        return self.t


class DictAssets:
    def __init__(self, assets=None):
        self.assets = dict(assets or {})
        self.requests = []

    def get(self, name):
        self.requests.append(name)
        return self.assets.get(name)


def run_inline(target, *args):
    target(*args)


class DeferredRunner:
    """Collects background jobs so a test decides when they run."""

    def __init__(self):
        self.jobs = []

    def __call__(self, target, *args):
        self.jobs.append((target, args))

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for target, args in jobs:
            target(*args)


class FakeBackend:
    def __init__(self, duration=120.0, envelope=None, fail_start=False):
        self.duration = duration
        self.envelope = envelope
        self.fail_start = fail_start
        self.calls = []
        self.volume = None

    def prepare(self, name, data):
        if data == b"garbage":
            raise AudioDecodeError("undecodable")
        return PreparedTrack(name, data, self.duration, self.envelope)

    def start(self, track, volume, offset=0.0):
        self.calls.append(("start", track.name, offset))
        if self.fail_start:
            raise AudioDecodeError("no device")
        self.volume = volume

    def pause(self):
        self.calls.append(("pause",))

    def unpause(self):
        self.calls.append(("unpause",))

    def stop(self):
        self.calls.append(("stop",))

    def seek(self, track, volume, offset):
        self.calls.append(("seek", track.name, offset))

    def set_volume(self, volume):
        self.volume = volume


class RecordingRenderer:
    def __init__(self):
        self.frames = []
        self.loaded = []
        self.unloaded = []

    def on_frame(self, frame):
        self.frames.append(frame)

    def scene_did_load(self, name):
        self.loaded.append(name)

    def scene_did_unload(self, name):
        self.unloaded.append(name)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def assets():
    return DictAssets({"firefly_music": b"RIFF-fake-wav"})


@pytest.fixture
def backend():
    return FakeBackend()
