# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from ..core.errors import AssetNotFoundError, AudioDecodeError, FlowfieldError
from .backends import PreparedTrack
from .power import PowerSmoother, sample_envelope, synthetic_power

logger = logging.getLogger(__name__)

# Weight of the synthetic oscillation mixed into a real envelope, so a flat track still shimmers
SHIMMER_WEIGHT = 0.2


class TransportState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"


class PlayRequest:
    """Outcome of one play() call. Completes when the load finishes, fails or is superseded."""

    def __init__(self, track: str, generation: int):
        self.track = track
        self.generation = generation
        self.succeeded = False
        self.error: Optional[Exception] = None
        self._done = threading.Event()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def _finish(self, error: Optional[Exception] = None):
        self.error = error
        self.succeeded = error is None
        self._done.set()


def _spawn_thread(target: Callable, *args):
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()
    return thread


class AudioTransport:
    """
    Background music playback state machine: IDLE -> LOADING -> PLAYING <-> PAUSED -> IDLE.

    Fetching and decoding run off the owning context; the result is marshalled back
    through `dispatch` before any state changes. Position is derived from the clock
    and wraps at the track duration, matching the backend's infinite looping.
    """

    def __init__(self, asset_provider, backend, clock: Callable[[], float] = time.monotonic,
                 dispatch: Optional[Callable] = None, run_in_background: Optional[Callable] = None,
                 volume: float = 0.7):
        self.asset_provider = asset_provider
        self.backend = backend
        self.clock = clock
        self.dispatch = dispatch or (lambda fn, *args: fn(*args))
        self.run_in_background = run_in_background or _spawn_thread

        self.state = TransportState.IDLE
        self.volume = max(0.0, min(1.0, volume))
        self._track: Optional[PreparedTrack] = None
        self._generation = 0
        self._anchor = 0.0   # clock value when playback (re)started
        self._offset = 0.0   # track position at _anchor
        self._start_paused = False  # pause() arrived while LOADING
        self._backend_started = False
        self._smoother = PowerSmoother()

    # ----- state queries -----

    @property
    def is_playing(self) -> bool:
        return self.state == TransportState.PLAYING

    @property
    def track_name(self) -> Optional[str]:
        return self._track.name if self._track else None

    def duration(self) -> float:
        if self.state in (TransportState.IDLE, TransportState.LOADING) or self._track is None:
            return 0.0
        return self._track.duration

    def position(self) -> float:
        if self.state == TransportState.PLAYING and self._track is not None:
            return (self._offset + self.clock() - self._anchor) % self._track.duration
        if self.state == TransportState.PAUSED:
            return self._offset
        return 0.0

    # ----- transport control -----

    def play(self, track: str, on_error: Optional[Callable[[str, Exception], None]] = None) -> PlayRequest:
        """
        Starts loading `track` and plays it when ready. A failed load leaves the transport IDLE
        and is reported through the returned PlayRequest and `on_error`; it never raises.
        """
        if self.state in (TransportState.PLAYING, TransportState.PAUSED):
            self.backend.stop()
            self._track = None

        self._start_paused = False
        self._generation += 1
        request = PlayRequest(track, self._generation)
        self.state = TransportState.LOADING
        logger.info(f"[Audio] Loading {track}")
        self.run_in_background(self._load_in_background, request, on_error)
        return request

    def _load_in_background(self, request: PlayRequest, on_error):
        if request.generation != self._generation:
            request._finish(FlowfieldError("superseded"))
            return
        try:
            data = self.asset_provider.get(request.track)
            if data is None:
                raise AssetNotFoundError(request.track)
            prepared = self.backend.prepare(request.track, data)
        except (AssetNotFoundError, AudioDecodeError) as e:
            self.dispatch(self._finish_load, request, None, e, on_error)
            return
        except Exception as e:
            # Provider and decoder are external; wrap anything they raise as a decode failure
            self.dispatch(self._finish_load, request, None, AudioDecodeError(str(e)), on_error)
            return
        self.dispatch(self._finish_load, request, prepared, None, on_error)

    def _finish_load(self, request: PlayRequest, prepared: Optional[PreparedTrack],
                     error: Optional[Exception], on_error):
        if request.generation != self._generation:
            logger.debug(f"[Audio] Discarding stale load of {request.track}")
            request._finish(FlowfieldError("superseded"))
            return

        if error is None and not self._start_paused:
            try:
                self.backend.start(prepared, self.volume, 0.0)
            except AudioDecodeError as e:
                error = e

        if error is not None:
            self.state = TransportState.IDLE
            self._track = None
            logger.error(f"[Audio] Could not play {request.track}: {error}")
            request._finish(error)
            if on_error is not None:
                on_error(request.track, error)
            return

        self._track = prepared
        self._offset = 0.0
        self._anchor = self.clock()
        if self._start_paused:
            self._backend_started = False
            self.state = TransportState.PAUSED
            logger.info(f"[Audio] Loaded {request.track} while paused, holding playback")
        else:
            self._backend_started = True
            self.state = TransportState.PLAYING
        request._finish()

    def pause(self) -> bool:
        """Pauses playback. While LOADING, the track will come up PAUSED once it is ready."""
        if self.state == TransportState.LOADING:
            self._start_paused = True
            return True
        if self.state != TransportState.PLAYING:
            return False
        self._offset = self.position()
        self.backend.pause()
        self.state = TransportState.PAUSED
        return True

    def resume(self) -> bool:
        if self.state == TransportState.LOADING:
            self._start_paused = False
            return True
        if self.state != TransportState.PAUSED:
            return False
        self._anchor = self.clock()
        if self._backend_started:
            self.backend.unpause()
        else:
            # Loaded while paused: the output device has never been started
            try:
                self.backend.start(self._track, self.volume, self._offset)
            except AudioDecodeError as e:
                logger.error(f"[Audio] Could not play {self._track.name}: {e}")
                self.stop()
                return False
            self._backend_started = True
        self.state = TransportState.PLAYING
        return True

    def toggle(self) -> bool:
        """Pauses when playing, resumes when paused. Returns True if playing afterwards."""
        if self.state == TransportState.PLAYING:
            self.pause()
        elif self.state == TransportState.PAUSED:
            self.resume()
        elif self.state == TransportState.LOADING:
            if self._start_paused:
                self.resume()
            else:
                self.pause()
        return self.is_playing

    def stop(self):
        # Bumping the generation also abandons any load still in flight
        self._generation += 1
        if self.state in (TransportState.PLAYING, TransportState.PAUSED):
            self.backend.stop()
        self.state = TransportState.IDLE
        self._track = None
        self._start_paused = False
        self._backend_started = False
        self._offset = 0.0

    def seek(self, seconds: float):
        if self._track is None or self.state not in (TransportState.PLAYING, TransportState.PAUSED):
            return
        self._offset = seconds % self._track.duration
        self._anchor = self.clock()
        if self.state == TransportState.PLAYING:
            self.backend.seek(self._track, self.volume, self._offset)

    def set_volume(self, volume: float) -> float:
        self.volume = max(0.0, min(1.0, float(volume)))
        self.backend.set_volume(self.volume)
        return self.volume

    # ----- analysis -----

    def average_power(self, now: Optional[float] = None) -> float:
        """
        Loudness in [0, 1]. Uses the decoded envelope while playing, otherwise a slow
        synthetic oscillation. Slew-limited so it never jumps from one tick to the next.
        """
        t = self.clock() if now is None else now
        synthetic = synthetic_power(t)
        track = self._track
        if self.state == TransportState.PLAYING and track is not None and track.envelope is not None:
            real = sample_envelope(track.envelope, self.position(), track.duration)
            target = (1.0 - SHIMMER_WEIGHT) * real + SHIMMER_WEIGHT * synthetic
        else:
            target = synthetic
        return self._smoother.update(target, t)
