# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import logging
import queue
import time
from datetime import datetime
from typing import Callable, List, Optional

from ...audio.power import synthetic_power
from ...audio.transport import TransportState
from ...remote.messages import NightModeToggle, PlayPause, SceneChange, VolumeChange
from ..model.emotion_timeline import Timeline
from ..model.parameter_frame import ParameterFrame
from ..model.scene_type import SceneType
from ..timeline.timeline_loader import TimelineLoader
from .timeline_player import TimelinePlayer

logger = logging.getLogger(__name__)


def is_night_now(hour: Optional[int] = None) -> bool:
    """Night runs from 18:00 to 06:00 local time."""
    if hour is None:
        hour = datetime.now().hour
    return hour >= 18 or hour < 6


class SceneEngine:
    """
    Single owner of all mutable scene state: timeline player, audio transport,
    brightness, night mode and the last published frame.

    Background work (script loads, audio decodes, inbound remote messages) never
    touches this state directly. It is queued through call_soon() and applied at
    the start of the next tick, before that tick's frame is computed.
    """

    def __init__(self, asset_provider, audio_transport=None, remote_channel=None, renderer=None,
                 night_density: float = 50.0, day_density: float = 10.0, brightness: float = 0.5,
                 night_mode: Optional[bool] = None, clock: Callable[[], float] = time.monotonic,
                 run_in_background: Optional[Callable] = None):
        """
        Args:
            asset_provider: Collaborator with get(name) -> bytes | None.
            audio_transport: Optional AudioTransport. Its results are re-routed through call_soon().
            remote_channel: Optional RemoteControlChannel. Inbound messages are re-routed through call_soon().
            renderer: Optional collaborator with on_frame / scene_did_load / scene_did_unload.
            night_density: Base particle density at night.
            day_density: Base particle density by day.
            brightness: Initial brightness, clamped to [0, 1].
            night_mode: Initial night mode; None derives it from the local time.
            clock: Monotonic time source used when tick()/controls are called without `now`.
            run_in_background: Runs target(*args) off the owning context (defaults to daemon threads).
        """
        self.clock = clock
        self.night_density = night_density
        self.day_density = day_density
        self.brightness = max(0.0, min(1.0, brightness))
        self.is_night = is_night_now() if night_mode is None else bool(night_mode)

        self._pending = queue.Queue()
        self._listeners: List[Callable[[ParameterFrame], None]] = []

        self.player = TimelinePlayer()
        self.timeline_generation = 0
        self.loader = TimelineLoader(asset_provider, install=self._install_timeline,
                                     dispatch=self.call_soon, run_in_background=run_in_background)

        self.audio = audio_transport
        if self.audio is not None:
            self.audio.dispatch = self.call_soon

        self.remote = remote_channel
        if self.remote is not None:
            self.remote.dispatch = self.call_soon
            self.remote.on_receive(self._handle_remote)

        self.renderer = renderer
        if renderer is not None:
            self.subscribe(renderer.on_frame)

        self.scene_name = ""
        self.playing = False
        self._frame = self._compute_frame(self.clock())

    # ----- marshalling -----

    def call_soon(self, fn: Callable, *args):
        """Queues fn(*args) to run on the owning context at the start of the next tick. Thread-safe."""
        self._pending.put((fn, args))

    def drain(self) -> int:
        """Runs every queued call. Returns how many ran."""
        count = 0
        while True:
            try:
                fn, args = self._pending.get_nowait()
            except queue.Empty:
                return count
            count += 1
            try:
                fn(*args)
            except Exception as e:
                logger.error(f"Queued call {getattr(fn, '__name__', fn)} failed: {e}", exc_info=True)

    # ----- timeline / scene -----

    def _install_timeline(self, timeline: Timeline, generation: int):
        self.player.set_timeline(timeline)
        self.timeline_generation = generation

    @staticmethod
    def _scene_type(name: str) -> Optional[SceneType]:
        try:
            return SceneType.from_name(name)
        except (KeyError, ValueError):
            return None

    def load_timeline(self, name: str, now: Optional[float] = None) -> int:
        """
        Installs the default timeline immediately, rewinds the clock and starts loading the
        script for `name` (a scene name or a script asset name) in the background.
        Returns the generation token of the load.
        """
        now = self.clock() if now is None else now
        scene = self._scene_type(name)
        script_name = scene.emotion_script_name if scene else name

        generation = self.loader.request(script_name)
        self.player.start(now)
        if not self.playing:
            self.player.stop(now)
        logger.info(f"Loading emotion script '{script_name}' (generation {generation})")
        return generation

    def load_scene(self, name: str, now: Optional[float] = None, from_remote: bool = False) -> int:
        """Switches scene: timeline, background music, renderer lifecycle and companion update."""
        scene = self._scene_type(name)
        if scene is None:
            logger.warning(f"Unknown scene '{name}', loading it by asset name")

        if self.scene_name and self.renderer is not None:
            self.renderer.scene_did_unload(self.scene_name)

        self.scene_name = scene.value if scene else name
        self.playing = True
        generation = self.load_timeline(name, now)

        if self.audio is not None:
            self.audio.play(self._music_name(self.scene_name), on_error=self._on_audio_error)

        if self.renderer is not None:
            self.renderer.scene_did_load(self.scene_name)

        if not from_remote:
            self._send(SceneChange(self.scene_name))
        return generation

    def _music_name(self, scene_name: str) -> str:
        scene = self._scene_type(scene_name)
        return scene.background_music_name if scene else f"{scene_name}_music"

    def _on_audio_error(self, track: str, error: Exception):
        logger.warning(f"Background music '{track}' unavailable ({error}), continuing without audio")

    # ----- playback controls -----

    def start_playback(self, now: Optional[float] = None):
        now = self.clock() if now is None else now
        self.playing = True
        self.player.resume(now)
        if self.audio is None:
            return
        if self.audio.state in (TransportState.PAUSED, TransportState.LOADING):
            self.audio.resume()
        elif self.audio.state == TransportState.IDLE and self.scene_name:
            # Music failed or was stopped earlier; try again
            self.audio.play(self._music_name(self.scene_name), on_error=self._on_audio_error)

    def stop_playback(self, now: Optional[float] = None):
        now = self.clock() if now is None else now
        self.playing = False
        self.player.stop(now)
        if self.audio is not None:
            self.audio.pause()

    def toggle_playback(self, now: Optional[float] = None, from_remote: bool = False) -> bool:
        if self.playing:
            self.stop_playback(now)
        else:
            self.start_playback(now)
        if not from_remote:
            self._send(PlayPause())
        return self.playing

    def set_volume(self, volume: float, from_remote: bool = False) -> float:
        level = max(0.0, min(1.0, float(volume)))
        if self.audio is not None:
            level = self.audio.set_volume(level)
        if not from_remote:
            self._send(VolumeChange(level))
        return level

    def set_brightness(self, brightness: float) -> float:
        self.brightness = max(0.0, min(1.0, float(brightness)))
        return self.brightness

    def set_night_mode(self, is_night: bool):
        self.is_night = bool(is_night)

    def toggle_night_mode(self, from_remote: bool = False) -> bool:
        self.is_night = not self.is_night
        logger.info(f"Night mode toggled: {self.is_night}")
        if not from_remote:
            self._send(NightModeToggle())
        return self.is_night

    # ----- remote -----

    def _send(self, message):
        if self.remote is not None:
            self.remote.send(message)

    def _handle_remote(self, message):
        logger.info(f"[Remote] Received {message}")
        if isinstance(message, PlayPause):
            self.toggle_playback(from_remote=True)
        elif isinstance(message, VolumeChange):
            self.set_volume(message.level, from_remote=True)
        elif isinstance(message, SceneChange):
            self.load_scene(message.name, from_remote=True)
        elif isinstance(message, NightModeToggle):
            self.toggle_night_mode(from_remote=True)

    # ----- frames -----

    def base_density(self, is_night: bool) -> float:
        return self.night_density if is_night else self.day_density

    def _compute_frame(self, now: float) -> ParameterFrame:
        # Snapshot everything the frame depends on before computing
        brightness = self.brightness
        is_night = self.is_night
        generation = self.timeline_generation
        intensity, color = self.player.sample_at(now)
        if self.audio is not None:
            audio_power = self.audio.average_power(now)
        else:
            audio_power = synthetic_power(now)

        density = round(self.base_density(is_night) * (0.5 + intensity) * (0.5 + brightness))
        return ParameterFrame(
            intensity=intensity,
            color=color,
            audio_power=audio_power,
            brightness=brightness,
            is_night=is_night,
            particle_density_hint=max(0, int(density)),
            timestamp=now,
            scene_name=self.scene_name,
            timeline_generation=generation,
        )

    def tick(self, now: Optional[float] = None) -> ParameterFrame:
        """Applies queued changes, computes one frame, publishes it and notifies subscribers."""
        now = self.clock() if now is None else now
        self.drain()
        frame = self._compute_frame(now)
        self._frame = frame
        for listener in list(self._listeners):
            try:
                listener(frame)
            except Exception as e:
                logger.error(f"Frame listener {getattr(listener, '__name__', listener)} failed: {e}", exc_info=True)
        return frame

    def current_frame(self) -> ParameterFrame:
        return self._frame

    def subscribe(self, listener: Callable[[ParameterFrame], None]) -> Callable[[], None]:
        """Registers a frame listener, called synchronously after each tick. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def close(self):
        self.loader.cancel()
        if self.audio is not None:
            self.audio.stop()
        if self.scene_name and self.renderer is not None:
            self.renderer.scene_did_unload(self.scene_name)
