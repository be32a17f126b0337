#!/usr/bin/env python3
# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import argparse
import logging
import threading

from ..audio.backends import create_backend
from ..audio.transport import AudioTransport
from ..core import config as cfg
from ..core.color_text import ColorText
from ..core.runtime.display_link import DisplayLink
from ..core.runtime.engine import SceneEngine
from ..core.runtime.renderer import LoggingRenderer
from ..files.asset_provider import build_asset_provider
from ..remote.channel import RemoteControlChannel
from ..remote.transports import UdpRemoteTransport


def build_engine(engine_config=None, asset_config=None, remote_config=None, audio_mode=None, renderer=None):
    """
    Composition root: wires asset provider, audio transport, remote channel and renderer into one SceneEngine.

    Returns:
        (engine, remote_transport) - the transport is None when the remote link is disabled.
    """
    engine_config = engine_config or cfg.get_engine_config()
    asset_config = asset_config or cfg.get_asset_config()
    remote_config = remote_config or cfg.get_remote_config()

    assets = build_asset_provider(asset_config)
    audio = AudioTransport(assets, create_backend(audio_mode or cfg.AUDIO_MODE), volume=engine_config["volume"])

    transport = None
    channel = None
    if remote_config["REMOTE_ENABLED"]:
        transport = UdpRemoteTransport(
            remote_config["REMOTE_HOST"],
            remote_config["REMOTE_PORT"],
            remote_config["REMOTE_LISTEN_PORT"],
            paired=remote_config["REMOTE_PAIRED"],
            heartbeat_interval=remote_config["REMOTE_HEARTBEAT_INTERVAL"],
            heartbeat_timeout=remote_config["REMOTE_HEARTBEAT_TIMEOUT"],
        )
        channel = RemoteControlChannel(transport)

    engine = SceneEngine(
        assets,
        audio_transport=audio,
        remote_channel=channel,
        renderer=renderer or LoggingRenderer(every=int(engine_config["fps"])),
        night_density=engine_config["night_density"],
        day_density=engine_config["day_density"],
        brightness=engine_config["brightness"],
        night_mode=engine_config["night_mode"],
    )
    return engine, transport


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a Flowfield ambient scene.")
    parser.add_argument("--scene", default=cfg.DEFAULT_SCENE, help="Scene to load (default: %(default)s)")
    parser.add_argument("--fps", type=float, default=cfg.FPS, help="Tick rate (default: %(default)s)")
    parser.add_argument("--brightness", type=float, default=None, help="Initial brightness 0..1")
    parser.add_argument("--night", dest="night", action="store_true", default=None, help="Force night mode")
    parser.add_argument("--day", dest="night", action="store_false", help="Force day mode")
    parser.add_argument("--no-remote", action="store_true", help="Disable the companion link")
    parser.add_argument("--audio-mode", choices=["pygame", "null"], default=None, help="Audio output (default: AUDIO_MODE)")
    parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, cfg.LOG_LEVEL, logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    engine_config = cfg.get_engine_config()
    engine_config["fps"] = args.fps
    if args.brightness is not None:
        engine_config["brightness"] = args.brightness
    if args.night is not None:
        engine_config["night_mode"] = args.night

    remote_config = cfg.get_remote_config()
    if args.no_remote:
        remote_config["REMOTE_ENABLED"] = False

    engine, transport = build_engine(engine_config, remote_config=remote_config, audio_mode=args.audio_mode)
    if transport is not None:
        try:
            transport.start()
        except OSError as e:
            print(f"{ColorText.YELLOW}⚠️ Companion link unavailable: {e}{ColorText.END}")
            transport = None

    print(f"{ColorText.BOLD}[Flowfield]{ColorText.END} Loading scene '{args.scene}' "
          f"(night mode: {engine.is_night}, {args.fps:g} fps)")
    engine.load_scene(args.scene)

    display_link = DisplayLink(engine.tick, fps=args.fps)
    display_link.start()
    print(f"{ColorText.GREEN}✅ Running. Press Ctrl+C to stop.{ColorText.END}")

    stop = threading.Event()
    try:
        stop.wait(args.duration)
    except KeyboardInterrupt:
        pass
    finally:
        print(f"{ColorText.BOLD}[Flowfield]{ColorText.END} Shutting down "
              f"({display_link.ticks} ticks, {display_link.skipped} skipped)")
        display_link.stop()
        engine.close()
        if transport is not None:
            transport.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
