"""
Composition root and command line.

    python -m pytest tests/test_cli.py -v
"""

from conftest import RecordingRenderer

from flowfield.audio.backends import NullAudioBackend
from flowfield.cli.client import build_engine, parse_args
from flowfield.core import config as cfg


def _remote_off():
    remote_config = cfg.get_remote_config()
    remote_config["REMOTE_ENABLED"] = False
    return remote_config


class TestParseArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.scene == cfg.DEFAULT_SCENE
        assert args.night is None
        assert not args.no_remote

    def test_overrides(self):
        args = parse_args(["--scene", "rain", "--fps", "30", "--day", "--no-remote", "--audio-mode", "null"])
        assert args.scene == "rain"
        assert args.fps == 30.0
        assert args.night is False
        assert args.no_remote
        assert args.audio_mode == "null"


class TestBuildEngine:

    def test_headless_engine_without_remote(self, tmp_path):
        engine_config = cfg.get_engine_config()
        engine_config["night_mode"] = True
        renderer = RecordingRenderer()

        engine, transport = build_engine(engine_config, {"ASSET_DIR": str(tmp_path)}, _remote_off(),
                                         audio_mode="null", renderer=renderer)
        try:
            assert transport is None
            assert engine.remote is None
            assert isinstance(engine.audio.backend, NullAudioBackend)
            assert engine.is_night is True

            engine.load_scene("firefly")
            frame = engine.tick()
            assert frame.scene_name == "firefly"
            assert renderer.loaded == ["firefly"]
        finally:
            engine.close()

    def test_builtin_script_used_when_directory_is_empty(self, tmp_path):
        engine, _ = build_engine(cfg.get_engine_config(), {"ASSET_DIR": str(tmp_path)}, _remote_off(),
                                 audio_mode="null", renderer=RecordingRenderer())
        try:
            engine.load_scene("firefly")
            assert engine.loader.generation == 1
        finally:
            engine.close()
