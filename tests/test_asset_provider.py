"""
Asset lookup: directory, HTTP, built-in scripts and chaining.

    python -m pytest tests/test_asset_provider.py -v
"""

import requests

from flowfield.core.timeline import DEFAULT_FIREFLY_SCRIPT
from flowfield.files.asset_provider import (
    BuiltinAssetProvider, ChainedAssetProvider, DirectoryAssetProvider, HttpAssetProvider, build_asset_provider
)


class FakeResponse:
    def __init__(self, status_code, content=b""):
        self.status_code = status_code
        self.content = content


class FakeSession:
    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.routes.get(url, FakeResponse(404))


class TestDirectoryAssetProvider:

    def test_resolves_extension(self, tmp_path):
        (tmp_path / "rain_music.ogg").write_bytes(b"OggS")
        provider = DirectoryAssetProvider(str(tmp_path))
        assert provider.get("rain_music") == b"OggS"

    def test_script_extension_tried_first(self, tmp_path):
        (tmp_path / "rain.json").write_bytes(b"{}")
        (tmp_path / "rain.wav").write_bytes(b"RIFF")
        assert DirectoryAssetProvider(str(tmp_path)).get("rain") == b"{}"

    def test_explicit_extension(self, tmp_path):
        (tmp_path / "rain.wav").write_bytes(b"RIFF")
        assert DirectoryAssetProvider(str(tmp_path)).get("rain.wav") == b"RIFF"

    def test_missing_asset_is_none(self, tmp_path):
        assert DirectoryAssetProvider(str(tmp_path)).get("nothing") is None

    def test_refuses_paths_outside_root(self, tmp_path):
        root = tmp_path / "assets"
        root.mkdir()
        (tmp_path / "secret.json").write_bytes(b"{}")
        provider = DirectoryAssetProvider(str(root))
        assert provider.get("../secret") is None
        assert provider.get("..") is None
        assert provider.get("") is None


class TestHttpAssetProvider:

    def test_first_200_wins(self):
        session = FakeSession({"http://cdn/rain.wav": FakeResponse(200, b"RIFF")})
        provider = HttpAssetProvider("http://cdn/", session=session)
        assert provider.get("rain") == b"RIFF"
        assert session.urls == ["http://cdn/rain.json", "http://cdn/rain.wav"]

    def test_server_error_counts_as_absent(self):
        session = FakeSession({"http://cdn/rain.json": FakeResponse(500)})
        provider = HttpAssetProvider("http://cdn", extensions=(".json",), session=session)
        assert provider.get("rain") is None

    def test_network_error_counts_as_absent(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        assert HttpAssetProvider("http://cdn", session=session).get("rain") is None
        assert len(session.urls) == 1


class TestChainedAssetProvider:

    def test_falls_through_to_builtin(self, tmp_path):
        provider = ChainedAssetProvider(DirectoryAssetProvider(str(tmp_path)), BuiltinAssetProvider())
        assert provider.get("firefly_emotion_script") == DEFAULT_FIREFLY_SCRIPT.encode("utf-8")

    def test_directory_overrides_builtin(self, tmp_path):
        (tmp_path / "firefly_emotion_script.json").write_bytes(b'{"duration": 1, "keyPoints": []}')
        provider = build_asset_provider({"ASSET_DIR": str(tmp_path)})
        assert provider.get("firefly_emotion_script") == b'{"duration": 1, "keyPoints": []}'

    def test_failing_provider_is_skipped(self):
        class Broken:
            def get(self, name):
                raise OSError("boom")

        provider = ChainedAssetProvider(Broken(), BuiltinAssetProvider({"x": b"1"}))
        assert provider.get("x") == b"1"

    def test_build_includes_http_when_configured(self, tmp_path):
        provider = build_asset_provider({"ASSET_DIR": str(tmp_path), "ASSET_URL": "http://cdn", "ASSET_TIMEOUT": 1.0})
        kinds = [type(p).__name__ for p in provider.providers]
        assert kinds == ["DirectoryAssetProvider", "HttpAssetProvider", "BuiltinAssetProvider"]
