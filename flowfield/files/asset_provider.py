# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import logging
import os
from typing import Dict, Iterable, Optional

import requests

from ..core.timeline.default_timeline import DEFAULT_FIREFLY_SCRIPT

logger = logging.getLogger(__name__)

# Extensions tried, in order, when a logical name has none
SCRIPT_EXTENSIONS = (".json",)
AUDIO_EXTENSIONS = (".wav", ".ogg", ".flac", ".mp3")
DEFAULT_EXTENSIONS = SCRIPT_EXTENSIONS + AUDIO_EXTENSIONS


class DirectoryAssetProvider:
    """Serves assets from a folder on disk, looking up `<name><ext>` for each candidate extension."""

    def __init__(self, root: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.root = root
        self.extensions = tuple(extensions)

    def _candidates(self, name: str):
        # Logical names are plain file stems; refuse anything that walks out of the root
        if os.path.basename(name) != name or name in ("", ".", ".."):
            return []
        if os.path.splitext(name)[1]:
            return [os.path.join(self.root, name)]
        return [os.path.join(self.root, name + ext) for ext in self.extensions]

    def get(self, name: str) -> Optional[bytes]:
        for path in self._candidates(name):
            if not os.path.isfile(path):
                continue
            try:
                with open(path, 'rb') as f:
                    return f.read()
            except IOError as e:
                logger.error(f"Error reading asset {path}: {e}")
                return None
        return None


class HttpAssetProvider:
    """Fetches `<base_url>/<name><ext>` over HTTP. Network errors and non-200 responses count as absent."""

    def __init__(self, base_url: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS, timeout: float = 5.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.extensions = tuple(extensions)
        self.timeout = timeout
        self.session = session or requests.Session()

    def get(self, name: str) -> Optional[bytes]:
        names = [name] if os.path.splitext(name)[1] else [name + ext for ext in self.extensions]
        for candidate in names:
            url = f"{self.base_url}/{candidate}"
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning(f"[Assets] Error fetching {url}: {e}")
                return None
            if response.status_code == 200:
                return response.content
            if response.status_code != 404:
                logger.warning(f"[Assets] {url} returned HTTP {response.status_code}")
        return None


class BuiltinAssetProvider:
    """Scripts compiled into the package, used as the last resort."""

    def __init__(self, assets: Optional[Dict[str, bytes]] = None):
        self.assets = assets if assets is not None else {
            "firefly_emotion_script": DEFAULT_FIREFLY_SCRIPT.encode("utf-8"),
        }

    def get(self, name: str) -> Optional[bytes]:
        return self.assets.get(name)


class ChainedAssetProvider:
    """Asks each provider in turn and returns the first hit."""

    def __init__(self, *providers):
        self.providers = providers

    def get(self, name: str) -> Optional[bytes]:
        for provider in self.providers:
            try:
                data = provider.get(name)
            except Exception as e:
                logger.warning(f"[Assets] {type(provider).__name__} failed for '{name}': {e}")
                continue
            if data is not None:
                return data
        return None


def build_asset_provider(asset_config: dict):
    """Directory first, then the optional HTTP source, then the built-in scripts."""
    providers = [DirectoryAssetProvider(asset_config["ASSET_DIR"])]
    if asset_config.get("ASSET_URL"):
        providers.append(HttpAssetProvider(asset_config["ASSET_URL"], timeout=asset_config.get("ASSET_TIMEOUT", 5.0)))
    providers.append(BuiltinAssetProvider())
    return ChainedAssetProvider(*providers)
