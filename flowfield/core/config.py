# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

import os
import dotenv

# Load environment variables
dotenv.load_dotenv()

# Tick cadence for the display-link driver
FPS = float(os.getenv("FLOWFIELD_FPS", "60"))

# Base particle density per lighting mode, scaled every tick by intensity and brightness
NIGHT_DENSITY = float(os.getenv("FLOWFIELD_NIGHT_DENSITY", "50"))
DAY_DENSITY = float(os.getenv("FLOWFIELD_DAY_DENSITY", "10"))

DEFAULT_BRIGHTNESS = float(os.getenv("FLOWFIELD_DEFAULT_BRIGHTNESS", "0.5"))
DEFAULT_VOLUME = float(os.getenv("FLOWFIELD_DEFAULT_VOLUME", "0.7"))
DEFAULT_SCENE = os.getenv("FLOWFIELD_DEFAULT_SCENE", "firefly")

# "auto" picks night mode from local time (18:00 - 06:00)
NIGHT_MODE = os.getenv("FLOWFIELD_NIGHT_MODE", "auto").lower()

# Asset lookup
ASSET_DIR = os.getenv("FLOWFIELD_ASSET_DIR", "assets")
ASSET_URL = os.getenv("FLOWFIELD_ASSET_URL", "")
ASSET_TIMEOUT = float(os.getenv("FLOWFIELD_ASSET_TIMEOUT", "5"))

# "pygame" plays through the local mixer, "null" runs silently
AUDIO_MODE = os.getenv("AUDIO_MODE", "pygame").lower()

# Companion device link
REMOTE_ENABLED = os.getenv("REMOTE_ENABLED", "True").lower() == "true"
REMOTE_HOST = os.getenv("REMOTE_HOST", "127.0.0.1")
REMOTE_PORT = int(os.getenv("REMOTE_PORT", "11112"))
REMOTE_LISTEN_PORT = int(os.getenv("REMOTE_LISTEN_PORT", "11113"))
REMOTE_PAIRED = os.getenv("REMOTE_PAIRED", "True").lower() == "true"
REMOTE_HEARTBEAT_INTERVAL = float(os.getenv("REMOTE_HEARTBEAT_INTERVAL", "1.0"))
REMOTE_HEARTBEAT_TIMEOUT = float(os.getenv("REMOTE_HEARTBEAT_TIMEOUT", "3.0"))

LOG_LEVEL = os.getenv("FLOWFIELD_LOG_LEVEL", "INFO").upper()


def get_engine_config():
    """
    Build the engine configuration dictionary based on environment variables.

    Returns:
        dict: Configuration dictionary for SceneEngine.
    """
    night_mode = None
    if NIGHT_MODE in ("true", "false"):
        night_mode = NIGHT_MODE == "true"

    return {
        "fps": FPS,
        "night_density": NIGHT_DENSITY,
        "day_density": DAY_DENSITY,
        "brightness": DEFAULT_BRIGHTNESS,
        "volume": DEFAULT_VOLUME,
        "night_mode": night_mode,
        "scene": DEFAULT_SCENE,
    }


def get_asset_config():
    """
    Build the asset provider configuration dictionary based on environment variables.

    Returns:
        dict: Configuration dictionary for the asset providers.
    """
    config = {
        "ASSET_DIR": ASSET_DIR,
    }
    # Remote assets are optional and only layered in when a base url is set
    if ASSET_URL:
        config.update({
            "ASSET_URL": ASSET_URL,
            "ASSET_TIMEOUT": ASSET_TIMEOUT,
        })
    return config


def get_remote_config():
    """
    Build the companion link configuration dictionary based on environment variables.

    Returns:
        dict: Configuration dictionary for the remote transport.
    """
    return {
        "REMOTE_ENABLED": REMOTE_ENABLED,
        "REMOTE_HOST": REMOTE_HOST,
        "REMOTE_PORT": REMOTE_PORT,
        "REMOTE_LISTEN_PORT": REMOTE_LISTEN_PORT,
        "REMOTE_PAIRED": REMOTE_PAIRED,
        "REMOTE_HEARTBEAT_INTERVAL": REMOTE_HEARTBEAT_INTERVAL,
        "REMOTE_HEARTBEAT_TIMEOUT": REMOTE_HEARTBEAT_TIMEOUT,
    }
