# This software is licensed under a **dual-license model**
# For individuals and businesses earning **under $1M per year**, this software is licensed under the **MIT License**
# Businesses or organizations with **annual revenue of $1,000,000 or more** must obtain permission to use this software commercially.

from ..model.emotion_timeline import RGB, KeyPoint, Timeline

# Values used by the player when a timeline has no keypoints at all
DEFAULT_INTENSITY = 0.5
DEFAULT_COLOR_HEX = "#5D88F0"
DEFAULT_COLOR = RGB.from_hex(DEFAULT_COLOR_HEX)

# ==================== DEFAULT FIREFLY SCRIPT ====================

# Installed synchronously on every scene load
DEFAULT_FIREFLY_SCRIPT = """
{
    "name": "Firefly Dream",
    "description": "A calming journey through a firefly-filled forest, transitioning from excitement to peaceful slumber",
    "duration": 600,
    "keyPoints": [
        {"timeOffset": 0, "emotionIntensity": 0.3, "targetColorHex": "#5D88F0"},
        {"timeOffset": 60, "emotionIntensity": 0.5, "targetColorHex": "#7A9DF5"},
        {"timeOffset": 120, "emotionIntensity": 0.7, "targetColorHex": "#97B2FA"},
        {"timeOffset": 180, "emotionIntensity": 0.8, "targetColorHex": "#B4C7FF"},
        {"timeOffset": 240, "emotionIntensity": 0.9, "targetColorHex": "#D1DCFF"},
        {"timeOffset": 300, "emotionIntensity": 0.8, "targetColorHex": "#C3E8FF"},
        {"timeOffset": 360, "emotionIntensity": 0.7, "targetColorHex": "#A0E5FF"},
        {"timeOffset": 420, "emotionIntensity": 0.6, "targetColorHex": "#7DDAFF"},
        {"timeOffset": 480, "emotionIntensity": 0.4, "targetColorHex": "#5AC9F5"},
        {"timeOffset": 540, "emotionIntensity": 0.2, "targetColorHex": "#3BBAEB"}
    ]
}
"""

# Built without the parser; must stay equal to DEFAULT_FIREFLY_SCRIPT
DEFAULT_TIMELINE = Timeline(
    duration=600.0,
    key_points=(
        KeyPoint(0.0, 0.3, "#5D88F0"),
        KeyPoint(60.0, 0.5, "#7A9DF5"),
        KeyPoint(120.0, 0.7, "#97B2FA"),
        KeyPoint(180.0, 0.8, "#B4C7FF"),
        KeyPoint(240.0, 0.9, "#D1DCFF"),
        KeyPoint(300.0, 0.8, "#C3E8FF"),
        KeyPoint(360.0, 0.7, "#A0E5FF"),
        KeyPoint(420.0, 0.6, "#7DDAFF"),
        KeyPoint(480.0, 0.4, "#5AC9F5"),
        KeyPoint(540.0, 0.2, "#3BBAEB"),
    ),
    name="Firefly Dream",
    description="A calming journey through a firefly-filled forest, transitioning from excitement to peaceful slumber",
)
