# constants.py
"""
Application-level constants.

These values are static and do not change between runs. They are
fundamental to the application's framework, such as rendering properties,
default window sizes, or core physics settings that are not part of the
user-facing particle settings.
"""
import math

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a fixed-size window (WINDOW_WIDTH x WINDOW_HEIGHT).
FULLSCREEN = False
WINDOW_WIDTH = 1200
WINDOW_HEIGHT = 600
FPS = 60
BACKGROUND_COLOR = (24, 24, 24) # Dark Gray
WINDOW_CAPTION = "Particle Links"

# --- Links ---
# Links are always white; only their alpha changes with distance.
LINK_RGB = (255, 255, 255)

# --- Particle Coloration ---
PARTICLE_SATURATION = 100
PARTICLE_LIGHTNESS = 100
# Lightness lost per unit of multiplier while the multiplier is above 1.
LIGHTNESS_PER_MULTIPLIER = 10

# --- Settings Resolution ---
# Value a caller may use to ask explicitly for the default of a setting.
UNSET_SENTINEL = -1
# Largest integer a double can represent exactly, used as "no upper bound".
MAX_SAFE_INTEGER = 2 ** 53 - 1
# Surface area (px^2) per particle when the amount is not configured.
AREA_PER_PARTICLE = 4000
# Configured speeds are in thousandths of a pixel per tick.
SPEED_SCALE = 1000
FULL_TURN = math.pi * 2
