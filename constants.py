# constants.py

"""
Application Constants

This module defines static configuration values for the pygame host and the
render data the engine hands to it. Engine parameters that may change between
runs (grid shape, particle count, speeds) live in config.json instead.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Screen dimensions. The world spans [-WIDTH/2, WIDTH/2] x [-HEIGHT/2, HEIGHT/2].
WIDTH = 1536  # Pixels
HEIGHT = 900  # Pixels

# Framerate
FPS = 60  # Frames per second

# Window Title
TITLE = "Flow Field"

# Colors
BACKGROUND_COLOR = (51, 51, 51)           # RGB, 0.2 grey
FIELD_COLOR = (77, 77, 77)                # RGB, 0.3 grey
PARTICLE_COLOR = (255, 255, 255, 102)     # RGBA, white at 0.4 alpha

# Line widths
FIELD_LINE_WIDTH = 1  # Pixels
TRAIL_LINE_WIDTH = 1  # Pixels

# Diagnostics
LOG_EVERY_N_TICKS = 100
