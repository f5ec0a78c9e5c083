"""Timing, geometry and trigger constants.

Everything that has to agree between real-time playback, hit testing and
MIDI export lives here:

- `TICKS_PER_BEAT = 480` - the one tick resolution used for note lengths and
  for the exported file header.
- `BEATS_PER_MEASURE = 4` - polygons rotate once every `measures * 4` beats.
- `TRIGGER_ANGLE` - the stationary reference line (straight up on screen).
- `DETECTION_TOLERANCE` / `FIRE_TOLERANCE` - the 12 degree highlight band and
  the tighter 4 degree gate that actually fires a note.
"""

import math


TICKS_PER_BEAT = 480
BEATS_PER_MEASURE = 4

TWO_PI = 2 * math.pi
TRIGGER_ANGLE = 1.5 * math.pi
DETECTION_TOLERANCE = math.radians(12)
FIRE_TOLERANCE = math.radians(4)

# Elapsed time starts slightly negative so nothing fires on the first frame
INITIAL_ELAPSED_SECONDS = -0.1

DEFAULT_BPM = 120.0
MIN_BPM = 1.0
DEFAULT_MASTER_VOLUME = 0.5

MIN_SIDES = 3
MIN_RADIUS = 5.0
MIN_MEASURES = 1
MAX_LENGTH_FACTOR = 0.95

DEFAULT_SIDES = 6
DEFAULT_RADIUS = 80.0
DEFAULT_NOTE = 261.63
DEFAULT_LENGTH_FACTOR = 0.2
DEFAULT_CORNER_VOLUME = 1.0
DEFAULT_STROKE_STYLE = "#00ff9d"
DEFAULT_FILL_STYLE = "rgba(0, 255, 157, 0.15)"

PATTERN_CHARS = ("A", "B", "C", "D")

# Audible band and silence threshold for the tone sink
MIN_AUDIBLE_FREQUENCY = 20.0
MAX_AUDIBLE_FREQUENCY = 10000.0
SILENCE_THRESHOLD = 0.001
MIN_NOTE_SECONDS = 0.01

# Radius allocation for new polygons
BASE_RADIUS = 40.0
RADIUS_STEP = 35.0

# Hit testing (pixels)
BODY_HIT_MARGIN = 10.0
CORNER_HIT_TOLERANCE = 15.0
HOVER_TOLERANCE = 6.0

EXPORT_VELOCITY = 64
