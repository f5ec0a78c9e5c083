"""Pitch helpers: radius-dependent octave mapping, note names and MIDI pitch.

Smaller polygons sound higher. The octave multiplier is a step function of
radius expressed as a sorted breakpoint table::

	radius  < 20   x4
	radius  < 50   x2
	radius  < 100  x1
	radius  < 200  /2
	radius  < 250  /4
	otherwise      /8
"""

import bisect
import math
import typing


# (exclusive upper radius bound, frequency multiplier)
OCTAVE_BREAKPOINTS: typing.Tuple[typing.Tuple[float, float], ...] = (
	(20.0, 4.0),
	(50.0, 2.0),
	(100.0, 1.0),
	(200.0, 0.5),
	(250.0, 0.25),
)

OCTAVE_FALLBACK_MULTIPLIER = 0.125

_BREAKPOINT_BOUNDS = [bound for bound, _ in OCTAVE_BREAKPOINTS]

# One octave from middle C, plus the rest marker
NOTES: typing.Tuple[typing.Tuple[str, float], ...] = (
	("C", 261.63),
	("C#", 277.18),
	("D", 293.66),
	("D#", 311.13),
	("E", 329.63),
	("F", 349.23),
	("F#", 369.99),
	("G", 392.00),
	("G#", 415.30),
	("A", 440.00),
	("A#", 466.16),
	("B", 493.88),
	("C", 523.25),
	("pause", 0.0),
)

# Keyboard keys used for note entry
NOTE_KEYS: typing.Dict[str, float] = {
	"c4": 261.63,
	"c#": 277.18,
	"d": 293.66,
	"d#": 311.13,
	"e": 329.63,
	"f": 349.23,
	"f#": 369.99,
	"g": 392.00,
	"g#": 415.30,
	"a": 440.00,
	"a#": 466.16,
	"b": 493.88,
	"c5": 523.25,
}

_NOTE_NAME_TOLERANCE = 2.0


def octave_multiplier (radius: float) -> float:

	"""Return the frequency multiplier for a polygon of the given radius."""

	# bisect_right keeps the bounds exclusive: radius 20 falls in the "< 50" band
	slot = bisect.bisect_right(_BREAKPOINT_BOUNDS, radius)

	if slot >= len(OCTAVE_BREAKPOINTS):
		return OCTAVE_FALLBACK_MULTIPLIER

	return OCTAVE_BREAKPOINTS[slot][1]


def octave_map (frequency: float, radius: float) -> float:

	"""Shift ``frequency`` by the octave multiplier for ``radius``."""

	return frequency * octave_multiplier(radius)


def frequency_to_midi (frequency: float) -> typing.Optional[int]:

	"""
	Convert a frequency in Hz to the nearest MIDI note number.

	Returns ``None`` for rests (zero or negative frequency).
	"""

	if frequency <= 0:
		return None

	return round(69 + 12 * math.log2(frequency / 440.0))


def frequency_to_note_name (frequency: float) -> str:

	"""
	Name the closest table note, or ``"?"`` when nothing is within 2 Hz.

	Examples: 440.0 -> ``"A"``, 0 -> ``"pause"``, 300.0 -> ``"?"``.
	"""

	best_name = "?"
	best_diff = math.inf

	for name, note_frequency in NOTES:
		diff = abs(note_frequency - frequency)
		if diff < best_diff:
			best_diff = diff
			best_name = name

	return best_name if best_diff < _NOTE_NAME_TOLERANCE else "?"


def note_for_key (key: str) -> typing.Optional[float]:

	"""Look up the frequency bound to a note-entry key (``"c4"``, ``"f#"``...)."""

	return NOTE_KEYS.get(key.lower())
