"""Pure time-to-angle math shared by playback, hit testing and export.

All functions are deterministic functions of elapsed seconds and tempo, so
the live frame loop, headless simulation and the MIDI exporter evaluate
exactly the same formulas.
"""

import math
import typing

import polyseq.constants


Point = typing.Tuple[float, float]


def rotation_duration_beats (measures: int) -> float:

	"""Beats for one full rotation of a polygon."""

	return float(measures * polyseq.constants.BEATS_PER_MEASURE)


def elapsed_beats (seconds: float, bpm: float) -> float:
	return (bpm / 60.0) * seconds


def rotation_angle (seconds: float, bpm: float, duration_beats: float) -> float:

	"""
	Net rotation in radians after ``seconds`` of playback.

	The angle is unbounded - it keeps growing with time rather than wrapping
	into ``[0, 2pi)`` - so it is strictly increasing for positive tempo.
	"""

	if duration_beats <= 0:
		return 0.0

	return (elapsed_beats(seconds, bpm) / duration_beats) * polyseq.constants.TWO_PI


def corner_phase (index: int, sides: int) -> float:

	"""Fraction of a rotation by which corner ``index`` trails corner 0."""

	return index / sides


def corner_angle (rotation: float, index: int, sides: int) -> float:

	"""Absolute angle of a corner given the polygon's current rotation."""

	return rotation - math.pi / 2 - corner_phase(index, sides) * polyseq.constants.TWO_PI


def corner_position (center: Point, radius: float, theta: float) -> Point:
	return (center[0] + math.cos(theta) * radius, center[1] + math.sin(theta) * radius)


def cycle_index (seconds: float, bpm: float, duration_beats: float) -> int:

	"""
	Number of complete rotations since playback started.

	Negative time counts as zero, so the pre-roll before ``t = 0`` belongs to
	cycle 0.
	"""

	if duration_beats <= 0:
		return 0

	return math.floor(elapsed_beats(max(0.0, seconds), bpm) / duration_beats)


def note_duration_seconds (duration_beats: float, sides: int, bpm: float) -> float:

	"""Time between two neighbouring corners crossing the trigger line."""

	return (duration_beats / sides) / bpm * 60.0


def round_half_up (value: float) -> int:

	"""Round to the nearest integer with exact halves going up (106.5 -> 107)."""

	return math.floor(value + 0.5)


def note_duration_ticks (duration_beats: float, sides: int) -> int:
	return round_half_up((duration_beats / sides) * polyseq.constants.TICKS_PER_BEAT)


def normalize_angle (theta: float) -> float:

	"""Wrap an angle into ``[0, 2pi)``."""

	wrapped = math.fmod(theta, polyseq.constants.TWO_PI)

	if wrapped < 0:
		wrapped += polyseq.constants.TWO_PI

	return wrapped


def angular_distance (theta: float, target: float) -> float:

	"""Shortest distance between two angles, in ``[0, pi]``."""

	diff = abs(normalize_angle(theta) - normalize_angle(target))

	if diff > math.pi:
		diff = polyseq.constants.TWO_PI - diff

	return diff


def distance (a: Point, b: Point) -> float:
	return math.hypot(a[0] - b[0], a[1] - b[1])
