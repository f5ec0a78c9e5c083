import pytest

import polyseq.pitch


@pytest.mark.parametrize("radius, multiplier", [
	(5, 4.0),
	(10, 4.0),
	(19.99, 4.0),
	(20, 2.0),
	(30, 2.0),
	(49, 2.0),
	(50, 1.0),
	(99, 1.0),
	(100, 0.5),
	(199, 0.5),
	(200, 0.25),
	(249, 0.25),
	(250, 0.125),
	(300, 0.125),
])
def test_octave_multiplier_breakpoints (radius: float, multiplier: float) -> None:

	"""Each breakpoint is exclusive: a radius equal to a bound falls in the next band."""

	assert polyseq.pitch.octave_multiplier(radius) == multiplier


def test_octave_map_scales_frequency () -> None:

	"""The mapped frequency is the note times the radius multiplier."""

	assert polyseq.pitch.octave_map(440.0, 10) == 1760.0
	assert polyseq.pitch.octave_map(440.0, 80) == 440.0
	assert polyseq.pitch.octave_map(440.0, 300) == 55.0


def test_frequency_to_midi () -> None:

	"""A440 is MIDI 69; middle C rounds to 60; rests have no pitch."""

	assert polyseq.pitch.frequency_to_midi(440.0) == 69
	assert polyseq.pitch.frequency_to_midi(261.63) == 60
	assert polyseq.pitch.frequency_to_midi(880.0) == 81
	assert polyseq.pitch.frequency_to_midi(0) is None


def test_frequency_to_note_name () -> None:

	"""Names within 2 Hz resolve; anything else is '?'."""

	assert polyseq.pitch.frequency_to_note_name(440.0) == "A"
	assert polyseq.pitch.frequency_to_note_name(441.5) == "A"
	assert polyseq.pitch.frequency_to_note_name(0) == "pause"
	assert polyseq.pitch.frequency_to_note_name(300.0) == "?"


def test_note_for_key () -> None:

	"""Note-entry keys map to table frequencies, case-insensitively."""

	assert polyseq.pitch.note_for_key("c4") == 261.63
	assert polyseq.pitch.note_for_key("F#") == 369.99
	assert polyseq.pitch.note_for_key("h") is None
