import math

import pytest

import polyseq.constants
import polyseq.polygon


def _polygon (**kwargs) -> polyseq.polygon.RotatingPolygon:

	"""Create a 120 BPM friendly polygon with overridable options."""

	options = {"polygon_id": 1, "sides": 4, "radius": 80, "measures": 1}
	options.update(kwargs)

	return polyseq.polygon.RotatingPolygon(**options)


# ---------------------------------------------------------------------------
# Construction and pattern bank
# ---------------------------------------------------------------------------

def test_new_polygon_has_four_identical_independent_patterns () -> None:

	"""All four slots start equal by value but share no corner objects."""

	polygon = _polygon(sides=5)

	assert set(polygon.patterns) == {"A", "B", "C", "D"}
	assert polygon.current_pattern_char == "A"
	assert polygon.sequence == ["A"]

	for state in polygon.patterns.values():
		assert state == polygon.patterns["A"]
		assert len(state.corners) == state.sides == 5

	assert polygon.patterns["A"].corners[0] is not polygon.patterns["B"].corners[0]
	assert polygon.corners[0] is not polygon.patterns["A"].corners[0]


def test_default_corners () -> None:

	"""New corners are middle C, length 0.2, full volume, indexed in order."""

	polygon = _polygon(sides=3)

	assert [c.index for c in polygon.corners] == [0, 1, 2]
	assert all(c.note == 261.63 and c.length_factor == 0.2 and c.volume == 1.0 for c in polygon.corners)


def test_constructor_clamps_invalid_values () -> None:

	"""Sides, radius, measures and volume are clamped, not rejected."""

	polygon = polyseq.polygon.RotatingPolygon(sides=1, radius=-3, measures=0, volume=4)

	assert polygon.sides == 3
	assert polygon.radius == 5
	assert polygon.measures == 1
	assert polygon.volume == 1.0
	assert polygon.name == "Polygon #0"


def test_save_then_load_gives_independent_copy () -> None:

	"""Mutating loaded corners never leaks back into the stored slot."""

	polygon = _polygon()
	polygon.set_corner_note(440.0, index=2)
	polygon.save_current_state_to("C")

	assert polygon.load_state_from("C")
	assert polygon.corners == polygon.patterns["C"].corners

	polygon.corners[2].note = 100.0

	assert polygon.patterns["C"].corners[2].note == 440.0


def test_load_unknown_pattern_is_a_no_op () -> None:

	"""Loading a slot that doesn't exist leaves state unchanged."""

	polygon = _polygon()
	before = polygon.live_state()

	assert polygon.load_state_from("Z") is False
	assert polygon.current_pattern_char == "A"
	assert polygon.live_state() == before


def test_save_to_unknown_slot_raises () -> None:

	"""Only A-D are valid slots."""

	polygon = _polygon()

	with pytest.raises(ValueError, match="Unknown pattern slot"):
		polygon.save_current_state_to("E")


def test_corner_without_volume_defaults_to_full () -> None:

	"""Stored corners from before per-corner volume load at volume 1.0."""

	corner = polyseq.polygon.Corner.from_dict({"index": 0, "note": 440.0, "length_factor": 0.5})

	assert corner.volume == 1.0


def test_select_pattern_keeps_edits () -> None:

	"""Switching by hand flushes the current slot first."""

	polygon = _polygon()
	polygon.corners[0].note = 330.0

	assert polygon.select_pattern("B")
	assert polygon.current_pattern_char == "B"
	assert polygon.corners[0].note == 261.63
	assert polygon.patterns["A"].corners[0].note == 330.0


# ---------------------------------------------------------------------------
# Setters
# ---------------------------------------------------------------------------

def test_set_sides_grow_preserves_existing_corners () -> None:

	"""Growing keeps corners 0..n-1 and appends defaults."""

	polygon = _polygon(sides=3)
	polygon.set_corner_note(440.0, index=0)
	polygon.set_corner_length(0.5, index=1)
	polygon.set_corner_volume(0.3, index=2)
	before = [c.copy() for c in polygon.corners]

	polygon.set_sides(6)

	assert polygon.sides == 6
	assert polygon.corners[:3] == before
	assert [c.index for c in polygon.corners] == list(range(6))
	assert all(c.note == 261.63 and c.length_factor == 0.2 and c.volume == 1.0 for c in polygon.corners[3:])
	assert polygon.patterns["A"].sides == 6
	assert len(polygon.patterns["A"].corners) == 6


def test_set_sides_shrink_keeps_prefix () -> None:

	"""Shrinking keeps exactly the first m corners and clamps selection."""

	polygon = _polygon(sides=6)
	polygon.set_corner_note(440.0, index=1)
	polygon.select_corner(5)

	polygon.set_sides(4.7)

	assert polygon.sides == 4
	assert [c.index for c in polygon.corners] == [0, 1, 2, 3]
	assert polygon.corners[1].note == 440.0
	assert polygon.selected_corner_index == 3


def test_set_sides_minimum_is_three () -> None:

	"""Fewer than three sides clamps to three."""

	polygon = _polygon(sides=5)
	polygon.set_sides(0)

	assert polygon.sides == 3
	assert len(polygon.corners) == 3


def test_set_sides_writes_only_active_slot () -> None:

	"""Inactive slots are untouched by setters."""

	polygon = _polygon(sides=4)
	polygon.set_sides(7)

	assert polygon.patterns["A"].sides == 7
	assert polygon.patterns["B"].sides == 4


def test_set_radius_clamps_and_persists () -> None:

	"""Radius never drops below 5 and is saved into the active slot."""

	polygon = _polygon()
	polygon.set_radius(-10)

	assert polygon.radius == 5
	assert polygon.patterns["A"].radius == 5

	polygon.set_radius(120)
	assert polygon.patterns["A"].radius == 120


def test_corner_setters_clamp () -> None:

	"""Length factor stays in [0, 0.95], volume in [0, 1], notes non-negative."""

	polygon = _polygon()

	polygon.set_corner_length(2.0, index=0)
	polygon.set_corner_volume(-1.0, index=1)
	polygon.set_corner_note(-50.0, index=2)

	assert polygon.corners[0].length_factor == 0.95
	assert polygon.corners[1].volume == 0.0
	assert polygon.corners[2].note == 0.0


def test_corner_setters_use_selection () -> None:

	"""Without an index, setters target the selected corner, or do nothing."""

	polygon = _polygon()

	assert polygon.set_corner_note(440.0) is False

	polygon.select_corner(3)
	assert polygon.set_corner_note(440.0) is True
	assert polygon.corners[3].note == 440.0


def test_corner_index_out_of_range_raises () -> None:

	"""A corner index beyond the side count is a programming error."""

	polygon = _polygon(sides=4)

	with pytest.raises(ValueError, match="out of range"):
		polygon.set_corner_note(440.0, index=4)


def test_assign_next_note_advances_and_wraps () -> None:

	"""Step entry writes successive corners and wraps around."""

	polygon = _polygon(sides=3)

	assert polygon.assign_next_note("a") == 440.0
	polygon.assign_next_note("e")
	polygon.assign_next_note("g")
	polygon.assign_next_note("c5")

	assert [c.note for c in polygon.corners] == [523.25, 329.63, 392.00]
	assert polygon.selected_corner_index == 0
	assert polygon.assign_index == 1
	assert polygon.assign_next_note("x") is None


def test_rename_ignores_blank () -> None:

	"""Blank names are rejected, others are trimmed."""

	polygon = _polygon()

	assert polygon.rename("   ") is False
	assert polygon.rename("  Pad ") is True
	assert polygon.name == "Pad"


def test_set_style_persists () -> None:

	"""Style edits belong to the active pattern."""

	polygon = _polygon()
	polygon.set_style("hsl(10, 90%, 65%)", "hsla(10, 90%, 65%, 0.15)")

	assert polygon.patterns["A"].stroke_style == "hsl(10, 90%, 65%)"
	assert polygon.patterns["B"].stroke_style == polyseq.constants.DEFAULT_STROKE_STYLE


# ---------------------------------------------------------------------------
# Sequence / pattern state machine
# ---------------------------------------------------------------------------

def test_sequence_filters_invalid_characters () -> None:

	"""Free text is uppercased and filtered; empty falls back to A."""

	polygon = _polygon()

	polygon.set_sequence_text("ab x d!")
	assert polygon.sequence == ["A", "B", "D"]

	polygon.set_sequence_text("xyz")
	assert polygon.sequence == ["A"]


def test_active_pattern_follows_sequence () -> None:

	"""After k cycles the active pattern is sequence[k mod L]."""

	polygon = _polygon()
	polygon.set_sequence_text("ABC")

	seen = []

	for k in range(7):
		polygon.update_sequence(k * 2.0 + 0.5, 120)
		seen.append(polygon.current_pattern_char)

	assert seen == ["A", "B", "C", "A", "B", "C", "A"]


def test_patterns_switch_only_at_cycle_boundaries () -> None:

	"""No switch happens between cycle increments."""

	polygon = _polygon()
	polygon.set_sequence_text("AB")

	assert polygon.update_sequence(0.0, 120) is None
	assert polygon.update_sequence(1.99, 120) is None
	assert polygon.current_pattern_char == "A"

	assert polygon.update_sequence(2.0, 120) == "B"
	assert polygon.update_sequence(3.5, 120) is None
	assert polygon.current_pattern_char == "B"
	assert polygon.last_cycle_index == 1


def test_switch_loads_slot_geometry () -> None:

	"""A switch replaces live sides, radius and corners with the slot's."""

	polygon = _polygon(sides=4)
	polygon.select_pattern("B")
	polygon.set_sides(5)
	polygon.set_radius(150)
	polygon.select_pattern("A")
	polygon.set_sequence_text("AB")

	polygon.update_sequence(0.0, 120)
	assert polygon.sides == 4

	polygon.update_sequence(2.0, 120)
	assert polygon.sides == 5
	assert polygon.radius == 150
	assert len(polygon.corners) == 5


def test_cycle_boundary_flushes_live_edits () -> None:

	"""Edits made during a cycle are saved into the slot that was playing."""

	polygon = _polygon()
	polygon.set_sequence_text("AB")
	polygon.update_sequence(0.0, 120)

	polygon.corners[0].note = 330.0
	polygon.update_sequence(2.0, 120)

	assert polygon.current_pattern_char == "B"
	assert polygon.patterns["A"].corners[0].note == 330.0
	assert polygon.corners[0].note == 261.63


def test_sequence_edit_forces_reevaluation () -> None:

	"""Changing the sequence mid-cycle takes effect on the next update."""

	polygon = _polygon()
	polygon.update_sequence(2.5, 120)
	assert polygon.last_cycle_index == 1

	polygon.set_sequence_text("C")
	assert polygon.last_cycle_index == -1

	assert polygon.update_sequence(2.6, 120) == "C"


def test_set_measures_resets_cycle () -> None:

	"""Changing the rotation length clears the cycle index."""

	polygon = _polygon()
	polygon.update_sequence(3.0, 120)
	polygon.set_measures(2.9)

	assert polygon.measures == 2
	assert polygon.last_cycle_index == -1
	assert polygon.rotation_duration_beats == 8.0


def test_reset_sequence_loads_first_pattern () -> None:

	"""Reset rewinds bookkeeping and loads the first sequence entry."""

	polygon = _polygon()
	polygon.set_sequence_text("BA")
	polygon.update_sequence(0.0, 120)
	polygon.update_sequence(2.0, 120)
	polygon.was_hitting_line = True

	assert polygon.current_pattern_char == "A"

	polygon.reset_sequence()

	assert polygon.current_pattern_char == "B"
	assert polygon.last_cycle_index == -1
	assert polygon.was_hitting_line is False


# ---------------------------------------------------------------------------
# Geometry and hit testing
# ---------------------------------------------------------------------------

def test_timing_properties () -> None:

	"""A 4-sided one-measure polygon steps every half second at 120 BPM."""

	polygon = _polygon(sides=4)

	assert polygon.rotation_duration_beats == 4.0
	assert polygon.note_duration_seconds(120) == pytest.approx(0.5)
	assert polygon.note_duration_ticks() == 480


def test_corner_position_starts_at_top () -> None:

	"""Corner 0 sits straight up from the center at t = 0."""

	polygon = _polygon(radius=50)
	x, y = polygon.corner_position(0, 0.0, 120, center=(200.0, 200.0))

	assert x == pytest.approx(200.0)
	assert y == pytest.approx(150.0)
	assert polygon.angle(1.0, 120) == pytest.approx(math.pi)


def test_hit_test_body_and_corner () -> None:

	"""Body hits extend 10px past the radius; corner hits use the corner position."""

	polygon = _polygon(radius=50)

	assert polygon.hit_test(0, 55)
	assert not polygon.hit_test(0, 61)

	corner = polygon.hit_test_corner(3, -50, 0.0, 120)
	assert corner is not None and corner.index == 0
	assert polygon.hit_test_corner(0, 0, 0.0, 120) is None


def test_update_hover () -> None:

	"""Hover records the corner under the pointer, or clears it."""

	polygon = _polygon(radius=50)

	assert polygon.update_hover(0, -48, 0.0, 120) == 0
	assert polygon.hovered_corner_index == 0

	polygon.update_hover(0, 0, 0.0, 120)
	assert polygon.hovered_corner_index is None


# ---------------------------------------------------------------------------
# Snapshots and serialisation
# ---------------------------------------------------------------------------

def test_snapshot_is_detached () -> None:

	"""Later edits don't change a snapshot."""

	polygon = _polygon()
	snapshot = polygon.snapshot()

	polygon.set_corner_note(440.0, index=0)
	polygon.set_sides(8)

	assert snapshot.sides == 4
	assert snapshot.corners[0].note == 261.63
	assert snapshot.note_duration_ticks == 480


def test_dict_round_trip_keeps_all_slots () -> None:

	"""Serialised polygons restore every pattern slot and the sequence."""

	polygon = _polygon(name="Keys")
	polygon.set_corner_note(440.0, index=1)
	polygon.select_pattern("D")
	polygon.set_sides(3)
	polygon.select_pattern("A")
	polygon.set_sequence_text("AD")

	restored = polyseq.polygon.RotatingPolygon.from_dict(polygon.to_dict())

	assert restored.name == "Keys"
	assert restored.sequence == ["A", "D"]
	assert restored.patterns["A"] == polygon.patterns["A"]
	assert restored.patterns["D"].sides == 3
	assert restored.corners[1].note == 440.0


def test_from_dict_repairs_side_count () -> None:

	"""The corner list decides the side count when stored data disagrees."""

	state = polyseq.polygon.PatternState.from_dict({
		"sides": 6,
		"radius": 40,
		"corners": [{"index": 0, "note": 440.0}, {"index": 5, "note": 0}, {"index": 9, "note": 220.0}],
	})

	assert state.sides == 3
	assert [c.index for c in state.corners] == [0, 1, 2]
