"""Rotating polygons, their corners and the A/B/C/D pattern bank.

A :class:`RotatingPolygon` owns its live geometry (sides, radius, corners,
style), four independent :class:`PatternState` slots, and the small state
machine that swaps the live geometry for another slot whenever a new
rotation cycle begins::

	sequence = ["A", "A", "B"]

	cycle 0 -> A, cycle 1 -> A, cycle 2 -> B, cycle 3 -> A, ...

Every edit goes through a setter that writes the live state back into the
active slot, and every copy between live state and slots is a deep value
copy, so the four slots never share corner objects.
"""

import dataclasses
import logging
import math
import typing

import polyseq.constants
import polyseq.geometry
import polyseq.pitch


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Corner:

	"""
	A polygon vertex and the note it plays when it crosses the trigger line.
	"""

	index: int
	note: float = polyseq.constants.DEFAULT_NOTE				# Hz, 0 = rest
	length_factor: float = polyseq.constants.DEFAULT_LENGTH_FACTOR	# share of the step duration, 0..0.95
	volume: float = polyseq.constants.DEFAULT_CORNER_VOLUME		# 0..1


	def copy (self) -> "Corner":
		return dataclasses.replace(self)


	def to_dict (self) -> typing.Dict[str, typing.Any]:
		return dataclasses.asdict(self)


	@classmethod
	def from_dict (cls, data: typing.Dict[str, typing.Any]) -> "Corner":

		"""
		Build a corner from stored data. Older data without a volume plays at full volume.
		"""

		volume = data.get("volume")

		return cls(
			index = int(data["index"]),
			note = float(data.get("note", polyseq.constants.DEFAULT_NOTE)),
			length_factor = float(data.get("length_factor", polyseq.constants.DEFAULT_LENGTH_FACTOR)),
			volume = polyseq.constants.DEFAULT_CORNER_VOLUME if volume is None else float(volume)
		)


@dataclasses.dataclass
class PatternState:

	"""
	One saved configuration (A, B, C or D) of a polygon's geometry and corners.
	"""

	sides: int
	radius: float
	corners: typing.List[Corner]
	stroke_style: str = polyseq.constants.DEFAULT_STROKE_STYLE
	fill_style: str = polyseq.constants.DEFAULT_FILL_STYLE


	@classmethod
	def default (cls, sides: int, radius: float, stroke_style: str = polyseq.constants.DEFAULT_STROKE_STYLE, fill_style: str = polyseq.constants.DEFAULT_FILL_STYLE) -> "PatternState":

		"""
		Create a pattern with ``sides`` middle-C corners.
		"""

		return cls(
			sides = sides,
			radius = radius,
			corners = [Corner(index=i) for i in range(sides)],
			stroke_style = stroke_style,
			fill_style = fill_style
		)


	def copy (self) -> "PatternState":

		"""
		Return an independent copy; corners are copied one by one.
		"""

		return PatternState(
			sides = self.sides,
			radius = self.radius,
			corners = [corner.copy() for corner in self.corners],
			stroke_style = self.stroke_style,
			fill_style = self.fill_style
		)


	def to_dict (self) -> typing.Dict[str, typing.Any]:
		return dataclasses.asdict(self)


	@classmethod
	def from_dict (cls, data: typing.Dict[str, typing.Any]) -> "PatternState":

		corners = [Corner.from_dict(c) for c in data.get("corners", [])]

		if not corners:
			corners = [Corner(index=i) for i in range(max(polyseq.constants.MIN_SIDES, int(data.get("sides", polyseq.constants.DEFAULT_SIDES))))]

		for i, corner in enumerate(corners):
			corner.index = i

		# The corner list is authoritative for the side count
		return cls(
			sides = len(corners),
			radius = max(polyseq.constants.MIN_RADIUS, float(data.get("radius", polyseq.constants.DEFAULT_RADIUS))),
			corners = corners,
			stroke_style = data.get("stroke_style", polyseq.constants.DEFAULT_STROKE_STYLE),
			fill_style = data.get("fill_style", polyseq.constants.DEFAULT_FILL_STYLE)
		)


@dataclasses.dataclass(frozen=True)
class PolygonSnapshot:

	"""
	An immutable copy of the values the MIDI exporter needs from a polygon.
	"""

	polygon_id: int
	name: str
	measures: int
	sides: int
	radius: float
	corners: typing.Tuple[Corner, ...]


	@property
	def rotation_duration_beats (self) -> float:
		return polyseq.geometry.rotation_duration_beats(self.measures)


	@property
	def note_duration_ticks (self) -> int:
		return polyseq.geometry.note_duration_ticks(self.rotation_duration_beats, self.sides)


def _clamp (value: float, low: float, high: float) -> float:
	return max(low, min(high, value))


class RotatingPolygon:

	"""
	A polygon that rotates once every ``measures`` bars and plays its corners.

	Geometry is evaluated on demand from elapsed seconds and the global tempo
	(both owned by the :class:`~polyseq.transport.Transport`), so the polygon
	itself only stores what a user edits plus the bookkeeping for pattern
	switching (``last_cycle_index``) and trigger edges (``was_hitting_line``).

	Renderers and input routers may write ``selected_corner_index`` and
	``hovered_corner_index`` directly; everything else goes through setters.
	"""

	def __init__ (
		self,
		polygon_id: int = 0,
		name: typing.Optional[str] = None,
		sides: int = polyseq.constants.DEFAULT_SIDES,
		radius: float = polyseq.constants.DEFAULT_RADIUS,
		measures: int = 1,
		volume: float = 1.0,
		stroke_style: str = polyseq.constants.DEFAULT_STROKE_STYLE,
		fill_style: str = polyseq.constants.DEFAULT_FILL_STYLE,
		line_width: float = 3
	) -> None:

		"""
		Create a polygon whose four pattern slots all start as the same default pattern.

		Parameters:
			polygon_id: Identifier used by the session and exporter.
			name: Display name (defaults to ``"Polygon #<id>"``).
			sides: Number of corners (at least 3).
			radius: Size in pixels; also selects the octave (see :mod:`polyseq.pitch`).
			measures: Bars per rotation (at least 1).
			volume: Per-polygon volume, 0..1.
			stroke_style: Opaque outline style, stored per pattern.
			fill_style: Opaque fill style, stored per pattern.
			line_width: Outline width for renderers.
		"""

		self.id = polygon_id
		self.name = name if name else f"Polygon #{polygon_id}"
		self.measures = max(polyseq.constants.MIN_MEASURES, math.floor(measures))
		self.volume = _clamp(volume, 0.0, 1.0)
		self.line_width = line_width

		default_state = PatternState.default(
			sides = max(polyseq.constants.MIN_SIDES, math.floor(sides)),
			radius = max(polyseq.constants.MIN_RADIUS, radius),
			stroke_style = stroke_style,
			fill_style = fill_style
		)

		self.patterns: typing.Dict[str, PatternState] = {
			char: default_state.copy() for char in polyseq.constants.PATTERN_CHARS
		}
		self.current_pattern_char = "A"
		self.sequence: typing.List[str] = ["A"]

		# Live geometry - replaced wholesale whenever a pattern loads
		self.sides = default_state.sides
		self.radius = default_state.radius
		self.stroke_style = default_state.stroke_style
		self.fill_style = default_state.fill_style
		self.corners: typing.List[Corner] = []
		self._apply_state(self.patterns["A"])

		self.last_cycle_index = -1
		self.was_hitting_line = False
		self.selected_corner_index: typing.Optional[int] = None
		self.hovered_corner_index: typing.Optional[int] = None
		self.assign_index = 0


	def __repr__ (self) -> str:
		return f"RotatingPolygon(id={self.id}, name={self.name!r}, sides={self.sides}, radius={self.radius}, pattern={self.current_pattern_char})"


	# ------------------------------------------------------------------
	# Pattern bank
	# ------------------------------------------------------------------

	def save_current_state_to (self, char: str) -> None:

		"""
		Copy the live geometry and corners into pattern slot ``char``.
		"""

		if char not in polyseq.constants.PATTERN_CHARS:
			raise ValueError(f"Unknown pattern slot {char!r}, expected one of {polyseq.constants.PATTERN_CHARS}")

		self.patterns[char] = self.live_state()


	def live_state (self) -> PatternState:

		"""
		Return an independent copy of the live geometry and corners.
		"""

		return PatternState(
			sides = self.sides,
			radius = self.radius,
			corners = [corner.copy() for corner in self.corners],
			stroke_style = self.stroke_style,
			fill_style = self.fill_style
		)


	def load_state_from (self, char: str) -> bool:

		"""
		Replace the live geometry with a copy of slot ``char`` and make it current.

		Unknown slots leave everything unchanged and return ``False``.
		"""

		state = self.patterns.get(char)

		if state is None:
			return False

		self._apply_state(state)
		self.current_pattern_char = char

		return True


	def _apply_state (self, state: PatternState) -> None:

		self.sides = state.sides
		self.radius = state.radius
		self.stroke_style = state.stroke_style
		self.fill_style = state.fill_style
		self.corners = [corner.copy() for corner in state.corners]


	def select_pattern (self, char: str) -> bool:

		"""
		Manually switch patterns: keep the current edits, then load ``char``.
		"""

		if char not in self.patterns:
			return False

		self.save_current_state_to(self.current_pattern_char)

		return self.load_state_from(char)


	def set_sequence (self, sequence: typing.Iterable[str]) -> None:

		"""
		Set the order in which patterns play, one per rotation.

		Characters outside A-D are dropped; an empty result falls back to
		``["A"]``. The cycle index is cleared so the change is picked up on
		the next timing update, even mid-playback.
		"""

		cleaned = [char.upper() for char in sequence if char.upper() in polyseq.constants.PATTERN_CHARS]

		self.sequence = cleaned if cleaned else ["A"]
		self.last_cycle_index = -1


	def set_sequence_text (self, text: str) -> None:

		"""
		Set the sequence from free text such as ``"aabD"``.
		"""

		self.set_sequence(list(text))


	def update_sequence (self, seconds: float, bpm: float) -> typing.Optional[str]:

		"""
		Advance the pattern state machine to the cycle containing ``seconds``.

		Only acts when a new cycle has started. The live state is flushed into
		the current slot first, so edits made during the finished cycle are
		kept, then the slot chosen by ``sequence[cycle % len(sequence)]`` is
		loaded if it differs from the current one.

		Returns:
			The newly loaded pattern character, or ``None`` if nothing changed.
		"""

		cycle = self.cycle_index(seconds, bpm)

		if cycle <= self.last_cycle_index:
			return None

		self.last_cycle_index = cycle
		self.save_current_state_to(self.current_pattern_char)

		next_char = self.sequence[cycle % len(self.sequence)]

		if next_char == self.current_pattern_char:
			return None

		self.load_state_from(next_char)
		logger.debug(f"{self.name}: cycle {cycle} -> pattern {next_char}")

		return next_char


	def reset_sequence (self) -> None:

		"""
		Return to the start of the sequence, as when the transport is reset.
		"""

		self.last_cycle_index = -1
		self.was_hitting_line = False
		self.load_state_from(self.sequence[0] if self.sequence else "A")


	# ------------------------------------------------------------------
	# Timing and geometry
	# ------------------------------------------------------------------

	@property
	def rotation_duration_beats (self) -> float:
		return polyseq.geometry.rotation_duration_beats(self.measures)


	def angle (self, seconds: float, bpm: float) -> float:

		"""
		Net rotation at ``seconds``, unbounded and increasing with time.
		"""

		return polyseq.geometry.rotation_angle(seconds, bpm, self.rotation_duration_beats)


	def corner_angle (self, index: int, seconds: float, bpm: float) -> float:
		return polyseq.geometry.corner_angle(self.angle(seconds, bpm), index, self.sides)


	def corner_position (self, index: int, seconds: float, bpm: float, center: polyseq.geometry.Point = (0.0, 0.0)) -> polyseq.geometry.Point:

		"""
		Screen position of corner ``index`` around ``center`` (normally the canvas midpoint).
		"""

		theta = self.corner_angle(index, seconds, bpm)

		return polyseq.geometry.corner_position(center, self.radius, theta)


	def cycle_index (self, seconds: float, bpm: float) -> int:
		return polyseq.geometry.cycle_index(seconds, bpm, self.rotation_duration_beats)


	def note_duration_seconds (self, bpm: float) -> float:
		return polyseq.geometry.note_duration_seconds(self.rotation_duration_beats, self.sides, bpm)


	def note_duration_ticks (self) -> int:
		return polyseq.geometry.note_duration_ticks(self.rotation_duration_beats, self.sides)


	# ------------------------------------------------------------------
	# Setters
	# ------------------------------------------------------------------

	def set_sides (self, n: float) -> None:

		"""
		Change the corner count, keeping existing corners and appending defaults.

		Values below 3 are clamped to 3 and fractions are floored. Growing
		appends middle-C corners; shrinking keeps the first ``n`` corners.
		"""

		new_count = max(polyseq.constants.MIN_SIDES, math.floor(n))

		if new_count == self.sides:
			return

		if new_count > self.sides:
			new_corners = self.corners + [Corner(index=i) for i in range(self.sides, new_count)]
		else:
			new_corners = self.corners[:new_count]

		for i, corner in enumerate(new_corners):
			corner.index = i

		self.sides = new_count
		self.corners = new_corners

		if self.selected_corner_index is not None and self.selected_corner_index >= self.sides:
			self.selected_corner_index = self.sides - 1

		self.save_current_state_to(self.current_pattern_char)


	def set_radius (self, r: float) -> None:

		self.radius = max(polyseq.constants.MIN_RADIUS, r)
		self.save_current_state_to(self.current_pattern_char)


	def set_measures (self, measures: float) -> None:

		"""
		Change the rotation length. Forces the pattern machine to re-evaluate.
		"""

		self.measures = max(polyseq.constants.MIN_MEASURES, math.floor(measures))
		self.last_cycle_index = -1


	def set_volume (self, volume: float) -> None:
		self.volume = _clamp(volume, 0.0, 1.0)


	def set_style (self, stroke_style: str, fill_style: typing.Optional[str] = None) -> None:

		self.stroke_style = stroke_style

		if fill_style is not None:
			self.fill_style = fill_style

		self.save_current_state_to(self.current_pattern_char)


	def rename (self, name: str) -> bool:

		"""
		Rename the polygon. Blank names are ignored.
		"""

		cleaned = name.strip()

		if not cleaned:
			return False

		self.name = cleaned

		return True


	def _target_corner (self, index: typing.Optional[int]) -> typing.Optional[Corner]:

		if index is None:
			index = self.selected_corner_index

		if index is None:
			return None

		if not 0 <= index < self.sides:
			raise ValueError(f"Corner index {index} out of range for {self.sides} sides")

		return self.corners[index]


	def set_corner_note (self, note: float, index: typing.Optional[int] = None) -> bool:

		"""
		Set a corner's note in Hz (0 is a rest). Defaults to the selected corner.
		"""

		corner = self._target_corner(index)

		if corner is None:
			return False

		corner.note = max(0.0, note)
		self.save_current_state_to(self.current_pattern_char)

		return True


	def set_corner_length (self, length_factor: float, index: typing.Optional[int] = None) -> bool:

		corner = self._target_corner(index)

		if corner is None:
			return False

		corner.length_factor = _clamp(length_factor, 0.0, polyseq.constants.MAX_LENGTH_FACTOR)
		self.save_current_state_to(self.current_pattern_char)

		return True


	def set_corner_volume (self, volume: float, index: typing.Optional[int] = None) -> bool:

		corner = self._target_corner(index)

		if corner is None:
			return False

		corner.volume = _clamp(volume, 0.0, 1.0)
		self.save_current_state_to(self.current_pattern_char)

		return True


	def select_corner (self, index: typing.Optional[int]) -> None:

		"""
		Select a corner for editing; note entry continues from it.
		"""

		if index is not None and not 0 <= index < self.sides:
			raise ValueError(f"Corner index {index} out of range for {self.sides} sides")

		self.selected_corner_index = index

		if index is not None:
			self.assign_index = index


	def assign_next_note (self, key: str) -> typing.Optional[float]:

		"""
		Step-entry: write the note for ``key`` into the next corner and advance.

		Returns the assigned frequency, or ``None`` for an unknown key.
		"""

		frequency = polyseq.pitch.note_for_key(key)

		if frequency is None:
			return None

		i = self.assign_index % self.sides
		self.corners[i].note = frequency
		self.selected_corner_index = i
		self.save_current_state_to(self.current_pattern_char)
		self.assign_index = (i + 1) % self.sides

		return frequency


	# ------------------------------------------------------------------
	# Hit testing
	# ------------------------------------------------------------------

	def hit_test (self, x: float, y: float, center: polyseq.geometry.Point = (0.0, 0.0)) -> bool:

		"""
		True if the point lies within the polygon's radius plus a small margin.
		"""

		return polyseq.geometry.distance((x, y), center) <= self.radius + polyseq.constants.BODY_HIT_MARGIN


	def hit_test_corner (
		self,
		x: float,
		y: float,
		seconds: float,
		bpm: float,
		center: polyseq.geometry.Point = (0.0, 0.0),
		tolerance: float = polyseq.constants.CORNER_HIT_TOLERANCE
	) -> typing.Optional[Corner]:

		"""
		Return the first corner within ``tolerance`` pixels of the point at time ``seconds``.
		"""

		for corner in self.corners:
			position = self.corner_position(corner.index, seconds, bpm, center)
			if polyseq.geometry.distance((x, y), position) <= tolerance:
				return corner

		return None


	def update_hover (
		self,
		x: float,
		y: float,
		seconds: float,
		bpm: float,
		center: polyseq.geometry.Point = (0.0, 0.0),
		tolerance: float = polyseq.constants.HOVER_TOLERANCE
	) -> typing.Optional[int]:

		corner = self.hit_test_corner(x, y, seconds, bpm, center, tolerance)
		self.hovered_corner_index = corner.index if corner is not None else None

		return self.hovered_corner_index


	# ------------------------------------------------------------------
	# Export
	# ------------------------------------------------------------------

	def snapshot (self) -> PolygonSnapshot:

		"""
		Freeze the live values the exporter reads.
		"""

		return PolygonSnapshot(
			polygon_id = self.id,
			name = self.name,
			measures = self.measures,
			sides = self.sides,
			radius = self.radius,
			corners = tuple(corner.copy() for corner in self.corners)
		)


	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""
		Serialise the polygon, including all four pattern slots.
		"""

		patterns = {char: state.to_dict() for char, state in self.patterns.items()}
		patterns[self.current_pattern_char] = self.live_state().to_dict()

		return {
			"id": self.id,
			"name": self.name,
			"measures": self.measures,
			"volume": self.volume,
			"sequence": "".join(self.sequence),
			"current_pattern": self.current_pattern_char,
			"patterns": patterns,
		}


	@classmethod
	def from_dict (cls, data: typing.Dict[str, typing.Any]) -> "RotatingPolygon":

		polygon = cls(
			polygon_id = int(data.get("id", 0)),
			name = data.get("name"),
			measures = int(data.get("measures", 1)),
			volume = float(data.get("volume", 1.0))
		)

		for char, state_data in data.get("patterns", {}).items():
			if char in polyseq.constants.PATTERN_CHARS:
				polygon.patterns[char] = PatternState.from_dict(state_data)

		polygon.set_sequence_text(str(data.get("sequence", "A")))
		polygon.load_state_from(data.get("current_pattern", polygon.sequence[0]))

		return polygon
