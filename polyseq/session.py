"""The session: one explicit context object for a running sequencer.

A :class:`Session` owns the transport, the polygons, the radius allocator,
the trigger dispatcher and the event emitter. Frame drivers (the asyncio
player, a GUI loop, or :meth:`Session.simulate` in tests) call
:meth:`Session.tick` once per frame with the frame's duration; everything
else happens inside that call, strictly one polygon after another:

1. the transport advances elapsed time (only while playing),
2. each polygon's pattern machine checks for a new rotation cycle,
3. the intersection detector looks for a corner on the trigger line,
4. a rising edge inside the firing gate is dispatched to the tone sink.

Tempo and master volume are read once at the start of the frame, so a
change made by a listener takes effect on the next frame.
"""

import dataclasses
import logging
import random
import typing

import polyseq.constants
import polyseq.event_emitter
import polyseq.geometry
import polyseq.intersection
import polyseq.midi_export
import polyseq.polygon
import polyseq.radius_allocator
import polyseq.transport
import polyseq.trigger


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class FrameResult:

	"""
	What happened during one frame.

	Attributes:
		seconds: Elapsed transport time the frame was evaluated at.
		hits: Polygon id -> the corner inside the 12 degree band (for highlighting).
		triggered: Note requests sent to the tone sink this frame.
		pattern_changes: Polygon id -> pattern character loaded this frame.
		line_intensity: Suggested brightness for the trigger line.
	"""

	seconds: float
	hits: typing.Dict[int, polyseq.intersection.Intersection] = dataclasses.field(default_factory=dict)
	triggered: typing.List[polyseq.trigger.NoteRequest] = dataclasses.field(default_factory=list)
	pattern_changes: typing.Dict[int, str] = dataclasses.field(default_factory=dict)
	line_intensity: float = 0.2


class Session:

	"""
	Top-level controller for a set of rotating polygons sharing one clock.

	Example:
		```python
		session = polyseq.Session(bpm=120, sink=my_sink)
		session.add_default_polygons()

		for _ in range(600):
			session.tick(1 / 60)
		```
	"""

	def __init__ (
		self,
		bpm: float = polyseq.constants.DEFAULT_BPM,
		master_volume: float = polyseq.constants.DEFAULT_MASTER_VOLUME,
		sink: typing.Optional[polyseq.trigger.ToneSink] = None,
		playing: bool = True,
		seed: typing.Optional[int] = None,
		center: polyseq.geometry.Point = (0.0, 0.0)
	) -> None:

		"""
		Parameters:
			bpm: Global tempo.
			master_volume: Global volume, 0..1.
			sink: Tone sink for triggered notes (``None`` keeps the engine silent).
			playing: Whether the clock runs from the first frame.
			seed: Seed for the random defaults used by :meth:`add_polygon`.
			center: Canvas midpoint that polygons rotate around.
		"""

		self.transport = polyseq.transport.Transport(bpm=bpm, master_volume=master_volume, playing=playing)
		self.dispatcher = polyseq.trigger.TriggerDispatcher(sink)
		self.radius_allocator = polyseq.radius_allocator.RadiusAllocator()
		self.events = polyseq.event_emitter.EventEmitter()

		self.polygons: typing.List[polyseq.polygon.RotatingPolygon] = []
		self.center = center
		self.selected_polygon_id: typing.Optional[int] = None

		self._next_polygon_id = 1
		self._rng = random.Random(seed)


	@property
	def sink (self) -> typing.Optional[polyseq.trigger.ToneSink]:
		return self.dispatcher.sink


	@sink.setter
	def sink (self, sink: typing.Optional[polyseq.trigger.ToneSink]) -> None:
		self.dispatcher.sink = sink


	def on_event (self, event_name: str, callback: typing.Callable[..., typing.Any]) -> None:

		"""
		Register a listener (see :mod:`polyseq.event_emitter` for event names).
		"""

		self.events.on(event_name, callback)


	# ------------------------------------------------------------------
	# Polygons
	# ------------------------------------------------------------------

	def _random_style (self) -> typing.Tuple[str, str]:

		hue = self._rng.randrange(360)

		return f"hsl({hue}, 90%, 65%)", f"hsla({hue}, 90%, 65%, 0.15)"


	def add_polygon (
		self,
		name: typing.Optional[str] = None,
		sides: typing.Optional[int] = None,
		radius: typing.Optional[float] = None,
		measures: int = 1,
		volume: float = 1.0,
		stroke_style: typing.Optional[str] = None,
		fill_style: typing.Optional[str] = None
	) -> polyseq.polygon.RotatingPolygon:

		"""
		Create a polygon and add it to the session.

		Unspecified sides are picked at random from 3-7, an unspecified radius
		comes from the radius allocator, and an unspecified style gets a
		random hue.
		"""

		if sides is None:
			sides = self._rng.randrange(3, 8)

		if radius is None:
			radius = self.radius_allocator.next_radius()

		if stroke_style is None:
			stroke_style, random_fill = self._random_style()
			fill_style = fill_style if fill_style is not None else random_fill

		polygon = polyseq.polygon.RotatingPolygon(
			polygon_id = self._next_polygon_id,
			name = name,
			sides = sides,
			radius = radius,
			measures = measures,
			volume = volume,
			stroke_style = stroke_style,
			fill_style = fill_style if fill_style is not None else polyseq.constants.DEFAULT_FILL_STYLE
		)

		self._next_polygon_id += 1
		self.polygons.append(polygon)

		logger.info(f"Added {polygon.name} ({polygon.sides} sides, radius {polygon.radius:g})")
		self.events.emit("polygon_added", polygon)

		return polygon


	def add_default_polygons (self) -> typing.List[polyseq.polygon.RotatingPolygon]:

		"""
		Add the two demo polygons: a 6-sided lead and a 4-sided bass.
		"""

		return [
			self.add_polygon(name="Lead Synth", sides=6, radius=25),
			self.add_polygon(name="Bass", sides=4, radius=50),
		]


	def get_polygon (self, polygon_id: int) -> polyseq.polygon.RotatingPolygon:

		for polygon in self.polygons:
			if polygon.id == polygon_id:
				return polygon

		raise ValueError(f"Polygon {polygon_id} not found. Available: {[p.id for p in self.polygons]}")


	def remove_polygon (self, polygon_id: int) -> None:

		"""
		Remove a polygon and return its radius to the allocator.
		"""

		polygon = self.get_polygon(polygon_id)

		self.radius_allocator.recycle(polygon.radius)
		self.polygons.remove(polygon)

		if self.selected_polygon_id == polygon_id:
			self.deselect()

		logger.info(f"Removed {polygon.name}")
		self.events.emit("polygon_removed", polygon)


	def set_sequence (self, polygon_id: int, text: str) -> None:
		self.get_polygon(polygon_id).set_sequence_text(text)


	# ------------------------------------------------------------------
	# Transport
	# ------------------------------------------------------------------

	@property
	def bpm (self) -> float:
		return self.transport.bpm


	def set_bpm (self, bpm: float) -> None:
		self.transport.set_bpm(bpm)


	def set_master_volume (self, volume: float) -> None:
		self.transport.set_master_volume(volume)


	def play (self) -> None:
		self.transport.play()


	def pause (self) -> None:
		self.transport.pause()


	def toggle (self) -> bool:
		return self.transport.toggle()


	def reset (self) -> None:

		"""
		Rewind the clock and send every polygon back to the start of its sequence.
		"""

		self.transport.reset()

		for polygon in self.polygons:
			polygon.reset_sequence()

		self.events.emit("reset")


	# ------------------------------------------------------------------
	# Frame processing
	# ------------------------------------------------------------------

	def tick (self, delta_seconds: float) -> FrameResult:

		"""
		Process one frame of ``delta_seconds``.
		"""

		seconds = self.transport.advance(delta_seconds)
		bpm = self.transport.bpm
		master_volume = self.transport.master_volume
		playing = self.transport.playing

		result = FrameResult(seconds=seconds)

		for polygon in list(self.polygons):

			if playing:
				changed = polygon.update_sequence(seconds, bpm)

				if changed is not None:
					result.pattern_changes[polygon.id] = changed
					self.events.emit("pattern_change", polygon, changed)

			hit, fire = polyseq.intersection.check_trigger(polygon, seconds, bpm)

			if hit is None:
				continue

			result.hits[polygon.id] = hit

			if fire:
				request = self.dispatcher.dispatch(polygon, hit.corner, bpm, master_volume)

				if request is not None:
					result.triggered.append(request)
					self.events.emit("trigger", polygon, request)

		result.line_intensity = polyseq.intersection.line_intensity(list(result.hits.values()), len(self.polygons))
		self.events.emit("tick", result)

		return result


	def simulate (self, seconds: float, fps: float = 60.0) -> typing.List[FrameResult]:

		"""
		Run fixed-length frames covering ``seconds`` without a wall clock.
		"""

		if fps <= 0:
			raise ValueError("fps must be positive")

		frame = 1.0 / fps

		return [self.tick(frame) for _ in range(round(seconds * fps))]


	# ------------------------------------------------------------------
	# Selection and hit testing
	# ------------------------------------------------------------------

	@property
	def selected_polygon (self) -> typing.Optional[polyseq.polygon.RotatingPolygon]:

		if self.selected_polygon_id is None:
			return None

		for polygon in self.polygons:
			if polygon.id == self.selected_polygon_id:
				return polygon

		return None


	def select_polygon (self, polygon_id: int) -> polyseq.polygon.RotatingPolygon:

		"""
		Select a polygon for editing; its first corner is selected if none is.
		"""

		polygon = self.get_polygon(polygon_id)
		self.selected_polygon_id = polygon_id

		if polygon.selected_corner_index is None:
			polygon.select_corner(0)

		self.events.emit("selection", polygon)

		return polygon


	def deselect (self) -> None:

		self.selected_polygon_id = None

		for polygon in self.polygons:
			polygon.selected_corner_index = None

		self.events.emit("selection", None)


	def resize (self, width: float, height: float) -> None:

		"""
		Recentre polygons on a canvas of the given size.
		"""

		self.center = (width / 2, height / 2)


	def polygon_at (self, x: float, y: float) -> typing.Tuple[typing.Optional[polyseq.polygon.RotatingPolygon], typing.Optional[polyseq.polygon.Corner]]:

		"""
		Find what lies under a point, checking the smallest polygons first.

		Returns:
			``(polygon, corner)`` when a corner was hit, ``(polygon, None)`` for
			a polygon body, or ``(None, None)``.
		"""

		seconds = self.transport.elapsed_seconds

		for polygon in sorted(self.polygons, key=lambda p: p.radius):

			corner = polygon.hit_test_corner(x, y, seconds, self.transport.bpm, self.center)

			if corner is not None:
				return polygon, corner

			if polygon.hit_test(x, y, self.center):
				return polygon, None

		return None, None


	def click (self, x: float, y: float) -> typing.Optional[polyseq.polygon.RotatingPolygon]:

		"""
		Select whatever lies under a click; a clicked corner becomes the selected corner.
		"""

		polygon, corner = self.polygon_at(x, y)

		if polygon is None:
			return None

		self.select_polygon(polygon.id)

		for other in self.polygons:
			other.selected_corner_index = None

		if corner is not None:
			polygon.select_corner(corner.index)

		return polygon


	def update_hover (self, x: float, y: float, tolerance: float = polyseq.constants.CORNER_HIT_TOLERANCE) -> None:

		for polygon in self.polygons:
			polygon.update_hover(x, y, self.transport.elapsed_seconds, self.transport.bpm, self.center, tolerance)


	# ------------------------------------------------------------------
	# Export
	# ------------------------------------------------------------------

	def snapshot (self) -> typing.List[polyseq.polygon.PolygonSnapshot]:
		return [polygon.snapshot() for polygon in self.polygons]


	def exporter (self) -> polyseq.midi_export.MidiExporter:
		return polyseq.midi_export.MidiExporter(self.snapshot(), self.transport.bpm)


	def export_midi (self, filename: str = "polygons.mid") -> bool:

		"""
		Write the arrangement to a MIDI file.

		Failures are logged and reported as ``False``; live state is never
		touched, so the export can simply be retried.
		"""

		try:
			self.exporter().save(filename)

		except (OSError, ValueError) as e:
			logger.error(f"Failed to export MIDI file {filename}: {e}")
			return False

		return True
