"""Offline export of the arrangement as a Standard MIDI File.

The exporter replays the same timing model as live playback, but over a
synthetic timeline instead of the wall clock:

- The export covers ``lcm(measures of every polygon)`` bars, so every polygon
  completes a whole number of rotations.
- Each corner of each polygon plays once per rotation, at the tick where it
  would cross the trigger line.
- Pitches are octave-shifted by radius exactly as in playback.

The file is Type 1 with one track per polygon, each carrying a tempo event
for the global BPM, and a fixed resolution of 480 ticks per quarter note.

Export works on :class:`~polyseq.polygon.PolygonSnapshot` copies and never
touches live polygon or transport state, so it is safe during playback.
"""

import dataclasses
import functools
import io
import logging
import math
import typing

import mido

import polyseq.constants
import polyseq.geometry
import polyseq.pitch
import polyseq.polygon


logger = logging.getLogger(__name__)

_MIDI_PITCH_RANGE = range(0, 128)


@dataclasses.dataclass(frozen=True)
class ExportNote:

	"""
	One note in the exported timeline, in absolute ticks.
	"""

	track: int
	pitch: int
	start_tick: int
	duration_ticks: int
	velocity: int
	repetition: int
	corner_index: int


def lcm_of (values: typing.Iterable[int]) -> int:

	"""
	Least common multiple of ``values``; 1 for an empty input.
	"""

	return functools.reduce(math.lcm, values, 1)


def total_measures (snapshots: typing.Sequence[polyseq.polygon.PolygonSnapshot]) -> int:
	return lcm_of(snapshot.measures for snapshot in snapshots)


def polygon_notes (
	snapshot: polyseq.polygon.PolygonSnapshot,
	total_beats: float,
	track: int = 0,
	velocity: int = polyseq.constants.EXPORT_VELOCITY
) -> typing.List[ExportNote]:

	"""
	Lay out every non-rest corner of one polygon over ``total_beats``.

	Notes whose pitch falls outside the MIDI range are skipped with a warning.
	"""

	rotation_beats = snapshot.rotation_duration_beats
	repetitions = math.ceil(total_beats / rotation_beats)
	step_ticks = snapshot.note_duration_ticks
	notes: typing.List[ExportNote] = []

	for r in range(repetitions):

		for corner in snapshot.corners:

			if corner.note == 0:
				continue

			pitch = polyseq.pitch.frequency_to_midi(polyseq.pitch.octave_map(corner.note, snapshot.radius))

			if pitch is None:
				continue

			if pitch not in _MIDI_PITCH_RANGE:
				logger.warning(f"{snapshot.name}: corner {corner.index} pitch {pitch} is outside the MIDI range - skipped")
				continue

			start_beat = polyseq.geometry.corner_phase(corner.index, snapshot.sides) * rotation_beats + r * rotation_beats

			notes.append(ExportNote(
				track = track,
				pitch = pitch,
				start_tick = polyseq.geometry.round_half_up(start_beat * polyseq.constants.TICKS_PER_BEAT),
				duration_ticks = polyseq.geometry.round_half_up(step_ticks * corner.length_factor),
				velocity = velocity,
				repetition = r,
				corner_index = corner.index
			))

	return notes


class MidiExporter:

	"""
	Builds a MIDI file from polygon snapshots and a tempo.
	"""

	def __init__ (
		self,
		snapshots: typing.Sequence[polyseq.polygon.PolygonSnapshot],
		bpm: float,
		velocity: int = polyseq.constants.EXPORT_VELOCITY,
		channel: int = 0
	) -> None:

		self.snapshots = tuple(snapshots)
		self.bpm = bpm
		self.velocity = velocity
		self.channel = channel


	@classmethod
	def from_polygons (cls, polygons: typing.Iterable[polyseq.polygon.RotatingPolygon], bpm: float, **kwargs: typing.Any) -> "MidiExporter":

		"""
		Snapshot live polygons and create an exporter for them.
		"""

		return cls([polygon.snapshot() for polygon in polygons], bpm, **kwargs)


	@property
	def total_measures (self) -> int:
		return total_measures(self.snapshots)


	@property
	def total_beats (self) -> float:
		return float(self.total_measures * polyseq.constants.BEATS_PER_MEASURE)


	def notes (self) -> typing.List[ExportNote]:

		"""
		Every exported note across all tracks, in track order.
		"""

		notes: typing.List[ExportNote] = []

		for track, snapshot in enumerate(self.snapshots):
			notes.extend(polygon_notes(snapshot, self.total_beats, track=track, velocity=self.velocity))

		return notes


	def _build_track (self, snapshot: polyseq.polygon.PolygonSnapshot, notes: typing.Sequence[ExportNote]) -> mido.MidiTrack:

		track = mido.MidiTrack()
		track.append(mido.MetaMessage("track_name", name=snapshot.name, time=0))
		track.append(mido.MetaMessage("set_tempo", tempo=mido.bpm2tempo(self.bpm), time=0))

		# (tick, order, message): note-offs sort before note-ons at the same tick,
		# except zero-length notes whose off must follow their own on.
		events: typing.List[typing.Tuple[int, int, mido.Message]] = []

		for note in notes:
			end_tick = note.start_tick + note.duration_ticks
			events.append((note.start_tick, 1, mido.Message("note_on", channel=self.channel, note=note.pitch, velocity=note.velocity)))
			events.append((end_tick, 0 if note.duration_ticks > 0 else 2, mido.Message("note_off", channel=self.channel, note=note.pitch, velocity=0)))

		events.sort(key=lambda event: (event[0], event[1]))

		last_tick = 0

		for tick, _, message in events:
			message.time = tick - last_tick
			track.append(message)
			last_tick = tick

		track.append(mido.MetaMessage("end_of_track", time=0))

		return track


	def build (self) -> mido.MidiFile:

		"""
		Assemble the Type 1 file with one track per polygon.
		"""

		mid = mido.MidiFile(type=1, ticks_per_beat=polyseq.constants.TICKS_PER_BEAT)

		all_notes = self.notes()

		for index, snapshot in enumerate(self.snapshots):
			track_notes = [note for note in all_notes if note.track == index]
			mid.tracks.append(self._build_track(snapshot, track_notes))

		# Every tick above assumes 480 PPQ, whatever the library default is
		mid.ticks_per_beat = polyseq.constants.TICKS_PER_BEAT

		return mid


	def to_bytes (self) -> bytes:

		buffer = io.BytesIO()
		self.build().save(file=buffer)

		return buffer.getvalue()


	def save (self, filename: str) -> None:

		"""
		Write the file to disk. I/O errors propagate to the caller.
		"""

		mid = self.build()
		note_count = sum(1 for track in mid.tracks for message in track if message.type == "note_on")

		logger.info(f"Exporting {len(mid.tracks)} tracks ({note_count} notes, {self.total_measures} bars) to {filename}...")

		mid.save(filename)

		logger.info(f"Saved {filename}")
