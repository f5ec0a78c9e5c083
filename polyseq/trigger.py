import dataclasses
import logging
import typing

import polyseq.constants
import polyseq.pitch
import polyseq.polygon


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class ToneSink (typing.Protocol):

	"""
	Protocol for anything that can sound a note.

	Sinks are fire-and-forget: ``play()`` must return immediately, should not
	raise, and should treat a volume of 0.001 or less as silence.
	"""

	def play (self, volume: float, frequency: float, duration: float) -> None:

		"""
		Sound a note at ``frequency`` Hz for ``duration`` seconds.
		"""

		...


@dataclasses.dataclass(frozen=True)
class NoteRequest:

	"""
	The final audible parameters for one triggered corner.
	"""

	polygon_id: int
	corner_index: int
	volume: float
	frequency: float
	duration: float


	@property
	def audible (self) -> bool:

		"""
		True when the pitch is inside the audible band and the volume is above the silence threshold.

		Rests (note 0) fall out here because their frequency is 0.
		"""

		return (
			polyseq.constants.MIN_AUDIBLE_FREQUENCY < self.frequency < polyseq.constants.MAX_AUDIBLE_FREQUENCY
			and self.volume > polyseq.constants.SILENCE_THRESHOLD
		)


class TriggerDispatcher:

	"""
	Turns a corner crossing into a tone sink call.
	"""

	def __init__ (self, sink: typing.Optional[ToneSink] = None) -> None:

		self.sink = sink


	def note_request (self, polygon: polyseq.polygon.RotatingPolygon, corner: polyseq.polygon.Corner, bpm: float, master_volume: float) -> NoteRequest:

		"""
		Compute duration, octave-shifted frequency and combined volume for a corner.
		"""

		duration = max(polyseq.constants.MIN_NOTE_SECONDS, polygon.note_duration_seconds(bpm) * corner.length_factor)

		return NoteRequest(
			polygon_id = polygon.id,
			corner_index = corner.index,
			volume = master_volume * polygon.volume * corner.volume,
			frequency = polyseq.pitch.octave_map(corner.note, polygon.radius),
			duration = duration
		)


	def dispatch (self, polygon: polyseq.polygon.RotatingPolygon, corner: polyseq.polygon.Corner, bpm: float, master_volume: float) -> typing.Optional[NoteRequest]:

		"""
		Send the corner's note to the sink if it is audible.

		Returns:
			The request that was sent, or ``None`` if it was suppressed.
		"""

		request = self.note_request(polygon, corner, bpm, master_volume)

		if not request.audible:
			return None

		logger.debug(f"{polygon.name} corner {corner.index}: {request.frequency:.2f} Hz vol {request.volume:.3f} for {request.duration:.3f}s")

		if self.sink is not None:
			try:
				self.sink.play(request.volume, request.frequency, request.duration)

			except Exception:
				logger.exception(f"Tone sink failed to play {polygon.name} corner {corner.index}")

		return request
