import asyncio
import logging
import threading
import typing

import mido

import polyseq.constants
import polyseq.midi_utils
import polyseq.pitch


logger = logging.getLogger(__name__)


class MidiToneSink:

	"""
	A tone sink that plays triggered corners on a MIDI output port.

	Frequencies are rounded to the nearest MIDI note and volume becomes
	velocity. The matching note-off is scheduled on the running asyncio loop
	when there is one, otherwise on a timer thread, so ``play()`` never blocks.
	"""

	def __init__ (self, device_name: typing.Optional[str] = None, channel: int = 0, port: typing.Optional[typing.Any] = None) -> None:

		"""
		Open ``device_name`` (or use an already-open ``port``).

		When no port can be opened the sink stays silent and logs once.
		"""

		self.channel = channel
		self.device_name = device_name
		self._port = port

		if self._port is None:
			name, self._port = polyseq.midi_utils.select_output_device(device_name)
			self.device_name = name

		if self._port is None:
			logger.warning("MIDI tone sink has no output port - notes will be dropped")


	@property
	def connected (self) -> bool:
		return self._port is not None


	def play (self, volume: float, frequency: float, duration: float) -> None:

		"""
		Send a note-on now and a note-off after ``duration`` seconds.
		"""

		if volume <= polyseq.constants.SILENCE_THRESHOLD or self._port is None:
			return

		note = polyseq.pitch.frequency_to_midi(frequency)

		if note is None or not 0 <= note <= 127:
			return

		velocity = polyseq.midi_utils.volume_to_velocity(volume)

		if not self._send(mido.Message("note_on", channel=self.channel, note=note, velocity=velocity)):
			return

		self._schedule_note_off(note, duration)


	def _schedule_note_off (self, note: int, duration: float) -> None:

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			timer = threading.Timer(duration, self._note_off, args=(note,))
			timer.daemon = True
			timer.start()
			return

		loop.call_later(duration, self._note_off, note)


	def _note_off (self, note: int) -> None:
		self._send(mido.Message("note_off", channel=self.channel, note=note, velocity=0))


	def _send (self, message: mido.Message) -> bool:

		if self._port is None:
			return False

		try:
			self._port.send(message)

		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")
			return False

		return True


	def close (self) -> None:

		"""
		Silence any hanging notes and close the port.
		"""

		if self._port is None:
			return

		try:
			self._port.panic()
			self._port.close()

		except Exception:
			logger.exception("Failed to close MIDI output")

		self._port = None
