import logging

import polyseq.constants


logger = logging.getLogger(__name__)


class Transport:

	"""
	The shared clock: tempo, master volume, play state and elapsed time.

	Every polygon reads the same tempo - there is no per-polygon BPM. Values
	only change between frames, never while a frame is being processed.
	"""

	def __init__ (
		self,
		bpm: float = polyseq.constants.DEFAULT_BPM,
		master_volume: float = polyseq.constants.DEFAULT_MASTER_VOLUME,
		playing: bool = True
	) -> None:

		"""
		Initialize the transport. Elapsed time starts just before zero.
		"""

		self.bpm = polyseq.constants.DEFAULT_BPM
		self.master_volume = polyseq.constants.DEFAULT_MASTER_VOLUME
		self.playing = playing
		self.elapsed_seconds = polyseq.constants.INITIAL_ELAPSED_SECONDS

		self.set_bpm(bpm)
		self.set_master_volume(master_volume)


	def set_bpm (self, bpm: float) -> None:

		"""
		Change the tempo immediately. Values below 1 BPM are clamped to 1.
		"""

		self.bpm = max(polyseq.constants.MIN_BPM, float(bpm))
		logger.info(f"BPM set to {self.bpm:.2f}")


	def set_master_volume (self, volume: float) -> None:
		self.master_volume = max(0.0, min(1.0, float(volume)))


	def play (self) -> None:

		if not self.playing:
			self.playing = True
			logger.info("Transport playing")


	def pause (self) -> None:

		if self.playing:
			self.playing = False
			logger.info("Transport paused")


	def toggle (self) -> bool:

		"""
		Flip between playing and paused, returning the new state.
		"""

		if self.playing:
			self.pause()
		else:
			self.play()

		return self.playing


	def advance (self, delta_seconds: float) -> float:

		"""
		Move the clock forward by one frame's duration while playing.
		"""

		if self.playing and delta_seconds > 0:
			self.elapsed_seconds += delta_seconds

		return self.elapsed_seconds


	def reset (self) -> None:

		"""
		Rewind to the pre-roll position so nothing fires on the first frame.
		"""

		self.elapsed_seconds = polyseq.constants.INITIAL_ELAPSED_SECONDS
		logger.info("Transport reset")
