"""Real-time frame loop.

Drives :meth:`polyseq.session.Session.tick` from the wall clock at a fixed
frame rate, the way an animation callback would in a browser. Each frame
passes the measured time since the previous frame, so a late frame simply
covers more time - the timing math is continuous in elapsed seconds and does
not accumulate drift from frame jitter.
"""

import asyncio
import logging
import signal
import time
import typing

import polyseq.osc
import polyseq.session


logger = logging.getLogger(__name__)


class Player:

	"""
	Runs a session in real time on an asyncio event loop.
	"""

	def __init__ (
		self,
		session: polyseq.session.Session,
		fps: float = 60.0,
		osc_server: typing.Optional[polyseq.osc.OscServer] = None,
		max_seconds: typing.Optional[float] = None
	) -> None:

		"""
		Parameters:
			session: The session to drive.
			fps: Target frames per second.
			osc_server: Optional OSC control server started and stopped with playback.
			max_seconds: Stop after this much wall-clock time (``None`` = run until stopped).
		"""

		if fps <= 0:
			raise ValueError("fps must be positive")

		self.session = session
		self.fps = fps
		self.osc_server = osc_server
		self.max_seconds = max_seconds

		self.running = False
		self.frame_count = 0
		self.task: typing.Optional[asyncio.Task] = None


	async def start (self) -> None:

		"""
		Start the OSC server (if any) and the frame loop as a background task.
		"""

		if self.running:
			return

		if self.osc_server is not None:
			await self.osc_server.start()

		self.running = True
		self.task = asyncio.create_task(self._run_loop())

		logger.info(f"Player started at {self.fps:g} fps")


	async def stop (self) -> None:

		"""
		Stop the frame loop and wait for it to finish.
		"""

		self.running = False

		if self.task is not None:
			await self.task
			self.task = None

		if self.osc_server is not None:
			await self.osc_server.stop()

		logger.info("Player stopped")


	async def _run_loop (self) -> None:

		frame_seconds = 1.0 / self.fps
		start_time = time.perf_counter()
		last_time = start_time
		next_frame_time = start_time

		while self.running:

			now = time.perf_counter()
			self.session.tick(now - last_time)
			last_time = now
			self.frame_count += 1

			if self.max_seconds is not None and now - start_time >= self.max_seconds:
				self.running = False
				break

			next_frame_time += frame_seconds
			sleep_time = next_frame_time - time.perf_counter()

			if sleep_time > 0:
				await asyncio.sleep(sleep_time)

			else:
				# Running behind: yield, and don't try to catch up on missed frames
				next_frame_time = time.perf_counter()
				await asyncio.sleep(0)


	def request_stop (self) -> None:

		"""
		Ask the frame loop to finish after the current frame. Safe to call from a signal handler.
		"""

		self.running = False


	async def run (self) -> None:

		"""
		Play until SIGINT/SIGTERM, :meth:`request_stop` or ``max_seconds``.
		"""

		await self.start()

		loop = asyncio.get_running_loop()
		signals = (signal.SIGINT, signal.SIGTERM)

		for sig in signals:
			loop.add_signal_handler(sig, self.request_stop)

		logger.info("Playing. Press Ctrl+C to stop.")

		try:
			if self.task is not None:
				await self.task

		finally:
			for sig in signals:
				loop.remove_signal_handler(sig)

			await self.stop()


	def play (self) -> None:

		"""
		Blocking entry point: run until interrupted.
		"""

		try:
			asyncio.run(self.run())

		except KeyboardInterrupt:
			pass
