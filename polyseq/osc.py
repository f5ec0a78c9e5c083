"""OSC output for triggered notes and OSC input for transport control.

``OscToneSink`` forwards every triggered corner to a synth (SuperCollider,
Pure Data, Max...) as a single message::

	/play <volume: float> <frequency: float> <duration: float>

``OscServer`` listens on a UDP port (default 9000) for transport control:

- ``/bpm <float>``: Set tempo
- ``/volume <float>``: Set master volume
- ``/play``, ``/pause``, ``/toggle``: Play state
- ``/reset``: Rewind the transport and all sequences
- ``/sequence/<polygon id> <string>``: Set a polygon's pattern sequence

Control messages are applied between frames by the asyncio loop that also
drives the player, so they never change state in the middle of a frame.
"""

import asyncio
import logging
import typing

import pythonosc.dispatcher
import pythonosc.osc_server
import pythonosc.udp_client

import polyseq.constants

if typing.TYPE_CHECKING:
	from polyseq.session import Session


logger = logging.getLogger(__name__)


class OscToneSink:

	"""Tone sink that sends ``/play volume frequency duration`` over UDP."""

	def __init__ (self, host: str = "127.0.0.1", port: int = 57120, address: str = "/play") -> None:

		self.host = host
		self.port = port
		self.address = address
		self._client = pythonosc.udp_client.SimpleUDPClient(host, port)


	def play (self, volume: float, frequency: float, duration: float) -> None:

		if volume <= polyseq.constants.SILENCE_THRESHOLD:
			return

		try:
			self._client.send_message(self.address, [float(volume), float(frequency), float(duration)])
		except Exception as e:
			logger.warning(f"OSC send error: {e}")


class OscServer:

	"""Async OSC server for controlling a session's transport."""

	def __init__ (self, session: "Session", receive_port: int = 9000, receive_host: str = "0.0.0.0") -> None:

		self._session = session
		self._receive_port = receive_port
		self._receive_host = receive_host

		self._server: typing.Optional[typing.Any] = None
		self._transport: typing.Optional[asyncio.BaseTransport] = None
		self._dispatcher = pythonosc.dispatcher.Dispatcher()

		self._dispatcher.map("/bpm", self._handle_bpm)
		self._dispatcher.map("/volume", self._handle_volume)
		self._dispatcher.map("/play", self._handle_play)
		self._dispatcher.map("/pause", self._handle_pause)
		self._dispatcher.map("/toggle", self._handle_toggle)
		self._dispatcher.map("/reset", self._handle_reset)
		self._dispatcher.map("/sequence/*", self._handle_sequence)


	@property
	def port (self) -> typing.Optional[int]:

		"""The bound UDP port once started (useful when started on port 0)."""

		if self._transport is None:
			return None

		return self._transport.get_extra_info("sockname")[1]  # type: ignore[no-any-return]


	async def start (self) -> None:

		"""Start listening."""

		self._server = pythonosc.osc_server.AsyncIOOSCUDPServer(
			(self._receive_host, self._receive_port),
			self._dispatcher,
			asyncio.get_running_loop()  # type: ignore[arg-type]
		)

		transport, _ = await self._server.create_serve_endpoint()
		self._transport = transport

		logger.info(f"OSC control listening on :{self.port}")


	async def stop (self) -> None:

		"""Stop the OSC server."""

		if self._transport:
			self._transport.close()
			self._transport = None
			logger.info("OSC server stopped")


	def map (self, address: str, handler: typing.Callable) -> None:

		"""Register a custom OSC handler."""

		self._dispatcher.map(address, handler)


	# Handlers

	def _handle_bpm (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			self._session.set_bpm(float(args[0]))
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC BPM argument: {args[0]}")

	def _handle_volume (self, address: str, *args: typing.Any) -> None:
		if not args:
			return
		try:
			self._session.set_master_volume(float(args[0]))
		except (ValueError, TypeError):
			logger.warning(f"Invalid OSC volume argument: {args[0]}")

	def _handle_play (self, address: str, *args: typing.Any) -> None:
		self._session.play()

	def _handle_pause (self, address: str, *args: typing.Any) -> None:
		self._session.pause()

	def _handle_toggle (self, address: str, *args: typing.Any) -> None:
		self._session.toggle()

	def _handle_reset (self, address: str, *args: typing.Any) -> None:
		self._session.reset()

	def _handle_sequence (self, address: str, *args: typing.Any) -> None:
		# address is like /sequence/2
		parts = address.split("/")
		if len(parts) < 3 or not args:
			return
		try:
			self._session.set_sequence(int(parts[2]), str(args[0]))
		except ValueError as e:
			logger.warning(f"Invalid OSC sequence message {address}: {e}")
