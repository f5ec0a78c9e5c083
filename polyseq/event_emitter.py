"""State-change notifications for renderers, panels and tests.

The engine never calls into a presentation layer. Anything that needs to
follow the model registers a listener instead::

	session.on_event("pattern_change", lambda polygon, char: panel.refresh(polygon))

Events emitted by :class:`~polyseq.session.Session`:

- ``tick (frame)`` - after every frame, with a :class:`~polyseq.session.FrameResult`
- ``trigger (polygon, request)`` - an audible note was sent to the tone sink
- ``pattern_change (polygon, char)`` - a polygon loaded another pattern slot
- ``reset ()`` - the transport was rewound
- ``polygon_added (polygon)`` / ``polygon_removed (polygon)``
- ``selection (polygon_or_none)`` - the selected polygon changed
"""

import typing


CallbackType = typing.Callable[..., typing.Any]

EVENT_NAMES = frozenset({
	"tick",
	"trigger",
	"pattern_change",
	"reset",
	"polygon_added",
	"polygon_removed",
	"selection",
})


class EventEmitter:

	"""
	A synchronous observer registry for a fixed set of event names.
	"""

	def __init__ (self, event_names: typing.Iterable[str] = EVENT_NAMES) -> None:

		self._listeners: typing.Dict[str, typing.List[CallbackType]] = {name: [] for name in event_names}


	def _check (self, event_name: str) -> None:

		if event_name not in self._listeners:
			raise ValueError(f"Unknown event {event_name!r}. Available: {sorted(self._listeners)}")


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""
		Register a callback for an event name.
		"""

		self._check(event_name)
		self._listeners[event_name].append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		self._check(event_name)

		if callback not in self._listeners[event_name]:
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def emit (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""
		Call every listener for ``event_name`` in registration order.
		"""

		self._check(event_name)

		# Copy so listeners may unregister themselves while being called
		for callback in list(self._listeners[event_name]):
			callback(*args, **kwargs)


	def listener_count (self, event_name: str) -> int:

		self._check(event_name)

		return len(self._listeners[event_name])
