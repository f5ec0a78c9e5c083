import typing

import mido
import pytest

import polyseq.session


class RecordingSink:

	"""Tone sink that records every play() call."""

	def __init__ (self) -> None:

		"""Start with no recorded calls."""

		self.calls: typing.List[typing.Tuple[float, float, float]] = []

	def play (self, volume: float, frequency: float, duration: float) -> None:

		"""Record the call instead of sounding a note."""

		self.calls.append((volume, frequency, duration))


class FakeMidiOut:

	"""Minimal MIDI output stub that keeps sent messages."""

	def __init__ (self) -> None:

		"""Start with an empty message log."""

		self.sent: typing.List[mido.Message] = []
		self.closed = False
		self.panicked = False

	def send (self, message: mido.Message) -> None:

		"""Keep outgoing MIDI messages for assertions."""

		self.sent.append(message)

	def close (self) -> None:

		"""Mark the fake device as closed."""

		self.closed = True

	def panic (self) -> None:

		"""Mark that all-notes-off was requested."""

		self.panicked = True


# Module-level reference so tests can reach the most recently opened FakeMidiOut.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	_current_fake_output = FakeMidiOut()
	return _current_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use a fake MIDI output for tests that open ports."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def sink () -> RecordingSink:

	"""A fresh recording tone sink."""

	return RecordingSink()


@pytest.fixture
def session (sink: RecordingSink) -> polyseq.session.Session:

	"""A playing session at 120 BPM that records triggered notes."""

	return polyseq.session.Session(bpm=120, master_volume=0.5, sink=sink, seed=1)
