import threading
import typing

import mido
import pytest

import melodykeys.timeline


class FakeMidiOut:

	"""MIDI output stub that records what was sent."""

	def __init__ (self, name: str = "Dummy MIDI") -> None:

		self.name = name
		self.sent: typing.List[mido.Message] = []
		self.closed = False


	def send (self, message: mido.Message) -> None:

		"""Record an outgoing MIDI message."""

		self.sent.append(message)


	def close (self) -> None:

		"""Mark the fake port closed."""

		self.closed = True


# Module-level reference so tests can inspect the most recently opened port.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> list[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI", "Other MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	fake = FakeMidiOut(name)
	_current_fake_output = fake
	return fake


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use fake MIDI outputs for all tests that need it."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def no_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido so that no MIDI outputs exist."""

	monkeypatch.setattr(mido, "get_output_names", lambda: [])


def current_fake_output () -> typing.Optional[FakeMidiOut]:

	"""The port opened most recently through the patched mido."""

	return _current_fake_output


class RecordingSynth:

	"""SynthesizerChannel stub that records note calls as tuples."""

	def __init__ (self) -> None:

		self.calls: typing.List[typing.Tuple[str, int, int]] = []


	def note_on (self, pitch: int, velocity: int) -> None:

		self.calls.append(("on", pitch, velocity))


	def note_off (self, pitch: int, velocity: int) -> None:

		self.calls.append(("off", pitch, velocity))


class FakeDevice:

	"""
	SequencingDevice stub.

	Records every call in ``calls``.  ``fail_on`` names the method (or methods) that
	should raise.  :meth:`finish` fires the end-of-track callbacks, on a separate
	thread when ``threaded`` is True.
	"""

	def __init__ (self, fail_on: typing.Union[str, typing.Tuple[str, ...], None] = None) -> None:

		if isinstance(fail_on, str):
			fail_on = (fail_on,)

		self.fail_on: typing.Tuple[str, ...] = fail_on or ()
		self.calls: typing.List[str] = []
		self.callbacks: typing.List[typing.Callable[[], typing.Any]] = []
		self.timeline: typing.Optional[melodykeys.timeline.Timeline] = None
		self.close_threads: typing.List[threading.Thread] = []


	def _call (self, name: str) -> None:

		self.calls.append(name)

		if name in self.fail_on:
			raise RuntimeError(f"{name} failed")


	def open (self) -> None:

		self._call("open")


	def close (self) -> None:

		self.close_threads.append(threading.current_thread())
		self._call("close")


	def load_timeline (self, timeline: melodykeys.timeline.Timeline) -> None:

		self._call("load_timeline")
		self.timeline = timeline


	def start (self) -> None:

		self._call("start")


	def on_end_of_track (self, callback: typing.Callable[[], typing.Any]) -> None:

		self._call("on_end_of_track")
		self.callbacks.append(callback)


	def finish (self, threaded: bool = False) -> None:

		"""Deliver the end-of-track notification."""

		def fire () -> None:
			for callback in list(self.callbacks):
				callback()

		if not threaded:
			fire()
			return

		thread = threading.Thread(target=fire, name="fake-device")
		thread.start()
		thread.join()


@pytest.fixture
def synth () -> RecordingSynth:

	"""A synthesizer channel that records note calls."""

	return RecordingSynth()


@pytest.fixture
def fake_device () -> FakeDevice:

	"""A sequencing device that only plays when told to finish."""

	return FakeDevice()


@pytest.fixture
def make_device () -> typing.Callable[..., FakeDevice]:

	"""Factory for fake devices that fail on a given method."""

	return FakeDevice


@pytest.fixture
def fake_output () -> typing.Callable[[], typing.Optional[FakeMidiOut]]:

	"""Accessor for the port most recently opened through the patched mido."""

	return current_fake_output
