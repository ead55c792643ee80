import asyncio
import threading
import time

import pytest

import melodykeys.device
import melodykeys.scheduler
import melodykeys.timeline


def _wait_for (predicate, timeout: float = 2.0) -> bool:

	"""Poll until predicate() is true or the timeout expires."""

	deadline = time.monotonic() + timeout

	while time.monotonic() < deadline:
		if predicate():
			return True
		time.sleep(0.005)

	return predicate()


def test_open_without_outputs_raises (no_midi) -> None:

	"""No MIDI outputs means DeviceUnavailableError."""

	sequencer = melodykeys.device.MidoSequencer()

	with pytest.raises(melodykeys.device.DeviceUnavailableError):
		sequencer.open()

	assert not sequencer.is_open


def test_open_unknown_device_raises (patch_midi) -> None:

	"""Asking for a port that does not exist fails to open."""

	sequencer = melodykeys.device.MidoSequencer(output_device_name="Missing MIDI")

	with pytest.raises(melodykeys.device.DeviceUnavailableError):
		sequencer.open()


def test_open_picks_first_output (patch_midi, fake_output) -> None:

	"""Without a name the first available port is used."""

	sequencer = melodykeys.device.MidoSequencer()
	sequencer.open()

	assert sequencer.output_device_name == "Dummy MIDI"
	assert fake_output().name == "Dummy MIDI"

	sequencer.close()


def test_start_requires_open_and_timeline (patch_midi) -> None:

	"""start() fails before open() and before a timeline is loaded."""

	sequencer = melodykeys.device.MidoSequencer()

	with pytest.raises(melodykeys.device.DeviceUnavailableError):
		sequencer.start()

	sequencer.open()

	with pytest.raises(ValueError):
		sequencer.start()

	sequencer.close()


def test_invalid_bpm () -> None:

	with pytest.raises(ValueError):
		melodykeys.device.MidoSequencer(bpm=0)


def test_plays_timeline_and_notifies (patch_midi, fake_output) -> None:

	"""All notes are sent in order, then end-of-track fires on the playback thread."""

	sequencer = melodykeys.device.MidoSequencer(bpm=6000)
	done = threading.Event()
	threads: list[threading.Thread] = []

	def on_end () -> None:
		threads.append(threading.current_thread())
		done.set()

	sequencer.on_end_of_track(on_end)
	sequencer.open()
	sequencer.load_timeline(melodykeys.timeline.compile_notation("4c5+4e5 8g5"))
	sequencer.start()

	assert done.wait(2.0)
	assert threads[0] is not threading.current_thread()

	sent = [(m.type, m.note) for m in fake_output().sent]

	assert sent == [
		('note_on', 60),
		('note_on', 64),
		('note_off', 60),
		('note_off', 64),
		('note_on', 67),
		('note_off', 67),
	]

	sequencer.close()

	assert fake_output().closed


def test_close_from_end_of_track_callback (patch_midi, fake_output) -> None:

	"""Closing inside the end-of-track callback does not deadlock."""

	sequencer = melodykeys.device.MidoSequencer(bpm=6000)
	done = threading.Event()

	def on_end () -> None:
		sequencer.close()
		done.set()

	sequencer.on_end_of_track(on_end)
	sequencer.open()
	sequencer.load_timeline(melodykeys.timeline.compile_notation("8c5"))
	sequencer.start()

	assert done.wait(2.0)
	assert not sequencer.is_open
	assert fake_output().closed


def test_close_stops_playback_and_silences_notes (patch_midi, fake_output) -> None:

	"""Closing mid-note sends a note_off and skips the end-of-track callback."""

	sequencer = melodykeys.device.MidoSequencer(bpm=30)
	ended = threading.Event()

	sequencer.on_end_of_track(ended.set)
	sequencer.open()
	sequencer.load_timeline(melodykeys.timeline.compile_notation("1c5 1e5"))
	sequencer.start()

	port = fake_output()

	assert _wait_for(lambda: len(port.sent) >= 1)

	sequencer.close()
	sequencer.close()

	assert [(m.type, m.note, m.velocity) for m in port.sent] == [
		('note_on', 60, 64),
		('note_off', 60, 0),
	]
	assert port.closed
	assert not sequencer.is_playing
	assert not ended.is_set()


@pytest.mark.asyncio
async def test_scheduler_with_mido_sequencer (patch_midi, fake_output) -> None:

	"""The scheduler plays through a real sequencer and re-enables the control at the end."""

	control = melodykeys.scheduler.ToggleControl()
	scheduler = melodykeys.scheduler.PlaybackScheduler(control, loop=asyncio.get_running_loop())
	sequencer = melodykeys.device.MidoSequencer(bpm=6000)

	assert scheduler.play(melodykeys.timeline.compile_notation("8c5 8d5"), sequencer)
	assert control.enabled is False

	await asyncio.wait_for(scheduler.wait_finished(), timeout=2.0)

	assert control.enabled is True
	assert not sequencer.is_open
	assert [m.note for m in fake_output().sent if m.type == 'note_on'] == [60, 62]


@pytest.mark.asyncio
async def test_scheduler_without_outputs (no_midi) -> None:

	"""An unavailable sequencer leaves the control enabled."""

	control = melodykeys.scheduler.ToggleControl()
	scheduler = melodykeys.scheduler.PlaybackScheduler(control, loop=asyncio.get_running_loop())

	assert scheduler.play(melodykeys.timeline.compile_notation("c5"), melodykeys.device.MidoSequencer()) is False
	assert control.enabled is True
