"""Sequencing devices that play a :class:`~melodykeys.timeline.Timeline`.

A device owns the timing of playback.  Once started it runs on its own and
reports completion through the callbacks registered with
:meth:`SequencingDevice.on_end_of_track`, which may be called from a thread
other than the one that started playback.  :class:`melodykeys.scheduler.PlaybackScheduler`
takes care of getting that notification back to the interactive side.

:class:`MidoSequencer` is the stock implementation: it plays through a mido
output port on a daemon thread.
"""

import logging
import threading
import typing

import mido

import melodykeys.constants
import melodykeys.midi_utils
import melodykeys.timeline


logger = logging.getLogger(__name__)


EndOfTrackCallback = typing.Callable[[], typing.Any]


class DeviceUnavailableError (Exception):

	"""The sequencer or its output port could not be opened."""


@typing.runtime_checkable
class SequencingDevice (typing.Protocol):

	"""
	Protocol for devices that can play a timeline asynchronously.
	"""

	def open (self) -> None:

		"""Acquire the device.  Raises on failure."""

		...


	def close (self) -> None:

		"""Stop playback and release the device.  Safe to call repeatedly."""

		...


	def load_timeline (self, timeline: melodykeys.timeline.Timeline) -> None:

		"""Load the timeline to play on the next start()."""

		...


	def start (self) -> None:

		"""Start playback and return immediately."""

		...


	def on_end_of_track (self, callback: EndOfTrackCallback) -> None:

		"""Register a callback for the end of the loaded timeline."""

		...


class MidoSequencer:

	"""
	Plays timelines through a mido output port on a background thread.

	Example::

		sequencer = MidoSequencer(output_device_name="FluidSynth virtual port")
		sequencer.on_end_of_track(lambda: print("done"))
		sequencer.open()
		sequencer.load_timeline(melodykeys.timeline.compile_notation("4c5 4e5 2g5"))
		sequencer.start()
	"""

	def __init__ (self, output_device_name: typing.Optional[str] = None, bpm: float = melodykeys.constants.DEFAULT_BPM) -> None:

		"""
		Parameters:
			output_device_name: MIDI output port name.  When omitted the first
				available port is used.
			bpm: Playback tempo in quarter notes per minute.
		"""

		if bpm <= 0:
			raise ValueError("BPM must be positive")

		self.output_device_name = output_device_name
		self.bpm = bpm

		self.midi_out: typing.Any = None
		self.midi_file: typing.Optional[mido.MidiFile] = None

		self._callbacks: typing.List[EndOfTrackCallback] = []
		self._thread: typing.Optional[threading.Thread] = None
		self._stop_event = threading.Event()
		self._lock = threading.Lock()
		self.active_notes: typing.Set[typing.Tuple[int, int]] = set()


	@property
	def is_open (self) -> bool:

		return self.midi_out is not None


	@property
	def is_playing (self) -> bool:

		return self._thread is not None and self._thread.is_alive()


	def open (self) -> None:

		"""
		Open the output port.  Raises ``DeviceUnavailableError`` when no port can be opened.
		"""

		if self.midi_out is not None:
			return

		device_name, midi_out = melodykeys.midi_utils.select_output_device(self.output_device_name)

		if midi_out is None:
			raise DeviceUnavailableError(f"No MIDI output available (requested: {self.output_device_name!r})")

		self.output_device_name = device_name
		self.midi_out = midi_out
		self._stop_event.clear()

		logger.info(f"Sequencer opened on '{device_name}'")


	def close (self) -> None:

		"""
		Stop playback, silence sounding notes and close the port.

		May be called from an end-of-track callback, i.e. from the playback
		thread itself, in which case the thread is not joined.
		"""

		self._stop_event.set()
		self._callbacks = []

		thread = self._thread

		if thread is not None and thread is not threading.current_thread():
			thread.join(timeout=1.0)

			if thread.is_alive():
				logger.warning("Playback thread did not stop within 1 second")

		with self._lock:

			if self.midi_out is None:
				return

			for channel, note in list(self.active_notes):
				self._send_locked(mido.Message('note_off', channel=channel, note=note, velocity=0))

			self.active_notes.clear()

			try:
				self.midi_out.close()
			except Exception:
				logger.exception("Failed to close MIDI output")

			self.midi_out = None

		logger.info("Sequencer closed")


	def load_timeline (self, timeline: melodykeys.timeline.Timeline) -> None:

		"""Convert the timeline to a MIDI file ready for playback."""

		self.midi_file = timeline.to_midi_file(self.bpm)

		logger.debug(f"Loaded {timeline!r}")


	def on_end_of_track (self, callback: EndOfTrackCallback) -> None:

		self._callbacks.append(callback)


	def start (self) -> None:

		"""Start playback on a daemon thread and return immediately."""

		if self.midi_out is None:
			raise DeviceUnavailableError("Sequencer is not open")

		if self.midi_file is None:
			raise ValueError("No timeline loaded")

		if self.is_playing:
			raise RuntimeError("Sequencer is already playing")

		self._stop_event.clear()
		self._thread = threading.Thread(
			target = self._play,
			args   = (self.midi_file,),
			name   = "melodykeys-sequencer",
			daemon = True,
		)
		self._thread.start()

		logger.info("Playback started")


	def _play (self, midi_file: mido.MidiFile) -> None:

		"""Thread target: send each message after its delay, then notify."""

		# Iterating a MidiFile yields messages with time converted to seconds.
		for message in midi_file:

			if message.time > 0 and self._stop_event.wait(message.time):
				logger.info("Playback stopped")
				return

			if self._stop_event.is_set():
				logger.info("Playback stopped")
				return

			if message.is_meta:
				continue

			with self._lock:
				self._track(message)
				self._send_locked(message)

		logger.debug("End of track reached")

		for callback in list(self._callbacks):
			try:
				callback()
			except Exception:
				logger.exception("End-of-track callback failed")


	def _track (self, message: mido.Message) -> None:

		key = (message.channel, message.note)

		if message.type == 'note_on' and message.velocity > 0:
			self.active_notes.add(key)
		else:
			self.active_notes.discard(key)


	def _send_locked (self, message: mido.Message) -> None:

		if self.midi_out is None:
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")
