import dataclasses
import logging
import typing

import mido

import melodykeys.constants
import melodykeys.constants.velocity


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class SynthesizerChannel (typing.Protocol):

	"""
	Protocol for anything that can sound a note immediately.
	"""

	def note_on (self, pitch: int, velocity: int) -> None:

		"""Start sounding a note."""

		...


	def note_off (self, pitch: int, velocity: int) -> None:

		"""Stop sounding a note."""

		...


def _check_controller_value (name: str, value: int) -> None:

	"""Raise ValueError unless value fits in a MIDI data byte."""

	if not melodykeys.constants.velocity.MIN_VALUE <= value <= melodykeys.constants.velocity.MAX_VALUE:
		raise ValueError(f"{name} must be between 0 and 127, got {value}")


@dataclasses.dataclass
class ChannelState:

	"""
	Playback parameters of one logical output channel.

	A single instance is shared by the keyboard controller and the timeline
	builder.  It is passed to them explicitly so several channels can be
	used side by side.
	"""

	num: int = 0
	velocity: int = melodykeys.constants.velocity.DEFAULT_VELOCITY
	pressure: int = melodykeys.constants.velocity.DEFAULT_PRESSURE
	bend: int = melodykeys.constants.velocity.DEFAULT_BEND
	reverb: int = melodykeys.constants.velocity.DEFAULT_REVERB

	def __post_init__ (self) -> None:

		if not melodykeys.constants.MIN_MIDI_CHANNEL <= self.num <= melodykeys.constants.MAX_MIDI_CHANNEL:
			raise ValueError(f"Channel number must be between 0 and 15, got {self.num}")

		for name in ("velocity", "pressure", "bend", "reverb"):
			_check_controller_value(name, getattr(self, name))


	def set_velocity (self, value: int) -> None:

		"""Set the note velocity used for new notes."""

		_check_controller_value("velocity", value)
		self.velocity = value


	def set_pressure (self, value: int) -> None:

		"""Set the channel pressure value."""

		_check_controller_value("pressure", value)
		self.pressure = value


	def set_bend (self, value: int) -> None:

		"""Set the pitch bend value (64 = centre)."""

		_check_controller_value("bend", value)
		self.bend = value


	def set_reverb (self, value: int) -> None:

		"""Set the reverb send value."""

		_check_controller_value("reverb", value)
		self.reverb = value


class MidoChannel:

	"""
	A :class:`SynthesizerChannel` that sends straight to a mido output port.

	Messages go out on ``channel_state.num`` as soon as they are requested;
	nothing is queued, so presses and releases reach the port in the order
	they happen.
	"""

	def __init__ (self, port: typing.Any, channel_state: ChannelState) -> None:

		self.port = port
		self.channel_state = channel_state


	def note_on (self, pitch: int, velocity: int) -> None:

		"""Send a note_on message."""

		self._send(mido.Message('note_on', channel=self.channel_state.num, note=pitch, velocity=velocity))


	def note_off (self, pitch: int, velocity: int) -> None:

		"""Send a note_off message."""

		self._send(mido.Message('note_off', channel=self.channel_state.num, note=pitch, velocity=velocity))


	def _send (self, message: mido.Message) -> None:

		if self.port is None:
			return

		try:
			self.port.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")
