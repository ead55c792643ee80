import dataclasses
import logging
import os
import typing

import yaml

import melodykeys.channel
import melodykeys.constants
import melodykeys.constants.velocity
import melodykeys.timeline


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Settings:

	"""
	Runtime settings, read from the ``midi`` and ``sequencer`` sections of the config file.
	"""

	device_name: typing.Optional[str] = None
	channel: int = 0
	velocity: int = melodykeys.constants.velocity.DEFAULT_VELOCITY
	resolution: int = melodykeys.constants.DEFAULT_RESOLUTION
	bpm: float = melodykeys.constants.DEFAULT_BPM
	chord_timing: melodykeys.timeline.ChordTiming = melodykeys.timeline.ChordTiming.LAST_NOTE

	@classmethod
	def from_dict (cls, config: typing.Optional[typing.Dict[str, typing.Any]]) -> "Settings":

		"""
		Build settings from a parsed config mapping, filling gaps with defaults.

		Raises ``ValueError`` for values that cannot be used.
		"""

		config = config or {}

		if not isinstance(config, dict):
			raise ValueError(f"Config must be a mapping, got {type(config).__name__}")

		midi = config.get('midi') or {}
		sequencer = config.get('sequencer') or {}

		for section_name, section in (('midi', midi), ('sequencer', sequencer)):
			if not isinstance(section, dict):
				raise ValueError(f"Config section {section_name!r} must be a mapping, got {type(section).__name__}")

		timing_name = sequencer.get('chord_timing', melodykeys.timeline.ChordTiming.LAST_NOTE.value)

		try:
			chord_timing = melodykeys.timeline.ChordTiming(timing_name)
		except ValueError:
			choices = ", ".join(timing.value for timing in melodykeys.timeline.ChordTiming)
			raise ValueError(f"Unknown chord_timing {timing_name!r} (expected one of: {choices})") from None

		try:
			settings = cls(
				device_name = midi.get('device_name'),
				channel = int(midi.get('channel', 0)),
				velocity = int(midi.get('velocity', melodykeys.constants.velocity.DEFAULT_VELOCITY)),
				resolution = int(sequencer.get('resolution', melodykeys.constants.DEFAULT_RESOLUTION)),
				bpm = float(sequencer.get('bpm', melodykeys.constants.DEFAULT_BPM)),
				chord_timing = chord_timing
			)
		except (TypeError, ValueError) as e:
			raise ValueError(f"Invalid config value: {e}") from e

		if not melodykeys.constants.MIN_MIDI_CHANNEL <= settings.channel <= melodykeys.constants.MAX_MIDI_CHANNEL:
			raise ValueError(f"midi.channel must be between 0 and 15, got {settings.channel}")

		if not 0 <= settings.velocity <= 127:
			raise ValueError(f"midi.velocity must be between 0 and 127, got {settings.velocity}")

		if settings.resolution <= 0:
			raise ValueError("sequencer.resolution must be positive")

		if settings.bpm <= 0:
			raise ValueError("sequencer.bpm must be positive")

		return settings


	def channel_state (self) -> melodykeys.channel.ChannelState:

		"""A fresh channel state for the configured channel and velocity."""

		return melodykeys.channel.ChannelState(num=self.channel, velocity=self.velocity)


def load_config (config_path: str = 'melodykeys.yaml') -> Settings:

	"""
	Load settings from a YAML file.

	Raises ``ValueError`` when the file is not valid YAML or holds unusable values.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return Settings()

	with open(config_path, 'r') as f:
		try:
			config = yaml.safe_load(f)
		except yaml.YAMLError as e:
			raise ValueError(f"Cannot parse config file {config_path}: {e}") from e

	return Settings.from_dict(config)
