import dataclasses
import enum
import logging
import typing

import mido

import melodykeys.channel
import melodykeys.constants
import melodykeys.notation


logger = logging.getLogger(__name__)


class EventKind (enum.Enum):

	ON = "note_on"
	OFF = "note_off"


class ChordTiming (enum.Enum):

	"""
	How far the start tick moves after each chord.

	``LAST_NOTE`` steps by the duration of the last note written in the chord,
	playable or not.  This is the historical behaviour, so ``4c5+2e5`` lasts a
	half note and ``2c5+4e5`` only a quarter.

	``LONGEST_NOTE`` steps by the longest playable note, so the next chord
	never starts while one of this chord's notes is still sounding.  A chord
	with no playable notes takes no time.
	"""

	LAST_NOTE = "last_note"
	LONGEST_NOTE = "longest_note"


@dataclasses.dataclass(frozen=True)
class TimedEvent:

	"""
	A note on or note off at a tick position.
	"""

	pitch: int
	velocity: int
	channel: int
	kind: EventKind
	tick: int


class Timeline:

	"""
	An immutable, tick-ordered sequence of note events.

	Built by :func:`build`; ``resolution`` is the number of ticks per
	quarter note.
	"""

	def __init__ (self, events: typing.Iterable[TimedEvent], resolution: int = melodykeys.constants.DEFAULT_RESOLUTION) -> None:

		if resolution <= 0:
			raise ValueError("Resolution must be positive")

		# sorted() is stable: events at the same tick keep their build order.
		self.events: typing.Tuple[TimedEvent, ...] = tuple(sorted(events, key=lambda event: event.tick))
		self.resolution = resolution


	def __len__ (self) -> int:

		return len(self.events)


	def __iter__ (self) -> typing.Iterator[TimedEvent]:

		return iter(self.events)


	def __repr__ (self) -> str:

		return f"Timeline({len(self.events)} events, resolution={self.resolution})"


	@property
	def end_tick (self) -> int:

		"""Tick of the last event, or 0 for an empty timeline."""

		return self.events[-1].tick if self.events else 0


	def to_midi_file (self, bpm: float = melodykeys.constants.DEFAULT_BPM) -> mido.MidiFile:

		"""
		Render the timeline as a single-track standard MIDI file.

		Event ticks are absolute; the file stores deltas, so each message's
		``time`` is the gap since the previous one.  The track starts with a
		tempo meta message and ends with ``end_of_track``.
		"""

		mid = mido.MidiFile(type=0, ticks_per_beat=self.resolution)
		track = mido.MidiTrack()
		mid.tracks.append(track)

		track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm), time=0))

		last_tick = 0

		for event in self.events:
			track.append(mido.Message(
				event.kind.value,
				channel = event.channel,
				note = event.pitch,
				velocity = event.velocity,
				time = event.tick - last_tick
			))
			last_tick = event.tick

		track.append(mido.MetaMessage('end_of_track', time=0))

		return mid


	def save (self, filename: str, bpm: float = melodykeys.constants.DEFAULT_BPM) -> None:

		"""Write the timeline to a standard MIDI file."""

		logger.info(f"Saving timeline ({len(self.events)} events) to {filename}")
		self.to_midi_file(bpm).save(filename)


def _step_ticks (resolution: int, duration_divisor: int) -> int:

	"""Ticks covered by a note of the given divisor (0 when the divisor is not positive)."""

	if duration_divisor <= 0:
		return 0

	return resolution * 4 // duration_divisor


def build (
	chords: typing.Iterable[melodykeys.notation.Chord],
	resolution: int = melodykeys.constants.DEFAULT_RESOLUTION,
	channel: typing.Optional[melodykeys.channel.ChannelState] = None,
	chord_timing: ChordTiming = ChordTiming.LAST_NOTE
) -> Timeline:

	"""
	Compile parsed chords into a timeline of note on/off events.

	Every playable note of a chord starts at the chord's start tick and ends
	``resolution * 4 // duration_divisor`` ticks later, on ``channel.num`` at
	``channel.velocity``.  Unplayable notes produce no events and do not
	affect the other notes of their chord.  How far the start tick advances
	after each chord is set by ``chord_timing``.

	Parameters:
		chords: Output of :func:`melodykeys.notation.parse`.
		resolution: Ticks per quarter note.
		channel: Channel to play on (a default ``ChannelState`` when omitted).
		chord_timing: See :class:`ChordTiming`.
	"""

	if resolution <= 0:
		raise ValueError("Resolution must be positive")

	if channel is None:
		channel = melodykeys.channel.ChannelState()

	events: typing.List[TimedEvent] = []
	start_tick = 0

	for chord in chords:

		last_step = 0
		longest_step = 0

		for note in chord.notes:

			token = note.token
			step = _step_ticks(resolution, token.duration_divisor)
			last_step = step

			if not token.is_playable:
				logger.debug(f"Skipping unplayable note {note.source!r}")
				continue

			longest_step = max(longest_step, step)

			events.append(TimedEvent(
				pitch = token.midi_pitch,
				velocity = channel.velocity,
				channel = channel.num,
				kind = EventKind.ON,
				tick = start_tick
			))

			events.append(TimedEvent(
				pitch = token.midi_pitch,
				velocity = channel.velocity,
				channel = channel.num,
				kind = EventKind.OFF,
				tick = start_tick + step
			))

		if chord_timing is ChordTiming.LONGEST_NOTE:
			start_tick += longest_step
		else:
			start_tick += last_step

	timeline = Timeline(events, resolution)

	logger.debug(f"Built {timeline!r} ending at tick {timeline.end_tick}")

	return timeline


def compile_notation (
	text: str,
	resolution: int = melodykeys.constants.DEFAULT_RESOLUTION,
	channel: typing.Optional[melodykeys.channel.ChannelState] = None,
	chord_timing: ChordTiming = ChordTiming.LAST_NOTE
) -> Timeline:

	"""Parse ``text`` and build its timeline in one step."""

	return build(melodykeys.notation.parse(text), resolution=resolution, channel=channel, chord_timing=chord_timing)
