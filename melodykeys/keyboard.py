"""On-screen piano keyboard: key regions, hit testing and note recording.

The keyboard is a row of rectangular key regions, each bound to one MIDI
pitch.  Pressing a key sounds the note on the synthesizer channel straight
away and appends it to the notation buffer as a quarter note, so
playing C, E then G writes ``" 4C5 4E5 4G5"`` - text that
:func:`melodykeys.notation.parse` reads back.  Rendering is left to the
interface layer; it only needs :attr:`KeyboardInputController.keys` and each
key's :attr:`Key.state`.
"""

import dataclasses
import enum
import logging
import typing

import melodykeys.buffer
import melodykeys.channel
import melodykeys.constants
import melodykeys.note_names


logger = logging.getLogger(__name__)


Point = typing.Tuple[int, int]

# Pitch classes of the white keys within an octave.
_WHITE_KEY_PITCH_CLASSES = (0, 2, 4, 5, 7, 9, 11)

# Black keys sit on the boundary after these white keys (counted from C), with
# the pitch class they play.
_BLACK_KEY_POSITIONS = ((1, 1), (2, 3), (4, 6), (5, 8), (6, 10))

# How far a black key is shifted left of the white key boundary it sits on.
_BLACK_KEY_OFFSET = 4


class KeyState (enum.Enum):

	OFF = "off"
	ON = "on"


@dataclasses.dataclass(eq=False)
class Key:

	"""
	A key's hit region, its pitch and whether it is held down.
	"""

	x: int
	y: int
	width: int
	height: int
	pitch: int
	is_black: bool = False
	state: KeyState = KeyState.OFF

	@property
	def is_on (self) -> bool:

		return self.state is KeyState.ON


	def contains (self, point: Point) -> bool:

		"""True when the point lies inside the key (right and bottom edges excluded)."""

		px, py = point

		return self.x <= px < self.x + self.width and self.y <= py < self.y + self.height


def build_piano_keys (octaves: int = 6, transpose: int = 24, key_width: int = 16, key_height: int = 80) -> typing.List[Key]:

	"""
	Lay out a piano keyboard, black keys first.

	White keys are ``key_width`` wide and sit side by side from x = 0.  Black
	keys are half as wide and half as tall, centred a little left of the
	boundary between two white keys.  The lowest key plays ``transpose``
	(24 = C2 with the octave numbering of :mod:`melodykeys.note_names`).  The
	highest key may be no higher than B9 (119), so that every recorded note
	parses back as playable.

	Black keys come first in the returned list so that a hit test scanning in
	order finds a black key before the white key underneath it.
	"""

	if octaves <= 0:
		raise ValueError("A keyboard needs at least one octave")

	if transpose < 0 or transpose + octaves * 12 - 1 > melodykeys.constants.MAX_KEYBOARD_PITCH:
		raise ValueError(f"Keyboard of {octaves} octaves from {transpose} does not fit in 0-{melodykeys.constants.MAX_KEYBOARD_PITCH}")

	octave_width = 7 * key_width
	black_keys: typing.List[Key] = []
	white_keys: typing.List[Key] = []

	for octave in range(octaves):

		base_pitch = transpose + octave * 12
		base_x = octave * octave_width

		for index, pitch_class in enumerate(_WHITE_KEY_PITCH_CLASSES):
			white_keys.append(Key(base_x + index * key_width, 0, key_width, key_height, base_pitch + pitch_class))

		for boundary, pitch_class in _BLACK_KEY_POSITIONS:
			black_keys.append(Key(
				base_x + boundary * key_width - _BLACK_KEY_OFFSET,
				0,
				key_width // 2,
				key_height // 2,
				base_pitch + pitch_class,
				is_black = True
			))

	return black_keys + white_keys


class KeyboardInputController:

	"""
	Turns key presses into notes on a synthesizer channel and into notation.

	Each key is either off or on.  :meth:`press` on a key that is already on,
	and :meth:`release` on a key that is already off, do nothing, so a
	repeated gesture never sounds or records a note twice.
	"""

	def __init__ (
		self,
		channel_state: melodykeys.channel.ChannelState,
		synth: melodykeys.channel.SynthesizerChannel,
		buffer: melodykeys.buffer.NotationBuffer,
		keys: typing.Optional[typing.List[Key]] = None
	) -> None:

		"""
		Parameters:
			channel_state: Channel whose velocity is used for every note.
			synth: Where notes are sounded.
			buffer: Notation buffer that receives a token per press.
			keys: Key regions, black keys first (default: :func:`build_piano_keys`).
		"""

		self.channel_state = channel_state
		self.synth = synth
		self.buffer = buffer
		self.keys = keys if keys is not None else build_piano_keys()

		# Key under the pointer since the last pointer_pressed().
		self.pressed_key: typing.Optional[Key] = None


	def key_at (self, point: Point) -> typing.Optional[Key]:

		"""Return the first key containing ``point``, or None."""

		for key in self.keys:
			if key.contains(point):
				return key

		return None


	def press (self, key: Key) -> None:

		"""Sound the key's note and record it as a quarter note."""

		if key.is_on:
			return

		key.state = KeyState.ON
		self.synth.note_on(key.pitch, self.channel_state.velocity)

		token = f" {melodykeys.constants.KEYBOARD_DURATION_DIVISOR}{melodykeys.note_names.midi_value_to_note_name(key.pitch)}"
		self.buffer.append(token)

		logger.debug(f"Key {key.pitch} pressed, recorded {token.strip()!r}")


	def release (self, key: Key) -> None:

		"""Stop the key's note."""

		if not key.is_on:
			return

		key.state = KeyState.OFF
		self.synth.note_off(key.pitch, self.channel_state.velocity)


	def pointer_pressed (self, point: Point) -> typing.Optional[Key]:

		"""Press the key under the pointer, if any, and remember it."""

		self.pressed_key = self.key_at(point)

		if self.pressed_key is not None:
			self.press(self.pressed_key)

		return self.pressed_key


	def pointer_released (self) -> None:

		"""Release the key pressed by the last pointer_pressed()."""

		if self.pressed_key is not None:
			self.release(self.pressed_key)


	def pointer_exited (self) -> None:

		"""The pointer left the keyboard: release the held key and forget it."""

		if self.pressed_key is not None:
			self.release(self.pressed_key)
			self.pressed_key = None
