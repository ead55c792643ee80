"""Conversion between MIDI pitch numbers and note names.

Names are an upper-case letter, an optional ``#`` and the octave number with
no separator.  The octave is ``pitch // 12``, so middle C (MIDI 60) is
``C5``::

	midi_value_to_note_name(60)     # "C5"
	note_name_to_midi_pitch("f#3")  # 42

This is the inverse of the letter table used by :mod:`melodykeys.notation`.
"""

import re
import typing

import melodykeys.constants


NOTE_NAMES: typing.List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Natural letters to pitch class.  Sharps are written as a trailing '#'.
LETTER_PITCH_CLASSES: typing.Dict[str, int] = {
	"c": 0,
	"d": 2,
	"e": 4,
	"f": 5,
	"g": 7,
	"a": 9,
	"b": 11,
}

_NOTE_NAME_RE = re.compile(r"^([A-Ga-g])(#?)([0-9])$")


def midi_value_to_note_name (pitch: int) -> str:

	"""
	Convert a MIDI pitch number (0-127) to its note name, e.g. 61 -> ``"C#5"``.
	"""

	if not melodykeys.constants.MIN_MIDI_PITCH <= pitch <= melodykeys.constants.MAX_MIDI_PITCH:
		raise ValueError(f"MIDI pitch {pitch} is outside 0-127")

	return f"{NOTE_NAMES[pitch % 12]}{pitch // 12}"


def note_name_to_midi_pitch (name: str) -> int:

	"""
	Convert a note name such as ``"C5"`` or ``"a#2"`` to a MIDI pitch number.

	Raises ``ValueError`` for anything that is not a letter, an optional
	sharp and a single octave digit, or that lands outside 0-127.
	"""

	match = _NOTE_NAME_RE.match(name.strip())

	if match is None:
		raise ValueError(f"Not a note name: {name!r}")

	letter, sharp, octave = match.groups()
	pitch = LETTER_PITCH_CLASSES[letter.lower()] + (1 if sharp else 0) + int(octave) * 12

	if pitch > melodykeys.constants.MAX_MIDI_PITCH:
		raise ValueError(f"Note {name!r} is above MIDI pitch 127")

	return pitch
