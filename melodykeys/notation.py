"""Parser for the melody notation typed into (or recorded by) the keyboard.

The notation is a sequence of whitespace separated chords.  Each chord is one
or more notes joined with ``+`` and sounded together; chords play one after
another::

	4c5+4e5 2g5      # C and E together for a quarter, then G for a half
	8f#4 8g4 4a      # octave omitted -> 5

**Note syntax:** ``[duration]letter[#][octave]``

- ``duration``: note value as a divisor of a whole note (1 = whole,
  4 = quarter, 8 = eighth, ...).  Default 4.
- ``letter``: ``c d e f g a b``, case-insensitive.
- ``#``: raise by a semitone.
- ``octave``: 0-9.  Default 5, so ``c`` is MIDI 60.

The parser is permissive.  It never raises and never drops a note: every
piece of text becomes a :class:`ParsedNote` tagged ``VALID``, ``DEFAULTED``
(playable, but a field fell back to its default) or ``INVALID`` (unknown
letter, or a field out of range).  Dropping invalid notes is left to
:func:`melodykeys.timeline.build`.
"""

import dataclasses
import enum
import logging
import re
import typing

import melodykeys.constants
import melodykeys.note_names


logger = logging.getLogger(__name__)

# Accepted octave text: an optionally signed run of ASCII digits.  A signed
# octave parses but is then out of range.
_OCTAVE_RE = re.compile(r"^[+-]?[0-9]+$")

# Numbers that do not fit a signed 32-bit integer count as unreadable.
_INT32_MIN = -2 ** 31
_INT32_MAX = 2 ** 31 - 1


class NoteStatus (enum.Enum):

	"""How a note came out of the parser."""

	VALID = "valid"
	DEFAULTED = "defaulted"
	INVALID = "invalid"


@dataclasses.dataclass(frozen=True)
class NoteToken:

	"""
	One note specification: duration divisor, pitch class, sharp and octave.
	"""

	duration_divisor: int = melodykeys.constants.DEFAULT_DURATION_DIVISOR
	pitch_class: int = melodykeys.constants.NO_PITCH
	sharp: bool = False
	octave: int = melodykeys.constants.DEFAULT_OCTAVE

	@property
	def midi_pitch (self) -> int:

		"""The MIDI note number, ``pitch_class + octave * 12``."""

		return self.pitch_class + self.octave * 12


	@property
	def is_playable (self) -> bool:

		"""
		True when the note has a real pitch and every field is in range.
		"""

		constants = melodykeys.constants

		return (
			self.pitch_class >= 0
			and constants.MIN_MIDI_PITCH <= self.midi_pitch <= constants.MAX_MIDI_PITCH
			and constants.MIN_OCTAVE <= self.octave <= constants.MAX_OCTAVE
			and constants.MIN_DURATION_DIVISOR <= self.duration_divisor <= constants.MAX_DURATION_DIVISOR
		)


@dataclasses.dataclass(frozen=True)
class ParsedNote:

	"""
	A note together with how it was parsed.

	``defaulted_fields`` names the fields (``"duration"``, ``"octave"``) that
	fell back to their defaults, whatever the final status.
	"""

	status: NoteStatus
	token: NoteToken
	source: str
	defaulted_fields: typing.Tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class Chord:

	"""
	Notes that sound at the same time, in the order they were written.
	"""

	notes: typing.Tuple[ParsedNote, ...]

	@property
	def tokens (self) -> typing.List[NoteToken]:

		return [note.token for note in self.notes]


	@property
	def playable (self) -> typing.List[NoteToken]:

		return [note.token for note in self.notes if note.token.is_playable]


def parse (text: str) -> typing.List[Chord]:

	"""
	Parse a notation string into a list of chords.

	Parameters:
		text: The notation, e.g. ``"4c5+4e5 2g5"``.

	Returns:
		One :class:`Chord` per whitespace separated word that contains at
		least one note.  Words made only of ``+`` produce nothing.

	Example:
		```python
		chords = parse("4c5+4e5 2g5")
		[n.token.midi_pitch for n in chords[0].notes]  # [60, 64]
		```
	"""

	chords: typing.List[Chord] = []

	for word in text.lower().split():

		notes = tuple(parse_note(piece) for piece in word.split("+") if piece)

		if notes:
			chords.append(Chord(notes))

	return chords


def parse_note (source: str) -> ParsedNote:

	"""
	Parse a single note such as ``"8f#4"``.

	Reading past the end of the text counts as a missing field, so ``""``,
	``"4"`` and ``"c"`` all parse (the first two with no pitch).
	"""

	text = source.lower()
	defaulted: typing.List[str] = []
	i = 0

	# Duration: leading digits.
	while i < len(text) and "0" <= text[i] <= "9":
		i += 1

	if i > 0 and int(text[:i]) <= _INT32_MAX:
		duration_divisor = int(text[:i])
	else:
		duration_divisor = melodykeys.constants.DEFAULT_DURATION_DIVISOR
		defaulted.append("duration")

	# Pitch letter.
	pitch_class = melodykeys.constants.NO_PITCH

	if i < len(text):
		pitch_class = melodykeys.note_names.LETTER_PITCH_CLASSES.get(text[i], melodykeys.constants.NO_PITCH)
		i += 1

	sharp = i < len(text) and text[i] == "#"

	if sharp:
		pitch_class += 1
		i += 1

	# Octave: whatever is left.
	remainder = text[i:]

	if _OCTAVE_RE.match(remainder) and _INT32_MIN <= int(remainder) <= _INT32_MAX:
		octave = int(remainder)
	else:
		octave = melodykeys.constants.DEFAULT_OCTAVE
		defaulted.append("octave")

	token = NoteToken(
		duration_divisor = duration_divisor,
		pitch_class = pitch_class,
		sharp = sharp,
		octave = octave
	)

	if not token.is_playable:
		status = NoteStatus.INVALID
		logger.debug(f"Unplayable note {source!r}: {token}")
	elif defaulted:
		status = NoteStatus.DEFAULTED
		logger.debug(f"Note {source!r} uses default {', '.join(defaulted)}")
	else:
		status = NoteStatus.VALID

	return ParsedNote(status=status, token=token, source=source, defaulted_fields=tuple(defaulted))
