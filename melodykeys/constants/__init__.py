"""Constants for melodykeys.

- ``melodykeys.constants.velocity`` - default channel controller values
- ``melodykeys.constants`` (this module) - MIDI ranges, notation defaults and
  timeline resolution
"""

# Timeline resolution in ticks per quarter note.  A whole note is four
# quarters, so a note written with duration divisor ``d`` lasts
# ``DEFAULT_RESOLUTION * 4 // d`` ticks.
DEFAULT_RESOLUTION = 10

# Tempo used when playing a timeline on a MIDI port.
DEFAULT_BPM = 120

# Notation defaults, used when a note omits (or garbles) a field.
DEFAULT_DURATION_DIVISOR = 4
DEFAULT_OCTAVE = 5

# Playable ranges.
MIN_DURATION_DIVISOR = 1
MAX_DURATION_DIVISOR = 128
MIN_OCTAVE = 0
MAX_OCTAVE = 9
MIN_MIDI_PITCH = 0
MAX_MIDI_PITCH = 127

# MIDI channels are numbered 0-15 on the wire.
MIN_MIDI_CHANNEL = 0
MAX_MIDI_CHANNEL = 15

# Sentinel pitch class for an unknown note letter.
NO_PITCH = -2

# Duration recorded for every keyboard press, whatever its physical length.
KEYBOARD_DURATION_DIVISOR = 4

# Highest key the keyboard may carry: B9.  Above it the recorded octave
# would be 10, which the parser rejects.
MAX_KEYBOARD_PITCH = MAX_OCTAVE * 12 + 11
