"""Channel controller defaults.

Velocity, pressure, bend and reverb all start at the middle of the MIDI
data range (0-127) when a channel is created.
"""

DEFAULT_CONTROLLER_VALUE = 64

DEFAULT_VELOCITY = DEFAULT_CONTROLLER_VALUE
DEFAULT_PRESSURE = DEFAULT_CONTROLLER_VALUE
DEFAULT_BEND = DEFAULT_CONTROLLER_VALUE
DEFAULT_REVERB = DEFAULT_CONTROLLER_VALUE

# MIDI standard range
MIN_VALUE = 0
MAX_VALUE = 127
