"""Time units.

The host stores every position and length in raw beats, where one raw beat is
always a quarter note. Expressions see musical beats, where one beat is the
time signature's denominator note value.
"""

# A raw beat is a quarter note, i.e. the note value "4"
RAW_BEAT_NOTE_VALUE = 4

DEFAULT_NUMERATOR = 4
DEFAULT_DENOMINATOR = 4

# MIDI file resolution used when writing
DEFAULT_TICKS_PER_BEAT = 480

# Positions closer than this (in raw beats) are treated as equal
TIME_EPSILON = 1e-6
