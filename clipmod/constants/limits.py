"""Parameter limits.

Every value written back to a note or clip is clamped to these ranges.
"""

# MIDI note parameters
MIN_VELOCITY = 1
MAX_VELOCITY = 127

MIN_PITCH = 0
MAX_PITCH = 127

MIN_DEVIATION = -127
MAX_DEVIATION = 127

MIN_PROBABILITY = 0.0
MAX_PROBABILITY = 1.0

# Musical beats
MIN_DURATION = 0.001

# Audio clip parameters
MIN_GAIN_DB = -70.0
MAX_GAIN_DB = 24.0

MIN_PITCH_SHIFT = -48.0
MAX_PITCH_SHIFT = 48.0

# Upper bound on clips created by one slicing call
MAX_SLICES = 100

# Defaults for new notes
DEFAULT_VELOCITY = 100
