"""Constants for clipmod.

- ``clipmod.constants.limits`` - Valid ranges for every transformable parameter
- ``clipmod.constants.durations`` - Time-signature defaults and raw-beat units

The most commonly needed values are re-exported here.
"""

from clipmod.constants.durations import DEFAULT_TICKS_PER_BEAT, RAW_BEAT_NOTE_VALUE
from clipmod.constants.limits import MAX_SLICES
