import re
import typing

import clipmod.constants.limits


# C4 = 60 (Middle C), so C-1 = 0 and G9 = 127
NOTE_NAME_PATTERN = r"[A-Ga-g][#b]?-?\d+"

_NOTE_NAME_RE = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")

PITCH_CLASSES: typing.Dict[str, int] = {
	"C": 0,
	"D": 2,
	"E": 4,
	"F": 5,
	"G": 7,
	"A": 9,
	"B": 11,
}

SHARP_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def note_name_to_midi (name: str) -> typing.Optional[int]:

	"""
	Convert a note name such as ``C3``, ``F#4`` or ``Bb-1`` to a MIDI number.

	Returns None when the name is malformed or falls outside 0-127.

	Example:
		```python
		note_name_to_midi("C4")   # 60
		note_name_to_midi("C3")   # 48
		note_name_to_midi("Db4")  # 61
		```
	"""

	match = _NOTE_NAME_RE.match(name.strip())

	if match is None:
		return None

	letter, accidental, octave = match.groups()

	value = PITCH_CLASSES[letter.upper()] + (int(octave) + 1) * 12

	if accidental == "#":
		value += 1
	elif accidental == "b":
		value -= 1

	if value < clipmod.constants.limits.MIN_PITCH or value > clipmod.constants.limits.MAX_PITCH:
		return None

	return value


def midi_to_note_name (pitch: int) -> str:

	"""
	Name a MIDI number using sharps, e.g. 61 -> ``C#4``.
	"""

	if pitch < clipmod.constants.limits.MIN_PITCH or pitch > clipmod.constants.limits.MAX_PITCH:
		raise ValueError(f"MIDI pitch out of range: {pitch}")

	return f"{SHARP_NAMES[pitch % 12]}{pitch // 12 - 1}"
