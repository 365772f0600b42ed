"""Musical time.

Expressions work in musical beats: one beat is the time signature's
denominator note value (a quarter in 4/4, an eighth in 6/8, a half in 2/2).
The store keeps raw beats, which are always quarter notes. This module
converts between the two and parses the ``bar|beat``, ``bars:beats`` and
period (``1:0t``) notations.
"""

import dataclasses
import re
import typing

import clipmod.constants.durations


_BEAT_VALUE = r"(?:\d+(?:\.\d+)?(?:\+\d*/\d+)?|\.\d+|\d*/\d+)"

_BAR_BEAT_RE = re.compile(r"^(\d+)\|(" + _BEAT_VALUE + r")$")
_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?):(" + _BEAT_VALUE + r")$")
_PERIOD_RE = re.compile(r"^(?:(\d+):)?(" + _BEAT_VALUE + r")t$")
_TIME_SIGNATURE_RE = re.compile(r"^(\d+)/(\d+)$")


@dataclasses.dataclass(frozen=True)
class TimeSignature:

	"""
	A time signature such as 4/4 or 6/8.
	"""

	numerator: int = clipmod.constants.durations.DEFAULT_NUMERATOR
	denominator: int = clipmod.constants.durations.DEFAULT_DENOMINATOR

	def __post_init__ (self) -> None:

		if self.numerator <= 0 or self.denominator <= 0:
			raise ValueError(f"Invalid time signature {self.numerator}/{self.denominator}")

	def __str__ (self) -> str:
		return f"{self.numerator}/{self.denominator}"


def parse_time_signature (text: str) -> TimeSignature:

	"""
	Parse ``"6/8"`` style text. Raises ValueError on anything else.
	"""

	match = _TIME_SIGNATURE_RE.match(text.strip())

	if match is None:
		raise ValueError(f"Invalid time signature: {text!r}")

	return TimeSignature(int(match.group(1)), int(match.group(2)))


@dataclasses.dataclass(frozen=True)
class Period:

	"""
	A parsed period literal: whole bars plus extra musical beats.
	"""

	bars: float
	beats: float


def raw_to_musical (raw_beats: float, time_signature: TimeSignature) -> float:

	"""
	Convert raw (quarter-note) beats to musical beats.
	"""

	return raw_beats * time_signature.denominator / clipmod.constants.durations.RAW_BEAT_NOTE_VALUE


def musical_to_raw (musical_beats: float, time_signature: TimeSignature) -> float:

	"""
	Convert musical beats to raw (quarter-note) beats.
	"""

	return musical_beats * clipmod.constants.durations.RAW_BEAT_NOTE_VALUE / time_signature.denominator


def bar_duration (time_signature: TimeSignature) -> float:

	"""
	Length of one bar in musical beats.
	"""

	return float(time_signature.numerator)


def parse_beat_value (text: str) -> float:

	"""
	Parse a beat amount: ``2``, ``1.5``, ``.5``, ``3/2``, ``/3`` or ``1+1/2``.
	"""

	whole = "0"
	fraction = text

	if "+" in text:
		whole, fraction = text.split("+", 1)

	if "/" in fraction:
		numerator, denominator = fraction.split("/", 1)
		if float(denominator) == 0:
			raise ValueError(f"Zero denominator in beat value: {text}")
		value = float(numerator or "1") / float(denominator)
	else:
		value = float(fraction)

	return float(whole) + value


def parse_bar_beat (text: str, time_signature: TimeSignature) -> float:

	"""
	Parse a 1-based ``bar|beat`` position into musical beats from the origin.

	Example:
		```python
		parse_bar_beat("1|1", TimeSignature(4, 4))      # 0.0
		parse_bar_beat("2|1.5", TimeSignature(4, 4))    # 4.5
		parse_bar_beat("2|1", TimeSignature(6, 8))      # 6.0
		```
	"""

	match = _BAR_BEAT_RE.match(text.strip())

	if match is None:
		raise ValueError(f"Invalid bar|beat position: {text!r}")

	bar = int(match.group(1))
	beat = parse_beat_value(match.group(2))

	if bar < 1 or beat < 1:
		raise ValueError(f"Bar and beat are 1-based: {text!r}")

	return (bar - 1) * bar_duration(time_signature) + (beat - 1)


def to_bar_beat (musical_beats: float, time_signature: TimeSignature) -> typing.Tuple[int, float]:

	"""
	Split a position in musical beats into a 1-based (bar, beat) pair.
	"""

	beats_per_bar = bar_duration(time_signature)
	bar = int(musical_beats // beats_per_bar)
	beat = musical_beats - bar * beats_per_bar

	return bar + 1, beat + 1


def format_bar_beat (musical_beats: float, time_signature: TimeSignature) -> str:

	"""
	Format a position as ``bar|beat``, e.g. 4.5 beats in 4/4 -> ``2|1.5``.
	"""

	bar, beat = to_bar_beat(musical_beats, time_signature)

	return f"{bar}|{_format_number(beat)}"


def parse_bar_beat_duration (text: str, time_signature: TimeSignature) -> float:

	"""
	Parse a ``bars:beats`` duration into musical beats, e.g. ``1:2`` in 4/4 -> 6.
	"""

	match = _DURATION_RE.match(text.strip())

	if match is None:
		raise ValueError(f"Invalid bars:beats duration: {text!r}")

	bars = float(match.group(1))
	beats = parse_beat_value(match.group(2))

	return bars * bar_duration(time_signature) + beats


def parse_period (text: str) -> Period:

	"""
	Parse a period literal: ``4t``, ``0.5t``, ``1/3t``, ``/3t``, ``1:0t``, ``0:1/2t``.

	Raises ValueError if the text is not a period literal.
	"""

	match = _PERIOD_RE.match(text.strip())

	if match is None:
		raise ValueError(f"Invalid period: {text!r}")

	bars = float(match.group(1)) if match.group(1) is not None else 0.0

	return Period(bars=bars, beats=parse_beat_value(match.group(2)))


def beats_from_period (period: Period, time_signature: TimeSignature) -> float:

	"""
	Resolve a period to musical beats against a time signature.

	``1:0t`` is one bar (4 beats in 4/4, 6 in 6/8); ``4t`` is always 4 beats.
	"""

	return period.bars * bar_duration(time_signature) + period.beats


def _format_number (value: float) -> str:

	rounded = round(value, 6)

	if rounded == int(rounded):
		return str(int(rounded))

	return f"{rounded:g}"
