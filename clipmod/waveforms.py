"""Waveform and ramp shapes used by the transform functions.

All periodic shapes take a phase in [0, 1) and return a value in [-1, 1].
Every shape except the sine starts at +1 when the phase is 0.
"""

import math


def phase_at (position: float, period: float, offset: float = 0.0) -> float:

	"""
	Fractional position within a cycle of ``period`` beats, wrapped into [0, 1).
	"""

	return (position / period + offset) % 1.0


def cosine (phase: float) -> float:
	return math.cos(2 * math.pi * phase)


def sine (phase: float) -> float:

	"""
	Starts at 0 and peaks a quarter of the way through the cycle.
	"""

	return math.sin(2 * math.pi * phase)


def triangle (phase: float) -> float:

	"""
	+1 at phase 0, -1 at phase 0.5, back to +1 at phase 1.
	"""

	return 4 * abs(phase - 0.5) - 1


def saw (phase: float) -> float:

	"""
	Falls linearly from +1 to -1 across the cycle, then jumps back to +1.
	"""

	return 1 - 2 * phase


def square (phase: float, pulse_width: float = 0.5) -> float:
	return 1.0 if phase < pulse_width else -1.0


def span_position (position: float, span_start: float, span_end: float, speed: float = 1.0) -> float:

	"""
	Fraction of the way through a span, multiplied by ``speed`` and wrapped into [0, 1).

	A zero-length span always gives 0.
	"""

	length = span_end - span_start

	if length <= 0:
		return 0.0

	return ((position - span_start) / length * speed) % 1.0


def ramp (start: float, end: float, position: float) -> float:

	"""
	Linear interpolation from ``start`` to ``end`` at a fractional position.
	"""

	return start + (end - start) * position


def curve (start: float, end: float, position: float, exponent: float) -> float:

	"""
	Like ramp, but the position is raised to ``exponent`` first.

	Exponents above 1 start slowly and accelerate; below 1 start quickly.
	"""

	return start + (end - start) * math.pow(position, exponent)
