import pytest

import clipmod.waveforms


def test_phase_wraps () -> None:

	"""Phase is wrapped into [0, 1), including negative positions."""

	assert clipmod.waveforms.phase_at(5.0, 4.0) == pytest.approx(0.25)
	assert clipmod.waveforms.phase_at(-1.0, 4.0) == pytest.approx(0.75)
	assert clipmod.waveforms.phase_at(0.0, 4.0, 1.5) == pytest.approx(0.5)


def test_square_pulse_width () -> None:

	"""The pulse width sets how long the square stays high."""

	assert clipmod.waveforms.square(0.2, 0.25) == 1.0
	assert clipmod.waveforms.square(0.3, 0.25) == -1.0


def test_span_position () -> None:

	"""Position within a span, scaled by speed and wrapped."""

	assert clipmod.waveforms.span_position(4.0, 0.0, 16.0) == pytest.approx(0.25)
	assert clipmod.waveforms.span_position(6.0, 4.0, 8.0) == pytest.approx(0.5)
	assert clipmod.waveforms.span_position(16.0, 0.0, 16.0) == 0.0
	assert clipmod.waveforms.span_position(3.0, 2.0, 2.0) == 0.0


def test_curve_shapes () -> None:

	"""Exponents above 1 start slow, below 1 start fast."""

	assert clipmod.waveforms.curve(0, 100, 0.5, 2) < clipmod.waveforms.ramp(0, 100, 0.5)
	assert clipmod.waveforms.curve(0, 100, 0.5, 0.5) > clipmod.waveforms.ramp(0, 100, 0.5)


def test_sine_is_a_quarter_behind_cosine () -> None:

	"""sine(p) equals cosine(p - 0.25)."""

	for phase in (0.0, 0.1, 0.4, 0.8):
		assert clipmod.waveforms.sine(phase) == pytest.approx(clipmod.waveforms.cosine((phase - 0.25) % 1.0))
