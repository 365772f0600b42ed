import dataclasses
import math
import typing

import clipmod.constants.limits
import clipmod.evaluator
import clipmod.expression


@dataclasses.dataclass(frozen=True)
class ParameterLimits:

	"""
	Valid range and rounding policy for one parameter. None means unbounded.
	"""

	minimum: typing.Optional[float] = None
	maximum: typing.Optional[float] = None
	integer: bool = False

	def clamp (self, value: float, fallback: float = 0.0) -> float:

		"""
		Clamp a value into range. Infinities go to the matching bound and NaN
		to ``fallback``; an infinity with no bound on that side also gives ``fallback``.
		"""

		if math.isnan(value):
			value = fallback

		elif math.isinf(value):
			bound = self.maximum if value > 0 else self.minimum
			value = fallback if bound is None else bound

		if self.integer:
			value = clipmod.evaluator.round_half_up(value)

		if self.minimum is not None:
			value = max(self.minimum, value)

		if self.maximum is not None:
			value = min(self.maximum, value)

		return value


CLAMP_TABLE: typing.Dict[clipmod.expression.Parameter, ParameterLimits] = {
	clipmod.expression.Parameter.VELOCITY: ParameterLimits(clipmod.constants.limits.MIN_VELOCITY, clipmod.constants.limits.MAX_VELOCITY),
	clipmod.expression.Parameter.PROBABILITY: ParameterLimits(clipmod.constants.limits.MIN_PROBABILITY, clipmod.constants.limits.MAX_PROBABILITY),
	clipmod.expression.Parameter.DURATION: ParameterLimits(clipmod.constants.limits.MIN_DURATION, None),
	clipmod.expression.Parameter.DEVIATION: ParameterLimits(clipmod.constants.limits.MIN_DEVIATION, clipmod.constants.limits.MAX_DEVIATION),
	clipmod.expression.Parameter.PITCH: ParameterLimits(clipmod.constants.limits.MIN_PITCH, clipmod.constants.limits.MAX_PITCH, integer=True),
	clipmod.expression.Parameter.TIMING: ParameterLimits(),
	clipmod.expression.Parameter.GAIN: ParameterLimits(clipmod.constants.limits.MIN_GAIN_DB, clipmod.constants.limits.MAX_GAIN_DB),
	clipmod.expression.Parameter.PITCH_SHIFT: ParameterLimits(clipmod.constants.limits.MIN_PITCH_SHIFT, clipmod.constants.limits.MAX_PITCH_SHIFT),
}


def apply_operator (operator: clipmod.expression.AssignOperator, current: float, value: float) -> float:

	"""
	Combine the current value with an evaluated expression.

	``*=`` and ``/=`` are ``current * value`` and ``current / value``; dividing
	by zero gives 0 like the ``/`` operator.
	"""

	if operator is clipmod.expression.AssignOperator.SET:
		return value

	if operator is clipmod.expression.AssignOperator.ADD:
		return current + value

	if operator is clipmod.expression.AssignOperator.SUBTRACT:
		return current - value

	if operator is clipmod.expression.AssignOperator.MULTIPLY:
		return current * value

	if operator is clipmod.expression.AssignOperator.DIVIDE:
		return clipmod.evaluator.divide(current, value)

	raise TypeError(f"Unknown assignment operator: {operator!r}")


def clamp_parameter (parameter: clipmod.expression.Parameter, value: float, fallback: float = 0.0) -> float:
	return CLAMP_TABLE[parameter].clamp(value, fallback)


def apply (parameter: clipmod.expression.Parameter, operator: clipmod.expression.AssignOperator, value: float, current: float) -> float:

	"""
	Apply an operator and clamp the result, once, to the parameter's range.

	For ``timing`` the current value is the note's position, so
	``timing *= 0.5`` moves every note halfway toward the clip start.

	Example:
		```python
		apply(Parameter.VELOCITY, AssignOperator.ADD, 50, 100)   # 127.0
		apply(Parameter.PITCH, AssignOperator.SET, 60.6, 0)      # 61.0
		```
	"""

	return clamp_parameter(parameter, apply_operator(operator, current, value), fallback=current)
