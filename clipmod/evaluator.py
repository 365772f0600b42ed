"""Expression evaluation.

``evaluate`` walks an expression tree against one note's (or audio clip's)
variables and returns a float. It is total over syntactically valid trees:
division and modulo by zero give 0 and ``%`` wraps like a mathematical
modulo. It raises only for variables that do not exist in the current
context and for non-positive periods or curve exponents.
"""

import dataclasses
import math
import random
import typing

import clipmod.errors
import clipmod.expression
import clipmod.live_set
import clipmod.musical_time
import clipmod.randomization
import clipmod.waveforms


@dataclasses.dataclass(frozen=True)
class EvaluationContext:

	"""
	Read-only environment for one evaluation.

	``variables`` maps keys such as ``note.velocity`` or ``clip.index`` to
	values in musical units. Only the keys valid for this clip and note are
	present. ``position`` is the note's start in musical beats from the clip
	start and ``span`` is the (start, end) window that ``ramp`` and ``curve``
	move across.
	"""

	clip_kind: clipmod.live_set.ClipKind
	variables: typing.Mapping[str, float]
	time_signature: clipmod.musical_time.TimeSignature = dataclasses.field(default_factory=clipmod.musical_time.TimeSignature)
	position: float = 0.0
	span: typing.Tuple[float, float] = (0.0, 0.0)


def evaluate (node: clipmod.expression.ExprNode, context: EvaluationContext, rng: random.Random) -> float:

	"""
	Evaluate an expression tree to a number.

	Raises:
		TransformContextError: A variable is not available for this clip kind or context.
		TransformRangeError: A waveform period or curve exponent is not positive.
	"""

	if isinstance(node, clipmod.expression.NumberLiteral):
		return node.value

	if isinstance(node, clipmod.expression.Variable):
		return _lookup(node, context)

	if isinstance(node, clipmod.expression.Grouping):
		return evaluate(node.expression, context, rng)

	if isinstance(node, clipmod.expression.BinaryOp):
		return _binary(node.operator, evaluate(node.left, context, rng), evaluate(node.right, context, rng))

	if isinstance(node, clipmod.expression.FunctionCall):
		return _call(node, context, rng)

	if isinstance(node, clipmod.expression.PeriodLiteral):
		return clipmod.musical_time.beats_from_period(node.period, context.time_signature)

	raise TypeError(f"Unknown expression node: {node!r}")


def uses_sync (node: clipmod.expression.ExprNode) -> bool:

	"""
	True if any waveform call in the tree carries ``sync``.
	"""

	if isinstance(node, clipmod.expression.FunctionCall):
		return node.sync or any(uses_sync(arg) for arg in node.args)

	if isinstance(node, clipmod.expression.BinaryOp):
		return uses_sync(node.left) or uses_sync(node.right)

	if isinstance(node, clipmod.expression.Grouping):
		return uses_sync(node.expression)

	return False


def divide (left: float, right: float) -> float:
	return 0.0 if right == 0 else left / right


def modulo (left: float, right: float) -> float:

	# Python's % is floored, so -1 % 4 == 3
	return 0.0 if right == 0 else left % right


def round_half_up (value: float) -> float:

	"""
	Round to the nearest integer with halves going up: 2.5 -> 3, -2.5 -> -2.

	Infinities and NaN are returned unchanged; clamping decides what they become.
	"""

	if not math.isfinite(value):
		return value

	return float(math.floor(value + 0.5))


def _binary (operator: clipmod.expression.BinaryOperator, left: float, right: float) -> float:

	if operator is clipmod.expression.BinaryOperator.ADD:
		return left + right

	if operator is clipmod.expression.BinaryOperator.SUBTRACT:
		return left - right

	if operator is clipmod.expression.BinaryOperator.MULTIPLY:
		return left * right

	if operator is clipmod.expression.BinaryOperator.DIVIDE:
		return divide(left, right)

	if operator is clipmod.expression.BinaryOperator.MODULO:
		return modulo(left, right)

	raise TypeError(f"Unknown operator: {operator!r}")


def _lookup (node: clipmod.expression.Variable, context: EvaluationContext) -> float:

	if node.namespace == "note" and context.clip_kind is clipmod.live_set.ClipKind.AUDIO:
		raise clipmod.errors.TransformContextError(f"{node.key} is not available for audio clips")

	if node.namespace == "audio" and context.clip_kind is clipmod.live_set.ClipKind.MIDI:
		raise clipmod.errors.TransformContextError(f"{node.key} is not available for MIDI clips")

	if node.key not in context.variables:
		raise clipmod.errors.TransformContextError(f"{node.key} is not available in this context")

	return context.variables[node.key]


def _call (node: clipmod.expression.FunctionCall, context: EvaluationContext, rng: random.Random) -> float:

	function = node.function

	if function.is_periodic:
		return _periodic(node, context, rng)

	values = [evaluate(arg, context, rng) for arg in node.args]

	if function is clipmod.expression.Function.RAMP:
		speed = values[2] if len(values) > 2 else 1.0
		position = clipmod.waveforms.span_position(context.position, context.span[0], context.span[1], speed)
		return clipmod.waveforms.ramp(values[0], values[1], position)

	if function is clipmod.expression.Function.CURVE:
		if values[2] <= 0:
			raise clipmod.errors.TransformRangeError(f"curve() exponent must be positive, got {values[2]}")
		position = clipmod.waveforms.span_position(context.position, context.span[0], context.span[1])
		return clipmod.waveforms.curve(values[0], values[1], position, values[2])

	if function is clipmod.expression.Function.RAND:
		if not values:
			return clipmod.randomization.random_in_range(rng, -1.0, 1.0)
		if len(values) == 1:
			return clipmod.randomization.random_in_range(rng, 0.0, values[0])
		return clipmod.randomization.random_in_range(rng, values[0], values[1])

	if function is clipmod.expression.Function.CHOOSE:
		return clipmod.randomization.pick(values, rng)

	if function is clipmod.expression.Function.ROUND:
		return round_half_up(values[0])

	if function is clipmod.expression.Function.FLOOR:
		return float(math.floor(values[0])) if math.isfinite(values[0]) else values[0]

	if function is clipmod.expression.Function.CEIL:
		return float(math.ceil(values[0])) if math.isfinite(values[0]) else values[0]

	if function is clipmod.expression.Function.ABS:
		return abs(values[0])

	if function is clipmod.expression.Function.CLAMP:
		low, high = min(values[1], values[2]), max(values[1], values[2])
		return max(low, min(high, values[0]))

	if function is clipmod.expression.Function.MIN:
		return min(values)

	if function is clipmod.expression.Function.MAX:
		return max(values)

	if function is clipmod.expression.Function.POW:
		return _power(values[0], values[1])

	raise TypeError(f"Unknown function: {function!r}")


def _periodic (node: clipmod.expression.FunctionCall, context: EvaluationContext, rng: random.Random) -> float:

	period = evaluate(node.args[0], context, rng)

	if period <= 0:
		raise clipmod.errors.TransformRangeError(f"{node.function.value}() period must be positive, got {period}")

	offset = evaluate(node.args[1], context, rng) if len(node.args) > 1 else 0.0

	position = context.position

	if node.sync:
		if "clip.position" not in context.variables:
			raise clipmod.errors.TransformContextError(f"{node.function.value}(..., sync) needs an arrangement clip")
		position += context.variables["clip.position"]

	phase = clipmod.waveforms.phase_at(position, period, offset)

	if node.function is clipmod.expression.Function.COS:
		return clipmod.waveforms.cosine(phase)

	if node.function is clipmod.expression.Function.SIN:
		return clipmod.waveforms.sine(phase)

	if node.function is clipmod.expression.Function.TRI:
		return clipmod.waveforms.triangle(phase)

	if node.function is clipmod.expression.Function.SAW:
		return clipmod.waveforms.saw(phase)

	if node.function is clipmod.expression.Function.SQUARE:
		pulse_width = evaluate(node.args[2], context, rng) if len(node.args) > 2 else 0.5
		return clipmod.waveforms.square(phase, pulse_width)

	raise TypeError(f"Unknown waveform: {node.function!r}")


def _power (base: float, exponent: float) -> float:

	# Domain errors and overflow are defined outcomes, like division by zero
	try:
		result = math.pow(base, exponent)
	except (ValueError, OverflowError):
		return 0.0

	return result if math.isfinite(result) else 0.0
