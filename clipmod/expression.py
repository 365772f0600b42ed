"""Transform statement and expression tree types.

Everything here is immutable once the parser has built it.
"""

import dataclasses
import enum
import typing

import clipmod.constants.durations
import clipmod.musical_time


class Parameter(enum.Enum):

	"""
	Target of a transform statement.
	"""

	VELOCITY = "velocity"
	TIMING = "timing"
	DURATION = "duration"
	PROBABILITY = "probability"
	DEVIATION = "deviation"
	PITCH = "pitch"
	GAIN = "gain"
	PITCH_SHIFT = "pitchShift"

	@property
	def is_audio (self) -> bool:
		return self in (Parameter.GAIN, Parameter.PITCH_SHIFT)


class AssignOperator(enum.Enum):

	SET = "="
	ADD = "+="
	SUBTRACT = "-="
	MULTIPLY = "*="
	DIVIDE = "/="


class BinaryOperator(enum.Enum):

	ADD = "+"
	SUBTRACT = "-"
	MULTIPLY = "*"
	DIVIDE = "/"
	MODULO = "%"


class Function(enum.Enum):

	COS = "cos"
	SIN = "sin"
	TRI = "tri"
	SAW = "saw"
	SQUARE = "square"
	RAMP = "ramp"
	CURVE = "curve"
	RAND = "rand"
	CHOOSE = "choose"
	ROUND = "round"
	FLOOR = "floor"
	CEIL = "ceil"
	ABS = "abs"
	CLAMP = "clamp"
	MIN = "min"
	MAX = "max"
	POW = "pow"

	@property
	def is_periodic (self) -> bool:
		return self in PERIODIC_FUNCTIONS


PERIODIC_FUNCTIONS = frozenset([Function.COS, Function.SIN, Function.TRI, Function.SAW, Function.SQUARE])

# (minimum, maximum) argument counts, not counting a trailing sync; None = unbounded
FUNCTION_ARITY: typing.Dict[Function, typing.Tuple[int, typing.Optional[int]]] = {
	Function.COS: (1, 2),
	Function.SIN: (1, 2),
	Function.TRI: (1, 2),
	Function.SAW: (1, 2),
	Function.SQUARE: (1, 3),
	Function.RAMP: (2, 3),
	Function.CURVE: (3, 3),
	Function.RAND: (0, 2),
	Function.CHOOSE: (1, None),
	Function.ROUND: (1, 1),
	Function.FLOOR: (1, 1),
	Function.CEIL: (1, 1),
	Function.ABS: (1, 1),
	Function.CLAMP: (3, 3),
	Function.MIN: (2, None),
	Function.MAX: (2, None),
	Function.POW: (2, 2),
}

VARIABLES: typing.Dict[str, typing.FrozenSet[str]] = {
	"note": frozenset(["pitch", "start", "velocity", "deviation", "duration", "probability", "index", "count"]),
	"audio": frozenset(["gain", "pitchShift"]),
	"clip": frozenset(["duration", "index", "count", "position", "barDuration"]),
}


@dataclasses.dataclass(frozen=True)
class NumberLiteral:

	value: float


@dataclasses.dataclass(frozen=True)
class PeriodLiteral:

	"""
	A ``bars:beats t`` period, resolved against the clip's time signature at evaluation.
	"""

	period: clipmod.musical_time.Period


@dataclasses.dataclass(frozen=True)
class Variable:

	namespace: str
	name: str

	@property
	def key (self) -> str:
		return f"{self.namespace}.{self.name}"


@dataclasses.dataclass(frozen=True)
class BinaryOp:

	operator: BinaryOperator
	left: "ExprNode"
	right: "ExprNode"


@dataclasses.dataclass(frozen=True)
class FunctionCall:

	function: Function
	args: typing.Tuple["ExprNode", ...] = ()
	sync: bool = False


@dataclasses.dataclass(frozen=True)
class Grouping:

	expression: "ExprNode"


ExprNode = typing.Union[NumberLiteral, PeriodLiteral, Variable, BinaryOp, FunctionCall, Grouping]


@dataclasses.dataclass(frozen=True)
class PitchRange:

	"""
	Inclusive MIDI pitch range selected by ``C3`` or ``C3-C5``.
	"""

	low: int
	high: int

	def contains (self, pitch: float) -> bool:
		return self.low <= pitch <= self.high


@dataclasses.dataclass(frozen=True)
class BeatRange:

	"""
	Inclusive ``bar|beat-bar|beat`` window. Bars and beats are 1-based.
	"""

	start_bar: int
	start_beat: float
	end_bar: int
	end_beat: float

	def window (self, time_signature: clipmod.musical_time.TimeSignature) -> typing.Tuple[float, float]:

		"""
		Return (start, end) in musical beats from the clip start.
		"""

		beats_per_bar = clipmod.musical_time.bar_duration(time_signature)

		start = (self.start_bar - 1) * beats_per_bar + (self.start_beat - 1)
		end = (self.end_bar - 1) * beats_per_bar + (self.end_beat - 1)

		return start, end

	def contains (self, position: float, time_signature: clipmod.musical_time.TimeSignature) -> bool:

		start, end = self.window(time_signature)

		return start - clipmod.constants.durations.TIME_EPSILON <= position <= end + clipmod.constants.durations.TIME_EPSILON


@dataclasses.dataclass(frozen=True)
class TransformStatement:

	"""
	One line of transform source, e.g. ``C3-C5 1|1-2|1 velocity += 10``.
	"""

	parameter: Parameter
	operator: AssignOperator
	expression: ExprNode
	pitch_selector: typing.Optional[PitchRange] = None
	time_selector: typing.Optional[BeatRange] = None
	line: int = 0
