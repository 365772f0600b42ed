"""Transform language parser.

A transform block has one statement per line::

	velocity += 20 * cos(1:0t)
	C3-C5 1|1-2|1 velocity += 10
	pitch = floor(note.pitch / 2) * 2

Each statement is an optional pitch selector and/or time selector (either
order, optionally followed by a colon), a parameter, an assignment operator
and an expression. ``//``, ``/* */`` and ``#`` comments are stripped first.
"""

import dataclasses
import re
import typing

import clipmod.errors
import clipmod.expression
import clipmod.musical_time
import clipmod.pitch


@dataclasses.dataclass(frozen=True)
class Token:

	"""
	A lexical token within one statement's expression.
	"""

	kind: str
	text: str
	column: int


_BEAT = r"(?:\d+(?:\.\d+)?(?:\+\d*/\d+)?|\.\d+|\d*/\d+)"

_PITCH_SELECTOR_RE = re.compile(
	r"(?P<low>" + clipmod.pitch.NOTE_NAME_PATTERN + r")(?:-(?P<high>" + clipmod.pitch.NOTE_NAME_PATTERN + r"))?(?=[\s:]|$)"
)

_TIME_SELECTOR_RE = re.compile(
	r"(?P<start_bar>\d+)\|(?P<start_beat>" + _BEAT + r")-(?P<end_bar>\d+)\|(?P<end_beat>" + _BEAT + r")(?=[\s:]|$)"
)

_ASSIGNMENT_RE = re.compile(r"(?P<parameter>[A-Za-z]+)\s*(?P<operator>\+=|-=|\*=|/=|=)")

# Order matters: periods before plain numbers, pitch names before identifiers
_TOKEN_SPEC = [
	("PERIOD", r"(?:\d+:)?" + _BEAT + r"t(?![A-Za-z0-9_])"),
	("NUMBER", r"\d+(?:\.\d+)?|\.\d+"),
	("PITCH", clipmod.pitch.NOTE_NAME_PATTERN + r"(?![A-Za-z0-9_.])"),
	("VARIABLE", r"[A-Za-z]+\.[A-Za-z]+"),
	("NAME", r"[A-Za-z_][A-Za-z0-9_]*"),
	("OP", r"[-+*/%]"),
	("LPAREN", r"\("),
	("RPAREN", r"\)"),
	("COMMA", r","),
	("SPACE", r"\s+"),
]

_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC))


def parse (source: str) -> typing.List[clipmod.expression.TransformStatement]:

	"""
	Parse a transform block into an ordered list of statements.

	Raises:
		TransformSyntaxError: On the first malformed line, with its 1-based line number.

	Example:
		```python
		statements = parse("C3-C5 velocity += 10\\ntiming *= 0.5")
		statements[0].pitch_selector   # PitchRange(low=48, high=72)
		```
	"""

	statements = []

	for number, line in enumerate(strip_comments(source).split("\n"), start=1):

		if not line.strip():
			continue

		statements.append(parse_statement(line, number))

	return statements


def strip_comments (source: str) -> str:

	"""
	Remove comments while keeping line numbering intact.
	"""

	# Block comments may span lines; keep their newlines
	source = re.sub(r"/\*.*?\*/", lambda m: "\n" * m.group(0).count("\n"), source, flags=re.DOTALL)

	lines = []

	for line in source.split("\n"):
		line = line.split("//", 1)[0]
		# '#' only starts a comment at line start or after whitespace, so C#3 survives
		line = re.split(r"(?:^|(?<=\s))#", line, maxsplit=1)[0]
		lines.append(line)

	return "\n".join(lines)


def parse_statement (line: str, number: int = 1) -> clipmod.expression.TransformStatement:

	"""
	Parse a single statement line.
	"""

	text = line.strip()

	pitch_selector: typing.Optional[clipmod.expression.PitchRange] = None
	time_selector: typing.Optional[clipmod.expression.BeatRange] = None

	while True:

		time_match = _TIME_SELECTOR_RE.match(text)

		if time_match is not None:
			if time_selector is not None:
				raise clipmod.errors.TransformSyntaxError("More than one time selector", number)
			time_selector = _build_time_selector(time_match, number)
			text = text[time_match.end():].lstrip()
			continue

		pitch_match = _PITCH_SELECTOR_RE.match(text)

		if pitch_match is not None:
			if pitch_selector is not None:
				raise clipmod.errors.TransformSyntaxError("More than one pitch selector", number)
			pitch_selector = _build_pitch_selector(pitch_match, number)
			text = text[pitch_match.end():].lstrip()
			continue

		break

	if text.startswith(":"):
		if pitch_selector is None and time_selector is None:
			raise clipmod.errors.TransformSyntaxError("Colon without a selector", number)
		text = text[1:].lstrip()

	assignment = _ASSIGNMENT_RE.match(text)

	if assignment is None:
		raise clipmod.errors.TransformSyntaxError(f"Expected 'parameter operator expression', got {text!r}", number)

	try:
		parameter = clipmod.expression.Parameter(assignment.group("parameter"))
	except ValueError:
		raise clipmod.errors.TransformSyntaxError(f"Unknown parameter {assignment.group('parameter')!r}", number) from None

	operator = clipmod.expression.AssignOperator(assignment.group("operator"))

	tokens = tokenize(text[assignment.end():], number)

	if not tokens:
		raise clipmod.errors.TransformSyntaxError("Missing expression", number)

	expression = _ExpressionParser(tokens, number).parse()

	return clipmod.expression.TransformStatement(
		parameter = parameter,
		operator = operator,
		expression = expression,
		pitch_selector = pitch_selector,
		time_selector = time_selector,
		line = number
	)


def tokenize (text: str, number: int = 1) -> typing.List[Token]:

	"""
	Split an expression into tokens, dropping whitespace.
	"""

	tokens = []
	position = 0

	while position < len(text):

		match = _TOKEN_RE.match(text, position)

		if match is None:
			raise clipmod.errors.TransformSyntaxError(f"Unexpected character {text[position]!r} at column {position + 1}", number)

		kind = typing.cast(str, match.lastgroup)

		if kind != "SPACE":
			tokens.append(Token(kind=kind, text=match.group(0), column=position + 1))

		position = match.end()

	return tokens


def _build_pitch_selector (match: re.Match, number: int) -> clipmod.expression.PitchRange:

	low_name = match.group("low")
	high_name = match.group("high") or low_name

	low = clipmod.pitch.note_name_to_midi(low_name)
	high = clipmod.pitch.note_name_to_midi(high_name)

	if low is None:
		raise clipmod.errors.TransformSyntaxError(f"Invalid pitch {low_name!r}", number)

	if high is None:
		raise clipmod.errors.TransformSyntaxError(f"Invalid pitch {high_name!r}", number)

	if high < low:
		raise clipmod.errors.TransformSyntaxError(f"Invalid pitch range {low_name}-{high_name}", number)

	return clipmod.expression.PitchRange(low=low, high=high)


def _build_time_selector (match: re.Match, number: int) -> clipmod.expression.BeatRange:

	try:
		selector = clipmod.expression.BeatRange(
			start_bar = int(match.group("start_bar")),
			start_beat = clipmod.musical_time.parse_beat_value(match.group("start_beat")),
			end_bar = int(match.group("end_bar")),
			end_beat = clipmod.musical_time.parse_beat_value(match.group("end_beat"))
		)
	except ValueError as exc:
		raise clipmod.errors.TransformSyntaxError(str(exc), number) from exc

	if selector.start_bar < 1 or selector.end_bar < 1 or selector.start_beat < 1 or selector.end_beat < 1:
		raise clipmod.errors.TransformSyntaxError("Bars and beats in a time selector are 1-based", number)

	if (selector.end_bar, selector.end_beat) < (selector.start_bar, selector.start_beat):
		raise clipmod.errors.TransformSyntaxError("Time selector ends before it starts", number)

	return selector


class _ExpressionParser:

	"""
	Recursive-descent parser over one statement's tokens.

	expression := term (('+' | '-') term)*
	term       := unary (('*' | '/' | '%') unary)*
	unary      := '-' unary | primary
	primary    := NUMBER | PITCH | VARIABLE | call | '(' expression ')'
	"""

	def __init__ (self, tokens: typing.List[Token], number: int) -> None:

		self.tokens = tokens
		self.number = number
		self.position = 0

	def parse (self) -> clipmod.expression.ExprNode:

		node = self._expression()

		if self.position < len(self.tokens):
			token = self.tokens[self.position]
			raise self._error(f"Unexpected {token.text!r} at column {token.column}")

		return node

	def _peek (self) -> typing.Optional[Token]:

		if self.position < len(self.tokens):
			return self.tokens[self.position]

		return None

	def _advance (self) -> Token:

		token = self._peek()

		if token is None:
			raise self._error("Unexpected end of expression")

		self.position += 1

		return token

	def _expect (self, kind: str) -> Token:

		token = self._advance()

		if token.kind != kind:
			raise self._error(f"Expected {kind.lower()} but found {token.text!r} at column {token.column}")

		return token

	def _error (self, message: str) -> clipmod.errors.TransformSyntaxError:
		return clipmod.errors.TransformSyntaxError(message, self.number)

	def _expression (self) -> clipmod.expression.ExprNode:

		node = self._term()

		while True:
			token = self._peek()
			if token is None or token.kind != "OP" or token.text not in "+-":
				return node
			self.position += 1
			node = clipmod.expression.BinaryOp(clipmod.expression.BinaryOperator(token.text), node, self._term())

	def _term (self) -> clipmod.expression.ExprNode:

		node = self._unary()

		while True:
			token = self._peek()
			if token is None or token.kind != "OP" or token.text not in "*/%":
				return node
			self.position += 1
			node = clipmod.expression.BinaryOp(clipmod.expression.BinaryOperator(token.text), node, self._unary())

	def _unary (self) -> clipmod.expression.ExprNode:

		token = self._peek()

		if token is not None and token.kind == "OP" and token.text == "-":

			self.position += 1
			operand = self._unary()

			if isinstance(operand, clipmod.expression.NumberLiteral):
				return clipmod.expression.NumberLiteral(-operand.value)

			return clipmod.expression.BinaryOp(clipmod.expression.BinaryOperator.SUBTRACT, clipmod.expression.NumberLiteral(0.0), operand)

		return self._primary()

	def _primary (self) -> clipmod.expression.ExprNode:

		token = self._advance()

		if token.kind == "NUMBER":
			return clipmod.expression.NumberLiteral(float(token.text))

		if token.kind == "PITCH":
			pitch = clipmod.pitch.note_name_to_midi(token.text)
			if pitch is None:
				raise self._error(f"Invalid pitch {token.text!r}")
			return clipmod.expression.NumberLiteral(float(pitch))

		if token.kind == "VARIABLE":
			return self._variable(token)

		if token.kind == "LPAREN":
			inner = self._expression()
			self._expect("RPAREN")
			return clipmod.expression.Grouping(inner)

		if token.kind == "NAME":
			return self._call(token)

		if token.kind == "PERIOD":
			raise self._error(f"Period {token.text!r} is only valid as the first argument of a waveform (cos, sin, tri, saw, square)")

		raise self._error(f"Unexpected {token.text!r} at column {token.column}")

	def _variable (self, token: Token) -> clipmod.expression.Variable:

		namespace, name = token.text.split(".", 1)

		if name not in clipmod.expression.VARIABLES.get(namespace, frozenset()):
			raise self._error(f"Unknown variable {token.text!r}")

		return clipmod.expression.Variable(namespace=namespace, name=name)

	def _call (self, token: Token) -> clipmod.expression.FunctionCall:

		if token.text == "sync":
			raise self._error("'sync' is only valid as the last argument of a waveform (cos, sin, tri, saw, square)")

		try:
			function = clipmod.expression.Function(token.text)
		except ValueError:
			raise self._error(f"Unknown function {token.text!r}") from None

		self._expect("LPAREN")

		args: typing.List[clipmod.expression.ExprNode] = []
		sync = False

		next_token = self._peek()

		if next_token is not None and next_token.kind == "RPAREN":
			self.position += 1

		else:
			while True:

				current = self._peek()

				if sync:
					raise self._error("'sync' must be the last argument")

				if current is not None and current.kind == "NAME" and current.text == "sync":
					if not function.is_periodic:
						raise self._error(f"'sync' is not valid in {function.value}()")
					self.position += 1
					sync = True

				elif current is not None and current.kind == "PERIOD" and function.is_periodic and not args:
					self.position += 1
					args.append(self._period(current))

				else:
					args.append(self._expression())

				separator = self._advance()

				if separator.kind == "RPAREN":
					break

				if separator.kind != "COMMA":
					raise self._error(f"Expected ',' or ')' but found {separator.text!r} at column {separator.column}")

		minimum, maximum = clipmod.expression.FUNCTION_ARITY[function]

		if len(args) < minimum or (maximum is not None and len(args) > maximum):
			expected = str(minimum) if minimum == maximum else f"{minimum}-{maximum}" if maximum is not None else f"at least {minimum}"
			raise self._error(f"{function.value}() takes {expected} arguments, got {len(args)}")

		return clipmod.expression.FunctionCall(function=function, args=tuple(args), sync=sync)

	def _period (self, token: Token) -> clipmod.expression.PeriodLiteral:

		try:
			period = clipmod.musical_time.parse_period(token.text)
		except ValueError as exc:
			raise self._error(str(exc)) from exc

		return clipmod.expression.PeriodLiteral(period)
