import typing


class TransformError(Exception):

	"""
	Base class for every fatal error raised while transforming clips.

	Any of these aborts the whole invocation; the orchestrator restores the
	store to its state before the call.
	"""

	pass


class TransformSyntaxError(TransformError):

	"""
	Malformed transform source, an invalid selector, or a misplaced ``sync``.
	"""

	def __init__ (self, message: str, line: typing.Optional[int] = None) -> None:

		self.line = line

		if line is not None:
			message = f"line {line}: {message}"

		super().__init__(message)


class TransformContextError(TransformError):

	"""
	A variable was referenced outside the clip kind or context that defines it.
	"""

	pass


class TransformRangeError(TransformError):

	"""
	A parameter that must be positive (waveform period, curve exponent) was not.
	"""

	pass


class SliceLimitError(TransformError):

	"""
	Slicing would create more clips than a single call is allowed to create.
	"""

	pass


class TransformRequestError(TransformError, ValueError):

	"""
	The invocation itself is malformed (no selection given, bad slice size, etc.).
	"""

	pass
