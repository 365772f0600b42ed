"""Randomized-range parameter offsets.

These are applied after the statement block, drawing from the same random
stream. Each note draws in a fixed order (velocity, transpose, duration) so
a seed reproduces the same result.
"""

import dataclasses
import random
import typing

import clipmod.diagnostics
import clipmod.evaluator
import clipmod.expression
import clipmod.live_set
import clipmod.note_transform
import clipmod.parameters
import clipmod.randomization


@dataclasses.dataclass(frozen=True)
class RandomizationSpec:

	"""
	Random offsets to apply to every selected note or audio clip.

	Ranges are given as min/max pairs; both ends are required. A discrete
	``transpose_values`` list takes precedence over the transpose range.
	``velocity_range`` and ``probability`` are fixed offsets, not random.
	"""

	velocity_min: typing.Optional[float] = None
	velocity_max: typing.Optional[float] = None
	transpose_min: typing.Optional[float] = None
	transpose_max: typing.Optional[float] = None
	transpose_values: typing.Optional[typing.Tuple[float, ...]] = None
	duration_min: typing.Optional[float] = None
	duration_max: typing.Optional[float] = None
	gain_db_min: typing.Optional[float] = None
	gain_db_max: typing.Optional[float] = None
	velocity_range: typing.Optional[float] = None
	probability: typing.Optional[float] = None

	def __post_init__ (self) -> None:

		for name in ("velocity", "transpose", "duration", "gain_db"):

			low = getattr(self, f"{name}_min")
			high = getattr(self, f"{name}_max")

			if (low is None) != (high is None):
				raise ValueError(f"{name}_min and {name}_max must be given together")

			if low is not None and low > high:
				raise ValueError(f"{name}_min ({low}) is greater than {name}_max ({high})")

		if self.transpose_values is not None and len(self.transpose_values) == 0:
			raise ValueError("transpose_values cannot be empty")

	@classmethod
	def from_mapping (cls, values: typing.Mapping[str, typing.Any]) -> "RandomizationSpec":

		"""
		Build a spec from a plain mapping, e.g. a YAML ``randomize:`` section.
		"""

		known = {field.name for field in dataclasses.fields(cls)}
		unknown = set(values) - known

		if unknown:
			raise ValueError(f"Unknown randomization options: {', '.join(sorted(unknown))}")

		arguments = dict(values)

		if arguments.get("transpose_values") is not None:
			arguments["transpose_values"] = tuple(float(value) for value in arguments["transpose_values"])

		return cls(**arguments)

	@property
	def is_empty (self) -> bool:
		return all(getattr(self, field.name) is None for field in dataclasses.fields(self))

	@property
	def has_transpose (self) -> bool:
		return self.transpose_values is not None or self.transpose_min is not None


def apply_randomization (
	state: clipmod.note_transform.ClipState,
	spec: RandomizationSpec,
	rng: random.Random,
	warnings: clipmod.diagnostics.WarningLog
) -> None:

	"""
	Apply random offsets to a clip's working copy.
	"""

	if spec.transpose_values is not None and spec.transpose_min is not None:
		warnings.add(
			clipmod.diagnostics.WarningKind.TRANSPOSE_VALUES_OVERRIDE,
			"transpose_values given; ignoring transpose_min/transpose_max"
		)

	if state.kind is clipmod.live_set.ClipKind.AUDIO:
		_randomize_audio(state, spec, rng)
		return

	for note in state.notes:

		if spec.velocity_min is not None and spec.velocity_max is not None:
			offset = clipmod.evaluator.round_half_up(clipmod.randomization.random_in_range(rng, spec.velocity_min, spec.velocity_max))
			note.set(clipmod.expression.Parameter.VELOCITY, clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.VELOCITY, note.velocity + offset))

		if spec.has_transpose:
			offset = _transpose_offset(spec, rng)
			note.set(clipmod.expression.Parameter.PITCH, clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.PITCH, note.pitch + offset))

		if spec.duration_min is not None and spec.duration_max is not None:
			multiplier = clipmod.randomization.random_in_range(rng, spec.duration_min, spec.duration_max)
			note.set(clipmod.expression.Parameter.DURATION, clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.DURATION, note.duration * multiplier))

		if spec.velocity_range is not None:
			note.set(clipmod.expression.Parameter.DEVIATION, clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.DEVIATION, note.deviation + spec.velocity_range))

		if spec.probability is not None:
			note.set(clipmod.expression.Parameter.PROBABILITY, clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.PROBABILITY, note.probability + spec.probability))


def _randomize_audio (state: clipmod.note_transform.ClipState, spec: RandomizationSpec, rng: random.Random) -> None:

	if spec.gain_db_min is not None and spec.gain_db_max is not None:
		offset = clipmod.randomization.random_in_range(rng, spec.gain_db_min, spec.gain_db_max)
		state.gain = clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.GAIN, state.gain + offset)
		state.audio_touched = True

	if spec.has_transpose:
		offset = _transpose_offset(spec, rng)
		state.pitch_shift = clipmod.parameters.clamp_parameter(clipmod.expression.Parameter.PITCH_SHIFT, state.pitch_shift + offset)
		state.audio_touched = True


def _transpose_offset (spec: RandomizationSpec, rng: random.Random) -> float:

	if spec.transpose_values is not None:
		return clipmod.randomization.pick(spec.transpose_values, rng)

	return clipmod.randomization.random_in_range(rng, typing.cast(float, spec.transpose_min), typing.cast(float, spec.transpose_max))
