"""Per-clip statement application.

A ``ClipState`` is a working copy of one clip in musical units. Statements
are applied to it in source order, each one across every selected note
before the next statement runs, and nothing touches the store until
``commit`` is called. That lets the orchestrator evaluate every clip first
and write only when the whole block has succeeded.
"""

import dataclasses
import random
import typing

import clipmod.diagnostics
import clipmod.evaluator
import clipmod.expression
import clipmod.live_set
import clipmod.musical_time
import clipmod.parameters


_NOTE_FIELDS: typing.Dict[clipmod.expression.Parameter, str] = {
	clipmod.expression.Parameter.PITCH: "pitch",
	clipmod.expression.Parameter.TIMING: "start",
	clipmod.expression.Parameter.DURATION: "duration",
	clipmod.expression.Parameter.VELOCITY: "velocity",
	clipmod.expression.Parameter.DEVIATION: "deviation",
	clipmod.expression.Parameter.PROBABILITY: "probability",
}


@dataclasses.dataclass
class NoteState:

	"""
	A note's transformable values, with ``start`` and ``duration`` in musical beats.
	"""

	pitch: float
	start: float
	duration: float
	velocity: float
	deviation: float
	probability: float
	touched: bool = False

	@classmethod
	def from_note (cls, note: clipmod.live_set.Note, time_signature: clipmod.musical_time.TimeSignature) -> "NoteState":

		return cls(
			pitch = float(note.pitch),
			start = clipmod.musical_time.raw_to_musical(note.start_time, time_signature),
			duration = clipmod.musical_time.raw_to_musical(note.duration, time_signature),
			velocity = float(note.velocity),
			deviation = float(note.velocity_deviation),
			probability = float(note.probability)
		)

	def to_note (self, time_signature: clipmod.musical_time.TimeSignature) -> clipmod.live_set.Note:

		return clipmod.live_set.Note(
			pitch = int(self.pitch),
			start_time = clipmod.musical_time.musical_to_raw(self.start, time_signature),
			duration = clipmod.musical_time.musical_to_raw(self.duration, time_signature),
			velocity = self.velocity,
			velocity_deviation = self.deviation,
			probability = self.probability
		)

	def get (self, parameter: clipmod.expression.Parameter) -> float:
		return typing.cast(float, getattr(self, _NOTE_FIELDS[parameter]))

	def set (self, parameter: clipmod.expression.Parameter, value: float) -> None:
		setattr(self, _NOTE_FIELDS[parameter], value)
		self.touched = True

	def variables (self, index: int, count: int) -> typing.Dict[str, float]:

		return {
			"note.pitch": self.pitch,
			"note.start": self.start,
			"note.velocity": self.velocity,
			"note.deviation": self.deviation,
			"note.duration": self.duration,
			"note.probability": self.probability,
			"note.index": float(index),
			"note.count": float(count),
		}


@dataclasses.dataclass
class ClipState:

	"""
	Working copy of one selected clip.
	"""

	clip: clipmod.live_set.Clip
	index: int
	count: int
	notes: typing.List[NoteState] = dataclasses.field(default_factory=list)
	gain: float = 0.0
	pitch_shift: float = 0.0
	audio_touched: bool = False

	@classmethod
	def from_clip (cls, clip: clipmod.live_set.Clip, index: int = 0, count: int = 1) -> "ClipState":

		"""
		Snapshot a clip, ordering its notes by start time then pitch.
		"""

		ordered = sorted(clip.notes, key=lambda note: (note.start_time, note.pitch))

		return cls(
			clip = clip,
			index = index,
			count = count,
			notes = [NoteState.from_note(note, clip.time_signature) for note in ordered],
			gain = clip.gain,
			pitch_shift = clip.pitch_shift
		)

	@property
	def kind (self) -> clipmod.live_set.ClipKind:
		return self.clip.kind

	@property
	def time_signature (self) -> clipmod.musical_time.TimeSignature:
		return self.clip.time_signature

	@property
	def duration (self) -> float:

		"""
		Clip span in musical beats.
		"""

		return clipmod.musical_time.raw_to_musical(self.clip.span, self.time_signature)

	@property
	def touched_notes (self) -> int:
		return sum(1 for note in self.notes if note.touched)

	@property
	def modified (self) -> bool:
		return self.audio_touched or self.touched_notes > 0

	def variables (self) -> typing.Dict[str, float]:

		"""
		Clip-level variables. ``clip.position`` exists only in the arrangement.
		"""

		values = {
			"clip.duration": self.duration,
			"clip.index": float(self.index),
			"clip.count": float(self.count),
			"clip.barDuration": clipmod.musical_time.bar_duration(self.time_signature),
		}

		if self.clip.start_time is not None:
			values["clip.position"] = clipmod.musical_time.raw_to_musical(self.clip.start_time, self.time_signature)

		return values

	def audio_variables (self) -> typing.Dict[str, float]:

		values = self.variables()
		values["audio.gain"] = self.gain
		values["audio.pitchShift"] = self.pitch_shift

		return values


def apply_statements (
	state: ClipState,
	statements: typing.Sequence[clipmod.expression.TransformStatement],
	rng: random.Random,
	warnings: clipmod.diagnostics.WarningLog
) -> None:

	"""
	Apply statements in order to a clip's working copy.

	Statements for the other clip kind, and ``sync`` statements on clips with
	no arrangement position, are skipped with a warning.

	Raises:
		TransformContextError: A statement reads a variable this clip does not have.
		TransformRangeError: A period or curve exponent evaluated to a non-positive value.
	"""

	for statement in statements:

		if state.kind is clipmod.live_set.ClipKind.MIDI:
			_apply_to_notes(state, statement, rng, warnings)
		else:
			_apply_to_audio(state, statement, rng, warnings)


def commit (state: ClipState) -> None:

	"""
	Write a working copy back to its clip.
	"""

	if state.kind is clipmod.live_set.ClipKind.MIDI:
		if state.touched_notes:
			state.clip.notes = [note.to_note(state.time_signature) for note in state.notes]
		return

	state.clip.gain = state.gain
	state.clip.pitch_shift = state.pitch_shift


def _apply_to_notes (
	state: ClipState,
	statement: clipmod.expression.TransformStatement,
	rng: random.Random,
	warnings: clipmod.diagnostics.WarningLog
) -> None:

	if statement.parameter.is_audio:
		warnings.add(
			clipmod.diagnostics.WarningKind.AUDIO_PARAMETER_ON_MIDI,
			f"'{statement.parameter.value}' only applies to audio clips; skipped for MIDI clip {state.clip.clip_id}"
		)
		return

	if clipmod.evaluator.uses_sync(statement.expression) and not state.clip.is_arrangement:
		warnings.add(
			clipmod.diagnostics.WarningKind.SYNC_UNAVAILABLE,
			f"sync skipped: clip {state.clip.clip_id} has no arrangement position"
		)
		return

	time_signature = state.time_signature
	clip_variables = state.variables()

	if statement.time_selector is not None:
		span = statement.time_selector.window(time_signature)
	else:
		span = (0.0, state.duration)

	# note.index and note.count refer to the notes that pass the pitch selector
	selected = [
		note for note in state.notes
		if statement.pitch_selector is None or statement.pitch_selector.contains(note.pitch)
	]

	for index, note in enumerate(selected):

		if statement.time_selector is not None and not statement.time_selector.contains(note.start, time_signature):
			continue

		variables = dict(clip_variables)
		variables.update(note.variables(index, len(selected)))

		context = clipmod.evaluator.EvaluationContext(
			clip_kind = clipmod.live_set.ClipKind.MIDI,
			variables = variables,
			time_signature = time_signature,
			position = note.start,
			span = span
		)

		value = clipmod.evaluator.evaluate(statement.expression, context, rng)

		note.set(statement.parameter, clipmod.parameters.apply(statement.parameter, statement.operator, value, note.get(statement.parameter)))


def _apply_to_audio (
	state: ClipState,
	statement: clipmod.expression.TransformStatement,
	rng: random.Random,
	warnings: clipmod.diagnostics.WarningLog
) -> None:

	if not statement.parameter.is_audio:
		warnings.add(
			clipmod.diagnostics.WarningKind.MIDI_PARAMETER_ON_AUDIO,
			f"'{statement.parameter.value}' only applies to MIDI clips; skipped for audio clip {state.clip.clip_id}"
		)
		return

	# Audio clips are evaluated at position 0, where sync has nothing to align to
	if clipmod.evaluator.uses_sync(statement.expression):
		warnings.add(
			clipmod.diagnostics.WarningKind.SYNC_UNAVAILABLE,
			f"sync skipped: audio clip {state.clip.clip_id} is evaluated at position 0"
		)
		return

	context = clipmod.evaluator.EvaluationContext(
		clip_kind = clipmod.live_set.ClipKind.AUDIO,
		variables = state.audio_variables(),
		time_signature = state.time_signature,
		position = 0.0,
		span = (0.0, state.duration)
	)

	value = clipmod.evaluator.evaluate(statement.expression, context, rng)

	if statement.parameter is clipmod.expression.Parameter.GAIN:
		state.gain = clipmod.parameters.apply(statement.parameter, statement.operator, value, state.gain)
	else:
		state.pitch_shift = clipmod.parameters.apply(statement.parameter, statement.operator, value, state.pitch_shift)

	state.audio_touched = True
