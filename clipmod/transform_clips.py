"""Clip transformation orchestrator.

One call to ``transform_clips`` runs::

	SELECT -> SLICE (optional) -> SHUFFLE (optional) -> PARAMETER TRANSFORM -> AGGREGATE

The transform source is parsed before anything is touched, and the store is
rolled back if any later step raises, so a failed call leaves no partial
writes. Soft problems are collected as de-duplicated warnings and returned
with the resolved seed.
"""

import dataclasses
import logging
import math
import typing

import clipmod.constants.limits
import clipmod.diagnostics
import clipmod.errors
import clipmod.live_set
import clipmod.musical_time
import clipmod.note_transform
import clipmod.random_params
import clipmod.randomization
import clipmod.shuffling
import clipmod.slicing
import clipmod.transform_parser


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class TransformClipsRequest:

	"""
	Parameters for one invocation.

	Select clips either by ``clip_ids`` or by ``track_index`` with an optional
	``arrangement_start`` (``bar|beat``) and ``arrangement_length``
	(``bars:beats``). ``slice_size`` is musical beats or a ``bars:beats``
	string in the set's time signature.
	"""

	clip_ids: typing.Optional[typing.Sequence[str]] = None
	track_index: typing.Optional[int] = None
	arrangement_start: typing.Optional[str] = None
	arrangement_length: typing.Optional[str] = None
	transforms: str = ""
	slice_size: typing.Optional[typing.Union[float, str]] = None
	shuffle: bool = False
	randomization: typing.Optional[clipmod.random_params.RandomizationSpec] = None
	seed: typing.Optional[int] = None


@dataclasses.dataclass
class TransformClipsResult:

	clip_ids: typing.List[str]
	seed: int
	warnings: typing.List[str] = dataclasses.field(default_factory=list)
	warning_kinds: typing.List[clipmod.diagnostics.WarningKind] = dataclasses.field(default_factory=list)
	note_count: int = 0


def transform_clips (
	live_set: clipmod.live_set.LiveSet,
	request: TransformClipsRequest,
	max_slices: int = clipmod.constants.limits.MAX_SLICES
) -> TransformClipsResult:

	"""
	Select, optionally slice and shuffle, then transform clips.

	Raises:
		TransformSyntaxError: The transform source does not parse.
		TransformContextError: A statement reads a variable its clip does not have.
		TransformRangeError: A period or curve exponent is not positive.
		SliceLimitError: Slicing would create too many clips.
		TransformRequestError: No selection was given or the slice size is invalid.

	Example:
		```python
		result = transform_clips(live_set, TransformClipsRequest(
			track_index = 0,
			transforms = "velocity += 20 * cos(1:0t)",
			seed = 42,
		))
		```
	"""

	statements = clipmod.transform_parser.parse(request.transforms)

	seed = clipmod.randomization.resolve_seed(request.seed)
	rng = clipmod.randomization.create_rng(seed)
	warnings = clipmod.diagnostics.WarningLog()

	slice_size = _resolve_slice_size(request.slice_size, live_set.time_signature)
	clip_ids = select_clips(live_set, request, warnings)

	if not clip_ids:
		warnings.add(clipmod.diagnostics.WarningKind.EMPTY_SELECTION, "No clips matched the selection")
		return _result([], seed, warnings, 0)

	snapshot = live_set.snapshot()

	try:

		if slice_size is not None:
			replaced = clipmod.slicing.slice_clips(live_set, clip_ids, slice_size, warnings, max_slices)
			clip_ids = [new_id for clip_id in clip_ids for new_id in replaced.get(clip_id, [clip_id])]

		if request.shuffle:
			clipmod.shuffling.shuffle_clips(live_set, clip_ids, rng, warnings)

		# Structural steps may have replaced or moved clips, so look them up again
		clips, _ = live_set.resolve(clip_ids)

		states = [clipmod.note_transform.ClipState.from_clip(clip, index, len(clips)) for index, clip in enumerate(clips)]

		for state in states:

			clipmod.note_transform.apply_statements(state, statements, rng, warnings)

			if request.randomization is not None and not request.randomization.is_empty:
				clipmod.random_params.apply_randomization(state, request.randomization, rng, warnings)

		for state in states:
			clipmod.note_transform.commit(state)

	except Exception:
		live_set.restore(snapshot)
		raise

	note_count = sum(state.touched_notes for state in states)

	logger.info("Transformed %d clip(s), %d note(s), seed %d", len(clips), note_count, seed)

	return _result([clip.clip_id for clip in clips], seed, warnings, note_count)


def select_clips (
	live_set: clipmod.live_set.LiveSet,
	request: TransformClipsRequest,
	warnings: clipmod.diagnostics.WarningLog
) -> typing.List[str]:

	"""
	Resolve the request's selection to clip ids, in a stable order.

	Explicit ids keep their given order (duplicates and unknown ids dropped);
	a track query returns clips in timeline order.
	"""

	if request.clip_ids is not None:

		unique = list(dict.fromkeys(request.clip_ids))
		clips, missing = live_set.resolve(unique)

		if missing:
			warnings.add(clipmod.diagnostics.WarningKind.CLIP_NOT_FOUND, f"Clip(s) not found: {', '.join(missing)}")

		return [clip.clip_id for clip in clips]

	if request.track_index is None:
		raise clipmod.errors.TransformRequestError("Either clip_ids or track_index is required")

	time_signature = live_set.time_signature

	try:
		start = clipmod.musical_time.parse_bar_beat(request.arrangement_start or "1|1", time_signature)
		length = math.inf if request.arrangement_length is None else clipmod.musical_time.parse_bar_beat_duration(request.arrangement_length, time_signature)
	except ValueError as exc:
		raise clipmod.errors.TransformRequestError(str(exc)) from exc

	raw_start = clipmod.musical_time.musical_to_raw(start, time_signature)
	raw_end = clipmod.musical_time.musical_to_raw(start + length, time_signature)

	return [clip.clip_id for clip in live_set.clips_in_range(request.track_index, raw_start, raw_end)]


def _resolve_slice_size (
	slice_size: typing.Optional[typing.Union[float, str]],
	time_signature: clipmod.musical_time.TimeSignature
) -> typing.Optional[float]:

	"""
	Convert a slice size (musical beats or ``bars:beats``) to raw beats.
	"""

	if slice_size is None:
		return None

	if isinstance(slice_size, str):
		try:
			beats = clipmod.musical_time.parse_bar_beat_duration(slice_size, time_signature)
		except ValueError as exc:
			raise clipmod.errors.TransformRequestError(str(exc)) from exc
	else:
		beats = float(slice_size)

	if beats <= 0:
		raise clipmod.errors.TransformRequestError(f"Slice size must be positive, got {slice_size!r}")

	return clipmod.musical_time.musical_to_raw(beats, time_signature)


def _result (
	clip_ids: typing.List[str],
	seed: int,
	warnings: clipmod.diagnostics.WarningLog,
	note_count: int
) -> TransformClipsResult:

	return TransformClipsResult(
		clip_ids = clip_ids,
		seed = seed,
		warnings = warnings.messages,
		warning_kinds = warnings.kinds,
		note_count = note_count
	)
