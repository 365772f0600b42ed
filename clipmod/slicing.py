"""Clip slicing.

Splits arrangement clips into consecutive fixed-length clips at the same
timeline positions. The final segment is shorter when the span is not an
exact multiple of the slice size. Times are raw beats throughout.
"""

import dataclasses
import logging
import math
import typing

import clipmod.constants.durations
import clipmod.constants.limits
import clipmod.diagnostics
import clipmod.errors
import clipmod.live_set


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SlicePlan:

	"""
	Segments for one clip as (start, end) offsets from the clip start.
	"""

	clip_id: str
	segments: typing.Tuple[typing.Tuple[float, float], ...]


def plan_slices (clips: typing.Sequence[clipmod.live_set.Clip], slice_size: float) -> typing.List[SlicePlan]:

	"""
	Work out the segments for each arrangement clip without touching anything.

	Clips that are not longer than one slice are left out of the plan.
	"""

	if slice_size <= 0:
		raise ValueError("Slice size must be positive")

	epsilon = clipmod.constants.durations.TIME_EPSILON
	plans = []

	for clip in clips:

		if not clip.is_arrangement:
			continue

		span = clip.span

		if span <= slice_size + epsilon:
			continue

		count = math.ceil(span / slice_size - epsilon)
		segments = tuple(
			(index * slice_size, min((index + 1) * slice_size, span))
			for index in range(count)
		)

		plans.append(SlicePlan(clip_id=clip.clip_id, segments=segments))

	return plans


def slice_clips (
	live_set: clipmod.live_set.LiveSet,
	clip_ids: typing.Sequence[str],
	slice_size: float,
	warnings: clipmod.diagnostics.WarningLog,
	max_slices: int = clipmod.constants.limits.MAX_SLICES
) -> typing.Dict[str, typing.List[str]]:

	"""
	Slice the given clips in place and return a mapping of old id to new ids.

	Session clips are skipped with a warning. Nothing is changed if the total
	number of segments would exceed ``max_slices``.

	Raises:
		SliceLimitError: The plan needs more than ``max_slices`` segments.

	Example:
		```python
		# A 16-beat clip sliced every 4 beats becomes four clips
		replaced = slice_clips(live_set, [clip.clip_id], 4.0, warnings)
		len(replaced[clip.clip_id])   # 4
		```
	"""

	clips, _ = live_set.resolve(clip_ids)

	session = [clip for clip in clips if not clip.is_arrangement]
	arrangement = [clip for clip in clips if clip.is_arrangement]

	if session:
		warnings.add(
			clipmod.diagnostics.WarningKind.SLICE_SESSION_CLIP,
			f"Slicing skipped {len(session)} session clip(s) with no arrangement position"
		)

	if not arrangement:
		warnings.add(clipmod.diagnostics.WarningKind.SLICE_NO_ARRANGEMENT, "Slicing needs arrangement clips; none selected")
		return {}

	plans = plan_slices(arrangement, slice_size)
	total = sum(len(plan.segments) for plan in plans)

	if total > max_slices:
		raise clipmod.errors.SliceLimitError(f"Slicing would create {total} clips, more than the limit of {max_slices}")

	replaced: typing.Dict[str, typing.List[str]] = {}

	for plan in plans:

		clip = typing.cast(clipmod.live_set.Clip, live_set.get_clip(plan.clip_id))
		replaced[clip.clip_id] = [_create_segment(live_set, clip, start, end).clip_id for start, end in plan.segments]
		live_set.remove_clip(clip.clip_id)

	if plans:
		logger.info("Sliced %d clip(s) into %d segments", len(plans), total)

	return replaced


def segment_notes (clip: clipmod.live_set.Clip, start: float, end: float) -> typing.List[clipmod.live_set.Note]:

	"""
	Notes that start within [start, end) of the clip's span, shifted to the segment origin.

	Looping clips repeat their content every ``clip.length`` beats.
	"""

	notes = []

	if clip.looping:
		first = int(math.floor(start / clip.length))
		last = int(math.ceil(end / clip.length))
		offsets = [cycle * clip.length for cycle in range(first, last + 1)]
	else:
		offsets = [0.0]

	for offset in offsets:
		for note in clip.notes:
			position = offset + note.start_time
			if start <= position < end:
				notes.append(dataclasses.replace(note, start_time=position - start))

	return sorted(notes, key=lambda note: (note.start_time, note.pitch))


def _create_segment (live_set: clipmod.live_set.LiveSet, clip: clipmod.live_set.Clip, start: float, end: float) -> clipmod.live_set.Clip:

	clip_start = typing.cast(float, clip.start_time)

	if clip.kind is clipmod.live_set.ClipKind.AUDIO:
		offset = start % clip.length if clip.looping else start
		notes: typing.List[clipmod.live_set.Note] = []
		start_marker = clip.start_marker + offset
	else:
		notes = segment_notes(clip, start, end)
		start_marker = 0.0

	return live_set.add_clip(
		clip.track_index,
		kind = clip.kind,
		length = end - start,
		start_time = clip_start + start,
		end_time = clip_start + end,
		notes = notes,
		time_signature = clip.time_signature,
		gain = clip.gain,
		pitch_shift = clip.pitch_shift,
		looping = clip.looping,
		start_marker = start_marker,
		name = clip.name
	)
