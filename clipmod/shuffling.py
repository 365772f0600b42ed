"""Clip shuffling.

Randomly reassigns which clip occupies which start position on each track.
The set of start positions never changes; only the content moves.
"""

import logging
import random
import typing

import clipmod.diagnostics
import clipmod.live_set
import clipmod.randomization


logger = logging.getLogger(__name__)


def shuffle_clips (
	live_set: clipmod.live_set.LiveSet,
	clip_ids: typing.Sequence[str],
	rng: random.Random,
	warnings: clipmod.diagnostics.WarningLog
) -> typing.Dict[str, float]:

	"""
	Shuffle arrangement clips among their own start positions, track by track.

	Tracks are processed in ascending order and clips in timeline order, so
	a seed always gives the same permutation. Returns the new start time of
	every clip that moved.
	"""

	clips, _ = live_set.resolve(clip_ids)
	arrangement = [clip for clip in clips if clip.is_arrangement]

	if not arrangement:
		warnings.add(clipmod.diagnostics.WarningKind.SHUFFLE_NO_ARRANGEMENT, "Shuffling needs arrangement clips; none selected")
		return {}

	by_track: typing.Dict[int, typing.List[clipmod.live_set.Clip]] = {}

	for clip in arrangement:
		by_track.setdefault(clip.track_index, []).append(clip)

	moved: typing.Dict[str, float] = {}

	for track_index in sorted(by_track):

		track_clips = sorted(by_track[track_index], key=lambda clip: typing.cast(float, clip.start_time))

		if len(track_clips) < 2:
			continue

		positions = [typing.cast(float, clip.start_time) for clip in track_clips]
		order = clipmod.randomization.shuffle_order(len(track_clips), rng)

		for position, source in zip(positions, order):
			clip = track_clips[source]
			if clip.start_time != position:
				live_set.move_clip(clip.clip_id, position)
				moved[clip.clip_id] = position

	logger.info("Shuffled %d clip(s), %d moved", len(arrangement), len(moved))

	return moved
