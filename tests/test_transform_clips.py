import typing

import pytest

import clipmod.diagnostics
import clipmod.errors
import clipmod.live_set
import clipmod.random_params
import clipmod.shuffling
import clipmod.transform_clips


Request = clipmod.transform_clips.TransformClipsRequest


def _build_set () -> clipmod.live_set.LiveSet:

	"""Two 1-bar clips on track 0 and a session clip on track 1."""

	live_set = clipmod.live_set.LiveSet()

	for start in (0.0, 4.0):
		live_set.add_clip(0, length=4.0, start_time=start, notes=[
			clipmod.live_set.Note(pitch=60 + beat, start_time=float(beat), duration=0.5) for beat in range(4)
		])

	live_set.add_clip(1, length=4.0, notes=[clipmod.live_set.Note(pitch=48, start_time=0.0, duration=1.0)])

	return live_set


def _state (live_set: clipmod.live_set.LiveSet) -> typing.List[typing.Tuple[str, typing.Optional[float], typing.List[clipmod.live_set.Note]]]:
	return [(clip.clip_id, clip.start_time, list(clip.notes)) for clip in live_set.clips]


# --- selection ---

def test_select_by_ids_keeps_order () -> None:

	"""Explicit ids are used in the given order, duplicates dropped."""

	live_set = _build_set()
	ids = [clip.clip_id for clip in live_set.clips]

	result = clipmod.transform_clips.transform_clips(live_set, Request(clip_ids=[ids[1], ids[0], ids[1]], transforms="velocity = 1 + clip.index", seed=1))

	assert result.clip_ids == [ids[1], ids[0]]
	assert [note.velocity for note in typing.cast(clipmod.live_set.Clip, live_set.get_clip(ids[1])).notes] == [1, 1, 1, 1]
	assert [note.velocity for note in typing.cast(clipmod.live_set.Clip, live_set.get_clip(ids[0])).notes] == [2, 2, 2, 2]


def test_select_by_track_range () -> None:

	"""A track query selects clips starting inside the range."""

	live_set = _build_set()

	result = clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, arrangement_start="2|1", arrangement_length="1:0", seed=1))

	assert result.clip_ids == [live_set.arrangement_clips(0)[1].clip_id]


def test_select_whole_track () -> None:

	"""A track query without a range selects every arrangement clip on the track."""

	live_set = _build_set()

	result = clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, seed=1))

	assert len(result.clip_ids) == 2


def test_unknown_ids_warn () -> None:

	"""Unknown ids are dropped with a warning."""

	live_set = _build_set()

	result = clipmod.transform_clips.transform_clips(live_set, Request(clip_ids=["clip-1", "clip-99"], seed=1))

	assert result.clip_ids == ["clip-1"]
	assert clipmod.diagnostics.WarningKind.CLIP_NOT_FOUND in result.warning_kinds


def test_empty_selection_is_soft () -> None:

	"""An empty selection returns an empty result, the seed and a warning."""

	live_set = _build_set()

	result = clipmod.transform_clips.transform_clips(live_set, Request(track_index=5, transforms="velocity = 1", seed=123))

	assert result.clip_ids == []
	assert result.seed == 123
	assert result.warning_kinds == [clipmod.diagnostics.WarningKind.EMPTY_SELECTION]


def test_selection_is_required () -> None:

	"""A request with neither ids nor a track is an error."""

	with pytest.raises(clipmod.errors.TransformRequestError):
		clipmod.transform_clips.transform_clips(_build_set(), Request(transforms="velocity = 1"))


# --- seeds ---

def test_default_seed_is_returned () -> None:

	"""Without a seed, a wall-clock seed is resolved and returned."""

	result = clipmod.transform_clips.transform_clips(_build_set(), Request(track_index=0))

	assert isinstance(result.seed, int)
	assert result.seed > 0


def test_same_seed_same_output () -> None:

	"""Identical seeds and inputs give identical values and permutations."""

	outputs = []

	for _ in range(2):

		live_set = _build_set()

		result = clipmod.transform_clips.transform_clips(live_set, Request(
			track_index = 0,
			transforms = "velocity = rand(1, 127)\ntiming += rand(-0.1, 0.1)",
			slice_size = "0:2",
			shuffle = True,
			randomization = clipmod.random_params.RandomizationSpec(transpose_values=(-12, 0, 12)),
			seed = 2024
		))

		outputs.append((result.clip_ids, _state(live_set)))

	assert outputs[0] == outputs[1]


def test_replay_with_returned_seed () -> None:

	"""Feeding back the returned seed reproduces an unseeded run."""

	first_set = _build_set()
	first = clipmod.transform_clips.transform_clips(first_set, Request(track_index=0, transforms="velocity = rand(1, 127)"))

	second_set = _build_set()
	clipmod.transform_clips.transform_clips(second_set, Request(track_index=0, transforms="velocity = rand(1, 127)", seed=first.seed))

	assert _state(first_set) == _state(second_set)


# --- pipeline ---

def test_slice_then_transform () -> None:

	"""Slicing replaces clip ids and later stages see the new clips."""

	live_set = clipmod.live_set.LiveSet()
	clip = live_set.add_clip(0, length=16.0, start_time=0.0, looping=False, notes=[
		clipmod.live_set.Note(pitch=60, start_time=float(beat), duration=0.5) for beat in range(16)
	])

	result = clipmod.transform_clips.transform_clips(live_set, Request(clip_ids=[clip.clip_id], slice_size="1:0", transforms="velocity = 1 + clip.index * 10", seed=1))

	assert len(result.clip_ids) == 4
	assert clip.clip_id not in result.clip_ids
	assert result.note_count == 16

	for index, clip_id in enumerate(result.clip_ids):
		piece = typing.cast(clipmod.live_set.Clip, live_set.get_clip(clip_id))
		assert piece.start_time == index * 4.0
		assert [note.velocity for note in piece.notes] == [1 + index * 10] * 4


def test_slice_size_in_beats () -> None:

	"""A numeric slice size is musical beats."""

	live_set = _build_set()

	result = clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, slice_size=2.0, seed=1))

	assert len(result.clip_ids) == 4


def test_bad_slice_size () -> None:

	"""Zero and malformed slice sizes are request errors."""

	with pytest.raises(clipmod.errors.TransformRequestError):
		clipmod.transform_clips.transform_clips(_build_set(), Request(track_index=0, slice_size=0, seed=1))

	with pytest.raises(clipmod.errors.TransformRequestError):
		clipmod.transform_clips.transform_clips(_build_set(), Request(track_index=0, slice_size="two bars", seed=1))


def test_shuffle_warns_for_session_clips () -> None:

	"""Shuffling a session-only selection warns but still transforms."""

	live_set = _build_set()
	session = live_set.clips[2]

	result = clipmod.transform_clips.transform_clips(live_set, Request(clip_ids=[session.clip_id], shuffle=True, transforms="velocity = 64", seed=1))

	assert clipmod.diagnostics.WarningKind.SHUFFLE_NO_ARRANGEMENT in result.warning_kinds
	assert session.notes[0].velocity == 64


# --- atomicity ---

def test_syntax_error_changes_nothing () -> None:

	"""A malformed block fails before anything runs."""

	live_set = _build_set()
	before = _state(live_set)

	with pytest.raises(clipmod.errors.TransformSyntaxError):
		clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, transforms="velocity += 10\nvelocity = ramp(0, 1, sync)", shuffle=True, seed=1))

	assert _state(live_set) == before


def test_context_error_on_audio_clip_writes_nothing () -> None:

	"""note.velocity on an audio clip aborts before any clip is written."""

	live_set = _build_set()
	audio = live_set.add_clip(0, kind=clipmod.live_set.ClipKind.AUDIO, length=4.0, start_time=8.0)
	before = _state(live_set)

	with pytest.raises(clipmod.errors.TransformContextError):
		clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, transforms="velocity += 10\ngain = note.velocity", seed=1))

	assert _state(live_set) == before
	assert audio.gain == 0.0


def test_failure_after_slicing_rolls_back () -> None:

	"""Structural changes are undone when a later stage fails."""

	live_set = _build_set()
	before = _state(live_set)

	with pytest.raises(clipmod.errors.TransformRangeError):
		clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, slice_size="0:2", shuffle=True, transforms="velocity = cos(0t)", seed=1))

	assert _state(live_set) == before


def test_slice_limit_rolls_back () -> None:

	"""Hitting the slice cap raises and leaves the set untouched."""

	live_set = _build_set()
	before = _state(live_set)

	with pytest.raises(clipmod.errors.SliceLimitError):
		clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, slice_size=1.0, seed=1), max_slices=4)

	assert _state(live_set) == before


def test_warnings_are_deduplicated () -> None:

	"""Each warning kind is reported once however many clips trigger it."""

	live_set = clipmod.live_set.LiveSet()
	ids = [live_set.add_clip(0, notes=[clipmod.live_set.Note(60, 0.0, 1.0)]).clip_id for _ in range(3)]

	result = clipmod.transform_clips.transform_clips(live_set, Request(clip_ids=ids, transforms="velocity = 64 + 63 * saw(1:0t, 0, sync)\ngain = 0", seed=1))

	assert sorted(kind.value for kind in result.warning_kinds) == ["audio-parameter-on-midi", "sync-unavailable"]
	assert len(result.warnings) == 2


def test_overflowing_expression_clamps () -> None:

	"""An expression that overflows to infinity clamps like any other out-of-range value."""

	live_set = _build_set()

	clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, transforms="pitch = pow(10, 200) * pow(10, 200)\nvelocity = round(-pow(10, 200) * pow(10, 200))", seed=1))

	for clip in live_set.arrangement_clips(0):
		assert [note.pitch for note in clip.notes] == [127, 127, 127, 127]
		assert [note.velocity for note in clip.notes] == [1, 1, 1, 1]


def test_unexpected_error_rolls_back (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Any exception after slicing restores the set, not just transform errors."""

	live_set = _build_set()
	before = _state(live_set)

	def _fail (*args: typing.Any, **kwargs: typing.Any) -> None:
		raise RuntimeError("shuffle failed")

	monkeypatch.setattr(clipmod.shuffling, "shuffle_clips", _fail)

	with pytest.raises(RuntimeError):
		clipmod.transform_clips.transform_clips(live_set, Request(track_index=0, slice_size="0:2", shuffle=True, seed=1))

	assert _state(live_set) == before
