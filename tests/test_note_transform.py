import random
import typing

import pytest

import clipmod.diagnostics
import clipmod.errors
import clipmod.live_set
import clipmod.musical_time
import clipmod.note_transform
import clipmod.transform_parser


def _run (clip: clipmod.live_set.Clip, source: str, seed: int = 1) -> clipmod.diagnostics.WarningLog:

	"""Apply a transform block to one clip and commit it."""

	warnings = clipmod.diagnostics.WarningLog()
	state = clipmod.note_transform.ClipState.from_clip(clip)

	clipmod.note_transform.apply_statements(state, clipmod.transform_parser.parse(source), random.Random(seed), warnings)
	clipmod.note_transform.commit(state)

	return warnings


def _velocities_by_pitch (clip: clipmod.live_set.Clip) -> typing.Dict[int, float]:
	return {note.pitch: note.velocity for note in clip.notes}


def test_pitch_selector_limits_notes (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""C3-C5 velocity += 10 touches only pitches 48-72."""

	clip = live_set.add_clip(0, notes=make_notes((40, 0), (48, 0.5), (60, 1), (72, 1.5), (80, 2)))

	_run(clip, "C3-C5 velocity += 10")

	assert _velocities_by_pitch(clip) == {40: 100, 48: 110, 60: 110, 72: 110, 80: 100}


def test_timing_multiply (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""timing *= 0.5 maps beat 8 to beat 4 and keeps beat 0."""

	clip = live_set.add_clip(0, length=16, notes=make_notes((60, 0), (62, 8)))

	_run(clip, "timing *= 0.5")

	assert [note.start_time for note in clip.notes] == [0.0, 4.0]


def test_musical_beats_in_compound_meter (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]], six_eight: clipmod.musical_time.TimeSignature) -> None:

	"""In 6/8 a musical beat is an eighth note, half a raw beat."""

	clip = live_set.add_clip(0, length=6, notes=make_notes((60, 2.0)), time_signature=six_eight)

	_run(clip, "timing += 1\nduration = note.start")

	note = clip.notes[0]
	assert note.start_time == pytest.approx(2.5)
	# note.start was 5 musical beats when duration was set, i.e. 2.5 raw beats
	assert note.duration == pytest.approx(2.5)


def test_statements_see_earlier_results (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""Later statements read values already written by earlier ones."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0)))

	_run(clip, "velocity = 50\nvelocity += note.velocity")

	assert clip.notes[0].velocity == 100


def test_clamping_between_statements (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""Each statement is clamped before the next one reads it."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0)))

	_run(clip, "velocity = 500\nvelocity -= 27")

	assert clip.notes[0].velocity == 100


def test_note_index_counts_filtered_notes (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""note.index and note.count refer to notes passing the pitch selector."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0), (62, 1), (60, 2)))

	_run(clip, "C4 velocity = 10 + note.index * 10 + note.count")

	assert [note.velocity for note in clip.notes] == [12, 100, 22]


def test_time_selector_window (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""1|1-1|2 includes notes on beats 1 and 2 only."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0), (61, 1), (62, 2)))

	_run(clip, "1|1-1|2 velocity = 1")

	assert [note.velocity for note in clip.notes] == [1, 1, 100]


def test_ramp_over_clip (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""ramp spans the whole clip by default."""

	clip = live_set.add_clip(0, length=16, notes=make_notes((60, 0), (60, 4), (60, 8), (60, 12)))

	_run(clip, "velocity = ramp(0, 128)")

	assert [note.velocity for note in clip.notes] == [1, 32, 64, 96]


def test_ramp_over_time_selector (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""With a time selector, ramp spans the selected window."""

	clip = live_set.add_clip(0, length=16, notes=make_notes((60, 4), (60, 6)))

	_run(clip, "2|1-3|1 velocity = ramp(0, 100)")

	assert [note.velocity for note in clip.notes] == [1, 50]


def test_pitch_rounds (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""Pitch results are whole numbers."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0)))

	_run(clip, "pitch += 0.6")

	assert clip.notes[0].pitch == 61


def test_notes_processed_in_start_then_pitch_order (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""Notes are indexed by start time, then pitch."""

	clip = live_set.add_clip(0, notes=make_notes((64, 1), (67, 0), (60, 0)))

	_run(clip, "velocity = 1 + note.index")

	assert [(note.pitch, note.velocity) for note in clip.notes] == [(60, 1), (67, 2), (64, 3)]


def test_audio_clip_gain (live_set: clipmod.live_set.LiveSet) -> None:

	"""Audio clips take gain and pitchShift."""

	clip = live_set.add_clip(1, kind=clipmod.live_set.ClipKind.AUDIO, start_time=0)

	_run(clip, "gain += 6\npitchShift = audio.gain * 2\ngain += 30")

	assert clip.gain == 24
	assert clip.pitch_shift == 12


def test_note_variable_on_audio_clip (live_set: clipmod.live_set.LiveSet) -> None:

	"""Reading note.velocity for an audio clip is a context error."""

	clip = live_set.add_clip(1, kind=clipmod.live_set.ClipKind.AUDIO)

	with pytest.raises(clipmod.errors.TransformContextError):
		_run(clip, "gain = note.velocity")


def test_parameter_for_other_kind_is_skipped (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""Audio parameters on MIDI clips are skipped with one warning."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0)))

	warnings = _run(clip, "gain = 3\npitchShift = 1\nvelocity = 90")

	assert clipmod.diagnostics.WarningKind.AUDIO_PARAMETER_ON_MIDI in warnings
	assert len(warnings) == 1
	assert clip.notes[0].velocity == 90


def test_sync_on_session_clip_is_skipped (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""sync without an arrangement position skips that statement only."""

	clip = live_set.add_clip(0, notes=make_notes((60, 0)))

	warnings = _run(clip, "velocity = 64 * cos(1t, 0, sync)\nprobability = 0.5")

	assert warnings.kinds == [clipmod.diagnostics.WarningKind.SYNC_UNAVAILABLE]
	assert clip.notes[0].velocity == 100
	assert clip.notes[0].probability == 0.5


def test_sync_on_arrangement_clip (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""sync uses the clip's arrangement position."""

	clip = live_set.add_clip(0, length=4, start_time=2.0, notes=make_notes((60, 0)))

	_run(clip, "velocity = 64 + 63 * cos(4t, 0, sync)")

	assert clip.notes[0].velocity == pytest.approx(1.0)


def test_clip_variables (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""clip.duration, clip.barDuration and clip.position are musical beats."""

	clip = live_set.add_clip(0, length=8, start_time=4.0, notes=make_notes((60, 0)))

	_run(clip, "velocity = clip.duration * 10 + clip.barDuration + clip.position")

	assert clip.notes[0].velocity == 88


def test_untouched_clip_keeps_notes (live_set: clipmod.live_set.LiveSet, make_notes: typing.Callable[..., typing.List[clipmod.live_set.Note]]) -> None:

	"""A block that selects nothing leaves the notes alone."""

	notes = make_notes((60, 0))
	clip = live_set.add_clip(0, notes=notes)

	_run(clip, "C1 velocity = 1")

	assert clip.notes == notes
