import typing

import pytest

import clipmod.live_set
import clipmod.musical_time


@pytest.fixture
def live_set () -> clipmod.live_set.LiveSet:

	"""An empty 4/4 set."""

	return clipmod.live_set.LiveSet()


@pytest.fixture
def four_bar_clip (live_set: clipmod.live_set.LiveSet) -> clipmod.live_set.Clip:

	"""A 4-bar arrangement clip on track 0 with a C4 on every beat."""

	notes = [clipmod.live_set.Note(pitch=60, start_time=float(beat), duration=0.5) for beat in range(16)]

	return live_set.add_clip(0, length=16.0, start_time=0.0, notes=notes, looping=False)


@pytest.fixture
def make_notes () -> typing.Callable[..., typing.List[clipmod.live_set.Note]]:

	"""Build notes from (pitch, start) pairs."""

	def _make (*pairs: typing.Tuple[int, float], velocity: float = 100) -> typing.List[clipmod.live_set.Note]:
		return [clipmod.live_set.Note(pitch=pitch, start_time=start, duration=0.5, velocity=velocity) for pitch, start in pairs]

	return _make


@pytest.fixture
def six_eight () -> clipmod.musical_time.TimeSignature:
	return clipmod.musical_time.TimeSignature(6, 8)
