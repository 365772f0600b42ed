"""In-memory note and clip store.

The transform engine only needs to read and write note and clip properties
and to create, move and delete arrangement clips. ``LiveSet`` provides that
surface for a host (or for a MIDI file loaded with ``clipmod.midi_file``).

All times here are raw beats (quarter notes), as a host would store them.
"""

import copy
import dataclasses
import enum
import typing

import clipmod.constants.durations
import clipmod.constants.limits
import clipmod.musical_time


class ClipKind(enum.Enum):

	MIDI = "midi"
	AUDIO = "audio"


@dataclasses.dataclass
class Note:

	"""
	A MIDI note within a clip. ``start_time`` is relative to the clip start.
	"""

	pitch: int
	start_time: float
	duration: float
	velocity: float = clipmod.constants.limits.DEFAULT_VELOCITY
	velocity_deviation: float = 0.0
	probability: float = 1.0


@dataclasses.dataclass
class Clip:

	"""
	A MIDI or audio clip.

	Arrangement clips have a ``start_time`` and ``end_time`` on the timeline;
	session clips have neither. ``length`` is the content (loop) length, which
	a looping arrangement clip repeats to fill its span.
	"""

	clip_id: str
	track_index: int
	kind: ClipKind = ClipKind.MIDI
	length: float = 4.0
	start_time: typing.Optional[float] = None
	end_time: typing.Optional[float] = None
	time_signature: clipmod.musical_time.TimeSignature = dataclasses.field(default_factory=clipmod.musical_time.TimeSignature)
	notes: typing.List[Note] = dataclasses.field(default_factory=list)
	gain: float = 0.0					# dB
	pitch_shift: float = 0.0			# semitones
	looping: bool = True
	start_marker: float = 0.0			# content offset, raw beats
	name: str = ""

	@property
	def is_arrangement (self) -> bool:
		return self.start_time is not None

	@property
	def span (self) -> float:

		"""
		Occupied length in raw beats: the timeline span for arrangement clips, otherwise the content length.
		"""

		if self.start_time is not None and self.end_time is not None:
			return self.end_time - self.start_time

		return self.length


class LiveSet:

	"""
	A set of tracks holding clips, addressed by stable string ids.
	"""

	def __init__ (self, time_signature: typing.Optional[clipmod.musical_time.TimeSignature] = None) -> None:

		self.time_signature = time_signature or clipmod.musical_time.TimeSignature()

		self._clips: typing.Dict[str, Clip] = {}
		self._next_id = 1


	def add_clip (
		self,
		track_index: int,
		kind: ClipKind = ClipKind.MIDI,
		length: float = 4.0,
		start_time: typing.Optional[float] = None,
		end_time: typing.Optional[float] = None,
		notes: typing.Optional[typing.List[Note]] = None,
		time_signature: typing.Optional[clipmod.musical_time.TimeSignature] = None,
		**properties: typing.Any
	) -> Clip:

		"""
		Create a clip and return it. Passing ``start_time`` places it in the arrangement.

		Example:
			```python
			live_set = LiveSet()
			clip = live_set.add_clip(0, length=16, start_time=0, notes=[Note(60, 0, 1)])
			```
		"""

		if length <= 0:
			raise ValueError("Clip length must be positive")

		if start_time is not None and end_time is None:
			end_time = start_time + length

		clip = Clip(
			clip_id = f"clip-{self._next_id}",
			track_index = track_index,
			kind = kind,
			length = length,
			start_time = start_time,
			end_time = end_time,
			time_signature = time_signature or self.time_signature,
			notes = list(notes or []),
			**properties
		)

		self._next_id += 1
		self._clips[clip.clip_id] = clip

		return clip


	def get_clip (self, clip_id: str) -> typing.Optional[Clip]:
		return self._clips.get(clip_id)


	def remove_clip (self, clip_id: str) -> None:

		if clip_id not in self._clips:
			raise KeyError(f"No clip with id {clip_id!r}")

		del self._clips[clip_id]


	def move_clip (self, clip_id: str, start_time: float) -> None:

		"""
		Move an arrangement clip, keeping its span.
		"""

		clip = self._clips[clip_id]

		if clip.start_time is None or clip.end_time is None:
			raise ValueError(f"Clip {clip_id!r} is not in the arrangement")

		span = clip.span
		clip.start_time = start_time
		clip.end_time = start_time + span


	@property
	def clips (self) -> typing.List[Clip]:
		return list(self._clips.values())


	@property
	def track_indices (self) -> typing.List[int]:
		return sorted({clip.track_index for clip in self._clips.values()})


	def arrangement_clips (self, track_index: int) -> typing.List[Clip]:

		"""
		Arrangement clips on a track in timeline order.
		"""

		clips = [clip for clip in self._clips.values() if clip.track_index == track_index and clip.start_time is not None]

		return sorted(clips, key=lambda clip: typing.cast(float, clip.start_time))


	def clips_in_range (self, track_index: int, start: float, end: float) -> typing.List[Clip]:

		"""
		Arrangement clips on a track whose start lies in [start, end), raw beats.
		"""

		epsilon = clipmod.constants.durations.TIME_EPSILON

		return [
			clip for clip in self.arrangement_clips(track_index)
			if start - epsilon <= typing.cast(float, clip.start_time) < end - epsilon
		]


	def resolve (self, clip_ids: typing.Iterable[str]) -> typing.Tuple[typing.List[Clip], typing.List[str]]:

		"""
		Look up clips by id. Returns (found clips in the given order, missing ids).
		"""

		found = []
		missing = []

		for clip_id in clip_ids:
			clip = self._clips.get(clip_id)
			if clip is None:
				missing.append(clip_id)
			else:
				found.append(clip)

		return found, missing


	def snapshot (self) -> typing.Tuple[typing.Dict[str, Clip], int]:

		"""
		Capture the full state so that a failed invocation can be rolled back.
		"""

		return copy.deepcopy(self._clips), self._next_id


	def restore (self, state: typing.Tuple[typing.Dict[str, Clip], int]) -> None:

		clips, next_id = state
		self._clips = copy.deepcopy(clips)
		self._next_id = next_id
