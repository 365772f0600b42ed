"""Standard MIDI file import and export.

A file becomes a ``LiveSet`` with one arrangement clip per track that has
notes, starting at bar 1. Writing flattens each track's arrangement clips
back into note events, repeating looped content across each clip's span.
"""

import dataclasses
import logging
import math
import typing

import mido

import clipmod.constants.durations
import clipmod.constants.limits
import clipmod.live_set
import clipmod.musical_time
import clipmod.slicing


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class MidiDocument:

	"""
	A loaded MIDI file: the clip store plus what is needed to write it back.
	"""

	live_set: clipmod.live_set.LiveSet
	ticks_per_beat: int = clipmod.constants.durations.DEFAULT_TICKS_PER_BEAT
	track_names: typing.Dict[int, str] = dataclasses.field(default_factory=dict)
	channels: typing.Dict[int, int] = dataclasses.field(default_factory=dict)


def read_midi_file (
	filename: str,
	default_time_signature: typing.Optional[clipmod.musical_time.TimeSignature] = None
) -> MidiDocument:

	"""
	Load a standard MIDI file.

	Note-ons are paired with the next note-off (or zero-velocity note-on) of
	the same channel and pitch. Each clip is rounded up to whole bars.
	``default_time_signature`` is used when the file has no time signature
	event (otherwise 4/4).
	"""

	mid = mido.MidiFile(filename)
	ticks_per_beat = mid.ticks_per_beat

	time_signature = _find_time_signature(mid) or default_time_signature or clipmod.musical_time.TimeSignature()
	live_set = clipmod.live_set.LiveSet(time_signature)
	document = MidiDocument(live_set=live_set, ticks_per_beat=ticks_per_beat)

	bar_length = clipmod.musical_time.musical_to_raw(clipmod.musical_time.bar_duration(time_signature), time_signature)

	for track_index, track in enumerate(mid.tracks):

		notes, channel = _read_track_notes(track, ticks_per_beat)

		if track.name:
			document.track_names[track_index] = track.name

		if not notes:
			continue

		document.channels[track_index] = channel

		end = max(note.start_time + note.duration for note in notes)
		length = max(bar_length, math.ceil(end / bar_length) * bar_length)

		live_set.add_clip(
			track_index,
			length = length,
			start_time = 0.0,
			notes = notes,
			looping = False,
			name = track.name
		)

	logger.info("Loaded %s: %d clip(s), time signature %s", filename, len(live_set.clips), time_signature)

	return document


def write_midi_file (document: MidiDocument, filename: str) -> None:

	"""
	Write every MIDI track's arrangement clips to a type 1 MIDI file.
	"""

	live_set = document.live_set
	ticks_per_beat = document.ticks_per_beat

	mid = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)

	track_indices = sorted(set(live_set.track_indices) | set(document.track_names))

	if not track_indices:
		track_indices = [0]

	for position, track_index in enumerate(track_indices):

		track = mido.MidiTrack()
		mid.tracks.append(track)

		if track_index in document.track_names:
			track.append(mido.MetaMessage('track_name', name=document.track_names[track_index], time=0))

		if position == 0:
			track.append(mido.MetaMessage(
				'time_signature',
				numerator = live_set.time_signature.numerator,
				denominator = live_set.time_signature.denominator,
				time = 0
			))

		channel = document.channels.get(track_index, 0)
		events = _track_events(live_set, track_index, ticks_per_beat)

		last_tick = 0

		for tick, _, message_type, note in events:

			velocity = 0 if message_type == 'note_off' else _midi_velocity(note.velocity)

			track.append(mido.Message(
				message_type,
				channel = channel,
				note = int(note.pitch),
				velocity = velocity,
				time = tick - last_tick
			))

			last_tick = tick

	mid.save(filename)

	logger.info("Saved %s", filename)


def _find_time_signature (mid: mido.MidiFile) -> typing.Optional[clipmod.musical_time.TimeSignature]:

	for track in mid.tracks:
		for message in track:
			if message.type == 'time_signature':
				return clipmod.musical_time.TimeSignature(message.numerator, message.denominator)

	return None


def _read_track_notes (track: mido.MidiTrack, ticks_per_beat: int) -> typing.Tuple[typing.List[clipmod.live_set.Note], int]:

	notes: typing.List[clipmod.live_set.Note] = []
	pending: typing.Dict[typing.Tuple[int, int], typing.List[typing.Tuple[int, int]]] = {}
	channel = 0
	tick = 0

	for message in track:

		tick += message.time

		if message.type == 'note_on' and message.velocity > 0:
			pending.setdefault((message.channel, message.note), []).append((tick, message.velocity))
			channel = message.channel

		elif message.type in ('note_off', 'note_on'):
			starts = pending.get((message.channel, message.note))
			if starts:
				start_tick, velocity = starts.pop(0)
				notes.append(_make_note(message.note, start_tick, tick, velocity, ticks_per_beat))

	# Notes never switched off end with the track
	for (_, pitch), starts in pending.items():
		for start_tick, velocity in starts:
			logger.warning("Note %d at tick %d has no note-off; ending it at tick %d", pitch, start_tick, tick)
			notes.append(_make_note(pitch, start_tick, tick, velocity, ticks_per_beat))

	notes.sort(key=lambda note: (note.start_time, note.pitch))

	return notes, channel


def _make_note (pitch: int, start_tick: int, end_tick: int, velocity: int, ticks_per_beat: int) -> clipmod.live_set.Note:

	return clipmod.live_set.Note(
		pitch = pitch,
		start_time = start_tick / ticks_per_beat,
		duration = max(end_tick - start_tick, 1) / ticks_per_beat,
		velocity = velocity
	)


def _track_events (
	live_set: clipmod.live_set.LiveSet,
	track_index: int,
	ticks_per_beat: int
) -> typing.List[typing.Tuple[int, int, str, clipmod.live_set.Note]]:

	"""
	Absolute-tick note events for one track, note-offs sorted before note-ons at the same tick.
	"""

	events = []

	for clip in live_set.arrangement_clips(track_index):

		if clip.kind is not clipmod.live_set.ClipKind.MIDI:
			continue

		clip_start = typing.cast(float, clip.start_time)

		if clip.looping and clip.span > clip.length:
			notes = clipmod.slicing.segment_notes(clip, 0.0, clip.span)
		else:
			notes = clip.notes

		for note in notes:

			# Negative positions (timing is unclamped) are pulled to the file start
			start_tick = max(0, round((clip_start + note.start_time) * ticks_per_beat))
			end_tick = max(start_tick + 1, round((clip_start + note.start_time + note.duration) * ticks_per_beat))

			events.append((start_tick, 1, 'note_on', note))
			events.append((end_tick, 0, 'note_off', note))

	events.sort(key=lambda event: (event[0], event[1], event[3].pitch))

	return events


def _midi_velocity (velocity: float) -> int:
	return int(max(clipmod.constants.limits.MIN_VELOCITY, min(clipmod.constants.limits.MAX_VELOCITY, round(velocity))))
