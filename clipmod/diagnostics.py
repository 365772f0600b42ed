import dataclasses
import enum
import logging
import typing


logger = logging.getLogger(__name__)


class WarningKind(enum.Enum):

	"""
	Non-fatal conditions reported back to the caller.

	Each kind is reported at most once per invocation, whatever the message.
	"""

	EMPTY_SELECTION = "empty-selection"
	CLIP_NOT_FOUND = "clip-not-found"
	SYNC_UNAVAILABLE = "sync-unavailable"
	SLICE_NO_ARRANGEMENT = "slice-no-arrangement"
	SLICE_SESSION_CLIP = "slice-session-clip"
	SHUFFLE_NO_ARRANGEMENT = "shuffle-no-arrangement"
	AUDIO_PARAMETER_ON_MIDI = "audio-parameter-on-midi"
	MIDI_PARAMETER_ON_AUDIO = "midi-parameter-on-audio"
	TRANSPOSE_VALUES_OVERRIDE = "transpose-values-override"


@dataclasses.dataclass
class WarningLog:

	"""
	Collects soft warnings for one invocation, keyed by kind.

	The first message recorded for a kind is kept and logged; later ones are
	dropped.
	"""

	entries: typing.Dict[WarningKind, str] = dataclasses.field(default_factory=dict)

	def add (self, kind: WarningKind, message: str) -> bool:

		"""
		Record a warning. Returns True if this kind had not been seen yet.
		"""

		if kind in self.entries:
			return False

		self.entries[kind] = message
		logger.warning("%s: %s", kind.value, message)

		return True

	def __contains__ (self, kind: object) -> bool:
		return kind in self.entries

	def __len__ (self) -> int:
		return len(self.entries)

	@property
	def kinds (self) -> typing.List[WarningKind]:
		return list(self.entries)

	@property
	def messages (self) -> typing.List[str]:
		return list(self.entries.values())
