import dataclasses
import logging
import os
import typing

import yaml

import clipmod.constants.limits
import clipmod.musical_time
import clipmod.random_params


logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Settings:

	"""
	Settings read from a YAML config file.

	Example ``clipmod.yaml``::

		transform:
		  max_slices: 64
		  seed: 42
		midi:
		  ticks_per_beat: 960
		  time_signature: 6/8
		logging:
		  level: DEBUG
		randomize:
		  velocity_min: -10
		  velocity_max: 10
	"""

	max_slices: int = clipmod.constants.limits.MAX_SLICES
	seed: typing.Optional[int] = None
	# None keeps whatever the input file uses
	ticks_per_beat: typing.Optional[int] = None
	time_signature: typing.Optional[clipmod.musical_time.TimeSignature] = None
	log_level: str = "INFO"
	randomization: typing.Optional[clipmod.random_params.RandomizationSpec] = None

	@classmethod
	def from_mapping (cls, config: typing.Optional[typing.Mapping[str, typing.Any]]) -> "Settings":

		"""
		Build settings from a parsed config, using defaults for anything missing.
		"""

		config = config or {}

		transform = config.get('transform', {}) or {}
		midi = config.get('midi', {}) or {}
		log_config = config.get('logging', {}) or {}
		randomize = config.get('randomize')

		max_slices = int(transform.get('max_slices', clipmod.constants.limits.MAX_SLICES))

		if max_slices <= 0:
			raise ValueError("transform.max_slices must be positive")

		seed = transform.get('seed')
		ticks_per_beat = midi.get('ticks_per_beat')
		time_signature = midi.get('time_signature')

		return cls(
			max_slices = max_slices,
			seed = int(seed) if seed is not None else None,
			ticks_per_beat = int(ticks_per_beat) if ticks_per_beat is not None else None,
			time_signature = clipmod.musical_time.parse_time_signature(str(time_signature)) if time_signature is not None else None,
			log_level = str(log_config.get('level', "INFO")).upper(),
			randomization = clipmod.random_params.RandomizationSpec.from_mapping(randomize) if randomize else None
		)


def load_config (config_path: str = 'clipmod.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning("Config file %s not found. Using defaults.", config_path)
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def load_settings (config_path: str = 'clipmod.yaml') -> Settings:
	return Settings.from_mapping(load_config(config_path))
