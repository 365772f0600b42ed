import random
import time
import typing

T = typing.TypeVar("T")


def resolve_seed (seed: typing.Optional[int] = None) -> int:

	"""
	Return the seed to use for an invocation.

	An explicit seed is used as-is; otherwise one is derived from the wall
	clock (milliseconds). The caller gets the resolved value back so that any
	run can be replayed exactly.
	"""

	if seed is not None:
		return int(seed)

	return time.time_ns() // 1_000_000


def create_rng (seed: int) -> random.Random:

	"""
	Create the single random stream owned by one invocation.
	"""

	return random.Random(seed)


def random_in_range (rng: random.Random, minimum: float, maximum: float) -> float:

	"""Draw a uniform value in [minimum, maximum) using one draw from ``rng``."""

	return minimum + rng.random() * (maximum - minimum)


def pick (values: typing.Sequence[T], rng: random.Random) -> T:

	"""Pick one element uniformly using a single draw.

	Repeated values are proportionally more likely, so ``pick([1, 1, 2], rng)``
	returns 1 two times out of three.

	Parameters:
		values: Candidates (must not be empty)
		rng: Random number generator instance
	"""

	if not values:
		raise ValueError("Cannot pick from an empty sequence")

	index = min(int(rng.random() * len(values)), len(values) - 1)

	return values[index]


def shuffle_order (count: int, rng: random.Random) -> typing.List[int]:

	"""Return a Fisher-Yates permutation of ``range(count)``.

	Walks from the last index down, swapping each with a uniformly chosen
	earlier-or-equal index, one draw per swap.
	"""

	order = list(range(count))

	for i in range(count - 1, 0, -1):
		j = int(rng.random() * (i + 1))
		order[i], order[j] = order[j], order[i]

	return order
