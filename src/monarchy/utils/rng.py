"""Injectable random sources for the Monarchy rules engine.

Engine functions that need randomness never touch the ``random`` module
directly; they accept an object satisfying :class:`RandomSource`. This keeps
every outcome reproducible:

- Reproducibility: the same seed always produces the same draws
- Testability: ``FixedRandomSource`` pins draws to a known value
- Auditability: every seeded draw can be traced back to its seed string

Examples:
    >>> seed = generate_seed(game_id=1, turn=42, action="attack", context="land_roll")
    >>> source = SeededRandomSource(seed)
    >>> 0.0 <= source.random() < 1.0
    True

    >>> FixedRandomSource(0.5).uniform(10, 20)
    15.0
"""

import hashlib
import random
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """Minimal interface the engine draws from."""

    def random(self) -> float:
        """Return a float in ``[0, 1)``."""
        ...

    def uniform(self, a: float, b: float) -> float:
        """Return a float between ``a`` and ``b``."""
        ...


def generate_seed(game_id: int, turn: int, action: str, context: str) -> str:
    """Generate a deterministic seed from game state.

    Format: "game_id:turn:action:context"

    Args:
        game_id: Game identifier
        turn: Current game turn
        action: Action kind being resolved (e.g., 'attack', 'thievery')
        context: What the draw is for (e.g., 'kingdom_3_vs_7')

    Returns:
        Seed string in format "game_id:turn:action:context"

    Examples:
        >>> generate_seed(1, 42, "attack", "kingdom_3_vs_7")
        '1:42:attack:kingdom_3_vs_7'

    Raises:
        ValueError: If game_id or turn is negative
    """
    if game_id < 0:
        raise ValueError(f"game_id must be non-negative, got {game_id}")
    if turn < 0:
        raise ValueError(f"turn must be non-negative, got {turn}")

    return f"{game_id}:{turn}:{action}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    # Use first 8 bytes for a 64-bit integer
    return int.from_bytes(digest[:8], "big", signed=False)


class SeededRandomSource:
    """Reproducible source keyed by a seed string."""

    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._rng = random.Random(_seed_to_int(seed))

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)


class FixedRandomSource:
    """Source that always yields the same point of the unit interval.

    ``uniform(a, b)`` maps the pinned value linearly onto ``[a, b]``, so
    ``FixedRandomSource(0.0)`` always picks the low end of a range and
    ``FixedRandomSource(1.0)`` the high end.
    """

    def __init__(self, value: float) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"value must be between 0.0 and 1.0, got {value}")
        self.value = value

    def random(self) -> float:
        return self.value

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.value


class SystemRandomSource:
    """Production default backed by an unseeded ``random.Random``."""

    def __init__(self) -> None:
        self._rng = random.Random()

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)


def check_success(source: RandomSource, probability: float) -> dict[str, Any]:
    """Check whether an event with ``probability`` succeeds.

    Returns:
        Dictionary containing:
            - success: Whether the check succeeded
            - roll: The drawn value in ``[0, 1)``
            - probability: The requested probability

    Raises:
        ValueError: If probability not in [0.0, 1.0]
    """
    if not 0.0 <= probability <= 1.0:
        raise ValueError(f"probability must be between 0.0 and 1.0, got {probability}")

    roll = source.random()
    return {
        "success": roll < probability,
        "roll": roll,
        "probability": probability,
    }
