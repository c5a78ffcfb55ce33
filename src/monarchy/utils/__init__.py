"""Utility functions for the Monarchy rules engine."""

from monarchy.utils.rng import (
    FixedRandomSource,
    RandomSource,
    SeededRandomSource,
    SystemRandomSource,
    check_success,
    generate_seed,
)

__all__ = [
    "FixedRandomSource",
    "RandomSource",
    "SeededRandomSource",
    "SystemRandomSource",
    "check_success",
    "generate_seed",
]
