"""Persistence adapters for Monarchy game state."""

from monarchy.repository.json_store import JsonGameRepository

__all__ = ["JsonGameRepository"]
