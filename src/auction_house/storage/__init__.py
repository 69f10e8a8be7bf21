"""Persistence adapters for the auction store."""

from .json_store import JsonFilePersistence
from .memory_store import MemoryPersistence

__all__ = ["JsonFilePersistence", "MemoryPersistence"]
