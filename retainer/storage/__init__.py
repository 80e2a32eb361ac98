"""Persistence backends for the contract store."""

from .base import StorageBackend
from .db import SqlBackend
from .memory import MemoryBackend
from .rest import RestBackend

__all__ = ["StorageBackend", "MemoryBackend", "SqlBackend", "RestBackend"]
