"""
retainer.storage.base
=====================

Shared abstract base class for all persistence backends.

Concrete subclasses implement ``load()`` and ``save(state)``; both are
coroutines so that remote stores can be awaited without blocking the
event loop.  Failures must surface as :class:`~retainer.errors.PersistenceError`.
"""

__all__ = ["StorageBackend", "RECORD_ERRORS"]

from abc import ABC, abstractmethod

from retainer.errors import ValidationError
from retainer.models import StoreState

# Raised while turning a persisted row back into a model (bad or missing fields)
RECORD_ERRORS = (ValidationError, KeyError, TypeError, ValueError)


class StorageBackend(ABC):
    """
    Durable home for the active contracts and the archive log.

    ``save`` receives the complete state; rows missing from it are
    removed from storage.
    """

    name = "storage"

    @abstractmethod
    async def load(self) -> StoreState:
        """Return everything currently persisted."""

    @abstractmethod
    async def save(self, state: StoreState) -> None:
        """Persist *state* so that a later ``load()`` returns it."""

    async def close(self) -> None:
        """Release connections; the default backend holds none."""
