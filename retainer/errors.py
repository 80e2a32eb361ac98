"""
retainer.errors
===============

Typed exceptions raised by the contract store and its backends.

Every error is recoverable at the call site: the store never leaves a
half‑applied mutation visible after raising one of these.

    RetainerError
    ├── ValidationError   – malformed / missing input, nothing persisted
    ├── NotFoundError     – unknown contract or archive id, no state change
    └── PersistenceError  – backend read / write failed
"""

from __future__ import annotations

from typing import Dict, Optional


class RetainerError(Exception):
    """Base class for all retainer errors."""


class ValidationError(RetainerError, ValueError):
    """
    Input rejected before any state change.

    ``errors`` maps each offending field name to a human readable message.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        detail = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(f"invalid contract data ({detail})")


class NotFoundError(RetainerError, KeyError):
    """An operation referenced an id that is not in the store."""

    def __init__(self, kind: str, id: str) -> None:
        self.kind = kind
        self.id = id
        super().__init__(f"{kind} {id!r} not found")

    def __str__(self) -> str:  # KeyError would repr() the message
        return self.args[0]


class PersistenceError(RetainerError):
    """Durable storage could not be read or written."""

    def __init__(self, message: str, *, backend: Optional[str] = None) -> None:
        self.backend = backend
        super().__init__(message)
