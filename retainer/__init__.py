"""
Retainer
========

A small toolkit for managing service contracts: create, edit and delete
active contracts, sweep expired ones into an archive log, and compute
revenue statistics.

Sub‑modules
~~~~~~~~~~~
- :pymod:`retainer.models`     – ``Contract`` / ``ArchiveEntry`` dataclasses + enums
- :pymod:`retainer.lifecycle`  – ACTIVE → ARCHIVED guard and expiry check
- :pymod:`retainer.store`      – ``ContractStore`` (persistence, sweep timer, subscribers)
- :pymod:`retainer.storage`    – memory, SQL (SQLModel) and REST (httpx) backends
- :pymod:`retainer.stats`      – revenue, distribution and monthly history
- :pymod:`retainer.migrate`    – copy data between backends
- :pymod:`retainer.deps`       – build a store from settings

Quick start
-----------
>>> from retainer.models import ContractInput
>>> from retainer.storage import MemoryBackend
>>> from retainer.store import ContractStore
>>> async with ContractStore(MemoryBackend()) as store:
...     await store.create(ContractInput("Doe", "Jane", ["SEO"], 1200, "monthly", "2024-01-01"))
"""

__all__ = [
    "models",
    "lifecycle",
    "store",
    "storage",
    "stats",
    "migrate",
    "deps",
]

__version__ = "0.1.0"
