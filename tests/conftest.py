"""
Pytest configuration: make sure `import retainer` works regardless of
where pytest is invoked, and share the fixtures every test module uses.

It prepends the project root (one directory above *tests/*) to
``sys.path`` **before** any tests are collected.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from retainer.clock import FixedClock  # noqa: E402
from retainer.models import ContractInput  # noqa: E402
from retainer.storage.memory import MemoryBackend  # noqa: E402

NOW = datetime(2024, 7, 15, 10, 30, tzinfo=timezone.utc)


def make_input(**overrides) -> ContractInput:
    """A valid monthly contract; override any field."""
    fields = dict(
        last_name="Doe",
        first_name="Jane",
        service_types=["SEO"],
        amount=1200,
        billing_frequency="monthly",
        start_date="2024-01-01",
    )
    fields.update(overrides)
    return ContractInput(**fields)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def backend():
    return MemoryBackend()
