"""
Test fixtures for QR Menu tests.
Provides in-memory key-value stores and sample restaurant data.
"""

from .fake_store import InMemoryStore, FailingStore
from .sample_menus import (
    OWNER_EMAIL,
    OWNER_PASSWORD,
    seed_trattoria,
    seed_other_owner,
)

__all__ = [
    "InMemoryStore",
    "FailingStore",
    "OWNER_EMAIL",
    "OWNER_PASSWORD",
    "seed_trattoria",
    "seed_other_owner",
]
