"""Storage adapters implementing core ports."""

from tailorpulse.adapters.storage.in_memory import (
    InMemoryAlertStorage,
    InMemoryErrorStorage,
    InMemoryRequestSampleStorage,
    InMemorySystemSampleStorage,
)
from tailorpulse.adapters.storage.sqlite_alerts import SQLiteAlertStorage
from tailorpulse.adapters.storage.sqlite_errors import SQLiteErrorStorage
from tailorpulse.adapters.storage.sqlite_samples import (
    SQLiteRequestSampleStorage,
    SQLiteSystemSampleStorage,
)

__all__ = [
    "InMemoryAlertStorage",
    "InMemoryErrorStorage",
    "InMemoryRequestSampleStorage",
    "InMemorySystemSampleStorage",
    "SQLiteAlertStorage",
    "SQLiteErrorStorage",
    "SQLiteRequestSampleStorage",
    "SQLiteSystemSampleStorage",
]
