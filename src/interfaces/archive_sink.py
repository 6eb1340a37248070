"""Abstract base class for durable blob storage of import artifacts.

The batch importer archives every original payload and, when records fail,
a JSON error report.  Both are addressed later by the name returned from
:meth:`IArchiveSink.store`.  Concrete implementation: LocalArchiveSink
(src/providers/archive/local_archive_sink.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class IArchiveSink(ABC):
    """Contract for write-once artifact storage."""

    @abstractmethod
    async def store(self, name: str, content: bytes) -> str:
        """Persist *content* under *name* and return the name to retrieve it by.

        Raises ``StorageFaultError`` if the artifact cannot be written.
        """

    @abstractmethod
    async def retrieve(self, name: str) -> bytes | None:
        """Return the artifact stored under *name*, or None if absent."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this sink."""
