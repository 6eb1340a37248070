"""Filesystem-backed archive sink for import payloads and error reports.

Artifacts are written once under a flat directory; the name returned by
:meth:`LocalArchiveSink.store` is the file name relative to that directory.
Blocking file I/O runs via ``asyncio.to_thread`` so the event loop stays free
during large imports.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from src.interfaces.archive_sink import IArchiveSink
from src.utils.errors import CatalogValidationError, StorageFaultError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_ARCHIVE_DIR = Path("data/archives")


class LocalArchiveSink(IArchiveSink):
    """Stores artifacts as plain files under ``archive_dir``."""

    def __init__(self, archive_dir: str | Path = _DEFAULT_ARCHIVE_DIR) -> None:
        self._archive_dir = Path(archive_dir)

    @property
    def archive_dir(self) -> Path:
        return self._archive_dir

    def get_provider_name(self) -> str:
        return "local_archive"

    async def store(self, name: str, content: bytes) -> str:
        path = self._resolve(name)
        try:
            await asyncio.to_thread(self._write_sync, path, content)
        except OSError as exc:
            logger.error("archive_write_failed", name=name, error=str(exc))
            raise StorageFaultError(f"Could not archive {name}: {exc}") from exc
        logger.info("artifact_archived", name=name, size_bytes=len(content))
        return name

    async def retrieve(self, name: str) -> bytes | None:
        path = self._resolve(name)
        if not path.is_file():
            return None
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise StorageFaultError(f"Could not read artifact {name}: {exc}") from exc

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _write_sync(self, path: Path, content: bytes) -> None:
        self._archive_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    def _resolve(self, name: str) -> Path:
        # Names are flat; anything with a directory component is refused.
        if not name or Path(name).name != name or name in (".", ".."):
            raise CatalogValidationError(f"Invalid artifact name: {name!r}", field_name="name")
        return self._archive_dir / name
