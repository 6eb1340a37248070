"""Unit tests for LocalArchiveSink."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from src.providers.archive.local_archive_sink import LocalArchiveSink
from src.utils.errors import CatalogValidationError, StorageFaultError


@pytest.mark.asyncio
async def test_store_and_retrieve(tmp_path: Path) -> None:
    sink = LocalArchiveSink(archive_dir=tmp_path / "archives")
    name = await sink.store("20250101_120000_abcd1234_batch.json", b'[{"name": "House"}]')

    assert name == "20250101_120000_abcd1234_batch.json"
    assert (tmp_path / "archives" / name).read_bytes() == b'[{"name": "House"}]'
    assert await sink.retrieve(name) == b'[{"name": "House"}]'


@pytest.mark.asyncio
async def test_retrieve_missing_returns_none(tmp_path: Path) -> None:
    sink = LocalArchiveSink(archive_dir=tmp_path)
    assert await sink.retrieve("nothing.json") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["../escape.json", "sub/dir.json", "", ".."])
async def test_rejects_path_like_names(tmp_path: Path, name: str) -> None:
    sink = LocalArchiveSink(archive_dir=tmp_path)
    with pytest.raises(CatalogValidationError):
        await sink.store(name, b"{}")


@pytest.mark.asyncio
async def test_write_failure_is_a_storage_fault(tmp_path: Path) -> None:
    sink = LocalArchiveSink(archive_dir=tmp_path)
    with patch.object(Path, "write_bytes", side_effect=OSError("disk full")):
        with pytest.raises(StorageFaultError, match="disk full"):
            await sink.store("batch.json", b"[]")


def test_provider_name(tmp_path: Path) -> None:
    assert LocalArchiveSink(archive_dir=tmp_path).get_provider_name() == "local_archive"
