"""Shared pytest fixtures for the MusicTree catalog test suite."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from src.models.genre import GenreAttributes
from src.providers.archive.local_archive_sink import LocalArchiveSink
from src.providers.taxonomy.sqlite_taxonomy_store import SQLiteTaxonomyStore
from src.services.batch_import_service import BatchImportPipeline
from src.services.cluster_service import ClusterService
from src.services.genre_catalog_service import GenreCatalogService
from src.services.similarity import SimilarityMetric

# ---------------------------------------------------------------------------
# Attribute / input builders
# ---------------------------------------------------------------------------


def _attributes(**overrides: Any) -> GenreAttributes:
    values: dict[str, Any] = {
        "mode": 0.5,
        "bpm_lower": 120,
        "bpm_upper": 128,
        "volume_db": -8,
        "compas_metric": 4,
        "avg_duration_sec": 360,
        "dominant_key": 9,
    }
    values.update(overrides)
    return GenreAttributes(**values)


def _genre_input(name: str = "House", **overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "name": name,
        "description": f"{name} music",
        "mode": 0.5,
        "bpm_lower": 118,
        "bpm_upper": 128,
        "volume_db": -8,
        "compas_metric": 4,
        "avg_duration_sec": 360,
        "dominant_key": 9,
    }
    values.update(overrides)
    return values


def _import_record(name: str = "Techno", **overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "name": name,
        "description": f"{name} from the batch",
        "mode": 0.3,
        "bpm": {"min": 125, "max": 135},
        "key": 2,
        "volume": -6,
        "compas": 4,
        "avrg_duration": 400,
    }
    values.update(overrides)
    return values


@pytest.fixture
def make_attributes() -> Callable[..., GenreAttributes]:
    """Factory for GenreAttributes with sensible house-music defaults."""
    return _attributes


@pytest.fixture
def genre_input() -> Callable[..., dict[str, Any]]:
    """Factory for create_genre payload dicts."""
    return _genre_input


@pytest.fixture
def import_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw batch-import records in JSON field naming."""
    return _import_record


# ---------------------------------------------------------------------------
# Providers and services on temporary storage
# ---------------------------------------------------------------------------


@pytest.fixture
async def store(tmp_path: Path) -> SQLiteTaxonomyStore:
    """An initialized SQLiteTaxonomyStore in a temp directory."""
    s = SQLiteTaxonomyStore(db_path=tmp_path / "catalog.db")
    await s.initialize()
    return s


@pytest.fixture
def archive(tmp_path: Path) -> LocalArchiveSink:
    return LocalArchiveSink(archive_dir=tmp_path / "archives")


@pytest.fixture
def metric() -> SimilarityMetric:
    return SimilarityMetric()


@pytest.fixture
def genre_service(store: SQLiteTaxonomyStore, metric: SimilarityMetric) -> GenreCatalogService:
    return GenreCatalogService(store=store, metric=metric)


@pytest.fixture
def cluster_service(store: SQLiteTaxonomyStore) -> ClusterService:
    return ClusterService(store=store)


@pytest.fixture
def importer(
    store: SQLiteTaxonomyStore,
    archive: LocalArchiveSink,
    metric: SimilarityMetric,
) -> BatchImportPipeline:
    return BatchImportPipeline(store=store, archive=archive, metric=metric)
