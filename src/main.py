"""MusicTree catalog - dependency assembly.

# ─── APPLICATION ASSEMBLY ────────────────────────────────────────────
#
# This module wires every concrete adapter to every service.  Nothing
# else in the codebase constructs providers; services receive their
# collaborators through their constructors.
#
#   Settings (.env / environment)  ─┐
#   config/config.yaml             ─┴─► load_config() ─► dict
#                                                         │
#   weights_from_config(config) ─► MgpcWeights ─► SimilarityMetric
#                                                         │
#   SQLiteTaxonomyStore(storage.db_path) ─────────────────┤
#   LocalArchiveSink(import.archive_dir) ─────────────────┤
#                                                         ▼
#           GenreCatalogService · ClusterService · BatchImportPipeline
#
# build_catalog() is synchronous and touches no I/O; init_catalog() also
# creates the SQLite schema.  Transports (the CLI today) call one of them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from src.config.loader import load_config, weights_from_config
from src.config.settings import Settings
from src.interfaces.archive_sink import IArchiveSink
from src.interfaces.taxonomy_store import ITaxonomyStore
from src.providers.archive.local_archive_sink import LocalArchiveSink
from src.providers.taxonomy.sqlite_taxonomy_store import SQLiteTaxonomyStore
from src.services.batch_import_service import BatchImportPipeline
from src.services.cluster_service import ClusterService
from src.services.genre_catalog_service import GenreCatalogService
from src.services.similarity import SimilarityMetric
from src.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class Catalog:
    """Every assembled component, ready for a transport to use."""

    settings: Settings
    config: dict[str, Any]
    store: ITaxonomyStore
    archive: IArchiveSink
    metric: SimilarityMetric
    genres: GenreCatalogService
    clusters: ClusterService
    importer: BatchImportPipeline


def setup_logging(app_settings: Settings, config: dict[str, Any] | None = None) -> None:
    """Configure structlog from settings; JSON output in production."""
    level = ((config or {}).get("logging") or {}).get("level") or app_settings.log_level
    configure_logging(
        log_level=level,
        json_output=(app_settings.app_env == "production"),
    )


def build_catalog(
    app_settings: Settings | None = None,
    config: dict[str, Any] | None = None,
) -> Catalog:
    """Construct every provider and service without touching the database."""
    s = app_settings or Settings()
    cfg = config if config is not None else load_config(settings=s)

    metric = SimilarityMetric(weights_from_config(cfg))
    db_path = (cfg.get("storage") or {}).get("db_path") or s.catalog_db_path
    archive_dir = (cfg.get("import") or {}).get("archive_dir") or s.archive_dir or "data/archives"

    store = SQLiteTaxonomyStore(db_path=db_path)
    archive = LocalArchiveSink(archive_dir=archive_dir)

    catalog = Catalog(
        settings=s,
        config=cfg,
        store=store,
        archive=archive,
        metric=metric,
        genres=GenreCatalogService(store=store, metric=metric),
        clusters=ClusterService(store=store),
        importer=BatchImportPipeline(store=store, archive=archive, metric=metric),
    )
    logger.debug(
        "catalog_assembled",
        store=store.get_provider_name(),
        archive=archive.get_provider_name(),
        db_path=str(db_path),
        archive_dir=str(archive_dir),
    )
    return catalog


async def init_catalog(
    app_settings: Settings | None = None,
    config: dict[str, Any] | None = None,
) -> Catalog:
    """Build the catalog and make sure the store schema exists."""
    catalog = build_catalog(app_settings, config)
    await catalog.store.initialize()
    return catalog
