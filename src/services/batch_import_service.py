"""Batch genre import - validate, persist, then link.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (business logic orchestration).
# Depends on: ITaxonomyStore, IArchiveSink, SimilarityMetric.
#
# One import runs in two explicit passes over the batch:
#
#   PASS 1 - per record, in file order, each stage isolated:
#     schema      GenreImportRecord validation (types, ranges, rgb syntax,
#                 subgenre/colour exclusion, bpm min <= max)
#     business    name uniqueness in scope, parent resolution (id, then
#                 main-genre name), related names resolvable in the store
#                 or among the batch's own schema-valid records
#     conversion  rgb string → components, build the Genre record
#     persistence write the genre
#
#   PASS 2 - for every persisted record: parent edge (influence 10) and
#     explicit related-genre edges.  Running this after every genre exists
#     lets record N relate to a genre defined by record N+1.
#
# A failing record lands in the report's ``errors`` with its original raw
# payload and the rest of the batch carries on.  Only a StorageFaultError
# (store or archive unreachable) aborts the whole import.
#
# Artifacts (via IArchiveSink):
#   {YYYYMMDD_HHMMSS}_{id8}_{file_name}   the original payload, always
#   {YYYYMMDD_HHMMSS}_{id8}_errors.json   failing records, only if any
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import structlog
from pydantic import ValidationError

from src.interfaces.archive_sink import IArchiveSink
from src.interfaces.taxonomy_store import ITaxonomyStore
from src.models.genre import Genre, GenreAttributes
from src.models.genre_import import (
    GenreImportRecord,
    ImportErrorEntry,
    ImportReport,
    ImportStage,
    RelatedGenreImport,
)
from src.services.genre_catalog_service import PARENT_EDGE_INFLUENCE
from src.services.similarity import SimilarityMetric
from src.utils.color import parse_rgb_color
from src.utils.errors import (
    CatalogValidationError,
    GenreAlreadyExistsError,
    InvalidEdgeError,
    InvalidParentError,
    MusicTreeError,
    ParentNotFoundError,
    RelatedGenreNotFoundError,
    StorageFaultError,
    validation_error_from,
)
from src.utils.identifiers import fold_name, generate_genre_id

logger = structlog.get_logger(logger_name=__name__)

_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
_ID_PREFIX_LENGTH = 8


class _RecordRejected(Exception):
    """Internal signal: one record failed at a given stage."""

    def __init__(self, stage: ImportStage, error: MusicTreeError) -> None:
        super().__init__(str(error))
        self.stage = stage
        self.error = error


@dataclass
class _PendingLinks:
    """Edges to wire for one persisted genre in the second pass."""

    genre: Genre
    parent: Genre | None = None
    related: list[RelatedGenreImport] = field(default_factory=list)


class BatchImportPipeline:
    """Imports many genres at once with per-record failure isolation."""

    def __init__(
        self,
        store: ITaxonomyStore,
        archive: IArchiveSink,
        metric: SimilarityMetric | None = None,
    ) -> None:
        self._store = store
        self._archive = archive
        self._metric = metric or SimilarityMetric()

    # ── Public API ─────────────────────────────────────────────────────

    async def import_json(self, payload: bytes | str, file_name: str) -> ImportReport:
        """Parse a JSON import file and run the batch.

        The document's top level must be a list of record objects.  Keys
        are matched case-insensitively.  A bad file name or an unparseable
        document raises CatalogValidationError before anything is archived.
        """
        if not file_name or not file_name.lower().endswith(".json"):
            raise CatalogValidationError(
                "Only .json files are accepted for import", field_name="file_name"
            )
        raw_bytes = payload.encode("utf-8") if isinstance(payload, str) else payload
        try:
            document = json.loads(raw_bytes.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise CatalogValidationError(
                f"Import file is not valid JSON: {exc}", field_name="file"
            ) from exc
        if not isinstance(document, list):
            raise CatalogValidationError(
                "Import file must contain a JSON array of genre records", field_name="file"
            )
        return await self._run(document, raw_bytes, file_name)

    async def import_batch(
        self,
        records: Sequence[Any],
        file_name: str = "batch.json",
    ) -> ImportReport:
        """Run the batch over already-decoded records."""
        records = list(records)
        raw_bytes = json.dumps(records, indent=2, default=str).encode("utf-8")
        return await self._run(records, raw_bytes, file_name)

    # ── Pipeline ───────────────────────────────────────────────────────

    async def _run(self, records: list[Any], raw_bytes: bytes, file_name: str) -> ImportReport:
        import_id = str(uuid4())
        started_at = datetime.now(timezone.utc)
        stamp = started_at.strftime(_TIMESTAMP_FORMAT)
        prefix = f"{stamp}_{import_id[:_ID_PREFIX_LENGTH]}"

        with structlog.contextvars.bound_contextvars(import_id=import_id):
            logger.info("import_started", file_name=file_name, total=len(records))
            archived_name = await self._archive.store(f"{prefix}_{file_name}", raw_bytes)

            errors: list[ImportErrorEntry] = []

            # Schema stage for the whole batch first, so business validation
            # can see which names the batch itself will provide.
            valid: list[tuple[int, Any, GenreImportRecord]] = []
            for index, raw in enumerate(records):
                try:
                    valid.append((index, raw, self._validate_schema(raw)))
                except _RecordRejected as rejected:
                    errors.append(self._error_entry(index, raw, rejected))

            batch_names: dict[str, set[int]] = {}
            for index, _raw, record in valid:
                batch_names.setdefault(fold_name(record.name), set()).add(index)

            # PASS 1 - business, conversion, persistence.
            pending: list[_PendingLinks] = []
            for index, raw, record in valid:
                try:
                    pending.append(await self._process_record(index, record, batch_names))
                except _RecordRejected as rejected:
                    errors.append(self._error_entry(index, raw, rejected))

            # PASS 2 - relationships.
            relationship_errors: list[str] = []
            for links in pending:
                relationship_errors.extend(await self._wire_relationships(links))

            errors.sort(key=lambda entry: entry.index)
            error_file_name: str | None = None
            if errors:
                error_file_name = await self._archive.store(
                    f"{prefix}_errors.json", self._render_errors(errors)
                )

            report = ImportReport(
                import_id=import_id,
                total=len(records),
                imported=len(pending),
                failed=len(errors),
                errors=errors,
                imported_genre_ids=[links.genre.id for links in pending],
                relationship_errors=relationship_errors,
                archived_file_name=archived_name,
                error_file_name=error_file_name,
            )
            logger.info(
                "import_completed",
                total=report.total,
                imported=report.imported,
                failed=report.failed,
                relationship_errors=len(relationship_errors),
            )
            return report

    # ── Stages ─────────────────────────────────────────────────────────

    @staticmethod
    def _validate_schema(raw: Any) -> GenreImportRecord:
        try:
            return GenreImportRecord.model_validate(_normalize_keys(raw))
        except ValidationError as exc:
            raise _RecordRejected(ImportStage.SCHEMA, _describe_schema_error(exc)) from exc

    async def _process_record(
        self,
        index: int,
        record: GenreImportRecord,
        batch_names: dict[str, set[int]],
    ) -> _PendingLinks:
        stage = ImportStage.BUSINESS
        try:
            parent = await self._resolve_parent(record)
            scope_parent = parent.id if parent is not None else None
            if await self._store.exists_by_name(record.name, scope_parent):
                raise GenreAlreadyExistsError(f"Genre '{record.name}' already exists")
            for related in record.related_genre or []:
                await self._check_related_name(index, record, related, batch_names)

            stage = ImportStage.CONVERSION
            genre = self._to_genre(record, parent)

            stage = ImportStage.PERSISTENCE
            await self._store.add_genre(genre)
        except StorageFaultError:
            raise
        except MusicTreeError as exc:
            raise _RecordRejected(stage, exc) from exc

        logger.info("genre_imported", index=index, genre_id=genre.id, name=genre.name)
        return _PendingLinks(genre=genre, parent=parent, related=list(record.related_genre or []))

    async def _resolve_parent(self, record: GenreImportRecord) -> Genre | None:
        if not record.is_subgenre:
            return None
        reference = record.parent_genre or ""
        parent = await self._store.get_by_id(reference)
        if parent is None:
            parent = await self._store.find_by_name(reference, main_genres_only=True)
        if parent is None:
            raise ParentNotFoundError(f"Parent genre '{reference}' not found")
        if parent.is_subgenre:
            raise InvalidParentError(f"Parent genre '{reference}' is itself a subgenre")
        return parent

    async def _check_related_name(
        self,
        index: int,
        record: GenreImportRecord,
        related: RelatedGenreImport,
        batch_names: dict[str, set[int]],
    ) -> None:
        key = fold_name(related.name)
        if batch_names.get(key, set()) - {index}:
            return
        if await self._store.find_by_name(related.name) is not None:
            return
        # Nothing else carries the name, so the reference can only mean this record.
        if key == fold_name(record.name):
            raise InvalidEdgeError(
                f"Genre '{record.name}' cannot be related to itself", field_name="related_genre"
            )
        raise RelatedGenreNotFoundError(
            f"Related genre '{related.name}' not found", field_name="related_genre"
        )

    @staticmethod
    def _to_genre(record: GenreImportRecord, parent: Genre | None) -> Genre:
        color_r = color_g = color_b = None
        if record.rgb:
            color_r, color_g, color_b = parse_rgb_color(record.rgb)
        try:
            return Genre(
                id=generate_genre_id(record.is_subgenre),
                name=record.name,
                description=record.description,
                is_subgenre=record.is_subgenre,
                parent_genre_id=parent.id if parent is not None else None,
                attributes=GenreAttributes(
                    mode=record.mode,
                    bpm_lower=record.bpm.min,
                    bpm_upper=record.bpm.max,
                    volume_db=record.volume,
                    compas_metric=record.compas,
                    avg_duration_sec=record.avrg_duration,
                    dominant_key=record.key,
                ),
                color_r=color_r,
                color_g=color_g,
                color_b=color_b,
                creation_year=record.creation_year,
                origin_country=record.origin_country,
                is_active=record.active,
            )
        except ValidationError as exc:
            raise validation_error_from(exc) from exc

    async def _wire_relationships(self, links: _PendingLinks) -> list[str]:
        """Upsert the parent and related edges of one genre; return failures."""
        failures: list[str] = []
        genre = links.genre

        targets: list[tuple[Genre | None, str, int]] = []
        if links.parent is not None:
            targets.append((links.parent, links.parent.name, PARENT_EDGE_INFLUENCE))
        for related in links.related:
            target = await self._store.find_by_name(related.name, exclude_genre_id=genre.id)
            targets.append((target, related.name, related.influence))

        for target, label, influence in targets:
            if target is None:
                failures.append(f"{genre.name} -> {label}: related genre not found")
                continue
            mgpc = self._metric.compute(genre.attributes, target.attributes)
            try:
                await self._store.upsert_edge(genre.id, target.id, influence, mgpc)
            except StorageFaultError:
                raise
            except MusicTreeError as exc:
                failures.append(f"{genre.name} -> {label}: {exc}")
                logger.warning(
                    "import_relationship_failed",
                    genre_id=genre.id,
                    related=label,
                    error=str(exc),
                )
                continue
            logger.debug(
                "relationship_upserted",
                genre_id=genre.id,
                related_genre_id=target.id,
                influence=influence,
            )
        return failures

    # ── Report helpers ─────────────────────────────────────────────────

    @staticmethod
    def _error_entry(index: int, raw: Any, rejected: _RecordRejected) -> ImportErrorEntry:
        logger.warning(
            "import_record_rejected",
            index=index,
            stage=rejected.stage.value,
            error=rejected.error.message,
        )
        return ImportErrorEntry(
            index=index,
            original_record=raw,
            error_description=rejected.error.message,
            field_name=rejected.error.field_name or "",
            stage=rejected.stage,
        )

    @staticmethod
    def _render_errors(errors: list[ImportErrorEntry]) -> bytes:
        rows = [
            {
                "index": entry.index,
                "original_record": entry.original_record,
                "error_description": entry.error_description,
                "field_name": entry.field_name,
                "stage": entry.stage.value,
            }
            for entry in errors
        ]
        return json.dumps(rows, indent=2, default=str).encode("utf-8")


def _normalize_keys(value: Any) -> Any:
    """Lower-case every object key, recursively, so "BPM" matches "bpm"."""
    if isinstance(value, dict):
        return {
            key.lower() if isinstance(key, str) else key: _normalize_keys(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_normalize_keys(item) for item in value]
    return value


def _describe_schema_error(exc: ValidationError) -> CatalogValidationError:
    """Join every pydantic complaint into one readable description."""
    parts: list[str] = []
    for error in exc.errors():
        message = error["msg"].removeprefix("Value error, ")
        location = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            message = "field is required"
        parts.append(f"{location}: {message}" if location else message)
    first_location = ".".join(str(part) for part in exc.errors()[0]["loc"])
    return CatalogValidationError("; ".join(parts), field_name=first_location or None)
