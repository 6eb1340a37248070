"""SQLite-backed genre taxonomy store.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing ITaxonomyStore).
# Pattern: Adapter pattern - wraps SQLite behind the ITaxonomyStore ABC
#          so the persistence backend can be swapped without touching
#          the catalog services.
#
# Database: ``data/musictree.db`` - three tables:
#   clusters              named groups of main genres
#   genres                main genres and subgenres (arena by opaque id)
#   genre_relationships   directed edges keyed by (genre_id, related_genre_id)
#
# Name uniqueness is scoped with two partial unique indexes: main-genre
# names are unique among main genres, subgenre names are unique per
# parent.  A concurrent writer that loses the race therefore gets an
# IntegrityError here, which is translated to GenreAlreadyExistsError.
#
# Case-insensitive lookups go through ``name_folded`` (Unicode casefold of
# ``name``, written on insert); SQLite NOCASE only folds ASCII.
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` for
# concurrent read safety.  One short-lived connection per operation.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.taxonomy_store import ITaxonomyStore
from src.models.genre import (
    Cluster,
    Genre,
    GenreAttributes,
    GenreListFilter,
    GenreRelation,
    RelatedGenreView,
    RelationDirection,
)
from src.utils.errors import (
    ClusterAlreadyExistsError,
    ConflictError,
    GenreAlreadyExistsError,
    InvalidEdgeError,
    InvariantViolationError,
    MusicTreeError,
    ReferenceResolutionError,
    StorageFaultError,
)
from src.utils.identifiers import fold_name
from src.utils.invariants import check_edge, check_genre

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/musictree.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_CLUSTERS_TABLE = """\
CREATE TABLE IF NOT EXISTS clusters (
    id          TEXT    PRIMARY KEY,
    name        TEXT    NOT NULL UNIQUE,
    description TEXT,
    is_active   INTEGER NOT NULL DEFAULT 1,
    created_at  TEXT    NOT NULL
);
"""

_CREATE_GENRES_TABLE = """\
CREATE TABLE IF NOT EXISTS genres (
    id               TEXT    PRIMARY KEY,
    name             TEXT    NOT NULL,
    name_folded      TEXT    NOT NULL,
    description      TEXT,
    is_subgenre      INTEGER NOT NULL DEFAULT 0 CHECK (is_subgenre IN (0, 1)),
    parent_genre_id  TEXT    REFERENCES genres(id),
    cluster_id       TEXT    REFERENCES clusters(id),
    mode             REAL    NOT NULL CHECK (mode BETWEEN 0 AND 1),
    bpm_lower        INTEGER NOT NULL CHECK (bpm_lower BETWEEN 0 AND 250),
    bpm_upper        INTEGER NOT NULL CHECK (bpm_upper BETWEEN 0 AND 250),
    volume_db        INTEGER NOT NULL CHECK (volume_db BETWEEN -60 AND 0),
    compas_metric    INTEGER NOT NULL CHECK (compas_metric BETWEEN 0 AND 8),
    avg_duration_sec INTEGER NOT NULL CHECK (avg_duration_sec BETWEEN 0 AND 3600),
    dominant_key     INTEGER NOT NULL DEFAULT -1 CHECK (dominant_key BETWEEN -1 AND 11),
    color_r          INTEGER CHECK (color_r BETWEEN 0 AND 255),
    color_g          INTEGER CHECK (color_g BETWEEN 0 AND 255),
    color_b          INTEGER CHECK (color_b BETWEEN 0 AND 255),
    creation_year    INTEGER,
    origin_country   TEXT,
    is_active        INTEGER NOT NULL DEFAULT 1,
    created_at       TEXT    NOT NULL,
    CHECK (bpm_lower <= bpm_upper),
    CHECK (parent_genre_id IS NULL OR parent_genre_id <> id),
    CHECK ((is_subgenre = 1) = (parent_genre_id IS NOT NULL)),
    CHECK (is_subgenre = 0 OR cluster_id IS NULL),
    CHECK (is_subgenre = 0 OR (color_r IS NULL AND color_g IS NULL AND color_b IS NULL)),
    CHECK ((color_r IS NULL) = (color_g IS NULL) AND (color_g IS NULL) = (color_b IS NULL))
);
"""

_CREATE_RELATIONSHIPS_TABLE = """\
CREATE TABLE IF NOT EXISTS genre_relationships (
    genre_id         TEXT    NOT NULL REFERENCES genres(id),
    related_genre_id TEXT    NOT NULL REFERENCES genres(id),
    influence        INTEGER NOT NULL CHECK (influence BETWEEN 1 AND 10),
    mgpc             REAL    NOT NULL CHECK (mgpc BETWEEN 0 AND 1),
    PRIMARY KEY (genre_id, related_genre_id),
    CHECK (genre_id <> related_genre_id)
);
"""

_CREATE_INDICES = [
    # Scoped name uniqueness.
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_genres_main_name "
    "ON genres(name) WHERE is_subgenre = 0;",
    "CREATE UNIQUE INDEX IF NOT EXISTS uq_genres_sub_name "
    "ON genres(parent_genre_id, name) WHERE is_subgenre = 1;",
    "CREATE INDEX IF NOT EXISTS idx_genres_name_folded ON genres(name_folded);",
    "CREATE INDEX IF NOT EXISTS idx_genres_parent ON genres(parent_genre_id);",
    "CREATE INDEX IF NOT EXISTS idx_genres_cluster ON genres(cluster_id);",
    "CREATE INDEX IF NOT EXISTS idx_relationships_related "
    "ON genre_relationships(related_genre_id);",
]

# ── DML ───────────────────────────────────────────────────────────────

_INSERT_GENRE = """\
INSERT INTO genres (
    id, name, name_folded, description, is_subgenre, parent_genre_id, cluster_id,
    mode, bpm_lower, bpm_upper, volume_db, compas_metric, avg_duration_sec,
    dominant_key, color_r, color_g, color_b, creation_year, origin_country,
    is_active, created_at
)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_GENRE_COLUMNS = """\
SELECT g.id, g.name, g.description, g.is_subgenre, g.parent_genre_id, g.cluster_id,
       g.mode, g.bpm_lower, g.bpm_upper, g.volume_db, g.compas_metric,
       g.avg_duration_sec, g.dominant_key, g.color_r, g.color_g, g.color_b,
       g.creation_year, g.origin_country, g.is_active, g.created_at,
       p.name AS parent_genre_name, c.name AS cluster_name
FROM genres g
LEFT JOIN genres p ON g.parent_genre_id = p.id
LEFT JOIN clusters c ON g.cluster_id = c.id
"""

_SELECT_OUTGOING = """\
SELECT r.related_genre_id AS other_id, o.name, o.is_subgenre, r.influence, r.mgpc
FROM genre_relationships r
JOIN genres o ON r.related_genre_id = o.id
WHERE r.genre_id = ?
ORDER BY o.name COLLATE BINARY, o.id;
"""

_SELECT_INCOMING = """\
SELECT r.genre_id AS other_id, o.name, o.is_subgenre, r.influence, r.mgpc
FROM genre_relationships r
JOIN genres o ON r.genre_id = o.id
WHERE r.related_genre_id = ?
ORDER BY o.name COLLATE BINARY, o.id;
"""

_EXISTS_MAIN_NAME = "SELECT 1 FROM genres WHERE name = ? AND is_subgenre = 0 LIMIT 1;"

_EXISTS_SUB_NAME = """\
SELECT 1 FROM genres
WHERE name = ? AND is_subgenre = 1 AND parent_genre_id = ?
LIMIT 1;
"""

_UPDATE_GENRE_ACTIVE = "UPDATE genres SET is_active = ? WHERE id = ?;"

_UPSERT_EDGE = """\
INSERT INTO genre_relationships (genre_id, related_genre_id, influence, mgpc)
VALUES (?, ?, ?, ?)
ON CONFLICT(genre_id, related_genre_id)
DO UPDATE SET influence = excluded.influence,
              mgpc = excluded.mgpc;
"""

_SELECT_EDGES = """\
SELECT genre_id, related_genre_id, influence, mgpc
FROM genre_relationships
WHERE genre_id = ? OR related_genre_id = ?
ORDER BY genre_id, related_genre_id;
"""

_UPDATE_EDGE_MGPC = """\
UPDATE genre_relationships SET mgpc = ?
WHERE genre_id = ? AND related_genre_id = ?;
"""

_DELETE_EDGE = "DELETE FROM genre_relationships WHERE genre_id = ? AND related_genre_id = ?;"

_INSERT_CLUSTER = """\
INSERT INTO clusters (id, name, description, is_active, created_at)
VALUES (?, ?, ?, ?, ?);
"""

_SELECT_CLUSTER = """\
SELECT id, name, description, is_active, created_at FROM clusters WHERE id = ?;
"""

_EXISTS_CLUSTER_NAME = "SELECT 1 FROM clusters WHERE name = ? LIMIT 1;"

_UPDATE_CLUSTER_ACTIVE = "UPDATE clusters SET is_active = ? WHERE id = ?;"


def _translate_integrity_error(
    exc: aiosqlite.IntegrityError,
    conflict_error: type[ConflictError],
) -> MusicTreeError:
    """Map a SQLite constraint failure onto the catalog error taxonomy."""
    text = str(exc)
    if "UNIQUE" in text or "PRIMARY KEY" in text:
        return conflict_error()
    if "FOREIGN KEY" in text:
        return ReferenceResolutionError("Referenced genre or cluster does not exist")
    if "CHECK" in text:
        return InvariantViolationError(f"Store constraint rejected the write: {text}")
    return StorageFaultError(f"Unexpected integrity failure: {text}")


class SQLiteTaxonomyStore(ITaxonomyStore):
    """SQLite-backed genre / cluster / relationship persistence.

    Every write re-checks the colour, hierarchy and edge invariants in
    Python before it reaches SQLite, and the schema repeats the same rules
    as CHECK constraints.
    """

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    @asynccontextmanager
    async def _connect(
        self,
        conflict_error: type[ConflictError] = ConflictError,
    ) -> AsyncIterator[aiosqlite.Connection]:
        """Open a connection with foreign keys on and errors translated."""
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys=ON;")
                yield db
        except aiosqlite.IntegrityError as exc:
            raise _translate_integrity_error(exc, conflict_error) from exc
        except aiosqlite.Error as exc:
            logger.error("taxonomy_store_fault", path=str(self._db_path), error=str(exc))
            raise StorageFaultError(f"Taxonomy store failure: {exc}") from exc

    async def initialize(self) -> None:
        """Create all taxonomy tables and indices if they don't exist."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageFaultError(f"Cannot create database directory: {exc}") from exc
        async with self._connect() as db:
            # WAL mode enables concurrent readers while a writer is active.
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_CLUSTERS_TABLE)
            await db.execute(_CREATE_GENRES_TABLE)
            await db.execute(_CREATE_RELATIONSHIPS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("taxonomy_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_taxonomy"

    # ── Genres ─────────────────────────────────────────────────────────

    async def exists_by_name(self, name: str, parent_genre_id: str | None = None) -> bool:
        async with self._connect() as db:
            if parent_genre_id is None:
                cursor = await db.execute(_EXISTS_MAIN_NAME, (name,))
            else:
                cursor = await db.execute(_EXISTS_SUB_NAME, (name, parent_genre_id))
            return await cursor.fetchone() is not None

    async def add_genre(self, genre: Genre) -> None:
        check_genre(genre)
        attrs = genre.attributes
        async with self._connect(conflict_error=GenreAlreadyExistsError) as db:
            await db.execute(_INSERT_GENRE, (
                genre.id,
                genre.name,
                fold_name(genre.name),
                genre.description,
                int(genre.is_subgenre),
                genre.parent_genre_id,
                genre.cluster_id,
                attrs.mode,
                attrs.bpm_lower,
                attrs.bpm_upper,
                attrs.volume_db,
                attrs.compas_metric,
                attrs.avg_duration_sec,
                attrs.dominant_key,
                genre.color_r,
                genre.color_g,
                genre.color_b,
                genre.creation_year,
                genre.origin_country,
                int(genre.is_active),
                genre.created_at.isoformat(),
            ))
            await db.commit()
        logger.debug("genre_row_inserted", genre_id=genre.id, name=genre.name)

    async def get_by_id(self, genre_id: str) -> Genre | None:
        """Retrieve one genre with parent, cluster and incident edges resolved."""
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_GENRE_COLUMNS + "WHERE g.id = ?;", (genre_id,))
            row = await cursor.fetchone()
            if row is None:
                return None
            relations = await self._fetch_relations(db, genre_id)
            return self._row_to_genre(dict(row), relations)

    async def find_by_name(
        self,
        name: str,
        *,
        main_genres_only: bool = False,
        exclude_genre_id: str | None = None,
    ) -> Genre | None:
        conditions = ["g.name_folded = ?"]
        params: list[Any] = [fold_name(name)]
        if main_genres_only:
            conditions.append("g.is_subgenre = 0")
        if exclude_genre_id is not None:
            conditions.append("g.id <> ?")
            params.append(exclude_genre_id)
        query = (
            _SELECT_GENRE_COLUMNS
            + f"WHERE {' AND '.join(conditions)}\n"
            + "ORDER BY g.is_subgenre ASC, g.created_at ASC, g.id ASC\nLIMIT 1;"
        )
        async with self._connect() as db:
            cursor = await db.execute(query, params)
            row = await cursor.fetchone()
            if row is None:
                return None
            relations = await self._fetch_relations(db, row["id"])
            return self._row_to_genre(dict(row), relations)

    async def list_genres(self, query: GenreListFilter | None = None) -> list[Genre]:
        """List genres with optional filtering, ordered by name then id."""
        query = query or GenreListFilter()

        # Build dynamic query based on filters.
        conditions: list[str] = []
        params: list[Any] = []

        if query.active_only:
            conditions.append("g.is_active = 1")
        if query.subgenres_only:
            conditions.append("g.is_subgenre = 1")
        elif not query.include_subgenres:
            conditions.append("g.is_subgenre = 0")
        if query.parent_genre_id is not None:
            conditions.append("g.parent_genre_id = ?")
            params.append(query.parent_genre_id)
        if query.cluster_id is not None:
            conditions.append("g.cluster_id = ?")
            params.append(query.cluster_id)
        if query.compas_metric is not None:
            conditions.append("g.compas_metric = ?")
            params.append(query.compas_metric)
        # Range intersection with [min_bpm, max_bpm].
        if query.min_bpm is not None:
            conditions.append("g.bpm_upper >= ?")
            params.append(query.min_bpm)
        if query.max_bpm is not None:
            conditions.append("g.bpm_lower <= ?")
            params.append(query.max_bpm)

        where_clause = f"WHERE {' AND '.join(conditions)}\n" if conditions else ""
        sql = _SELECT_GENRE_COLUMNS + where_clause + "ORDER BY g.name COLLATE BINARY, g.id;"

        genres: list[Genre] = []
        async with self._connect() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
            for row in rows:
                row_dict = dict(row)
                relations = await self._fetch_relations(db, row_dict["id"])
                genres.append(self._row_to_genre(row_dict, relations))
        return genres

    async def set_genre_active(self, genre_id: str, is_active: bool) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_UPDATE_GENRE_ACTIVE, (int(is_active), genre_id))
            await db.commit()
            updated = cursor.rowcount > 0
        if updated:
            logger.info("genre_active_changed", genre_id=genre_id, is_active=is_active)
        return updated

    # ── Relationship graph ─────────────────────────────────────────────

    async def upsert_edge(
        self,
        genre_id: str,
        related_genre_id: str,
        influence: int,
        mgpc: float,
    ) -> GenreRelation:
        check_edge(genre_id, related_genre_id, influence, mgpc)
        async with self._connect() as db:
            await db.execute(_UPSERT_EDGE, (genre_id, related_genre_id, influence, mgpc))
            await db.commit()
        logger.debug(
            "edge_upserted",
            genre_id=genre_id,
            related_genre_id=related_genre_id,
            influence=influence,
            mgpc=mgpc,
        )
        return GenreRelation(
            genre_id=genre_id,
            related_genre_id=related_genre_id,
            influence=influence,
            mgpc=mgpc,
        )

    async def get_relationships(self, genre_id: str) -> list[GenreRelation]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_EDGES, (genre_id, genre_id))
            rows = await cursor.fetchall()
        return [GenreRelation(**dict(row)) for row in rows]

    async def update_edge_mgpc(self, genre_id: str, related_genre_id: str, mgpc: float) -> bool:
        if not 0.0 <= mgpc <= 1.0:
            raise InvalidEdgeError(f"MGPC must be between 0 and 1, got {mgpc}", field_name="mgpc")
        async with self._connect() as db:
            cursor = await db.execute(_UPDATE_EDGE_MGPC, (mgpc, genre_id, related_genre_id))
            await db.commit()
            return cursor.rowcount > 0

    async def remove_edge(self, genre_id: str, related_genre_id: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_DELETE_EDGE, (genre_id, related_genre_id))
            await db.commit()
            removed = cursor.rowcount > 0
        if removed:
            logger.info("edge_removed", genre_id=genre_id, related_genre_id=related_genre_id)
        return removed

    # ── Clusters ───────────────────────────────────────────────────────

    async def add_cluster(self, cluster: Cluster) -> None:
        async with self._connect(conflict_error=ClusterAlreadyExistsError) as db:
            await db.execute(_INSERT_CLUSTER, (
                cluster.id,
                cluster.name,
                cluster.description,
                int(cluster.is_active),
                cluster.created_at.isoformat(),
            ))
            await db.commit()

    async def get_cluster(self, cluster_id: str) -> Cluster | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_CLUSTER, (cluster_id,))
            row = await cursor.fetchone()
        return self._row_to_cluster(dict(row)) if row is not None else None

    async def cluster_exists_by_name(self, name: str) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_EXISTS_CLUSTER_NAME, (name,))
            return await cursor.fetchone() is not None

    async def list_clusters(self, include_inactive: bool = False) -> list[Cluster]:
        where_clause = "" if include_inactive else "WHERE is_active = 1 "
        sql = (
            "SELECT id, name, description, is_active, created_at FROM clusters "
            f"{where_clause}ORDER BY name COLLATE BINARY, id;"
        )
        async with self._connect() as db:
            cursor = await db.execute(sql)
            rows = await cursor.fetchall()
        return [self._row_to_cluster(dict(row)) for row in rows]

    async def set_cluster_active(self, cluster_id: str, is_active: bool) -> bool:
        async with self._connect() as db:
            cursor = await db.execute(_UPDATE_CLUSTER_ACTIVE, (int(is_active), cluster_id))
            await db.commit()
            return cursor.rowcount > 0

    # ── Row mapping helpers ────────────────────────────────────────────

    @staticmethod
    async def _fetch_relations(db: aiosqlite.Connection, genre_id: str) -> list[RelatedGenreView]:
        """Both directions of the edge set, outgoing first."""
        relations: list[RelatedGenreView] = []
        for sql, direction in (
            (_SELECT_OUTGOING, RelationDirection.OUTGOING),
            (_SELECT_INCOMING, RelationDirection.INCOMING),
        ):
            cursor = await db.execute(sql, (genre_id,))
            for row in await cursor.fetchall():
                relations.append(RelatedGenreView(
                    genre_id=row["other_id"],
                    name=row["name"],
                    is_subgenre=bool(row["is_subgenre"]),
                    influence=row["influence"],
                    mgpc=row["mgpc"],
                    direction=direction,
                ))
        return relations

    @staticmethod
    def _row_to_genre(row: dict[str, Any], relations: list[RelatedGenreView]) -> Genre:
        """Convert a joined genre row into a Genre model."""
        return Genre(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            is_subgenre=bool(row["is_subgenre"]),
            parent_genre_id=row["parent_genre_id"],
            parent_genre_name=row["parent_genre_name"],
            cluster_id=row["cluster_id"],
            cluster_name=row["cluster_name"],
            attributes=GenreAttributes(
                mode=row["mode"],
                bpm_lower=row["bpm_lower"],
                bpm_upper=row["bpm_upper"],
                volume_db=row["volume_db"],
                compas_metric=row["compas_metric"],
                avg_duration_sec=row["avg_duration_sec"],
                dominant_key=row["dominant_key"],
            ),
            color_r=row["color_r"],
            color_g=row["color_g"],
            color_b=row["color_b"],
            creation_year=row["creation_year"],
            origin_country=row["origin_country"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            relations=relations,
        )

    @staticmethod
    def _row_to_cluster(row: dict[str, Any]) -> Cluster:
        return Cluster(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
