"""Genre catalog orchestrator - creation, lookup, listing and similarity.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services (business logic orchestration).
# Depends on: ITaxonomyStore, SimilarityMetric.
#
# create_genre() runs as a fixed sequence of steps:
#
#    1. VALIDATE INPUT - required fields and attribute ranges.
#    2. NAME UNIQUENESS - main-genre scope, or per-parent subgenre scope.
#    3. PARENT - must exist and must itself be a main genre.
#    4. CLUSTER - resolved only for main genres that name one.
#    5. BPM ORDER - bpm_lower <= bpm_upper.
#    6. RELATED GENRES - every requested id must exist.
#    7. BUILD RECORD - id and colour assigned (main genres only).
#    8. PERSIST.
#    9. AUTOMATIC EDGE - subgenre → parent, influence 10, computed MGPC.
#   10. EXPLICIT EDGES - caller-supplied influence, computed MGPC.
#   11. RE-FETCH - the genre with every relationship resolved.
#
# Steps 1-7 raise without touching the store.  Once step 8 commits the
# genre exists: a failure in steps 9-10 is logged and the created genre is
# still returned (it may lack some edges; refresh or re-link later).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from src.interfaces.taxonomy_store import ITaxonomyStore
from src.models.genre import (
    Genre,
    GenreCreateInput,
    GenreListFilter,
    GenreRelation,
    SimilarityResult,
)
from src.services.similarity import SimilarityMetric, interpret_mgpc
from src.utils.color import parse_rgb_color
from src.utils.errors import (
    BpmRangeError,
    CatalogValidationError,
    ClusterNotFoundError,
    GenreAlreadyExistsError,
    GenreNotFoundError,
    InvalidParentError,
    MusicTreeError,
    ParentNotFoundError,
    RelatedGenreNotFoundError,
    validation_error_from,
)
from src.utils.identifiers import generate_genre_id
from src.utils.invariants import check_color

logger = structlog.get_logger(logger_name=__name__)

# Influence of the edge every subgenre gets towards its parent.
PARENT_EDGE_INFLUENCE = 10


class GenreCatalogService:
    """Single-genre operations over the taxonomy store.

    All dependencies are constructor-injected; the MGPC weights travel
    inside the injected metric.
    """

    def __init__(self, store: ITaxonomyStore, metric: SimilarityMetric | None = None) -> None:
        self._store = store
        self._metric = metric or SimilarityMetric()

    @property
    def metric(self) -> SimilarityMetric:
        return self._metric

    # ── Create ─────────────────────────────────────────────────────────

    async def create_genre(self, data: GenreCreateInput | dict[str, Any]) -> Genre:
        """Create a main genre or subgenre and wire its relationships.

        Raises:
            CatalogValidationError: bad field, missing parent, or bad colour string.
            GenreAlreadyExistsError: name taken in scope.
            ParentNotFoundError / InvalidParentError: parent missing or a subgenre.
            ClusterNotFoundError: unknown cluster id.
            BpmRangeError: bpm_lower > bpm_upper.
            RelatedGenreNotFoundError: a requested related genre is missing.
            ColorInvariantError: partial RGB, or any colour on a subgenre.
        """
        # 1. Required fields, ranges and hierarchy shape.
        data = self._coerce_input(data)
        if data.is_subgenre and not data.parent_genre_id:
            raise CatalogValidationError(
                "Parent genre is required for subgenres", field_name="parent_genre_id"
            )
        if not data.is_subgenre and data.parent_genre_id:
            raise CatalogValidationError(
                "Main genres cannot have a parent genre", field_name="parent_genre_id"
            )
        if data.is_subgenre and data.cluster_id:
            raise CatalogValidationError(
                "Clusters can only be assigned to main genres", field_name="cluster_id"
            )

        # 2. Uniqueness under the right scope.
        scope_parent = data.parent_genre_id if data.is_subgenre else None
        if await self._store.exists_by_name(data.name, scope_parent):
            raise GenreAlreadyExistsError()

        # 3. Parent.
        parent: Genre | None = None
        if data.is_subgenre:
            parent = await self._store.get_by_id(data.parent_genre_id)
            if parent is None:
                raise ParentNotFoundError()
            if parent.is_subgenre:
                raise InvalidParentError()

        # 4. Cluster.
        if not data.is_subgenre and data.cluster_id:
            if await self._store.get_cluster(data.cluster_id) is None:
                raise ClusterNotFoundError()

        # 5. BPM order.
        if data.bpm_lower > data.bpm_upper:
            raise BpmRangeError()

        # 6. Related genres, all resolved before any write.
        related: dict[str, tuple[Genre, int]] = {}
        for request in data.related_genres:
            target = await self._store.get_by_id(request.genre_id)
            if target is None:
                raise RelatedGenreNotFoundError(
                    f"Related genre with ID {request.genre_id} not found"
                )
            related[target.id] = (target, request.influence)

        # 7. Build the record.
        color_r, color_g, color_b = self._resolve_color(data)
        check_color(data.is_subgenre, color_r, color_g, color_b)
        genre = Genre(
            id=generate_genre_id(data.is_subgenre),
            name=data.name,
            description=data.description,
            is_subgenre=data.is_subgenre,
            parent_genre_id=data.parent_genre_id if data.is_subgenre else None,
            cluster_id=None if data.is_subgenre else data.cluster_id,
            attributes=data.to_attributes(),
            color_r=color_r,
            color_g=color_g,
            color_b=color_b,
            creation_year=data.creation_year,
            origin_country=data.origin_country,
            is_active=data.is_active,
        )

        # 8. Persist.  A lost unique-index race surfaces as GenreAlreadyExistsError.
        await self._store.add_genre(genre)
        logger.info(
            "genre_created",
            genre_id=genre.id,
            name=genre.name,
            is_subgenre=genre.is_subgenre,
            parent_genre_id=genre.parent_genre_id,
        )

        # 9. Automatic parent edge.
        if parent is not None:
            await self._link(genre, parent, PARENT_EDGE_INFLUENCE)

        # 10. Explicit edges.
        for target, influence in related.values():
            await self._link(genre, target, influence)

        # 11. Re-fetch with everything resolved.
        created = await self._store.get_by_id(genre.id)
        return created if created is not None else genre

    # ── Reads ──────────────────────────────────────────────────────────

    async def get_genre(self, genre_id: str) -> Genre:
        """Fetch a genre with its relationships.  Raises GenreNotFoundError."""
        genre = await self._store.get_by_id(genre_id)
        if genre is None:
            raise GenreNotFoundError(f"Genre with ID {genre_id} not found")
        return genre

    async def list_genres(self, query: GenreListFilter | None = None) -> list[Genre]:
        return await self._store.list_genres(query or GenreListFilter())

    async def get_relationships(self, genre_id: str) -> list[GenreRelation]:
        await self.get_genre(genre_id)
        return await self._store.get_relationships(genre_id)

    async def compute_similarity(self, genre_a_id: str, genre_b_id: str) -> SimilarityResult:
        """MGPC between two stored genres with a human-readable band."""
        genre_a = await self.get_genre(genre_a_id)
        genre_b = await self.get_genre(genre_b_id)
        mgpc = self._metric.compute(genre_a.attributes, genre_b.attributes)
        return SimilarityResult(
            genre_a_id=genre_a.id,
            genre_a_name=genre_a.name,
            genre_b_id=genre_b.id,
            genre_b_name=genre_b.name,
            mgpc=mgpc,
            interpretation=interpret_mgpc(mgpc),
        )

    # ── Maintenance ────────────────────────────────────────────────────

    async def refresh_mgpc(self, genre_id: str) -> int:
        """Recompute MGPC on every edge touching *genre_id*.

        Influence values are left alone.  Returns the number of edges updated.
        """
        genre = await self.get_genre(genre_id)
        attributes = {genre.id: genre.attributes}
        updated = 0
        for edge in await self._store.get_relationships(genre_id):
            other_id = edge.related_genre_id if edge.genre_id == genre_id else edge.genre_id
            if other_id not in attributes:
                other = await self._store.get_by_id(other_id)
                if other is None:
                    continue
                attributes[other_id] = other.attributes
            mgpc = self._metric.compute(
                attributes[edge.genre_id], attributes[edge.related_genre_id]
            )
            if await self._store.update_edge_mgpc(edge.genre_id, edge.related_genre_id, mgpc):
                updated += 1
        logger.info("mgpc_refreshed", genre_id=genre_id, edges_updated=updated)
        return updated

    async def set_genre_active(self, genre_id: str, is_active: bool) -> bool:
        """Soft-delete or reactivate.  Returns False if the genre doesn't exist."""
        return await self._store.set_genre_active(genre_id, is_active)

    # ── Internal helpers ───────────────────────────────────────────────

    async def _link(self, genre: Genre, target: Genre, influence: int) -> None:
        """Upsert genre → target, logging rather than raising on failure."""
        mgpc = self._metric.compute(genre.attributes, target.attributes)
        try:
            await self._store.upsert_edge(genre.id, target.id, influence, mgpc)
        except MusicTreeError as exc:
            logger.error(
                "relationship_write_failed",
                genre_id=genre.id,
                related_genre_id=target.id,
                error=str(exc),
                error_kind=exc.kind,
            )
            return
        logger.info(
            "relationship_upserted",
            genre_id=genre.id,
            related_genre_id=target.id,
            influence=influence,
            mgpc=round(mgpc, 4),
        )

    @staticmethod
    def _coerce_input(data: GenreCreateInput | dict[str, Any]) -> GenreCreateInput:
        if isinstance(data, GenreCreateInput):
            return data
        try:
            return GenreCreateInput.model_validate(data)
        except ValidationError as exc:
            raise validation_error_from(exc) from exc

    @staticmethod
    def _resolve_color(data: GenreCreateInput) -> tuple[int | None, int | None, int | None]:
        components = (data.color_r, data.color_g, data.color_b)
        if data.color is None:
            return components
        if any(c is not None for c in components):
            raise CatalogValidationError(
                "Give the colour either as rgb(r,g,b) or as components, not both",
                field_name="color",
            )
        return parse_rgb_color(data.color)
