"""Abstract base class for genre taxonomy persistence.

# ─── ADAPTER PATTERN ─────────────────────────────────────────────────
#
# ITaxonomyStore is the only way the services touch persistence.  The
# concrete implementation is SQLiteTaxonomyStore
# (src/providers/taxonomy/sqlite_taxonomy_store.py).
#
# The store owns three tables - genres, clusters and the relationship
# graph - and is responsible for rejecting writes that break the catalog
# invariants (scoped name uniqueness, colour rules, self-loops, influence
# and MGPC ranges).  Callers may pre-check, but the store is the last line.
#
# All operations are async so a network-backed store can be swapped in
# without touching the services.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.genre import Cluster, Genre, GenreListFilter, GenreRelation


class ITaxonomyStore(ABC):
    """Contract for genre, cluster and relationship persistence.

    Errors raised by implementations are always
    :class:`~src.utils.errors.MusicTreeError` subclasses: unique-constraint
    losses become ``ConflictError``, rule breaks ``InvariantViolationError``,
    and anything else ``StorageFaultError``.
    """

    # ── Lifecycle ──────────────────────────────────────────────────────

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

    # ── Genres ─────────────────────────────────────────────────────────

    @abstractmethod
    async def exists_by_name(self, name: str, parent_genre_id: str | None = None) -> bool:
        """Scoped existence check.

        With no ``parent_genre_id`` the scope is "main genres"; otherwise the
        scope is "subgenres of that parent".  Comparison is exact.
        """

    @abstractmethod
    async def add_genre(self, genre: Genre) -> None:
        """Insert a new genre.

        Raises ``GenreAlreadyExistsError`` when the name is taken in scope,
        including when a concurrent writer won the race.
        """

    @abstractmethod
    async def get_by_id(self, genre_id: str) -> Genre | None:
        """Fetch one genre with parent, cluster and all incident edges resolved."""

    @abstractmethod
    async def find_by_name(
        self,
        name: str,
        *,
        main_genres_only: bool = False,
        exclude_genre_id: str | None = None,
    ) -> Genre | None:
        """Exact, case-insensitive name lookup (full Unicode case folding).

        When several genres match (subgenres may share names across
        parents), main genres win, then the oldest record.  A genre whose
        id is *exclude_genre_id* is never returned.
        """

    @abstractmethod
    async def list_genres(self, query: GenreListFilter | None = None) -> list[Genre]:
        """List genres matching *query*, ordered by name (ordinal), then id."""

    @abstractmethod
    async def set_genre_active(self, genre_id: str, is_active: bool) -> bool:
        """Soft-delete / reactivate a genre.  Returns True if it exists."""

    # ── Relationship graph ─────────────────────────────────────────────

    @abstractmethod
    async def upsert_edge(
        self,
        genre_id: str,
        related_genre_id: str,
        influence: int,
        mgpc: float,
    ) -> GenreRelation:
        """Insert the edge for the ordered pair, or overwrite influence and MGPC.

        Raises ``InvalidEdgeError`` for self-loops and out-of-range values.
        """

    @abstractmethod
    async def get_relationships(self, genre_id: str) -> list[GenreRelation]:
        """All edges where *genre_id* is either endpoint."""

    @abstractmethod
    async def update_edge_mgpc(self, genre_id: str, related_genre_id: str, mgpc: float) -> bool:
        """Overwrite only the MGPC of an existing edge.  Returns True if found."""

    @abstractmethod
    async def remove_edge(self, genre_id: str, related_genre_id: str) -> bool:
        """Delete one directed edge.  Returns True if it existed."""

    # ── Clusters ───────────────────────────────────────────────────────

    @abstractmethod
    async def add_cluster(self, cluster: Cluster) -> None:
        """Insert a cluster.  Raises ``ClusterAlreadyExistsError`` on name clash."""

    @abstractmethod
    async def get_cluster(self, cluster_id: str) -> Cluster | None:
        """Fetch a cluster by id."""

    @abstractmethod
    async def cluster_exists_by_name(self, name: str) -> bool:
        """Exact cluster-name existence check."""

    @abstractmethod
    async def list_clusters(self, include_inactive: bool = False) -> list[Cluster]:
        """List clusters ordered by name."""

    @abstractmethod
    async def set_cluster_active(self, cluster_id: str, is_active: bool) -> bool:
        """Activate / deactivate a cluster.  Returns True if it exists."""
