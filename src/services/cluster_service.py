"""Cluster management - named groups of main genres.

Clusters are the only grouping above main genres.  Names are unique
(case-sensitive); a cluster is never deleted, only deactivated.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from src.interfaces.taxonomy_store import ITaxonomyStore
from src.models.genre import Cluster
from src.utils.errors import ClusterAlreadyExistsError, validation_error_from
from src.utils.identifiers import generate_cluster_id

logger = structlog.get_logger(logger_name=__name__)


class ClusterService:
    """Create, list and toggle clusters through the taxonomy store."""

    def __init__(self, store: ITaxonomyStore) -> None:
        self._store = store

    async def create_cluster(
        self,
        name: str,
        description: str | None = None,
        is_active: bool = True,
    ) -> Cluster:
        """Create a cluster.

        Raises:
            CatalogValidationError: name outside 3-30 chars or description too long.
            ClusterAlreadyExistsError: the name is already taken.
        """
        try:
            cluster = Cluster(
                id=generate_cluster_id(),
                name=name,
                description=description,
                is_active=is_active,
            )
        except ValidationError as exc:
            raise validation_error_from(exc) from exc

        if await self._store.cluster_exists_by_name(cluster.name):
            raise ClusterAlreadyExistsError()

        await self._store.add_cluster(cluster)
        logger.info("cluster_created", cluster_id=cluster.id, name=cluster.name)
        return cluster

    async def get_cluster(self, cluster_id: str) -> Cluster | None:
        return await self._store.get_cluster(cluster_id)

    async def list_clusters(self, include_inactive: bool = False) -> list[Cluster]:
        return await self._store.list_clusters(include_inactive=include_inactive)

    async def set_cluster_status(self, cluster_id: str, is_active: bool) -> bool:
        """Activate or deactivate a cluster.  Returns False if it doesn't exist."""
        updated = await self._store.set_cluster_active(cluster_id, is_active)
        if updated:
            logger.info("cluster_status_changed", cluster_id=cluster_id, is_active=is_active)
        return updated
