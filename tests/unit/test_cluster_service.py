"""Unit tests for ClusterService."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.interfaces.taxonomy_store import ITaxonomyStore
from src.services.cluster_service import ClusterService
from src.utils.errors import CatalogValidationError, ClusterAlreadyExistsError
from src.utils.identifiers import is_cluster_id


@pytest.mark.asyncio
async def test_create_cluster(cluster_service: ClusterService) -> None:
    cluster = await cluster_service.create_cluster("Electronic", description="Synths and drums")
    assert is_cluster_id(cluster.id)
    assert cluster.is_active is True

    stored = await cluster_service.get_cluster(cluster.id)
    assert stored is not None
    assert stored.description == "Synths and drums"


@pytest.mark.asyncio
async def test_duplicate_name(cluster_service: ClusterService) -> None:
    await cluster_service.create_cluster("Electronic")
    with pytest.raises(ClusterAlreadyExistsError):
        await cluster_service.create_cluster("Electronic")
    # Case-sensitive uniqueness.
    await cluster_service.create_cluster("electronic")


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["ab", "x" * 31])
async def test_name_length(cluster_service: ClusterService, name: str) -> None:
    with pytest.raises(CatalogValidationError) as exc_info:
        await cluster_service.create_cluster(name)
    assert exc_info.value.field_name == "name"


@pytest.mark.asyncio
async def test_description_length(cluster_service: ClusterService) -> None:
    with pytest.raises(CatalogValidationError) as exc_info:
        await cluster_service.create_cluster("Electronic", description="d" * 301)
    assert exc_info.value.field_name == "description"


@pytest.mark.asyncio
async def test_list_and_toggle(cluster_service: ClusterService) -> None:
    rock = await cluster_service.create_cluster("Rock Family")
    await cluster_service.create_cluster("Electronic")
    await cluster_service.create_cluster("Dormant", is_active=False)

    assert [c.name for c in await cluster_service.list_clusters()] == ["Electronic", "Rock Family"]
    assert len(await cluster_service.list_clusters(include_inactive=True)) == 3

    assert await cluster_service.set_cluster_status(rock.id, False)
    assert [c.name for c in await cluster_service.list_clusters()] == ["Electronic"]
    assert not await cluster_service.set_cluster_status("C-MISSING00000", True)


@pytest.mark.asyncio
async def test_store_not_written_when_name_taken() -> None:
    store = AsyncMock(spec=ITaxonomyStore)
    store.cluster_exists_by_name.return_value = True
    service = ClusterService(store=store)

    with pytest.raises(ClusterAlreadyExistsError):
        await service.create_cluster("Electronic")
    store.add_cluster.assert_not_awaited()
