# =============================================================================
# src/cli/catalog.py - Genre Catalog CLI
# =============================================================================
#
# Operator-facing wrapper over the catalog services.  Every subcommand
# assembles the catalog through src.main.init_catalog(), runs one service
# call, and prints the result as JSON on stdout.  Logs go to stderr so the
# output can be piped straight into jq.
#
# Typical usage:
#   python -m src.cli.catalog init
#   python -m src.cli.catalog create-cluster "Electronic" --description "..."
#   python -m src.cli.catalog create-genre --file house.json
#   python -m src.cli.catalog list --min-bpm 118 --max-bpm 130
#   python -m src.cli.catalog similarity G-AAAA... G-BBBB...
#   python -m src.cli.catalog import genres.json
#
# Exit codes: 0 on success, 1 on any catalog error (message on stderr).
# =============================================================================

"""Command-line interface for the MusicTree genre catalog.

Usage::

    python -m src.cli.catalog init
    python -m src.cli.catalog create-genre --file genre.json
    python -m src.cli.catalog get G-XXXXXXXXXXXX
    python -m src.cli.catalog import batch.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from src.config.loader import load_config
from src.config.settings import Settings
from src.main import Catalog, init_catalog, setup_logging
from src.models.genre import Cluster, Genre, GenreListFilter
from src.services.similarity import describe_compas
from src.utils.errors import CatalogValidationError, GenreNotFoundError, MusicTreeError


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _genre_to_dict(genre: Genre) -> dict[str, Any]:
    """Genre as JSON-ready dict, read-time projections included."""
    data = genre.model_dump(mode="json")
    data["rgb_color"] = genre.rgb_color
    data["hex_color"] = genre.hex_color
    data["bpm_avg"] = genre.bpm_avg
    data["compas_description"] = describe_compas(genre.attributes.compas_metric)
    data["related_genre_ids"] = genre.related_genre_ids
    return data


def _cluster_to_dict(cluster: Cluster) -> dict[str, Any]:
    return cluster.model_dump(mode="json")


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _read_json_file(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise CatalogValidationError(f"Cannot read {path}: {exc}", field_name="file") from exc
    except json.JSONDecodeError as exc:
        raise CatalogValidationError(f"{path} is not valid JSON: {exc}", field_name="file") from exc


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_init(args: argparse.Namespace, catalog: Catalog) -> int:
    _emit({
        "store": catalog.store.get_provider_name(),
        "db_path": str(catalog.config.get("storage", {}).get("db_path", "")),
        "initialized": True,
    })
    return 0


async def _handle_create_cluster(args: argparse.Namespace, catalog: Catalog) -> int:
    cluster = await catalog.clusters.create_cluster(
        name=args.name,
        description=args.description,
        is_active=not args.inactive,
    )
    _emit(_cluster_to_dict(cluster))
    return 0


async def _handle_list_clusters(args: argparse.Namespace, catalog: Catalog) -> int:
    clusters = await catalog.clusters.list_clusters(include_inactive=args.include_inactive)
    _emit([_cluster_to_dict(c) for c in clusters])
    return 0


async def _handle_create_genre(args: argparse.Namespace, catalog: Catalog) -> int:
    data = _read_json_file(args.file)
    if not isinstance(data, dict):
        raise CatalogValidationError("Genre file must contain one JSON object", field_name="file")
    genre = await catalog.genres.create_genre(data)
    _emit(_genre_to_dict(genre))
    return 0


async def _handle_get(args: argparse.Namespace, catalog: Catalog) -> int:
    genre = await catalog.genres.get_genre(args.genre_id)
    _emit(_genre_to_dict(genre))
    return 0


async def _handle_list(args: argparse.Namespace, catalog: Catalog) -> int:
    query = GenreListFilter(
        active_only=not args.include_inactive,
        include_subgenres=not args.main_only,
        subgenres_only=args.subgenres_only,
        parent_genre_id=args.parent,
        cluster_id=args.cluster,
        compas_metric=args.compas,
        min_bpm=args.min_bpm,
        max_bpm=args.max_bpm,
    )
    genres = await catalog.genres.list_genres(query)
    _emit([_genre_to_dict(g) for g in genres])
    return 0


async def _handle_similarity(args: argparse.Namespace, catalog: Catalog) -> int:
    result = await catalog.genres.compute_similarity(args.genre_a, args.genre_b)
    payload = result.model_dump(mode="json")
    if args.breakdown:
        genre_a = await catalog.genres.get_genre(args.genre_a)
        genre_b = await catalog.genres.get_genre(args.genre_b)
        payload["breakdown"] = catalog.metric.breakdown(genre_a.attributes, genre_b.attributes)
        payload["bpm_overlap"] = catalog.metric.bpm_overlap(
            genre_a.attributes, genre_b.attributes
        )
    _emit(payload)
    return 0


async def _handle_import(args: argparse.Namespace, catalog: Catalog) -> int:
    path = Path(args.file)
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise CatalogValidationError(f"Cannot read {path}: {exc}", field_name="file") from exc
    report = await catalog.importer.import_json(payload, path.name)
    _emit(report.model_dump(mode="json"))
    return 0


async def _handle_refresh_mgpc(args: argparse.Namespace, catalog: Catalog) -> int:
    updated = await catalog.genres.refresh_mgpc(args.genre_id)
    _emit({"genre_id": args.genre_id, "edges_updated": updated})
    return 0


async def _handle_deactivate(args: argparse.Namespace, catalog: Catalog) -> int:
    if not await catalog.genres.set_genre_active(args.genre_id, False):
        raise GenreNotFoundError(f"Genre with ID {args.genre_id} not found")
    _emit({"genre_id": args.genre_id, "is_active": False})
    return 0


_HANDLERS = {
    "init": _handle_init,
    "create-cluster": _handle_create_cluster,
    "list-clusters": _handle_list_clusters,
    "create-genre": _handle_create_genre,
    "get": _handle_get,
    "list": _handle_list,
    "similarity": _handle_similarity,
    "import": _handle_import,
    "refresh-mgpc": _handle_refresh_mgpc,
    "deactivate": _handle_deactivate,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the catalog CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.catalog",
        description="Manage the MusicTree genre catalog.",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Only log warnings and errors to stderr"
    )
    subparsers = parser.add_subparsers(dest="command", help="Catalog commands")

    subparsers.add_parser("init", help="Create the catalog database schema")

    # -- clusters --
    cluster_parser = subparsers.add_parser("create-cluster", help="Create a genre cluster")
    cluster_parser.add_argument("name", help="Cluster name (3-30 characters)")
    cluster_parser.add_argument("--description", default=None, help="Optional description")
    cluster_parser.add_argument(
        "--inactive", action="store_true", help="Create the cluster deactivated"
    )

    clusters_parser = subparsers.add_parser("list-clusters", help="List clusters")
    clusters_parser.add_argument(
        "--include-inactive", action="store_true", dest="include_inactive"
    )

    # -- genres --
    create_parser = subparsers.add_parser("create-genre", help="Create one genre")
    create_parser.add_argument(
        "--file", required=True, help="JSON file with the genre fields"
    )

    get_parser = subparsers.add_parser("get", help="Show one genre with its relationships")
    get_parser.add_argument("genre_id")

    list_parser = subparsers.add_parser("list", help="List genres")
    list_parser.add_argument(
        "--include-inactive", action="store_true", dest="include_inactive"
    )
    scope = list_parser.add_mutually_exclusive_group()
    scope.add_argument("--subgenres-only", action="store_true", dest="subgenres_only")
    scope.add_argument("--main-only", action="store_true", dest="main_only")
    list_parser.add_argument("--parent", default=None, help="Parent genre id")
    list_parser.add_argument("--cluster", default=None, help="Cluster id")
    list_parser.add_argument("--compas", type=int, default=None, help="Beats per bar")
    list_parser.add_argument("--min-bpm", type=int, default=None, dest="min_bpm")
    list_parser.add_argument("--max-bpm", type=int, default=None, dest="max_bpm")

    sim_parser = subparsers.add_parser("similarity", help="MGPC between two genres")
    sim_parser.add_argument("genre_a")
    sim_parser.add_argument("genre_b")
    sim_parser.add_argument(
        "--breakdown", action="store_true", help="Include per-component distances"
    )

    import_parser = subparsers.add_parser("import", help="Batch-import a JSON file")
    import_parser.add_argument("file", help="Path to a .json file with a list of genres")

    refresh_parser = subparsers.add_parser(
        "refresh-mgpc", help="Recompute MGPC on every edge of a genre"
    )
    refresh_parser.add_argument("genre_id")

    deactivate_parser = subparsers.add_parser("deactivate", help="Soft-delete a genre")
    deactivate_parser.add_argument("genre_id")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _run(args: argparse.Namespace, app_settings: Settings, config: dict[str, Any]) -> int:
    catalog = await init_catalog(app_settings, config)
    return await _HANDLERS[args.command](args, catalog)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.  Returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    app_settings = Settings()
    try:
        config = load_config(settings=app_settings)
        setup_logging(app_settings, {"logging": {"level": "WARNING"}} if args.quiet else config)
        return asyncio.run(_run(args, app_settings, config))
    except MusicTreeError as exc:
        print(f"Error ({exc.kind}): {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
