"""MusicTree domain models - re-exports all public model classes.

Callers can import from ``src.models`` directly instead of from the
individual submodules:

    - genre.py         - taxonomy entities (Genre, Cluster, GenreRelation),
                         musical attributes, create/list inputs and the
                         similarity result
    - genre_import.py  - batch import record schema and the import report

If you add a new model class, remember to add it to ``__all__`` too.
"""

from __future__ import annotations

# --- Taxonomy models: genres, subgenres, clusters and the influence graph. ---
from src.models.genre import (
    Cluster,
    Genre,
    GenreAttributes,
    GenreCreateInput,
    GenreListFilter,
    GenreRelation,
    RelatedGenreInput,
    RelatedGenreView,
    RelationDirection,
    SimilarityResult,
)
# --- Import models: raw record schema and the per-batch report. ---
from src.models.genre_import import (
    BpmRange,
    GenreImportRecord,
    ImportErrorEntry,
    ImportReport,
    ImportStage,
    RelatedGenreImport,
)

__all__ = [
    # genre
    "Cluster",
    "Genre",
    "GenreAttributes",
    "GenreCreateInput",
    "GenreListFilter",
    "GenreRelation",
    "RelatedGenreInput",
    "RelatedGenreView",
    "RelationDirection",
    "SimilarityResult",
    # genre_import
    "BpmRange",
    "GenreImportRecord",
    "ImportErrorEntry",
    "ImportReport",
    "ImportStage",
    "RelatedGenreImport",
]
