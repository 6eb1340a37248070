"""Utility modules for the MusicTree catalog.

- **errors** -- Domain exception hierarchy rooted at MusicTreeError; one
  branch per failure kind (validation, conflict, reference, invariant,
  storage) so callers can map errors without string matching.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **identifiers** -- Tagged genre / cluster id generation, name lookup keys.
- **color** -- ``rgb(r,g,b)`` parsing and rgb / hex read-time projections.
- **invariants** (not re-exported here) -- Store-boundary write checks;
  imports the models, so it is kept out of this package's import graph.
"""

from src.utils.color import format_hex, format_rgb, is_valid_rgb_color, parse_rgb_color
from src.utils.errors import (
    BpmRangeError,
    CatalogValidationError,
    ClusterAlreadyExistsError,
    ClusterNotFoundError,
    ColorInvariantError,
    ConflictError,
    GenreAlreadyExistsError,
    GenreNotFoundError,
    InvalidEdgeError,
    InvalidParentError,
    InvariantViolationError,
    MusicTreeError,
    ParentNotFoundError,
    ReferenceResolutionError,
    RelatedGenreNotFoundError,
    StorageFaultError,
    validation_error_from,
)
from src.utils.identifiers import (
    fold_name,
    generate_cluster_id,
    generate_genre_id,
    is_cluster_id,
    is_genre_id,
    is_subgenre_id,
)
from src.utils.logging import configure_logging

__all__ = [
    # color
    "format_hex",
    "format_rgb",
    "is_valid_rgb_color",
    "parse_rgb_color",
    # errors
    "BpmRangeError",
    "CatalogValidationError",
    "ClusterAlreadyExistsError",
    "ClusterNotFoundError",
    "ColorInvariantError",
    "ConflictError",
    "GenreAlreadyExistsError",
    "GenreNotFoundError",
    "InvalidEdgeError",
    "InvalidParentError",
    "InvariantViolationError",
    "MusicTreeError",
    "ParentNotFoundError",
    "ReferenceResolutionError",
    "RelatedGenreNotFoundError",
    "StorageFaultError",
    "validation_error_from",
    # identifiers
    "fold_name",
    "generate_cluster_id",
    "generate_genre_id",
    "is_cluster_id",
    "is_genre_id",
    "is_subgenre_id",
    # logging
    "configure_logging",
]
