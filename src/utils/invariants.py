"""Store-boundary invariant checks.

These run inside the taxonomy store before every write that touches colour
or relationship fields.  Batch import and MGPC refresh build domain objects
directly rather than through the input models, so the rules are enforced
here as well as in the models.
"""

from __future__ import annotations

from src.models.genre import Genre
from src.utils.errors import ColorInvariantError, InvalidEdgeError, InvariantViolationError

INFLUENCE_MIN = 1
INFLUENCE_MAX = 10


def check_color(is_subgenre: bool, r: int | None, g: int | None, b: int | None) -> None:
    """Reject partial RGB triples, out-of-range components and subgenre colours."""
    components = (r, g, b)
    set_count = sum(c is not None for c in components)
    if set_count == 0:
        return
    if is_subgenre:
        raise ColorInvariantError("Subgenres cannot have a color assigned")
    if set_count != 3:
        raise ColorInvariantError("RGB color must have all three components or none")
    for component in components:
        if not 0 <= component <= 255:  # type: ignore[operator]
            raise ColorInvariantError(f"RGB component {component} is outside 0-255")


def check_genre(genre: Genre) -> None:
    """Re-validate the hierarchy and colour rules of a genre about to be written."""
    check_color(genre.is_subgenre, genre.color_r, genre.color_g, genre.color_b)

    if genre.is_subgenre and not genre.parent_genre_id:
        raise InvariantViolationError(
            "Subgenres must reference a parent genre", field_name="parent_genre_id"
        )
    if not genre.is_subgenre and genre.parent_genre_id:
        raise InvariantViolationError(
            "Main genres cannot reference a parent genre", field_name="parent_genre_id"
        )
    if genre.is_subgenre and genre.cluster_id:
        raise InvariantViolationError(
            "Clusters group main genres only", field_name="cluster_id"
        )
    if genre.parent_genre_id is not None and genre.parent_genre_id == genre.id:
        raise InvariantViolationError(
            "A genre cannot be its own parent", field_name="parent_genre_id"
        )
    attributes = genre.attributes
    if attributes.bpm_lower > attributes.bpm_upper:
        raise InvariantViolationError(
            "BPM lower bound cannot be greater than upper bound", field_name="bpm"
        )


def check_edge(genre_id: str, related_genre_id: str, influence: int, mgpc: float) -> None:
    """Reject self-loops and out-of-range influence / MGPC values."""
    if genre_id == related_genre_id:
        raise InvalidEdgeError("A genre cannot be related to itself")
    if isinstance(influence, bool) or not INFLUENCE_MIN <= influence <= INFLUENCE_MAX:
        raise InvalidEdgeError(
            f"Influence must be between {INFLUENCE_MIN} and {INFLUENCE_MAX}, got {influence}",
            field_name="influence",
        )
    if not 0.0 <= mgpc <= 1.0:
        raise InvalidEdgeError(f"MGPC must be between 0 and 1, got {mgpc}", field_name="mgpc")
