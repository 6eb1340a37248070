"""Genre taxonomy domain models.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models (bottom of the dependency graph - no imports from upper
#        layers apart from the pure colour formatters in src/utils).
#
# The taxonomy is a two-level hierarchy: main genres, and subgenres that
# point at exactly one main genre.  Main genres may be grouped into a
# Cluster.  Directed GenreRelation edges carry a curator-supplied
# influence and a computed MGPC similarity score.
#
# Key design decisions:
#   - **Immutable state**: every model is ``frozen=True``; updates go through
#     ``model_copy(update={...})`` and a fresh store write.
#   - **Musical attributes grouped**: ``GenreAttributes`` is the only thing the
#     similarity metric needs, so it lives in its own model and can be
#     compared without dragging the rest of the record along.
#   - **Projections, not columns**: ``rgb_color``, ``hex_color``, ``bpm_avg``
#     and ``related_genre_ids`` are computed on read and never persisted.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.utils.color import format_hex, format_rgb

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 30
DESCRIPTION_MAX_LENGTH = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─── GenreAttributes ─────────────────────────────────────────────────
# The six musical attributes MGPC is computed from.  Sentinels:
#   dominant_key = -1  → key undefined
#   compas_metric = 0  → no time signature
class GenreAttributes(BaseModel):
    """Musical attributes of a genre, each range-checked independently."""

    model_config = ConfigDict(frozen=True)

    mode: float = Field(ge=0.0, le=1.0, description="Typical mode: 0 = minor, 1 = major.")
    bpm_lower: int = Field(ge=0, le=250)
    bpm_upper: int = Field(ge=0, le=250)
    volume_db: int = Field(ge=-60, le=0, description="Typical loudness in dB.")
    compas_metric: int = Field(ge=0, le=8, description="Beats per bar; 0 = undefined.")
    avg_duration_sec: int = Field(ge=0, le=3600)
    dominant_key: int = Field(
        default=-1, ge=-1, le=11, description="Chromatic pitch class 0-11; -1 = undefined."
    )

    @model_validator(mode="after")
    def check_bpm_order(self) -> GenreAttributes:
        if self.bpm_lower > self.bpm_upper:
            raise ValueError("BPM lower bound cannot be greater than upper bound")
        return self

    @property
    def bpm_avg(self) -> float:
        return (self.bpm_lower + self.bpm_upper) / 2


# ─── Cluster ─────────────────────────────────────────────────────────
class Cluster(BaseModel):
    """A named group of main genres."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=300)
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


# ─── GenreRelation ───────────────────────────────────────────────────
# One row of the relationship graph, keyed by the ordered pair
# (genre_id, related_genre_id).
class GenreRelation(BaseModel):
    """A directed, weighted influence edge between two genres."""

    model_config = ConfigDict(frozen=True)

    genre_id: str
    related_genre_id: str
    influence: int = Field(ge=1, le=10)
    mgpc: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def no_self_loop(self) -> GenreRelation:
        if self.genre_id == self.related_genre_id:
            raise ValueError("A genre cannot be related to itself")
        return self


class RelationDirection(str, Enum):
    """Which end of the edge the viewing genre sits on."""

    OUTGOING = "outgoing"
    INCOMING = "incoming"


class RelatedGenreView(BaseModel):
    """An incident edge seen from one genre, with the opposite endpoint resolved."""

    model_config = ConfigDict(frozen=True)

    genre_id: str = Field(description="Id of the genre at the other end of the edge.")
    name: str
    is_subgenre: bool = False
    influence: int = Field(ge=1, le=10)
    mgpc: float = Field(ge=0.0, le=1.0)
    direction: RelationDirection


# ─── Genre ───────────────────────────────────────────────────────────
class Genre(BaseModel):
    """A main genre or subgenre, as stored and as returned to callers.

    ``parent_genre_name``, ``cluster_name`` and ``relations`` are filled in
    by the store's single cohesive fetch; freshly constructed records carry
    them empty.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    is_subgenre: bool = False
    parent_genre_id: str | None = None
    parent_genre_name: str | None = None
    cluster_id: str | None = None
    cluster_name: str | None = None
    attributes: GenreAttributes
    color_r: int | None = Field(default=None, ge=0, le=255)
    color_g: int | None = Field(default=None, ge=0, le=255)
    color_b: int | None = Field(default=None, ge=0, le=255)
    creation_year: int | None = None
    origin_country: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    relations: list[RelatedGenreView] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_hierarchy_and_color(self) -> Genre:
        if self.is_subgenre and not self.parent_genre_id:
            raise ValueError("Parent genre is required for subgenres")
        if not self.is_subgenre and self.parent_genre_id:
            raise ValueError("Main genres cannot have a parent genre")
        if self.is_subgenre and self.cluster_id:
            raise ValueError("Clusters can only be assigned to main genres")

        components = (self.color_r, self.color_g, self.color_b)
        set_count = sum(c is not None for c in components)
        if set_count and self.is_subgenre:
            raise ValueError("Subgenres cannot have a color assigned")
        if set_count not in (0, 3):
            raise ValueError("RGB color must have all three components or none")
        return self

    @property
    def rgb_color(self) -> str | None:
        return format_rgb(self.color_r, self.color_g, self.color_b)

    @property
    def hex_color(self) -> str | None:
        return format_hex(self.color_r, self.color_g, self.color_b)

    @property
    def bpm_avg(self) -> float:
        return self.attributes.bpm_avg

    @property
    def related_genre_ids(self) -> list[str]:
        """Ids of every genre sharing an edge with this one, either direction."""
        seen: dict[str, None] = {}
        for relation in self.relations:
            seen.setdefault(relation.genre_id, None)
        return list(seen)


# ─── Inputs ──────────────────────────────────────────────────────────
class RelatedGenreInput(BaseModel):
    """An explicit influence edge requested while creating a genre."""

    model_config = ConfigDict(frozen=True)

    genre_id: str = Field(min_length=1, description="Id of the influencing genre.")
    influence: int = Field(default=5, ge=1, le=10)


class GenreCreateInput(BaseModel):
    """Caller-supplied data for creating a single genre.

    Field ranges are declared here; ordering rules (``bpm_lower <=
    bpm_upper``) and colour rules are checked by the catalog service so
    each one surfaces as its own domain error.  Colour may be given either
    as three components or as an ``rgb(r,g,b)`` string, not both.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    is_subgenre: bool = False
    parent_genre_id: str | None = None
    cluster_id: str | None = None

    mode: float = Field(ge=0.0, le=1.0)
    bpm_lower: int = Field(ge=0, le=250)
    bpm_upper: int = Field(ge=0, le=250)
    volume_db: int = Field(ge=-60, le=0)
    compas_metric: int = Field(ge=0, le=8)
    avg_duration_sec: int = Field(ge=0, le=3600)
    dominant_key: int = Field(default=-1, ge=-1, le=11)

    color: str | None = Field(default=None, description="Colour as rgb(r,g,b).")
    color_r: int | None = Field(default=None, ge=0, le=255)
    color_g: int | None = Field(default=None, ge=0, le=255)
    color_b: int | None = Field(default=None, ge=0, le=255)

    creation_year: int | None = None
    origin_country: str | None = None
    is_active: bool = True
    related_genres: list[RelatedGenreInput] = Field(default_factory=list)

    def to_attributes(self) -> GenreAttributes:
        return GenreAttributes(
            mode=self.mode,
            bpm_lower=self.bpm_lower,
            bpm_upper=self.bpm_upper,
            volume_db=self.volume_db,
            compas_metric=self.compas_metric,
            avg_duration_sec=self.avg_duration_sec,
            dominant_key=self.dominant_key,
        )


# ─── Queries ─────────────────────────────────────────────────────────
class GenreListFilter(BaseModel):
    """Predicate set for listing genres.

    ``subgenres_only`` wins over ``include_subgenres``.  The BPM bounds
    keep genres whose range intersects ``[min_bpm, max_bpm]``.
    """

    model_config = ConfigDict(frozen=True)

    active_only: bool = True
    include_subgenres: bool = True
    subgenres_only: bool = False
    parent_genre_id: str | None = None
    cluster_id: str | None = None
    compas_metric: int | None = Field(default=None, ge=0, le=8)
    min_bpm: int | None = Field(default=None, ge=0, le=250)
    max_bpm: int | None = Field(default=None, ge=0, le=250)


class SimilarityResult(BaseModel):
    """MGPC between two stored genres, with a coarse human label."""

    model_config = ConfigDict(frozen=True)

    genre_a_id: str
    genre_a_name: str
    genre_b_id: str
    genre_b_name: str
    mgpc: float = Field(ge=0.0, le=1.0)
    interpretation: str
    calculated_at: datetime = Field(default_factory=_utcnow)
