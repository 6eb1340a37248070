"""Batch genre import models - input record schema and the import report.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models.
#
# ``GenreImportRecord`` is the schema every raw record of an import file is
# validated against before any store lookup happens (the "schema" stage of
# the pipeline).  Field names follow the JSON import format:
#
#   {
#     "name": "Deep House", "mode": 0.4, "bpm": {"min": 118, "max": 125},
#     "key": 9, "volume": -8, "compas": 4, "avrg_duration": 420,
#     "rgb": "rgb(20,40,200)", "is_subgenre": false,
#     "related_genre": [{"name": "House", "influence": 8}]
#   }
#
# ``ImportReport`` is always returned, even when every record failed.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator, model_validator

from src.utils.color import is_valid_rgb_color


def _reject_non_numeric(value: Any) -> Any:
    # Lax pydantic would coerce "120" or True into numbers; import files
    # must carry real JSON numbers.
    if isinstance(value, (bool, str)):
        raise ValueError("must be a number")
    return value


class BpmRange(BaseModel):
    """BPM range as written in import files."""

    model_config = ConfigDict(frozen=True)

    min: int = Field(ge=0, le=250)
    max: int = Field(ge=0, le=250)

    @field_validator("min", "max", mode="before")
    @classmethod
    def numbers_only(cls, value: Any) -> Any:
        return _reject_non_numeric(value)


class RelatedGenreImport(BaseModel):
    """A related-genre reference by name, resolved case-insensitively."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    influence: int = Field(default=5, ge=1, le=10)

    @field_validator("influence", mode="before")
    @classmethod
    def numbers_only(cls, value: Any) -> Any:
        return _reject_non_numeric(value)


class GenreImportRecord(BaseModel):
    """One genre record of an import batch."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=3, max_length=30)
    description: str | None = Field(default=None, max_length=1000)
    active: StrictBool = True
    rgb: str | None = None
    creation_year: int | None = None
    origin_country: str | None = None
    mode: float = Field(ge=0.0, le=1.0)
    bpm: BpmRange
    key: int = Field(default=-1, ge=-1, le=11)
    volume: int = Field(ge=-60, le=0)
    compas: int = Field(ge=0, le=8)
    avrg_duration: int = Field(ge=0, le=3600)
    is_subgenre: StrictBool = False
    parent_genre: str | None = None
    related_genre: list[RelatedGenreImport] | None = None

    @field_validator(
        "mode", "key", "volume", "compas", "avrg_duration", "creation_year", mode="before"
    )
    @classmethod
    def numbers_only(cls, value: Any) -> Any:
        return _reject_non_numeric(value)

    @model_validator(mode="after")
    def check_cross_field_rules(self) -> GenreImportRecord:
        problems: list[str] = []
        if self.rgb and not is_valid_rgb_color(self.rgb):
            problems.append("Color must be in valid RGB format (rgb(r,g,b)) where r,g,b are 0-255")
        if self.is_subgenre and not self.parent_genre:
            problems.append("Parent genre is required for subgenres")
        if self.is_subgenre and self.rgb:
            problems.append("Subgenres cannot have a color assigned")
        if self.bpm.min > self.bpm.max:
            problems.append("BPM minimum cannot be greater than maximum")
        if problems:
            raise ValueError("; ".join(problems))
        return self


class ImportStage(str, Enum):
    """Pipeline stage at which a record was rejected."""

    SCHEMA = "schema"
    BUSINESS = "business"
    CONVERSION = "conversion"
    PERSISTENCE = "persistence"


class ImportErrorEntry(BaseModel):
    """A rejected record with the original raw payload attached."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Position of the record in the batch.")
    original_record: Any = None
    error_description: str
    field_name: str = ""
    stage: ImportStage


class ImportReport(BaseModel):
    """Outcome of one batch import."""

    model_config = ConfigDict(frozen=True)

    import_id: str
    total: int = Field(ge=0)
    imported: int = Field(ge=0)
    failed: int = Field(ge=0)
    errors: list[ImportErrorEntry] = Field(default_factory=list)
    imported_genre_ids: list[str] = Field(default_factory=list)
    relationship_errors: list[str] = Field(
        default_factory=list,
        description="Edges that could not be wired in the second pass; their genres stay imported.",
    )
    archived_file_name: str = ""
    error_file_name: str | None = None
    processed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
