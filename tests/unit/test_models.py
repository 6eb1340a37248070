"""Unit tests for the genre and import models in src/models/."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.models.genre import (
    Cluster,
    Genre,
    GenreAttributes,
    GenreCreateInput,
    GenreListFilter,
    GenreRelation,
    RelatedGenreView,
    RelationDirection,
)
from src.models.genre_import import GenreImportRecord, ImportReport


def _attrs(**overrides) -> GenreAttributes:
    values = {
        "mode": 0.5,
        "bpm_lower": 120,
        "bpm_upper": 128,
        "volume_db": -8,
        "compas_metric": 4,
        "avg_duration_sec": 360,
    }
    values.update(overrides)
    return GenreAttributes(**values)


def _genre(**overrides) -> Genre:
    values = {
        "id": "G-ABCDEFGHIJKL",
        "name": "House",
        "attributes": _attrs(),
    }
    values.update(overrides)
    return Genre(**values)


# ======================================================================
# GenreAttributes
# ======================================================================


class TestGenreAttributes:
    def test_defaults_key_to_undefined(self) -> None:
        assert _attrs().dominant_key == -1

    def test_bpm_avg(self) -> None:
        assert _attrs(bpm_lower=120, bpm_upper=125).bpm_avg == 122.5

    @pytest.mark.parametrize(
        "field, value",
        [
            ("mode", 1.5),
            ("bpm_lower", -1),
            ("bpm_upper", 251),
            ("volume_db", 1),
            ("volume_db", -61),
            ("compas_metric", 9),
            ("avg_duration_sec", 3601),
            ("dominant_key", 12),
            ("dominant_key", -2),
        ],
    )
    def test_rejects_out_of_range(self, field: str, value: float) -> None:
        with pytest.raises(ValidationError):
            _attrs(**{field: value})

    def test_rejects_inverted_bpm(self) -> None:
        with pytest.raises(ValidationError, match="BPM lower bound"):
            _attrs(bpm_lower=130, bpm_upper=120)

    def test_is_frozen(self) -> None:
        attrs = _attrs()
        with pytest.raises(ValidationError):
            attrs.mode = 0.1  # type: ignore[misc]


# ======================================================================
# Genre
# ======================================================================


class TestGenre:
    def test_color_projections(self) -> None:
        genre = _genre(color_r=255, color_g=10, color_b=0)
        assert genre.rgb_color == "rgb(255,10,0)"
        assert genre.hex_color == "#FF0A00"

    def test_no_color(self) -> None:
        genre = _genre()
        assert genre.rgb_color is None
        assert genre.hex_color is None

    def test_projections_are_not_serialized(self) -> None:
        dumped = _genre(color_r=1, color_g=2, color_b=3).model_dump()
        assert "hex_color" not in dumped
        assert "rgb_color" not in dumped

    def test_partial_color_rejected(self) -> None:
        with pytest.raises(ValidationError, match="all three components"):
            _genre(color_r=10, color_g=20)

    def test_subgenre_requires_parent(self) -> None:
        with pytest.raises(ValidationError, match="Parent genre is required"):
            _genre(id="G-ABCDEFGHIJKLS-ABCDEFGHIJKL", is_subgenre=True)

    def test_subgenre_cannot_have_color(self) -> None:
        with pytest.raises(ValidationError, match="Subgenres cannot have a color"):
            _genre(
                is_subgenre=True,
                parent_genre_id="G-PARENT000000",
                color_r=1,
                color_g=2,
                color_b=3,
            )

    def test_main_genre_cannot_have_parent(self) -> None:
        with pytest.raises(ValidationError, match="cannot have a parent"):
            _genre(parent_genre_id="G-PARENT000000")

    def test_subgenre_cannot_join_cluster(self) -> None:
        with pytest.raises(ValidationError, match="Clusters"):
            _genre(is_subgenre=True, parent_genre_id="G-PARENT000000", cluster_id="C-X")

    @pytest.mark.parametrize("name", ["Hi", "X" * 31])
    def test_name_length(self, name: str) -> None:
        with pytest.raises(ValidationError):
            _genre(name=name)

    def test_related_genre_ids_union_of_directions(self) -> None:
        views = [
            RelatedGenreView(genre_id="G-A", name="Disco", influence=7, mgpc=0.8,
                             direction=RelationDirection.OUTGOING),
            RelatedGenreView(genre_id="G-B", name="Deep House", influence=10, mgpc=0.9,
                             direction=RelationDirection.INCOMING),
            RelatedGenreView(genre_id="G-A", name="Disco", influence=3, mgpc=0.8,
                             direction=RelationDirection.INCOMING),
        ]
        genre = _genre(relations=views)
        assert genre.related_genre_ids == ["G-A", "G-B"]


# ======================================================================
# Relations, clusters, inputs
# ======================================================================


class TestGenreRelation:
    def test_self_loop_rejected(self) -> None:
        with pytest.raises(ValidationError, match="itself"):
            GenreRelation(genre_id="G-A", related_genre_id="G-A", influence=5, mgpc=0.5)

    @pytest.mark.parametrize("influence", [0, 11])
    def test_influence_range(self, influence: int) -> None:
        with pytest.raises(ValidationError):
            GenreRelation(genre_id="G-A", related_genre_id="G-B", influence=influence, mgpc=0.5)

    @pytest.mark.parametrize("mgpc", [-0.01, 1.01])
    def test_mgpc_range(self, mgpc: float) -> None:
        with pytest.raises(ValidationError):
            GenreRelation(genre_id="G-A", related_genre_id="G-B", influence=5, mgpc=mgpc)


class TestCluster:
    def test_description_limit(self) -> None:
        with pytest.raises(ValidationError):
            Cluster(id="C-ABCDEFGHIJKL", name="Electronic", description="x" * 301)

    def test_defaults_active(self) -> None:
        assert Cluster(id="C-ABCDEFGHIJKL", name="Electronic").is_active is True


class TestGenreCreateInput:
    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GenreCreateInput(
                name="House", mode=0.5, bpm_lower=120, bpm_upper=128, volume_db=-8,
                compas_metric=4, avg_duration_sec=360, colour="red",
            )

    def test_inverted_bpm_is_left_to_the_service(self) -> None:
        data = GenreCreateInput(
            name="House", mode=0.5, bpm_lower=130, bpm_upper=120, volume_db=-8,
            compas_metric=4, avg_duration_sec=360,
        )
        assert data.bpm_lower == 130

    def test_to_attributes(self) -> None:
        data = GenreCreateInput(
            name="House", mode=0.5, bpm_lower=120, bpm_upper=128, volume_db=-8,
            compas_metric=4, avg_duration_sec=360, dominant_key=3,
        )
        assert data.to_attributes() == _attrs(dominant_key=3)

    def test_list_filter_defaults(self) -> None:
        query = GenreListFilter()
        assert query.active_only is True
        assert query.include_subgenres is True
        assert query.subgenres_only is False


# ======================================================================
# Import records
# ======================================================================


def _record(**overrides) -> dict:
    values = {
        "name": "Techno",
        "mode": 0.3,
        "bpm": {"min": 125, "max": 135},
        "volume": -6,
        "compas": 4,
        "avrg_duration": 400,
    }
    values.update(overrides)
    return values


class TestGenreImportRecord:
    def test_minimal_record(self) -> None:
        record = GenreImportRecord.model_validate(_record())
        assert record.key == -1
        assert record.active is True
        assert record.is_subgenre is False
        assert record.related_genre is None

    def test_unknown_fields_ignored(self) -> None:
        record = GenreImportRecord.model_validate(_record(id=42, popularity="high"))
        assert record.name == "Techno"

    def test_bpm_min_above_max(self) -> None:
        with pytest.raises(ValidationError, match="BPM minimum cannot be greater"):
            GenreImportRecord.model_validate(_record(bpm={"min": 140, "max": 120}))

    def test_bad_rgb_syntax(self) -> None:
        with pytest.raises(ValidationError, match="valid RGB format"):
            GenreImportRecord.model_validate(_record(rgb="#FF0000"))

    def test_subgenre_needs_parent(self) -> None:
        with pytest.raises(ValidationError, match="Parent genre is required"):
            GenreImportRecord.model_validate(_record(is_subgenre=True))

    def test_subgenre_with_rgb(self) -> None:
        with pytest.raises(ValidationError, match="Subgenres cannot have a color"):
            GenreImportRecord.model_validate(
                _record(is_subgenre=True, parent_genre="House", rgb="rgb(1,2,3)")
            )

    def test_numeric_strings_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must be a number"):
            GenreImportRecord.model_validate(_record(volume="-6"))

    def test_bool_flags_must_be_real_booleans(self) -> None:
        with pytest.raises(ValidationError):
            GenreImportRecord.model_validate(_record(active="yes"))

    def test_related_influence_default(self) -> None:
        record = GenreImportRecord.model_validate(_record(related_genre=[{"name": "House"}]))
        assert record.related_genre[0].influence == 5


def test_import_report_defaults() -> None:
    report = ImportReport(import_id="abc", total=0, imported=0, failed=0)
    assert report.errors == []
    assert report.error_file_name is None
    assert report.relationship_errors == []
