"""Unit tests for the catalog CLI in src.cli.catalog.

Each test drives ``main([...])`` end to end against a temporary SQLite
file.  ``main`` runs its own event loop, so these tests stay synchronous.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from src.cli.catalog import _build_parser, _genre_to_dict, main
from src.models.genre import Genre, GenreAttributes

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


# ======================================================================
# Shared helpers
# ======================================================================


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the CLI at temp storage and keep log lines off stdout."""
    monkeypatch.setenv("CATALOG_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("ARCHIVE_DIR", str(tmp_path / "archives"))
    monkeypatch.setenv("CONFIG_PATH", str(_PROJECT_ROOT / "config" / "config.yaml"))
    monkeypatch.setenv("APP_ENV", "test")
    with patch("src.cli.catalog.setup_logging"), capture_logs() as logs:
        yield logs


def _run(capsys: pytest.CaptureFixture[str], *argv: str):
    """Run the CLI and return (exit_code, parsed stdout or None, stderr)."""
    code = main(list(argv))
    captured = capsys.readouterr()
    payload = json.loads(captured.out) if captured.out.strip() and code == 0 else None
    return code, payload, captured.err


def _write_json(path: Path, data) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def _create_genre(capsys, tmp_path: Path, genre_input, name: str, **overrides) -> dict:
    file_name = name.lower().replace(" ", "_") + ".json"
    source = _write_json(tmp_path / file_name, genre_input(name, **overrides))
    code, payload, err = _run(capsys, "create-genre", "--file", source)
    assert code == 0, err
    return payload


# ======================================================================
# Parser
# ======================================================================


class TestParser:
    def test_no_command_prints_help(self, capsys) -> None:
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_list_scope_flags_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["list", "--subgenres-only", "--main-only"])

    def test_quiet_flag(self) -> None:
        args = _build_parser().parse_args(["-q", "init"])
        assert args.quiet is True
        assert args.command == "init"


# ======================================================================
# Commands
# ======================================================================


class TestInit:
    def test_creates_database(self, capsys, tmp_path: Path) -> None:
        code, payload, _ = _run(capsys, "init")
        assert code == 0
        assert payload["initialized"] is True
        assert payload["store"] == "sqlite_taxonomy"
        assert (tmp_path / "cli.db").exists()


class TestClusters:
    def test_create_and_list(self, capsys) -> None:
        code, cluster, _ = _run(capsys, "create-cluster", "Electronic", "--description", "Synths")
        assert code == 0
        assert cluster["id"].startswith("C-")
        assert cluster["description"] == "Synths"

        _run(capsys, "create-cluster", "Archived", "--inactive")
        _, active, _ = _run(capsys, "list-clusters")
        _, everything, _ = _run(capsys, "list-clusters", "--include-inactive")
        assert [c["name"] for c in active] == ["Electronic"]
        assert sorted(c["name"] for c in everything) == ["Archived", "Electronic"]

    def test_duplicate_name_is_a_conflict(self, capsys) -> None:
        _run(capsys, "create-cluster", "Electronic")
        code, _, err = _run(capsys, "create-cluster", "Electronic")
        assert code == 1
        assert err.startswith("Error (conflict)")


class TestGenres:
    def test_create_then_get(self, capsys, tmp_path: Path, genre_input) -> None:
        created = _create_genre(
            capsys, tmp_path, genre_input, "House", color_r=255, color_g=0, color_b=128
        )
        assert created["hex_color"] == "#FF0080"
        assert created["bpm_avg"] == 123.0
        assert created["compas_description"]

        code, fetched, _ = _run(capsys, "get", created["id"])
        assert code == 0
        assert fetched["name"] == "House"
        assert fetched["rgb_color"] == "rgb(255,0,128)"

    def test_subgenre_shows_parent_edge(self, capsys, tmp_path: Path, genre_input) -> None:
        house = _create_genre(capsys, tmp_path, genre_input, "House")
        deep = _create_genre(
            capsys, tmp_path, genre_input, "Deep House",
            is_subgenre=True, parent_genre_id=house["id"],
        )
        assert deep["related_genre_ids"] == [house["id"]]
        assert deep["parent_genre_name"] == "House"

    def test_invalid_bpm_exits_with_validation_error(self, capsys, tmp_path: Path,
                                                     genre_input) -> None:
        source = _write_json(tmp_path / "bad.json", genre_input("House", bpm_lower=140))
        code, _, err = _run(capsys, "create-genre", "--file", source)
        assert code == 1
        assert err.startswith("Error (validation)")

    def test_genre_file_must_be_an_object(self, capsys, tmp_path: Path) -> None:
        source = _write_json(tmp_path / "list.json", [1, 2])
        code, _, err = _run(capsys, "create-genre", "--file", source)
        assert code == 1
        assert "one JSON object" in err

    def test_missing_genre(self, capsys) -> None:
        _run(capsys, "init")
        code, _, err = _run(capsys, "get", "G-DOESNOTEXIST")
        assert code == 1
        assert err.startswith("Error (reference)")

    def test_list_filters(self, capsys, tmp_path: Path, genre_input) -> None:
        _create_genre(capsys, tmp_path, genre_input, "House", bpm_lower=118, bpm_upper=128)
        _create_genre(capsys, tmp_path, genre_input, "Drum and Bass",
                      bpm_lower=160, bpm_upper=180)

        _, fast, _ = _run(capsys, "list", "--min-bpm", "150")
        _, everything, _ = _run(capsys, "list")
        assert [g["name"] for g in fast] == ["Drum and Bass"]
        assert [g["name"] for g in everything] == ["Drum and Bass", "House"]

    def test_similarity_with_breakdown(self, capsys, tmp_path: Path, genre_input) -> None:
        house = _create_genre(capsys, tmp_path, genre_input, "House")
        garage = _create_genre(capsys, tmp_path, genre_input, "Garage", dominant_key=3)

        code, result, _ = _run(capsys, "similarity", house["id"], garage["id"], "--breakdown")
        assert code == 0
        # Only the key differs, by the maximum six steps.
        assert result["mgpc"] == pytest.approx(0.7)
        assert result["breakdown"]["components"]["key"]["distance"] == 1.0
        assert result["bpm_overlap"] == 1.0

    def test_refresh_and_deactivate(self, capsys, tmp_path: Path, genre_input) -> None:
        house = _create_genre(capsys, tmp_path, genre_input, "House")
        _create_genre(capsys, tmp_path, genre_input, "Deep House",
                      is_subgenre=True, parent_genre_id=house["id"])

        _, refreshed, _ = _run(capsys, "refresh-mgpc", house["id"])
        assert refreshed == {"genre_id": house["id"], "edges_updated": 1}

        code, payload, _ = _run(capsys, "deactivate", house["id"])
        assert code == 0
        assert payload["is_active"] is False
        _, listed, _ = _run(capsys, "list", "--main-only")
        assert listed == []

    def test_deactivate_unknown(self, capsys) -> None:
        _run(capsys, "init")
        code, _, err = _run(capsys, "deactivate", "G-DOESNOTEXIST")
        assert code == 1
        assert "not found" in err


class TestImport:
    def test_import_reports_partial_failure(self, capsys, tmp_path: Path,
                                            import_record) -> None:
        source = _write_json(tmp_path / "batch.json", [
            import_record("House"),
            import_record("Broken", bpm={"min": 140, "max": 120}),
        ])
        code, report, _ = _run(capsys, "import", source)
        assert code == 0
        assert (report["total"], report["imported"], report["failed"]) == (2, 1, 1)
        assert report["errors"][0]["stage"] == "schema"
        assert (tmp_path / "archives" / report["error_file_name"]).exists()

    def test_non_json_extension_rejected(self, capsys, tmp_path: Path) -> None:
        source = tmp_path / "batch.csv"
        source.write_text("[]", encoding="utf-8")
        code, _, err = _run(capsys, "import", str(source))
        assert code == 1
        assert err.startswith("Error (validation)")

    def test_missing_file(self, capsys, tmp_path: Path) -> None:
        code, _, err = _run(capsys, "import", str(tmp_path / "absent.json"))
        assert code == 1
        assert "Cannot read" in err

    def test_import_logs_completion(self, capsys, tmp_path: Path, import_record,
                                    cli_env) -> None:
        source = _write_json(tmp_path / "batch.json", [import_record("House")])
        _run(capsys, "import", source)
        completed = [e for e in cli_env if e["event"] == "import_completed"]
        assert completed and completed[0]["imported"] == 1


def test_genre_to_dict_projections() -> None:
    genre = Genre(
        id="G-ABCDEFGHIJKL",
        name="House",
        attributes=GenreAttributes(
            mode=0.5, bpm_lower=120, bpm_upper=130, volume_db=-8,
            compas_metric=4, avg_duration_sec=360,
        ),
    )
    data = _genre_to_dict(genre)
    assert data["bpm_avg"] == 125.0
    assert data["hex_color"] is None
    assert data["related_genre_ids"] == []
    json.dumps(data)
