import csv
import io
import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from bricks.cli.app import app
from bricks.db.pool import ConnectionPool
from bricks.repos.meta_repo import SqliteMetaRepo
from bricks.services.rebuild import REBUILD_STARTED_KEY

runner = CliRunner()


def _document(game_id: str, day: int, **overrides: Any) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "game_id": game_id,
        "sim": "gamma",
        "season": 1,
        "day": day,
        "away": {
            "team_id": "AWY",
            "players": {"p1": {"plate_appearances": 4, "at_bats": 4, "singles": 2}},
        },
        "home": {
            "team_id": "HOM",
            "players": {"p2": {"outs_recorded": 27, "batters_faced": 31, "earned_runs": 3, "struck_outs": 7}},
        },
        "box_score": {"runs": [1, 3]},
        "log": ["top 1st", "bottom 9th"],
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def feed(tmp_path: Path) -> Path:
    path = tmp_path / "games.json"
    path.write_text(json.dumps([_document("g1", 1), _document("g2", 2, error="umpire ejected the moon")]))
    return path


def _invoke(db: Path, *args: str) -> Any:
    return runner.invoke(app, ["--config", "/nonexistent/bricks.yaml", "--db", str(db), *args])


class TestIngestCommand:
    def test_ingests_documents(self, db_path: Path, feed: Path) -> None:
        result = _invoke(db_path, "ingest", str(feed))
        assert result.exit_code == 0, result.output
        assert "Ingested 2 games" in result.output
        assert "1 with simulation errors" in result.output

    def test_missing_file(self, db_path: Path, tmp_path: Path) -> None:
        result = _invoke(db_path, "ingest", str(tmp_path / "nope.json"))
        assert result.exit_code == 1

    def test_malformed_document_fails(self, db_path: Path, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"game_id": "g1"}))
        result = _invoke(db_path, "ingest", str(path))
        assert result.exit_code == 1
        assert "malformed" in result.output


class TestReadCommands:
    @pytest.fixture(autouse=True)
    def _ingest(self, db_path: Path, feed: Path) -> None:
        assert _invoke(db_path, "ingest", str(feed)).exit_code == 0

    def test_game(self, db_path: Path) -> None:
        result = _invoke(db_path, "game", "g1")
        assert result.exit_code == 0, result.output

    def test_unknown_game(self, db_path: Path) -> None:
        result = _invoke(db_path, "game", "g99")
        assert result.exit_code == 1
        assert "No stats found" in result.output

    def test_player_career(self, db_path: Path) -> None:
        result = _invoke(db_path, "player", "p1")
        assert result.exit_code == 0, result.output

    def test_player_season(self, db_path: Path) -> None:
        result = _invoke(db_path, "player", "p2", "--sim", "gamma", "--season", "1")
        assert result.exit_code == 0, result.output
        assert "ERA+" in result.output

    def test_player_needs_both_sim_and_season(self, db_path: Path) -> None:
        result = _invoke(db_path, "player", "p1", "--sim", "gamma")
        assert result.exit_code == 1

    def test_season(self, db_path: Path) -> None:
        result = _invoke(db_path, "season", "gamma", "1", "--pitching")
        assert result.exit_code == 0, result.output
        assert "League:" in result.output

    def test_debug(self, db_path: Path) -> None:
        result = _invoke(db_path, "debug", "g2")
        assert result.exit_code == 0, result.output
        assert "umpire ejected the moon" in result.output
        assert "bottom 9th" in result.output

    def test_export_csv_to_stdout(self, db_path: Path) -> None:
        result = _invoke(db_path, "export", "gamma", "1")
        assert result.exit_code == 0, result.output
        assert "player_id,teams," in result.stdout

    def test_export_csv_to_file(self, db_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "season.csv"
        result = _invoke(db_path, "export", "gamma", "1", "--output", str(out))
        assert result.exit_code == 0, result.output
        rows = list(csv.DictReader(io.StringIO(out.read_text())))
        assert [r["player_id"] for r in rows] == ["p1", "p2"]

    def test_export_json_to_file(self, db_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "season.json"
        result = _invoke(db_path, "export", "gamma", "1", "--format", "json", "--output", str(out))
        assert result.exit_code == 0, result.output
        assert len(json.loads(out.read_text())["players"]) == 2

    def test_export_unknown_format(self, db_path: Path) -> None:
        result = _invoke(db_path, "export", "gamma", "1", "--format", "xml")
        assert result.exit_code == 1


class TestRebuildCommands:
    def test_rebuild_then_current(self, db_path: Path, feed: Path) -> None:
        _invoke(db_path, "ingest", str(feed))
        first = _invoke(db_path, "rebuild")
        assert first.exit_code == 0, first.output
        assert "Rebuilt" in first.output
        second = _invoke(db_path, "rebuild")
        assert "nothing to rebuild" in second.output
        forced = _invoke(db_path, "rebuild", "--force")
        assert "Rebuilt" in forced.output

    def test_status(self, db_path: Path) -> None:
        result = _invoke(db_path, "status")
        assert result.exit_code == 0, result.output
        assert "idle" in result.output
        assert "stored=none" in result.output

    def test_status_reports_a_rebuild_running_elsewhere(self, db_path: Path, pool: ConnectionPool) -> None:
        SqliteMetaRepo(pool).set(REBUILD_STARTED_KEY, "1700000000.0")
        result = _invoke(db_path, "status")
        assert result.exit_code == 0, result.output
        assert "rebuilding since" in result.output


class TestConfiguration:
    def test_invalid_codec(self, db_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BRICKS__CACHE__CODEC", "lz4")
        result = _invoke(db_path, "status")
        assert result.exit_code == 1
        assert "cache.codec" in result.output
