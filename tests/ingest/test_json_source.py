import json
from pathlib import Path

from bricks.ingest.json_source import JsonGameSource


class TestJsonGameSource:
    def test_single_document(self, tmp_path: Path) -> None:
        path = tmp_path / "game.json"
        path.write_text(json.dumps({"game_id": "g1"}))
        source = JsonGameSource(path)
        assert source.source_type == "json"
        assert source.source_detail == str(path)
        assert source.fetch() == [{"game_id": "g1"}]

    def test_list_of_documents(self, tmp_path: Path) -> None:
        path = tmp_path / "games.json"
        path.write_text(json.dumps([{"game_id": "g1"}, {"game_id": "g2"}]))
        assert [d["game_id"] for d in JsonGameSource(path).fetch()] == ["g1", "g2"]

    def test_json_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "games.jsonl"
        path.write_text('{"game_id": "g1"}\n\n{"game_id": "g2"}\n')
        assert [d["game_id"] for d in JsonGameSource(path).fetch()] == ["g1", "g2"]

    def test_directory_read_in_name_order(self, tmp_path: Path) -> None:
        (tmp_path / "b.json").write_text(json.dumps({"game_id": "g2"}))
        (tmp_path / "a.json").write_text(json.dumps({"game_id": "g1"}))
        (tmp_path / "notes.txt").write_text("ignored")
        assert [d["game_id"] for d in JsonGameSource(tmp_path).fetch()] == ["g1", "g2"]
