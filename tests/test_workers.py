import json
from pathlib import Path

import pytest

from thread_blocks import index_worker, parse_worker


def test_parse_worker_prints_blocks(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    message = tmp_path / "message.txt"
    message.write_text("Fine by me.\n\n--- alice wrote:\n> ok?\n", encoding="utf-8")

    assert parse_worker.main([str(message)]) == 0
    blocks = json.loads(capsys.readouterr().out)
    assert [block["type"] for block in blocks] == ["text", "attribution", "text"]

    assert parse_worker.main([str(message), "--output", "reply"]) == 0
    assert capsys.readouterr().out == "Fine by me.\n"


def test_parse_worker_missing_file(tmp_path: Path) -> None:
    assert parse_worker.main([str(tmp_path / "missing.txt")]) == 1


def test_index_worker_build_and_search(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "search.json"
    source.write_text(
        json.dumps(
            [
                {"id": "1", "title": "Seeds", "body": "--- alice wrote:\n> tomatoes"},
                {"id": "2"},
            ]
        ),
        encoding="utf-8",
    )
    database = str(tmp_path / "index.db")

    assert index_worker.main(["--input", str(source), "--database", database]) == 2
    assert json.loads(capsys.readouterr().out)["indexed"] == 1

    assert index_worker.main(["--mode", "search", "--query", "tomatoes", "--database", database]) == 0
    assert json.loads(capsys.readouterr().out)["results"][0]["user"] == "alice"

    assert index_worker.main(["--mode", "search", "--query", "peppers", "--database", database]) == 1
