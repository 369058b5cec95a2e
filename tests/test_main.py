from pathlib import Path

from fastapi.testclient import TestClient

from thread_blocks.config import Settings
from thread_blocks.main import create_app
from thread_blocks.services.store import SearchStore


def _client(tmp_path: Path) -> TestClient:
    settings = Settings(database_path=str(tmp_path / "api.db"), max_body_chars=1000)
    return TestClient(create_app(settings, SearchStore(settings.database_file)))


def test_health(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_parse_endpoint(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        response = client.post("/parse", json={"body": "From: Alice\nTo: Bob\nSubject: Hi\n\nBody text"})

    assert response.status_code == 200
    blocks = response.json()["blocks"]
    assert blocks[0] == {
        "type": "message_header",
        "fields": [
            {"name": "From", "value": "Alice"},
            {"name": "To", "value": "Bob"},
            {"name": "Subject", "value": "Hi"},
        ],
    }
    assert blocks[1] == {"type": "text", "text": "Body text"}


def test_parse_endpoint_rejects_oversized_body(tmp_path: Path) -> None:
    with _client(tmp_path) as client:
        response = client.post("/parse", json={"body": "x" * 1001})
    assert response.status_code == 413


def test_index_then_search(tmp_path: Path) -> None:
    messages = [
        {"id": "1", "title": "Seeds", "body": "On Tue, 3 Jan 2006, Alice wrote:\n> tomatoes?"},
        {"id": "2", "title": "Compost", "body": "Leaves", "user": "Bob"},
    ]
    with _client(tmp_path) as client:
        indexed = client.post("/index", json={"messages": messages})
        found = client.get("/search", params={"q": "alice tomato"})
        missing = client.get("/search")

    assert indexed.json() == {"status": "ok", "indexed": 2, "skipped": 0}
    assert [result["id"] for result in found.json()["results"]] == ["1"]
    assert missing.status_code == 400
