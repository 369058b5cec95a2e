from __future__ import annotations

from pathlib import Path

from thread_blocks.services.store import SearchRecord, SearchStore, build_match_query


def _store(tmp_path: Path) -> SearchStore:
    db = tmp_path / "search.db"
    store = SearchStore(db)
    store.init_db()
    return store


def _record(record_id: str, **overrides: str) -> SearchRecord:
    values = {
        "id": record_id,
        "page": f"/threads/{record_id}",
        "timestamp": "2006-01-03T17:00:00+00:00",
        "user": "Alice",
        "title": "Garden plans",
        "body": "Shall we plant tomatoes this spring?",
        "flair": "",
        "year": "2006",
    }
    values.update(overrides)
    return SearchRecord(**values)


def test_build_match_query_requires_every_word_as_prefix() -> None:
    assert build_match_query("Re: Tomatoes, \"peppers\" OR more*") == '"Re"* "Tomatoes"* "peppers"* "OR"* "more"*'
    assert build_match_query("  ") == ""


def test_upsert_and_get_record(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upsert_record(_record("1"))

    assert store.count_records() == 1
    assert store.get_record("1") == _record("1")
    assert store.get_record("missing") is None


def test_search_matches_prefixes_across_fields(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upsert_record(_record("1"))
    store.upsert_record(_record("2", user="Bob", title="Compost", body="Leaves and coffee grounds"))

    assert [record.id for record in store.search("tomato", limit=10)] == ["1"]
    assert [record.id for record in store.search("BOB", limit=10)] == ["2"]
    assert {record.id for record in store.search("2006", limit=10)} == {"1", "2"}


def test_search_requires_every_term(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upsert_record(_record("1"))
    store.upsert_record(_record("2", body="Tomatoes again", user="Bob"))

    assert [record.id for record in store.search("tomatoes alice", limit=10)] == ["1"]
    assert store.search("tomatoes carol", limit=10) == []
    assert store.search("   ", limit=10) == []
    assert [record.id for record in store.search("tomatoes \" OR alice", limit=10)] == []
    assert {record.id for record in store.search("tomatoes \"", limit=10)} == {"1", "2"}


def test_search_ranks_by_relevance_then_recency(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upsert_record(_record("old", body="tomato", timestamp="2005-01-01T00:00:00+00:00", title="x"))
    store.upsert_record(_record("new", body="tomato", timestamp="2007-01-01T00:00:00+00:00", title="y"))
    store.upsert_record(_record("many", body="tomato tomato tomato", timestamp="2001-01-01T00:00:00+00:00"))

    assert [record.id for record in store.search("tomato", limit=10)] == ["many", "new", "old"]
    assert [record.id for record in store.search("tomato", limit=1)] == ["many"]


def test_upsert_replaces_indexed_terms(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.upsert_record(_record("1"))
    store.upsert_record(_record("1", body="Only peppers now"))

    assert store.count_records() == 1
    assert store.search("tomatoes", limit=10) == []
    assert [record.id for record in store.search("peppers", limit=10)] == ["1"]
