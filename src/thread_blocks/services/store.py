import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

_QUERY_TERM_RE = re.compile(r"\w+")

# Columns of the FTS5 table; the record id rides along unindexed.
INDEXED_FIELDS = ("user", "flair", "year", "title", "body")

_RECORD_COLUMNS = "r.id, r.page, r.timestamp, r.user, r.title, r.body, r.flair, r.year"


@dataclass
class SearchRecord:
    id: str
    page: str
    timestamp: str
    user: str
    title: str
    body: str
    flair: str = ""
    year: str = ""


def build_match_query(query: str) -> str:
    """Turn free text into an FTS5 expression: every word as a quoted prefix, all required."""
    return " ".join(f'"{term}"*' for term in _QUERY_TERM_RE.findall(query or ""))


class SearchStore:
    def __init__(self, database_path: Path) -> None:
        self.database_path = database_path
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.database_path)

    def init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS search_records (
                    id TEXT PRIMARY KEY,
                    page TEXT NOT NULL DEFAULT '',
                    timestamp TEXT NOT NULL DEFAULT '',
                    user TEXT NOT NULL DEFAULT '',
                    title TEXT NOT NULL DEFAULT '',
                    body TEXT NOT NULL DEFAULT '',
                    flair TEXT NOT NULL DEFAULT '',
                    year TEXT NOT NULL DEFAULT '',
                    indexed_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE VIRTUAL TABLE IF NOT EXISTS search_index USING fts5(
                    record_id UNINDEXED,
                    user,
                    flair,
                    year,
                    title,
                    body,
                    tokenize='unicode61'
                )
                """
            )
            conn.commit()

    def upsert_record(self, record: SearchRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO search_records(id, page, timestamp, user, title, body, flair, year, indexed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(id) DO UPDATE SET
                    page=excluded.page,
                    timestamp=excluded.timestamp,
                    user=excluded.user,
                    title=excluded.title,
                    body=excluded.body,
                    flair=excluded.flair,
                    year=excluded.year,
                    indexed_at=CURRENT_TIMESTAMP
                """,
                (
                    record.id,
                    record.page,
                    record.timestamp,
                    record.user,
                    record.title,
                    record.body,
                    record.flair,
                    record.year,
                ),
            )
            conn.execute("DELETE FROM search_index WHERE record_id = ?", (record.id,))
            conn.execute(
                """
                INSERT INTO search_index(record_id, user, flair, year, title, body)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (record.id, record.user, record.flair, record.year, record.title, record.body),
            )
            conn.commit()

    def get_record(self, record_id: str) -> Optional[SearchRecord]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_RECORD_COLUMNS} FROM search_records AS r WHERE r.id = ?",
                (record_id,),
            ).fetchone()
        if not row:
            return None
        return SearchRecord(*(str(value) for value in row))

    def search(self, query: str, *, limit: int) -> list[SearchRecord]:
        match_query = build_match_query(query)
        if not match_query:
            return []

        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM search_index
                JOIN search_records AS r ON r.id = search_index.record_id
                WHERE search_index MATCH ?
                ORDER BY bm25(search_index) ASC, r.timestamp DESC, r.id ASC
                LIMIT ?
                """,
                (match_query, max(1, int(limit))),
            ).fetchall()
        return [SearchRecord(*(str(value) for value in row)) for row in rows]

    def count_records(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(1) FROM search_records").fetchone()
            if not row:
                return 0
            return int(row[0])
