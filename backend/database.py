"""SQLite storage for completed analyses.

Table: analyses
- id (integer, primary key)
- url_key (text, lower-cased normalized URL)
- url (text)
- domain (text)
- overall_score (integer)
- grade (text)
- report_json (text)
- created_at (ISO-8601 UTC text)
"""

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

from schemas import AnalysisReport
from settings import DB_PATH


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_connection(db_path: Path | str = DB_PATH) -> sqlite3.Connection:
    """Return a connection to the SQLite database."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path | str = DB_PATH) -> None:
    """Create the analyses table if it does not exist."""
    conn = get_connection(db_path)
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS analyses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url_key TEXT NOT NULL,
                url TEXT NOT NULL,
                domain TEXT NOT NULL,
                overall_score INTEGER NOT NULL,
                grade TEXT NOT NULL,
                report_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_analyses_key_created ON analyses (url_key, created_at)"
        )
        conn.commit()
    finally:
        conn.close()


def insert_analysis(url_key: str, report: AnalysisReport, db_path: Path | str = DB_PATH) -> int:
    """Store a report and return its id."""
    conn = get_connection(db_path)
    try:
        cursor = conn.execute(
            """
            INSERT INTO analyses (url_key, url, domain, overall_score, grade, report_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                url_key,
                report.url,
                report.domain,
                report.overall_score,
                report.grade,
                report.model_dump_json(),
                _utc_now().isoformat(),
            ),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


def find_recent_analysis(
    url_key: str,
    max_age_seconds: float,
    db_path: Path | str = DB_PATH,
) -> tuple[AnalysisReport, float] | None:
    """
    Newest report for `url_key` younger than `max_age_seconds`, else None.

    Returns `(report, age_seconds)`, the age measured from the row's `created_at`.
    """
    now = _utc_now()
    cutoff = (now - timedelta(seconds=max_age_seconds)).isoformat()
    conn = get_connection(db_path)
    try:
        row = conn.execute(
            """
            SELECT report_json, created_at FROM analyses
            WHERE url_key = ? AND created_at >= ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            (url_key, cutoff),
        ).fetchone()
        if row is None:
            return None
        age = (now - datetime.fromisoformat(row["created_at"])).total_seconds()
        return AnalysisReport.model_validate_json(row["report_json"]), max(0.0, age)
    finally:
        conn.close()


def get_analysis(analysis_id: int, db_path: Path | str = DB_PATH) -> AnalysisReport | None:
    """Fetch a stored report by id."""
    conn = get_connection(db_path)
    try:
        row = conn.execute(
            "SELECT report_json FROM analyses WHERE id = ?",
            (analysis_id,),
        ).fetchone()
        if row is None:
            return None
        return AnalysisReport.model_validate_json(row["report_json"])
    finally:
        conn.close()


def list_analyses(limit: int = 20, db_path: Path | str = DB_PATH) -> list[dict]:
    """Return recent analyses for the history view."""
    safe_limit = max(1, min(100, int(limit)))
    conn = get_connection(db_path)
    try:
        rows = conn.execute(
            """
            SELECT id, url, domain, overall_score, grade, created_at
            FROM analyses
            ORDER BY id DESC
            LIMIT ?
            """,
            (safe_limit,),
        ).fetchall()
        return [dict(row) for row in rows]
    finally:
        conn.close()


class SQLiteAnalysisStore:
    """Durable store bound to one database file."""

    def __init__(self, db_path: Path | str = DB_PATH) -> None:
        self.db_path = db_path

    def init(self) -> None:
        init_db(self.db_path)

    def save_report(self, url_key: str, report: AnalysisReport) -> int:
        return insert_analysis(url_key, report, db_path=self.db_path)

    def load_recent(self, url_key: str, max_age_seconds: float) -> tuple[AnalysisReport, float] | None:
        return find_recent_analysis(url_key, max_age_seconds, db_path=self.db_path)

    def get_report(self, analysis_id: int) -> AnalysisReport | None:
        return get_analysis(analysis_id, db_path=self.db_path)

    def list_recent(self, limit: int = 20) -> list[dict]:
        return list_analyses(limit, db_path=self.db_path)
