"""SQLite storage for claim tool history: one row per agent tool call."""

import json
import os
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

_DB_PATH: Path | None = None
_RESULT_SUMMARY_MAX = 500


def get_db_path() -> Path:
    """Return the path to the SQLite DB file (CLAIMS_DB_PATH overrides the default)."""
    global _DB_PATH
    if _DB_PATH is None:
        override = os.environ.get("CLAIMS_DB_PATH")
        _DB_PATH = Path(override) if override else Path(__file__).resolve().parent / "claims_memory.db"
    return _DB_PATH


def set_db_path(path: Path | str | None) -> None:
    """Point storage at another DB file; None goes back to the default on next use."""
    global _DB_PATH
    _DB_PATH = Path(path) if path is not None else None


def init_db() -> None:
    """Create the tool_calls table if needed."""
    path = get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tool_calls (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                tool_name TEXT NOT NULL,
                arguments_json TEXT NOT NULL,
                result_summary TEXT NOT NULL,
                success INTEGER,
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tool_calls_tool_name ON tool_calls(tool_name)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_tool_calls_created_at ON tool_calls(created_at)")


def log_tool_call(
    tool_name: str,
    arguments: dict,
    result: str,
    success: bool | None = None,
) -> int:
    """
    Record one tool call and return its row ID.

    Args:
        tool_name: Name of the tool used.
        arguments: Tool arguments dict.
        result: Tool result text; only the first 500 characters are kept.
        success: Whether the call achieved what it was asked to, if known.

    Returns:
        The row ID of the new entry.
    """
    init_db()
    summary = result[:_RESULT_SUMMARY_MAX] + ("..." if len(result) > _RESULT_SUMMARY_MAX else "")
    with sqlite3.connect(get_db_path()) as conn:
        cursor = conn.execute(
            """
            INSERT INTO tool_calls (tool_name, arguments_json, result_summary, success, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                tool_name,
                json.dumps(arguments, default=str),
                summary,
                None if success is None else int(success),
                datetime.now().isoformat(),
            ),
        )
        return cursor.lastrowid


def search_history(tool_name: str | None = None, limit: int = 50) -> list[dict]:
    """
    Query recorded tool calls, newest first.

    Args:
        tool_name: Only return calls to this tool (exact match); omit for all tools.
        limit: Maximum number of rows to return (clamped to 1..500).

    Returns:
        List of dicts with keys: id, tool_name, arguments (parsed), result_summary, success, created_at.
    """
    init_db()
    tool_name = (tool_name or "").strip() or None
    limit = max(1, min(limit, 500))

    query = "SELECT id, tool_name, arguments_json, result_summary, success, created_at FROM tool_calls WHERE 1=1"
    params: list[Any] = []
    if tool_name:
        query += " AND tool_name = ?"
        params.append(tool_name)
    query += " ORDER BY id DESC LIMIT ?"
    params.append(limit)

    with sqlite3.connect(get_db_path()) as conn:
        conn.row_factory = sqlite3.Row
        rows = conn.execute(query, params).fetchall()

    results = []
    for row in rows:
        row_dict = dict(row)
        row_dict["arguments"] = json.loads(row_dict.pop("arguments_json"))
        success = row_dict["success"]
        row_dict["success"] = None if success is None else bool(success)
        results.append(row_dict)
    return results
