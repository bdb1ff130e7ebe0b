"""
Database module for the mandate intake service.

Provides SQLite-based storage for mandates, keyed by the deterministic
client identifier. Only the sealed envelope and the signature are stored;
the form plaintext never reaches this layer.
"""

import sqlite3
import threading
from typing import Optional, List, Dict, Any
from contextlib import contextmanager

from . import config

# Thread-local storage for connection pooling
_local = threading.local()


def _get_connection() -> sqlite3.Connection:
    """
    Get a thread-local database connection.
    Connections are reused within the same thread for performance.
    """
    if not hasattr(_local, 'conn') or _local.conn is None:
        config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(config.DB_PATH), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.row_factory = sqlite3.Row
        _local.conn = conn
    return _local.conn


@contextmanager
def _transaction():
    """
    Context manager for database transactions.
    Automatically commits on success, rolls back on failure.
    """
    conn = _get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise


def init_db() -> None:
    """
    Initialize database schema.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    with _transaction() as conn:
        conn.execute("""
        CREATE TABLE IF NOT EXISTS mandates (
            identifier TEXT PRIMARY KEY,
            encrypted_data TEXT NOT NULL,
            signature_png BLOB NOT NULL,
            amounts_json TEXT,
            submission_count INTEGER NOT NULL DEFAULT 1,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        );""")
        conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_mandates_updated
        ON mandates(updated_at);""")


def upsert_mandate(
    identifier: str,
    encrypted_data: str,
    signature_png: bytes,
    amounts_json: Optional[str],
    received_at: int
) -> int:
    """
    Store a mandate under its identifier.

    A resubmission for the same identifier replaces the envelope, signature
    and amounts and bumps submission_count. Returns the new count.
    """
    with _transaction() as conn:
        conn.execute(
            "INSERT INTO mandates(identifier, encrypted_data, signature_png, amounts_json, "
            "submission_count, created_at, updated_at) VALUES(?,?,?,?,1,?,?) "
            "ON CONFLICT(identifier) DO UPDATE SET "
            "encrypted_data=excluded.encrypted_data, "
            "signature_png=excluded.signature_png, "
            "amounts_json=excluded.amounts_json, "
            "submission_count=mandates.submission_count + 1, "
            "updated_at=excluded.updated_at",
            (identifier, encrypted_data, signature_png, amounts_json, received_at, received_at)
        )
        cur = conn.execute(
            "SELECT submission_count FROM mandates WHERE identifier=?", (identifier,)
        )
        return cur.fetchone()['submission_count']


def get_mandate(identifier: str) -> Optional[Dict[str, Any]]:
    """Retrieve a stored mandate by identifier."""
    conn = _get_connection()
    cur = conn.execute(
        "SELECT identifier, encrypted_data, signature_png, amounts_json, submission_count, "
        "created_at, updated_at FROM mandates WHERE identifier=?",
        (identifier,)
    )
    row = cur.fetchone()
    return dict(row) if row else None


def list_mandates(since: int = 0) -> List[Dict[str, Any]]:
    """List mandate identifiers updated at or after `since`, oldest first."""
    conn = _get_connection()
    cur = conn.execute(
        "SELECT identifier, submission_count, created_at, updated_at FROM mandates "
        "WHERE updated_at >= ? ORDER BY updated_at ASC",
        (since,)
    )
    return [dict(row) for row in cur.fetchall()]


# ============================================================
# Metrics and Health
# ============================================================

def get_db_stats() -> Dict[str, int]:
    """Get database statistics for monitoring."""
    conn = _get_connection()
    cur = conn.execute("SELECT COUNT(*) as cnt FROM mandates")
    return {"mandates_count": cur.fetchone()['cnt']}


# ============================================================
# Test Support: Database Reset
# ============================================================

def reset_db() -> None:
    """
    Reset the database for test isolation.
    Clears all tables but preserves schema.
    """
    with _transaction() as conn:
        conn.execute("DELETE FROM mandates")
