import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.config import get_settings
from core.exceptions import PersistenceError
from core.logger import setup_logger
from core.schema import LedgerTransaction

logger = setup_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    org_id TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'bank' CHECK (type IN ('bank', 'credit', 'cash')),
    currency TEXT DEFAULT 'CAD',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    org_id TEXT NOT NULL,
    account_id TEXT REFERENCES accounts(id),
    txn_date DATE NOT NULL,
    description TEXT NOT NULL,
    vendor_clean TEXT,
    amount NUMERIC NOT NULL CHECK (amount >= 0),
    direction TEXT NOT NULL CHECK (direction IN ('debit', 'credit')),
    category TEXT,
    institution TEXT,
    source_account_name TEXT,
    imported_via TEXT DEFAULT 'manual',
    imported_from TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_transactions_org ON transactions (org_id);

CREATE TABLE IF NOT EXISTS vendor_rules (
    id TEXT PRIMARY KEY,
    org_id TEXT NOT NULL,
    vendor_pattern TEXT NOT NULL,
    category TEXT,
    direction_filter TEXT CHECK (direction_filter IN ('debit', 'credit')),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS rules (
    id TEXT PRIMARY KEY,
    org_id TEXT NOT NULL,
    match_pattern TEXT NOT NULL,
    default_category TEXT,
    enabled INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

INSERT_TRANSACTION = """
    INSERT INTO transactions (
        id, org_id, account_id, txn_date, description, vendor_clean, amount,
        direction, category, institution, source_account_name,
        imported_via, imported_from, created_at
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


class Database:
    """Ledger store. Every query is filtered by organization id."""

    def __init__(self, db_path: Optional[str] = None):
        self.settings = get_settings()
        self.db_path = db_path or self.settings.database_path

    def get_connection(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Initialize database tables."""
        conn = self.get_connection()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
            logger.info("Database initialized successfully")
        except sqlite3.Error as e:
            logger.error(f"Database initialization failed: {e}")
            raise PersistenceError("Database initialization failed", details={"error": str(e)})
        finally:
            conn.close()

    def get_account_name(self, org_id: str, account_id: str) -> Optional[str]:
        """Look up an account's stored name within one organization."""
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT name FROM accounts WHERE id = ? AND org_id = ?",
                (account_id, org_id),
            ).fetchone()
            return row["name"] if row else None
        except sqlite3.Error as e:
            logger.error(f"Failed to look up account {account_id}: {e}")
            raise PersistenceError("Account lookup failed", details={"error": str(e)})
        finally:
            conn.close()

    def get_vendor_rules(self, org_id: str) -> List[Dict[str, Any]]:
        """Get vendor categorization rules for an organization, oldest first."""
        return self._fetch_all(
            "SELECT vendor_pattern, category, direction_filter FROM vendor_rules "
            "WHERE org_id = ? ORDER BY created_at, rowid",
            (org_id,),
        )

    def get_rules(self, org_id: str) -> List[Dict[str, Any]]:
        """Get enabled general categorization rules for an organization."""
        return self._fetch_all(
            "SELECT match_pattern, default_category FROM rules "
            "WHERE org_id = ? AND enabled = 1 ORDER BY created_at, rowid",
            (org_id,),
        )

    def insert_transactions(self, org_id: str, rows: Sequence[LedgerTransaction]) -> int:
        """
        Append a batch of ledger rows in a single transaction.

        Args:
            org_id: Organization the batch belongs to
            rows: Normalized ledger rows

        Returns:
            Number of rows written, as reported by the store

        Raises:
            PersistenceError: If any row targets another organization or the
                insert fails (nothing is written in either case)
        """
        foreign = [row for row in rows if row.org_id != org_id]
        if foreign:
            raise PersistenceError(
                "Refusing to write rows for another organization",
                details={"org_id": org_id, "foreign_rows": len(foreign)},
            )
        if not rows:
            return 0

        now = datetime.now(timezone.utc).isoformat()
        params = [
            (
                str(uuid.uuid4()),
                row.org_id,
                row.account_id,
                row.txn_date.isoformat(),
                row.description,
                row.vendor_clean,
                str(row.amount),
                row.direction,
                row.category,
                row.institution,
                row.source_account_name,
                row.imported_via,
                row.imported_from,
                now,
            )
            for row in rows
        ]

        conn = self.get_connection()
        try:
            with conn:
                cursor = conn.executemany(INSERT_TRANSACTION, params)
                written = cursor.rowcount
            logger.info(f"Inserted {written} transactions")
            return written
        except sqlite3.Error as e:
            logger.error(f"Bulk insert of {len(params)} transactions failed: {e}")
            raise PersistenceError(
                "Bulk insert failed",
                details={"error": str(e), "batch_size": len(params)},
            )
        finally:
            conn.close()

    def list_transactions(self, org_id: str) -> List[Dict[str, Any]]:
        """Get all ledger rows for an organization."""
        return self._fetch_all(
            "SELECT * FROM transactions WHERE org_id = ? ORDER BY txn_date, rowid",
            (org_id,),
        )

    def count_transactions(self, org_id: Optional[str] = None) -> int:
        """Count ledger rows, optionally for one organization."""
        if org_id is None:
            rows = self._fetch_all("SELECT COUNT(*) AS n FROM transactions", ())
        else:
            rows = self._fetch_all(
                "SELECT COUNT(*) AS n FROM transactions WHERE org_id = ?", (org_id,)
            )
        return rows[0]["n"]

    def add_account(self, org_id: str, name: str, account_type: str = "bank") -> str:
        """Create an account and return its id."""
        account_id = str(uuid.uuid4())
        self._execute(
            "INSERT INTO accounts (id, org_id, name, type) VALUES (?, ?, ?, ?)",
            (account_id, org_id, name, account_type),
        )
        return account_id

    def add_vendor_rule(
        self,
        org_id: str,
        vendor_pattern: str,
        category: Optional[str],
        direction_filter: Optional[str] = None,
    ) -> None:
        """Add a vendor categorization rule."""
        self._execute(
            "INSERT INTO vendor_rules (id, org_id, vendor_pattern, category, direction_filter) "
            "VALUES (?, ?, ?, ?, ?)",
            (str(uuid.uuid4()), org_id, vendor_pattern, category, direction_filter),
        )

    def add_rule(
        self,
        org_id: str,
        match_pattern: str,
        default_category: Optional[str],
        enabled: bool = True,
    ) -> None:
        """Add a general categorization rule."""
        self._execute(
            "INSERT INTO rules (id, org_id, match_pattern, default_category, enabled) "
            "VALUES (?, ?, ?, ?, ?)",
            (str(uuid.uuid4()), org_id, match_pattern, default_category, int(enabled)),
        )

    def _fetch_all(self, query: str, params: tuple) -> List[Dict[str, Any]]:
        conn = self.get_connection()
        try:
            return [dict(row) for row in conn.execute(query, params).fetchall()]
        except sqlite3.Error as e:
            logger.error(f"Query failed: {e}")
            raise PersistenceError("Ledger query failed", details={"error": str(e)})
        finally:
            conn.close()

    def _execute(self, query: str, params: tuple) -> None:
        conn = self.get_connection()
        try:
            with conn:
                conn.execute(query, params)
        except sqlite3.Error as e:
            logger.error(f"Write failed: {e}")
            raise PersistenceError("Ledger write failed", details={"error": str(e)})
        finally:
            conn.close()


# Global DB instance
_db: Optional[Database] = None


def get_db() -> Database:
    global _db
    if _db is None:
        _db = Database()
        _db.init_db()
    return _db


def reset_db() -> None:
    """Drop the cached instance so the next get_db() re-reads settings."""
    global _db
    _db = None
