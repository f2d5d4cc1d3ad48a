"""
Unit tests for the ledger store.
"""
import sqlite3
from datetime import date
from decimal import Decimal

import pytest

from core.db import Database
from core.exceptions import PersistenceError
from core.schema import LedgerTransaction


def ledger_row(org_id="org-1", description="Rent", amount="1200.00", direction="debit"):
    return LedgerTransaction(
        org_id=org_id,
        account_id=None,
        txn_date=date(2024, 1, 2),
        description=description,
        amount=Decimal(amount),
        direction=direction,
        source_account_name="CSV Import",
        imported_from="bank_csv",
    )


def test_insert_returns_store_row_count(db):
    written = db.insert_transactions("org-1", [ledger_row(), ledger_row(description="Hydro")])
    assert written == 2
    assert db.count_transactions("org-1") == 2


def test_inserted_rows_keep_fields(db):
    db.insert_transactions("org-1", [ledger_row(amount="42.50")])
    (row,) = db.list_transactions("org-1")
    assert row["org_id"] == "org-1"
    assert row["txn_date"] == "2024-01-02"
    assert row["amount"] == 42.5
    assert row["direction"] == "debit"
    assert row["imported_via"] == "csv"
    assert row["imported_from"] == "bank_csv"
    assert row["source_account_name"] == "CSV Import"
    assert row["category"] is None


def test_empty_batch_writes_nothing(db):
    assert db.insert_transactions("org-1", []) == 0
    assert db.count_transactions() == 0


def test_refuses_rows_for_another_organization(db):
    with pytest.raises(PersistenceError):
        db.insert_transactions("org-1", [ledger_row(), ledger_row(org_id="org-2")])
    assert db.count_transactions() == 0


def test_failed_bulk_insert_writes_nothing(db, monkeypatch):
    import core.db as db_module

    broken = db_module.INSERT_TRANSACTION.replace("transactions", "missing_table", 1)
    monkeypatch.setattr(db_module, "INSERT_TRANSACTION", broken)
    with pytest.raises(PersistenceError):
        db.insert_transactions("org-1", [ledger_row()])
    assert db.count_transactions() == 0


def test_duplicate_batches_are_not_deduplicated(db):
    db.insert_transactions("org-1", [ledger_row()])
    db.insert_transactions("org-1", [ledger_row()])
    assert db.count_transactions("org-1") == 2


def test_account_lookup_is_scoped_to_organization(db):
    account_id = db.add_account("org-1", "Checking")
    assert db.get_account_name("org-1", account_id) == "Checking"
    assert db.get_account_name("org-2", account_id) is None
    assert db.get_account_name("org-1", "nope") is None


def test_rules_are_scoped_and_filtered(db):
    db.add_vendor_rule("org-1", "starbucks", "Meals", "debit")
    db.add_vendor_rule("org-2", "tim hortons", "Meals")
    db.add_rule("org-1", "hydro", "Utilities")
    db.add_rule("org-1", "old", "Archived", enabled=False)

    assert db.get_vendor_rules("org-1") == [
        {"vendor_pattern": "starbucks", "category": "Meals", "direction_filter": "debit"}
    ]
    assert db.get_rules("org-1") == [{"match_pattern": "hydro", "default_category": "Utilities"}]


def test_query_errors_become_persistence_errors(tmp_path):
    uninitialized = Database(str(tmp_path / "empty.db"))
    with pytest.raises(PersistenceError):
        uninitialized.get_account_name("org-1", "acct")


def test_init_db_is_repeatable(db):
    db.init_db()
    conn = sqlite3.connect(db.db_path)
    tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert {"accounts", "transactions", "vendor_rules", "rules"} <= tables
