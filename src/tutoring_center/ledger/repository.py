from __future__ import annotations

from typing import Optional

from ..database.rows import decode_rows, decode_transaction, encode_transaction
from ..database.store import EntityStore
from .model import FinancialTransaction

TABLE = "financial_transactions"


class TransactionRepository:
    """Append-only: there is no update, history is corrected by new entries."""

    def __init__(self, store: EntityStore):
        self._store = store

    def list_all(self) -> list[FinancialTransaction]:
        txs = decode_rows(TABLE, self._store.select(TABLE), decode_transaction)
        return sorted(txs, key=lambda t: t.created_at, reverse=True)

    def list_for_student(self, student_id: str) -> list[FinancialTransaction]:
        rows = self._store.select(TABLE, {"student_id": student_id})
        return sorted(decode_rows(TABLE, rows, decode_transaction), key=lambda t: t.created_at)

    def get_by_id(self, transaction_id: str) -> Optional[FinancialTransaction]:
        rows = decode_rows(TABLE, self._store.select(TABLE, {"id": transaction_id}), decode_transaction)
        return rows[0] if rows else None

    def create(self, tx: FinancialTransaction) -> FinancialTransaction:
        row = encode_transaction(tx)
        if not tx.transaction_id:
            row.pop("id")
        return decode_transaction(self._store.insert(TABLE, row))

    def delete_for_student(self, student_id: str) -> int:
        return self._store.delete(TABLE, {"student_id": student_id})

    def delete_all(self) -> int:
        return self._store.delete(TABLE)
