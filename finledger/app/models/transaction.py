"""
models/transaction.py — a single income or expense entry of one user.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TransactionType(str, enum.Enum):
    INCOME  = "income"
    EXPENSE = "expense"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    UPI  = "upi"
    CARD = "card"
    BANK = "bank"


@dataclass(frozen=True)
class Transaction:
    id: str
    user_id: str
    amount: float
    type: TransactionType
    method: PaymentMethod
    category: str
    date: str
    notes: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_document(self) -> dict:
        doc = {
            "userId": self.user_id,
            "amount": self.amount,
            "type": self.type.value,
            "method": self.method.value,
            "category": self.category,
            "date": self.date,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.notes:
            doc["notes"] = self.notes
        return doc

    def to_dict(self) -> dict:
        return {"id": self.id, **self.to_document()}

    @classmethod
    def from_document(cls, doc_id: str, body: dict) -> "Transaction":
        return cls(
            id=doc_id,
            user_id=body.get("userId", ""),
            amount=float(body["amount"]),
            type=TransactionType(body["type"]),
            method=PaymentMethod(body.get("method", PaymentMethod.CASH.value)),
            category=body.get("category", ""),
            date=body.get("date", ""),
            notes=body.get("notes") or None,
            created_at=body.get("createdAt", ""),
            updated_at=body.get("updatedAt", ""),
        )
