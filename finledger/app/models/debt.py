"""
models/debt.py — individual (non-group) Debt record.

paid_amount accumulates partial payments; is_settled is derived from it on
every payment but may also be set explicitly. `payments` is the log of applied
payments, keyed by the caller's idempotency token when one was supplied.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class DebtType(str, enum.Enum):
    I_OWE       = "i_owe"
    THEY_OWE_ME = "they_owe_me"


@dataclass(frozen=True)
class Payment:
    amount: float
    recorded_at: str
    idempotency_key: str | None = None

    def to_document(self) -> dict:
        return {
            "amount": self.amount,
            "recordedAt": self.recorded_at,
            "idempotencyKey": self.idempotency_key,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Payment":
        return cls(
            amount=float(doc.get("amount", 0.0)),
            recorded_at=doc.get("recordedAt", ""),
            idempotency_key=doc.get("idempotencyKey"),
        )


@dataclass(frozen=True)
class Debt:
    id: str
    user_id: str
    creditor_name: str
    amount: float
    type: DebtType
    description: str = ""
    paid_amount: float = 0.0
    is_settled: bool = False
    due_date: str | None = None
    creditor_user_id: str | None = None
    payments: tuple[Payment, ...] = field(default_factory=tuple)
    created_at: str = ""
    updated_at: str = ""
    version: int = 0

    @property
    def remaining(self) -> float:
        return max(self.amount - self.paid_amount, 0.0)

    def has_payment_key(self, key: str) -> bool:
        return any(p.idempotency_key == key for p in self.payments)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            **self.to_document(),
            "remaining": self.remaining,
            "version": self.version,
        }

    def to_document(self) -> dict:
        doc = {
            "userId": self.user_id,
            "creditorName": self.creditor_name,
            "amount": self.amount,
            "paidAmount": self.paid_amount,
            "description": self.description,
            "type": self.type.value,
            "isSettled": self.is_settled,
            "payments": [p.to_document() for p in self.payments],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.due_date:
            doc["dueDate"] = self.due_date
        if self.creditor_user_id:
            doc["creditorUserId"] = self.creditor_user_id
        return doc

    @classmethod
    def from_document(cls, doc_id: str, body: dict, version: int = 0) -> "Debt":
        return cls(
            id=doc_id,
            user_id=body.get("userId", ""),
            creditor_name=body.get("creditorName", ""),
            amount=float(body["amount"]),
            type=DebtType(body.get("type", DebtType.I_OWE.value)),
            description=body.get("description", ""),
            # Documents written before partial payments existed omit paidAmount.
            paid_amount=float(body.get("paidAmount") or 0.0),
            is_settled=bool(body.get("isSettled", False)),
            due_date=body.get("dueDate") or None,
            creditor_user_id=body.get("creditorUserId") or None,
            payments=tuple(Payment.from_document(p) for p in body.get("payments", [])),
            created_at=body.get("createdAt", ""),
            updated_at=body.get("updatedAt", ""),
            version=version,
        )
