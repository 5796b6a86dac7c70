"""
models/ledger.py — Group aggregate: Group, Member, Expense, Split.

These are plain immutable value objects. The Group document (with its embedded
members and expenses) is the unit that is read, folded, and written back.

Key design points:
  - Members are keyed by email (lower-cased). A member invited by email has an
    empty user_id until the invited user joins, so user_id cannot be the key.
  - Member.balance is a cached running total, positive = is owed.
  - Expenses are append-only; nothing here mutates in place.
  - to_document()/from_document() use the stored camelCase field names.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class SplitType(str, enum.Enum):
    EQUAL  = "equal"
    CUSTOM = "custom"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class Member:
    email: str
    user_id: str = ""
    display_name: str = ""
    balance: float = 0.0

    @property
    def key(self) -> str:
        return normalize_email(self.email)

    @property
    def is_placeholder(self) -> bool:
        """True for a member invited by email who has not joined yet."""
        return not self.user_id

    def to_document(self) -> dict:
        return {
            "userId": self.user_id,
            "email": self.email,
            "displayName": self.display_name,
            "balance": self.balance,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Member":
        return cls(
            email=doc.get("email", ""),
            user_id=doc.get("userId") or "",
            display_name=doc.get("displayName", ""),
            balance=float(doc.get("balance", 0.0)),
        )


@dataclass(frozen=True)
class Split:
    email: str
    amount: float
    user_id: str = ""

    def to_document(self) -> dict:
        return {"userId": self.user_id, "email": self.email, "amount": self.amount}

    @classmethod
    def from_document(cls, doc: dict) -> "Split":
        return cls(
            email=doc.get("email", ""),
            amount=float(doc.get("amount", 0.0)),
            user_id=doc.get("userId") or "",
        )


@dataclass(frozen=True)
class Expense:
    id: str
    description: str
    amount: float
    paid_by: str
    split_type: SplitType
    splits: tuple[Split, ...]
    category: str = "Other"
    date: str = ""
    created_at: str = ""

    def to_document(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "paidBy": self.paid_by,
            "splitType": self.split_type.value,
            "splits": [s.to_document() for s in self.splits],
            "category": self.category,
            "date": self.date,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: dict) -> "Expense":
        return cls(
            id=doc["id"],
            description=doc.get("description", ""),
            amount=float(doc["amount"]),
            paid_by=doc["paidBy"],
            split_type=SplitType(doc.get("splitType", SplitType.EQUAL.value)),
            splits=tuple(Split.from_document(s) for s in doc.get("splits", [])),
            category=doc.get("category", "Other"),
            date=doc.get("date", ""),
            created_at=doc.get("createdAt", ""),
        )


@dataclass(frozen=True)
class Group:
    id: str
    name: str
    created_by: str
    members: tuple[Member, ...] = field(default_factory=tuple)
    expenses: tuple[Expense, ...] = field(default_factory=tuple)
    description: str = ""
    created_at: str = ""
    updated_at: str = ""
    # Store revision this snapshot was read at; never written into the body.
    version: int = 0

    def find_member(self, email: str) -> Member | None:
        key = normalize_email(email)
        return next((m for m in self.members if m.key == key), None)

    def balances(self) -> dict[str, float]:
        return {m.key: m.balance for m in self.members}

    def to_dict(self) -> dict:
        """API representation: the stored body plus id and version."""
        return {"id": self.id, **self.to_document(), "version": self.version}

    def to_document(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "createdBy": self.created_by,
            "members": [m.to_document() for m in self.members],
            "expenses": [e.to_document() for e in self.expenses],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_document(cls, doc_id: str, body: dict, version: int = 0) -> "Group":
        return cls(
            id=doc_id,
            name=body.get("name", ""),
            created_by=body.get("createdBy", ""),
            members=tuple(Member.from_document(m) for m in body.get("members", [])),
            expenses=tuple(Expense.from_document(e) for e in body.get("expenses", [])),
            description=body.get("description") or "",
            created_at=body.get("createdAt", ""),
            updated_at=body.get("updatedAt", ""),
            version=version,
        )
