"""
ledger/debt_settlement.py — partial-payment accumulation for an individual debt.

paid_amount only ever grows, and is_settled is derived from it:

    new_paid   = paid_amount + payment
    is_settled = new_paid >= amount

A payment must be positive and may not exceed what is still owed.
"""

from __future__ import annotations

from dataclasses import dataclass

from finledger.app.errors import ErrorCode, ValidationError

# Float slack so that paying "exactly the remainder" is never rejected.
PAYMENT_EPSILON = 1e-9


@dataclass(frozen=True)
class PaymentOutcome:
    paid_amount: float
    is_settled: bool
    remaining: float


def apply_payment(amount: float, paid_amount: float, payment: float) -> PaymentOutcome:
    """
    Raises:
        ValidationError(INVALID_PAYMENT)           — payment <= 0.
        ValidationError(PAYMENT_EXCEEDS_REMAINING) — payment > amount - paid_amount.
    """
    if payment <= 0:
        raise ValidationError(
            ErrorCode.INVALID_PAYMENT,
            "Payment amount must be greater than zero.",
            field="amount",
        )

    remaining = amount - paid_amount
    if payment - remaining > PAYMENT_EPSILON:
        raise ValidationError(
            ErrorCode.PAYMENT_EXCEEDS_REMAINING,
            f"Payment of {payment:.2f} exceeds the remaining {remaining:.2f}.",
            field="amount",
        )

    new_paid = paid_amount + payment
    return PaymentOutcome(
        paid_amount=new_paid,
        is_settled=new_paid >= amount - PAYMENT_EPSILON,
        remaining=max(amount - new_paid, 0.0),
    )
