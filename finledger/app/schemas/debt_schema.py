"""
schemas/debt_schema.py — Marshmallow schemas for debt endpoints.

Amounts are only type-checked here. Non-positive principals (INVALID_AMOUNT)
and payments (INVALID_PAYMENT) are ledger rules, reported as 422 by the
service and the settlement accumulator.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

from finledger.app.errors import ErrorCode
from finledger.app.models.debt import DebtType


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


_creditor_name = dict(
    validate=[
        validate.Length(min=1, max=100, error="Name must be between 1 and 100 characters."),
        _validate_non_empty_after_trim,
    ],
    data_key="creditorName",
)

_debt_type = dict(
    by_value=True,
    error_messages={"unknown": ErrorCode.INVALID_DEBT_TYPE},
)


class CreateDebtSchema(Schema):
    """POST /debts"""

    creditor_name = fields.Str(required=True, **_creditor_name)
    amount = fields.Float(required=True)
    type = fields.Enum(DebtType, required=True, **_debt_type)
    description = fields.Str(load_default="", validate=validate.Length(max=255))
    due_date = fields.Date(data_key="dueDate", load_default=None, allow_none=True)
    creditor_user_id = fields.Str(data_key="creditorUserId", load_default=None, allow_none=True)


class PatchDebtSchema(Schema):
    """
    PATCH /debts/:id — every field optional; only supplied fields change.

    paidAmount and isSettled are not editable here: payments go through
    POST /debts/:id/payments and the flag through POST /debts/:id/settle.
    """

    creditor_name = fields.Str(**_creditor_name)
    amount = fields.Float()
    type = fields.Enum(DebtType, **_debt_type)
    description = fields.Str(validate=validate.Length(max=255))
    due_date = fields.Date(data_key="dueDate", allow_none=True)
    creditor_user_id = fields.Str(data_key="creditorUserId", allow_none=True)


class RecordPaymentSchema(Schema):
    """
    POST /debts/:id/payments

    idempotencyKey is optional. When given, replaying the same key is refused
    with DUPLICATE_PAYMENT (409) and the debt is left unchanged.
    """

    amount = fields.Float(required=True)
    idempotency_key = fields.Str(
        data_key="idempotencyKey",
        load_default=None,
        validate=validate.Length(min=1, max=128),
    )


class SetSettledSchema(Schema):
    """POST /debts/:id/settle"""

    is_settled = fields.Bool(data_key="isSettled", load_default=True)
