"""
schemas/expense_schema.py — Marshmallow schema for recording a group expense.

Validation responsibility:
  - This file (request shape, 400):
      - field types, description non-empty after trim
      - INVALID_SPLIT_TYPE         — splitType not in {equal, custom}
      - SPLITS_SENT_FOR_EQUAL_MODE — splits present with splitType='equal'
      - splits required with splitType='custom'
      - DUPLICATE_MEMBER_EMAIL     — same email twice in splits, ignoring case
  - ledger/split_calculator.py (422, needs the member list):
      - EMPTY_GROUP, INVALID_AMOUNT, SPLIT_MEMBER_NOT_IN_GROUP,
        NEGATIVE_SPLIT, SPLIT_SUM_MISMATCH
  - services/expense_service.py:
      - PAYER_NOT_MEMBER (422)

The amount is deliberately not range-checked here: a non-positive amount is a
ledger rule and is reported as INVALID_AMOUNT (422) by the calculator.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from finledger.app.errors import ErrorCode
from finledger.app.models.ledger import SplitType


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateExpenseSchema(Schema):
    """
    POST /groups/:id/expenses

    Example (custom):
        {"description": "Dinner", "amount": 300, "paidBy": "b@x.io",
         "splitType": "custom",
         "splits": {"a@x.io": 50, "b@x.io": 125, "c@x.io": 125}}
    """

    description = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=255,
                error="Description must be between 1 and 255 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    amount = fields.Float(required=True)

    # Email of the paying member.
    paid_by = fields.Email(required=True, data_key="paidBy")

    split_type = fields.Enum(
        SplitType,
        by_value=True,
        data_key="splitType",
        load_default=SplitType.EQUAL,
        error_messages={"unknown": ErrorCode.INVALID_SPLIT_TYPE},
    )

    category = fields.Str(
        load_default="Other",
        validate=validate.Length(min=1, max=50),
    )

    date = fields.Date(load_default=None)

    # {member email: owed amount}. Members left out owe nothing.
    splits = fields.Dict(
        keys=fields.Email(),
        values=fields.Float(),
        load_default=None,
    )

    @validates_schema
    def validate_splits_coherence(self, data: dict, **kwargs) -> None:
        split_type = data.get("split_type", SplitType.EQUAL)
        splits = data.get("splits")

        if split_type == SplitType.EQUAL:
            if splits is not None:
                raise ValidationError({"splits": [ErrorCode.SPLITS_SENT_FOR_EQUAL_MODE]})
            return

        if splits is None:
            raise ValidationError(
                {"splits": ["splits is required when splitType is 'custom'."]}
            )

        keys = [email.strip().lower() for email in splits]
        if len(keys) != len(set(keys)):
            raise ValidationError({"splits": [ErrorCode.DUPLICATE_MEMBER_EMAIL]})
