"""
schemas/transaction_schema.py — Marshmallow schemas for transaction endpoints.
"""

from __future__ import annotations

from datetime import date

from marshmallow import Schema, fields, validate

from finledger.app.errors import ErrorCode
from finledger.app.models.transaction import PaymentMethod, TransactionType

_type = dict(by_value=True, error_messages={"unknown": ErrorCode.INVALID_TRANSACTION_TYPE})
_method = dict(by_value=True, error_messages={"unknown": ErrorCode.INVALID_PAYMENT_METHOD})


class CreateTransactionSchema(Schema):
    """POST /transactions"""

    amount = fields.Float(required=True)
    type = fields.Enum(TransactionType, required=True, **_type)
    method = fields.Enum(PaymentMethod, load_default=PaymentMethod.CASH, **_method)
    category = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    date = fields.Date(load_default=date.today)
    notes = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=500))


class PatchTransactionSchema(Schema):
    """PATCH /transactions/:id — partial update."""

    amount = fields.Float()
    type = fields.Enum(TransactionType, **_type)
    method = fields.Enum(PaymentMethod, **_method)
    category = fields.Str(validate=validate.Length(min=1, max=50))
    date = fields.Date()
    notes = fields.Str(allow_none=True, validate=validate.Length(max=500))


class TransactionQuerySchema(Schema):
    """GET /transactions query string. Every filter is optional."""

    search = fields.Str(load_default=None, validate=validate.Length(max=100))
    type = fields.Enum(TransactionType, load_default=None, **_type)
    method = fields.Enum(PaymentMethod, load_default=None, **_method)
    category = fields.Str(load_default=None, validate=validate.Length(min=1, max=50))
    date_from = fields.Date(data_key="dateFrom", load_default=None)
    date_to = fields.Date(data_key="dateTo", load_default=None)
