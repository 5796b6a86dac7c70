"""
errors.py — AppError base class, ValidationError, and the error code registry.

Every error returned by the FinLedger API uses a code defined here.
Do not raise strings or generic exceptions from service or ledger code.

  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - 401 means "we do not know who you are"; 403 means "we know, and you may not".
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class ValidationError(AppError):
    """
    Bad ledger input: split mismatch, empty group, non-positive amount or
    payment, overpayment, and friends.

    Raised by the pure ledger functions before any write is attempted, so a
    request that fails with this error never mutates stored state.
    """

    def __init__(self, code: str, message: str, field: str | None = None) -> None:
        super().__init__(code, message, 422, field=field)


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_SPLIT_TYPE         = "INVALID_SPLIT_TYPE"
    INVALID_DEBT_TYPE          = "INVALID_DEBT_TYPE"
    INVALID_TRANSACTION_TYPE   = "INVALID_TRANSACTION_TYPE"
    INVALID_PAYMENT_METHOD     = "INVALID_PAYMENT_METHOD"
    SPLITS_SENT_FOR_EQUAL_MODE = "SPLITS_SENT_FOR_EQUAL_MODE"
    DUPLICATE_MEMBER_EMAIL     = "DUPLICATE_MEMBER_EMAIL"

    # ── Ledger Validation Errors (422) ─────────────────────────────────────
    EMPTY_GROUP                = "EMPTY_GROUP"
    INVALID_AMOUNT             = "INVALID_AMOUNT"
    SPLIT_SUM_MISMATCH         = "SPLIT_SUM_MISMATCH"
    SPLIT_MEMBER_NOT_IN_GROUP  = "SPLIT_MEMBER_NOT_IN_GROUP"
    NEGATIVE_SPLIT             = "NEGATIVE_SPLIT"
    PAYER_NOT_MEMBER           = "PAYER_NOT_MEMBER"
    INVALID_PAYMENT            = "INVALID_PAYMENT"
    PAYMENT_EXCEEDS_REMAINING  = "PAYMENT_EXCEEDS_REMAINING"
    DEBT_ALREADY_SETTLED       = "DEBT_ALREADY_SETTLED"
    AMOUNT_BELOW_PAID          = "AMOUNT_BELOW_PAID"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    ALREADY_MEMBER             = "ALREADY_MEMBER"
    DUPLICATE_PAYMENT          = "DUPLICATE_PAYMENT"
    WRITE_CONFLICT             = "WRITE_CONFLICT"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    GROUP_NOT_FOUND            = "GROUP_NOT_FOUND"
    DEBT_NOT_FOUND             = "DEBT_NOT_FOUND"
    TRANSACTION_NOT_FOUND      = "TRANSACTION_NOT_FOUND"

    # ── Auth Errors ────────────────────────────────────────────────────────
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403
    NOT_INVITED                = "NOT_INVITED"            # 403

    # ── System Errors (500) ────────────────────────────────────────────────
    INTERNAL_ERROR             = "INTERNAL_ERROR"
