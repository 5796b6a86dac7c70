"""
schemas/group_schema.py — Marshmallow schemas for group and membership endpoints.

Validation responsibility:
  - This file: field types, lengths, email syntax, non-empty after trim,
    duplicate invite emails (DUPLICATE_MEMBER_EMAIL, 400).
  - services/group_service.py:
      - FORBIDDEN / NOT_INVITED (403) — need the stored member list
      - ALREADY_MEMBER (409)          — needs the stored member list
      - GROUP_NOT_FOUND (404)

Wire names are camelCase (data_key); loaded dicts use snake_case keys.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates

from finledger.app.errors import ErrorCode


def _validate_non_empty_after_trim(value: str) -> None:
    # Length(min=1) alone accepts "   ".
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateGroupSchema(Schema):
    """
    POST /groups

    memberEmails are invited as placeholder members. The creator's own email
    may appear in the list; the service skips it.
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Group name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    description = fields.Str(
        load_default="",
        validate=validate.Length(max=500),
    )

    member_emails = fields.List(
        fields.Email(),
        data_key="memberEmails",
        load_default=list,
    )

    @validates("member_emails")
    def validate_unique_emails(self, value: list, **kwargs) -> None:
        lowered = [e.strip().lower() for e in value]
        if len(lowered) != len(set(lowered)):
            raise ValidationError(ErrorCode.DUPLICATE_MEMBER_EMAIL)


class InviteMemberSchema(Schema):
    """POST /groups/:id/members"""

    email = fields.Email(required=True)

    display_name = fields.Str(
        data_key="displayName",
        load_default=None,
        validate=validate.Length(max=100),
    )
