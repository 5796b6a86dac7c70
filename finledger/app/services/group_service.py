"""
services/group_service.py — Group and membership business logic.

Authorization rules:
  - Reading a group or adding expenses: the creator, or any member whose
    user id or email matches the caller.
  - Inviting a member: any member.
  - Joining: only the invited email may claim its placeholder.

Layer rules:
  - No Flask imports. Receives the caller Identity and a DocumentStore.
  - Commits are the route's responsibility — the store only flushes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from finledger.app.errors import AppError, ErrorCode
from finledger.app.models.identity import Identity
from finledger.app.models.ledger import Group, Member, normalize_email
from finledger.app.services.concurrency import read_modify_write
from finledger.app.store.interface import DocumentStore

logger = logging.getLogger(__name__)

GROUPS = "groups"


# ── Helpers shared with expense_service and balance_service ───────────────

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def group_not_found(group_id: str) -> AppError:
    return AppError(
        ErrorCode.GROUP_NOT_FOUND,
        f"Group {group_id} does not exist.",
        404,
    )


def load_group(group_id: str, store: DocumentStore) -> Group:
    """Returns the Group or raises GROUP_NOT_FOUND (404)."""
    doc = store.get(GROUPS, group_id)
    if doc is None:
        raise group_not_found(group_id)
    return Group.from_document(doc.id, doc.body, doc.version)


def is_member(group: Group, caller: Identity) -> bool:
    if caller.user_id and caller.user_id == group.created_by:
        return True
    for member in group.members:
        if member.user_id and member.user_id == caller.user_id:
            return True
    return group.find_member(caller.email) is not None


def require_member(group: Group, caller: Identity) -> None:
    """Raises FORBIDDEN (403) if the caller is not part of the group."""
    if not is_member(group, caller):
        raise AppError(
            ErrorCode.FORBIDDEN,
            f"You are not a member of group {group.id}.",
            403,
        )


def require_creator(group: Group, caller: Identity) -> None:
    if caller.user_id != group.created_by:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "Only the group creator may do this.",
            403,
        )


def _placeholder(email: str, display_name: str | None = None) -> Member:
    email = normalize_email(email)
    return Member(
        email=email,
        user_id="",
        display_name=display_name or email.split("@")[0],
        balance=0.0,
    )


# ── Public service functions ───────────────────────────────────────────────

def create_group(caller: Identity, data: dict, store: DocumentStore) -> Group:
    """
    Creates a group with the caller as first member and a zero-balance
    placeholder member for every invited email.

    Args:
        caller: The authenticated creator.
        data:   Validated dict from CreateGroupSchema
                (name, description, member_emails).
    """
    creator = Member(
        email=caller.email_key,
        user_id=caller.user_id,
        display_name=caller.display_name or caller.email_key.split("@")[0],
        balance=0.0,
    )
    members = [creator]
    for email in data.get("member_emails") or []:
        if normalize_email(email) != creator.key:
            members.append(_placeholder(email))

    timestamp = now_iso()
    group = Group(
        id="",
        name=data["name"].strip(),
        description=(data.get("description") or "").strip(),
        created_by=caller.user_id,
        members=tuple(members),
        expenses=(),
        created_at=timestamp,
        updated_at=timestamp,
    )
    group_id = store.create(GROUPS, group.to_document())
    logger.info("Created group %s with %d members", group_id, len(members))
    return replace(group, id=group_id, version=1)


def list_groups(caller: Identity, store: DocumentStore) -> list[Group]:
    """Groups created by the caller, newest first."""
    docs = store.list(
        GROUPS,
        filters={"createdBy": caller.user_id},
        order_by="createdAt",
        descending=True,
    )
    return [Group.from_document(d.id, d.body, d.version) for d in docs]


def get_group(group_id: str, caller: Identity, store: DocumentStore) -> Group:
    group = load_group(group_id, store)
    require_member(group, caller)
    return group


def invite_member(
        group_id: str,
        caller: Identity,
        data: dict,
        store: DocumentStore,
        max_attempts: int,
) -> Group:
    """
    Appends a zero-balance placeholder member for an email address.

    Raises:
      AppError(GROUP_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)       — caller is not a member
      AppError(ALREADY_MEMBER, 409)  — the email is already in the group
    """
    email = normalize_email(data["email"])

    def mutate(doc):
        group = Group.from_document(doc.id, doc.body, doc.version)
        require_member(group, caller)
        if group.find_member(email) is not None:
            raise AppError(
                ErrorCode.ALREADY_MEMBER,
                f"{email} is already a member of group {group_id}.",
                409,
                field="email",
            )
        members = [*group.members, _placeholder(email, data.get("display_name"))]
        return {
            "members": [m.to_document() for m in members],
            "updatedAt": now_iso(),
        }

    doc = read_modify_write(
        store, GROUPS, group_id, mutate, max_attempts,
        not_found=lambda: group_not_found(group_id),
    )
    return Group.from_document(doc.id, doc.body, doc.version)


def join_group(
        group_id: str,
        caller: Identity,
        store: DocumentStore,
        max_attempts: int,
) -> Group:
    """
    Claims the placeholder member whose email matches the caller's, filling
    in the user id and display name. Joining twice is a no-op.

    Raises:
      AppError(NOT_INVITED, 403) — no member has the caller's email
      AppError(FORBIDDEN, 403)   — the email was already claimed by another user
    """

    def mutate(doc):
        group = Group.from_document(doc.id, doc.body, doc.version)
        member = group.find_member(caller.email)
        if member is None:
            raise AppError(
                ErrorCode.NOT_INVITED,
                f"{caller.email} has not been invited to group {group_id}.",
                403,
            )
        if member.user_id == caller.user_id:
            return None
        if member.user_id:
            raise AppError(
                ErrorCode.FORBIDDEN,
                f"{caller.email} has already been claimed in group {group_id}.",
                403,
            )

        claimed = replace(
            member,
            user_id=caller.user_id,
            display_name=caller.display_name or member.display_name,
        )
        members = [claimed if m.key == member.key else m for m in group.members]
        return {
            "members": [m.to_document() for m in members],
            "updatedAt": now_iso(),
        }

    doc = read_modify_write(
        store, GROUPS, group_id, mutate, max_attempts,
        not_found=lambda: group_not_found(group_id),
    )
    return Group.from_document(doc.id, doc.body, doc.version)
