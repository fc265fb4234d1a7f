"""Invitation Store — CRUD and filtered queries over the invitations table.

Invariants:
    - where_clauses() renders InvitationQuery with the same semantics as
      core/invitation_query.matches(); order_clauses() mirrors sort_invitations()
    - create() validates required fields before touching the DB and commits per call
    - A unique-index violation on create is rolled back and returned as Duplicate;
      on update it is rolled back and raised as DuplicateInvitationError
    - String columns sort by code point (COLLATE "C" on PostgreSQL) to match sort_invitations()
    - search_terms folds case with SQL lower(); on SQLite that function is replaced at
      connect time by str.lower (infrastructure/database.py) so both modes fold Unicode alike
    - update()/delete() are single UPDATE/DELETE ... WHERE statements built from the
      same predicate as query(); pagination and ordering are ignored for writes
    - Every mutation: resolve match set -> BEFORE_MUTATE -> execute -> commit -> AFTER_MUTATE
    - create(): commit -> AFTER_SAVE with the stored record
    - Reads use populate_existing so committed bulk writes are never shadowed
      by stale identity-map objects

Design Decisions:
    - Store speaks InvitationRecord, never ORM rows: callers and the cache get plain values
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import String, delete, false, func, or_, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from invitations.core.domain_types import (
    AcceptedFilter, InvitationType, SentFilter, SortOrder,
)
from invitations.core.enforce_invitations import (
    UPDATABLE_FIELDS, check_new_record_fields,
)
from invitations.core.errors import (
    DuplicateInvitationError, ErrorContext, OperationResult,
)
from invitations.core.invitation_hooks import InvitationHooks, NotificationPoint
from invitations.core.invitation_query import InvitationQuery, MULTI_VALUE_FIELDS
from invitations.core.invitation_record import InvitationRecord, NewInvitation
from invitations.models.invitation import Invitation
from invitations.services.hook_dispatch import notify

logger = logging.getLogger(__name__)

# SQLite's default BINARY collation already compares by code point
CODE_POINT_COLLATIONS = {"postgresql": "C"}


def where_clauses(query: InvitationQuery) -> list[ColumnElement[bool]]:
    """Render the filter part of a query as SQL predicates."""
    clauses: list[ColumnElement[bool]] = []
    for name in MULTI_VALUE_FIELDS:
        values = getattr(query, name)
        if values is None:
            continue
        column = getattr(Invitation, name)
        clauses.append(column == values[0] if len(values) == 1 else column.in_(values))

    if query.invite_sent == SentFilter.SENT:
        clauses.append(Invitation.invite_sent == true())
    elif query.invite_sent == SentFilter.DRAFT:
        clauses.append(Invitation.invite_sent == false())

    if query.accepted == AcceptedFilter.ACCEPTED:
        clauses.append(Invitation.accepted == true())
    elif query.accepted == AcceptedFilter.PENDING:
        clauses.append(Invitation.accepted == false())

    if query.type is not None:
        clauses.append(Invitation.type == query.type.value)

    if query.search_terms:
        needle = query.search_terms.lower()
        clauses.append(or_(
            func.lower(Invitation.component_name).contains(needle, autoescape=True),
            func.lower(Invitation.component_action).contains(needle, autoescape=True),
        ))
    return clauses


def order_clauses(
    query: InvitationQuery, dialect_name: str = "",
) -> list[ColumnElement[Any]]:
    """ORDER BY for a query. String columns sort by code point on every backend."""
    column = getattr(Invitation, query.order_by)
    collation = CODE_POINT_COLLATIONS.get(dialect_name)
    if collation and isinstance(column.type, String):
        column = column.collate(collation)
    if query.sort_order == SortOrder.DESC:
        return [column.desc(), Invitation.id.desc()]
    return [column.asc(), Invitation.id.asc()]


def to_record(row: Invitation) -> InvitationRecord:
    modified = row.date_modified
    if modified.tzinfo is None:
        modified = modified.replace(tzinfo=timezone.utc)
    return InvitationRecord(
        id=row.id,
        user_id=row.user_id,
        inviter_id=row.inviter_id,
        invitee_email=row.invitee_email,
        component_name=row.component_name,
        component_action=row.component_action,
        item_id=row.item_id,
        secondary_item_id=row.secondary_item_id,
        type=InvitationType(row.type),
        content=row.content,
        date_modified=modified,
        invite_sent=row.invite_sent,
        accepted=row.accepted,
    )


def _clean_update_values(set_fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(set_fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update fields: {sorted(unknown)}")
    values = dict(set_fields)
    if isinstance(values.get("type"), InvitationType):
        values["type"] = values["type"].value
    values["date_modified"] = datetime.now(timezone.utc)
    return values


class SqlInvitationStore:
    """InvitationStore implementation over an AsyncSession."""

    def __init__(self, db: AsyncSession, hooks: InvitationHooks):
        self.db = db
        self.hooks = hooks

    async def create(self, fields: NewInvitation) -> OperationResult:
        error = check_new_record_fields(fields)
        if error:
            return OperationResult.failure(error)

        row = Invitation(
            user_id=fields.user_id,
            inviter_id=fields.inviter_id,
            invitee_email=fields.invitee_email,
            component_name=fields.component_name,
            component_action=fields.component_action,
            item_id=fields.item_id,
            secondary_item_id=fields.secondary_item_id,
            type=fields.type.value,
            content=fields.content,
            date_modified=fields.date_modified,
            invite_sent=fields.invite_sent,
            accepted=fields.accepted,
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "Duplicate rejected by unique index",
                extra={"user_id": fields.user_id, "component_name": fields.component_name},
            )
            return OperationResult.failure(DuplicateInvitationError(
                fields.type.value,
                ErrorContext(user_id=fields.user_id or None, component_name=fields.component_name),
            ))

        record = to_record(row)
        logger.debug(
            f"Stored {record.type.value}",
            extra={"invitation_id": record.id, "user_id": record.user_id},
        )
        await notify(self.hooks, NotificationPoint.AFTER_SAVE, record)
        return OperationResult.success(record.id)

    async def get_by_id(self, invitation_id: int) -> InvitationRecord | None:
        row = await self.db.get(Invitation, invitation_id, populate_existing=True)
        return to_record(row) if row else None

    async def query(self, query: InvitationQuery) -> list[InvitationRecord]:
        stmt = (
            select(Invitation)
            .where(*where_clauses(query))
            .order_by(*order_clauses(query, self.db.get_bind().dialect.name))
            .execution_options(populate_existing=True)
        )
        if query.is_paginated:
            page = query.page or 1
            stmt = stmt.limit(query.per_page).offset((page - 1) * query.per_page)
        result = await self.db.execute(stmt)
        return [to_record(row) for row in result.scalars().all()]

    async def update(self, set_fields: dict[str, Any], where: InvitationQuery) -> int:
        values = _clean_update_values(set_fields)
        where = where.without_paging()
        matched = await self.query(where)
        await notify(self.hooks, NotificationPoint.BEFORE_MUTATE, matched)

        stmt = (
            update(Invitation)
            .where(*where_clauses(where))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                "Update rejected by unique index",
                extra={"affected": len(matched)},
            )
            record_type = values.get("type") or (matched[0].type.value if matched else "invitation")
            raise DuplicateInvitationError(
                record_type,
                ErrorContext(invitation_id=matched[0].id if len(matched) == 1 else None),
            )

        logger.debug("Updated invitations", extra={"affected": result.rowcount})
        await notify(self.hooks, NotificationPoint.AFTER_MUTATE, matched, values)
        return result.rowcount

    async def delete(self, where: InvitationQuery) -> int:
        where = where.without_paging()
        matched = await self.query(where)
        await notify(self.hooks, NotificationPoint.BEFORE_MUTATE, matched)

        stmt = (
            delete(Invitation)
            .where(*where_clauses(where))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        logger.debug("Deleted invitations", extra={"affected": result.rowcount})
        await notify(self.hooks, NotificationPoint.AFTER_MUTATE, matched, {})
        return result.rowcount

    async def delete_by_id(self, invitation_id: int) -> int:
        return await self.delete(
            InvitationQuery(id=invitation_id, accepted=AcceptedFilter.ALL),
        )
