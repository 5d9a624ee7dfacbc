"""Repository functions for member records."""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import select, true
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from .errors import NotFound
from .models import Member, MembershipTier

MEMBER_UPDATABLE_FIELDS = frozenset(
    {
        "email",
        "first_name",
        "last_name",
        "profile_image_url",
        "phone",
        "address",
        "zip",
        "city",
        "soundcloud_url",
        "membership_tier",
        "is_dj_active",
        "is_admin",
    }
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def upsert_insert(session: Session, model: type):
    """Return a dialect-specific INSERT supporting ``on_conflict_do_update``."""

    if session.get_bind().dialect.name == "postgresql":
        return postgresql.insert(model)
    return sqlite.insert(model)


@dataclass(frozen=True)
class Identity:
    """Claims reported by the identity provider for an authenticated request."""

    id: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None

    def supplied_fields(self) -> dict[str, Any]:
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if field.name != "id" and getattr(self, field.name) is not None
        }


def get_member(session: Session, member_id: str) -> Member | None:
    return session.get(Member, member_id)


def upsert_member(
    session: Session, identity: Identity, **extra: Any
) -> Member:
    """Insert a member for an unseen identity or refresh the supplied fields.

    Extra keyword fields (tier, flags) are written alongside the identity
    claims. ``created_at`` is only set on insert.
    """

    now = _utcnow()
    supplied = {**identity.supplied_fields(), **_filter_fields(extra)}
    base = upsert_insert(session, Member)
    stmt = base.values(id=identity.id, created_at=now, updated_at=now, **supplied)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Member.id],
        set_={**supplied, "updated_at": now},
    )
    session.execute(stmt)
    return session.get(Member, identity.id, populate_existing=True)  # type: ignore[return-value]


def update_member(
    session: Session, member_id: str, updates: Mapping[str, Any]
) -> Member:
    """Apply a partial field set to an existing member."""

    record = session.get(Member, member_id)
    if record is None:
        raise NotFound(f"Member {member_id} not found")
    for name, value in _filter_fields(updates).items():
        setattr(record, name, value)
    record.updated_at = _utcnow()
    session.add(record)
    session.flush()
    return record


def assign_membership_tier(session: Session, member_id: str, tier_name: str) -> Member:
    """Move a member to another tier; the tier must exist."""

    tier_exists = session.scalar(
        select(MembershipTier.id).where(MembershipTier.name == tier_name)
    )
    if tier_exists is None:
        raise NotFound(f"Membership tier {tier_name} not found")
    return update_member(session, member_id, {"membership_tier": tier_name})


def list_members(session: Session) -> list[Member]:
    stmt = select(Member).order_by(Member.created_at.asc(), Member.id.asc())
    return list(session.scalars(stmt).all())


def list_dj_members(session: Session) -> list[Member]:
    """Return members who opted into the radio DJ rotation."""

    stmt = (
        select(Member)
        .where(Member.is_dj_active == true())
        .order_by(Member.created_at.asc(), Member.id.asc())
    )
    return list(session.scalars(stmt).all())


def _filter_fields(values: Mapping[str, Any]) -> dict[str, Any]:
    return {name: value for name, value in values.items() if name in MEMBER_UPDATABLE_FIELDS}


__all__ = [
    "Identity",
    "assign_membership_tier",
    "get_member",
    "list_dj_members",
    "list_members",
    "update_member",
    "upsert_insert",
    "upsert_member",
]
