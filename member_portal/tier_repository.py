"""Repository helpers for membership tiers and their benefits."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from sqlalchemy import delete, func, select, true
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import Conflict, NotFound, ValidationError
from .models import BENEFIT_MAX_LENGTH, MembershipBenefit, MembershipTier

logger = logging.getLogger(__name__)

TIER_UPDATABLE_FIELDS = frozenset({"amount", "currency", "interval", "is_active"})

BENEFITS_NOT_A_LIST = "Benefits must be an array"
BENEFIT_INVALID = (
    f"Each benefit must be a non-empty string with max {BENEFIT_MAX_LENGTH} characters"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_amount(amount: Any) -> None:
    if amount is not None and amount < 0:
        raise ValidationError("Tier amount must not be negative")


def get_tiers(session: Session) -> list[MembershipTier]:
    """Return active tiers in insertion order."""

    stmt = (
        select(MembershipTier)
        .where(MembershipTier.is_active == true())
        .order_by(MembershipTier.id.asc())
    )
    return list(session.scalars(stmt).all())


def get_tier(session: Session, name: str) -> MembershipTier | None:
    return session.scalar(select(MembershipTier).where(MembershipTier.name == name))


def create_tier(
    session: Session,
    *,
    name: str,
    amount: int = 0,
    currency: str = "CHF",
    interval: str = "Jahr",
    is_active: bool = True,
) -> MembershipTier:
    """Insert a tier; duplicate names raise ``Conflict``."""

    _check_amount(amount)
    if get_tier(session, name) is not None:
        raise Conflict(f"Membership tier {name} already exists")

    now = _utcnow()
    record = MembershipTier(
        name=name,
        amount=amount,
        currency=currency,
        interval=interval,
        is_active=is_active,
        created_at=now,
        updated_at=now,
    )
    session.add(record)
    try:
        session.flush()
    except IntegrityError as exc:
        raise Conflict(f"Membership tier {name} already exists") from exc
    return record


def update_tier(
    session: Session, name: str, updates: Mapping[str, Any]
) -> MembershipTier:
    """Update pricing fields or the active flag of a tier by name."""

    record = get_tier(session, name)
    if record is None:
        raise NotFound(f"Membership tier {name} not found")
    changes = {key: value for key, value in updates.items() if key in TIER_UPDATABLE_FIELDS}
    _check_amount(changes.get("amount"))
    for key, value in changes.items():
        setattr(record, key, value)
    record.updated_at = _utcnow()
    session.add(record)
    session.flush()
    return record


def get_benefits(session: Session) -> list[MembershipBenefit]:
    """Return every benefit grouped by tier order, then by position."""

    stmt = (
        select(MembershipBenefit)
        .outerjoin(MembershipTier, MembershipTier.name == MembershipBenefit.tier_name)
        .order_by(
            MembershipTier.id.asc(),
            MembershipBenefit.position.asc(),
            MembershipBenefit.id.asc(),
        )
    )
    return list(session.scalars(stmt).all())


def get_benefits_for_tier(session: Session, name: str) -> list[MembershipBenefit]:
    stmt = (
        select(MembershipBenefit)
        .where(MembershipBenefit.tier_name == name)
        .order_by(MembershipBenefit.position.asc(), MembershipBenefit.id.asc())
    )
    return list(session.scalars(stmt).all())


def validate_benefits(benefits: Any) -> list[str]:
    """Check a benefit payload before anything is written."""

    if not isinstance(benefits, list):
        raise ValidationError(BENEFITS_NOT_A_LIST)
    for benefit in benefits:
        if not isinstance(benefit, str) or not benefit or len(benefit) > BENEFIT_MAX_LENGTH:
            raise ValidationError(BENEFIT_INVALID)
    return list(benefits)


def replace_benefits_for_tier(
    session: Session, name: str, benefits: Sequence[str]
) -> list[MembershipBenefit]:
    """Swap the whole benefit set of a tier for ``benefits``, keeping input order.

    Validation runs before the delete, so a rejected payload leaves the
    current set untouched. Delete and insert share the caller's transaction.
    """

    validated = validate_benefits(benefits)
    if get_tier(session, name) is None:
        raise NotFound(f"Membership tier {name} not found")

    session.execute(delete(MembershipBenefit).where(MembershipBenefit.tier_name == name))
    now = _utcnow()
    records = [
        MembershipBenefit(tier_name=name, benefit=text, position=index, created_at=now)
        for index, text in enumerate(validated)
    ]
    session.add_all(records)
    session.flush()
    logger.info("Replaced benefits for tier %s with %s entries", name, len(records))
    return records


def create_benefit(session: Session, tier_name: str, benefit: str) -> MembershipBenefit:
    """Append a single benefit after the tier's current last entry."""

    validate_benefits([benefit])
    if get_tier(session, tier_name) is None:
        raise NotFound(f"Membership tier {tier_name} not found")

    last_position = session.scalar(
        select(func.max(MembershipBenefit.position)).where(
            MembershipBenefit.tier_name == tier_name
        )
    )
    record = MembershipBenefit(
        tier_name=tier_name,
        benefit=benefit,
        position=0 if last_position is None else last_position + 1,
    )
    session.add(record)
    session.flush()
    return record


__all__ = [
    "BENEFITS_NOT_A_LIST",
    "BENEFIT_INVALID",
    "create_benefit",
    "create_tier",
    "get_benefits",
    "get_benefits_for_tier",
    "get_tier",
    "get_tiers",
    "replace_benefits_for_tier",
    "update_tier",
    "validate_benefits",
]
