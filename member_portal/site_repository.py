"""Repository helpers for web radio settings and cookie consent."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import CookieConsent, WebRadioSettings
from .repository import upsert_insert

RADIO_UPDATABLE_FIELDS = frozenset({"radio_url", "is_active", "dj_mode"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_radio_settings(session: Session) -> WebRadioSettings | None:
    return session.get(WebRadioSettings, WebRadioSettings.SINGLETON_ID)


def update_radio_settings(
    session: Session, updates: Mapping[str, Any]
) -> WebRadioSettings:
    """Merge ``updates`` into the singleton row, creating it on first write.

    The row lives under a fixed key, so concurrent first writes collapse
    onto the same row instead of creating two.
    """

    changes = {key: value for key, value in updates.items() if key in RADIO_UPDATABLE_FIELDS}
    now = _utcnow()
    stmt = upsert_insert(session, WebRadioSettings).values(
        id=WebRadioSettings.SINGLETON_ID, created_at=now, updated_at=now, **changes
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[WebRadioSettings.id],
        set_={**changes, "updated_at": now},
    )
    session.execute(stmt)
    return session.get(  # type: ignore[return-value]
        WebRadioSettings, WebRadioSettings.SINGLETON_ID, populate_existing=True
    )


def record_cookie_consent(
    session: Session, *, accepted: bool, user_id: str | None = None
) -> CookieConsent:
    record = CookieConsent(accepted=accepted, user_id=user_id or None)
    session.add(record)
    session.flush()
    return record


def get_cookie_consent(session: Session, user_id: str) -> CookieConsent | None:
    """Return the member's most recent consent answer."""

    stmt = (
        select(CookieConsent)
        .where(CookieConsent.user_id == user_id)
        .order_by(CookieConsent.created_at.desc(), CookieConsent.id.desc())
        .limit(1)
    )
    return session.scalar(stmt)


__all__ = [
    "get_cookie_consent",
    "get_radio_settings",
    "record_cookie_consent",
    "update_radio_settings",
]
