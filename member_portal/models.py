"""SQLAlchemy models for members, tiers and site content."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .settings import settings

BENEFIT_MAX_LENGTH = 200
COMMENT_MAX_LENGTH = 500


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for ORM models."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class Activatable:
    """Rows that are retired by clearing ``is_active`` instead of being deleted."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def deactivate(self) -> None:
        self.is_active = False


class Member(Base):
    """Member known through the identity provider."""

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    first_name: Mapped[str | None] = mapped_column(String(255))
    last_name: Mapped[str | None] = mapped_column(String(255))
    profile_image_url: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(64))
    address: Mapped[str | None] = mapped_column(String(255))
    zip: Mapped[str | None] = mapped_column(String(32))
    city: Mapped[str | None] = mapped_column(String(255))
    soundcloud_url: Mapped[str | None] = mapped_column(String(500))
    membership_tier: Mapped[str] = mapped_column(
        String(64), nullable=False, default=lambda: settings.default_membership_tier
    )
    is_dj_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class MembershipTier(Activatable, Base):
    """Named membership level with a price and billing interval."""

    __tablename__ = "membership_tiers"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_tier_amount_non_negative"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="CHF", nullable=False)
    interval: Mapped[str] = mapped_column(String(32), default="Jahr", nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class MembershipBenefit(Base):
    """One line-item perk of a tier."""

    __tablename__ = "membership_benefits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tier_name: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("membership_tiers.name", onupdate="CASCADE", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    benefit: Mapped[str] = mapped_column(String(BENEFIT_MAX_LENGTH), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class CookieConsent(Base):
    """Append-only log of cookie banner answers."""

    __tablename__ = "cookie_consents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("members.id"), index=True
    )
    accepted: Mapped[bool] = mapped_column(Boolean, nullable=False)


class WebRadioSettings(Base):
    """Process-wide radio configuration; the table holds at most one row."""

    __tablename__ = "web_radio_settings"
    __table_args__ = (CheckConstraint("id = 1", name="ck_radio_settings_singleton"),)

    SINGLETON_ID = 1

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    radio_url: Mapped[str | None] = mapped_column(String(500))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    dj_mode: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class GalleryImage(Activatable, Base):
    __tablename__ = "gallery_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_url: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)


class NewsPost(Activatable, Base):
    __tablename__ = "news_posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str | None] = mapped_column(
        String(255), ForeignKey("members.id"), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )


class NewsComment(Activatable, Base):
    __tablename__ = "news_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("news_posts.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(String(255), ForeignKey("members.id"))
    content: Mapped[str] = mapped_column(String(COMMENT_MAX_LENGTH), nullable=False)


__all__ = [
    "Activatable",
    "BENEFIT_MAX_LENGTH",
    "Base",
    "COMMENT_MAX_LENGTH",
    "CookieConsent",
    "GalleryImage",
    "Member",
    "MembershipBenefit",
    "MembershipTier",
    "NewsComment",
    "NewsPost",
    "WebRadioSettings",
    "utcnow",
]
