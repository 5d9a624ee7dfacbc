"""Schema creation and default-data reconciliation."""
from __future__ import annotations

import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import Store
from .models import Base, GalleryImage, Member, MembershipTier, NewsPost
from .repository import Identity, upsert_member
from .site_repository import get_radio_settings, update_radio_settings
from .content_repository import create_gallery_image, create_news_post
from .tier_repository import create_tier, replace_benefits_for_tier

logger = logging.getLogger(__name__)


DEFAULT_TIERS = [
    {"name": "TAGESMITGLIED", "amount": 0, "currency": "CHF", "interval": "Tag"},
    {"name": "PASSIV", "amount": 10, "currency": "CHF", "interval": "Jahr"},
    {"name": "AKTIV", "amount": 50, "currency": "CHF", "interval": "Jahr"},
    {"name": "VIP", "amount": 50, "currency": "CHF", "interval": "Monat"},
    {"name": "SPONSOR", "amount": 100, "currency": "CHF", "interval": "Monat"},
]

DEFAULT_BENEFITS = {
    "TAGESMITGLIED": ["Basis Zugang", "Community Forum", "Event Infos"],
    "PASSIV": ["10% Rabatt auf Events"],
    "AKTIV": ["Exklusive Sticker"],
    "VIP": ["VIP-Eventzugang"],
    "SPONSOR": ["Werbeplatz auf Landingpage"],
}

DEMO_MEMBERS = [
    {
        "id": "test-tagesmitglied",
        "email": "tages@akustik-produkt.ch",
        "first_name": "Tages",
        "last_name": "Mitglied",
        "membership_tier": "TAGESMITGLIED",
        "is_admin": False,
        "is_dj_active": False,
        "soundcloud_url": "https://soundcloud.com/tagesuser",
    },
    {
        "id": "test-passiv",
        "email": "passiv@akustik-produkt.ch",
        "first_name": "Passiv",
        "last_name": "User",
        "membership_tier": "PASSIV",
        "is_admin": False,
        "is_dj_active": True,
        "soundcloud_url": "https://soundcloud.com/passivuser",
    },
    {
        "id": "test-aktiv",
        "email": "aktiv@akustik-produkt.ch",
        "first_name": "Aktiv",
        "last_name": "Member",
        "membership_tier": "AKTIV",
        "is_admin": False,
        "is_dj_active": True,
        "soundcloud_url": "https://soundcloud.com/aktivmember",
    },
    {
        "id": "test-vip",
        "email": "vip@akustik-produkt.ch",
        "first_name": "VIP",
        "last_name": "Elite",
        "membership_tier": "VIP",
        "is_admin": False,
        "is_dj_active": True,
        "soundcloud_url": "https://soundcloud.com/vipelite",
    },
    {
        "id": "test-sponsor",
        "email": "sponsor@akustik-produkt.ch",
        "first_name": "Sponsor",
        "last_name": "Premium",
        "membership_tier": "SPONSOR",
        "is_admin": True,
        "is_dj_active": True,
        "soundcloud_url": "https://soundcloud.com/sponsorpremium",
    },
]

DEMO_RADIO_SETTINGS = {
    "radio_url": "https://stream.akustik-produkt.ch/live",
    "is_active": True,
    "dj_mode": False,
}

DEMO_GALLERY_IMAGES = [
    {
        "image_url": "https://picsum.photos/800/600?random=1",
        "title": "Cyberpunk Event 2024",
        "description": "Unser erstes großes Cyberpunk-Event mit neon Lights und elektronischer Musik.",
    },
    {
        "image_url": "https://picsum.photos/800/600?random=2",
        "title": "DJ Night Special",
        "description": "Eine unvergessliche Nacht mit den besten DJs der elektronischen Szene.",
    },
    {
        "image_url": "https://picsum.photos/800/600?random=3",
        "title": "Studio Sessions",
        "description": "Behind the scenes Aufnahmen aus unserem hochmodernen Studio.",
    },
]

DEMO_NEWS_POSTS = [
    {
        "title": "Willkommen im Cyberpunk Universum",
        "content": "Heute starten wir offiziell unsere neue Mitgliederverwaltung im futuristischen Cyberpunk-Design. Erlebe die Zukunft der elektronischen Musik mit uns!",
        "author_id": "test-sponsor",
    },
    {
        "title": "Neue DJ Features verfügbar",
        "content": "Ab sofort können alle Mitglieder ihre SoundCloud-Links hinterlegen und als DJ aktiv werden. Aktiviere den DJ-Modus in deinem Profil!",
        "author_id": "test-sponsor",
    },
    {
        "title": "Galerie ist online",
        "content": "Schaut euch unsere neue Bildergalerie an! Hier findet ihr Impressionen von unseren Events und Studio-Sessions.",
        "author_id": "test-sponsor",
    },
]


def init_db(store: Store) -> None:
    """Initialize database tables for ORM models."""

    logger.info("Creating database tables if they do not exist")
    Base.metadata.create_all(store.engine)


def _existing(session: Session, column) -> set:
    return set(session.scalars(select(column)).all())


def reconcile_defaults(session: Session, *, include_demo: bool = False) -> Dict[str, int]:
    """Insert default rows that are missing, keyed by their natural keys.

    Benefits are only seeded together with a tier created in the same run,
    so a tier whose benefits were cleared on purpose stays empty.
    """

    counts = {
        "tiers": 0,
        "benefits": 0,
        "members": 0,
        "radio_settings": 0,
        "gallery_images": 0,
        "news_posts": 0,
    }

    tier_names = _existing(session, MembershipTier.name)
    for tier in DEFAULT_TIERS:
        if tier["name"] in tier_names:
            continue
        create_tier(session, **tier)
        counts["tiers"] += 1
        benefits = DEFAULT_BENEFITS.get(tier["name"], [])
        replace_benefits_for_tier(session, tier["name"], benefits)
        counts["benefits"] += len(benefits)

    if include_demo:
        member_ids = _existing(session, Member.id)
        for member in DEMO_MEMBERS:
            if member["id"] in member_ids:
                continue
            fields = dict(member)
            identity = Identity(
                id=fields.pop("id"),
                email=fields.pop("email"),
                first_name=fields.pop("first_name"),
                last_name=fields.pop("last_name"),
            )
            upsert_member(session, identity, **fields)
            counts["members"] += 1

        if get_radio_settings(session) is None:
            update_radio_settings(session, DEMO_RADIO_SETTINGS)
            counts["radio_settings"] += 1

        image_urls = _existing(session, GalleryImage.image_url)
        for image in DEMO_GALLERY_IMAGES:
            if image["image_url"] in image_urls:
                continue
            create_gallery_image(session, **image)
            counts["gallery_images"] += 1

        post_titles = _existing(session, NewsPost.title)
        for post in DEMO_NEWS_POSTS:
            if post["title"] in post_titles:
                continue
            create_news_post(session, **post)
            counts["news_posts"] += 1

    inserted = {kind: count for kind, count in counts.items() if count}
    if inserted:
        logger.info("Default data reconciled; inserted %s", inserted)
    else:
        logger.info("Default data already present; nothing inserted")
    return counts


def seed_defaults(store: Store, *, include_demo: bool = False) -> Dict[str, int]:
    """Run reconciliation in its own transaction."""

    with store.session() as session:
        return reconcile_defaults(session, include_demo=include_demo)


__all__ = [
    "DEFAULT_BENEFITS",
    "DEFAULT_TIERS",
    "init_db",
    "reconcile_defaults",
    "seed_defaults",
]
