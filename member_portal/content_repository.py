"""Repository helpers for gallery images, news posts and comments.

All three kinds share the soft-delete lifecycle of :class:`Activatable`:
``delete`` only clears ``is_active``, list reads return active rows only,
and direct lookups by id are not filtered.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, TypeVar

from sqlalchemy import select, true
from sqlalchemy.orm import Session

from .errors import NotFound, ValidationError
from .models import COMMENT_MAX_LENGTH, Activatable, GalleryImage, NewsComment, NewsPost

A = TypeVar("A", bound=Activatable)

GALLERY_UPDATABLE_FIELDS = frozenset({"image_url", "title", "description"})
NEWS_UPDATABLE_FIELDS = frozenset({"title", "content"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def list_active(session: Session, model: type[A], *criteria, order_by=()) -> list[A]:
    stmt = select(model).where(model.is_active == true(), *criteria).order_by(*order_by)
    return list(session.scalars(stmt).all())


def soft_delete(session: Session, model: type[A], record_id: int) -> A:
    """Deactivate a row; the row itself is kept."""

    record = session.get(model, record_id)
    if record is None:
        raise NotFound(f"{model.__name__} {record_id} not found")
    record.deactivate()
    session.add(record)
    session.flush()
    return record


def _apply_updates(
    session: Session,
    model: type[A],
    record_id: int,
    updates: Mapping[str, Any],
    allowed: frozenset[str],
) -> A:
    record = session.get(model, record_id)
    if record is None:
        raise NotFound(f"{model.__name__} {record_id} not found")
    for key, value in updates.items():
        if key in allowed:
            setattr(record, key, value)
    return record


# Gallery


def list_gallery_images(session: Session) -> list[GalleryImage]:
    return list_active(
        session,
        GalleryImage,
        order_by=(GalleryImage.created_at.desc(), GalleryImage.id.desc()),
    )


def get_gallery_image(session: Session, image_id: int) -> GalleryImage | None:
    return session.get(GalleryImage, image_id)


def create_gallery_image(
    session: Session,
    *,
    image_url: str,
    title: str | None = None,
    description: str | None = None,
) -> GalleryImage:
    record = GalleryImage(image_url=image_url, title=title, description=description)
    session.add(record)
    session.flush()
    return record


def update_gallery_image(
    session: Session, image_id: int, updates: Mapping[str, Any]
) -> GalleryImage:
    record = _apply_updates(session, GalleryImage, image_id, updates, GALLERY_UPDATABLE_FIELDS)
    session.add(record)
    session.flush()
    return record


def delete_gallery_image(session: Session, image_id: int) -> GalleryImage:
    return soft_delete(session, GalleryImage, image_id)


# News posts


def list_news_posts(session: Session) -> list[NewsPost]:
    return list_active(
        session,
        NewsPost,
        order_by=(NewsPost.created_at.desc(), NewsPost.id.desc()),
    )


def get_news_post(session: Session, post_id: int) -> NewsPost | None:
    return session.get(NewsPost, post_id)


def create_news_post(
    session: Session, *, title: str, content: str, author_id: str | None = None
) -> NewsPost:
    now = _utcnow()
    record = NewsPost(
        title=title, content=content, author_id=author_id, created_at=now, updated_at=now
    )
    session.add(record)
    session.flush()
    return record


def update_news_post(
    session: Session, post_id: int, updates: Mapping[str, Any]
) -> NewsPost:
    record = _apply_updates(session, NewsPost, post_id, updates, NEWS_UPDATABLE_FIELDS)
    record.updated_at = _utcnow()
    session.add(record)
    session.flush()
    return record


def delete_news_post(session: Session, post_id: int) -> NewsPost:
    return soft_delete(session, NewsPost, post_id)


# Comments


def list_news_comments(session: Session, post_id: int) -> list[NewsComment]:
    return list_active(
        session,
        NewsComment,
        NewsComment.post_id == post_id,
        order_by=(NewsComment.created_at.asc(), NewsComment.id.asc()),
    )


def get_news_comment(session: Session, comment_id: int) -> NewsComment | None:
    return session.get(NewsComment, comment_id)


def create_news_comment(
    session: Session, *, post_id: int, content: str, user_id: str | None = None
) -> NewsComment:
    """Attach a comment to an active post."""

    if not content or len(content) > COMMENT_MAX_LENGTH:
        raise ValidationError(
            f"Comment must be between 1 and {COMMENT_MAX_LENGTH} characters"
        )
    post = session.get(NewsPost, post_id)
    if post is None or not post.is_active:
        raise NotFound(f"NewsPost {post_id} not found")

    record = NewsComment(post_id=post_id, user_id=user_id, content=content)
    session.add(record)
    session.flush()
    return record


def delete_news_comment(session: Session, comment_id: int) -> NewsComment:
    return soft_delete(session, NewsComment, comment_id)


__all__ = [
    "create_gallery_image",
    "create_news_comment",
    "create_news_post",
    "delete_gallery_image",
    "delete_news_comment",
    "delete_news_post",
    "get_gallery_image",
    "get_news_comment",
    "get_news_post",
    "list_active",
    "list_gallery_images",
    "list_news_comments",
    "list_news_posts",
    "soft_delete",
    "update_gallery_image",
    "update_news_post",
]
