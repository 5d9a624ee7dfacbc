"""Identity claim extraction and access dependencies.

Authentication itself happens upstream; the identity provider forwards the
authenticated member id in a header (``settings.identity_header``) or as a
bearer token, plus optional profile claims.
"""
from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .errors import Forbidden, Unauthorized
from .models import Member
from .repository import Identity, get_member
from .settings import settings

logger = logging.getLogger(__name__)

CLAIM_HEADERS = {
    "email": "X-User-Email",
    "first_name": "X-User-First-Name",
    "last_name": "X-User-Last-Name",
    "profile_image_url": "X-User-Profile-Image",
}


def get_db_session(request: Request) -> Iterator[Session]:
    with request.app.state.store.session() as session:
        yield session


def _extract_identity_token(
    identity_header: str | None, authorization: str | None
) -> str | None:
    if identity_header and identity_header.strip():
        return identity_header.strip()

    if authorization:
        token = authorization.strip()
        if token.lower().startswith("bearer "):
            return token[7:].strip() or None
        return token or None

    return None


def require_identity(request: Request) -> Identity:
    """Return the identity claim of the request or reject it with 401."""

    member_id = _extract_identity_token(
        request.headers.get(settings.identity_header),
        request.headers.get("Authorization"),
    )
    if not member_id:
        logger.warning("Identity check failed: missing claim", extra={"path": request.url.path})
        raise Unauthorized("Unauthorized")

    claims = {
        field: request.headers.get(header) or None for field, header in CLAIM_HEADERS.items()
    }
    return Identity(id=member_id, **claims)


def require_admin(
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
) -> Member | None:
    """Allow members flagged as admin; open to any identity when enforcement is off."""

    member = get_member(session, identity.id)
    if not settings.admin_enforced:
        return member

    if member is None or not member.is_admin:
        logger.warning("Admin check failed", extra={"member_id": identity.id})
        raise Forbidden("Forbidden")
    return member


__all__ = ["get_db_session", "require_admin", "require_identity"]
