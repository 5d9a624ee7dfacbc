"""FastAPI routers and endpoints."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import get_db_session, require_admin, require_identity
from .content_repository import (
    create_gallery_image,
    create_news_comment,
    create_news_post,
    delete_gallery_image,
    delete_news_comment,
    delete_news_post,
    get_gallery_image,
    get_news_comment,
    get_news_post,
    list_gallery_images,
    list_news_comments,
    list_news_posts,
    update_gallery_image,
    update_news_post,
)
from .errors import (
    Forbidden,
    NotFound,
    PortalError,
    StoreError,
    Unauthorized,
    ValidationError,
)
from .models import Member
from .repository import (
    Identity,
    assign_membership_tier,
    get_member,
    list_dj_members,
    list_members,
    update_member,
    upsert_member,
)
from .schemas import (
    BenefitResponse,
    CookieConsentCreate,
    CookieConsentResponse,
    GalleryImageCreate,
    GalleryImageResponse,
    GalleryImageUpdate,
    MemberResponse,
    MembershipAssignment,
    NewsCommentCreate,
    NewsCommentResponse,
    NewsPostCreate,
    NewsPostResponse,
    NewsPostUpdate,
    ProfileUpdate,
    RadioSettingsResponse,
    RadioSettingsUpdate,
    SuccessResponse,
    TierCreate,
    TierResponse,
    TierUpdate,
)
from .settings import settings
from .site_repository import (
    get_cookie_consent,
    get_radio_settings,
    record_cookie_consent,
    update_radio_settings,
)
from .tier_repository import (
    create_tier,
    get_benefits,
    get_benefits_for_tier,
    get_tiers,
    replace_benefits_for_tier,
    update_tier,
)

logger = logging.getLogger(__name__)

public_router = APIRouter()
router = APIRouter(prefix="/api")


@contextmanager
def _handle_errors(session: Session, message: str) -> Iterator[None]:
    """Commit the request's work and translate failures into HTTP errors.

    Committing before the handler returns means a failed commit is reported
    to the client rather than surfacing after the response has been sent.
    Validation and access errors pass through with their own message;
    anything else is logged and reported as a 500 carrying ``message``.
    """

    try:
        yield
        session.commit()
    except (HTTPException, ValidationError, Unauthorized, Forbidden):
        raise
    except SQLAlchemyError as exc:
        logger.exception(message)
        raise StoreError(message) from exc
    except Exception as exc:
        logger.exception(message)
        raise PortalError(message) from exc


def _member_response(member: Member) -> MemberResponse:
    return MemberResponse.model_validate(member)


@public_router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# Auth and profile


@router.post("/auth/login", response_model=MemberResponse)
def login(
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to log in"):
        member = upsert_member(session, identity)
        logger.info("Member %s logged in", member.id)
        return _member_response(member)


@router.get("/auth/user", response_model=MemberResponse)
def current_user(
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to fetch user"):
        member = get_member(session, identity.id)
        if member is None:
            logger.info("Registering first-seen member %s", identity.id)
            member = upsert_member(session, identity)
        return _member_response(member)


@router.put("/user/profile", response_model=MemberResponse)
def update_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to update profile"):
        member = update_member(session, identity.id, payload.model_dump(exclude_unset=True))
        return _member_response(member)


# Membership tiers and benefits


@router.get("/membership/tiers", response_model=list[TierResponse])
def list_tiers(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch membership tiers"):
        return [TierResponse.model_validate(tier) for tier in get_tiers(session)]


@router.post(
    "/membership/tiers",
    response_model=TierResponse,
    dependencies=[Depends(require_admin)],
)
def add_tier(payload: TierCreate, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to create membership tier"):
        tier = create_tier(session, **payload.model_dump())
        return TierResponse.model_validate(tier)


@router.put(
    "/membership/tiers/{name}",
    response_model=TierResponse,
    dependencies=[Depends(require_admin)],
)
def edit_tier(name: str, payload: TierUpdate, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to update membership tier"):
        tier = update_tier(session, name, payload.model_dump(exclude_unset=True, exclude_none=True))
        return TierResponse.model_validate(tier)


@router.get("/membership/benefits", response_model=list[BenefitResponse])
def list_benefits(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch membership benefits"):
        return [BenefitResponse.model_validate(benefit) for benefit in get_benefits(session)]


@router.get("/membership/benefits/{tier_name}", response_model=list[BenefitResponse])
def list_tier_benefits(tier_name: str, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch membership benefits"):
        return [
            BenefitResponse.model_validate(benefit)
            for benefit in get_benefits_for_tier(session, tier_name)
        ]


@router.put(
    "/membership/benefits/{tier_name}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
def replace_tier_benefits(
    tier_name: str,
    payload: dict[str, Any] = Body(...),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to update membership benefits"):
        replace_benefits_for_tier(session, tier_name, payload.get("benefits"))
        return SuccessResponse()


# Admin


@router.get(
    "/admin/users",
    response_model=list[MemberResponse],
    dependencies=[Depends(require_admin)],
)
def admin_list_users(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch users"):
        return [_member_response(member) for member in list_members(session)]


@router.put(
    "/admin/users/{member_id}/membership",
    response_model=MemberResponse,
    dependencies=[Depends(require_admin)],
)
def admin_assign_tier(
    member_id: str,
    payload: MembershipAssignment,
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to update user membership"):
        member = assign_membership_tier(session, member_id, payload.membership_tier)
        logger.info("Member %s moved to tier %s", member_id, payload.membership_tier)
        return _member_response(member)


# Cookie consent


@router.post("/cookie-consent", response_model=CookieConsentResponse)
def create_cookie_consent(
    payload: CookieConsentCreate, session: Session = Depends(get_db_session)
):
    with _handle_errors(session, "Failed to record cookie consent"):
        consent = record_cookie_consent(
            session, accepted=payload.accepted, user_id=payload.user_id
        )
        return CookieConsentResponse.model_validate(consent)


@router.get("/cookie-consent", response_model=CookieConsentResponse | None)
def current_cookie_consent(
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to fetch cookie consent"):
        consent = get_cookie_consent(session, identity.id)
        return CookieConsentResponse.model_validate(consent) if consent else None


# Web radio


@router.get("/radio/settings", response_model=RadioSettingsResponse | None)
def radio_settings(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch radio settings"):
        record = get_radio_settings(session)
        return RadioSettingsResponse.model_validate(record) if record else None


@router.put(
    "/radio/settings",
    response_model=RadioSettingsResponse,
    dependencies=[Depends(require_admin)],
)
def edit_radio_settings(
    payload: RadioSettingsUpdate, session: Session = Depends(get_db_session)
):
    with _handle_errors(session, "Failed to update radio settings"):
        record = update_radio_settings(session, payload.model_dump(exclude_unset=True))
        return RadioSettingsResponse.model_validate(record)


@router.get("/radio/dj-users", response_model=list[MemberResponse])
def dj_users(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch DJ users"):
        return [_member_response(member) for member in list_dj_members(session)]


# Gallery


@router.get("/gallery", response_model=list[GalleryImageResponse])
def gallery(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch gallery images"):
        return [GalleryImageResponse.model_validate(image) for image in list_gallery_images(session)]


@router.get("/gallery/{image_id}", response_model=GalleryImageResponse)
def gallery_image(image_id: int, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch gallery image"):
        record = get_gallery_image(session, image_id)
        if record is None:
            raise HTTPException(status_code=404, detail="Gallery image not found")
        return GalleryImageResponse.model_validate(record)


@router.post(
    "/gallery",
    response_model=GalleryImageResponse,
    dependencies=[Depends(require_admin)],
)
def add_gallery_image(payload: GalleryImageCreate, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to create gallery image"):
        record = create_gallery_image(session, **payload.model_dump())
        return GalleryImageResponse.model_validate(record)


@router.put(
    "/gallery/{image_id}",
    response_model=GalleryImageResponse,
    dependencies=[Depends(require_admin)],
)
def edit_gallery_image(
    image_id: int, payload: GalleryImageUpdate, session: Session = Depends(get_db_session)
):
    with _handle_errors(session, "Failed to update gallery image"):
        record = update_gallery_image(session, image_id, payload.model_dump(exclude_unset=True))
        return GalleryImageResponse.model_validate(record)


@router.delete(
    "/gallery/{image_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
def remove_gallery_image(image_id: int, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to delete gallery image"):
        delete_gallery_image(session, image_id)
        return SuccessResponse()


# News


@router.get("/news", response_model=list[NewsPostResponse])
def news(session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch news posts"):
        return [NewsPostResponse.model_validate(post) for post in list_news_posts(session)]


@router.get("/news/{post_id}", response_model=NewsPostResponse)
def news_post(post_id: int, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch news post"):
        record = get_news_post(session, post_id)
        if record is None:
            raise HTTPException(status_code=404, detail="News post not found")
        return NewsPostResponse.model_validate(record)


@router.post("/news", response_model=NewsPostResponse)
def add_news_post(
    payload: NewsPostCreate,
    admin: Member | None = Depends(require_admin),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to create news post"):
        record = create_news_post(
            session,
            title=payload.title,
            content=payload.content,
            author_id=admin.id if admin else None,
        )
        return NewsPostResponse.model_validate(record)


@router.put(
    "/news/{post_id}",
    response_model=NewsPostResponse,
    dependencies=[Depends(require_admin)],
)
def edit_news_post(
    post_id: int, payload: NewsPostUpdate, session: Session = Depends(get_db_session)
):
    with _handle_errors(session, "Failed to update news post"):
        record = update_news_post(
            session, post_id, payload.model_dump(exclude_unset=True, exclude_none=True)
        )
        return NewsPostResponse.model_validate(record)


@router.delete(
    "/news/{post_id}",
    response_model=SuccessResponse,
    dependencies=[Depends(require_admin)],
)
def remove_news_post(post_id: int, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to delete news post"):
        delete_news_post(session, post_id)
        return SuccessResponse()


# News comments


@router.get("/news/{post_id}/comments", response_model=list[NewsCommentResponse])
def news_comments(post_id: int, session: Session = Depends(get_db_session)):
    with _handle_errors(session, "Failed to fetch news comments"):
        return [
            NewsCommentResponse.model_validate(comment)
            for comment in list_news_comments(session, post_id)
        ]


@router.post("/news/{post_id}/comments", response_model=NewsCommentResponse)
def add_news_comment(
    post_id: int,
    payload: NewsCommentCreate,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to create news comment"):
        if get_member(session, identity.id) is None:
            upsert_member(session, identity)
        record = create_news_comment(
            session, post_id=post_id, content=payload.content, user_id=identity.id
        )
        return NewsCommentResponse.model_validate(record)


def _remove_comment(session: Session, identity: Identity, comment_id: int) -> SuccessResponse:
    comment = get_news_comment(session, comment_id)
    if comment is None:
        raise NotFound(f"NewsComment {comment_id} not found")

    if settings.admin_enforced and comment.user_id != identity.id:
        member = get_member(session, identity.id)
        if member is None or not member.is_admin:
            raise Forbidden("Forbidden")

    delete_news_comment(session, comment_id)
    return SuccessResponse()


@router.delete("/news/comments/{comment_id}", response_model=SuccessResponse)
def remove_news_comment(
    comment_id: int,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to delete news comment"):
        return _remove_comment(session, identity, comment_id)


@router.delete("/news/{post_id}/comments/{comment_id}", response_model=SuccessResponse)
def remove_post_comment(
    post_id: int,
    comment_id: int,
    identity: Identity = Depends(require_identity),
    session: Session = Depends(get_db_session),
):
    with _handle_errors(session, "Failed to delete news comment"):
        comment = get_news_comment(session, comment_id)
        if comment is None or comment.post_id != post_id:
            raise NotFound(f"NewsComment {comment_id} not found on post {post_id}")
        return _remove_comment(session, identity, comment_id)
