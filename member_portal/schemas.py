"""Pydantic schemas for request/response payloads."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import COMMENT_MAX_LENGTH


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


def _reject_null(value):
    # Omitted fields keep their default and skip validation; only an explicit null lands here.
    if value is None:
        raise ValueError("must not be null")
    return value


class MemberResponse(CamelModel):
    id: str
    email: str | None
    first_name: str | None
    last_name: str | None
    profile_image_url: str | None
    phone: str | None
    address: str | None
    zip: str | None
    city: str | None
    soundcloud_url: str | None
    membership_tier: str
    is_dj_active: bool
    is_admin: bool
    created_at: datetime | None
    updated_at: datetime | None


class ProfileUpdate(CamelModel):
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    phone: str | None = None
    address: str | None = None
    zip: str | None = None
    city: str | None = None
    soundcloud_url: str | None = None
    is_dj_active: bool | None = None

    @field_validator(
        "email",
        "first_name",
        "last_name",
        "profile_image_url",
        "phone",
        "address",
        "zip",
        "city",
        "soundcloud_url",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("is_dj_active")
    @classmethod
    def dj_flag_not_null(cls, value):
        return _reject_null(value)


class MembershipAssignment(CamelModel):
    membership_tier: str = Field(..., min_length=1, max_length=64)


class TierCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(0, ge=0)
    currency: str = Field("CHF", min_length=1, max_length=8)
    interval: str = Field("Jahr", min_length=1, max_length=32)
    is_active: bool = True


class TierUpdate(CamelModel):
    amount: int | None = Field(None, ge=0)
    currency: str | None = Field(None, min_length=1, max_length=8)
    interval: str | None = Field(None, min_length=1, max_length=32)
    is_active: bool | None = None


class TierResponse(CamelModel):
    id: int
    name: str
    amount: int
    currency: str
    interval: str
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


class BenefitResponse(CamelModel):
    id: int
    tier_name: str
    benefit: str
    position: int
    created_at: datetime | None


class CookieConsentCreate(CamelModel):
    accepted: bool
    user_id: str | None = None


class CookieConsentResponse(CamelModel):
    id: int
    user_id: str | None
    accepted: bool
    created_at: datetime | None


class RadioSettingsUpdate(CamelModel):
    radio_url: str | None = None
    is_active: bool | None = None
    dj_mode: bool | None = None

    @field_validator("is_active", "dj_mode")
    @classmethod
    def flags_not_null(cls, value):
        return _reject_null(value)


class RadioSettingsResponse(CamelModel):
    radio_url: str | None
    is_active: bool
    dj_mode: bool
    updated_at: datetime | None


class GalleryImageCreate(CamelModel):
    image_url: str = Field(..., min_length=1, max_length=500)
    title: str | None = Field(None, max_length=255)
    description: str | None = None


class GalleryImageUpdate(CamelModel):
    image_url: str | None = Field(None, min_length=1, max_length=500)
    title: str | None = Field(None, max_length=255)
    description: str | None = None

    @field_validator("image_url")
    @classmethod
    def image_url_not_null(cls, value):
        return _reject_null(value)


class GalleryImageResponse(CamelModel):
    id: int
    image_url: str
    title: str | None
    description: str | None
    is_active: bool
    created_at: datetime | None


class NewsPostCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)


class NewsPostUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, min_length=1)


class NewsPostResponse(CamelModel):
    id: int
    title: str
    content: str
    author_id: str | None
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None


class NewsCommentCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=COMMENT_MAX_LENGTH)


class NewsCommentResponse(CamelModel):
    id: int
    post_id: int
    user_id: str | None
    content: str
    is_active: bool
    created_at: datetime | None


class SuccessResponse(BaseModel):
    success: bool = True


__all__ = [
    "BenefitResponse",
    "CookieConsentCreate",
    "CookieConsentResponse",
    "GalleryImageCreate",
    "GalleryImageResponse",
    "GalleryImageUpdate",
    "MemberResponse",
    "MembershipAssignment",
    "NewsCommentCreate",
    "NewsCommentResponse",
    "NewsPostCreate",
    "NewsPostResponse",
    "NewsPostUpdate",
    "ProfileUpdate",
    "RadioSettingsResponse",
    "RadioSettingsUpdate",
    "SuccessResponse",
    "TierCreate",
    "TierResponse",
    "TierUpdate",
]
