"""
Broadcast notifications: canonical entity and drafts.
"""
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator, model_validator

from shopadmin.schemas.common import CanonicalModel, DraftModel, EntityId, strip_required


class NotificationAudience(str, Enum):
    ALL = "all"
    SPECIFIC_USERS = "specific_users"


class NotificationStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"


def _legacy_audience(v: Any) -> Any:
    # First backend version spelled it "all_users"
    return NotificationAudience.ALL if v == "all_users" else v


class Notification(CanonicalModel):
    title: str
    message: str
    audience: NotificationAudience = NotificationAudience.ALL
    target_user_ids: list[EntityId] | None = None
    # Backends without scheduling send immediately and omit the status
    status: NotificationStatus = NotificationStatus.SENT
    sent_at: datetime | None = None
    scheduled_for: datetime | None = None

    @field_validator("audience", mode="before")
    @classmethod
    def legacy_audience(cls, v: Any) -> Any:
        return _legacy_audience(v)


class NotificationCreate(DraftModel):
    """target_user_ids is required for specific_users and must be absent otherwise."""

    title: str
    message: str
    audience: NotificationAudience = NotificationAudience.ALL
    target_user_ids: list[EntityId] | None = None
    scheduled_for: datetime | None = None

    @field_validator("title")
    @classmethod
    def title_required(cls, v: str) -> str:
        return strip_required(v, "title")

    @field_validator("message")
    @classmethod
    def message_required(cls, v: str) -> str:
        return strip_required(v, "message")

    @model_validator(mode="after")
    def targets_match_audience(self) -> "NotificationCreate":
        if self.audience == NotificationAudience.SPECIFIC_USERS:
            if not self.target_user_ids:
                raise ValueError("target_user_ids is required when audience is specific_users")
        elif self.target_user_ids:
            raise ValueError("target_user_ids is only allowed when audience is specific_users")
        return self


class NotificationUpdate(DraftModel):
    title: str | None = None
    message: str | None = None
    status: NotificationStatus | None = None
    scheduled_for: datetime | None = None

    @field_validator("title", "message")
    @classmethod
    def not_blank(cls, v: str | None, info) -> str | None:
        return None if v is None else strip_required(v, info.field_name)
