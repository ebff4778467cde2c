from pydantic import Field, field_validator

from shopadmin.schemas.common import CanonicalModel, DraftModel, EntityId, strip_required


class User(CanonicalModel):
    telegram_id: EntityId
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    # Gates whether the user may transact
    is_accepted: bool = False

    @property
    def display_name(self) -> str:
        if self.username:
            return f"@{self.username}"
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.telegram_id


class UserCreate(DraftModel):
    telegram_id: int = Field(gt=0)
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class UserUpdate(DraftModel):
    """telegram_id is the external identity and cannot be changed."""

    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_accepted: bool | None = None


class SendMessage(DraftModel):
    message: str

    @field_validator("message")
    @classmethod
    def message_required(cls, v: str) -> str:
        return strip_required(v, "message")
