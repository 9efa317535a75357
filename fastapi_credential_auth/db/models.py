"""Storage-agnostic records for one-time codes and user credentials."""

from datetime import datetime
from typing import Any

from pydantic import (  # type: ignore[import-untyped]
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from fastapi_credential_auth.types import HashType, OtpStatus


class OtpEntry(BaseModel):
    """
    The most recent one-time code issued to a user.

    At most one entry exists per user; a new issuance replaces it. Only the
    hash of the code is stored.

    Serialised with camelCase keys:
        ```json
        {
            "userId": "u1",
            "codeHash": "9f86d0...",
            "expiresAt": "2025-01-01T12:05:00Z",
            "generatedAt": "2025-01-01T12:00:00Z",
            "status": "active",
            "consumedOrExpired": false
        }
        ```
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    code_hash: str = Field(..., alias="codeHash", repr=False)
    expires_at: AwareDatetime = Field(..., alias="expiresAt")
    generated_at: AwareDatetime | None = Field(default=None, alias="generatedAt")
    status: OtpStatus = OtpStatus.ACTIVE

    @model_validator(mode="before")
    @classmethod
    def _status_from_flag(cls, data: Any) -> Any:  # noqa: ANN401
        # Records that carry only the boolean flag
        if (
            isinstance(data, dict)
            and "status" not in data
            and data.get("consumedOrExpired")
        ):
            return {**data, "status": OtpStatus.EXPIRED}
        return data

    @computed_field(alias="consumedOrExpired")  # type: ignore[prop-decorator]
    @property
    def consumed_or_expired(self) -> bool:
        return self.status is not OtpStatus.ACTIVE

    def state(self, now: datetime) -> OtpStatus:
        """Effective status at ``now``, treating a passed expiry as expired."""
        if self.status is OtpStatus.ACTIVE and self.expires_at <= now:
            return OtpStatus.EXPIRED
        return self.status


class UserRecord(BaseModel):
    """
    The subset of a user record used for authentication.

    Unknown fields are kept so records from a generic collection can be read
    without loss.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    id: str
    email: str | None = None
    username: str | None = None
    name: str | None = None
    role: str | None = None
    password: str | None = Field(default=None, repr=False)
    hash_type: HashType | None = Field(default=None, alias="hashType")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @field_validator("hash_type", mode="before")
    @classmethod
    def _blank_hash_type(cls, value: Any) -> Any:  # noqa: ANN401
        # An empty marker means the mode is detected from the stored value
        if isinstance(value, str) and not value.strip():
            return None
        return value
