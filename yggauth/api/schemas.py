from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from yggauth.storage.models import AuthResult, ProfileRecord, UserInfo

# Upper bound for free-form strings; tokens are 32 chars, names are short
MAX_FIELD_LENGTH = 256


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ErrorResponse(_WireModel):
    """Yggdrasil error body."""

    error: str
    error_message: str = Field(..., alias="errorMessage")
    cause: Optional[str] = None


class Agent(_WireModel):
    name: str = Field("Minecraft", max_length=MAX_FIELD_LENGTH)
    version: int = 1


class Property(_WireModel):
    name: str
    value: str
    signature: Optional[str] = None


class ProfileBody(_WireModel):
    id: str
    name: str
    properties: Optional[List[Property]] = None

    @classmethod
    def from_record(cls, profile: ProfileRecord) -> "ProfileBody":
        return cls(id=profile.profile_id, name=profile.name)


class UserBody(_WireModel):
    id: str
    properties: List[Property] = Field(default_factory=list)

    @classmethod
    def from_info(cls, info: UserInfo) -> "UserBody":
        return cls(
            id=info.user_id,
            properties=[Property(name=p.name, value=p.value) for p in info.properties],
        )


class AuthenticateRequest(_WireModel):
    agent: Optional[Agent] = None
    username: str = Field(..., min_length=1, max_length=MAX_FIELD_LENGTH)
    password: str = Field(..., min_length=1, max_length=MAX_FIELD_LENGTH)
    client_token: Optional[str] = Field(None, alias="clientToken", max_length=MAX_FIELD_LENGTH)
    request_user: bool = Field(False, alias="requestUser")


class RefreshRequest(_WireModel):
    access_token: str = Field(..., alias="accessToken", min_length=1, max_length=MAX_FIELD_LENGTH)
    client_token: Optional[str] = Field(None, alias="clientToken", max_length=MAX_FIELD_LENGTH)
    request_user: bool = Field(False, alias="requestUser")


class ValidateRequest(_WireModel):
    access_token: str = Field(..., alias="accessToken", min_length=1, max_length=MAX_FIELD_LENGTH)
    client_token: Optional[str] = Field(None, alias="clientToken", max_length=MAX_FIELD_LENGTH)


class InvalidateRequest(_WireModel):
    access_token: str = Field(..., alias="accessToken", min_length=1, max_length=MAX_FIELD_LENGTH)
    client_token: Optional[str] = Field(None, alias="clientToken", max_length=MAX_FIELD_LENGTH)


class SignoutRequest(_WireModel):
    username: str = Field(..., min_length=1, max_length=MAX_FIELD_LENGTH)
    password: str = Field(..., min_length=1, max_length=MAX_FIELD_LENGTH)


class SessionResponse(_WireModel):
    access_token: str = Field(..., alias="accessToken")
    client_token: str = Field(..., alias="clientToken")
    available_profiles: Optional[List[ProfileBody]] = Field(None, alias="availableProfiles")
    selected_profile: Optional[ProfileBody] = Field(None, alias="selectedProfile")
    user: Optional[UserBody] = None

    @classmethod
    def from_result(
        cls, result: AuthResult, *, include_available: bool = False
    ) -> "SessionResponse":
        selected = ProfileBody.from_record(result.profile)
        return cls(
            access_token=result.access_token,
            client_token=result.client_token,
            available_profiles=[selected] if include_available else None,
            selected_profile=selected,
            user=UserBody.from_info(result.user) if result.user else None,
        )
