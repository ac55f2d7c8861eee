from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UserRecord:
    user_id: str
    username: str
    password: str
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ProfileRecord:
    profile_id: str
    name: str


@dataclass(frozen=True)
class Session:
    access_token: str
    client_token: str
    user_id: str
    profile_id: str
    created_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def new(
        cls, access_token: str, client_token: str, user_id: str, profile_id: str
    ) -> "Session":
        return cls(
            access_token=access_token,
            client_token=client_token,
            user_id=user_id,
            profile_id=profile_id,
            created_at=_utcnow(),
        )


@dataclass(frozen=True)
class UserProperty:
    name: str
    value: str


@dataclass(frozen=True)
class UserInfo:
    user_id: str
    properties: List[UserProperty] = field(default_factory=list)


@dataclass(frozen=True)
class AuthResult:
    """Outcome of authenticate/refresh: the live session plus what the wire body needs."""

    session: Session
    profile: ProfileRecord
    user: Optional[UserInfo] = None

    @property
    def access_token(self) -> str:
        return self.session.access_token

    @property
    def client_token(self) -> str:
        return self.session.client_token
