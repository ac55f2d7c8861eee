from __future__ import annotations

from typing import Dict, List, Optional

from yggauth.logging import get_logger
from yggauth.service.errors import (
    InvalidCredentialsError,
    InvalidTokenError,
    NoProfileError,
)
from yggauth.service.identity import derive_from_name, random_identifier
from yggauth.storage.errors import ConstraintViolation
from yggauth.storage.locks import ReadWriteLock
from yggauth.storage.models import (
    AuthResult,
    ProfileRecord,
    Session,
    UserInfo,
    UserProperty,
    UserRecord,
)


class MemoryTokenAuthority:
    """Volatile Yggdrasil session store; everything is lost when the process exits.

    ``sessions`` (access token -> Session) is the source of truth and
    ``client_tokens`` (client token -> access token of the chain head) is kept
    as an exact projection of it. Every mutation runs under the exclusive
    lock from its first lookup to its last write.
    """

    def __init__(self, *, preferred_language: str = "en") -> None:
        self.logger = get_logger(__name__)
        self.preferred_language = preferred_language
        self.users: Dict[str, UserRecord] = {}
        self.user_ids: Dict[str, str] = {}
        self.profiles: Dict[str, ProfileRecord] = {}
        self.sessions: Dict[str, Session] = {}
        self.client_tokens: Dict[str, str] = {}
        self._lock = ReadWriteLock()

    # seeding
    def register_user(self, username: str, password: str) -> str:
        with self._lock.write():
            if username in self.users:
                raise ConstraintViolation("username already exists", {"username": username})
            user_id = random_identifier()
            self.users[username] = UserRecord(user_id=user_id, username=username, password=password)
            self.user_ids[user_id] = username
        self.logger.info("user_registered", user_id=user_id, username=username)
        return user_id

    def register_profile(self, user_id: str, name: str) -> ProfileRecord:
        profile = ProfileRecord(profile_id=derive_from_name(name), name=name)
        with self._lock.write():
            if user_id not in self.user_ids:
                raise ConstraintViolation("user does not exist", {"user_id": user_id})
            self.profiles[user_id] = profile
        self.logger.info(
            "profile_registered", user_id=user_id, profile_id=profile.profile_id, name=name
        )
        return profile

    # protocol
    def authenticate(
        self,
        username: str,
        password: str,
        client_token: Optional[str] = None,
        request_user: bool = False,
    ) -> AuthResult:
        with self._lock.write():
            user = self._check_credentials(username, password)
            profile = self.profiles.get(user.user_id)
            if profile is None:
                raise NoProfileError()
            chain_token = client_token or random_identifier()
            # Reusing a client token restarts only the caller's own chain
            retired = self._drop_chain_head(chain_token, user.user_id)
            session = Session.new(
                access_token=random_identifier(),
                client_token=chain_token,
                user_id=user.user_id,
                profile_id=profile.profile_id,
            )
            self._insert(session)
        self.logger.info(
            "session_created",
            user_id=user.user_id,
            client_token=chain_token,
            retired_previous=retired is not None,
        )
        return self._result(session, profile, user.user_id, request_user)

    def refresh(
        self,
        access_token: str,
        client_token: Optional[str] = None,
        request_user: bool = False,
    ) -> AuthResult:
        with self._lock.write():
            current = self.sessions.get(access_token)
            if current is None or (client_token and client_token != current.client_token):
                raise InvalidTokenError()
            profile = self.profiles.get(current.user_id)
            if profile is None:
                raise NoProfileError()
            self._remove(current)
            session = Session.new(
                access_token=random_identifier(),
                client_token=current.client_token,
                user_id=current.user_id,
                profile_id=current.profile_id,
            )
            self._insert(session)
        self.logger.info(
            "session_refreshed", user_id=session.user_id, client_token=session.client_token
        )
        return self._result(session, profile, session.user_id, request_user)

    def validate(self, access_token: str, client_token: Optional[str] = None) -> bool:
        with self._lock.read():
            session = self.sessions.get(access_token)
        if session is None:
            return False
        if client_token and client_token != session.client_token:
            return False
        return True

    def invalidate(self, access_token: str, client_token: str) -> None:
        with self._lock.write():
            session = self.sessions.get(access_token)
            if session is None or not client_token or client_token != session.client_token:
                raise InvalidTokenError()
            self._remove(session)
        self.logger.info(
            "session_invalidated", user_id=session.user_id, client_token=session.client_token
        )

    def sign_out(self, username: str, password: str) -> int:
        with self._lock.write():
            user = self._check_credentials(username, password)
            stale = [s for s in self.sessions.values() if s.user_id == user.user_id]
            for session in stale:
                self._remove(session)
        self.logger.info("user_signed_out", user_id=user.user_id, sessions_removed=len(stale))
        return len(stale)

    # reads
    def get_session(self, access_token: str) -> Optional[Session]:
        with self._lock.read():
            return self.sessions.get(access_token)

    def sessions_for_user(self, user_id: str) -> List[Session]:
        with self._lock.read():
            return [s for s in self.sessions.values() if s.user_id == user_id]

    def get_profile(self, user_id: str) -> Optional[ProfileRecord]:
        with self._lock.read():
            return self.profiles.get(user_id)

    # helpers; callers hold the write lock
    def _check_credentials(self, username: str, password: str) -> UserRecord:
        user = self.users.get(username)
        if user is None or user.password != password:
            raise InvalidCredentialsError()
        return user

    def _insert(self, session: Session) -> None:
        self.sessions[session.access_token] = session
        self.client_tokens[session.client_token] = session.access_token

    def _remove(self, session: Session) -> None:
        self.sessions.pop(session.access_token, None)
        if self.client_tokens.get(session.client_token) == session.access_token:
            self.client_tokens.pop(session.client_token, None)

    def _drop_chain_head(self, client_token: str, user_id: str) -> Optional[Session]:
        head = self.client_tokens.get(client_token)
        if head is None:
            return None
        session = self.sessions.get(head)
        if session is None:
            self.client_tokens.pop(client_token, None)
            return None
        if session.user_id != user_id:
            raise InvalidTokenError()
        self._remove(session)
        return session

    def _result(
        self, session: Session, profile: ProfileRecord, user_id: str, request_user: bool
    ) -> AuthResult:
        user = None
        if request_user:
            user = UserInfo(
                user_id=user_id,
                properties=[UserProperty(name="preferredLanguage", value=self.preferred_language)],
            )
        return AuthResult(session=session, profile=profile, user=user)


__all__ = ["MemoryTokenAuthority"]
