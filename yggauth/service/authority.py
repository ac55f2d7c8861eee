from __future__ import annotations

from typing import Optional, Protocol

from yggauth.storage.models import AuthResult


class TokenAuthority(Protocol):
    """Operations the Yggdrasil transport needs from a session store.

    Failures are raised as ``yggauth.service.errors`` exceptions, except in
    ``validate`` which reports an unknown or mismatched token as ``False``.
    """

    def authenticate(
        self,
        username: str,
        password: str,
        client_token: Optional[str] = None,
        request_user: bool = False,
    ) -> AuthResult: ...

    def refresh(
        self,
        access_token: str,
        client_token: Optional[str] = None,
        request_user: bool = False,
    ) -> AuthResult: ...

    def validate(self, access_token: str, client_token: Optional[str] = None) -> bool: ...

    def invalidate(self, access_token: str, client_token: str) -> None: ...

    def sign_out(self, username: str, password: str) -> int: ...


__all__ = ["TokenAuthority"]
