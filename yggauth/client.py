"""Client for a Yggdrasil authentication server.

Speaks the ``/authserver/*`` protocol over HTTP and returns the same wire models
the server renders. Error responses are raised as ``RemoteServiceError`` so the
caller sees the server's ``error``/``errorMessage`` verbatim.

``YggdrasilClient.local(authority)`` skips the network and calls an in-process
authority instead; failures then surface as the authority's own
``ServiceError`` subclasses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import httpx

from yggauth.api.schemas import (
    Agent,
    AuthenticateRequest,
    ErrorResponse,
    InvalidateRequest,
    RefreshRequest,
    SessionResponse,
    SignoutRequest,
    ValidateRequest,
)
from yggauth.logging import get_logger
from yggauth.service.authority import TokenAuthority
from yggauth.service.errors import ServiceError

if TYPE_CHECKING:
    from yggauth.config import Settings

logger = get_logger(__name__)


class RemoteServiceError(ServiceError):
    """Non-success response from the remote authority."""

    def __init__(self, status_code: int, error: str, message: str, cause: Optional[str] = None):
        super().__init__(message, status_code=status_code, error_code=error, cause=cause)


class YggdrasilClient:
    def __init__(
        self,
        base_url: str = "",
        *,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
        authority: Optional[TokenAuthority] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._authority = authority
        self._client: Optional[httpx.Client] = None
        self._owns_client = False
        if authority is None:
            if not self.base_url:
                raise ValueError("base_url is required unless an authority is given")
            self._owns_client = http_client is None
            self._client = http_client or httpx.Client(
                timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
                headers={"Content-Type": "application/json; charset=utf-8"},
            )

    @classmethod
    def from_settings(
        cls, settings: "Settings", *, http_client: Optional[httpx.Client] = None
    ) -> "YggdrasilClient":
        """Client for ``YGG_CLIENT_BASE_URL`` with ``YGG_CLIENT_TIMEOUT_SECONDS``."""
        return cls(
            settings.client_base_url,
            http_client=http_client,
            timeout=settings.client_timeout_seconds,
        )

    @classmethod
    def local(cls, authority: TokenAuthority) -> "YggdrasilClient":
        """Client that calls ``authority`` directly, for tests and offline mode."""
        return cls(authority=authority)

    @property
    def is_local(self) -> bool:
        return self._authority is not None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "YggdrasilClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def authenticate(
        self,
        username: str,
        password: str,
        *,
        client_token: Optional[str] = None,
        request_user: bool = False,
    ) -> SessionResponse:
        if self._authority is not None:
            result = self._authority.authenticate(
                username, password, client_token=client_token, request_user=request_user
            )
            return SessionResponse.from_result(result, include_available=True)
        body = AuthenticateRequest(
            username=username,
            password=password,
            client_token=client_token,
            request_user=request_user,
            agent=Agent(),
        )
        response = self._post("/authserver/authenticate", body.to_wire())
        return SessionResponse.model_validate(response.json())

    def refresh(
        self,
        access_token: str,
        *,
        client_token: Optional[str] = None,
        request_user: bool = False,
    ) -> SessionResponse:
        if self._authority is not None:
            result = self._authority.refresh(
                access_token, client_token=client_token, request_user=request_user
            )
            return SessionResponse.from_result(result)
        body = RefreshRequest(
            access_token=access_token, client_token=client_token, request_user=request_user
        )
        response = self._post("/authserver/refresh", body.to_wire())
        return SessionResponse.model_validate(response.json())

    def validate(self, access_token: str, *, client_token: Optional[str] = None) -> bool:
        """True on 204; a 403 means the token is not valid and is reported as False."""
        if self._authority is not None:
            return self._authority.validate(access_token, client_token=client_token)
        body = ValidateRequest(access_token=access_token, client_token=client_token)
        try:
            self._post("/authserver/validate", body.to_wire())
        except RemoteServiceError as exc:
            if exc.status_code == 403:
                return False
            raise
        return True

    def invalidate(self, access_token: str, client_token: str) -> None:
        if self._authority is not None:
            self._authority.invalidate(access_token, client_token)
            return
        body = InvalidateRequest(access_token=access_token, client_token=client_token)
        self._post("/authserver/invalidate", body.to_wire())

    def sign_out(self, username: str, password: str) -> None:
        if self._authority is not None:
            self._authority.sign_out(username, password)
            return
        body = SignoutRequest(username=username, password=password)
        self._post("/authserver/signout", body.to_wire())

    def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            # httpx buffers the whole body before returning
            response = self._client.post(url, json=payload)
        except httpx.TimeoutException as exc:
            logger.error("ygg_client_timeout", url=url, error=str(exc))
            raise
        except httpx.HTTPError as exc:
            logger.error("ygg_client_transport_error", url=url, error=str(exc))
            raise
        if response.is_success:
            return response
        raise self._error_from(response)

    @staticmethod
    def _error_from(response: httpx.Response) -> RemoteServiceError:
        try:
            parsed = ErrorResponse.model_validate(response.json())
        except ValueError:
            logger.warning(
                "ygg_client_unparseable_error",
                status_code=response.status_code,
                body_length=len(response.content),
            )
            return RemoteServiceError(
                response.status_code,
                "InternalServerError" if response.status_code >= 500 else "IllegalArgumentException",
                response.text or f"HTTP {response.status_code}",
            )
        return RemoteServiceError(
            response.status_code, parsed.error, parsed.error_message, parsed.cause
        )


__all__ = ["RemoteServiceError", "YggdrasilClient"]
