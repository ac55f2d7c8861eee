from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from yggauth.api.schemas import (
    AuthenticateRequest,
    InvalidateRequest,
    RefreshRequest,
    SessionResponse,
    SignoutRequest,
    ValidateRequest,
)
from yggauth.service.authority import TokenAuthority
from yggauth.service.errors import InvalidTokenError

router = APIRouter(prefix="/authserver", tags=["authserver"])


def get_authority(request: Request) -> TokenAuthority:
    """Authority injected into the app by ``create_app``."""
    return request.app.state.authority


# Handlers are plain ``def`` so FastAPI runs them in its threadpool; the
# authority blocks on its own lock and must not stall the event loop.


@router.post("/authenticate")
def authenticate(
    body: AuthenticateRequest, authority: TokenAuthority = Depends(get_authority)
) -> dict:
    """Exchange username/password for an access token bound to the user's profile."""
    result = authority.authenticate(
        body.username,
        body.password,
        client_token=body.client_token,
        request_user=body.request_user,
    )
    return SessionResponse.from_result(result, include_available=True).to_wire()


@router.post("/refresh")
def refresh(body: RefreshRequest, authority: TokenAuthority = Depends(get_authority)) -> dict:
    """Rotate an access token; the client token chain is preserved."""
    result = authority.refresh(
        body.access_token,
        client_token=body.client_token,
        request_user=body.request_user,
    )
    return SessionResponse.from_result(result).to_wire()


@router.post("/validate", status_code=204)
def validate(body: ValidateRequest, authority: TokenAuthority = Depends(get_authority)) -> Response:
    if not authority.validate(body.access_token, client_token=body.client_token):
        raise InvalidTokenError()
    return Response(status_code=204)


@router.post("/invalidate", status_code=204)
def invalidate(
    body: InvalidateRequest, authority: TokenAuthority = Depends(get_authority)
) -> Response:
    authority.invalidate(body.access_token, body.client_token or "")
    return Response(status_code=204)


@router.post("/signout", status_code=204)
def signout(body: SignoutRequest, authority: TokenAuthority = Depends(get_authority)) -> Response:
    authority.sign_out(body.username, body.password)
    return Response(status_code=204)
