from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request

from yggauth.api.error_handling import register_exception_handlers
from yggauth.api.routes import router
from yggauth.config import Settings, get_settings
from yggauth.logging import get_logger, set_request_id
from yggauth.service.authority import TokenAuthority
from yggauth.storage.memory import MemoryTokenAuthority

logger = get_logger(__name__)

__version__ = "0.1.0"


def create_app(
    authority: Optional[TokenAuthority] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the Yggdrasil HTTP adapter around ``authority``.

    Without an explicit authority a fresh, empty ``MemoryTokenAuthority`` is
    created; seed it through ``app.state.authority`` before serving.
    """
    settings = settings or get_settings()
    if authority is None:
        authority = MemoryTokenAuthority(preferred_language=settings.preferred_language)

    app = FastAPI(title="Yggdrasil Authority", version=__version__)
    app.state.authority = authority
    app.state.settings = settings

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Tag the request's log lines with X-Request-ID (client supplied or generated)."""
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/")
    async def status() -> Dict[str, Any]:
        return {
            "status": "ok",
            "message": f"{settings.server_name} authentication server is running",
            "version": __version__,
        }

    register_exception_handlers(app)
    app.include_router(router)

    logger.info(
        "app_created",
        authority=type(authority).__name__,
        server_name=settings.server_name,
    )
    return app
