import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from accounts.core.config import Settings, get_settings
from accounts.core.errors import return_error
from accounts.routers import users as users_router


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (anti clickjacking, sniffing, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _allowed_origins(settings: Settings) -> list[str]:
    allowed_cors = {settings.public_base_url}
    if settings.app_env != "prod":
        allowed_cors.update(
            {
                "http://localhost:4200",
                "http://127.0.0.1:4200",
                "http://localhost:8000",
                "http://127.0.0.1:8000",
            }
        )
    return sorted(origin for origin in allowed_cors if origin)


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (``--factory``)."""
    settings = get_settings()
    _configure_logging(settings)

    app = FastAPI(title="Accounts API")
    allowed_cors = _allowed_origins(settings)
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_cors,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return return_error(exc)

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(users_router.router)
    return app


app = create_app()
