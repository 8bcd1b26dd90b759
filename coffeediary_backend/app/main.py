# main.py  (backend entrypoint)
import importlib
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.routing import APIRoute

from coffeediary_backend.app.config import Settings, validate_settings
from coffeediary_backend.app.errors import (
    AuthError, AuthErrorKind, AuthRequired, BackendError, ConfigError, FormValidationError,
)
from coffeediary_backend.app.services.backend import Backend, build_backend
from coffeediary_backend.app.services.router_helpers.view import page_view
from coffeediary_backend.app.utils.logs import get_logger, set_level

log = get_logger("app")

# page routers, mounted without a prefix (routes are the page paths)
ROUTERS = ("auth", "home", "record", "entries", "dash", "profile", "media")


def check_settings(settings: Settings) -> None:
    """Log every config problem and refuse to start if there are any."""
    problems = validate_settings(settings)
    for p in problems:
        log.error("config: %s", p)
    if problems:
        raise ConfigError("; ".join(problems))


def _include(app: FastAPI, module_name: str) -> None:
    m = importlib.import_module(f"coffeediary_backend.app.routers.{module_name}")
    app.include_router(m.router)
    log.info("mounted %s", module_name)


def _install_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthRequired)
    async def _auth_required(request: Request, exc: AuthRequired):
        return RedirectResponse("/auth", status_code=303)

    @app.exception_handler(BackendError)
    async def _backend_error(request: Request, exc: BackendError):
        log.warning("%s %s: backend error: %s", request.method, request.url.path, exc.message)
        return JSONResponse(page_view(error=exc.message), status_code=502)

    @app.exception_handler(FormValidationError)
    async def _form_error(request: Request, exc: FormValidationError):
        return JSONResponse(page_view(error=exc.message, field=exc.field), status_code=422)

    @app.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError):
        status = 401 if exc.kind is AuthErrorKind.INVALID_CREDENTIALS else 400
        return JSONResponse(
            page_view(error=exc.user_message(), code=exc.kind.value), status_code=status
        )


def create_app(settings: Optional[Settings] = None, backend: Optional[Backend] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    set_level(settings.log_level)
    check_settings(settings)
    backend = backend or build_backend(settings)

    app = FastAPI(title="Coffee Diary API")
    app.state.settings = settings
    app.state.backend = backend

    # --- CORS for the frontend dev server ------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_handlers(app)
    for name in ROUTERS:
        _include(app, name)

    @app.get("/health")
    async def health():
        return {"ok": True, "backend": backend.kind, "config": "ok"}

    @app.on_event("startup")
    async def _log_routes():
        for r in app.router.routes:
            if isinstance(r, APIRoute):
                log.debug("%-10s %s", ",".join(sorted(r.methods)), r.path)
        log.info("coffee diary up (%s backend)", backend.kind)

    @app.on_event("shutdown")
    async def _close_backend():
        backend.close()

    return app


def __getattr__(name: str):
    # `uvicorn coffeediary_backend.app.main:app` builds from the environment on first access
    if name == "app":
        globals()["app"] = create_app()
        return globals()["app"]
    raise AttributeError(name)
