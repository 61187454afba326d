"""FastAPI application entry point."""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lingua_coach.api.routes import router, tools_router
from lingua_coach.config import Settings, get_settings
from lingua_coach.logging_config import configure_logging

logger = structlog.get_logger()

_OPEN_PATHS = ("/api/health",)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API application.

    Args:
        settings: Application settings. Defaults to the cached singleton.
    """
    configure_logging()
    settings = settings or get_settings()

    app = FastAPI(title="Lingua Coach", version="0.1.0")
    _allowed_origins_env = os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000"
    )
    allowed_origins = [o.strip() for o in _allowed_origins_env.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(tools_router)

    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        """Optional APP_SECRET authentication via the X-App-Secret header."""
        if not settings.app_secret or request.url.path in _OPEN_PATHS:
            return await call_next(request)
        if request.headers.get("X-App-Secret", "") != settings.app_secret:
            logger.warning("unauthorized_request", path=request.url.path)
            return JSONResponse({"error": "Unauthorized"}, status_code=401)
        return await call_next(request)

    return app


def main() -> None:
    """Run the application."""
    settings = get_settings()
    uvicorn.run(
        "lingua_coach.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
