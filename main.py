import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, settings
from api.admin import router as admin_router
from api.applications import router as applications_router
from api.auth import router as auth_router
from api.payments import router as payments_router
from api.profile import router as profile_router
from services.backend import build_backend
from services.errors import ConfigurationError, LoanDeskError, ValidationError

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _loan_desk_error_handler(request: Request, exc: LoanDeskError):
    body = {"detail": exc.message}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=body)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    app_settings = app_settings or settings
    _configure_logging(app_settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            backend = await build_backend(app_settings)
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e.message}")
            raise
        app.state.backend = backend
        yield
        await backend.close()

    app = FastAPI(
        title=app_settings.app_name,
        description="Loan application intake, payments and review API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins.split(","),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(LoanDeskError, _loan_desk_error_handler)

    app.include_router(auth_router)
    app.include_router(applications_router)
    app.include_router(payments_router)
    app.include_router(profile_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health(request: Request):
        return {"status": "ok", "storage": request.app.state.backend.mode}

    return app


app = create_app()
