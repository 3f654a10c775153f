import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardlens.api import health_router, identify_router
from cardlens.config import settings
from cardlens.models.failure import KnownError
from cardlens.services.identification import CardIdentifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the catalog once at startup; a load failure aborts startup."""
    try:
        app.state.identifier = CardIdentifier.from_settings()
    except KnownError as e:
        logger.error("Startup failed: %s (%s)", e.message, e.detail)
        raise
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardlens"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(identify_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Serialize known failures with their classification."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
