"""FastAPI app, CORS, error mapping and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from artlink.config import LOG_LEVEL, STORE_BACKEND, ensure_data_dir

# Configure logging in the worker process (so core INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(levelname)s: %(name)s: %(message)s",
)

from artlink.api.state import AppState, get_state
from artlink.core.errors import (
    ArtlinkError,
    ConflictError,
    ConstraintError,
    NotFoundError,
    StoreError,
    ValidationError,
)

# Import routes after state to avoid circular imports
from artlink.api.routes import artworks, certificates, nfc, profiles

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)

# Most specific first; ConstraintError is a StoreError
_STATUS_BY_ERROR = (
    (ValidationError, 422),
    (ConflictError, 409),
    (ConstraintError, 409),
    (NotFoundError, 404),
    (StoreError, 503),
)


def status_for(exc: ArtlinkError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    if STORE_BACKEND == "json":
        ensure_data_dir()
    logger.info("Record store backend: %s", STORE_BACKEND)
    yield


app = FastAPI(
    title="Artlink API",
    description="Artwork registry: NFC tag binding, certificates and profile handles",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ArtlinkError)
async def artlink_error_handler(request: Request, exc: ArtlinkError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "reason": exc.reason})


@app.get("/healthz")
def healthz():
    return {"ok": True}


app.include_router(artworks.router, prefix="/api/artworks", tags=["artworks"])
app.include_router(certificates.router, prefix="/api/certificates", tags=["certificates"])
app.include_router(nfc.router, prefix="/api/nfc", tags=["nfc"])
app.include_router(profiles.router, prefix="/api/profiles", tags=["profiles"])
