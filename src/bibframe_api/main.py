#!/usr/bin/env python3

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import export_config
from .core.dependencies import get_export_service
from .core.logging import setup_logging
from .models.models import ExportRequest, ExportResponse

logger = logging.getLogger(__name__)

# Process start, reported as uptime by /healthz
_app_start_time = time.time()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup and log the effective export settings"""
    setup_logging()
    logger.info(f"Starting BIBFRAME export service: {export_config.summary()}")
    yield
    logger.info("Shutting down BIBFRAME export service")


app = FastAPI(
    title="BIBFRAME Export API",
    description="API for compiling BIBFRAME editor profiles into RDF/XML",
    version=export_config.APP_VERSION,
    lifespan=lifespan
)

# The editor runs on another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=export_config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Every response names the API version that produced it
@app.middleware("http")
async def add_version_header(request, call_next):
    """Stamp X-API-Version on the response"""
    response = await call_next(request)
    response.headers["X-API-Version"] = export_config.APP_VERSION
    return response

@app.get("/healthz")
async def health_check():
    """Liveness probe with version and build details"""
    now = time.time()
    return {
        "status": "healthy",
        "timestamp": now,
        "uptime": now - _app_start_time,
        "api_version": export_config.APP_VERSION,
        "git_commit": os.getenv("GIT_COMMIT", "unknown"),
        "build_date": os.getenv("BUILD_DATE", "unknown"),
    }


# Export Routes

@app.post("/api/export", response_model=ExportResponse)
async def export_profile(
    request: ExportRequest,
    service=Depends(get_export_service)
):
    """Compile an editor profile into RDF/XML.

    Returns the primary document (compact and pretty-printed), the basic
    document, the MARC conversion subset, the dataset title and contributor,
    and the per-property XML snippets.

    Args:
        request: Profile and per-request cataloger values
        service: Export service dependency
    """
    from .handlers.export import handle_export
    return await handle_export(request, service)


if __name__ == "__main__":
    import uvicorn
    host = os.getenv("API_HOST", "0.0.0.0")  # nosec B104
    port = int(os.getenv("API_PORT", "8000"))
    uvicorn.run(app, host=host, port=port)
