"""
idCashier API - Main Application.

FastAPI application with CORS enabled for the POS frontend.
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from domain.errors import PosError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="idCashier API",
    description="REST API for the idCashier point of sale",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError) -> JSONResponse:
    """Render application errors as ErrorResponse."""
    if exc.status_code >= 500:
        logger.error(exc.message, extra={"path": request.url.path, "error_type": type(exc).__name__})
    else:
        logger.info(exc.message, extra={"path": request.url.path, "error_type": type(exc).__name__})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "idcashier-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "idCashier API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import (
    auth,
    catalog,
    customers,
    dashboard,
    reports,
    sales,
    settings,
    subscription,
    users,
)

app.include_router(auth.router, prefix="/api/v1", tags=["Auth"])
app.include_router(catalog.router, prefix="/api/v1", tags=["Catalog"])
app.include_router(customers.router, prefix="/api/v1", tags=["Customers"])
app.include_router(sales.router, prefix="/api/v1", tags=["Sales"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
app.include_router(settings.router, prefix="/api/v1", tags=["Settings"])
app.include_router(subscription.router, prefix="/api/v1", tags=["Subscription"])
app.include_router(dashboard.router, prefix="/api/v1", tags=["Dashboard"])
app.include_router(users.router, prefix="/api/v1", tags=["Users"])
