"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from api import auth, closed_positions, market_data, portfolio, watchlist
from config import settings
from database import init_db
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup."""
    try:
        init_db()
    except OperationalError:
        logger.error("Database unavailable on startup", exc_info=True)
    yield


app = FastAPI(
    title="Stock Portfolio Tracker",
    description="Personal stock portfolio, watchlist and realized P&L tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(auth.router)
app.include_router(closed_positions.router)
app.include_router(market_data.router)
app.include_router(portfolio.router)
app.include_router(watchlist.router)


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    """A database outage aborts the request without partial writes."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503, content={"detail": "Database unavailable; no changes were saved"}
    )


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
