from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from historygraph.api.middleware import RequestLoggingMiddleware
from historygraph.api.routes import graph
from historygraph.config import settings
from historygraph.storage.session_store import close_session_store, init_session_store

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create and discard the in-process graph sessions."""
    logger.info("starting_up", app=settings.app_name, version=settings.app_version)

    init_session_store()
    logger.info(
        "session_store_ready",
        window_size=settings.graph_window_size,
        chronological_edges=settings.graph_chronological_edges,
    )

    logger.info("startup_complete")
    yield

    logger.info("shutting_down")
    close_session_store()
    logger.info("shutdown_complete")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Windowed, laid-out graphs of workflow execution histories.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# ── Middleware ────────────────────────────────────────────
# Order matters: outermost middleware runs first on request, last on response.

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Exception Handlers ───────────────────────────────────

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred.",
            "code": "INTERNAL_ERROR",
        },
    )


# ── Health Check ─────────────────────────────────────────

@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
    }


# ── Routers ──────────────────────────────────────────────

app.include_router(graph.router, prefix="/graph", tags=["Graph"])
