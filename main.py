"""
SURYATRACK Backend API
Surya Namaskar A posture tracking

FastAPI application entry point with WebSocket support for live
landmark streaming.
"""

import logging
import sys
import time
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings

# ============================================
# Configure Root Logger First
# ============================================
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[logging.StreamHandler(sys.stdout)]
)

# Service routers
from yoga_service.router import router as yoga_router, get_services

# Core utilities
from core.websocket import connection_manager
from shared.utils import setup_logger

logger = setup_logger("suryatrack.main", level=logging.DEBUG if settings.DEBUG else logging.INFO)
request_logger = setup_logger("suryatrack.requests", level=logging.DEBUG if settings.DEBUG else logging.INFO)


# ============================================
# Request Logging Middleware
# ============================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all incoming requests and responses with timing."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        query_string = f"?{request.url.query}" if request.url.query else ""

        request_logger.info(f"➡️  {request.method} {request.url.path}{query_string}")
        request_logger.debug(f"    Client: {client_ip}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            if response.status_code < 300:
                status_emoji = "✅"
            elif response.status_code < 400:
                status_emoji = "↪️"
            elif response.status_code < 500:
                status_emoji = "⚠️"
            else:
                status_emoji = "❌"

            request_logger.info(
                f"{status_emoji} {request.method} {request.url.path} → {response.status_code} ({process_time:.1f}ms)"
            )

            return response
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            request_logger.error(
                f"💥 {request.method} {request.url.path} → ERROR: {type(e).__name__}: {e} ({process_time:.1f}ms)"
            )
            request_logger.error(traceback.format_exc())
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown."""
    # ===== STARTUP =====
    logger.info(f"🚀 {settings.APP_NAME} API starting up...")

    await connection_manager.start_heartbeat()

    logger.info(f"✅ {settings.APP_NAME} API ready!")

    yield

    # ===== SHUTDOWN =====
    logger.info(f"👋 {settings.APP_NAME} API shutting down...")

    await connection_manager.stop_heartbeat()

    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="SURYATRACK API",
    description="Surya Namaskar A posture classification and sequence tracking",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "suryatrack-api",
        "websocket_connections": connection_manager.connection_count
    }


@app.get("/stats")
async def get_stats():
    """Get service statistics."""
    _, session_handler = get_services()
    return {
        "websocket": connection_manager.get_stats(),
        "sessions": {
            "active": session_handler.active_session_count,
            "max": session_handler.max_sessions
        }
    }


app.include_router(yoga_router, prefix="/api/yoga", tags=["Yoga Service"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
