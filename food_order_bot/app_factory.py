"""
Application factory for the food order bot.

Builds the FastAPI application with its middleware, rate limiter and
routers. main.py calls create_app() once at import time; tests build
their own app through the same function.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import config
from .middleware import RequestIDMiddleware
from .routes import (
    admin_notifications_router,
    admin_orders_router,
    limiter,
    whatsapp_router,
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """
    Create a FastAPI application.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Food Order Bot API",
        description="WhatsApp food ordering bot with restaurant order management",
        version="0.1.0",
    )

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Configure rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(whatsapp_router)
    app.include_router(admin_orders_router)
    app.include_router(admin_notifications_router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "twilio": "configured" if config.is_twilio_configured() else "simulated",
            "session_backend": config.SESSION_BACKEND,
        }

    logger.info(
        "Application created (twilio %s, %s sessions)",
        "configured" if config.is_twilio_configured() else "simulated",
        config.SESSION_BACKEND,
    )

    return app


def run(
    host: str = "0.0.0.0",
    port: Optional[int] = None,
    reload: bool = False,
) -> None:
    """
    Run the application with uvicorn.

    Args:
        host: Host to bind to
        port: Port to run on (defaults to the PORT env var, then 8000)
        reload: Enable auto-reload for development
    """
    import os
    import uvicorn

    if port is None:
        port = int(os.getenv("PORT", "8000"))

    logger.info("Starting server on %s:%d", host, port)

    if reload:
        # Reload needs an import string rather than an app object
        uvicorn.run("food_order_bot.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(create_app(), host=host, port=port)
