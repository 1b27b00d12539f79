"""
FastAPI application exposing the developer stats dashboard data.

The report variant and bucket width come from ``DEVSTATS_VARIANT`` and
``DEVSTATS_GRANULARITY``.

Usage:
    uvicorn devstats.api:app --reload --port 8000
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse

from .ado_client import AdoClient
from .config import load_config
from .errors import DevStatsError
from .policy import resolve_policy
from .service import DevStatsService

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "An unknown server error occurred."


def build_service() -> DevStatsService:
    """Build a service from environment configuration.

    Raises:
        ConfigurationError: If connection settings are missing or the
            configured variant or granularity is unknown.
    """
    config = load_config()
    policy = resolve_policy(config.variant, config.granularity)
    logger.info(
        "Configured dev stats service",
        extra={"variant": config.variant, "granularity": policy.granularity.value},
    )
    return DevStatsService(client_factory=lambda: AdoClient(config=config), policy=policy)


def create_app(service: Optional[DevStatsService] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Developer Stats Dashboard API",
        description="Per-developer work item statistics pulled from Azure DevOps",
        version="0.1.0",
    )

    service_lock = threading.Lock()
    state: Dict[str, Optional[DevStatsService]] = {"service": service}

    def get_service() -> DevStatsService:
        with service_lock:
            if state["service"] is None:
                state["service"] = build_service()
            return state["service"]

    @app.get("/health", tags=["Health"])
    def health_check() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/dev-stats", tags=["Stats"])
    def dev_stats() -> Any:
        """Fetch work items, aggregate them and return the dashboard summary."""
        logger.info("Received dev stats request")
        try:
            summary = get_service().refresh()
        except DevStatsError as exc:
            logger.error("Dev stats request failed", extra={"error": str(exc)})
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"message": str(exc)},
            )
        except Exception:
            logger.exception("Unexpected error while building dev stats")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"message": UNKNOWN_ERROR_MESSAGE},
            )

        return summary.to_dict()

    return app


app = create_app()
