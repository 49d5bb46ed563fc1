"""Centralised configuration for event_search.

Environment variables are loaded once and all related constants are
grouped by concern for easier maintenance.
"""

from __future__ import annotations

import os
from typing import Dict, Tuple

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Load environment variables from `.env` (if present)
# ---------------------------------------------------------------------------
load_dotenv()

# ---------------------------------------------------------------------------
# Core credentials and endpoints (from environment)
# ---------------------------------------------------------------------------
MONGODB_URI: str | None = os.getenv("MONGODB_URI")
MONGODB_DATABASE: str = os.getenv("MONGODB_DATABASE", "events")
WORKFLOW_WEBHOOK_URL: str = os.getenv(
    "WORKFLOW_WEBHOOK_URL", "http://localhost:5678/webhook/events-scrape"
)
WORKFLOW_WEBHOOK_SECRET: str | None = os.getenv("WORKFLOW_WEBHOOK_SECRET")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8000"))

# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------
EVENTS_COLLECTION: str = "events"
EXECUTIONS_COLLECTION: str = "workflow_executions"

# ---------------------------------------------------------------------------
# Cache freshness and refresh timing
# ---------------------------------------------------------------------------
CACHE_TTL_HOURS: int = 4
POLL_INTERVAL_SECONDS: float = 3.0
READ_PATH_MAX_WAIT_SECONDS: float = 90.0
SYNC_REFRESH_MAX_WAIT_SECONDS: float = 120.0
RUNNING_GRACE_SECONDS: float = 5.0
TRIGGER_TIMEOUT_SECONDS: float = 120.0

# Python-side page cache used by API consumers
RESULT_CACHE_TTL_SECONDS: int = 300

# ---------------------------------------------------------------------------
# Search defaults
# ---------------------------------------------------------------------------
DEFAULT_PAGE_LIMIT: int = 50
EARTH_RADIUS_KM: float = 6371.0
COORDINATE_PRECISION: int = 3

# Recognised cities (Lombardy provincial capitals) and their centre points
RECOGNIZED_CITIES: Dict[str, Tuple[float, float]] = {
    "Milano": (45.4642, 9.1900),
    "Bergamo": (45.6983, 9.6773),
    "Brescia": (45.5416, 10.2118),
    "Como": (45.8081, 9.0852),
    "Cremona": (45.1335, 10.0227),
    "Lecco": (45.8536, 9.3943),
    "Lodi": (45.3142, 9.5034),
    "Mantova": (45.1564, 10.7914),
    "Monza": (45.5845, 9.2744),
    "Pavia": (45.1847, 9.1582),
    "Sondrio": (46.1699, 9.8782),
    "Varese": (45.8206, 8.8251),
}

# ---------------------------------------------------------------------------
# Re-exported names
# ---------------------------------------------------------------------------
__all__ = [
    # credentials / endpoints
    "MONGODB_URI",
    "MONGODB_DATABASE",
    "WORKFLOW_WEBHOOK_URL",
    "WORKFLOW_WEBHOOK_SECRET",
    "LOG_LEVEL",
    # server
    "HOST",
    "PORT",
    # collections
    "EVENTS_COLLECTION",
    "EXECUTIONS_COLLECTION",
    # timing
    "CACHE_TTL_HOURS",
    "POLL_INTERVAL_SECONDS",
    "READ_PATH_MAX_WAIT_SECONDS",
    "SYNC_REFRESH_MAX_WAIT_SECONDS",
    "RUNNING_GRACE_SECONDS",
    "TRIGGER_TIMEOUT_SECONDS",
    "RESULT_CACHE_TTL_SECONDS",
    # search
    "DEFAULT_PAGE_LIMIT",
    "EARTH_RADIUS_KM",
    "COORDINATE_PRECISION",
    "RECOGNIZED_CITIES",
]
