"""
Events API Router
Search, categories and manual workflow refresh endpoints
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ..config import DEFAULT_PAGE_LIMIT, RECOGNIZED_CITIES
from ..models.execution import ScrapeQuery
from ..models.search import EventFilters
from ..services.cache_state import CacheStoreError
from ..services.categories import list_categories
from ..utils.datetime_utils import end_of_year_iso, today_iso
from ..workflows.refresh import RefreshOrchestrator
from ..workflows.search_pipeline import EventSearchPipeline
from .schemas import RefreshRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["events"])


@lru_cache(maxsize=1)
def get_orchestrator() -> RefreshOrchestrator:
    return RefreshOrchestrator()


def get_pipeline(orchestrator: RefreshOrchestrator = Depends(get_orchestrator)) -> EventSearchPipeline:
    return EventSearchPipeline(orchestrator)


@router.get("/events")
def search_events(
    search: str = "",
    category: str = "",
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    radius: Optional[float] = None,
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    location: str = "",
    pipeline: EventSearchPipeline = Depends(get_pipeline),
):
    """
    Search the event catalog

    Serves ingested events and keeps them fresh:
    1. Cache check for the query signature
    2. Catalog query (radius filter applied in memory)
    3. Synchronous refresh when the first page is empty
    4. Background refresh when the first page is stale
    """
    filters = EventFilters(
        search=search,
        category=category,
        date_from=date_from,
        date_to=date_to,
        lat=lat,
        lng=lng,
        radius=radius,
        location=location,
        limit=limit,
        offset=offset,
    )
    try:
        result = pipeline.search(filters)
    except ValueError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})
    except Exception as e:
        logger.error("[API] Error fetching events: %s", e, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch events"},
        )
    return result.to_dict()


@router.get("/categories")
def get_categories():
    """Distinct categories with event counts"""
    try:
        return list_categories()
    except Exception as e:
        logger.error("Error fetching categories: %s", e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to fetch categories"},
        )


@router.post("/refresh")
def refresh(
    body: Optional[RefreshRequest] = None,
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
):
    """
    Manually refresh catalog data

    Can be called by hand or from a cron job. Defaults to every recognised
    city from today to the end of the year; with ``wait`` the call blocks
    until the workflow completes or times out.
    """
    body = body or RefreshRequest()
    query = ScrapeQuery(
        cities=body.cities or list(RECOGNIZED_CITIES),
        date_from=body.date_from or today_iso(),
        date_to=body.date_to or end_of_year_iso(),
    )
    logger.info("[Refresh] Triggering workflow for global data refresh: %s", query)

    try:
        outcome = orchestrator.trigger_manual_refresh(query, wait=body.wait)
    except CacheStoreError as e:
        logger.error("[Refresh] Execution store unavailable: %s", e)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "error": "Execution store unavailable"},
        )

    if not outcome.triggered:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": "Failed to trigger workflow"},
        )

    if body.wait:
        if outcome.completed:
            return {
                "success": True,
                "message": "Data refresh completed successfully",
                "executionId": outcome.execution_id,
            }
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={
                "success": False,
                "message": "Workflow timeout - check execution status manually",
                "executionId": outcome.execution_id,
            },
        )

    return {
        "success": True,
        "message": "Data refresh triggered successfully",
        "executionId": outcome.execution_id,
        "note": "Refresh is running in background",
    }


@router.get("/refresh")
def refresh_usage():
    """Usage help for the refresh endpoint"""
    return {
        "message": "Data refresh endpoint",
        "usage": {
            "method": "POST",
            "body": {
                "cities": "Array<string> (optional) - Cities to refresh, defaults to all recognised cities",
                "dateFrom": "string (optional) - Start date in YYYY-MM-DD format, defaults to today",
                "dateTo": "string (optional) - End date in YYYY-MM-DD format, defaults to end of year",
                "wait": "boolean (optional) - Wait for completion, defaults to false",
            },
        },
    }
