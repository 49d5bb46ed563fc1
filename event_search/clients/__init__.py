"""Convenience re-exports for singleton SDK accessors and API clients."""

from .mongodb_client import get_database, get_mongo_client  # noqa: F401
from .workflow_session import get_session as get_workflow_session  # noqa: F401
from .events_api_client import EventsApiClient  # noqa: F401

__all__ = [
    "get_mongo_client",
    "get_database",
    "get_workflow_session",
    "EventsApiClient",
]
