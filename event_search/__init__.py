"""Top-level package for the event-search project.

Exposes the ASGI app factory so callers can do
`uvicorn event_search:app` or `from event_search import create_app`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("event-search")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .api import app, create_app  # convenience re-export

__all__ = ["app", "create_app", "__version__"]
