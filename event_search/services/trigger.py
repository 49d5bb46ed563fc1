"""Trigger the external ingestion workflow through its webhook."""

from __future__ import annotations

import logging

import requests

from ..clients.workflow_session import get_session
from ..config import TRIGGER_TIMEOUT_SECONDS, WORKFLOW_WEBHOOK_SECRET, WORKFLOW_WEBHOOK_URL
from ..models.execution import ScrapeQuery
from .signature import query_payload

logger = logging.getLogger(__name__)


class WorkflowTriggerClient:
    """POSTs scrape requests to the workflow webhook.

    :meth:`trigger` never raises: non-2xx responses, timeouts and transport
    errors are logged and reported as ``False``.
    """

    def __init__(
        self,
        url: str = WORKFLOW_WEBHOOK_URL,
        secret: str | None = WORKFLOW_WEBHOOK_SECRET,
        timeout: float = TRIGGER_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = get_session()
        return self._session

    def trigger(self, query: ScrapeQuery, execution_id: str) -> bool:
        """Return ``True`` only if the webhook answered with a 2xx status."""
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["Authorization"] = f"Bearer {self.secret}"

        body = {"query": query_payload(query), "execution_id": execution_id}

        try:
            response = self.session.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.Timeout:
            logger.error("Workflow webhook timed out after %.0fs", self.timeout)
            return False
        except requests.RequestException as exc:
            logger.error("Workflow webhook trigger failed: %s", exc)
            return False

        if not 200 <= response.status_code < 300:
            logger.error(
                "Workflow webhook returned status %s: %s", response.status_code, response.reason
            )
            return False

        logger.info("Triggered workflow for execution %s", execution_id)
        return True

__all__ = ["WorkflowTriggerClient"]
