"""
Alert sinks. Delivery is best-effort: failures are logged, never raised.
"""

import logging
from typing import Optional

import aiohttp

from .base import AlertSink
from .http import HttpClient
from ..health import set_component_health
from ..models import Alert

LOG = logging.getLogger(__name__)


class HttpAlertSink(HttpClient, AlertSink):
    """POSTs alerts as JSON to a webhook"""

    def __init__(self, url: str, timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None):
        super().__init__(timeout=timeout, session=session)
        self.url = url

    async def post(self, alert: Alert) -> None:
        try:
            response = await self._send("POST", self.url, json_body=alert.to_payload())
            self._raise_for_status(response, "Alert sink")
            set_component_health("alert_sink", True)
        except Exception as e:
            # Not retried, the next failing tick raises a fresh alert.
            LOG.warning(f"Alert delivery failed: {e}")
            set_component_health("alert_sink", False)


class LoggingAlertSink(AlertSink):
    """Used when no alert endpoint is configured"""

    async def post(self, alert: Alert) -> None:
        LOG.error(f"ALERT: {alert.reason}: {alert.cause}")
