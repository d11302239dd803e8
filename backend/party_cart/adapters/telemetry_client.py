from typing import Dict, Optional

import requests

from party_cart.config import settings


class TelemetryError(Exception):
    """The collector could not be reached or rejected the report."""
    pass


class AbandonedCartClient:
    """
    HTTP client for the abandoned-cart collector.
    send() posts the payload as JSON and returns the decoded response body.
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.url = url or settings.ABANDONED_CART_URL
        self.timeout = settings.TELEMETRY_TIMEOUT_SECONDS if timeout is None else timeout
        self.http = session or requests.Session()

    def send(self, payload: Dict) -> Dict:
        try:
            r = self.http.post(self.url, json=payload, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise TelemetryError(f"abandoned-cart report failed: {e}") from e
        try:
            return r.json()
        except ValueError:
            return {}

    def health_check(self) -> bool:
        return bool(self.url)
