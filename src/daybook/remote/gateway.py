"""HTTP client for the drivers REST API."""

import logging
from decimal import Decimal
from typing import Any, Optional

import httpx

from daybook.domain.errors import NetworkUnavailable, RemoteError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.drivers.alqabasy.online/api/v1"
# Short on purpose: a sluggish network is treated as offline
DEFAULT_TIMEOUT = 8.0


class RemoteGateway:
    """Thin wrapper around the drivers API.

    Transport failures and timeouts raise NetworkUnavailable; error
    responses raise RemoteError with the server's feedback text.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the gateway.

        Args:
            base_url: API base URL
            token: Optional bearer token attached to every request
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self.client.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkUnavailable(f"{method} {path} timed out after {self.timeout}s") from e
        except httpx.TransportError as e:
            raise NetworkUnavailable(f"{method} {path} failed: {e}") from e

        if response.is_error:
            raise RemoteError(response.status_code, _feedback(response))

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    # Auth
    def login(self, mobile: str, password: str) -> str:
        """Exchange credentials for an access token."""
        data = self._request("POST", "/auth/login", json={"mobile": mobile, "password": password})
        if not data or "accessToken" not in data:
            raise RemoteError(200, "Login response did not include an access token")
        return data["accessToken"]

    def register(self, full_name: str, short_name: str, mobile: str, password: str) -> Any:
        """Create a driver account on the server."""
        return self._request(
            "POST",
            "/auth/register",
            json={
                "fullName": full_name,
                "shortName": short_name,
                "mobile": mobile,
                "password": password,
            },
        )

    def logout(self) -> None:
        self._request("POST", "/auth/logout")

    def refresh(self) -> str:
        data = self._request("POST", "/auth/refresh")
        return data["accessToken"]

    # Day
    def open_day(self, idempotency_key: Optional[str] = None) -> Any:
        return self._request("POST", "/driver/day/open", idempotency_key=idempotency_key)

    def close_day(self, idempotency_key: Optional[str] = None) -> Any:
        return self._request("POST", "/driver/day/close", idempotency_key=idempotency_key)

    def get_current_day(self) -> Any:
        return self._request("GET", "/driver/day/current")

    # Transactions
    def create_transaction(
        self,
        amount: Decimal,
        type: str,
        description: str,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        """Append a ledger row on the server. ``type`` is 'income' or 'expense'."""
        return self._request(
            "POST",
            "/transactions",
            json={"amount": float(amount), "type": type, "description": description},
            idempotency_key=idempotency_key,
        )

    def list_transactions(self) -> list[dict[str, Any]]:
        return self._request("GET", "/transactions") or []


def _feedback(response: httpx.Response) -> Optional[str]:
    """Extract the server's human readable error text, if any."""
    try:
        data = response.json()
    except ValueError:
        return response.text or None
    if isinstance(data, dict):
        return data.get("feedback") or data.get("message")
    return None
