"""Transport gateway: the single chokepoint for every backend call.

Attaches the JSON content type and, when a session is active, the bearer
token; turns every failure into an ApiError the caller can inspect without
touching HTTP internals.
"""

import json
import logging
import os
from typing import Any, Callable, Optional

import httpx
from dotenv import load_dotenv

from auth import Session
from errors import ApiError

load_dotenv()

logger = logging.getLogger(__name__)

# Backend configuration
DEFAULT_API_BASE_URL = "https://api.example.com"
API_BASE_URL = os.getenv("CAMPUS_EVENTS_API_URL") or DEFAULT_API_BASE_URL
REQUEST_TIMEOUT_SECONDS = float(os.getenv("CAMPUS_EVENTS_TIMEOUT", "10"))

GENERIC_ERROR_MESSAGE = "An error occurred"
NETWORK_ERROR_MESSAGE = "Unable to reach the server"
MALFORMED_RESPONSE_MESSAGE = "Received a malformed response from the server"


def error_message(response: httpx.Response) -> str:
    """Best-effort human-readable message from an error response."""
    try:
        payload = response.json()
    except ValueError:
        return GENERIC_ERROR_MESSAGE
    if isinstance(payload, dict):
        for key in ("message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return GENERIC_ERROR_MESSAGE


class Gateway:
    def __init__(
        self,
        session: Session,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        on_auth_failure: Optional[Callable[[ApiError], None]] = None,
    ):
        self._session = session
        self._on_auth_failure = on_auth_failure
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or API_BASE_URL,
            timeout=REQUEST_TIMEOUT_SECONDS,
        )

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def send(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Dispatch one call and return its decoded JSON payload.

        Raises:
            ApiError: on a non-success status (with the server's message when
                it sent one), on a network failure (status 0), or when a
                success response cannot be decoded.
        """
        content = json.dumps(body) if body is not None else None
        logger.debug(f"{method} {endpoint} params={params or {}}")
        try:
            response = await self._client.request(
                method, endpoint, headers=self.headers(), content=content, params=params
            )
        except httpx.TransportError as e:
            logger.warning(f"{method} {endpoint} failed: {e!r}")
            raise ApiError(0, NETWORK_ERROR_MESSAGE) from e

        if not response.is_success:
            error = ApiError(response.status_code, error_message(response))
            logger.warning(f"{method} {endpoint} -> {error}")
            if response.status_code == 401 and self._on_auth_failure:
                self._on_auth_failure(error)
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {endpoint} returned an unparsable body")
            raise ApiError(response.status_code, MALFORMED_RESPONSE_MESSAGE) from e

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
