"""Async HTTP client for the n8n public REST API."""

import logging
from typing import Any

import httpx

from services.errors import GatewayError

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
API_KEY_HEADER = "X-N8N-API-KEY"


class UpstreamError(GatewayError):
    """Raised when the engine rejects a call or cannot be reached."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        self.detail = message
        if status is None:
            super().__init__(f"n8n API Error: {message}")
        else:
            super().__init__(f"n8n API Error: {status} {message}")


class EngineClient:
    """Authenticated client for the engine's versioned REST API.

    Calls are never retried; every failure surfaces as UpstreamError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
    ):
        """Initialize client with engine URL, API key and default timeout."""
        if not base_url or not base_url.strip():
            raise ValueError("base_url is required")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or None
        self._timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def has_api_key(self) -> bool:
        return self._api_key is not None

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Call ``<base_url>/api/v1<endpoint>`` and return the decoded JSON body."""
        if not endpoint or not endpoint.startswith("/"):
            raise ValueError("endpoint must start with '/'")

        request_headers = {"Content-Type": "application/json"}
        if self._api_key:
            request_headers[API_KEY_HEADER] = self._api_key
        if headers:
            request_headers.update(headers)

        url = f"{self._base_url}{API_PREFIX}{endpoint}"
        response = await self._send(
            method.upper(),
            url,
            body=body,
            params=_clean_params(params),
            headers=request_headers,
            timeout=self._resolve_timeout(timeout),
        )
        return self._decode(response)

    async def post_url(
        self,
        url: str,
        body: Any = None,
        timeout: float | None = None,
    ) -> Any:
        """POST JSON to an absolute URL without engine credentials."""
        if not url or not url.strip():
            raise ValueError("url is required")

        response = await self._send(
            "POST",
            url,
            body=body,
            params=None,
            headers={"Content-Type": "application/json"},
            timeout=self._resolve_timeout(timeout),
        )
        return self._decode(response, allow_text=True)

    async def fetch_url(self, url: str, timeout: float | None = None) -> Any:
        """GET an absolute URL and return its JSON body."""
        if not url or not url.strip():
            raise ValueError("url is required")

        response = await self._send(
            "GET",
            url,
            body=None,
            params=None,
            headers={"Accept": "application/json"},
            timeout=self._resolve_timeout(timeout),
        )
        return self._decode(response)

    def webhook_url(self, path: str | None) -> str:
        return f"{self._base_url}/webhook/{path or ''}"

    def execution_url(self, execution_id: str) -> str:
        return f"{self._base_url}/executions/{execution_id}"

    async def aclose(self) -> None:
        await self._client.aclose()

    def _resolve_timeout(self, timeout: float | None) -> float:
        if timeout is None:
            return self._timeout
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        return timeout

    async def _send(
        self,
        method: str,
        url: str,
        body: Any,
        params: dict[str, Any] | None,
        headers: dict[str, str],
        timeout: float,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method,
                url,
                json=body,
                params=params,
                headers=headers,
                timeout=timeout,
            )
        except httpx.ConnectError as e:
            logger.error(f"n8n API Error: {method} {url}: connection failed: {e}")
            raise UpstreamError(f"Connection failed: {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"n8n API Error: {method} {url}: timed out: {e}")
            raise UpstreamError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"n8n API Error: {method} {url}: {e}")
            raise UpstreamError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f"n8n API Error: {method} {url}: {response.status_code} {message}")
            raise UpstreamError(message, status=response.status_code)

        return response

    def _decode(self, response: httpx.Response, allow_text: bool = False) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            if allow_text:
                return response.text
            raise UpstreamError(f"Invalid response: {e}", status=response.status_code) from e


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    """Drop unset query parameters and render booleans the way the engine expects."""
    if not params:
        return None
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned or None


def _error_message(response: httpx.Response) -> str:
    """Prefer the engine's JSON error message over the bare reason phrase."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.reason_phrase or response.text or "Unknown error"
