"""Async client for the Zoom REST API.

A thin layer over ``httpx.AsyncClient``: every request goes through the
ApiRetryService so rate-limited calls are retried per the server's
Retry-After hint, and is raced against the caller's cancellation token.
Error responses are raised as ApiError.
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from zoomnet.core.cancellation import CancellationToken
from zoomnet.domain.errors import ApiError
from zoomnet.infrastructure.resilience.api_retry import ApiRetryService

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.zoom.us/v2"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ApiClient:
    """Sends JSON requests to the API on behalf of one access token."""

    def __init__(
        self,
        access_token: str,
        retry_service: ApiRetryService,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        proxy: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initializes the ApiClient.

        Args:
            access_token: Bearer token sent with every request.
            retry_service: Applies the retry policy to each request.
            base_url: Root URL of the API.
            timeout: Per-request timeout in seconds.
            proxy: Optional proxy URL (e.g. a local debugging proxy).
            transport: Optional httpx transport, used by tests.
        """
        if not access_token:
            raise ValueError("An access token is required")
        self.retry_service = retry_service
        client_kwargs: Dict[str, Any] = {
            "base_url": base_url.rstrip("/") + "/",
            "headers": {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            "timeout": timeout,
        }
        if proxy:
            client_kwargs["proxy"] = proxy
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.AsyncClient(**client_kwargs)
        logger.info(f"ApiClient initialized for {base_url} (proxy={proxy or 'None'})")

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Optional[Any] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> Any:
        """Sends one logical request and decodes the JSON answer.

        Returns:
            The decoded body, or None when the response has no content.

        Raises:
            ApiError: For any status code >= 400.
            MaxRetryError: If still rate limited after all retries.
            JobCancelledError: If cancellation is requested in flight.
        """
        cancellation = cancellation or CancellationToken()
        endpoint = f"{method.upper()} {path}"

        async def send() -> httpx.Response:
            return await cancellation.guard(
                self._http.request(method, path.lstrip("/"), params=params, json=json)
            )

        response = await self.retry_service.execute_with_retry(send, endpoint, cancellation)
        if response.status_code >= 400:
            raise self._to_api_error(response)
        if not response.content:
            return None
        return response.json()

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None, cancellation: Optional[CancellationToken] = None) -> Any:
        return await self.request("GET", path, params=params, cancellation=cancellation)

    async def post(self, path: str, json: Optional[Any] = None, cancellation: Optional[CancellationToken] = None) -> Any:
        return await self.request("POST", path, json=json, cancellation=cancellation)

    async def patch(self, path: str, json: Optional[Any] = None, cancellation: Optional[CancellationToken] = None) -> Any:
        return await self.request("PATCH", path, json=json, cancellation=cancellation)

    async def delete(self, path: str, params: Optional[Mapping[str, Any]] = None, cancellation: Optional[CancellationToken] = None) -> Any:
        return await self.request("DELETE", path, params=params, cancellation=cancellation)

    @staticmethod
    def _to_api_error(response: httpx.Response) -> ApiError:
        # Zoom error bodies look like {"code": 1001, "message": "User does not exist: ..."}
        message = response.reason_phrase or "Request failed"
        code = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = str(body.get("message") or message)
            code = body.get("code")
        logger.debug(f"API error {response.status_code} for {response.request.method} {response.request.url}: {message}")
        return ApiError(response.status_code, message, code)
