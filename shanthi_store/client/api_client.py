from typing import Any, Optional

import httpx
import structlog

from shanthi_store.client.errors import (
    GENERIC_FAILURE_MESSAGE,
    AlreadyExists,
    AuthRequired,
    NetworkOrServerError,
)
from shanthi_store.client.session import AuthSession

logger = structlog.get_logger()


class BearerAuth(httpx.Auth):
    """Attach the session token to every outgoing request."""

    def __init__(self, session: AuthSession):
        self.session = session

    def auth_flow(self, request: httpx.Request):
        if self.session.token:
            request.headers["Authorization"] = f"Bearer {self.session.token}"
        yield request


class ApiClient:
    """Thin async wrapper over the storefront REST API.

    Returns the decoded `data` member of the response envelope and maps
    failures onto the client error taxonomy.
    """

    def __init__(
        self,
        session: AuthSession,
        base_url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            auth=BearerAuth(session),
            transport=transport,
        )

    async def request(self, method: str, path: str, json: Any = None, params: Optional[dict] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("api_transport_error", method=method, path=path, error=str(exc))
            raise NetworkOrServerError(GENERIC_FAILURE_MESSAGE) from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        message = body.get("message") or GENERIC_FAILURE_MESSAGE

        if response.status_code == 401:
            raise AuthRequired(message)
        if response.status_code == 409:
            raise AlreadyExists(message, body)
        if response.is_error:
            logger.warning("api_request_failed", method=method, path=path, status_code=response.status_code)
            raise NetworkOrServerError(message, response.status_code)

        return body.get("data")

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
