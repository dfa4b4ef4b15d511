"""Session-token authenticated, cancellable HTTP requests.

The blocking ``requests`` call runs in a worker thread via
``asyncio.to_thread`` so engine coroutines suspend only at this boundary.
A request whose token was cancelled while it was in flight raises
``RequestCancelled`` on return; its response is never looked at.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests

from ..model.types import SessionHandle
from .cancellation import CancelToken
from .errors import ErrorKind, RemoteFileError, error_from_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_TOKEN_HEADER = "x-session-token"
DEFAULT_API_PREFIX = "/api/connections"


class SessionGateway:
    """Issues requests scoped to one connection and one session token."""

    def __init__(
        self,
        base_url: str,
        session: SessionHandle | None = None,
        *,
        http: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        token_header: str = DEFAULT_TOKEN_HEADER,
        api_prefix: str = DEFAULT_API_PREFIX,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_header = token_header
        self.api_prefix = "/" + api_prefix.strip("/") if api_prefix.strip("/") else ""
        self._http = http if http is not None else requests.Session()
        self._session = session

    @property
    def session(self) -> SessionHandle | None:
        return self._session

    @property
    def connected(self) -> bool:
        return self._session is not None

    def attach(self, session: SessionHandle) -> None:
        self._session = session

    def detach(self) -> None:
        self._session = None

    def url(self, endpoint: str) -> str:
        if self._session is None:
            raise RemoteFileError(ErrorKind.SESSION_EXPIRED, "No active session")
        return f"{self.base_url}{self.api_prefix}/{self._session.connection_id}{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        token: CancelToken | None = None,
    ) -> requests.Response:
        """Send one request and return the successful response.

        Raises ``RemoteFileError`` for non-2xx responses and transport
        failures, ``RequestCancelled`` when ``token`` was cancelled.
        """
        session = self._session
        if session is None:
            raise RemoteFileError(ErrorKind.SESSION_EXPIRED, "No active session")
        if token is not None:
            token.raise_if_cancelled()

        url = self.url(endpoint)
        headers = {self.token_header: session.token}
        logger.debug("%s %s", method, endpoint)
        try:
            response = await asyncio.to_thread(
                self._http.request,
                method,
                url,
                params=params,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            if token is not None:
                token.raise_if_cancelled()
            logger.warning("%s %s failed: %s", method, endpoint, exc)
            raise RemoteFileError(ErrorKind.NETWORK, f"Unable to connect to server: {exc}") from exc

        if token is not None:
            token.raise_if_cancelled()

        if not response.ok:
            error = error_from_response(response.status_code, _error_body(response))
            logger.warning(
                "%s %s -> %s (%s): %s",
                method,
                endpoint,
                response.status_code,
                error.kind.value,
                error.message,
            )
            raise error
        return response

    def close(self) -> None:
        self._http.close()


def _error_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or response.reason or ""


__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_TOKEN_HEADER", "SessionGateway"]
