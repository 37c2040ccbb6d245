"""
HTTP transport for EPP-over-XHR commands.

The console speaks to a single POST endpoint. The blocking `requests` call
runs in a worker thread so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import requests

from registrar_console.domains.errors import TransportFailure
from registrar_console.utils.config import base_url, request_timeout_seconds
from registrar_console.utils.logger import get_logger

logger = get_logger()

_MAX_DEBUG_BODY_CHARS = 4000


class Transport(Protocol):
    """Anything that can deliver one request body and return (status_code, body)."""

    async def send(self, uri: str, body: str, headers: dict[str, str]) -> tuple[int, str]:
        ...


class HttpTransport:
    """
    `requests`-backed transport. One `requests.Session` keeps the console's
    transport login cookies across commands.
    """

    def __init__(
        self,
        base: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base if base is not None else base_url()).rstrip("/")
        self.timeout = timeout if timeout is not None else request_timeout_seconds()
        self._session = session or requests.Session()

    async def send(self, uri: str, body: str, headers: dict[str, str]) -> tuple[int, str]:
        return await asyncio.to_thread(self._post, uri, body, headers)

    def _post(self, uri: str, body: str, headers: dict[str, str]) -> tuple[int, str]:
        url = f"{self.base_url}{uri}"
        try:
            logger.debug("POST %s (%d bytes)", url, len(body))
            response = self._session.post(
                url,
                data=body.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            error_type = type(e).__name__
            logger.exception("POST %s failed: %s (%s)", url, e, error_type)
            if isinstance(e, requests.exceptions.ConnectionError):
                detail = f"Connection failed: could not reach {url}."
            elif isinstance(e, requests.exceptions.Timeout):
                detail = f"Request timed out after {self.timeout:g} seconds."
            else:
                detail = f"{error_type}: {e}"
            raise TransportFailure(detail) from e

        status_code = response.status_code
        logger.info("POST %s responded with status: %s", url, status_code)
        text = response.text or ""
        if not 200 <= status_code < 300:
            logger.debug("Error body: %s", text[:_MAX_DEBUG_BODY_CHARS])
        return status_code, text
