"""HTTP client for the ipapi.co lookup endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import requests

from .config import LOOKUP_BASE_URL, REQUEST_TIMEOUT, USER_AGENT
from .errors import InvalidTargetError, MalformedResponseError, TransportError

logger = logging.getLogger(__name__)


class LookupService:
    """One GET per lookup, no retries.

    An empty target resolves the caller's own address; anything else is
    forwarded as-is in the URL path. A body carrying the service's error flag
    is returned untouched for the validator to classify.
    """

    def __init__(
        self,
        base_url: str = LOOKUP_BASE_URL,
        timeout: float | None = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({"User-Agent": USER_AGENT})
        return self._session

    def build_url(self, target: str = "") -> str:
        if not target:
            return f"{self.base_url}/json/"
        try:
            path = quote(target, safe=":")
        except UnicodeEncodeError as exc:
            # Undecodable argv bytes arrive as lone surrogates
            raise InvalidTargetError() from exc
        return f"{self.base_url}/{path}/json/"

    def fetch_json(self, target: str = "") -> Any:
        """Blocking fetch of the decoded JSON body for *target*."""
        url = self.build_url(target)
        logger.debug("GET %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Failed to fetch ({exc.__class__.__name__})") from exc

        if not resp.ok:
            raise TransportError(f"Failed to fetch (HTTP {resp.status_code})")

        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponseError("response body is not JSON") from exc

    async def fetch(self, target: str = "") -> Any:
        """Awaitable fetch; the request runs in a worker thread."""
        return await asyncio.to_thread(self.fetch_json, target)
