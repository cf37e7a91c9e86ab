"""
Remote resource service: parse, check the whitelist, then fetch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from urllib.parse import urlsplit

import httpx

from . import whitelist as wl
from .config import FetchConfig, load_fetch_config
from .errors import InvalidHostError, MalformedInputError, SecurityError
from .fetch import BoundedRemoteFetcher
from .whitelist import WhitelistSet

_LOG = logging.getLogger("remotefetch.service")

ALLOWED_SCHEMES = frozenset({"http", "https"})


def parse_identifier(identifier: object) -> tuple[str, str]:
    """
    Parse an identifier into (url, host). Only absolute http(s) URLs with a
    host are accepted. Raises MalformedInputError otherwise.
    """
    url = str(identifier).strip() if identifier is not None else ""
    if not url:
        raise MalformedInputError("Empty identifier")
    try:
        parts = urlsplit(url)
        host = parts.hostname
        _ = parts.port  # raises ValueError on a bad port
    except ValueError as e:
        raise MalformedInputError(f"Invalid URL: {url!r}") from e

    scheme = parts.scheme.lower()
    if not scheme or not parts.netloc:
        raise MalformedInputError(f"Not an absolute URL: {url!r}")
    if scheme not in ALLOWED_SCHEMES:
        raise MalformedInputError(f"Unsupported scheme: {scheme}")
    if not host:
        raise MalformedInputError(f"URL has no host: {url!r}")

    # Catches what urlsplit lets through but httpx refuses to send.
    try:
        httpx.URL(url)
    except httpx.InvalidURL as e:
        raise MalformedInputError(f"Invalid URL: {e}") from e
    return url, host


class RemoteResourceService:
    """
    Fetches remote resources from whitelisted hosts.

    The whitelist and config are fixed at construction and shared read-only
    by every call to get(), so concurrent calls need no locking.
    """

    # Request prefix the service is mounted under.
    key = "remote.axd"
    is_file_local_service = False

    def __init__(
        self,
        whitelist: WhitelistSet,
        config: FetchConfig | None = None,
        fetcher: BoundedRemoteFetcher | None = None,
    ) -> None:
        self._whitelist = whitelist
        self._config = config or FetchConfig()
        self._fetcher = fetcher or BoundedRemoteFetcher()

    @property
    def whitelist(self) -> WhitelistSet:
        return self._whitelist

    @property
    def config(self) -> FetchConfig:
        return self._config

    def check_safe_location(self, host: str) -> None:
        """Raise SecurityError unless host is whitelisted."""
        try:
            allowed = wl.is_allowed(host, self._whitelist)
        except InvalidHostError as e:
            raise SecurityError(f"Invalid host: {host!r}") from e
        if not allowed:
            raise SecurityError(
                f"Remote downloads are not allowed from this domain: {host}"
            )

    async def get(self, identifier: object) -> bytes:
        """
        Return the bytes of the resource at identifier.
        Raises MalformedInputError or SecurityError before any request is
        made; FetchTimeout, SizeLimitExceeded or NetworkError from the fetch.
        """
        start_time = time.monotonic()
        try:
            url, host = parse_identifier(identifier)
        except MalformedInputError as e:
            _LOG.info(
                "reason=malformed_input url=%r error=%s elapsed_sec=%.3f",
                identifier,
                e,
                time.monotonic() - start_time,
            )
            raise

        try:
            self.check_safe_location(host)
        except SecurityError:
            _LOG.info(
                "reason=security_rejected url=%s host=%s elapsed_sec=%.3f",
                url,
                host,
                time.monotonic() - start_time,
            )
            raise

        return await self._fetcher.fetch(url, self._config)


def build_service() -> RemoteResourceService:
    """Service configured from the whitelist file and env."""
    return RemoteResourceService(wl.load_whitelist(), load_fetch_config())


def fetch(identifier: str, service: RemoteResourceService | None = None) -> bytes:
    """
    Fetch identifier and return its bytes. Blocks until complete.
    Must not be called from inside a running event loop.
    """
    if service is None:
        service = build_service()
    return asyncio.run(service.get(identifier))
