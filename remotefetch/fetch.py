"""
Bounded remote fetcher: one GET, a wall-clock deadline and a byte cap.
The URL must already have passed the whitelist; nothing here checks it.
"""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from .config import FetchConfig
from .errors import (
    FetchTimeout,
    MalformedInputError,
    NetworkError,
    SizeLimitExceeded,
)

# Audit logger: ISO 8601 timestamp on every entry
_LOG = logging.getLogger("remotefetch")
if not _LOG.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03dZ [remotefetch] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    _handler.formatter.converter = time.gmtime
    _LOG.addHandler(_handler)
    _LOG.setLevel(logging.INFO)

_FETCH_LOG = logging.getLogger("remotefetch.fetch")

USER_AGENT = "remotefetch/1.0 (+https://github.com/remotefetch/remotefetch)"


def _declared_length(response: httpx.Response) -> int | None:
    value = response.headers.get("content-length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class BoundedRemoteFetcher:
    """
    Download a response body into memory, bounded by FetchConfig.

    A transport can be passed in (e.g. httpx.MockTransport in tests); it is
    handed to a fresh AsyncClient on every call and closed with it.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def fetch(self, url: str, config: FetchConfig) -> bytes:
        """
        GET url and return the body bytes exactly as received.
        Raises FetchTimeout, SizeLimitExceeded or NetworkError, or
        MalformedInputError if httpx refuses the URL. A response without a
        body returns b"".
        """
        start_time = time.monotonic()
        try:
            content = await asyncio.wait_for(
                self._download(url, config), timeout=config.timeout
            )
        except asyncio.TimeoutError as e:
            self._log_failure(url, "timeout", e, start_time)
            raise FetchTimeout(
                f"Timed out after {config.timeout_millis} ms: {url}"
            ) from e
        except httpx.TimeoutException as e:
            self._log_failure(url, "timeout", e, start_time)
            raise FetchTimeout(
                f"Timed out after {config.timeout_millis} ms: {url}"
            ) from e
        except httpx.HTTPStatusError as e:
            self._log_failure(url, "fetch_failed", e, start_time)
            raise NetworkError(
                f"HTTP {e.response.status_code}: {url}",
                cause=e,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            self._log_failure(url, "fetch_failed", e, start_time)
            raise NetworkError(f"Request failed: {e}", cause=e) from e
        except SizeLimitExceeded as e:
            self._log_failure(url, "size_limit", e, start_time)
            raise
        except httpx.InvalidURL as e:
            self._log_failure(url, "malformed_input", e, start_time)
            raise MalformedInputError(f"Invalid URL: {e}") from e

        _FETCH_LOG.info(
            "reason=success url=%s bytes=%s elapsed_sec=%.3f",
            url,
            len(content),
            time.monotonic() - start_time,
        )
        return content

    async def _download(self, url: str, config: FetchConfig) -> bytes:
        """
        Stream the body, stopping at config.max_bytes. Runs under the
        deadline in fetch(); cancellation exits both context managers, which
        closes the response stream and the connection.
        """
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=config.timeout,
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT, "Accept-Encoding": "identity"},
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()

                declared = _declared_length(response)
                if declared is not None and declared > config.max_bytes:
                    raise SizeLimitExceeded(
                        f"Declared size {declared} exceeds {config.max_bytes} bytes",
                        limit=config.max_bytes,
                        size=declared,
                    )

                content = bytearray()
                async for chunk in response.aiter_bytes():
                    content.extend(chunk)
                    if len(content) > config.max_bytes:
                        raise SizeLimitExceeded(
                            f"Response exceeds {config.max_bytes} bytes",
                            limit=config.max_bytes,
                        )
                return bytes(content)

    @staticmethod
    def _log_failure(
        url: str, reason: str, error: BaseException, start_time: float
    ) -> None:
        _FETCH_LOG.info(
            "reason=%s url=%s error=%s elapsed_sec=%.3f",
            reason,
            url,
            str(error) or type(error).__name__,
            time.monotonic() - start_time,
        )
