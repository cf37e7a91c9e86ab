"""
Host whitelist for remote fetching.
Loads patterns from an optional config file and env var. Empty by default,
so nothing is fetched until hosts are configured.
"""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping
from urllib.parse import urlsplit

from .errors import ConfigError, InvalidHostError

WHITELIST_ENV = "REMOTEFETCH_WHITELIST"
WHITELIST_FILE = os.path.expanduser("~/.remotefetch/whitelist.txt")

# Relative patterns are rebased onto this scheme before host extraction.
DEFAULT_SCHEME = "http://"

# Characters that can never appear in a host handed to is_allowed().
_INVALID_HOST_CHARS = frozenset(" \t\r\n/\\@?#")


class EntryKind(enum.Enum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


@dataclass(frozen=True)
class WhitelistEntry:
    """One configured host pattern, with its host already uppercased."""

    pattern: str
    kind: EntryKind
    host: str

    @classmethod
    def parse(cls, pattern: str) -> WhitelistEntry:
        """
        Classify a pattern and extract its host.
        `https://example.com/x` is absolute; `.example.com`, `example.com` and
        `//cdn.example.com` are relative and get rebased onto http://.
        """
        raw = pattern.strip()
        try:
            parts = urlsplit(raw)
            if parts.scheme and parts.netloc:
                kind = EntryKind.ABSOLUTE
                host = parts.hostname
            elif "://" in raw:
                kind = EntryKind.ABSOLUTE
                host = None
            else:
                kind = EntryKind.RELATIVE
                host = urlsplit(DEFAULT_SCHEME + raw.lstrip("./")).hostname
        except ValueError as e:
            raise ConfigError(f"Invalid whitelist pattern: {pattern!r}") from e

        # An empty host would prefix-match every candidate.
        if not host:
            raise ConfigError(f"Whitelist pattern has no host: {pattern!r}")
        return cls(pattern=raw, kind=kind, host=host.upper())

    def matches(self, upper_host: str) -> bool:
        # No dot boundary: EXAMPLE.COM also matches NOTEXAMPLE.COM.
        return upper_host.startswith(self.host) or upper_host.endswith(self.host)


@dataclass(frozen=True)
class WhitelistSet:
    """Immutable, ordered set of whitelist entries."""

    entries: tuple[WhitelistEntry, ...] = ()

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> WhitelistSet:
        return cls(tuple(WhitelistEntry.parse(p) for p in patterns if p.strip()))

    def __iter__(self) -> Iterator[WhitelistEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _normalize_candidate(host: str) -> str:
    """Uppercase a host candidate, rejecting anything that is not a bare host."""
    if host is None:
        raise InvalidHostError("No host")
    candidate = host.strip()
    if candidate.startswith("[") and candidate.endswith("]"):
        candidate = candidate[1:-1]
    if not candidate or any(c in _INVALID_HOST_CHARS for c in candidate):
        raise InvalidHostError(f"Invalid host: {host!r}")
    return candidate.upper()


def is_allowed(host: str, whitelist: WhitelistSet) -> bool:
    """
    Return True if host starts or ends with the host of any whitelist entry.
    Comparison is case-insensitive. An empty whitelist allows nothing.
    Raises InvalidHostError if host is empty or not a bare host name.
    """
    upper = _normalize_candidate(host)
    for entry in whitelist:
        if entry.matches(upper):
            return True
    return False


def _strip_comment(line: str) -> str:
    return line.split("#", 1)[0].strip()


def load_patterns(
    path: str | None = None, environ: Mapping[str, str] | None = None
) -> list[str]:
    """
    Whitelist patterns from the whitelist file, then REMOTEFETCH_WHITELIST.
    The file holds one pattern per line; `#` starts a comment anywhere on a
    line. The env var is comma-separated. Duplicates are dropped, first
    occurrence kept.
    """
    path = WHITELIST_FILE if path is None else path
    environ = os.environ if environ is None else environ

    lines: list[str] = []
    if os.path.exists(path):
        with open(path) as f:
            lines.extend(_strip_comment(line) for line in f)
    lines.extend(p.strip() for p in environ.get(WHITELIST_ENV, "").split(","))

    return list(dict.fromkeys(p for p in lines if p))


def load_whitelist() -> WhitelistSet:
    return WhitelistSet.from_patterns(load_patterns())
