"""
remotefetch — whitelisted, bounded fetching of remote resources.
"""

from .config import FetchConfig
from .errors import (
    ConfigError,
    FetchError,
    FetchTimeout,
    InvalidHostError,
    MalformedInputError,
    NetworkError,
    SecurityError,
    SizeLimitExceeded,
)
from .fetch import BoundedRemoteFetcher
from .service import RemoteResourceService, fetch
from .whitelist import WhitelistEntry, WhitelistSet, is_allowed
from . import whitelist

__all__ = [
    "fetch",
    "whitelist",
    "is_allowed",
    "BoundedRemoteFetcher",
    "RemoteResourceService",
    "FetchConfig",
    "WhitelistEntry",
    "WhitelistSet",
    "FetchError",
    "ConfigError",
    "MalformedInputError",
    "InvalidHostError",
    "SecurityError",
    "FetchTimeout",
    "SizeLimitExceeded",
    "NetworkError",
]
