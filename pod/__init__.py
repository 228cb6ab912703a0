"""Pod server core: quota tracking, keyed submission records and expiry."""

from .errors import (
    IdentityResolutionFailure,
    InvalidId,
    InvalidTopic,
    NotFound,
    PodError,
    QuotaExceeded,
    StoreUnavailable,
)
from .topics import Mode, Topic

__all__ = [
    "PodError",
    "InvalidTopic",
    "InvalidId",
    "IdentityResolutionFailure",
    "QuotaExceeded",
    "StoreUnavailable",
    "NotFound",
    "Topic",
    "Mode",
]
