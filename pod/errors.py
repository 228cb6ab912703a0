"""Exceptions raised by the pod core and mapped to responses by the API."""

from __future__ import annotations


class PodError(Exception):
    """Base class for every failure the pod core reports to callers."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidTopic(PodError):
    """Topic is absent or outside the allowed set."""


class InvalidId(PodError):
    """Raw post id is empty or malformed."""


class IdentityResolutionFailure(PodError):
    """The external lookup did not return an identity for the post."""


class QuotaExceeded(PodError):
    """The identity has used its daily submission budget."""

    def __init__(self, identity: str) -> None:
        super().__init__(
            f"Daily Pod Publish limit reached in this server for username: {identity}"
        )
        self.identity = identity


class StoreUnavailable(PodError):
    """The backing database could not be reached or rejected the statement."""


class NotFound(PodError):
    """No record is stored under the requested key."""
