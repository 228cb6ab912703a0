"""Deterministic short keys for raw post ids."""

from __future__ import annotations

import hashlib
import re

from .errors import InvalidId

_RAW_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def validate_raw_id(raw_id: str | None) -> str:
    """Return the stripped id or raise ``InvalidId``."""
    value = (raw_id or "").strip()
    if not value:
        raise InvalidId("Post id is required.")
    if not _RAW_ID_RE.match(value):
        raise InvalidId(f"Post id {value!r} is malformed.")
    return value


def derive(raw_id: str | None) -> str:
    """Return the storage key for ``raw_id``.

    The key is a 64-bit BLAKE2b digest rendered in base 36, so it is stable
    across processes and at most 13 characters long.
    """
    value = validate_raw_id(raw_id)
    digest = hashlib.blake2b(value.encode("utf-8"), digest_size=8).digest()
    return _base36(int.from_bytes(digest, "big"))
