"""Player and token identifiers.

Identifiers are 128-bit UUIDs rendered on the wire as 32 hex characters
without separators. Profile ids are derived from the player name the same way
offline-mode servers do it (``UUID.nameUUIDFromBytes("OfflinePlayer:" + name)``)
so a name always maps to the same id on every implementation.
"""

from __future__ import annotations

import hashlib
import string
import uuid

from yggauth.service.errors import MalformedIdentifierError

OFFLINE_PLAYER_PREFIX = "OfflinePlayer:"

_HEX_DIGITS = frozenset(string.hexdigits)
_DASHED_GROUPS = (8, 4, 4, 4, 12)


def random_identifier() -> str:
    """Return a fresh random (version 4) identifier in undashed form."""
    return uuid.uuid4().hex


def derive_from_name(name: str) -> str:
    """Derive the offline-mode identifier for ``name``.

    MD5 of the UTF-8 bytes of ``"OfflinePlayer:" + name`` with the version
    nibble forced to 3 and the variant bits forced to ``10``.
    """
    digest = bytearray(hashlib.md5((OFFLINE_PLAYER_PREFIX + name).encode("utf-8")).digest())
    digest[6] &= 0x0F
    digest[6] |= 0x30
    digest[8] &= 0x3F
    digest[8] |= 0x80
    return uuid.UUID(bytes=bytes(digest)).hex


def _is_hex(value: str) -> bool:
    return bool(value) and all(ch in _HEX_DIGITS for ch in value)


def to_dashed(undashed: str) -> str:
    """Convert a 32-character identifier into ``8-4-4-4-12`` form.

    Character case is preserved so ``to_undashed(to_dashed(u)) == u``.

    Raises:
        MalformedIdentifierError: if the input is not 32 hex characters or
            the dashed form does not parse as a UUID.
    """
    if not isinstance(undashed, str) or len(undashed) != 32:
        raise MalformedIdentifierError(str(undashed), "undashed identifier must be 32 characters")
    if not _is_hex(undashed):
        raise MalformedIdentifierError(undashed, "identifier must be hexadecimal")

    parts = []
    offset = 0
    for width in _DASHED_GROUPS:
        parts.append(undashed[offset : offset + width])
        offset += width
    dashed = "-".join(parts)

    try:
        uuid.UUID(dashed)
    except ValueError as exc:
        raise MalformedIdentifierError(undashed, str(exc)) from exc
    return dashed


def to_undashed(value: str) -> str:
    """Strip separators from a dashed identifier; undashed input is checked and returned as is."""
    if not isinstance(value, str):
        raise MalformedIdentifierError(str(value), "identifier must be a string")
    if len(value) == 36:
        groups = value.split("-")
        if [len(group) for group in groups] != list(_DASHED_GROUPS):
            raise MalformedIdentifierError(value, "dashed identifier must use 8-4-4-4-12 grouping")
        value = "".join(groups)
    # Round-trips through to_dashed for validation
    to_dashed(value)
    return value


def is_valid(undashed: str) -> bool:
    """True iff ``undashed`` is 32 hex characters forming a parseable UUID."""
    if not isinstance(undashed, str) or len(undashed) != 32 or not _is_hex(undashed):
        return False
    try:
        to_dashed(undashed)
    except MalformedIdentifierError:
        return False
    return True


__all__ = [
    "OFFLINE_PLAYER_PREFIX",
    "derive_from_name",
    "is_valid",
    "random_identifier",
    "to_dashed",
    "to_undashed",
]
