"""Identifier quoting and normalization of physical constraint names."""

import hashlib
import re
import secrets
import string
import threading
from typing import Callable, Optional

__all__ = [
    "MAX_IDENTIFIER_LENGTH",
    "POSTGRES_MAX_IDENTIFIER_BYTES",
    "NameCache",
    "IdentifierNormalizer",
    "quote_identifier",
    "qualified_name",
    "normalized_name",
    "server_identifier",
]

MAX_IDENTIFIER_LENGTH = 128
# NAMEDATALEN - 1: the server silently cuts longer identifiers
POSTGRES_MAX_IDENTIFIER_BYTES = 63
TRUNCATED_PREFIX_LENGTH = 110
RANDOM_SUFFIX_LENGTH = 11
HASH_SUFFIX_LENGTH = 16

ILLEGAL_IDENTIFIER_CHARS = ("~", "#")

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_NON_WORD_RE = re.compile(r"[^0-9A-Za-z_]")


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, escaping embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def qualified_name(schema: Optional[str], name: str) -> str:
    """Quoted, schema-qualified name; the bare quoted name without a schema."""
    if schema:
        return f"{quote_identifier(schema)}.{quote_identifier(name)}"
    return quote_identifier(name)


def normalized_name(schema: Optional[str], name: str) -> str:
    """Unquoted `schema_name` with non-word characters folded to underscores."""
    raw = f"{schema}_{name}" if schema else name
    return _NON_WORD_RE.sub("_", raw)


def server_identifier(name: str) -> str:
    """The name as PostgreSQL stores it: cut to 63 UTF-8 bytes on a character boundary."""
    encoded = name.encode("utf-8")
    if len(encoded) <= POSTGRES_MAX_IDENTIFIER_BYTES:
        return name
    return encoded[:POSTGRES_MAX_IDENTIFIER_BYTES].decode("utf-8", errors="ignore")


class NameCache:
    """Logical-to-physical name map with an atomic insert-if-absent."""

    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, logical_name: str) -> Optional[str]:
        return self._names.get(logical_name)

    def get_or_add(self, logical_name: str, factory: Callable[[str], str]) -> str:
        """Return the cached name, computing and storing it on first use.

        The factory runs under the lock, so concurrent first use of the same
        logical name yields one physical name.
        """
        existing = self._names.get(logical_name)
        if existing is not None:
            return existing
        with self._lock:
            existing = self._names.get(logical_name)
            if existing is None:
                existing = factory(logical_name)
                self._names[logical_name] = existing
            return existing

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, logical_name: object) -> bool:
        return logical_name in self._names


def _hash_suffix(logical_name: str) -> str:
    return hashlib.sha256(logical_name.encode("utf-8")).hexdigest()[:HASH_SUFFIX_LENGTH]


def _random_suffix(logical_name: str) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))


_SUFFIX_FACTORIES: dict[str, Callable[[str], str]] = {
    "hash": _hash_suffix,
    "random": _random_suffix,
}


class IdentifierNormalizer:
    """Map logical relation/constraint names to engine-safe physical names.

    A logical name always maps to the same physical name for the lifetime of
    the cache. Names longer than MAX_IDENTIFIER_LENGTH are cut to
    TRUNCATED_PREFIX_LENGTH characters plus `_<suffix>`.

    With the "hash" strategy the suffix is derived from the full logical name
    and survives process restarts. The "random" strategy draws a fresh suffix
    per distinct name and is only stable while the cache lives.
    """

    def __init__(self, cache: Optional[NameCache] = None, suffix: str = "hash") -> None:
        if suffix not in _SUFFIX_FACTORIES:
            raise ValueError(f"Unknown suffix strategy: {suffix!r}")
        self.cache = cache if cache is not None else NameCache()
        self._suffix = _SUFFIX_FACTORIES[suffix]

    def normalize(self, logical_name: str) -> str:
        return self.cache.get_or_add(logical_name, self._build)

    def _build(self, logical_name: str) -> str:
        name = logical_name
        if len(logical_name) > MAX_IDENTIFIER_LENGTH:
            name = f"{logical_name[:TRUNCATED_PREFIX_LENGTH]}_{self._suffix(logical_name)}"

        for char in ILLEGAL_IDENTIFIER_CHARS:
            name = name.replace(char, "")
        return name
