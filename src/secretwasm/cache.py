"""
Code hash cache.

A contract's code hash selects the key context its messages are encrypted
for. Code on chain is immutable, so entries are never evicted or
refreshed once fetched.
"""

from __future__ import annotations

import re
from typing import Dict, Protocol

from secretwasm.constants import CODE_HASH_HEX_LENGTH
from secretwasm.errors import InvalidResponseError, NoContractFoundError
from secretwasm.utils.logging import get_logger

__all__ = ["CodeHashLookup", "CodeHashCache", "normalize_code_hash"]

_logger = get_logger(__name__)

_CODE_HASH_PATTERN = re.compile(rf"^[0-9a-f]{{{CODE_HASH_HEX_LENGTH}}}$")


class CodeHashLookup(Protocol):
    """Collaborator that resolves code hashes from the chain."""

    async def get_code_hash_by_code_id(self, code_id: int) -> str:
        ...

    async def get_code_hash_by_contract_address(self, address: str) -> str:
        ...


def normalize_code_hash(code_hash: str) -> str:
    """
    Lower-case a hex code hash and drop any ``0x`` prefix.

    Raises:
        ValueError: If the result is not 64 hex characters.
    """
    value = code_hash.strip().lower()
    if value.startswith("0x"):
        value = value[2:]
    if not _CODE_HASH_PATTERN.match(value):
        raise ValueError(f"Invalid code hash: {code_hash!r}")
    return value


def _normalize_fetched(fetched: str) -> str:
    try:
        return normalize_code_hash(fetched)
    except (AttributeError, ValueError) as e:
        raise InvalidResponseError("Node returned a malformed code hash", payload=str(fetched)) from e


class CodeHashCache:
    """
    Memoizes code id -> code hash and contract address -> code hash.

    Concurrent misses for the same key may each trigger a fetch. All
    fetches return the same value, and the first stored value is kept.

    Example:
        >>> cache = CodeHashCache(rest_client)
        >>> code_hash = await cache.get(3)
        >>> code_hash = await cache.get(3)  # no network call
    """

    def __init__(self, lookup: CodeHashLookup) -> None:
        self._lookup = lookup
        self._by_code_id: Dict[int, str] = {}
        self._by_address: Dict[str, str] = {}

    @property
    def size(self) -> int:
        return len(self._by_code_id) + len(self._by_address)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, int):
            return key in self._by_code_id
        return key in self._by_address

    async def get(self, code_id: int) -> str:
        """
        Code hash for a code id.

        Raises:
            NoContractFoundError: No code is stored under this id.
            InvalidResponseError: The node returned a malformed code hash.
        """
        cached = self._by_code_id.get(code_id)
        if cached is not None:
            _logger.debug("Code hash cache hit", extra={"code_id": code_id})
            return cached

        _logger.debug("Code hash cache miss", extra={"code_id": code_id})
        fetched = await self._lookup.get_code_hash_by_code_id(code_id)
        if not fetched:
            raise NoContractFoundError(code_id)
        return self._by_code_id.setdefault(code_id, _normalize_fetched(fetched))

    async def get_by_contract_address(self, address: str) -> str:
        """
        Code hash of the code a contract was instantiated from.

        Raises:
            NoContractFoundError: No contract exists at this address.
            InvalidResponseError: The node returned a malformed code hash.
        """
        cached = self._by_address.get(address)
        if cached is not None:
            _logger.debug("Code hash cache hit", extra={"contract": address})
            return cached

        _logger.debug("Code hash cache miss", extra={"contract": address})
        fetched = await self._lookup.get_code_hash_by_contract_address(address)
        if not fetched:
            raise NoContractFoundError(address)
        return self._by_address.setdefault(address, _normalize_fetched(fetched))
