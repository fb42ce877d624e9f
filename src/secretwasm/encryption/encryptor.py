"""
Message encryption for contract calls.

MessageEncryptor pairs the code hash lookup with the encryption
capability and returns a PendingCall that keeps the nonce next to the
call it belongs to.
"""

from __future__ import annotations

from typing import Any

from secretwasm.cache import CodeHashCache, normalize_code_hash
from secretwasm.encryption.types import EncryptedPayload, EncryptionUtils, PendingCall
from secretwasm.errors import ValidationError
from secretwasm.utils.logging import get_logger

__all__ = ["MessageEncryptor"]

_logger = get_logger(__name__)


class MessageEncryptor:
    """
    Encrypts contract messages for their target code.

    Nonces are never chosen or reused here: every ``encrypt`` call makes
    exactly one call into the encryption capability, which draws a fresh
    nonce. Ciphertexts are not cached.
    """

    def __init__(self, utils: EncryptionUtils, code_hashes: CodeHashCache) -> None:
        self._utils = utils
        self._code_hashes = code_hashes

    @property
    def utils(self) -> EncryptionUtils:
        return self._utils

    async def encrypt(self, code_hash: str, msg: Any) -> EncryptedPayload:
        """
        Encrypt ``msg`` for the code identified by ``code_hash``.

        Raises:
            ValidationError: If the code hash is not 64 hex characters.
        """
        try:
            code_hash = normalize_code_hash(code_hash)
        except ValueError as e:
            raise ValidationError(str(e), field="code_hash") from e

        payload = await self._utils.encrypt(code_hash, msg)
        _logger.debug(
            "Encrypted contract message",
            extra={"code_hash": code_hash[:8], "ciphertext_len": len(payload.ciphertext)},
        )
        return payload

    async def prepare_execute(self, contract_address: str, msg: Any) -> PendingCall:
        """Resolve the contract's code hash and encrypt a handle/query message."""
        code_hash = await self._code_hashes.get_by_contract_address(contract_address)
        payload = await self.encrypt(code_hash, msg)
        return PendingCall(
            code_hash=code_hash,
            message=msg,
            payload=payload,
            contract_address=contract_address,
        )

    async def prepare_instantiate(self, code_id: int, msg: Any) -> PendingCall:
        """Resolve the code's hash and encrypt an init message."""
        code_hash = await self._code_hashes.get(code_id)
        payload = await self.encrypt(code_hash, msg)
        return PendingCall(code_hash=code_hash, message=msg, payload=payload, code_id=code_id)
