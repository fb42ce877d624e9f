"""
Transaction encryption for Secret Network contracts.

Each message is sealed with a key that only the caller and the chain's
enclave can derive:

    ikm  = X25519(client_private_key, consensus_io_pubkey)
    key  = HKDF-SHA256(ikm || nonce, salt=HKDF_SALT, length=32)
    body = AES-SIV(key).encrypt(code_hash || msg, [b""])

The bytes sent on chain are ``nonce || client_pubkey || body``. The
enclave encrypts its reply (and any contract error) with the same key, so
the nonce is required to read it.
"""

from __future__ import annotations

import base64
import json
import secrets
from typing import Any, Optional, Union

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from secretwasm.constants import DEFAULT_TIMEOUT_MS, HKDF_SALT, X25519_KEY_LENGTH
from secretwasm.encryption.types import EncryptedPayload, Nonce
from secretwasm.errors.base import RestError, ValidationError
from secretwasm.utils.logging import get_logger
from secretwasm.utils.retry import RetryConfig, retry_async

__all__ = ["EnigmaUtils", "generate_seed"]

_logger = get_logger(__name__)

# AES-SIV associated data: a single empty component
_SIV_AD = [b""]


def generate_seed() -> bytes:
    """Random 32-byte seed for a new transaction encryption keypair."""
    return secrets.token_bytes(X25519_KEY_LENGTH)


def _encode_message(msg: Union[bytes, Any]) -> bytes:
    if isinstance(msg, (bytes, bytearray)):
        return bytes(msg)
    if isinstance(msg, str):
        return msg.encode("utf-8")
    return json.dumps(msg, separators=(",", ":")).encode("utf-8")


class EnigmaUtils:
    """
    Encryption capability backed by the chain's consensus IO key.

    Keep one instance (and therefore one seed) for as long as replies to
    its messages may need decrypting.

    Example:
        ```python
        enigma = EnigmaUtils("http://localhost:1317")
        payload = await enigma.encrypt(code_hash, {"get_count": {}})
        ...
        plaintext = await enigma.decrypt(reply_ciphertext, payload.nonce)
        ```
    """

    def __init__(
        self,
        api_url: str,
        seed: Optional[bytes] = None,
        *,
        consensus_io_pubkey: Optional[bytes] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            api_url: Node REST URL, used to fetch the consensus IO key.
            seed: 32-byte keypair seed; a random one is generated if omitted.
            consensus_io_pubkey: Known consensus IO key, skips the fetch.
            timeout_ms: Timeout for the key fetch.
            transport: Optional httpx transport (tests).
        """
        seed = seed if seed is not None else generate_seed()
        if len(seed) != X25519_KEY_LENGTH:
            raise ValidationError(
                f"seed must be {X25519_KEY_LENGTH} bytes, got {len(seed)}", field="seed"
            )
        if consensus_io_pubkey is not None and len(consensus_io_pubkey) != X25519_KEY_LENGTH:
            raise ValidationError(
                f"consensus_io_pubkey must be {X25519_KEY_LENGTH} bytes",
                field="consensus_io_pubkey",
            )

        self._api_url = api_url.rstrip("/")
        self._seed = bytes(seed)
        self._privkey = X25519PrivateKey.from_private_bytes(self._seed)
        self._pubkey = self._privkey.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        self._consensus_io_pubkey = consensus_io_pubkey
        self._timeout_ms = timeout_ms
        self._transport = transport

    @property
    def seed(self) -> bytes:
        return self._seed

    @property
    def pubkey(self) -> bytes:
        return self._pubkey

    async def get_pubkey(self) -> bytes:
        return self._pubkey

    async def get_consensus_io_pubkey(self) -> bytes:
        """
        Consensus IO public key, fetched from ``/reg/tx-key`` on first use.

        Concurrent first calls may each fetch; the key is fixed for the
        chain so whichever write lands last is identical.
        """
        if self._consensus_io_pubkey is not None:
            return self._consensus_io_pubkey

        async def do_fetch() -> bytes:
            url = f"{self._api_url}/reg/tx-key"
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_ms / 1000),
                transport=self._transport,
            ) as client:
                response = await client.get(url)
            if response.status_code != 200:
                raise RestError(response.status_code, url, response.text)
            return base64.b64decode(response.json()["result"]["TxKey"])

        key = await retry_async(do_fetch, RetryConfig(), operation="get_tx_key")
        if len(key) != X25519_KEY_LENGTH:
            raise ValidationError("Node returned a malformed consensus IO key")
        _logger.debug("Fetched consensus IO pubkey", extra={"api_url": self._api_url})
        self._consensus_io_pubkey = key
        return key

    async def get_tx_encryption_key(self, nonce: Nonce) -> bytes:
        """Derive the AES-SIV key for one nonce."""
        consensus_io_pubkey = await self.get_consensus_io_pubkey()
        ikm = self._privkey.exchange(X25519PublicKey.from_public_bytes(consensus_io_pubkey))
        return HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=HKDF_SALT,
            info=b"",
        ).derive(ikm + bytes(nonce))

    async def encrypt(self, code_hash: str, msg: Union[bytes, Any]) -> EncryptedPayload:
        """
        Seal a contract message under a fresh nonce.

        Args:
            code_hash: Hex code hash of the target contract.
            msg: Message bytes, or a JSON-serializable object.

        Returns:
            EncryptedPayload whose ``ciphertext`` is the sealed body and
            whose ``wire_bytes`` is what goes into the message's msg field.
        """
        nonce = Nonce.generate()
        key = await self.get_tx_encryption_key(nonce)
        plaintext = code_hash.encode("utf-8") + _encode_message(msg)
        ciphertext = AESSIV(key).encrypt(plaintext, _SIV_AD)
        return EncryptedPayload(ciphertext=ciphertext, nonce=nonce, pubkey=self._pubkey)

    async def decrypt(self, ciphertext: bytes, nonce: Nonce) -> bytes:
        """
        Open a ciphertext sealed under ``nonce``.

        Raises:
            cryptography.exceptions.InvalidTag: Wrong nonce, wrong key or
                tampered ciphertext.
        """
        if not ciphertext:
            return b""
        key = await self.get_tx_encryption_key(nonce)
        return AESSIV(key).decrypt(bytes(ciphertext), _SIV_AD)
