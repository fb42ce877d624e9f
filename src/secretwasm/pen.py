"""Secp256k1 signing for transactions.

Cosmos chains sign ``sha256(sign_bytes)`` with a low-s secp256k1
signature serialized as fixed-length ``r || s``.

Example:
    >>> pen = Secp256k1Pen.from_private_key("0x" + "11" * 32)
    >>> signature = await pen.sign(sign_bytes)
"""
import hashlib
from typing import Awaitable, Callable, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature

from .encoding import StdSignature, encode_secp256k1_signature

__all__ = ["SigningCallback", "Secp256k1Pen"]

SigningCallback = Callable[[bytes], Awaitable[StdSignature]]


class Secp256k1Pen:
    """Holds one private key and produces StdSignatures with it."""

    def __init__(self, private_key: bytes):
        if len(private_key) != 32:
            raise ValueError("private key must be 32 bytes")
        self._key = keys.PrivateKey(private_key)

    @classmethod
    def from_private_key(cls, private_key: Union[str, bytes]) -> "Secp256k1Pen":
        if isinstance(private_key, str):
            private_key = bytes.fromhex(private_key[2:] if private_key.startswith("0x") else private_key)
        return cls(private_key)

    @property
    def pubkey(self) -> bytes:
        """Compressed public key (33 bytes)."""
        return self._key.public_key.to_compressed_bytes()

    def sign_raw(self, message: bytes) -> bytes:
        """64-byte ``r || s`` signature over ``sha256(message)``."""
        signature = self._key.sign_msg_hash(hashlib.sha256(message).digest())
        return signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big")

    def verify(self, message: bytes, signature: bytes) -> bool:
        if len(signature) != 64:
            return False
        candidate = keys.Signature(
            vrs=(0, int.from_bytes(signature[:32], "big"), int.from_bytes(signature[32:], "big"))
        )
        try:
            return self._key.public_key.verify_msg_hash(hashlib.sha256(message).digest(), candidate)
        except BadSignature:
            return False

    async def sign(self, sign_bytes: bytes) -> StdSignature:
        return encode_secp256k1_signature(self.pubkey, self.sign_raw(sign_bytes))
