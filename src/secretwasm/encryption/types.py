"""
Types for contract message encryption.

A Nonce is kept distinct from plain bytes so it cannot be passed where
ciphertext is expected (or the other way around).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

from secretwasm.constants import NONCE_LENGTH

__all__ = ["Nonce", "EncryptedPayload", "PendingCall", "EncryptionUtils"]


class Nonce:
    """
    Single-use random value bound to exactly one encryption.

    The same Nonce must be handed back to ``decrypt`` for the ciphertext
    produced alongside it. Instances are immutable and compare by value.

    Example:
        >>> nonce = Nonce.generate()
        >>> len(nonce)
        32
    """

    __slots__ = ("_value",)

    def __init__(self, value: bytes) -> None:
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError(f"Nonce must be bytes, got {type(value).__name__}")
        if len(value) != NONCE_LENGTH:
            raise ValueError(
                f"Nonce must be exactly {NONCE_LENGTH} bytes, got {len(value)}"
            )
        object.__setattr__(self, "_value", bytes(value))

    @classmethod
    def generate(cls) -> Nonce:
        """Draw a fresh nonce from the OS CSPRNG."""
        return cls(secrets.token_bytes(NONCE_LENGTH))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Nonce is immutable")

    def __bytes__(self) -> bytes:
        return self._value

    def __len__(self) -> int:
        return len(self._value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Nonce):
            return NotImplemented
        return secrets.compare_digest(self._value, other._value)

    def __hash__(self) -> int:
        return hash((Nonce, self._value))

    def __repr__(self) -> str:
        # Only a short prefix, enough to tell two nonces apart in a debugger
        return f"Nonce({self._value[:4].hex()}...)"

    def hex(self) -> str:
        return self._value.hex()


@dataclass(frozen=True)
class EncryptedPayload:
    """
    Ciphertext bundle produced by one encryption.

    Attributes:
        ciphertext: Sealed message body.
        nonce: Nonce used for this ciphertext; needed to decrypt the reply.
        pubkey: Sender's transaction encryption public key.
    """

    ciphertext: bytes
    nonce: Nonce
    pubkey: bytes = b""

    @property
    def wire_bytes(self) -> bytes:
        """``nonce || pubkey || ciphertext`` as placed in the msg field."""
        return bytes(self.nonce) + self.pubkey + self.ciphertext


@dataclass(frozen=True)
class PendingCall:
    """
    Correlates one outbound contract call with the nonce that encrypted it.

    Lives for one encrypt/submit/recover cycle only.
    """

    code_hash: str
    message: Any
    payload: EncryptedPayload
    contract_address: Optional[str] = None
    code_id: Optional[int] = None

    @property
    def nonce(self) -> Nonce:
        return self.payload.nonce


class EncryptionUtils(Protocol):
    """
    Encryption capability consumed by the SDK.

    ``encrypt`` must generate a fresh nonce for every call; ``decrypt``
    must fail when given a nonce other than the one the ciphertext was
    produced with.
    """

    async def encrypt(self, code_hash: str, msg: Union[bytes, Any]) -> EncryptedPayload:
        ...

    async def decrypt(self, ciphertext: bytes, nonce: Nonce) -> bytes:
        ...

    async def get_pubkey(self) -> bytes:
        ...
