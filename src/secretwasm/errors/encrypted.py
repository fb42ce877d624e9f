"""
Errors raised while recovering encrypted contract errors.

When a contract call fails inside the enclave the chain returns the
contract's error encrypted with the caller's transaction key. The
EncryptedError base class drives recovery of that plaintext:

    RAW -> EXTRACTED -> DECRYPTED
       \\          \\
        -> FAILED   -> FAILED

The nonce is never stored by the state machine itself; it comes from the
call that produced the failing request.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from secretwasm.errors.base import ErrorKind, SecretError

if TYPE_CHECKING:
    from secretwasm.encryption.types import EncryptionUtils, Nonce


class MessageNotFoundError(SecretError):
    """
    Raised when a message does not have the encrypted error shape.

    Attributes:
        original_message: The message that failed to match.
        other_error: Error whose message was inspected, if any.
    """

    kind = ErrorKind.MESSAGE_NOT_FOUND

    def __init__(
        self,
        original_message: str,
        other_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(
            "Failed to extract an encrypted error from the following message:\n  "
            + original_message,
            details={"original_message": original_message},
        )
        self.original_message = original_message
        self.other_error = other_error


class FailedToDecryptError(SecretError):
    """
    Raised when an extracted error ciphertext cannot be turned into text.

    Covers malformed base64, a rejected decryption (wrong nonce, tampered
    ciphertext) and plaintext that is not valid UTF-8.

    Attributes:
        encrypted: The base64 ciphertext as found in the message.
        decryption_error: The underlying failure.
    """

    kind = ErrorKind.FAILED_TO_DECRYPT

    def __init__(self, encrypted: str, decryption_error: BaseException) -> None:
        reason = str(decryption_error) or type(decryption_error).__name__
        super().__init__(
            f"Failed to decrypt the following error message:\n  {encrypted}\n"
            f"Decryption error:\n  {reason}",
            details={"encrypted": encrypted, "decryption_error": reason},
        )
        self.encrypted = encrypted
        self.decryption_error = decryption_error


class DecryptionState(str, Enum):
    """Progress of an encrypted error through recovery."""

    RAW = "raw"
    EXTRACTED = "extracted"
    DECRYPTED = "decrypted"
    FAILED = "failed"


class EncryptedError(SecretError):
    """
    Error whose message may embed an encrypted contract error.

    Attributes:
        state: Current DecryptionState.
        encrypted: Extracted base64 ciphertext once past RAW.
        log: Decrypted plaintext once DECRYPTED.
        failure: The error that moved recovery to FAILED.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, kind=kind, tx_hash=tx_hash, details=details)
        self.state = DecryptionState.RAW
        self.encrypted: Optional[str] = None
        self.log: Optional[str] = None
        self.failure: Optional[SecretError] = None

    @property
    def is_encrypted(self) -> bool:
        """Whether the message has the encrypted error shape."""
        from secretwasm.protocol.error_pattern import contains_encrypted_error_message

        return contains_encrypted_error_message(self.message)

    async def decrypt(self, decryptor: EncryptionUtils, nonce: Nonce) -> str:
        """
        Recover the plaintext contract error.

        On success the ciphertext in ``message`` is replaced with the
        plaintext and the plaintext is kept in ``log``. Terminal states are
        sticky: a second call returns the same log or raises the same
        failure without touching the decryptor again.

        Args:
            decryptor: Encryption capability holding the caller's key.
            nonce: Nonce that encrypted the failing request.

        Returns:
            The decrypted error text.

        Raises:
            MessageNotFoundError: The message has no encrypted error.
            FailedToDecryptError: The ciphertext could not be decrypted.
        """
        from secretwasm.protocol.error_decryptor import decrypt_error_message
        from secretwasm.protocol.error_pattern import (
            extract_encrypted_error_message,
            replace_encrypted_error,
        )

        if self.state is DecryptionState.DECRYPTED and self.log is not None:
            return self.log
        if self.state is DecryptionState.FAILED and self.failure is not None:
            raise self.failure

        try:
            if self.encrypted is None:
                self.encrypted = extract_encrypted_error_message(self.message, self)
                self.state = DecryptionState.EXTRACTED
            decrypted = await decrypt_error_message(decryptor, self.encrypted, nonce)
        except (MessageNotFoundError, FailedToDecryptError) as e:
            self.state = DecryptionState.FAILED
            self.failure = e
            raise

        self.message = replace_encrypted_error(self.message, decrypted)
        self.args = (self.message,)
        self.log = decrypted
        self.details["log"] = decrypted
        self.state = DecryptionState.DECRYPTED
        return decrypted
