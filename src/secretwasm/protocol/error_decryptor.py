"""
Decryption of base64 ciphertexts recovered from chain errors.

Failures are never retried: a wrong nonce or a corrupt ciphertext will
not decrypt on a second attempt either.
"""

from __future__ import annotations

import base64

from secretwasm.encryption.types import EncryptionUtils, Nonce
from secretwasm.errors.encrypted import FailedToDecryptError
from secretwasm.utils.logging import get_logger

__all__ = ["decrypt_b64_as_utf8", "decrypt_error_message"]

_logger = get_logger(__name__)


async def decrypt_b64_as_utf8(
    decryptor: EncryptionUtils,
    encrypted: str,
    nonce: Nonce,
) -> str:
    """
    Base64-decode, decrypt and UTF-8-decode a ciphertext.

    Raises whatever the individual step raises.
    """
    ciphertext = base64.b64decode(encrypted, validate=True)
    plaintext = await decryptor.decrypt(ciphertext, nonce)
    return plaintext.decode("utf-8")


async def decrypt_error_message(
    decryptor: EncryptionUtils,
    encrypted: str,
    nonce: Nonce,
) -> str:
    """
    Decrypt an encrypted contract error.

    Args:
        decryptor: Encryption capability holding the caller's key.
        encrypted: Base64 ciphertext extracted from the error.
        nonce: Nonce the failing request was encrypted with.

    Returns:
        The plaintext error.

    Raises:
        FailedToDecryptError: On malformed base64, a rejected decryption or
            invalid UTF-8. The original ciphertext and the underlying error
            are both kept.
    """
    try:
        return await decrypt_b64_as_utf8(decryptor, encrypted, nonce)
    except Exception as e:
        # binascii.Error, UnicodeDecodeError, or the backend's own type
        # (e.g. cryptography's InvalidTag)
        _logger.debug(
            "Error message rejected by decryptor",
            extra={"ciphertext_len": len(encrypted), "error": type(e).__name__},
        )
        raise FailedToDecryptError(encrypted, e) from e
