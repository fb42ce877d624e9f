"""
Recognition of encrypted contract errors in chain output.

A failed contract execution produces a raw log of exactly this shape::

    contract failed: encrypted: <BASE64>: failed to execute message; message index: 0

The log is untrusted input. Matching is all-or-nothing over the whole
message: anything with extra or missing structure is not an encrypted
error, and no partial capture is ever returned.
"""

from __future__ import annotations

from re import Match
from typing import Optional

from secretwasm.constants import ENCRYPTED_ERROR_PATTERN, ENCRYPTED_QUERY_ERROR_PATTERN
from secretwasm.errors.encrypted import MessageNotFoundError

__all__ = [
    "contains_encrypted_error_message",
    "extract_encrypted_error_message",
    "extract_encrypted_query_error",
    "replace_encrypted_error",
    "replace_encrypted_query_error",
]


def contains_encrypted_error_message(message: str) -> bool:
    """
    Check whether a message is an encrypted contract error.

    Args:
        message: Raw log or error text from the chain.

    Returns:
        True only if the entire message has the encrypted error shape.
    """
    if not isinstance(message, str):
        return False
    return ENCRYPTED_ERROR_PATTERN.fullmatch(message) is not None


def extract_encrypted_error_message(
    message: str,
    error: Optional[BaseException] = None,
) -> str:
    """
    Isolate the base64 ciphertext from an encrypted contract error.

    The ciphertext is returned as found; it is not validated as base64
    here so that a corrupt body surfaces as a decryption failure.

    Args:
        message: Raw log or error text from the chain.
        error: Error the message came from, kept on the raised exception.

    Returns:
        The base64 ciphertext.

    Raises:
        MessageNotFoundError: If the message does not have the shape.

    Example:
        >>> extract_encrypted_error_message(
        ...     "contract failed: encrypted: QQ==: failed to execute message; message index: 0"
        ... )
        'QQ=='
    """
    match = (
        ENCRYPTED_ERROR_PATTERN.fullmatch(message) if isinstance(message, str) else None
    )
    if match is None:
        raise MessageNotFoundError(str(message), error)
    return match.group(1)


def extract_encrypted_query_error(message: str) -> Optional[str]:
    """
    Find the ciphertext of a failed smart query inside an HTTP error.

    The node wraps query failures in its own error text, so unlike
    transaction logs the marker is searched for rather than matched
    against the whole message.

    Returns:
        The base64 ciphertext, or None if the marker is absent.
    """
    match = ENCRYPTED_QUERY_ERROR_PATTERN.search(message)
    return match.group(1) if match else None


def _splice(match: Optional[Match[str]], message: str, plaintext: str) -> str:
    if match is None:
        return message
    return message[: match.start(1)] + plaintext + message[match.end(1) :]


def replace_encrypted_error(message: str, plaintext: str) -> str:
    """
    Substitute decrypted text for the ciphertext of an encrypted contract error.

    Only the captured ciphertext is replaced; the surrounding marker text is
    kept even if the ciphertext also occurs inside it. A message without the
    encrypted error shape is returned unchanged.
    """
    return _splice(ENCRYPTED_ERROR_PATTERN.fullmatch(message), message, plaintext)


def replace_encrypted_query_error(message: str, plaintext: str) -> str:
    """Substitute decrypted text for the ciphertext of a failed smart query."""
    return _splice(ENCRYPTED_QUERY_ERROR_PATTERN.search(message), message, plaintext)
