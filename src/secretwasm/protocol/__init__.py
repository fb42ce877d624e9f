"""
Encrypted error protocol: recognize and decrypt contract errors.
"""

from secretwasm.protocol.error_decryptor import decrypt_b64_as_utf8, decrypt_error_message
from secretwasm.protocol.error_pattern import (
    contains_encrypted_error_message,
    extract_encrypted_error_message,
    extract_encrypted_query_error,
    replace_encrypted_error,
    replace_encrypted_query_error,
)

__all__ = [
    "contains_encrypted_error_message",
    "extract_encrypted_error_message",
    "extract_encrypted_query_error",
    "replace_encrypted_error",
    "replace_encrypted_query_error",
    "decrypt_b64_as_utf8",
    "decrypt_error_message",
]
