"""
Contract message encryption.
"""

from secretwasm.encryption.enigma import EnigmaUtils, generate_seed
from secretwasm.encryption.encryptor import MessageEncryptor
from secretwasm.encryption.types import EncryptedPayload, EncryptionUtils, Nonce, PendingCall

__all__ = [
    "Nonce",
    "EncryptedPayload",
    "PendingCall",
    "EncryptionUtils",
    "EnigmaUtils",
    "generate_seed",
    "MessageEncryptor",
]
