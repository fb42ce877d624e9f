"""
Exception hierarchy for the secretwasm SDK.

All errors derive from SecretError and expose a ``kind`` discriminant.
"""

from secretwasm.errors.base import ErrorKind, RestError, SecretError, ValidationError
from secretwasm.errors.client import (
    AccountDoesNotExistError,
    ChainIdEmptyError,
    CosmWasmClientError,
    IllFormattedTxHashError,
    InvalidResponseError,
    NoContractFoundError,
    PostTxError,
    QueryContractError,
    TooManyResultsError,
    UnknownQueryTypeError,
)
from secretwasm.errors.encrypted import (
    DecryptionState,
    EncryptedError,
    FailedToDecryptError,
    MessageNotFoundError,
)

__all__ = [
    # Base
    "ErrorKind",
    "SecretError",
    "ValidationError",
    "RestError",
    # Encrypted errors
    "DecryptionState",
    "EncryptedError",
    "MessageNotFoundError",
    "FailedToDecryptError",
    # Client
    "CosmWasmClientError",
    "ChainIdEmptyError",
    "AccountDoesNotExistError",
    "UnknownQueryTypeError",
    "IllFormattedTxHashError",
    "PostTxError",
    "NoContractFoundError",
    "TooManyResultsError",
    "QueryContractError",
    "InvalidResponseError",
]
