"""
Errors raised by CosmWasmClient and SigningCosmWasmClient.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from secretwasm.errors.base import ErrorKind, SecretError, ValidationError
from secretwasm.errors.encrypted import EncryptedError

if TYPE_CHECKING:
    from secretwasm.encryption.types import EncryptionUtils, Nonce
    from secretwasm.rest.types import PostTxsResponse


class CosmWasmClientError(SecretError):
    """Base class for client-level failures."""


class ChainIdEmptyError(CosmWasmClientError):
    """Raised when the node reports an empty chain id."""

    kind = ErrorKind.CHAIN_ID_EMPTY

    def __init__(self) -> None:
        super().__init__("Chain ID must not be empty")


class AccountDoesNotExistError(CosmWasmClientError):
    """Raised when an account has never been seen on chain."""

    kind = ErrorKind.ACCOUNT_DOES_NOT_EXIST

    def __init__(self, address: str) -> None:
        super().__init__(
            f"Account '{address}' does not exist on chain. "
            "Send some tokens there before trying to query nonces.",
            details={"address": address},
        )
        self.address = address


class UnknownQueryTypeError(CosmWasmClientError):
    """Raised when search_tx gets a query of none of the supported shapes."""

    kind = ErrorKind.UNKNOWN_QUERY_TYPE

    def __init__(self, query: Any = None) -> None:
        super().__init__("Unknown query type", details={"query": query})
        self.query = query


class IllFormattedTxHashError(CosmWasmClientError):
    """Raised when a transaction hash is not upper-case hex."""

    kind = ErrorKind.ILL_FORMATTED_TX_HASH

    def __init__(self, txhash: str) -> None:
        super().__init__(
            f"Received ill-formatted txhash: '{txhash}'. Must be non-empty upper-case hex",
            details={"txhash": txhash},
        )
        self.txhash = txhash


class NoContractFoundError(CosmWasmClientError):
    """Raised when no contract or code exists for the given identifier."""

    kind = ErrorKind.NO_CONTRACT_FOUND

    def __init__(self, identifier: Union[str, int]) -> None:
        what = f"code id {identifier}" if isinstance(identifier, int) else f"address '{identifier}'"
        super().__init__(f"No contract found at {what}", details={"identifier": identifier})
        self.identifier = identifier


class TooManyResultsError(CosmWasmClientError):
    """Raised when a tx search matches more results than can be paged."""

    kind = ErrorKind.TOO_MANY_RESULTS

    def __init__(self, total: int, limit: int) -> None:
        super().__init__(
            f"Found {total} results on the backend but only {limit} can be processed",
            details={"total": total, "limit": limit},
        )
        self.total = total
        self.limit = limit


class InvalidResponseError(CosmWasmClientError):
    """Raised when a (decrypted) chain response cannot be interpreted."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, reason: str, payload: Optional[str] = None) -> None:
        super().__init__(reason, details={"payload": payload} if payload is not None else {})
        self.reason = reason
        self.payload = payload


class QueryContractError(CosmWasmClientError):
    """
    Raised when a smart query fails inside the contract.

    The contract's error is decrypted with the query's nonce before this
    is raised, so ``log`` always holds plaintext.
    """

    kind = ErrorKind.QUERY_CONTRACT_ERROR

    def __init__(self, address: str, message: str, log: str) -> None:
        super().__init__(message, details={"address": address, "log": log})
        self.address = address
        self.log = log


class PostTxError(EncryptedError):
    """
    Raised when the chain rejects a broadcast transaction.

    The message is the response's raw log. Decryption of the contract
    error is deferred: call ``decrypt`` to recover it. If no nonce is
    passed, the nonce captured when the transaction was encrypted is used.

    Attributes:
        tx: The signed transaction that was submitted.
        response: Raw broadcast response.
        code: Response code (non-zero on failure).
    """

    kind = ErrorKind.POST_TX_ERROR

    def __init__(
        self,
        tx: Dict[str, Any],
        response: PostTxsResponse,
        nonce: Optional[Nonce] = None,
    ) -> None:
        super().__init__(
            response.raw_log,
            tx_hash=response.txhash or None,
            details={"code": response.code, "codespace": response.codespace},
        )
        self.tx = tx
        self.response = response
        self.code = response.code
        self._nonce = nonce

    async def decrypt(
        self,
        decryptor: EncryptionUtils,
        nonce: Optional[Nonce] = None,
    ) -> str:
        nonce = nonce if nonce is not None else self._nonce
        if nonce is None:
            raise ValidationError(
                "No nonce available: the transaction was not encrypted by this client",
                field="nonce",
            )
        return await super().decrypt(decryptor, nonce)
