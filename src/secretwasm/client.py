"""CosmWasm client for Secret Network.

This module provides the CosmWasmClient class: read access to chain
state and encrypted smart queries, plus ``post_tx`` for broadcasting
signed transactions with recovery of encrypted contract errors.

Every encrypted call keeps its own nonce from encryption through error
recovery; nonces are never shared between calls.

Example:
    >>> from secretwasm import CosmWasmClient
    >>> client = CosmWasmClient("http://localhost:1317")
    >>> count = await client.query_contract_smart(
    ...     "secret1...", {"get_count": {}}
    ... )
"""
from __future__ import annotations

import base64
import binascii
import json
import math
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .cache import CodeHashCache
from .config import BroadcastMode, ClientConfig
from .constants import DEFAULT_TIMEOUT_MS, MAX_SEARCH_RESULTS, SEARCH_TX_ID_PATTERN, TX_HASH_PATTERN
from .encoding import StdTx, tx_identifier
from .encryption import EncryptionUtils, EnigmaUtils, MessageEncryptor, Nonce
from .errors import (
    AccountDoesNotExistError,
    ChainIdEmptyError,
    FailedToDecryptError,
    IllFormattedTxHashError,
    InvalidResponseError,
    NoContractFoundError,
    PostTxError,
    QueryContractError,
    RestError,
    TooManyResultsError,
    UnknownQueryTypeError,
    ValidationError,
)
from .models import (
    Account,
    Block,
    BlockHeader,
    Code,
    CodeDetails,
    Contract,
    ContractDetails,
    GetNonceResult,
    IndexedTx,
    PostTxResult,
)
from .protocol import (
    decrypt_error_message,
    extract_encrypted_query_error,
    replace_encrypted_query_error,
)
from .rest import RestClient, TxsResponse, parse_raw_log
from .rest.types import BlockHeaderResponse
from .utils.logging import get_logger
from .utils.retry import RetryConfig

_logger = get_logger(__name__)


# ------------------------------------------------------------------
# Helper Functions
# ------------------------------------------------------------------

def _is_not_found(error: RestError) -> bool:
    return error.status_code == 404 or error.error_text.lower().startswith("not found")


def _to_indexed_tx(response: TxsResponse) -> IndexedTx:
    return IndexedTx(
        height=response.height,
        hash=response.txhash,
        code=response.code,
        raw_log=response.raw_log,
        logs=list(response.logs),
        tx=response.tx,
        gas_wanted=response.gas_wanted,
        gas_used=response.gas_used,
        timestamp=response.timestamp,
    )


class _ChainCodeHashLookup:
    """Code hash lookups against the node, with not-found mapped to a typed error."""

    def __init__(self, rest: RestClient) -> None:
        self._rest = rest

    async def get_code_hash_by_code_id(self, code_id: int) -> str:
        try:
            return await self._rest.get_code_hash_by_code_id(code_id)
        except RestError as e:
            if _is_not_found(e):
                raise NoContractFoundError(code_id) from e
            raise

    async def get_code_hash_by_contract_address(self, address: str) -> str:
        try:
            return await self._rest.get_code_hash_by_contract_address(address)
        except RestError as e:
            if _is_not_found(e):
                raise NoContractFoundError(address) from e
            raise


class CosmWasmClient:
    """
    Client for a Secret Network node.

    This instance caches chain id, code details and code hashes. Use one
    instance for the lifetime of the application; create a new one when
    switching nodes. The encryption seed determines which replies the
    client can decrypt, so keep the same seed for as long as you need to
    read results of earlier calls.
    """

    def __init__(
        self,
        api_url: str,
        seed: Optional[bytes] = None,
        broadcast_mode: BroadcastMode = BroadcastMode.BLOCK,
        *,
        enigma: Optional[EncryptionUtils] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            api_url: URL of the node's REST (LCD) API.
            seed: 32-byte seed for the transaction encryption keypair.
            broadcast_mode: When ``post_tx`` returns relative to block inclusion.
            enigma: Encryption capability; defaults to EnigmaUtils(api_url, seed).
            timeout_ms: Per-request timeout.
            retry_config: Retry policy for idempotent GETs.
            transport: Optional httpx transport (tests).
        """
        self._rest = RestClient(
            api_url,
            broadcast_mode,
            timeout_ms=timeout_ms,
            retry_config=retry_config,
            transport=transport,
        )
        self._enigma: EncryptionUtils = enigma or EnigmaUtils(
            api_url, seed, timeout_ms=timeout_ms, transport=transport
        )
        self._code_hashes = CodeHashCache(_ChainCodeHashLookup(self._rest))
        self._encryptor = MessageEncryptor(self._enigma, self._code_hashes)
        self._codes_cache: Dict[int, CodeDetails] = {}
        self._chain_id: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClientConfig, seed: Optional[bytes] = None, **kwargs: Any) -> CosmWasmClient:
        return cls(
            config.api_url,
            seed,
            config.broadcast_mode,
            timeout_ms=config.timeout_ms,
            retry_config=RetryConfig(max_attempts=config.retry_attempts),
            **kwargs,
        )

    @property
    def rest_client(self) -> RestClient:
        return self._rest

    @property
    def enigma(self) -> EncryptionUtils:
        return self._enigma

    @property
    def code_hashes(self) -> CodeHashCache:
        return self._code_hashes

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    async def get_chain_id(self) -> str:
        if self._chain_id is None:
            response = await self._rest.node_info()
            chain_id = response.node_info.get("network")
            if not chain_id:
                raise ChainIdEmptyError()
            self._chain_id = chain_id
        return self._chain_id

    async def get_height(self) -> int:
        response = await self._rest.blocks_latest()
        return int(response.block["header"]["height"])

    async def get_identifier(self, tx: StdTx) -> str:
        """Upper-case hex transaction hash, usable as the transaction ID."""
        return tx_identifier(tx)

    async def get_block(self, height: Optional[int] = None) -> Block:
        """Block header and transactions; latest block if height is None."""
        response = (
            await self._rest.blocks(height) if height is not None else await self._rest.blocks_latest()
        )
        header = BlockHeaderResponse.model_validate(response.block["header"])
        txs = (response.block.get("data") or {}).get("txs") or []
        return Block(
            id=response.block_id["hash"],
            header=BlockHeader(
                version=dict(header.version),
                height=header.height,
                chain_id=header.chain_id,
                time=header.time,
            ),
            txs=[base64.b64decode(tx) for tx in txs],
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def get_account(self, address: str) -> Optional[Account]:
        account = await self._rest.auth_accounts(address)
        if not account.address:
            return None
        return Account(
            address=account.address,
            balance=list(account.coins),
            pubkey=account.public_key,
            account_number=account.account_number,
            sequence=account.sequence,
        )

    async def get_nonce(self, address: str) -> GetNonceResult:
        """
        Account number and sequence for signing.

        Raises:
            AccountDoesNotExistError: The account is unknown on chain.
        """
        account = await self.get_account(address)
        if account is None:
            raise AccountDoesNotExistError(address)
        return GetNonceResult(account_number=account.account_number, sequence=account.sequence)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def search_tx(
        self,
        query: Dict[str, Any],
        filter: Optional[Dict[str, int]] = None,
    ) -> List[IndexedTx]:
        """
        Search indexed transactions.

        Supported query shapes: ``{"id": hash}``, ``{"height": int}``,
        ``{"sent_from_or_to": address}`` and ``{"tags": [{"key", "value"}]}``.
        ``filter`` may carry ``min_height`` and ``max_height``.

        Raises:
            UnknownQueryTypeError: Query has none of the shapes above.
            IllFormattedTxHashError: ``id`` is not a 64-char hex hash.
            TooManyResultsError: The node has more matches than can be paged.
        """
        filter = filter or {}
        min_height = filter.get("min_height", 0)
        max_height = filter.get("max_height", math.inf)

        if "id" in query:
            txhash = str(query["id"])
            if not SEARCH_TX_ID_PATTERN.match(txhash):
                raise IllFormattedTxHashError(txhash)
            txs = await self._txs_query(f"tx.hash={txhash}")
        elif "height" in query:
            height = int(query["height"])
            if height < min_height or height > max_height:
                return []
            txs = await self._txs_query(f"tx.height={height}")
        elif "sent_from_or_to" in query:
            address = quote(str(query["sent_from_or_to"]), safe="")
            sent = await self._txs_query(f"message.module=bank&message.sender={address}")
            received = await self._txs_query(f"message.module=bank&transfer.recipient={address}")
            seen = {tx.hash for tx in sent}
            txs = sorted(sent + [tx for tx in received if tx.hash not in seen], key=lambda t: t.height)
        elif "tags" in query and isinstance(query["tags"], list):
            tags = "&".join(
                f"{quote(str(tag['key']), safe='.')}={quote(str(tag['value']), safe='')}"
                for tag in query["tags"]
            )
            txs = await self._txs_query(tags)
        else:
            raise UnknownQueryTypeError(query)

        return [tx for tx in txs if min_height <= tx.height <= max_height]

    async def _txs_query(self, query: str) -> List[IndexedTx]:
        limit = MAX_SEARCH_RESULTS
        response = await self._rest.txs_query(f"{query}&limit={limit}")
        if response.total_count > limit:
            raise TooManyResultsError(response.total_count, limit)
        return [_to_indexed_tx(tx) for tx in response.txs]

    async def post_tx(self, tx: StdTx, nonce: Optional[Nonce] = None) -> PostTxResult:
        """
        Broadcast a signed transaction.

        Args:
            tx: Signed StdTx.
            nonce: Nonce that encrypted the tx's contract message. Needed to
                decrypt the result data and any contract error.

        Returns:
            PostTxResult; ``data`` is decrypted when a nonce is given.

        Raises:
            IllFormattedTxHashError: Node answered with a malformed hash.
            PostTxError: Non-zero response code. Call ``decrypt`` on it to
                recover the contract's error message.
        """
        response = await self._rest.post_tx(tx)
        if not TX_HASH_PATTERN.match(response.txhash):
            raise IllFormattedTxHashError(response.txhash)

        if response.code != 0:
            _logger.info(
                "Transaction rejected",
                extra={"txhash": response.txhash, "code": response.code, "codespace": response.codespace},
            )
            raise PostTxError(tx, response, nonce)

        _logger.info("Transaction posted", extra={"txhash": response.txhash, "height": response.height})
        data: Optional[bytes] = None
        if response.data:
            if nonce is not None:
                data = await self.decrypt_data_field(response.data, nonce)
            else:
                data = self._from_hex(response.data)

        logs = list(response.logs)
        if not logs and response.raw_log.startswith("["):
            logs = parse_raw_log(response.raw_log)

        return PostTxResult(
            logs=logs,
            raw_log=response.raw_log,
            data=data,
            transaction_hash=response.txhash,
        )

    @staticmethod
    def _from_hex(data: str) -> bytes:
        try:
            return bytes.fromhex(data)
        except ValueError as e:
            raise InvalidResponseError("Transaction data is not hex", payload=data) from e

    async def decrypt_data_field(self, data: str, nonce: Nonce) -> bytes:
        """
        Decrypt the hex ``data`` field of a successful contract tx.

        The enclave returns the contract's binary result base64-encoded
        inside the ciphertext.

        Raises:
            FailedToDecryptError: Wrong nonce or corrupt ciphertext.
            InvalidResponseError: Data is not hex, or plaintext is not base64.
        """
        ciphertext = self._from_hex(data)
        try:
            plaintext = await self._enigma.decrypt(ciphertext, nonce)
        except Exception as e:
            raise FailedToDecryptError(data, e) from e
        try:
            return base64.b64decode(plaintext, validate=True)
        except binascii.Error as e:
            raise InvalidResponseError("Decrypted data is not base64") from e

    # ------------------------------------------------------------------
    # Codes and contracts
    # ------------------------------------------------------------------

    async def get_codes(self) -> List[Code]:
        return [
            Code(
                id=info.id,
                creator=info.creator,
                checksum=info.data_hash.lower(),
                source=info.source or None,
                builder=info.builder or None,
            )
            for info in await self._rest.list_code_info()
        ]

    async def get_code_details(self, code_id: int) -> CodeDetails:
        cached = self._codes_cache.get(code_id)
        if cached is not None:
            return cached

        try:
            response = await self._rest.get_code(code_id)
        except RestError as e:
            if _is_not_found(e):
                raise NoContractFoundError(code_id) from e
            raise
        details = CodeDetails(
            id=response.id,
            creator=response.creator,
            checksum=response.data_hash.lower(),
            source=response.source or None,
            builder=response.builder or None,
            data=base64.b64decode(response.data),
        )
        self._codes_cache[code_id] = details
        return details

    async def get_contracts(self, code_id: int) -> List[Contract]:
        return [
            Contract(address=c.address, code_id=c.code_id, creator=c.creator, label=c.label)
            for c in await self._rest.list_contracts_by_code_id(code_id)
        ]

    async def get_contract(self, address: str) -> ContractDetails:
        """
        Raises:
            NoContractFoundError: No contract at ``address``.
        """
        try:
            info = await self._rest.get_contract_info(address)
        except RestError as e:
            if _is_not_found(e):
                raise NoContractFoundError(address) from e
            raise
        if info is None:
            raise NoContractFoundError(address)
        return ContractDetails(
            address=info.address,
            code_id=info.code_id,
            creator=info.creator,
            label=info.label,
            init_msg=info.init_msg,
        )

    async def get_code_hash_by_code_id(self, code_id: int) -> str:
        return await self._code_hashes.get(code_id)

    async def get_code_hash_by_contract_addr(self, address: str) -> str:
        return await self._code_hashes.get_by_contract_address(address)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query_contract_raw(self, address: str, key: bytes) -> Optional[bytes]:
        """
        Raw contract storage at ``key``, or None if the key is empty.

        Raises:
            NoContractFoundError: No contract at ``address``.
        """
        try:
            return await self._rest.query_contract_raw(address, key)
        except RestError as e:
            if _is_not_found(e):
                raise NoContractFoundError(address) from e
            raise

    async def query_contract_smart(self, address: str, query_msg: Dict[str, Any]) -> Any:
        """
        Run an encrypted smart query and return the parsed JSON answer.

        Raises:
            ValidationError: ``query_msg`` is not a JSON object.
            NoContractFoundError: No contract at ``address``.
            QueryContractError: The contract returned an error; its
                decrypted text is in ``log``.
            FailedToDecryptError: The answer or error could not be decrypted.
            InvalidResponseError: The decrypted answer is not JSON.
        """
        if not isinstance(query_msg, dict) or not query_msg:
            raise ValidationError("query_msg must be a non-empty JSON object", field="query_msg")
        try:
            json.dumps(query_msg)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"query_msg is not JSON-serializable: {e}", field="query_msg") from e

        call = await self._encryptor.prepare_execute(address, query_msg)

        try:
            result = await self._rest.query_contract_smart(address, call.payload.wire_bytes)
        except RestError as e:
            if e.error_text.lower().startswith("not found: contract"):
                raise NoContractFoundError(address) from e
            encrypted = extract_encrypted_query_error(e.message)
            if encrypted is None:
                raise
            log = await decrypt_error_message(self._enigma, encrypted, call.nonce)
            raise QueryContractError(address, replace_encrypted_query_error(e.message, log), log) from e

        return await self._decode_query_result(result, call.nonce)

    async def _decode_query_result(self, result: str, nonce: Nonce) -> Any:
        try:
            ciphertext = base64.b64decode(result, validate=True)
        except binascii.Error as e:
            raise InvalidResponseError("Query result is not base64", payload=result) from e
        try:
            plaintext = await self._enigma.decrypt(ciphertext, nonce)
        except Exception as e:
            raise FailedToDecryptError(result, e) from e
        try:
            document = base64.b64decode(plaintext, validate=True).decode("utf-8")
            return json.loads(document)
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidResponseError("Query result is not a valid JSON document") from e
