"""
Tests for CosmWasmClient against a fake node and enclave.

Tests cover:
- Chain, block and account reads
- Transaction search shapes and limits
- post_tx: data decryption and encrypted error recovery
- Code and contract reads
- Encrypted smart queries, including contract errors
"""

import base64
import json
from typing import Any, Dict, List

import httpx
import pytest

from secretwasm import ClientConfig, CosmWasmClient
from secretwasm.encoding import tx_identifier
from secretwasm.encryption import Nonce
from secretwasm.errors import (
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

from .conftest import (
    API_URL,
    CHAIN_ID,
    CODE_HASH,
    CONTRACT_ADDRESS,
    TX_HASH,
    FakeNode,
    enclave_open,
    enclave_seal,
    encrypted_tx_error,
    smart_query_wire,
)

SIGNED_TX = {"msg": [], "fee": {"amount": [], "gas": "200000"}, "memo": "", "signatures": []}


@pytest.fixture
def client(client_kwargs: Dict[str, Any]) -> CosmWasmClient:
    return CosmWasmClient(API_URL, **client_kwargs)


def _indexed(height: int, txhash: str) -> Dict[str, Any]:
    return {
        "height": str(height),
        "txhash": txhash,
        "raw_log": "[]",
        "logs": [],
        "tx": {"type": "cosmos-sdk/StdTx", "value": {}},
        "timestamp": "2021-01-01T00:00:00Z",
    }


def _search(txs: List[Dict[str, Any]], total: int = None) -> Dict[str, Any]:
    return {"total_count": str(len(txs) if total is None else total), "count": str(len(txs)), "txs": txs}


def _smart_reply(answer_plaintext: bytes):
    """Handler that opens the query and seals ``answer_plaintext`` (base64) as reply."""

    def handler(request: httpx.Request) -> httpx.Response:
        nonce, pubkey, _code_hash, _msg = enclave_open(smart_query_wire(request))
        reply = enclave_seal(nonce, base64.b64encode(answer_plaintext), pubkey)
        return httpx.Response(200, json={"height": "1", "result": {"smart": base64.b64encode(reply).decode()}})

    return handler


# =============================================================================
# Chain and accounts
# =============================================================================


class TestChain:
    """Tests for chain id, height, blocks and identifiers."""

    @pytest.mark.asyncio
    async def test_chain_id_memoized(self, client: CosmWasmClient, node: FakeNode) -> None:
        assert await client.get_chain_id() == CHAIN_ID
        assert await client.get_chain_id() == CHAIN_ID
        assert len(node.requests_to("/node_info")) == 1

    @pytest.mark.asyncio
    async def test_empty_chain_id(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/node_info", {"node_info": {"network": ""}})

        with pytest.raises(ChainIdEmptyError):
            await client.get_chain_id()

    @pytest.mark.asyncio
    async def test_height_and_block(self, client: CosmWasmClient, node: FakeNode) -> None:
        block = {
            "block_id": {"hash": "BLOCKHASH"},
            "block": {
                "header": {
                    "version": {"block": "10", "app": "0"},
                    "height": "42",
                    "chain_id": CHAIN_ID,
                    "time": "2021-01-01T00:00:00Z",
                },
                "data": {"txs": [base64.b64encode(b"tx-one").decode()]},
            },
        }
        node.on("GET", "/blocks/latest", block)
        node.on("GET", "/blocks/42", block)

        assert await client.get_height() == 42
        result = await client.get_block(42)

        assert result.id == "BLOCKHASH"
        assert result.header.height == 42
        assert result.header.chain_id == CHAIN_ID
        assert result.txs == [b"tx-one"]

    @pytest.mark.asyncio
    async def test_block_without_txs(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            "/blocks/latest",
            {
                "block_id": {"hash": "H"},
                "block": {
                    "header": {"height": "1", "chain_id": CHAIN_ID, "time": "t"},
                    "data": {"txs": None},
                },
            },
        )

        assert (await client.get_block()).txs == []

    @pytest.mark.asyncio
    async def test_identifier(self, client: CosmWasmClient) -> None:
        identifier = await client.get_identifier(SIGNED_TX)

        assert identifier == tx_identifier(SIGNED_TX)
        assert len(identifier) == 64
        assert identifier == identifier.upper()


class TestAccounts:
    """Tests for get_account and get_nonce."""

    @pytest.mark.asyncio
    async def test_known_account(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            "/auth/accounts/secret1a",
            {
                "result": {
                    "value": {
                        "address": "secret1a",
                        "coins": [{"denom": "uscrt", "amount": "5"}],
                        "account_number": "9",
                        "sequence": "4",
                    }
                }
            },
        )

        account = await client.get_account("secret1a")
        nonce = await client.get_nonce("secret1a")

        assert account is not None
        assert account.balance[0].denom == "uscrt"
        assert (nonce.account_number, nonce.sequence) == (9, 4)

    @pytest.mark.asyncio
    async def test_unknown_account(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/auth/accounts/secret1new", {"result": {"value": {"address": ""}}})

        assert await client.get_account("secret1new") is None
        with pytest.raises(AccountDoesNotExistError) as exc_info:
            await client.get_nonce("secret1new")
        assert exc_info.value.address == "secret1new"


# =============================================================================
# Search
# =============================================================================


class TestSearchTx:
    """Tests for search_tx."""

    @pytest.mark.asyncio
    async def test_by_id(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/txs", _search([_indexed(5, TX_HASH)]))

        txs = await client.search_tx({"id": TX_HASH})

        assert [tx.hash for tx in txs] == [TX_HASH]
        assert node.requests[-1].url.params["tx.hash"] == TX_HASH

    @pytest.mark.asyncio
    async def test_ill_formatted_id(self, client: CosmWasmClient, node: FakeNode) -> None:
        with pytest.raises(IllFormattedTxHashError):
            await client.search_tx({"id": "xyz"})
        assert node.requests_to("/txs") == []

    @pytest.mark.asyncio
    async def test_by_height(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/txs", _search([_indexed(5, TX_HASH)]))

        txs = await client.search_tx({"height": 5})

        assert txs[0].height == 5
        assert node.requests[-1].url.params["tx.height"] == "5"

    @pytest.mark.asyncio
    async def test_height_outside_filter_skips_request(self, client: CosmWasmClient, node: FakeNode) -> None:
        assert await client.search_tx({"height": 5}, {"min_height": 10}) == []
        assert node.requests_to("/txs") == []

    @pytest.mark.asyncio
    async def test_sent_from_or_to_merges(self, client: CosmWasmClient, node: FakeNode) -> None:
        shared = "B2" * 32

        def handler(request: httpx.Request) -> httpx.Response:
            if "message.sender" in request.url.params:
                return httpx.Response(200, json=_search([_indexed(8, shared), _indexed(3, "C3" * 32)]))
            return httpx.Response(200, json=_search([_indexed(8, shared), _indexed(5, "D4" * 32)]))

        node.on("GET", "/txs", handler=handler)

        txs = await client.search_tx({"sent_from_or_to": "secret1a"}, {"max_height": 7})

        assert [tx.hash for tx in txs] == ["C3" * 32, "D4" * 32]

    @pytest.mark.asyncio
    async def test_by_tags(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/txs", _search([]))

        await client.search_tx({"tags": [{"key": "message.contract_address", "value": CONTRACT_ADDRESS}]})

        assert node.requests[-1].url.params["message.contract_address"] == CONTRACT_ADDRESS

    @pytest.mark.asyncio
    async def test_unknown_query(self, client: CosmWasmClient) -> None:
        with pytest.raises(UnknownQueryTypeError):
            await client.search_tx({"sender": "secret1a"})

    @pytest.mark.asyncio
    async def test_too_many_results(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/txs", _search([_indexed(5, TX_HASH)], total=150))

        with pytest.raises(TooManyResultsError) as exc_info:
            await client.search_tx({"height": 5})

        assert exc_info.value.total == 150


# =============================================================================
# post_tx
# =============================================================================


class TestPostTx:
    """Tests for post_tx."""

    @pytest.mark.asyncio
    async def test_success_decrypts_data(self, client: CosmWasmClient, node: FakeNode) -> None:
        nonce = Nonce.generate()
        data = enclave_seal(bytes(nonce), base64.b64encode(b"\x00result")).hex()
        node.on("POST", "/txs", {"height": "7", "txhash": TX_HASH, "raw_log": "[]", "logs": [], "data": data})

        result = await client.post_tx(SIGNED_TX, nonce)

        assert result.transaction_hash == TX_HASH
        assert result.data == b"\x00result"

    @pytest.mark.asyncio
    async def test_success_without_nonce_returns_raw_data(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("POST", "/txs", {"txhash": TX_HASH, "raw_log": "[]", "data": "0a0b"})

        result = await client.post_tx(SIGNED_TX)

        assert result.data == b"\x0a\x0b"

    @pytest.mark.asyncio
    async def test_logs_parsed_from_raw_log(self, client: CosmWasmClient, node: FakeNode) -> None:
        raw_log = json.dumps([{"msg_index": 0, "events": [{"type": "message", "attributes": []}]}])
        node.on("POST", "/txs", {"txhash": TX_HASH, "raw_log": raw_log, "logs": None})

        result = await client.post_tx(SIGNED_TX)

        assert result.logs[0].events[0].type == "message"
        assert result.data is None

    @pytest.mark.asyncio
    async def test_ill_formatted_hash(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("POST", "/txs", {"txhash": "abc", "raw_log": "[]"})

        with pytest.raises(IllFormattedTxHashError) as exc_info:
            await client.post_tx(SIGNED_TX)

        assert exc_info.value.txhash == "abc"

    @pytest.mark.asyncio
    async def test_rejection_recovers_encrypted_error(self, client: CosmWasmClient, node: FakeNode) -> None:
        nonce = Nonce.generate()
        raw_log = encrypted_tx_error(bytes(nonce), "insufficient funds: have 0")
        node.on("POST", "/txs", {"txhash": TX_HASH, "code": 3, "codespace": "compute", "raw_log": raw_log})

        with pytest.raises(PostTxError) as exc_info:
            await client.post_tx(SIGNED_TX, nonce)

        error = exc_info.value
        assert error.is_encrypted
        assert error.tx == SIGNED_TX
        assert await error.decrypt(client.enigma) == "insufficient funds: have 0"
        assert error.log == "insufficient funds: have 0"
        assert "insufficient funds: have 0" in error.message

    @pytest.mark.asyncio
    async def test_rejection_with_wrong_nonce(self, client: CosmWasmClient, node: FakeNode) -> None:
        raw_log = encrypted_tx_error(bytes(Nonce.generate()), "hidden")
        node.on("POST", "/txs", {"txhash": TX_HASH, "code": 3, "raw_log": raw_log})

        with pytest.raises(PostTxError) as exc_info:
            await client.post_tx(SIGNED_TX, Nonce.generate())

        with pytest.raises(FailedToDecryptError):
            await exc_info.value.decrypt(client.enigma)

    @pytest.mark.asyncio
    async def test_plain_rejection(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("POST", "/txs", {"txhash": TX_HASH, "code": 11, "raw_log": "out of gas"})

        with pytest.raises(PostTxError) as exc_info:
            await client.post_tx(SIGNED_TX)

        assert exc_info.value.code == 11
        assert not exc_info.value.is_encrypted

    @pytest.mark.asyncio
    async def test_undecryptable_data(self, client: CosmWasmClient, node: FakeNode) -> None:
        data = enclave_seal(bytes(Nonce.generate()), b"QQ==").hex()
        node.on("POST", "/txs", {"txhash": TX_HASH, "raw_log": "[]", "data": data})

        with pytest.raises(FailedToDecryptError):
            await client.post_tx(SIGNED_TX, Nonce.generate())


# =============================================================================
# Codes and contracts
# =============================================================================


class TestCodesAndContracts:
    """Tests for code and contract reads."""

    @pytest.mark.asyncio
    async def test_get_codes(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            "/wasm/code",
            {"result": [{"id": 3, "creator": "secret1c", "data_hash": CODE_HASH.upper(), "source": "", "builder": ""}]},
        )

        codes = await client.get_codes()

        assert codes[0].id == 3
        assert codes[0].checksum == CODE_HASH
        assert codes[0].source is None

    @pytest.mark.asyncio
    async def test_code_details_memoized(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            "/wasm/code/3",
            {"result": {"id": 3, "creator": "secret1c", "data_hash": CODE_HASH, "data": base64.b64encode(b"\0asm").decode()}},
        )

        first = await client.get_code_details(3)
        second = await client.get_code_details(3)

        assert first is second
        assert first.data == b"\0asm"
        assert len(node.requests_to("/wasm/code/3")) == 1

    @pytest.mark.asyncio
    async def test_get_contracts(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            "/wasm/code/3/contracts",
            {"result": [{"address": CONTRACT_ADDRESS, "code_id": "3", "creator": "secret1c", "label": "counter"}]},
        )

        contracts = await client.get_contracts(3)

        assert contracts[0].address == CONTRACT_ADDRESS
        assert contracts[0].code_id == 3

    @pytest.mark.asyncio
    async def test_get_contract(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            f"/wasm/contract/{CONTRACT_ADDRESS}",
            {"result": {"address": CONTRACT_ADDRESS, "code_id": 3, "creator": "secret1c", "label": "counter"}},
        )

        contract = await client.get_contract(CONTRACT_ADDRESS)

        assert contract.label == "counter"
        assert contract.init_msg is None

    @pytest.mark.asyncio
    async def test_get_contract_missing(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/wasm/contract/secret1none", {"result": None})

        with pytest.raises(NoContractFoundError):
            await client.get_contract("secret1none")

    @pytest.mark.asyncio
    async def test_code_hash_lookups_cached(self, client: CosmWasmClient, node: FakeNode) -> None:
        assert await client.get_code_hash_by_code_id(3) == CODE_HASH
        assert await client.get_code_hash_by_contract_addr(CONTRACT_ADDRESS) == CODE_HASH
        await client.get_code_hash_by_contract_addr(CONTRACT_ADDRESS)

        assert len(node.requests_to(f"/wasm/contract/{CONTRACT_ADDRESS}/code-hash")) == 1
        assert client.code_hashes.size == 2

    @pytest.mark.asyncio
    async def test_code_hash_not_found(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/wasm/code/99/hash", {"error": "not found"}, status=404)

        with pytest.raises(NoContractFoundError):
            await client.get_code_hash_by_code_id(99)

    @pytest.mark.asyncio
    async def test_unrelated_not_found_text_is_not_a_missing_contract(
        self, client: CosmWasmClient, node: FakeNode
    ) -> None:
        node.on("GET", "/wasm/code/5/hash", {"error": "internal: validator set not found"}, status=500)

        with pytest.raises(RestError) as exc_info:
            await client.get_code_hash_by_code_id(5)

        assert not isinstance(exc_info.value, NoContractFoundError)
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_not_found_prefix_maps_to_missing_contract(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/wasm/contract/secret1gone/code-hash", {"error": "not found: contract secret1gone"}, status=500)

        with pytest.raises(NoContractFoundError):
            await client.get_code_hash_by_contract_addr("secret1gone")

    @pytest.mark.asyncio
    async def test_query_contract_raw_missing_contract(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/wasm/contract/secret1none/raw/", {"error": "contract not found"}, status=404, prefix=True)

        with pytest.raises(NoContractFoundError):
            await client.query_contract_raw("secret1none", b"config")


# =============================================================================
# Smart queries
# =============================================================================


class TestQueryContractSmart:
    """Tests for query_contract_smart."""

    @pytest.mark.asyncio
    async def test_round_trip(self, client: CosmWasmClient, node: FakeNode) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(enclave_open(smart_query_wire(request)))
            return _smart_reply(b'{"count":7}')(request)

        node.on("GET", f"/wasm/contract/{CONTRACT_ADDRESS}/query/", handler=handler, prefix=True)

        assert await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}}) == {"count": 7}
        _nonce, _pubkey, code_hash, msg = seen[0]
        assert code_hash == CODE_HASH
        assert msg == {"get_count": {}}

    @pytest.mark.asyncio
    async def test_each_query_uses_fresh_nonce(self, client: CosmWasmClient, node: FakeNode) -> None:
        nonces = []

        def handler(request: httpx.Request) -> httpx.Response:
            nonces.append(enclave_open(smart_query_wire(request))[0])
            return _smart_reply(b"{}")(request)

        node.on("GET", f"/wasm/contract/{CONTRACT_ADDRESS}/query/", handler=handler, prefix=True)

        await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}})
        await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}})

        assert nonces[0] != nonces[1]
        assert len(node.requests_to(f"/wasm/contract/{CONTRACT_ADDRESS}/code-hash")) == 1

    @pytest.mark.asyncio
    async def test_contract_error_is_decrypted(self, client: CosmWasmClient, node: FakeNode) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            nonce, pubkey, _code_hash, _msg = enclave_open(smart_query_wire(request))
            ciphertext = base64.b64encode(enclave_seal(nonce, b"unauthorized viewer", pubkey)).decode()
            return httpx.Response(500, json={"error": f"query wasm contract failed: encrypted: {ciphertext}"})

        node.on("GET", f"/wasm/contract/{CONTRACT_ADDRESS}/query/", handler=handler, prefix=True)

        with pytest.raises(QueryContractError) as exc_info:
            await client.query_contract_smart(CONTRACT_ADDRESS, {"balance": {}})

        assert exc_info.value.log == "unauthorized viewer"
        assert exc_info.value.message == "query wasm contract failed: encrypted: unauthorized viewer (HTTP 500)"
        assert isinstance(exc_info.value.__cause__, RestError)

    @pytest.mark.asyncio
    async def test_contract_error_with_foreign_key(self, client: CosmWasmClient, node: FakeNode) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            ciphertext = base64.b64encode(enclave_seal(bytes(Nonce.generate()), b"x")).decode()
            return httpx.Response(500, json={"error": f"query wasm contract failed: encrypted: {ciphertext}"})

        node.on("GET", f"/wasm/contract/{CONTRACT_ADDRESS}/query/", handler=handler, prefix=True)

        with pytest.raises(FailedToDecryptError):
            await client.query_contract_smart(CONTRACT_ADDRESS, {"balance": {}})

    @pytest.mark.asyncio
    async def test_other_http_errors_propagate(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            f"/wasm/contract/{CONTRACT_ADDRESS}/query/",
            {"error": "Error parsing into type QueryMsg"},
            status=400,
            prefix=True,
        )

        with pytest.raises(RestError) as exc_info:
            await client.query_contract_smart(CONTRACT_ADDRESS, {"bogus": {}})

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_contract(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/wasm/contract/secret1none/code-hash", {"error": "not found"}, status=404)

        with pytest.raises(NoContractFoundError):
            await client.query_contract_smart("secret1none", {"get_count": {}})

        assert node.requests_to("/wasm/contract/secret1none/query") == []

    @pytest.mark.asyncio
    async def test_malformed_code_hash_from_node(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", "/wasm/contract/secret1odd/code-hash", {"height": "10", "result": "not-a-hash"})

        with pytest.raises(InvalidResponseError) as exc_info:
            await client.query_contract_smart("secret1odd", {"get_count": {}})

        assert exc_info.value.payload == "not-a-hash"
        assert "secret1odd" not in client.code_hashes
        assert node.requests_to("/wasm/contract/secret1odd/query") == []

    @pytest.mark.asyncio
    async def test_contract_gone_at_query(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on(
            "GET",
            f"/wasm/contract/{CONTRACT_ADDRESS}/query/",
            {"error": f"not found: contract {CONTRACT_ADDRESS}"},
            status=500,
            prefix=True,
        )

        with pytest.raises(NoContractFoundError):
            await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}})

    @pytest.mark.asyncio
    async def test_non_json_answer(self, client: CosmWasmClient, node: FakeNode) -> None:
        node.on("GET", f"/wasm/contract/{CONTRACT_ADDRESS}/query/", handler=_smart_reply(b"not json"), prefix=True)

        with pytest.raises(InvalidResponseError):
            await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [{}, [], "get_count", {"when": object()}])
    async def test_invalid_query_message(self, client: CosmWasmClient, node: FakeNode, query: Any) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await client.query_contract_smart(CONTRACT_ADDRESS, query)

        assert exc_info.value.field == "query_msg"
        assert node.requests == []


class TestFromConfig:
    """Tests for CosmWasmClient.from_config."""

    def test_uses_config_values(self, enigma) -> None:
        config = ClientConfig(api_url=API_URL + "/", timeout_ms=5000, retry_attempts=2)

        client = CosmWasmClient.from_config(config, enigma=enigma)

        assert client.rest_client.api_url == API_URL
        assert client.enigma is enigma
