"""
REST Client - transport to a Secret Network node's LCD API.

Thin, typed wrapper over httpx. It never encrypts or decrypts; the
client layer hands it ciphertext and receives ciphertext back.

Idempotent GETs are retried on transport failures. Broadcasts are not.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from secretwasm.config import BroadcastMode
from secretwasm.constants import DEFAULT_TIMEOUT_MS
from secretwasm.errors import InvalidResponseError, RestError
from secretwasm.rest.types import (
    BaseAccount,
    BlockResponse,
    CodeDetailsResponse,
    CodeInfo,
    ContractDetailsResponse,
    ContractInfo,
    NodeInfoResponse,
    PostTxsResponse,
    SearchTxsResponse,
    SmartQueryResult,
    WasmModel,
)
from secretwasm.utils.logging import get_logger
from secretwasm.utils.retry import RetryConfig, retry_async

__all__ = ["RestClient"]

_logger = get_logger(__name__)


def _unwrap(data: Any) -> Any:
    """LCD responses wrap the payload as ``{"height": ..., "result": ...}``."""
    if isinstance(data, dict) and "result" in data:
        return data["result"]
    return data


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return response.text


class RestClient:
    """
    Async client for the node's REST API.

    Example:
        ```python
        rest = RestClient("http://localhost:1317")
        info = await rest.node_info()
        print(info.node_info["network"])
        ```
    """

    def __init__(
        self,
        api_url: str,
        broadcast_mode: BroadcastMode = BroadcastMode.BLOCK,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            api_url: Base URL of the node's LCD API.
            broadcast_mode: Mode sent with every ``POST /txs``.
            timeout_ms: Per-request timeout in milliseconds.
            retry_config: Retry policy for GETs.
            transport: Optional httpx transport (tests).
        """
        self._api_url = api_url.rstrip("/")
        self._broadcast_mode = broadcast_mode
        self._timeout = httpx.Timeout(timeout_ms / 1000)
        self._retry_config = retry_config or RetryConfig()
        self._transport = transport

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def broadcast_mode(self) -> BroadcastMode:
        return self._broadcast_mode

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._api_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    # ------------------------------------------------------------------
    # Raw HTTP
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Any:
        """
        GET ``path`` and return the decoded JSON body.

        Raises:
            RestError: Non-2xx answer.
            InvalidResponseError: Body is not JSON.
        """

        async def do_get() -> httpx.Response:
            async with self._http() as client:
                return await client.get(path)

        response = await retry_async(do_get, self._retry_config, operation=f"GET {path}")
        return self._decode(response, path)

    async def post(self, path: str, body: Dict[str, Any]) -> Any:
        """POST JSON ``body`` to ``path``; never retried."""
        async with self._http() as client:
            response = await client.post(path, json=body)
        return self._decode(response, path)

    def _decode(self, response: httpx.Response, path: str) -> Any:
        if response.status_code >= 400:
            error_text = _error_text(response)
            _logger.debug(
                "REST request failed",
                extra={"path": path.split("?")[0], "status": response.status_code},
            )
            raise RestError(response.status_code, f"{self._api_url}{path}", error_text)
        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(
                f"Non-JSON response from {path}", payload=response.text[:200]
            ) from e

    # ------------------------------------------------------------------
    # Node, blocks, accounts
    # ------------------------------------------------------------------

    async def node_info(self) -> NodeInfoResponse:
        return NodeInfoResponse.model_validate(await self.get("/node_info"))

    async def blocks_latest(self) -> BlockResponse:
        return BlockResponse.model_validate(await self.get("/blocks/latest"))

    async def blocks(self, height: int) -> BlockResponse:
        return BlockResponse.model_validate(await self.get(f"/blocks/{height}"))

    async def auth_accounts(self, address: str) -> BaseAccount:
        """Account state. Unknown accounts come back with an empty address."""
        result = _unwrap(await self.get(f"/auth/accounts/{address}"))
        value = result.get("value", result) if isinstance(result, dict) else {}
        return BaseAccount.model_validate(value or {})

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def txs_query(self, query: str) -> SearchTxsResponse:
        return SearchTxsResponse.model_validate(await self.get(f"/txs?{query}"))

    async def post_tx(self, tx: Dict[str, Any]) -> PostTxsResponse:
        """Broadcast a signed StdTx."""
        data = await self.post("/txs", {"tx": tx, "mode": self._broadcast_mode.value})
        return PostTxsResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Wasm
    # ------------------------------------------------------------------

    async def list_code_info(self) -> List[CodeInfo]:
        result = _unwrap(await self.get("/wasm/code")) or []
        return [CodeInfo.model_validate(item) for item in result]

    async def get_code(self, code_id: int) -> CodeDetailsResponse:
        return CodeDetailsResponse.model_validate(_unwrap(await self.get(f"/wasm/code/{code_id}")))

    async def list_contracts_by_code_id(self, code_id: int) -> List[ContractInfo]:
        result = _unwrap(await self.get(f"/wasm/code/{code_id}/contracts")) or []
        return [ContractInfo.model_validate(item) for item in result]

    async def get_contract_info(self, address: str) -> Optional[ContractDetailsResponse]:
        """Contract metadata, or None if nothing exists at ``address``."""
        result = _unwrap(await self.get(f"/wasm/contract/{address}"))
        if not result:
            return None
        return ContractDetailsResponse.model_validate(result)

    async def query_contract_raw(self, address: str, key: bytes) -> Optional[bytes]:
        path = f"/wasm/contract/{address}/raw/{key.hex()}?encoding=hex"
        models = [WasmModel.model_validate(m) for m in (_unwrap(await self.get(path)) or [])]
        if not models:
            return None
        if len(models) > 1:
            raise InvalidResponseError(f"Expected at most one raw result, got {len(models)}")
        return base64.b64decode(models[0].val)

    async def query_contract_smart(self, address: str, encrypted_query: bytes) -> str:
        """
        Run an encrypted smart query.

        Args:
            address: Contract address.
            encrypted_query: Wire bytes of the encrypted query message.

        Returns:
            Base64 ciphertext of the contract's answer.
        """
        encoded = base64.b64encode(encrypted_query).hex()
        path = f"/wasm/contract/{address}/query/{encoded}?encoding=hex"
        return SmartQueryResult.model_validate(_unwrap(await self.get(path))).smart

    async def get_code_hash_by_code_id(self, code_id: int) -> str:
        return str(_unwrap(await self.get(f"/wasm/code/{code_id}/hash")) or "")

    async def get_code_hash_by_contract_address(self, address: str) -> str:
        path = f"/wasm/contract/{quote(address, safe='')}/code-hash"
        return str(_unwrap(await self.get(path)) or "")
