"""
Response models for the node's REST (LCD) API.

Only the fields the SDK reads are modelled; anything else in the JSON is
ignored. Numeric fields arrive as strings and are coerced.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


# ============================================================================
# Logs
# ============================================================================


class Attribute(_Response):
    key: str
    value: str = ""


class Event(_Response):
    type: str
    attributes: List[Attribute] = Field(default_factory=list)


class Log(_Response):
    msg_index: int = 0
    log: str = ""
    events: List[Event] = Field(default_factory=list)


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


# ============================================================================
# Transactions
# ============================================================================


class PostTxsResponse(_Response):
    """Result of ``POST /txs``."""

    height: int = 0
    txhash: str
    code: int = 0
    codespace: str = ""
    raw_log: str = ""
    logs: List[Log] = Field(default_factory=list)
    data: Optional[str] = None
    gas_wanted: Optional[int] = None
    gas_used: Optional[int] = None

    @field_validator("logs", mode="before")
    @classmethod
    def null_logs_to_empty(cls, value: Any) -> Any:
        return _none_to_list(value)


class TxsResponse(_Response):
    """One indexed transaction from ``GET /txs``."""

    height: int
    txhash: str
    code: int = 0
    raw_log: str = ""
    logs: List[Log] = Field(default_factory=list)
    tx: Dict[str, Any] = Field(default_factory=dict)
    gas_wanted: Optional[int] = None
    gas_used: Optional[int] = None
    timestamp: str = ""

    @field_validator("logs", mode="before")
    @classmethod
    def null_logs_to_empty(cls, value: Any) -> Any:
        return _none_to_list(value)


class SearchTxsResponse(_Response):
    total_count: int = 0
    count: int = 0
    page_number: int = 1
    page_total: int = 1
    limit: int = 0
    txs: List[TxsResponse] = Field(default_factory=list)

    @field_validator("txs", mode="before")
    @classmethod
    def null_txs_to_empty(cls, value: Any) -> Any:
        return _none_to_list(value)


# ============================================================================
# Accounts and blocks
# ============================================================================


class Coin(_Response):
    denom: str
    amount: str


class BaseAccount(_Response):
    address: str = ""
    coins: List[Coin] = Field(default_factory=list)
    public_key: Optional[Any] = None
    account_number: int = 0
    sequence: int = 0

    @field_validator("coins", mode="before")
    @classmethod
    def null_coins_to_empty(cls, value: Any) -> Any:
        return _none_to_list(value)


class BlockHeaderResponse(_Response):
    version: Dict[str, str] = Field(default_factory=dict)
    height: int
    chain_id: str
    time: str


class BlockResponse(_Response):
    block_id: Dict[str, Any]
    block: Dict[str, Any]


class NodeInfoResponse(_Response):
    node_info: Dict[str, Any]


# ============================================================================
# Wasm
# ============================================================================


class CodeInfo(_Response):
    id: int
    creator: str
    data_hash: str
    source: Optional[str] = None
    builder: Optional[str] = None


class CodeDetailsResponse(CodeInfo):
    data: str


class ContractInfo(_Response):
    address: str
    code_id: int
    creator: str
    label: str


class ContractDetailsResponse(ContractInfo):
    init_msg: Optional[Any] = None


class WasmModel(_Response):
    key: str
    val: str


class SmartQueryResult(_Response):
    smart: str
