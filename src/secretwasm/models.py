from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .rest.types import Coin, Log

__all__ = [
    "GetNonceResult",
    "Account",
    "BlockHeader",
    "Block",
    "Code",
    "CodeDetails",
    "Contract",
    "ContractDetails",
    "IndexedTx",
    "PostTxResult",
    "ExecuteResult",
    "InstantiateResult",
]


@dataclass
class GetNonceResult:
    account_number: int
    sequence: int


@dataclass
class Account:
    """On-chain account state.

    Attributes:
        address: Bech32 account address
        balance: Coins held by the account
        pubkey: Amino-encoded public key, None until the account has signed a tx
        account_number: Account number assigned on first funding
        sequence: Number of transactions sent so far
    """
    address: str
    balance: List[Coin]
    pubkey: Optional[Dict[str, Any]]
    account_number: int
    sequence: int


@dataclass
class BlockHeader:
    version: Dict[str, str]
    height: int
    chain_id: str
    time: str  # RFC 3339


@dataclass
class Block:
    id: str  # upper-case hex hash of the header
    header: BlockHeader
    txs: List[bytes]


@dataclass
class Code:
    id: int
    creator: str
    checksum: str  # hex sha256 of the wasm byte code
    source: Optional[str] = None
    builder: Optional[str] = None


@dataclass
class CodeDetails(Code):
    data: bytes = b""


@dataclass
class Contract:
    address: str
    code_id: int
    creator: str
    label: str


@dataclass
class ContractDetails(Contract):
    init_msg: Optional[Any] = None


@dataclass
class IndexedTx:
    """A transaction that is indexed as part of the transaction history."""
    height: int
    hash: str
    code: int
    raw_log: str
    logs: List[Log]
    tx: Dict[str, Any]
    gas_wanted: Optional[int] = None
    gas_used: Optional[int] = None
    timestamp: str = ""


@dataclass
class PostTxResult:
    logs: List[Log]
    raw_log: str
    data: Optional[bytes]
    transaction_hash: str


@dataclass
class ExecuteResult:
    logs: List[Log]
    transaction_hash: str
    data: bytes = b""


@dataclass
class InstantiateResult:
    contract_address: str
    logs: List[Log]
    transaction_hash: str
    data: bytes = b""
