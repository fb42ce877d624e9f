"""
REST transport and response models.
"""

from secretwasm.rest.client import RestClient
from secretwasm.rest.logs import find_attribute, parse_logs, parse_raw_log
from secretwasm.rest.types import (
    Attribute,
    BaseAccount,
    Coin,
    CodeInfo,
    ContractInfo,
    Event,
    Log,
    PostTxsResponse,
    SearchTxsResponse,
    TxsResponse,
)

__all__ = [
    "RestClient",
    # Logs
    "Attribute",
    "Event",
    "Log",
    "parse_logs",
    "parse_raw_log",
    "find_attribute",
    # Responses
    "PostTxsResponse",
    "TxsResponse",
    "SearchTxsResponse",
    "BaseAccount",
    "Coin",
    "CodeInfo",
    "ContractInfo",
]
