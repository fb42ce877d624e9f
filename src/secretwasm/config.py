from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_TIMEOUT_MS

__all__ = [
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "BroadcastMode",
    "StdFee",
    "FeeTable",
    "ClientConfig",
]


class Network(str, Enum):
    SECRET_4 = "secret-4"
    PULSAR_3 = "pulsar-3"
    LOCALSECRET = "secretdev-1"


@dataclass
class NetworkConfig:
    name: Network
    chain_id: str
    api_url: str
    bech32_prefix: str = "secret"
    fee_denom: str = "uscrt"


NETWORKS: dict[Network, NetworkConfig] = {
    Network.SECRET_4: NetworkConfig(
        name=Network.SECRET_4,
        chain_id="secret-4",
        api_url="https://lcd.mainnet.secretsaturn.net",
    ),
    Network.PULSAR_3: NetworkConfig(
        name=Network.PULSAR_3,
        chain_id="pulsar-3",
        api_url="https://api.pulsar3.scrttestnet.com",
    ),
    Network.LOCALSECRET: NetworkConfig(
        name=Network.LOCALSECRET,
        chain_id="secretdev-1",
        api_url="http://localhost:1317",
    ),
}


def get_network_config(network: Network, api_url: Optional[str] = None) -> NetworkConfig:
    cfg = NETWORKS[network]
    if api_url:
        return NetworkConfig(
            name=cfg.name,
            chain_id=cfg.chain_id,
            api_url=api_url,
            bech32_prefix=cfg.bech32_prefix,
            fee_denom=cfg.fee_denom,
        )
    return cfg


class BroadcastMode(str, Enum):
    """When ``POST /txs`` returns relative to block inclusion."""

    BLOCK = "block"
    SYNC = "sync"
    ASYNC = "async"


@dataclass
class StdFee:
    amount: List[Dict[str, str]]
    gas: str

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": [dict(c) for c in self.amount], "gas": self.gas}


def _fee(amount: str, gas: str, denom: str = "uscrt") -> StdFee:
    return StdFee(amount=[{"amount": amount, "denom": denom}], gas=gas)


@dataclass
class FeeTable:
    """Default fees per message type. Override fields to tune gas."""

    upload: StdFee = field(default_factory=lambda: _fee("250000", "1000000"))
    init: StdFee = field(default_factory=lambda: _fee("125000", "500000"))
    exec: StdFee = field(default_factory=lambda: _fee("50000", "200000"))
    send: StdFee = field(default_factory=lambda: _fee("20000", "80000"))


class ClientConfig(BaseModel):
    """
    Connection settings for CosmWasmClient.

    Example:
        ```python
        config = ClientConfig(api_url="http://localhost:1317", timeout_ms=10000)
        client = CosmWasmClient.from_config(config)
        ```
    """

    model_config = ConfigDict(frozen=True)

    api_url: str = Field(..., description="Base URL of the node's REST (LCD) API")
    broadcast_mode: BroadcastMode = Field(default=BroadcastMode.BLOCK)
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=1000,
        description="Per-request timeout in milliseconds",
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for idempotent GETs on transport failure",
    )

    @classmethod
    def for_network(cls, network: Network, **overrides: Any) -> "ClientConfig":
        return cls(api_url=get_network_config(network).api_url, **overrides)
