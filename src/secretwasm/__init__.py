"""
secretwasm - Python SDK for confidential CosmWasm contracts on Secret Network.

Contract messages are encrypted for the enclave before they leave the
client, and contract answers and errors come back encrypted for the
caller. The SDK handles both directions.

Quick Start:
    >>> from secretwasm import CosmWasmClient
    >>> import asyncio
    >>>
    >>> async def main():
    ...     client = CosmWasmClient("http://localhost:1317")
    ...     answer = await client.query_contract_smart(
    ...         "secret1...", {"get_count": {}}
    ...     )
    ...     print(answer)
    ...
    >>> asyncio.run(main())

Modules:
- `client`: CosmWasmClient (queries, post_tx)
- `signing_client`: SigningCosmWasmClient (execute, instantiate)
- `encryption`: EnigmaUtils, MessageEncryptor, Nonce
- `protocol`: Encrypted error extraction and decryption
- `errors`: Exception hierarchy
- `utils`: Logging and retry helpers
"""

__version__ = "0.3.0"

# Clients
from secretwasm.client import CosmWasmClient
from secretwasm.signing_client import SigningCosmWasmClient
from secretwasm.pen import Secp256k1Pen, SigningCallback

# Config
from secretwasm.config import (
    NETWORKS,
    BroadcastMode,
    ClientConfig,
    FeeTable,
    Network,
    NetworkConfig,
    StdFee,
    get_network_config,
)

# Encryption
from secretwasm.cache import CodeHashCache
from secretwasm.encryption import (
    EncryptedPayload,
    EncryptionUtils,
    EnigmaUtils,
    MessageEncryptor,
    Nonce,
    PendingCall,
    generate_seed,
)

# Errors
from secretwasm.errors import (
    AccountDoesNotExistError,
    ChainIdEmptyError,
    CosmWasmClientError,
    DecryptionState,
    EncryptedError,
    ErrorKind,
    FailedToDecryptError,
    IllFormattedTxHashError,
    InvalidResponseError,
    MessageNotFoundError,
    NoContractFoundError,
    PostTxError,
    QueryContractError,
    RestError,
    SecretError,
    TooManyResultsError,
    UnknownQueryTypeError,
    ValidationError,
)

# Models
from secretwasm.models import (
    Account,
    Block,
    BlockHeader,
    Code,
    CodeDetails,
    Contract,
    ContractDetails,
    ExecuteResult,
    GetNonceResult,
    IndexedTx,
    InstantiateResult,
    PostTxResult,
)

# Utilities
from secretwasm.utils import configure_logging, get_logger

__all__ = [
    "__version__",
    # Clients
    "CosmWasmClient",
    "SigningCosmWasmClient",
    "Secp256k1Pen",
    "SigningCallback",
    # Config
    "Network",
    "NetworkConfig",
    "NETWORKS",
    "get_network_config",
    "BroadcastMode",
    "ClientConfig",
    "FeeTable",
    "StdFee",
    # Encryption
    "CodeHashCache",
    "EnigmaUtils",
    "EncryptionUtils",
    "MessageEncryptor",
    "Nonce",
    "EncryptedPayload",
    "PendingCall",
    "generate_seed",
    # Errors
    "ErrorKind",
    "SecretError",
    "ValidationError",
    "RestError",
    "DecryptionState",
    "EncryptedError",
    "MessageNotFoundError",
    "FailedToDecryptError",
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
    # Models
    "Account",
    "Block",
    "BlockHeader",
    "Code",
    "CodeDetails",
    "Contract",
    "ContractDetails",
    "ExecuteResult",
    "GetNonceResult",
    "IndexedTx",
    "InstantiateResult",
    "PostTxResult",
    # Utilities
    "get_logger",
    "configure_logging",
]
