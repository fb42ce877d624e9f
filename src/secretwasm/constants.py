"""Protocol constants shared across the secretwasm SDK."""

import re

__all__ = [
    "NONCE_LENGTH",
    "X25519_KEY_LENGTH",
    "HKDF_SALT",
    "CODE_HASH_HEX_LENGTH",
    "ENCRYPTED_ERROR_PATTERN",
    "ENCRYPTED_QUERY_ERROR_PATTERN",
    "TX_HASH_PATTERN",
    "SEARCH_TX_ID_PATTERN",
    "MAX_SEARCH_RESULTS",
    "DEFAULT_TIMEOUT_MS",
    "PUBKEY_TYPE_SECP256K1",
    "MSG_EXECUTE_CONTRACT",
    "MSG_INSTANTIATE_CONTRACT",
]

# Transaction encryption
NONCE_LENGTH = 32
X25519_KEY_LENGTH = 32
HKDF_SALT = bytes.fromhex(
    "000000000000000000024bead8df69990852c202db0e0097c1a12ea637d7e96d"
)
CODE_HASH_HEX_LENGTH = 64

# Encrypted error markers emitted by the chain. The tx form is matched
# against the whole message; the query form is embedded in the node's
# HTTP error text.
ENCRYPTED_ERROR_PATTERN = re.compile(
    r"contract failed: encrypted: (.+?): failed to execute message; message index: 0"
)
ENCRYPTED_QUERY_ERROR_PATTERN = re.compile(
    r"query wasm contract failed: encrypted: (.+?) \(HTTP 500\)"
)

# Chain response validation
TX_HASH_PATTERN = re.compile(r"^([0-9A-F][0-9A-F])+$")
SEARCH_TX_ID_PATTERN = re.compile(r"^[0-9A-Fa-f]{64}$")
MAX_SEARCH_RESULTS = 100

# Transport
DEFAULT_TIMEOUT_MS = 30000

# Amino type names
PUBKEY_TYPE_SECP256K1 = "tendermint/PubKeySecp256k1"
MSG_EXECUTE_CONTRACT = "wasm/MsgExecuteContract"
MSG_INSTANTIATE_CONTRACT = "wasm/MsgInstantiateContract"
