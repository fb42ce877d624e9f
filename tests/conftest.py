"""
Shared fixtures: a fake node and a fake enclave.

The enclave side derives the same X25519/HKDF key as the client, so
tests can open what the client sealed and seal replies (or contract
errors) under the client's nonce.
"""

import base64
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey, X25519PublicKey
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from secretwasm.constants import HKDF_SALT
from secretwasm.encryption import EnigmaUtils
from secretwasm.utils.retry import NO_RETRY


# =============================================================================
# Test Constants
# =============================================================================

API_URL = "http://node.test:1317"
CHAIN_ID = "secretdev-1"

CONSENSUS_SEED = bytes(range(32))
CLIENT_SEED = bytes([7] * 32)

CODE_ID = 3
CODE_HASH = "ab" * 32
CONTRACT_ADDRESS = "secret1contract0000000000000000000000000000"
SENDER_ADDRESS = "secret1sender00000000000000000000000000000"

TX_HASH = "A1" * 32


def _raw_pubkey(seed: bytes) -> bytes:
    return (
        X25519PrivateKey.from_private_bytes(seed)
        .public_key()
        .public_bytes(Encoding.Raw, PublicFormat.Raw)
    )


CONSENSUS_PUBKEY = _raw_pubkey(CONSENSUS_SEED)
CLIENT_PUBKEY = _raw_pubkey(CLIENT_SEED)


# =============================================================================
# Fake enclave
# =============================================================================


def enclave_key(client_pubkey: bytes, nonce: bytes) -> bytes:
    """Key the enclave derives for a message from ``client_pubkey``."""
    ikm = X25519PrivateKey.from_private_bytes(CONSENSUS_SEED).exchange(
        X25519PublicKey.from_public_bytes(client_pubkey)
    )
    return HKDF(algorithm=hashes.SHA256(), length=32, salt=HKDF_SALT, info=b"").derive(
        ikm + nonce
    )


def enclave_open(wire: bytes) -> Tuple[bytes, bytes, str, Any]:
    """Split and decrypt wire bytes: (nonce, client_pubkey, code_hash, msg)."""
    nonce, pubkey, body = wire[:32], wire[32:64], wire[64:]
    plaintext = AESSIV(enclave_key(pubkey, nonce)).decrypt(body, [b""])
    return nonce, pubkey, plaintext[:64].decode(), json.loads(plaintext[64:])


def enclave_seal(nonce: bytes, plaintext: bytes, client_pubkey: bytes = CLIENT_PUBKEY) -> bytes:
    return AESSIV(enclave_key(client_pubkey, nonce)).encrypt(plaintext, [b""])


def encrypted_tx_error(nonce: bytes, text: str) -> str:
    """Raw log of a contract failure, as the chain would emit it."""
    ciphertext = base64.b64encode(enclave_seal(nonce, text.encode())).decode()
    return f"contract failed: encrypted: {ciphertext}: failed to execute message; message index: 0"


def smart_query_wire(request: httpx.Request) -> bytes:
    """Wire bytes carried in a smart query URL."""
    encoded = request.url.path.rsplit("/", 1)[-1]
    return base64.b64decode(bytes.fromhex(encoded))


# =============================================================================
# Fake node
# =============================================================================

Handler = Callable[[httpx.Request], httpx.Response]


class FakeNode:
    """
    Route table behind an httpx.MockTransport.

    Routes match on method and exact path, or on a path prefix. Unrouted
    requests answer 501 so a missing route never looks like "not found".
    """

    def __init__(self) -> None:
        self._exact: Dict[Tuple[str, str], Handler] = {}
        self._prefix: List[Tuple[str, str, Handler]] = []
        self.requests: List[httpx.Request] = []

    def on(
        self,
        method: str,
        path: str,
        json_data: Any = None,
        status: int = 200,
        handler: Optional[Handler] = None,
        prefix: bool = False,
    ) -> None:
        if handler is None:
            def handler(_request: httpx.Request) -> httpx.Response:
                return httpx.Response(status, json=json_data)
        if prefix:
            self._prefix.append((method, path, handler))
        else:
            self._exact[(method, path)] = handler

    def requests_to(self, path_prefix: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(path_prefix)]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._exact.get((request.method, request.url.path))
        if handler is None:
            for method, path, candidate in self._prefix:
                if request.method == method and request.url.path.startswith(path):
                    handler = candidate
                    break
        if handler is None:
            return httpx.Response(501, json={"error": f"unrouted {request.method} {request.url.path}"})
        return handler(request)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def node() -> FakeNode:
    """Fake node with the code hash routes for the test contract."""
    fake = FakeNode()
    fake.on("GET", f"/wasm/contract/{CONTRACT_ADDRESS}/code-hash", {"height": "10", "result": CODE_HASH})
    fake.on("GET", f"/wasm/code/{CODE_ID}/hash", {"height": "10", "result": CODE_HASH})
    fake.on("GET", "/node_info", {"node_info": {"network": CHAIN_ID}})
    return fake


@pytest.fixture
def enigma() -> EnigmaUtils:
    """EnigmaUtils with a fixed seed and a known consensus IO key."""
    return EnigmaUtils(API_URL, CLIENT_SEED, consensus_io_pubkey=CONSENSUS_PUBKEY)


@pytest.fixture
def client_kwargs(node: FakeNode, enigma: EnigmaUtils) -> Dict[str, Any]:
    return {"enigma": enigma, "transport": node.transport(), "retry_config": NO_RETRY}
