"""
Amino JSON encoding of transactions, sign docs and signatures.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict, List, Sequence, Tuple

from .constants import PUBKEY_TYPE_SECP256K1

__all__ = [
    "StdTx",
    "StdSignature",
    "canonical_json",
    "make_sign_bytes",
    "build_std_tx",
    "tx_identifier",
    "encode_secp256k1_pubkey",
    "encode_secp256k1_signature",
    "decode_signature",
]

StdTx = Dict[str, Any]
StdSignature = Dict[str, Any]


def canonical_json(value: Any) -> bytes:
    """
    Sorted, compact JSON with ``&``, ``<`` and ``>`` escaped.

    Matches the byte layout the chain uses when it recomputes sign bytes.
    """
    encoded = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    encoded = encoded.replace("&", "\\u0026").replace("<", "\\u003c").replace(">", "\\u003e")
    return encoded.encode("utf-8")


def make_sign_bytes(
    msgs: Sequence[Dict[str, Any]],
    fee: Dict[str, Any],
    chain_id: str,
    memo: str,
    account_number: int,
    sequence: int,
) -> bytes:
    """Bytes to sign for a StdTx."""
    return canonical_json(
        {
            "account_number": str(account_number),
            "chain_id": chain_id,
            "fee": fee,
            "memo": memo,
            "msgs": list(msgs),
            "sequence": str(sequence),
        }
    )


def build_std_tx(
    msgs: Sequence[Dict[str, Any]],
    fee: Dict[str, Any],
    memo: str,
    signatures: List[StdSignature],
) -> StdTx:
    return {"msg": list(msgs), "fee": fee, "memo": memo, "signatures": signatures}


def tx_identifier(tx: StdTx) -> str:
    """Upper-case hex SHA-256 of the transaction's canonical JSON."""
    return hashlib.sha256(canonical_json(tx)).hexdigest().upper()


def encode_secp256k1_pubkey(pubkey: bytes) -> Dict[str, str]:
    if len(pubkey) != 33 or pubkey[0] not in (0x02, 0x03):
        raise ValueError("Public key must be compressed secp256k1, i.e. 33 bytes starting with 0x02 or 0x03")
    return {"type": PUBKEY_TYPE_SECP256K1, "value": base64.b64encode(pubkey).decode("ascii")}


def encode_secp256k1_signature(pubkey: bytes, signature: bytes) -> StdSignature:
    """
    Args:
        pubkey: Compressed secp256k1 public key (33 bytes).
        signature: Fixed-length ``r || s`` signature (64 bytes).
    """
    if len(signature) != 64:
        raise ValueError("Signature must be 64 bytes long (r || s)")
    return {
        "pub_key": encode_secp256k1_pubkey(pubkey),
        "signature": base64.b64encode(signature).decode("ascii"),
    }


def decode_signature(signature: StdSignature) -> Tuple[bytes, bytes]:
    """Inverse of encode_secp256k1_signature: ``(pubkey, r || s)``."""
    pub_key = signature["pub_key"]
    if pub_key.get("type") != PUBKEY_TYPE_SECP256K1:
        raise ValueError(f"Unsupported pubkey type: {pub_key.get('type')}")
    return base64.b64decode(pub_key["value"]), base64.b64decode(signature["signature"])
