#!/usr/bin/env python3
"""
Counter Contract Example

Demonstrates an encrypted query, an encrypted execute, and recovery of
an encrypted contract error against a running LocalSecret node with the
standard counter contract deployed.

Run with:
  CONTRACT_ADDRESS=secret1... PRIVATE_KEY=0x... SENDER_ADDRESS=secret1... \
    python examples/counter.py
"""

import asyncio
import os

from secretwasm import (
    ClientConfig,
    Network,
    PostTxError,
    QueryContractError,
    Secp256k1Pen,
    SigningCosmWasmClient,
    configure_logging,
    generate_seed,
)

CONTRACT_ADDRESS = os.environ["CONTRACT_ADDRESS"]
SENDER_ADDRESS = os.environ["SENDER_ADDRESS"]
PRIVATE_KEY = os.environ["PRIVATE_KEY"]


async def main() -> None:
    configure_logging("INFO")

    config = ClientConfig.for_network(Network.LOCALSECRET)
    pen = Secp256k1Pen.from_private_key(PRIVATE_KEY)
    client = SigningCosmWasmClient(
        config.api_url,
        SENDER_ADDRESS,
        pen.sign,
        seed=generate_seed(),
        broadcast_mode=config.broadcast_mode,
        timeout_ms=config.timeout_ms,
    )

    print(f"Chain: {await client.get_chain_id()}")
    print(f"Code hash: {await client.get_code_hash_by_contract_addr(CONTRACT_ADDRESS)}")

    count = await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}})
    print(f"Count before: {count}")

    result = await client.execute(CONTRACT_ADDRESS, {"increment": {}})
    print(f"Incremented in tx {result.transaction_hash}")

    count = await client.query_contract_smart(CONTRACT_ADDRESS, {"get_count": {}})
    print(f"Count after: {count}")

    # Only the owner may reset; anyone else gets an encrypted error back
    try:
        await client.execute(CONTRACT_ADDRESS, {"reset": {"count": 0}})
    except PostTxError as e:
        print(f"Reset rejected: {await e.decrypt(client.enigma)}")

    try:
        await client.query_contract_smart(CONTRACT_ADDRESS, {"no_such_query": {}})
    except QueryContractError as e:
        print(f"Query rejected: {e.log}")


if __name__ == "__main__":
    asyncio.run(main())
