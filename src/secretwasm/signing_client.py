"""Signing client: encrypted execute and instantiate transactions."""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional, Sequence, Union

from .client import CosmWasmClient
from .config import BroadcastMode, FeeTable, StdFee
from .constants import MSG_EXECUTE_CONTRACT, MSG_INSTANTIATE_CONTRACT
from .encoding import build_std_tx, make_sign_bytes
from .encryption import PendingCall
from .errors import ValidationError
from .models import Account, ExecuteResult, GetNonceResult, InstantiateResult, PostTxResult
from .pen import SigningCallback
from .rest import Coin, find_attribute
from .utils.logging import get_logger

_logger = get_logger(__name__)

Funds = Sequence[Union[Coin, Dict[str, str]]]


def _coins(funds: Optional[Funds]) -> List[Dict[str, str]]:
    return [c.model_dump() if isinstance(c, Coin) else dict(c) for c in funds or []]


def _fee_dict(fee: Union[StdFee, Dict[str, Any]]) -> Dict[str, Any]:
    return fee.to_dict() if isinstance(fee, StdFee) else fee


class SigningCosmWasmClient(CosmWasmClient):
    """
    CosmWasmClient that signs and broadcasts contract transactions.

    Each execute/instantiate encrypts its message with a fresh nonce and
    keeps that nonce with the transaction, so ``data`` in the result is
    decrypted and a PostTxError can recover the contract's error without
    arguments:

        >>> try:
        ...     await client.execute(addr, {"transfer": {...}})
        ... except PostTxError as e:
        ...     print(await e.decrypt(client.enigma))

    Args:
        api_url: URL of the node's REST API.
        sender_address: Bech32 address that signs every transaction.
        signer: Async callback returning a StdSignature for sign bytes,
            e.g. ``Secp256k1Pen.sign``.
        seed: 32-byte seed for the transaction encryption keypair.
        fee_table: Default fees per operation.
        broadcast_mode: When ``post_tx`` returns relative to block inclusion.
    """

    def __init__(
        self,
        api_url: str,
        sender_address: str,
        signer: SigningCallback,
        seed: Optional[bytes] = None,
        fee_table: Optional[FeeTable] = None,
        broadcast_mode: BroadcastMode = BroadcastMode.BLOCK,
        **kwargs: Any,
    ) -> None:
        super().__init__(api_url, seed, broadcast_mode, **kwargs)
        if not sender_address:
            raise ValidationError("sender_address is required", field="sender_address")
        self._sender_address = sender_address
        self._signer = signer
        self._fees = fee_table or FeeTable()

    @property
    def sender_address(self) -> str:
        return self._sender_address

    @property
    def fees(self) -> FeeTable:
        return self._fees

    async def get_nonce(self, address: Optional[str] = None) -> GetNonceResult:
        return await super().get_nonce(address or self._sender_address)

    async def get_account(self, address: Optional[str] = None) -> Optional[Account]:
        return await super().get_account(address or self._sender_address)

    async def execute(
        self,
        contract_address: str,
        handle_msg: Dict[str, Any],
        memo: str = "",
        transfer_amount: Optional[Funds] = None,
        fee: Optional[Union[StdFee, Dict[str, Any]]] = None,
    ) -> ExecuteResult:
        """
        Execute a contract's handle function.

        Raises:
            NoContractFoundError: No contract at ``contract_address``.
            PostTxError: The chain rejected the transaction.
        """
        call = await self._encryptor.prepare_execute(contract_address, handle_msg)
        msg = {
            "type": MSG_EXECUTE_CONTRACT,
            "value": {
                "sender": self._sender_address,
                "contract": contract_address,
                "callback_code_hash": "",
                "msg": base64.b64encode(call.payload.wire_bytes).decode("ascii"),
                "sent_funds": _coins(transfer_amount),
                "callback_sig": None,
            },
        }
        result = await self._sign_and_post([msg], _fee_dict(fee or self._fees.exec), memo, call)
        _logger.info(
            "Contract executed",
            extra={"contract": contract_address, "txhash": result.transaction_hash},
        )
        return ExecuteResult(
            logs=result.logs,
            transaction_hash=result.transaction_hash,
            data=result.data or b"",
        )

    async def instantiate(
        self,
        code_id: int,
        init_msg: Dict[str, Any],
        label: str,
        memo: str = "",
        transfer_amount: Optional[Funds] = None,
        fee: Optional[Union[StdFee, Dict[str, Any]]] = None,
    ) -> InstantiateResult:
        """
        Instantiate a new contract from uploaded code.

        The new address is read from the ``message`` event's
        ``contract_address`` attribute.

        Raises:
            ValidationError: Empty label.
            NoContractFoundError: No code stored under ``code_id``.
            PostTxError: The chain rejected the transaction.
            InvalidResponseError: The logs carry no contract address.
        """
        if not label:
            raise ValidationError("label must not be empty", field="label")

        call = await self._encryptor.prepare_instantiate(code_id, init_msg)
        msg = {
            "type": MSG_INSTANTIATE_CONTRACT,
            "value": {
                "sender": self._sender_address,
                "code_id": str(code_id),
                "label": label,
                "callback_code_hash": "",
                "init_msg": base64.b64encode(call.payload.wire_bytes).decode("ascii"),
                "init_funds": _coins(transfer_amount),
                "callback_sig": None,
            },
        }
        result = await self._sign_and_post([msg], _fee_dict(fee or self._fees.init), memo, call)
        contract_address = find_attribute(result.logs, "message", "contract_address").value
        _logger.info(
            "Contract instantiated",
            extra={"code_id": code_id, "contract": contract_address, "txhash": result.transaction_hash},
        )
        return InstantiateResult(
            contract_address=contract_address,
            logs=result.logs,
            transaction_hash=result.transaction_hash,
            data=result.data or b"",
        )

    async def _sign_and_post(
        self,
        msgs: List[Dict[str, Any]],
        fee: Dict[str, Any],
        memo: str,
        call: PendingCall,
    ) -> PostTxResult:
        chain_id = await self.get_chain_id()
        nonce = await self.get_nonce()
        sign_bytes = make_sign_bytes(msgs, fee, chain_id, memo, nonce.account_number, nonce.sequence)
        signature = await self._signer(sign_bytes)
        tx = build_std_tx(msgs, fee, memo, [signature])
        return await self.post_tx(tx, call.nonce)
