"""
Tests for MessageEncryptor.
"""

from unittest.mock import AsyncMock

import pytest

from secretwasm.cache import CodeHashCache
from secretwasm.encryption import EncryptedPayload, EnigmaUtils, MessageEncryptor, Nonce
from secretwasm.errors import NoContractFoundError, ValidationError

from ..conftest import CODE_HASH, CONTRACT_ADDRESS


def _lookup(code_hash: str = CODE_HASH) -> AsyncMock:
    lookup = AsyncMock()
    lookup.get_code_hash_by_code_id.return_value = code_hash
    lookup.get_code_hash_by_contract_address.return_value = code_hash
    return lookup


class TestEncrypt:
    """Tests for MessageEncryptor.encrypt."""

    @pytest.mark.asyncio
    async def test_calls_capability_once_per_encrypt(self) -> None:
        utils = AsyncMock()
        utils.encrypt.return_value = EncryptedPayload(ciphertext=b"x", nonce=Nonce.generate())
        encryptor = MessageEncryptor(utils, CodeHashCache(_lookup()))

        await encryptor.encrypt(CODE_HASH, {"a": 1})
        await encryptor.encrypt(CODE_HASH, {"a": 1})

        assert utils.encrypt.await_count == 2

    @pytest.mark.asyncio
    async def test_normalizes_code_hash(self) -> None:
        utils = AsyncMock()
        utils.encrypt.return_value = EncryptedPayload(ciphertext=b"x", nonce=Nonce.generate())
        encryptor = MessageEncryptor(utils, CodeHashCache(_lookup()))

        await encryptor.encrypt("0x" + CODE_HASH.upper(), {"a": 1})

        utils.encrypt.assert_awaited_once_with(CODE_HASH, {"a": 1})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code_hash", ["", "ab", "zz" * 32, "ab" * 33])
    async def test_rejects_malformed_code_hash(self, code_hash: str) -> None:
        utils = AsyncMock()
        encryptor = MessageEncryptor(utils, CodeHashCache(_lookup()))

        with pytest.raises(ValidationError) as exc_info:
            await encryptor.encrypt(code_hash, {"a": 1})

        assert exc_info.value.field == "code_hash"
        utils.encrypt.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_identical_messages_get_distinct_nonces(self, enigma: EnigmaUtils) -> None:
        encryptor = MessageEncryptor(enigma, CodeHashCache(_lookup()))

        first = await encryptor.encrypt(CODE_HASH, {"a": 1})
        second = await encryptor.encrypt(CODE_HASH, {"a": 1})

        assert first.nonce != second.nonce


class TestPrepare:
    """Tests for prepare_execute and prepare_instantiate."""

    @pytest.mark.asyncio
    async def test_prepare_execute(self, enigma: EnigmaUtils) -> None:
        lookup = _lookup()
        encryptor = MessageEncryptor(enigma, CodeHashCache(lookup))

        call = await encryptor.prepare_execute(CONTRACT_ADDRESS, {"increment": {}})

        assert call.code_hash == CODE_HASH
        assert call.contract_address == CONTRACT_ADDRESS
        assert call.message == {"increment": {}}
        plaintext = await enigma.decrypt(call.payload.ciphertext, call.nonce)
        assert plaintext == CODE_HASH.encode() + b'{"increment":{}}'
        lookup.get_code_hash_by_contract_address.assert_awaited_once_with(CONTRACT_ADDRESS)

    @pytest.mark.asyncio
    async def test_prepare_instantiate(self, enigma: EnigmaUtils) -> None:
        encryptor = MessageEncryptor(enigma, CodeHashCache(_lookup()))

        call = await encryptor.prepare_instantiate(3, {"count": 0})

        assert call.code_id == 3
        assert call.contract_address is None
        assert call.payload.pubkey == enigma.pubkey

    @pytest.mark.asyncio
    async def test_unknown_contract_encrypts_nothing(self) -> None:
        utils = AsyncMock()
        encryptor = MessageEncryptor(utils, CodeHashCache(_lookup(code_hash="")))

        with pytest.raises(NoContractFoundError):
            await encryptor.prepare_execute(CONTRACT_ADDRESS, {"a": 1})

        utils.encrypt.assert_not_awaited()

    def test_exposes_utils(self, enigma: EnigmaUtils) -> None:
        encryptor = MessageEncryptor(enigma, CodeHashCache(_lookup()))
        assert encryptor.utils is enigma
