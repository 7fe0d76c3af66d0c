"""Unit tests for the web3-backed ledger client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from web3.datastructures import AttributeDict
from web3.exceptions import BlockNotFound, TransactionNotFound

from paylink.services.blockchain.ledger_client import Web3LedgerClient
from paylink.utils.exceptions import ConfigurationMissing


@pytest.fixture
def web3():
    return MagicMock()


@pytest.fixture
def client(web3):
    return Web3LedgerClient(rpc_url="http://127.0.0.1:8545", web3=web3)


class TestReads:
    """Tests for receipt, block and balance reads."""

    @pytest.mark.asyncio
    async def test_receipt_not_indexed(self, client, web3, tx_hash):
        web3.eth.get_transaction_receipt = AsyncMock(side_effect=TransactionNotFound("missing"))

        assert await client.get_receipt(tx_hash) is None

    @pytest.mark.asyncio
    async def test_receipt_converted(self, client, web3, tx_hash):
        web3.eth.get_transaction_receipt = AsyncMock(
            return_value=AttributeDict({"status": 1, "blockNumber": 16, "logs": []})
        )

        receipt = await client.get_receipt(tx_hash)

        assert receipt.succeeded
        assert receipt.block_reference == "0x10"
        web3.eth.get_transaction_receipt.assert_awaited_once_with(tx_hash)

    @pytest.mark.asyncio
    async def test_block_timestamp(self, client, web3):
        web3.eth.get_block = AsyncMock(return_value=AttributeDict({"timestamp": 1_700_000_000}))

        assert await client.get_block_timestamp("0x10") == 1_700_000_000
        web3.eth.get_block.assert_awaited_once_with(16)

    @pytest.mark.asyncio
    async def test_unknown_block(self, client, web3):
        web3.eth.get_block = AsyncMock(side_effect=BlockNotFound("missing"))

        assert await client.get_block_timestamp("0x10") is None

    @pytest.mark.asyncio
    async def test_malformed_block_reference_skips_rpc(self, client, web3):
        web3.eth.get_block = AsyncMock()

        assert await client.get_block_timestamp("latest") is None
        web3.eth.get_block.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_balance(self, client, web3, token_contract, sender_address):
        contract = web3.eth.contract.return_value
        contract.functions.balanceOf.return_value.call = AsyncMock(return_value=5_000_000)

        assert await client.get_token_balance(token_contract, sender_address) == 5_000_000


class TestWrites:
    """Tests for submission and confirmation."""

    @pytest.mark.asyncio
    async def test_submit_requires_key(self, client, token_contract, recipient_address):
        assert client.sender_address is None

        with pytest.raises(ConfigurationMissing):
            await client.submit_transfer(token_contract, recipient_address, 1_000_000)

    @pytest.mark.asyncio
    async def test_confirmation_wait_is_unbounded_by_default(self, client, web3, tx_hash):
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": "0x0", "blockNumber": "0x20", "logs": []}
        )

        receipt = await client.wait_for_confirmation(tx_hash)

        assert not receipt.succeeded
        assert receipt.block_reference == "0x20"
        web3.eth.wait_for_transaction_receipt.assert_awaited_once_with(tx_hash, timeout=None)
