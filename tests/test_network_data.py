"""
Unit tests for network-level queries.

Tests follow the Given/When/Then pattern for clarity.
"""

import time

import pytest
import responses

from chaindash.lib.alchemy_client import AlchemyAPIError, AlchemyTimeoutError
from chaindash.lib.config import ActivityConfig
from chaindash.lib.models import AssetTransferParams, BlockHeader, TopEntity
from chaindash.lib.network_data import (
    block_window,
    get_asset_transfers,
    get_network_block,
    get_top_wallets_and_contracts,
    with_timeout,
)


class TestWithTimeout:
    """Tests for the overall deadline wrapper."""

    def test_returns_result_when_fast(self):
        """
        Given a function that returns immediately
        When running it with a deadline
        Then its result should be returned
        """
        assert with_timeout(lambda a, b: a + b, 1.0, 2, b=3) == 5

    def test_raises_request_timeout_when_slow(self):
        """
        Given a function slower than the deadline
        When running it with a deadline
        Then AlchemyTimeoutError("Request timeout") should be raised
        """
        with pytest.raises(AlchemyTimeoutError, match="^Request timeout$"):
            with_timeout(time.sleep, 0.05, 1.0)

    def test_propagates_function_errors(self):
        """
        Given a function that raises
        When running it with a deadline
        Then the original error should propagate
        """

        def failing():
            raise AlchemyAPIError("Server error: 503", status_code=503)

        with pytest.raises(AlchemyAPIError, match="Server error: 503"):
            with_timeout(failing, 1.0)


class TestBlockWindow:
    """Tests for look-back window computation."""

    def test_computes_hex_window(self):
        """
        Given a chain head at 0x100000 and a 5000 block look-back
        When computing the window
        Then fromBlock should be 0xfec78 and toBlock the head
        """
        assert block_window("0x100000", 5000) == ("0xfec78", "0x100000")

    def test_clamps_at_genesis(self):
        """
        Given a chain shorter than the look-back
        When computing the window
        Then fromBlock should be 0x0
        """
        assert block_window("0x10", 5000) == ("0x0", "0x10")


class TestNetworkQueries:
    """Tests for block and transfer query helpers."""

    @responses.activate
    def test_get_network_block_fetches_latest_header(self, client, rpc_router):
        """
        Given a latest block
        When calling get_network_block
        Then eth_getBlockByNumber("latest", false) should be used
        """
        # Given
        calls = rpc_router({"eth_getBlockByNumber": {"number": "0x100000", "timestamp": "0x65"}})

        # When
        block = get_network_block(client)

        # Then
        assert block == BlockHeader(number="0x100000", timestamp="0x65")
        assert calls == [("eth_getBlockByNumber", ["latest", False])]

    @responses.activate
    def test_get_asset_transfers_returns_empty_for_missing_transfers(self, client, rpc_router):
        """
        Given a provider result without transfers
        When calling get_asset_transfers
        Then an empty list should be returned
        """
        rpc_router({"alchemy_getAssetTransfers": {}})

        assert get_asset_transfers(client, AssetTransferParams(from_block="0x1", to_block="0x2")) == []


class TestGetTopWalletsAndContracts:
    """Tests for the top activity report."""

    @responses.activate
    def test_ranks_activity_over_recent_window(self, client, rpc_router):
        """
        Given recent transfers between wallets and a contract
        When building the top activity report
        Then a 500-block window should be queried and the addresses ranked
        """
        # Given
        transfers = [
            {"hash": "0x1", "from": "0xA", "to": "0xC1", "blockNum": "0x100"},
            {"hash": "0x2", "from": "0xA", "to": "0xC1", "blockNum": "0x101"},
            {"hash": "0x3", "from": "0xB", "to": "0xA", "blockNum": "0x102"},
        ]
        calls = rpc_router(
            {
                "eth_blockNumber": "0x1000",
                "alchemy_getAssetTransfers": {"transfers": transfers},
                "eth_getCode": lambda address, tag: "0x6080" if address == "0xC1" else "0x",
            }
        )

        # When
        results = get_top_wallets_and_contracts(client)

        # Then
        assert results.top_contracts == [TopEntity("0xC1", 2)]
        assert results.top_wallets == [TopEntity("0xA", 3), TopEntity("0xB", 1)]
        query = next(params[0] for method, params in calls if method == "alchemy_getAssetTransfers")
        assert query == {
            "fromBlock": "0xe0c",
            "toBlock": "0x1000",
            "category": ["external", "erc20"],
            "excludeZeroValue": True,
            "maxCount": "0x1f4",
        }

    @responses.activate
    def test_respects_configured_limit(self, client, rpc_router):
        """
        Given many active wallets
        When building the report with limit 1
        Then only one wallet should be returned
        """
        # Given
        rpc_router(
            {
                "eth_blockNumber": "0x1000",
                "alchemy_getAssetTransfers": {
                    "transfers": [{"from": f"0x{i}", "to": "0xW", "hash": "0xh", "blockNum": "0x1"} for i in range(3)]
                },
                "eth_getCode": "0x",
            }
        )

        # When
        results = get_top_wallets_and_contracts(client, ActivityConfig(limit=1))

        # Then
        assert results.top_wallets == [TopEntity("0xW", 3)]
        assert results.top_contracts == []
