"""
Pytest configuration and shared fixtures for chaindash tests.
"""

import json

import pytest
import responses

from chaindash.lib.alchemy_client import AlchemyClient


@pytest.fixture
def sample_wallet_address():
    """Sample Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def mock_alchemy_api_key():
    """Mock Alchemy API key for testing."""
    return "test-api-key-12345"


@pytest.fixture
def rpc_url(mock_alchemy_api_key):
    """JSON-RPC endpoint for Ethereum mainnet."""
    return f"https://eth-mainnet.g.alchemy.com/v2/{mock_alchemy_api_key}"


@pytest.fixture
def nft_url(mock_alchemy_api_key):
    """NFT REST endpoint for getNFTsForOwner on Ethereum mainnet."""
    return f"https://eth-mainnet.g.alchemy.com/nft/v3/{mock_alchemy_api_key}/getNFTsForOwner"


@pytest.fixture
def client(mock_alchemy_api_key):
    """AlchemyClient with near-zero retry delays."""
    return AlchemyClient(mock_alchemy_api_key, initial_delay=0.001, jitter=0)


@pytest.fixture
def rpc_router(rpc_url):
    """
    Register a JSON-RPC dispatcher on the mocked endpoint.

    Handlers are keyed by method name. A handler is either a fixed result or a
    callable receiving the request params. Returning an Exception instance
    produces a JSON-RPC error response. Pass `url` to mock another network's
    endpoint. Must be used under @responses.activate.

    Returns the list of (method, params) calls received.
    """
    calls = []

    def register(handlers, url=None):
        def callback(request):
            payload = json.loads(request.body)
            method, params = payload["method"], payload["params"]
            calls.append((method, params))
            handler = handlers[method]
            result = handler(*params) if callable(handler) else handler
            if isinstance(result, Exception):
                body = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": str(result)}}
            else:
                body = {"jsonrpc": "2.0", "id": 1, "result": result}
            return (200, {}, json.dumps(body))

        responses.add_callback(
            responses.POST,
            url or rpc_url,
            callback=callback,
            content_type="application/json",
        )
        return calls

    return register
