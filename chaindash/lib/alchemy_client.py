"""
Alchemy API client with timeout, rate limit handling and retry logic.

This module provides a centralized client for all Alchemy API interactions
used by the dashboard, handling network-specific endpoints, per-request
timeouts, 429 rate limit retries and ingress parsing of responses.
"""

import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from .models import (
    AssetTransferPage,
    AssetTransferParams,
    BlockHeader,
    NFTPage,
    TokenBalances,
    TokenMetadata,
)

logger = logging.getLogger(__name__)

# Network configuration mapping
NETWORK_ENDPOINTS = {
    "ethereum": "eth-mainnet.g.alchemy.com",
    "polygon": "polygon-mainnet.g.alchemy.com",
    "base": "base-mainnet.g.alchemy.com",
    "bnb": "bnb-mainnet.g.alchemy.com",
}

DEFAULT_TIMEOUT = 10.0  # seconds, per HTTP request

# Retry configuration
DEFAULT_INITIAL_DELAY = 1.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_MAX_DELAY = 32.0  # seconds
DEFAULT_JITTER = 0.1  # ±10%


class AlchemyAPIError(Exception):
    """Exception raised for Alchemy API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AlchemyRateLimitError(AlchemyAPIError):
    """Exception raised when rate limit is exceeded and retries are exhausted."""

    pass


class AlchemyTimeoutError(AlchemyAPIError):
    """Exception raised when a request or operation exceeds its deadline."""

    def __init__(self, message: str = "Request timeout"):
        super().__init__(message)


class AlchemyClient:
    """
    Centralized Alchemy API client for one network.

    All API interactions go through this class, which handles:
    - Network-specific endpoint URLs
    - Per-request timeouts
    - HTTP 429 rate limit retries with exponential backoff
    - Request/response serialization
    """

    def __init__(
        self,
        api_key: str,
        network: str = "ethereum",
        timeout: float = DEFAULT_TIMEOUT,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_delay: float = DEFAULT_MAX_DELAY,
        jitter: float = DEFAULT_JITTER,
    ):
        """
        Initialize the Alchemy client.

        Args:
            api_key: Alchemy API key
            network: Target network (ethereum, polygon, base, bnb)
            timeout: Timeout in seconds applied to every HTTP request
            initial_delay: Initial delay in seconds for retry backoff
            backoff_multiplier: Multiplier for exponential backoff
            max_retries: Maximum number of retry attempts
            max_delay: Maximum delay cap in seconds
            jitter: Jitter factor (±percentage) to randomize delays
        """
        if network not in NETWORK_ENDPOINTS:
            raise ValueError(f"Unsupported network: {network}")
        self.api_key = api_key
        self.network = network
        self.timeout = timeout
        self.initial_delay = initial_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_retries = max_retries
        self.max_delay = max_delay
        self.jitter = jitter
        self.session = requests.Session()

    def _sanitize_error_message(self, message: str) -> str:
        """Remove API key from error messages to prevent credential leakage."""
        return message.replace(self.api_key, "[REDACTED]")

    def _get_base_url(self) -> str:
        """Get the JSON-RPC URL for the client's network."""
        return f"https://{NETWORK_ENDPOINTS[self.network]}/v2/{self.api_key}"

    def _get_nft_api_url(self) -> str:
        """Get the NFT API URL for the client's network."""
        return f"https://{NETWORK_ENDPOINTS[self.network]}/nft/v3/{self.api_key}"

    def _apply_jitter(self, delay: float) -> float:
        """Apply random jitter to a delay value."""
        jitter_range = delay * self.jitter
        return delay + random.uniform(-jitter_range, jitter_range)

    def _execute_with_retry(
        self,
        request_func: Callable[[], requests.Response],
    ) -> requests.Response:
        """
        Execute a request function with retry logic for rate limits and server errors.

        Timeouts are not retried: the caller's deadline has already been spent.

        Args:
            request_func: A callable that returns a requests.Response

        Returns:
            The successful response

        Raises:
            AlchemyAPIError: For API errors after retries exhausted
            AlchemyRateLimitError: When rate limit retries are exhausted
            AlchemyTimeoutError: When the request times out
        """
        delay = self.initial_delay

        for attempt in range(self.max_retries + 1):
            try:
                response = request_func()

                if response.status_code == 429:
                    if attempt < self.max_retries:
                        sleep_time = self._apply_jitter(min(delay, self.max_delay))
                        logger.warning("Rate limited by Alchemy, retrying in %.2fs", sleep_time)
                        time.sleep(sleep_time)
                        delay *= self.backoff_multiplier
                        continue
                    raise AlchemyRateLimitError(
                        "Rate limit exceeded and max retries reached",
                        status_code=429,
                    )

                if response.status_code == 401:
                    raise AlchemyAPIError("Invalid API key", status_code=401)

                if response.status_code >= 500:
                    if attempt < self.max_retries:
                        sleep_time = self._apply_jitter(min(delay, self.max_delay))
                        logger.warning(
                            "Alchemy server error %s, retrying in %.2fs",
                            response.status_code,
                            sleep_time,
                        )
                        time.sleep(sleep_time)
                        delay *= self.backoff_multiplier
                        continue
                    raise AlchemyAPIError(
                        f"Server error: {response.status_code}",
                        status_code=response.status_code,
                    )

                if not response.ok:
                    raise AlchemyAPIError(
                        f"Alchemy API error! status: {response.status_code}",
                        status_code=response.status_code,
                    )
                return response

            except requests.Timeout as e:
                raise AlchemyTimeoutError() from e

            except requests.RequestException as e:
                if attempt < self.max_retries:
                    sleep_time = self._apply_jitter(min(delay, self.max_delay))
                    time.sleep(sleep_time)
                    delay *= self.backoff_multiplier
                    continue
                sanitized_msg = self._sanitize_error_message(str(e))
                raise AlchemyAPIError(f"Request failed: {sanitized_msg}") from e

        raise AlchemyAPIError("Max retries exceeded")

    def _request(self, method: str, params: List[Any], request_id: int = 1) -> Any:
        """
        Make a JSON-RPC request with automatic 429 retry and exponential backoff.

        Args:
            method: JSON-RPC method name
            params: Method parameters
            request_id: JSON-RPC request ID

        Returns:
            The 'result' field from the JSON-RPC response

        Raises:
            AlchemyAPIError: For API errors
            AlchemyRateLimitError: When rate limit retries are exhausted
            AlchemyTimeoutError: When the request times out
        """
        url = self._get_base_url()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": request_id,
        }

        response = self._execute_with_retry(
            lambda: self.session.post(url, json=payload, timeout=self.timeout)
        )
        try:
            data = response.json()
        except ValueError as e:
            raise AlchemyAPIError(f"Invalid JSON response for {method}") from e

        if not isinstance(data, dict):
            raise AlchemyAPIError(f"Unexpected JSON-RPC envelope for {method}")

        if "error" in data:
            error = data["error"]
            if isinstance(error, dict):
                raise AlchemyAPIError(
                    f"API error: {error.get('message', str(error))}",
                    status_code=error.get("code"),
                )
            raise AlchemyAPIError(f"API error: {error}")

        return data.get("result")

    def _request_nft_api(self, endpoint: str, params: Dict[str, Any]) -> Any:
        """
        Make a REST request to the NFT API with automatic retry.

        Args:
            endpoint: API endpoint path (e.g., "getNFTsForOwner")
            params: Query parameters

        Returns:
            The JSON response
        """
        url = f"{self._get_nft_api_url()}/{endpoint}"

        response = self._execute_with_retry(
            lambda: self.session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        )
        try:
            return response.json()
        except ValueError as e:
            raise AlchemyAPIError(f"Invalid JSON response for {endpoint}") from e

    def get_latest_block_number(self) -> str:
        """
        Get the number of the chain head.

        Returns:
            Hex-encoded block number (e.g. "0x12a05f2")
        """
        result = self._request("eth_blockNumber", [])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise AlchemyAPIError(f"Malformed block number: {result!r}")
        return result

    def get_block_by_number(self, block: str = "latest", include_transactions: bool = False) -> BlockHeader:
        """
        Get a block header by number or tag.

        Args:
            block: Hex block number or tag ("latest", "finalized", ...)
            include_transactions: Whether to ask for full transaction objects

        Returns:
            BlockHeader with number and timestamp
        """
        result = self._request("eth_getBlockByNumber", [block, include_transactions])
        try:
            return BlockHeader.from_result(result)
        except ValueError as e:
            raise AlchemyAPIError(str(e)) from e

    def get_asset_transfers(self, params: AssetTransferParams) -> AssetTransferPage:
        """
        Get one page of asset transfers matching a query.

        Malformed results are logged and treated as an empty page.

        Args:
            params: Transfer query

        Returns:
            AssetTransferPage with transfers and the provider's pageKey
        """
        result = self._request("alchemy_getAssetTransfers", [params.to_params()])
        if not isinstance(result, dict):
            logger.warning("Unexpected response format from Alchemy API: %r", result)
        return AssetTransferPage.from_result(result)

    def get_code(self, address: str) -> str:
        """Get the deployed bytecode at an address ("0x" for externally owned accounts)."""
        result = self._request("eth_getCode", [address, "latest"])
        if not isinstance(result, str):
            raise AlchemyAPIError(f"Malformed bytecode response for {address}")
        return result

    def get_native_balance(self, wallet: str) -> str:
        """
        Get native token balance (ETH, MATIC, BNB) for a wallet.

        Args:
            wallet: Wallet address

        Returns:
            Raw balance in wei as returned by the node (hex string)
        """
        result = self._request("eth_getBalance", [wallet, "latest"])
        if not isinstance(result, str):
            raise AlchemyAPIError(f"Malformed balance response for {wallet}")
        return result

    def get_token_balances(self, wallet: str) -> TokenBalances:
        """
        Get all ERC-20 token balances for a wallet.

        Automatically paginates through all results.

        Args:
            wallet: Wallet address

        Returns:
            TokenBalances with one entry per token contract
        """
        balances = TokenBalances(address=wallet, token_balances=[])
        page_key: Optional[str] = None

        while True:
            params: List[Any] = [wallet, "erc20"]
            if page_key:
                params.append({"pageKey": page_key})

            result = self._request("alchemy_getTokenBalances", params)
            page = TokenBalances.from_result(result, wallet)
            balances.address = page.address
            balances.token_balances.extend(page.token_balances)

            page_key = result.get("pageKey") if isinstance(result, dict) else None
            if not page_key:
                break

        return balances

    def get_token_metadata(self, contract: str) -> TokenMetadata:
        """
        Get metadata (name, symbol, logo, decimals, token type) for a token contract.

        Args:
            contract: Token contract address

        Returns:
            TokenMetadata object
        """
        result = self._request("alchemy_getTokenMetadata", [contract])
        return TokenMetadata.from_result(result)

    def get_nfts_for_owner(
        self,
        owner: str,
        page_key: Optional[str] = None,
        page_size: int = 100,
    ) -> NFTPage:
        """
        Get one page of NFTs owned by a wallet.

        Args:
            owner: Wallet address
            page_key: Cursor returned by the previous page
            page_size: Number of NFTs per page

        Returns:
            NFTPage with the NFTs, total count and next cursor
        """
        if not owner:
            raise ValueError("Address parameter is required")

        params: Dict[str, Any] = {
            "owner": owner,
            "withMetadata": "true",
            "pageSize": page_size,
        }
        if page_key:
            params["pageKey"] = page_key

        return NFTPage.from_result(self._request_nft_api("getNFTsForOwner", params))
