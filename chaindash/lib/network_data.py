"""
Network-level queries: chain head, block windows and the top activity report.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from .alchemy_client import AlchemyClient, AlchemyTimeoutError
from .config import ActivityConfig
from .models import AssetTransferParams, BlockHeader, Transfer, TransferResults
from .transactions import contract_classifier, process_top_contracts_and_wallets

logger = logging.getLogger(__name__)

T = TypeVar("T")


def with_timeout(func: Callable[..., T], seconds: float, *args: Any, **kwargs: Any) -> T:
    """
    Run func(*args, **kwargs) with an overall deadline.

    The call runs on a worker thread. If it has not finished after `seconds`
    the caller gets AlchemyTimeoutError and the worker is abandoned; it stays
    bounded by the client's own per-request timeout.

    Raises:
        AlchemyTimeoutError: If the deadline passes first
    """
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(func, *args, **kwargs)
        try:
            return future.result(timeout=seconds)
        except FutureTimeoutError:
            future.cancel()
            raise AlchemyTimeoutError() from None
    finally:
        executor.shutdown(wait=False)


def block_window(latest_block: str, lookback: int) -> Tuple[str, str]:
    """
    Compute the (fromBlock, toBlock) hex pair covering the last `lookback` blocks.

    Examples:
        block_window("0x100000", 5000) -> ("0xfec78", "0x100000")
    """
    latest = int(latest_block, 16)
    return hex(max(latest - lookback, 0)), latest_block


def get_latest_block_number(client: AlchemyClient) -> str:
    return client.get_latest_block_number()


def get_network_block(client: AlchemyClient) -> BlockHeader:
    """Fetch the header of the latest block."""
    return client.get_block_by_number("latest", False)


def get_asset_transfers(client: AlchemyClient, params: AssetTransferParams) -> List[Transfer]:
    """Fetch transfers matching a query, ignoring pagination."""
    return client.get_asset_transfers(params).transfers


def get_top_wallets_and_contracts(
    client: AlchemyClient,
    config: Optional[ActivityConfig] = None,
) -> TransferResults:
    """
    Rank the most active contracts and wallets over a recent block window.

    Args:
        client: AlchemyClient instance
        config: Window size, transfer cap, timeout and ranking size

    Returns:
        TransferResults with top contracts and top wallets
    """
    if config is None:
        config = ActivityConfig()

    latest = with_timeout(get_latest_block_number, config.timeout, client)
    from_block, to_block = block_window(latest, config.lookback_blocks)

    params = AssetTransferParams(
        from_block=from_block,
        to_block=to_block,
        category=list(config.categories),
        exclude_zero_value=True,
        max_count=config.max_count,
    )
    transfers = with_timeout(get_asset_transfers, config.timeout, client, params)
    logger.info("Ranking %d transfers between blocks %s and %s", len(transfers), from_block, to_block)

    return process_top_contracts_and_wallets(transfers, contract_classifier(client), config.limit)
