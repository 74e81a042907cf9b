"""
Paginated retrieval of the recent transactions feed.

Each page is a fixed-size, newest-first query over a fixed look-back window
from the chain head. The provider's pageKey is handed back untouched as the
cursor for the next page.
"""

import logging
from typing import Optional

from .alchemy_client import AlchemyClient
from .config import RetrievalConfig
from .models import AssetTransferParams, TransactionPage
from .network_data import block_window, with_timeout
from .transactions import format_recent_transactions

logger = logging.getLogger(__name__)


def build_transfer_query(latest_block: str, page_key: Optional[str], config: RetrievalConfig) -> AssetTransferParams:
    """Build the transfer query for one page ending at `latest_block`."""
    from_block, to_block = block_window(latest_block, config.lookback_blocks)
    return AssetTransferParams(
        from_block=from_block,
        to_block=to_block,
        category=list(config.categories),
        exclude_zero_value=True,
        max_count=config.page_size,
        order="desc",
        page_key=page_key,
    )


def fetch_recent_transactions(
    client: AlchemyClient,
    page_key: Optional[str] = None,
    config: Optional[RetrievalConfig] = None,
    limit: Optional[int] = None,
) -> TransactionPage:
    """
    Fetch one page of recent transactions.

    Args:
        client: AlchemyClient instance
        page_key: Opaque cursor from the previous page, None for the first page
        config: Page size, look-back window and timeout
        limit: Accepted for API compatibility; pages are always config.page_size

    Returns:
        TransactionPage with formatted transactions and the next cursor

    Raises:
        AlchemyAPIError: If the block number or transfer fetch fails
        AlchemyTimeoutError: If the transfer fetch exceeds config.timeout
    """
    if config is None:
        config = RetrievalConfig()
    if limit is not None and limit != config.page_size:
        logger.debug("Ignoring requested limit %d, page size is fixed at %d", limit, config.page_size)

    latest = client.get_latest_block_number()
    params = build_transfer_query(latest, page_key, config)

    page = with_timeout(client.get_asset_transfers, config.timeout, params)

    if not page.transfers:
        return TransactionPage(transactions=[], page_key=None)

    return TransactionPage(
        transactions=format_recent_transactions(page.transfers, config.page_size),
        page_key=page.page_key,
    )
