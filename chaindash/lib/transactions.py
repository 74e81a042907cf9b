"""
Transfer analytics for the dashboard.

Ranks the addresses appearing in a batch of transfers (top contracts by
inbound transfers, top wallets by overall activity) and projects transfers
into the recent transactions display shape.
"""

import logging
from typing import Callable, Dict, Iterable, List

from .alchemy_client import AlchemyAPIError, AlchemyClient
from .models import NULL_ADDRESS, RecentTransaction, TopContract, TopEntity, TopWallet, Transfer, TransferResults

logger = logging.getLogger(__name__)

# Answers "is this address a contract?"
Classifier = Callable[[str], bool]


def is_contract(client: AlchemyClient, address: str) -> bool:
    """
    Check whether an address holds bytecode.

    Lookup failures are logged and reported as "not a contract".
    """
    try:
        code = client.get_code(address)
    except AlchemyAPIError as e:
        logger.error("Error checking if address %s is a contract: %s", address, e)
        return False
    return code != "0x"


def contract_classifier(client: AlchemyClient) -> Classifier:
    """Bind is_contract to a client."""
    return lambda address: is_contract(client, address)


def _rank(counts: Dict[str, int]) -> List[TopEntity]:
    # sorted() is stable, so ties keep first-occurrence order
    return sorted(
        (TopEntity(address=address, transfers=count) for address, count in counts.items()),
        key=lambda entity: entity.transfers,
        reverse=True,
    )


def _take_classified(
    ranked: Iterable[TopEntity], classify: Classifier, want_contract: bool, limit: int
) -> List[TopEntity]:
    selected: List[TopEntity] = []
    for entity in ranked:
        if len(selected) >= limit:
            break
        if classify(entity.address) == want_contract:
            selected.append(entity)
    return selected


def count_recipients(transfers: Iterable[Transfer]) -> Dict[str, int]:
    """Count how many transfers each recipient address received."""
    counts: Dict[str, int] = {}
    for transfer in transfers:
        if transfer.to_address:
            counts[transfer.to_address] = counts.get(transfer.to_address, 0) + 1
    return counts


def count_participants(transfers: Iterable[Transfer]) -> Dict[str, int]:
    """
    Count sender and recipient appearances per address.

    Only transfers with both sides present are counted.
    """
    counts: Dict[str, int] = {}
    for transfer in transfers:
        if transfer.from_address and transfer.to_address:
            counts[transfer.from_address] = counts.get(transfer.from_address, 0) + 1
            counts[transfer.to_address] = counts.get(transfer.to_address, 0) + 1
    return counts


def get_top_contracts(transfers: List[Transfer], classify: Classifier, limit: int = 5) -> List[TopContract]:
    """
    Identify the most frequently targeted contract addresses.

    Args:
        transfers: Transfers to analyze
        classify: Contract check applied to candidates, most frequent first
        limit: Maximum number of contracts to return

    Returns:
        Up to `limit` contracts with their inbound transfer counts
    """
    return _take_classified(_rank(count_recipients(transfers)), classify, True, limit)


def get_top_wallets(transfers: List[Transfer], classify: Classifier, limit: int = 5) -> List[TopWallet]:
    """
    Identify the most active non-contract addresses, excluding the null address.

    Args:
        transfers: Transfers to analyze
        classify: Contract check applied to candidates, most frequent first
        limit: Maximum number of wallets to return

    Returns:
        Up to `limit` wallets with their sent + received transfer counts
    """
    counts = count_participants(transfers)
    counts.pop(NULL_ADDRESS, None)
    return _take_classified(_rank(counts), classify, False, limit)


def process_top_contracts_and_wallets(
    transfers: List[Transfer], classify: Classifier, limit: int = 5
) -> TransferResults:
    """Compute both rankings over the same batch of transfers."""
    return TransferResults(
        top_contracts=get_top_contracts(transfers, classify, limit),
        top_wallets=get_top_wallets(transfers, classify, limit),
    )


def format_recent_transactions(transfers: Iterable[Transfer], limit: int = 10) -> List[RecentTransaction]:
    """
    Project transfers into recent transactions, in input order.

    Transfers without a hash or block number are skipped and do not count
    toward `limit`.
    """
    recent: List[RecentTransaction] = []

    for transfer in transfers:
        if len(recent) >= limit:
            break
        if not transfer.hash or not transfer.block_num:
            continue

        recent.append(
            RecentTransaction(
                hash=transfer.hash,
                from_address=transfer.from_address or "",
                to_address=transfer.to_address or None,
                value=transfer.value or "0",
                block_number=transfer.block_num,
                asset=transfer.asset,
                category=transfer.category,
            )
        )

    return recent
