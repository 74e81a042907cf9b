"""
Token balance enrichment for a single address.

Raw ERC-20 balances are joined with per-token metadata (fetched
concurrently), the native balance is prepended, and the result is formatted
to human-readable decimal strings, stripped of NFTs and dust, and sorted by
balance.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import List

from .alchemy_client import AlchemyClient
from .formatters import format_units, parse_raw_balance, truncate_address
from .models import (
    NATIVE_TOKEN_ADDRESS,
    NFT_TOKEN_TYPES,
    EnhancedTokenBalances,
    FormattedToken,
    FormattedTokenBalances,
    TokenBalance,
    TokenMetadata,
    TokenWithMetadata,
)

logger = logging.getLogger(__name__)

DEFAULT_DECIMALS = 18
DEFAULT_DUST_THRESHOLD = 0.0001
DEFAULT_MAX_WORKERS = 8

NATIVE_TOKEN_LOGO = "https://tokens.1inch.io/0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee.png"

# Native asset per network
NATIVE_TOKENS = {
    "ethereum": TokenMetadata(name="Ethereum", symbol="ETH", logo=NATIVE_TOKEN_LOGO, decimals=18, token_type="NATIVE"),
    "polygon": TokenMetadata(name="Polygon", symbol="MATIC", decimals=18, token_type="NATIVE"),
    "base": TokenMetadata(name="Ethereum", symbol="ETH", logo=NATIVE_TOKEN_LOGO, decimals=18, token_type="NATIVE"),
    "bnb": TokenMetadata(name="BNB", symbol="BNB", decimals=18, token_type="NATIVE"),
}

def get_native_token_metadata(network: str) -> TokenMetadata:
    """Metadata for the native asset of a network."""
    if network not in NATIVE_TOKENS:
        raise ValueError(f"Unsupported network: {network}")
    return NATIVE_TOKENS[network]


def _attach_metadata(client: AlchemyClient, token: TokenBalance) -> TokenWithMetadata:
    try:
        metadata = client.get_token_metadata(token.contract_address)
    except Exception as e:
        logger.error("Error fetching metadata for %s: %s", token.contract_address, e)
        metadata = None
    return TokenWithMetadata(
        contract_address=token.contract_address,
        token_balance=token.token_balance,
        metadata=metadata,
    )


def fetch_token_balances(
    client: AlchemyClient,
    address: str,
    dust_threshold: float = DEFAULT_DUST_THRESHOLD,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> FormattedTokenBalances:
    """
    Fetch and enrich all fungible token balances for an address.

    Args:
        client: AlchemyClient instance
        address: Wallet address
        dust_threshold: Minimum formatted balance to keep
        max_workers: Upper bound on concurrent metadata lookups

    Returns:
        FormattedTokenBalances including the native asset

    Raises:
        AlchemyAPIError: If the balance lookups fail (metadata failures are tolerated)
    """
    erc20_balances = client.get_token_balances(address)
    native_balance = client.get_native_balance(address)

    tokens: List[TokenWithMetadata] = []
    if erc20_balances.token_balances:
        workers = max(1, min(max_workers, len(erc20_balances.token_balances)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order regardless of completion order
            tokens = list(
                executor.map(lambda tb: _attach_metadata(client, tb), erc20_balances.token_balances)
            )

    tokens.insert(
        0,
        TokenWithMetadata(
            contract_address=NATIVE_TOKEN_ADDRESS,
            token_balance=native_balance,
            metadata=get_native_token_metadata(client.network),
        ),
    )

    enhanced = EnhancedTokenBalances(address=erc20_balances.address, tokens=tokens)
    return format_token_balances(enhanced, dust_threshold)


def format_token(token: TokenWithMetadata) -> FormattedToken:
    """Format one token's raw balance, falling back to "0" when it cannot be parsed."""
    metadata = token.metadata or TokenMetadata()
    decimals = metadata.decimals or DEFAULT_DECIMALS

    formatted_balance = "0"
    try:
        formatted_balance = format_units(parse_raw_balance(token.token_balance), decimals)
    except (AttributeError, TypeError, ValueError) as e:
        logger.error("Error formatting balance for %s: %s", token.contract_address, e)

    return FormattedToken(
        contract_address=token.contract_address,
        truncated_address=truncate_address(token.contract_address),
        token_balance=token.token_balance,
        formatted_balance=formatted_balance,
        name=metadata.name,
        symbol=metadata.symbol,
        logo=metadata.logo,
        decimals=metadata.decimals,
        token_type=metadata.token_type,
    )


def _numeric_balance(token: FormattedToken) -> float:
    try:
        return float(token.formatted_balance)
    except ValueError:
        return math.nan


def format_token_balances(
    token_data: EnhancedTokenBalances,
    dust_threshold: float = DEFAULT_DUST_THRESHOLD,
) -> FormattedTokenBalances:
    """
    Format balances to human-readable values and drop NFTs and dust.

    Args:
        token_data: Tokens with their (optional) metadata
        dust_threshold: Minimum formatted balance to keep

    Returns:
        FormattedTokenBalances sorted by balance, highest first
    """
    formatted = [format_token(token) for token in token_data.tokens]

    fungible = [token for token in formatted if token.token_type not in NFT_TOKEN_TYPES]

    # NaN compares False, so unparseable balances are dropped too
    kept = [token for token in fungible if _numeric_balance(token) >= dust_threshold]

    kept.sort(key=_numeric_balance, reverse=True)

    return FormattedTokenBalances(address=token_data.address, tokens=kept)
