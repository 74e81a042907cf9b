#!/usr/bin/env python3
"""
Show recent network activity and, optionally, a wallet's token balances.

This script prints the latest page of transfers and the most active
contracts and wallets on the chosen network to stderr, and writes a CSV
report of a wallet's fungible token balances.
"""

import argparse
import sys
from typing import List, Optional

from chaindash.lib.alchemy_client import NETWORK_ENDPOINTS, AlchemyAPIError, AlchemyClient
from chaindash.lib.formatters import truncate_address, write_csv
from chaindash.lib.network_data import get_top_wallets_and_contracts
from chaindash.lib.pagination import fetch_recent_transactions
from chaindash.lib.token_balances import DEFAULT_DUST_THRESHOLD, fetch_token_balances


SUPPORTED_NETWORKS = list(NETWORK_ENDPOINTS)


def log(network: str, message: str) -> None:
    """Log a message with network prefix."""
    print(f"[{network}] {message}", file=sys.stderr)


def validate_network(network: str) -> str:
    """
    Validate and normalize a network name.

    Raises:
        ValueError: If the network is not supported
    """
    network_lower = network.lower()
    if network_lower not in SUPPORTED_NETWORKS:
        raise ValueError(
            f"Unsupported network: {network}. Supported: {', '.join(SUPPORTED_NETWORKS)}"
        )
    return network_lower


def report_activity(client: AlchemyClient, page_key: Optional[str]) -> None:
    """Log one page of recent transactions and the top activity ranking."""
    network = client.network

    page = fetch_recent_transactions(client, page_key)
    log(network, f"Found {len(page.transactions)} recent transactions")
    for tx in page.transactions:
        to_address = truncate_address(tx.to_address) if tx.to_address else "(contract creation)"
        log(
            network,
            f"  {truncate_address(tx.hash)} {truncate_address(tx.from_address)} -> {to_address} "
            f"{tx.value} {tx.asset or ''}".rstrip(),
        )
    if page.page_key:
        log(network, f"Next page key: {page.page_key}")

    results = get_top_wallets_and_contracts(client)
    log(network, f"Top {len(results.top_contracts)} contracts:")
    for contract in results.top_contracts:
        log(network, f"  {contract.address} ({contract.transfers} transfers)")
    log(network, f"Top {len(results.top_wallets)} wallets:")
    for wallet in results.top_wallets:
        log(network, f"  {wallet.address} ({wallet.transfers} transfers)")


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        description="Show recent network activity and wallet token balances.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recent transactions and top activity on Ethereum
  %(prog)s --api-key YOUR_KEY

  # Also write a wallet's token balances to a timestamped CSV
  %(prog)s --api-key YOUR_KEY --wallet 0x... --output tokens.csv
        """,
    )

    parser.add_argument("--api-key", required=True, help="Alchemy API key")
    parser.add_argument(
        "--network",
        default="ethereum",
        help=f"Network to query. Supported: {', '.join(SUPPORTED_NETWORKS)}",
    )
    parser.add_argument("--page-key", help="Cursor returned by a previous run")
    parser.add_argument("--wallet", help="Wallet address whose token balances to report")
    parser.add_argument(
        "--dust-threshold",
        type=float,
        default=DEFAULT_DUST_THRESHOLD,
        help="Hide balances below this value (default: %(default)s)",
    )
    parser.add_argument(
        "--output",
        help="Output file path (timestamp auto-appended). If not specified, outputs to stdout.",
    )

    parsed_args = parser.parse_args(args)

    try:
        network = validate_network(parsed_args.network)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    client = AlchemyClient(parsed_args.api_key, network=network)

    try:
        report_activity(client, parsed_args.page_key)

        if parsed_args.wallet:
            log(network, f"Fetching token balances for {parsed_args.wallet}...")
            balances = fetch_token_balances(client, parsed_args.wallet, parsed_args.dust_threshold)
            log(network, f"Found {len(balances.tokens)} tokens above dust threshold")
            output_file = write_csv(balances.tokens, parsed_args.output)
            if output_file:
                print(f"\nResults written to: {output_file}", file=sys.stderr)
    except AlchemyAPIError as e:
        log(network, f"ERROR: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
