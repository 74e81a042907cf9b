#!/usr/bin/env python3
"""
HTTP API backing the chain dashboard front end.

Run with:
    ALCHEMY_API_KEY=... python -m chaindash.dashboard_api
"""

import logging
import math
from typing import Optional, Tuple

from flask import Flask, Response, jsonify, request

from chaindash.lib.alchemy_client import AlchemyClient
from chaindash.lib.config import Settings, load_settings
from chaindash.lib.network_data import get_network_block, get_top_wallets_and_contracts
from chaindash.lib.pagination import fetch_recent_transactions
from chaindash.lib.token_balances import fetch_token_balances

logger = logging.getLogger(__name__)

MAX_NFT_PAGE_SIZE = 100


def _error(prefix: str, error: Exception) -> Tuple[Response, int]:
    logger.exception("%s", prefix)
    return jsonify({"error": f"{prefix}: {error}"}), 500


def create_app(settings: Optional[Settings] = None, client: Optional[AlchemyClient] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        settings: Settings to use (read from the environment if omitted)
        client: AlchemyClient to use (built from settings if omitted)
    """
    if settings is None:
        settings = load_settings()
    if client is None:
        client = AlchemyClient(settings.api_key, network=settings.network, timeout=settings.request_timeout)

    app = Flask(__name__)
    app.config["CHAINDASH_SETTINGS"] = settings

    @app.route("/api/network/recent-transactions", methods=["GET"])
    def recent_transactions():
        page_key = request.args.get("pageKey") or None
        try:
            page = fetch_recent_transactions(client, page_key, settings.retrieval)
        except Exception as e:
            return _error("Failed to fetch transactions", e)

        response = jsonify(page.to_dict())
        response.headers["Cache-Control"] = (
            f"public, s-maxage={settings.cache_duration}, "
            f"stale-while-revalidate={settings.cache_duration * 5}"
        )
        return response

    @app.route("/api/network/latest-block", methods=["GET"])
    def latest_block():
        try:
            block = get_network_block(client)
        except Exception as e:
            return _error("Failed to fetch latest block", e)
        return jsonify(block.to_dict())

    @app.route("/api/network/top-activity", methods=["GET"])
    def top_activity():
        try:
            results = get_top_wallets_and_contracts(client, settings.activity)
        except Exception as e:
            return _error("Failed to fetch network activity", e)
        return jsonify(results.to_dict())

    @app.route("/api/address/<address>/tokens", methods=["GET"])
    def address_tokens(address: str):
        try:
            dust_threshold = float(request.args.get("dustThreshold", settings.dust_threshold))
        except ValueError:
            return jsonify({"error": "dustThreshold must be a number"}), 400
        if not math.isfinite(dust_threshold):
            return jsonify({"error": "dustThreshold must be finite"}), 400

        try:
            balances = fetch_token_balances(client, address, dust_threshold, settings.max_workers)
        except Exception as e:
            return _error("Failed to fetch token balances", e)
        return jsonify(balances.to_dict())

    @app.route("/api/address/<address>/nfts", methods=["GET"])
    def address_nfts(address: str):
        page_key = request.args.get("pageKey") or None
        try:
            page_size = int(request.args.get("pageSize", MAX_NFT_PAGE_SIZE))
        except ValueError:
            return jsonify({"error": "pageSize must be an integer"}), 400
        if not 1 <= page_size <= MAX_NFT_PAGE_SIZE:
            return jsonify({"error": f"pageSize must be between 1 and {MAX_NFT_PAGE_SIZE}"}), 400

        try:
            page = client.get_nfts_for_owner(address, page_key, page_size)
        except Exception as e:
            return _error("Failed to fetch NFTs", e)
        return jsonify(page.to_dict())

    return app


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    create_app(settings).run(host="0.0.0.0", port=5000)


if __name__ == "__main__":
    main()
