"""
Configuration for the chain dashboard.

Query constants live in small frozen dataclasses that are passed to the
retrieval functions, so tests can swap in alternate values. Deployment
settings are read from environment variables by ``load_settings``.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .alchemy_client import DEFAULT_TIMEOUT, NETWORK_ENDPOINTS


@dataclass(frozen=True)
class RetrievalConfig:
    """Fixed-size page query used by the recent transactions feed."""

    page_size: int = 10
    lookback_blocks: int = 5000
    timeout: float = 5.0  # seconds, for the whole transfer fetch
    categories: Tuple[str, ...] = ("external", "erc20")


@dataclass(frozen=True)
class ActivityConfig:
    """Block window and ranking size for the top contracts/wallets report."""

    lookback_blocks: int = 500
    max_count: int = 500
    timeout: float = 5.0
    limit: int = 5
    categories: Tuple[str, ...] = ("external", "erc20")


@dataclass(frozen=True)
class Settings:
    api_key: str
    network: str = "ethereum"
    request_timeout: float = DEFAULT_TIMEOUT
    retrieval_timeout: float = 5.0
    cache_duration: int = 30  # seconds
    dust_threshold: float = 0.0001
    max_workers: int = 8
    log_level: str = "INFO"

    @property
    def retrieval(self) -> RetrievalConfig:
        return RetrievalConfig(timeout=self.retrieval_timeout)

    @property
    def activity(self) -> ActivityConfig:
        return ActivityConfig(timeout=self.retrieval_timeout)


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Returns:
        Settings instance

    Raises:
        ValueError: If ALCHEMY_API_KEY is missing or a value is malformed
    """
    if env is None:
        env = os.environ

    api_key = env.get("ALCHEMY_API_KEY", "").strip()
    if not api_key:
        raise ValueError("ALCHEMY_API_KEY is not set")

    network = env.get("ALCHEMY_NETWORK", "ethereum").strip().lower()
    if network not in NETWORK_ENDPOINTS:
        raise ValueError(
            f"Unsupported network: {network}. Supported: {', '.join(NETWORK_ENDPOINTS)}"
        )

    return Settings(
        api_key=api_key,
        network=network,
        request_timeout=_get_float(env, "CHAINDASH_REQUEST_TIMEOUT", DEFAULT_TIMEOUT),
        retrieval_timeout=_get_float(env, "CHAINDASH_RETRIEVAL_TIMEOUT", 5.0),
        cache_duration=_get_int(env, "CHAINDASH_CACHE_DURATION", 30),
        dust_threshold=_get_float(env, "CHAINDASH_DUST_THRESHOLD", 0.0001),
        max_workers=_get_int(env, "CHAINDASH_MAX_WORKERS", 8),
        log_level=env.get("CHAINDASH_LOG_LEVEL", "INFO").upper(),
    )
