"""Runtime configuration loaded from the environment, plus shared exports."""

import os
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from dotenv import load_dotenv

from .settings import (
    ALCHEMY_RPC_TEMPLATES,
    CHAIN_NAMES,
    DEFAULT_RPC_URLS,
    SUPPORTED_CHAINS,
    WEEK,
)

load_dotenv()


@dataclass(frozen=True)
class ChainConfig:
    """Endpoint and naming for one chain."""

    chain_id: int
    name: str
    rpc_url: str


class Config:
    """Application configuration."""

    # RPC Configuration
    ALCHEMY_API_KEY: str = os.getenv("ALCHEMY_API_KEY", "")
    RPC_TIMEOUT: int = int(os.getenv("RPC_TIMEOUT", "30") or "30")
    MULTICALL_BATCH_SIZE: int = int(os.getenv("MULTICALL_BATCH_SIZE", "200") or "200")

    # Output
    DATA_DIR: str = os.getenv("DATA_DIR", ".")

    # Prices
    COINGECKO_API_KEY: str = os.getenv("COINGECKO_API_KEY", "")
    PRICE_CACHE_TTL: int = int(os.getenv("PRICE_CACHE_TTL", "300") or "300")
    HTTP_TIMEOUT: int = int(os.getenv("HTTP_TIMEOUT", "30") or "30")
    REWARD_TOKEN_FALLBACK_PRICE: float = float(
        os.getenv("REWARD_TOKEN_FALLBACK_PRICE", "0.03") or "0.03"
    )

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE") or None

    EPOCH_DURATION: int = WEEK

    @classmethod
    def rpc_url(cls, chain_id: int) -> str:
        """
        Resolve the RPC endpoint for a chain.

        RPC_URL_<chainId> wins, then an Alchemy URL when ALCHEMY_API_KEY is
        set, then the public default.
        """
        explicit = os.getenv(f"RPC_URL_{chain_id}")
        if explicit:
            return explicit
        if cls.ALCHEMY_API_KEY and chain_id in ALCHEMY_RPC_TEMPLATES:
            return ALCHEMY_RPC_TEMPLATES[chain_id].format(key=cls.ALCHEMY_API_KEY)
        return DEFAULT_RPC_URLS.get(chain_id, "")

    @classmethod
    def chain_endpoints(cls, chain_ids: Optional[List[int]] = None) -> Dict[int, ChainConfig]:
        """
        Build the chain map handed to every fetcher.

        Args:
            chain_ids: Chains to include, defaults to all supported chains

        Returns:
            Dictionary of chain id to ChainConfig
        """
        return {
            chain_id: ChainConfig(
                chain_id=chain_id,
                name=CHAIN_NAMES[chain_id],
                rpc_url=cls.rpc_url(chain_id),
            )
            for chain_id in (chain_ids or SUPPORTED_CHAINS)
        }

    @classmethod
    def validate(cls) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages, empty if valid
        """
        errors = []

        for chain_id in SUPPORTED_CHAINS:
            if not cls.rpc_url(chain_id):
                errors.append(f"No RPC endpoint for chain {chain_id}")

        if cls.RPC_TIMEOUT <= 0:
            errors.append("RPC_TIMEOUT must be positive")

        if cls.MULTICALL_BATCH_SIZE <= 0:
            errors.append("MULTICALL_BATCH_SIZE must be positive")

        if cls.REWARD_TOKEN_FALLBACK_PRICE < 0:
            errors.append("REWARD_TOKEN_FALLBACK_PRICE must not be negative")

        return errors

    @staticmethod
    def get_current_period_timestamp(now_ts: Optional[int] = None) -> int:
        """Unix timestamp floored to the start of the current reward week."""
        now = int(now_ts if now_ts is not None else time.time())
        return (now // Config.EPOCH_DURATION) * Config.EPOCH_DURATION


__all__ = ["ChainConfig", "Config"]
