"""
Utility functions for the DeFi database fetchers.
"""

import logging
from typing import Optional

from web3 import Web3


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def format_token_amount(amount: int, decimals: int = 18) -> float:
    """
    Format token amount from wei to human-readable.

    Args:
        amount: Token amount in smallest unit
        decimals: Token decimals

    Returns:
        Human-readable amount
    """
    return amount / (10**decimals)


def format_percentage(value: float) -> str:
    """Format percentage with two decimal places (e.g. "4.25%")."""
    return f"{value:.2f}%"


def checksum_address(address: str) -> str:
    """
    Convert address to checksum format.

    Args:
        address: Ethereum address

    Returns:
        Checksummed address
    """
    return Web3.to_checksum_address(address)


def truncate_address(address: str, chars: int = 6) -> str:
    """
    Truncate Ethereum address for display.

    Args:
        address: Ethereum address
        chars: Number of characters to show on each end

    Returns:
        Truncated address (e.g., "0xabc...123")
    """
    if len(address) <= chars * 2 + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"
