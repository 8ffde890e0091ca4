"""
Token metadata: ERC-20 reads and the Enso token lists.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import requests
from web3 import Web3

from config import Config
from config.settings import ENSO_BASE_TOKENS_URL, ENSO_DEFI_TOKENS_URL
from defidb.rpc import ChainClient, ContractRead

logger = logging.getLogger(__name__)

NAME = "name()(string)"
SYMBOL = "symbol()(string)"
DECIMALS = "decimals()(uint8)"


@dataclass
class TokenMetadata:
    """Token entry as stored in the token files."""

    address: str
    name: str
    symbol: str
    decimals: int
    chain_id: int
    logo_uri: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "logoURI": self.logo_uri,
            "chainId": self.chain_id,
        }


def fetch_token_metadata(
    client: ChainClient,
    addresses: Sequence[str],
    logo_uri: Optional[str] = None,
) -> Dict[str, TokenMetadata]:
    """
    Read name, symbol and decimals of tokens in one batch.

    Args:
        client: Chain client
        addresses: Token addresses
        logo_uri: Logo stored with every token

    Returns:
        Dictionary mapping checksummed address to TokenMetadata
    """
    addresses = [Web3.to_checksum_address(address) for address in addresses]
    reads = []
    for address in addresses:
        reads.append(ContractRead((address, "name"), address, NAME))
        reads.append(ContractRead((address, "symbol"), address, SYMBOL))
        reads.append(ContractRead((address, "decimals"), address, DECIMALS))
    results = client.read_many(reads)

    return {
        address: TokenMetadata(
            address=address,
            name=results[(address, "name")],
            symbol=results[(address, "symbol")],
            decimals=int(results[(address, "decimals")]),
            chain_id=client.chain_id,
            logo_uri=logo_uri,
        )
        for address in addresses
    }


def fetch_token_names(client: ChainClient, addresses: Sequence[str]) -> Dict[str, str]:
    """Map address -> ERC-20 name()."""
    results = client.read_many([ContractRead(address, address, NAME) for address in addresses])
    return {address: results[address] for address in addresses}


def _get_json(url: str) -> list:
    try:
        response = requests.get(url, timeout=Config.HTTP_TIMEOUT)
        response.raise_for_status()
        return response.json()
    except Exception as e:
        logger.error(f"Failed to fetch {url}: {e}")
        raise


def get_base_tokens() -> List[TokenMetadata]:
    """Base tokens published by Enso, for all chains."""
    return [
        TokenMetadata(
            address=Web3.to_checksum_address(token["address"]),
            name=token["name"],
            symbol=token["symbol"],
            decimals=int(token["decimals"]),
            chain_id=int(token["chainId"]),
            logo_uri=token.get("logoURI"),
        )
        for token in _get_json(ENSO_BASE_TOKENS_URL)
    ]


def get_defi_tokens() -> List[TokenMetadata]:
    """Protocol (LP and receipt) tokens published by Enso, for all chains."""
    return [
        TokenMetadata(
            address=Web3.to_checksum_address(item["token"]["address"]),
            name=item["token"]["name"],
            symbol=item["token"]["symbol"],
            decimals=int(item["token"]["decimals"]),
            chain_id=int(item["token"]["chain"]),
            logo_uri=(item.get("protocol") or {}).get("logo"),
        )
        for item in _get_json(ENSO_DEFI_TOKENS_URL)
    ]
