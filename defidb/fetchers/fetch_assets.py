#!/usr/bin/env python3
"""
Grow the asset lists from the Enso token lists and vault assets.

For each chain the known address list is extended with listed tokens and
vault underlying assets not seen before. Listed tokens bring their own
metadata; vault assets are read from chain. Existing token entries are
never overwritten.

Usage:
  python -m defidb.fetchers.fetch_assets
"""

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from rich.console import Console

from config import Config
from config.settings import (
    ASSET_ADDRESSES_DIR,
    ASSET_TOKENS_DIR,
    EMPTY_TOKEN_LOGO_BY_CHAIN,
    SUPPORTED_CHAINS,
    VAULTS_DIR,
)
from defidb.rpc import ChainClient, build_clients
from defidb.storage import load_json, write_json
from defidb.tokens import TokenMetadata, fetch_token_metadata, get_base_tokens, get_defi_tokens
from defidb.utils import checksum_address, setup_logging

logger = logging.getLogger(__name__)
console = Console()


def fetch_new_assets(
    client: ChainClient,
    known_addresses: Sequence[str],
    listed_tokens: Sequence[TokenMetadata],
    vault_assets: Sequence[str],
) -> Tuple[List[str], Dict[str, TokenMetadata]]:
    """
    Find assets of one chain that are not known yet.

    Args:
        client: Chain client for on-chain metadata
        known_addresses: Address list as stored
        listed_tokens: Token list entries of every chain
        vault_assets: Underlying assets of this chain's vaults

    Returns:
        (extended address list, new tokens by address)
    """
    addresses = [checksum_address(address) for address in known_addresses]
    known = set(addresses)
    new_tokens: Dict[str, TokenMetadata] = {}

    for token in listed_tokens:
        if token.chain_id != client.chain_id or token.address in known:
            continue
        new_tokens[token.address] = token
        known.add(token.address)
        addresses.append(token.address)

    unlisted = []
    for asset in vault_assets:
        asset = checksum_address(asset)
        if asset not in known:
            unlisted.append(asset)
            known.add(asset)

    if unlisted:
        logger.info(f"Reading metadata of {len(unlisted)} unlisted assets on chain {client.chain_id}")
        on_chain = fetch_token_metadata(
            client, unlisted, logo_uri=EMPTY_TOKEN_LOGO_BY_CHAIN.get(client.chain_id)
        )
        new_tokens.update(on_chain)
        addresses.extend(unlisted)

    return addresses, new_tokens


def merge_tokens(existing: Dict[str, dict], new_tokens: Dict[str, TokenMetadata]) -> Tuple[Dict[str, dict], int]:
    """Add new tokens, keeping existing entries as they are."""
    data = dict(existing)
    added = 0
    for address, token in new_tokens.items():
        if address not in data:
            data[address] = token.to_dict()
            added += 1
    return data, added


def run(data_dir: Path, clients: Dict[int, ChainClient], chain_ids: Optional[List[int]] = None) -> None:
    data_dir = Path(data_dir)
    listed_tokens = get_base_tokens() + get_defi_tokens()
    console.print(f"Loaded {len(listed_tokens)} listed tokens")

    for chain_id in chain_ids or SUPPORTED_CHAINS:
        addresses_path = data_dir / ASSET_ADDRESSES_DIR / f"{chain_id}.json"
        tokens_path = data_dir / ASSET_TOKENS_DIR / f"{chain_id}.json"
        vaults = load_json(data_dir / VAULTS_DIR / f"{chain_id}.json", {})
        vault_assets = [vault["assetAddress"] for vault in vaults.values() if vault.get("assetAddress")]

        addresses, new_tokens = fetch_new_assets(
            clients[chain_id], load_json(addresses_path, []), listed_tokens, vault_assets
        )
        write_json(addresses_path, addresses)

        if new_tokens:
            tokens, added = merge_tokens(load_json(tokens_path, {}), new_tokens)
            if added:
                write_json(tokens_path, tokens)
            console.print(f"[green]✓ Chain {chain_id}: added {added} assets -> {tokens_path}[/green]")
        else:
            console.print(f"[dim]Chain {chain_id}: no new assets[/dim]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Grow the asset lists")
    parser.add_argument("--data-dir", default=Config.DATA_DIR, help="Database root directory")
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    run(Path(args.data_dir), build_clients(Config.chain_endpoints()))


if __name__ == "__main__":
    main()
