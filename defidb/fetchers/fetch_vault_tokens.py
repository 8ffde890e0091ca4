#!/usr/bin/env python3
"""
Record ERC-20 metadata of vault share tokens.

Only registered vaults missing from the token file are read; the file is
left untouched when there is nothing new.

Usage:
  python -m defidb.fetchers.fetch_vault_tokens
"""

import argparse
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from rich.console import Console

from config import Config
from config.settings import (
    SUPPORTED_CHAINS,
    VAULT_LOGO_URI,
    VAULT_REGISTRY_BY_CHAIN,
    VAULT_TOKENS_DIR,
)
from defidb.rpc import ChainClient, build_clients
from defidb.storage import load_json, write_json
from defidb.tokens import fetch_token_metadata
from defidb.utils import setup_logging
from defidb.vaults import get_registered_vaults

console = Console()


def fetch_vault_tokens(
    client: ChainClient, registry_address: str, existing: Dict[str, dict]
) -> Tuple[Dict[str, dict], int]:
    """
    Add share-token metadata of new vaults.

    Returns:
        (updated content, number of vaults added)
    """
    data = dict(existing)
    addresses = get_registered_vaults(client, registry_address)
    new_vaults = [address for address in addresses if address not in data]
    if not new_vaults:
        return data, 0

    for address, token in fetch_token_metadata(client, new_vaults, logo_uri=VAULT_LOGO_URI).items():
        data[address] = token.to_dict()
    return data, len(new_vaults)


def run(data_dir: Path, clients: Dict[int, ChainClient], chain_ids: Optional[List[int]] = None) -> None:
    for chain_id in chain_ids or SUPPORTED_CHAINS:
        path = Path(data_dir) / VAULT_TOKENS_DIR / f"{chain_id}.json"
        data, added = fetch_vault_tokens(
            clients[chain_id], VAULT_REGISTRY_BY_CHAIN[chain_id], load_json(path, {})
        )
        if added:
            write_json(path, data)
            console.print(f"[green]✓ Chain {chain_id}: added {added} vault tokens -> {path}[/green]")
        else:
            console.print(f"[dim]Chain {chain_id}: no new vault tokens[/dim]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Record vault share token metadata")
    parser.add_argument("--data-dir", default=Config.DATA_DIR, help="Database root directory")
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    run(Path(args.data_dir), build_clients(Config.chain_endpoints()))


if __name__ == "__main__":
    main()
