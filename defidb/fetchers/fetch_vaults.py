#!/usr/bin/env python3
"""
Refresh the vault files from each chain's vault registry.

New vaults get their asset and creator recorded; every registered vault
gets its current strategy, fees and fee recipient.

Usage:
  python -m defidb.fetchers.fetch_vaults
"""

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console

from config import Config
from config.settings import SUPPORTED_CHAINS, VAULT_REGISTRY_BY_CHAIN, VAULTS_DIR
from defidb.rpc import ChainClient, build_clients
from defidb.storage import load_json, write_json
from defidb.utils import setup_logging
from defidb.vaults import (
    fetch_vault_assets,
    fetch_vault_configurations,
    fetch_vault_creators,
    get_registered_vaults,
)

logger = logging.getLogger(__name__)
console = Console()

VAULT_TYPE = "single-asset-vault-v1"


def fetch_vaults(client: ChainClient, registry_address: str, existing: Dict[str, dict]) -> Dict[str, dict]:
    """
    Merge registry state into the vault file content.

    Args:
        client: Chain client
        registry_address: Vault registry on this chain
        existing: Current file content keyed by vault address

    Returns:
        Updated content; existing entries keep their fields
    """
    data = {address: dict(entry) for address, entry in existing.items()}
    addresses = get_registered_vaults(client, registry_address)

    new_vaults = [address for address in addresses if address not in data]
    if new_vaults:
        console.print(f"  Found {len(new_vaults)} new vaults")
        assets = fetch_vault_assets(client, new_vaults)
        creators = fetch_vault_creators(client, registry_address, new_vaults)
        for vault in new_vaults:
            data[vault] = {
                "address": vault,
                "assetAddress": assets[vault],
                "chainId": client.chain_id,
                "type": VAULT_TYPE,
                "description": "",
                "creator": creators[vault],
            }

    for vault, configuration in fetch_vault_configurations(client, addresses).items():
        data[vault]["strategies"] = [configuration.strategy]
        data[vault]["fees"] = configuration.fees.to_dict()
        data[vault]["feeRecipient"] = configuration.fee_recipient

    return data


def run(data_dir: Path, clients: Dict[int, ChainClient], chain_ids: Optional[List[int]] = None) -> None:
    for chain_id in chain_ids or SUPPORTED_CHAINS:
        console.print(f"[cyan]Chain {chain_id}:[/cyan]")
        path = Path(data_dir) / VAULTS_DIR / f"{chain_id}.json"
        data = fetch_vaults(clients[chain_id], VAULT_REGISTRY_BY_CHAIN[chain_id], load_json(path, {}))
        write_json(path, data)
        console.print(f"  [green]✓ Saved {len(data)} vaults -> {path}[/green]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Refresh vault registry data")
    parser.add_argument("--data-dir", default=Config.DATA_DIR, help="Database root directory")
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    run(Path(args.data_dir), build_clients(Config.chain_endpoints()))


if __name__ == "__main__":
    main()
