#!/usr/bin/env python3
"""
Describe the strategies used by vaults.

Strategies referenced in the vault files but missing from the description
files have their name read from chain and mapped to a description.

Usage:
  python -m defidb.fetchers.fetch_strategy_descriptions
"""

import argparse
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console

from config import Config
from config.settings import STRATEGY_DESCRIPTIONS_DIR, SUPPORTED_CHAINS, VAULTS_DIR
from defidb.rpc import ChainClient, build_clients
from defidb.storage import load_json, write_json
from defidb.strategies import describe_strategy
from defidb.tokens import fetch_token_names
from defidb.utils import setup_logging

console = Console()


def fetch_strategy_descriptions(
    client: ChainClient, vaults: Dict[str, dict], existing: Dict[str, dict]
) -> Dict[str, dict]:
    """
    Add descriptions for strategies not described yet.

    Args:
        client: Chain client
        vaults: Vault file content of the chain
        existing: Description file content keyed by strategy address

    Returns:
        Updated content
    """
    data = dict(existing)
    strategies = list(
        dict.fromkeys(
            strategy
            for vault in vaults.values()
            for strategy in vault.get("strategies", [])
            if strategy not in data
        )
    )
    if not strategies:
        return data

    for address, name in fetch_token_names(client, strategies).items():
        data[address] = {"address": address, **describe_strategy(address, name)}
    return data


def run(data_dir: Path, clients: Dict[int, ChainClient], chain_ids: Optional[List[int]] = None) -> None:
    data_dir = Path(data_dir)
    for chain_id in chain_ids or SUPPORTED_CHAINS:
        path = data_dir / STRATEGY_DESCRIPTIONS_DIR / f"{chain_id}.json"
        vaults = load_json(data_dir / VAULTS_DIR / f"{chain_id}.json", {})
        data = fetch_strategy_descriptions(clients[chain_id], vaults, load_json(path, {}))
        write_json(path, data)
        console.print(f"[green]✓ Chain {chain_id}: {len(data)} strategies -> {path}[/green]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Describe vault strategies")
    parser.add_argument("--data-dir", default=Config.DATA_DIR, help="Database root directory")
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    run(Path(args.data_dir), build_clients(Config.chain_endpoints()))


if __name__ == "__main__":
    main()
