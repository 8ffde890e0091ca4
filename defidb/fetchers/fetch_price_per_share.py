#!/usr/bin/env python3
"""
Append today's totalAssets, totalSupply and price-per-share of every vault.

Each vault holds three series of {date, value} observations, newest first.
Dates are Unix milliseconds.

Usage:
  python -m defidb.fetchers.fetch_price_per_share
"""

import argparse
import time
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console

from config import Config
from config.settings import PRICE_PER_SHARE_DIR, SUPPORTED_CHAINS, VAULT_REGISTRY_BY_CHAIN
from defidb.rpc import ChainClient, build_clients
from defidb.storage import load_json, write_json
from defidb.utils import setup_logging
from defidb.vaults import fetch_vault_supplies, get_registered_vaults

console = Console()

SERIES = ("totalAssets", "totalSupply", "pricePerShare")


def fetch_price_per_share(
    client: ChainClient,
    registry_address: str,
    existing: Dict[str, dict],
    date_ms: int,
) -> Dict[str, dict]:
    """
    Prepend one dated observation per series for every registered vault.

    Args:
        client: Chain client
        registry_address: Vault registry on this chain
        existing: Current file content keyed by vault address
        date_ms: Observation time in Unix milliseconds

    Returns:
        Updated content
    """
    data = {}
    for address, entry in existing.items():
        data[address] = dict(entry)
        for series in SERIES:
            data[address][series] = list(entry.get(series, []))

    addresses = get_registered_vaults(client, registry_address)

    for vault, supply in fetch_vault_supplies(client, addresses).items():
        observation = {
            "totalAssets": float(supply.total_assets),
            "totalSupply": float(supply.total_supply),
            "pricePerShare": supply.assets_per_share,
        }
        entry = data.setdefault(vault, {series: [] for series in SERIES})
        for series in SERIES:
            entry[series].insert(0, {"date": date_ms, "value": observation[series]})

    return data


def run(
    data_dir: Path,
    clients: Dict[int, ChainClient],
    chain_ids: Optional[List[int]] = None,
    date_ms: Optional[int] = None,
) -> None:
    date_ms = date_ms if date_ms is not None else int(time.time() * 1000)
    for chain_id in chain_ids or SUPPORTED_CHAINS:
        path = Path(data_dir) / PRICE_PER_SHARE_DIR / f"{chain_id}.json"
        data = fetch_price_per_share(
            clients[chain_id], VAULT_REGISTRY_BY_CHAIN[chain_id], load_json(path, {}), date_ms
        )
        write_json(path, data)
        console.print(f"[green]✓ Chain {chain_id}: {len(data)} vaults -> {path}[/green]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Record vault price-per-share history")
    parser.add_argument("--data-dir", default=Config.DATA_DIR, help="Database root directory")
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    run(Path(args.data_dir), build_clients(Config.chain_endpoints()))


if __name__ == "__main__":
    main()
