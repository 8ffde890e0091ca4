#!/usr/bin/env python3
"""
Compute lower/upper reward APR of every live gauge.

The previous snapshot is moved to archive/gauge-apy/<yesterday>.json before
anything is fetched; the new snapshot is written only once every gauge has
been computed.

Usage:
  python -m defidb.fetchers.fetch_gauge_apy
"""

import argparse
import logging
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from rich.console import Console

from config import Config
from config.settings import (
    GAUGE_APY_ARCHIVE_DIR,
    GAUGE_APY_FILE,
    GAUGE_CONTROLLER_ADDRESS,
    HIDDEN_GAUGES,
    REWARD_TOKEN_ADDRESS,
    ROOT_CHAIN_ID,
)
from defidb.apr import GaugeApyRecord, calculate_gauge_apr
from defidb.gauges import GaugeData, classify_gauges, collect_gauge_data, enumerate_gauges
from defidb.price_feed import PriceFeed, PriceNotFoundError
from defidb.rpc import ChainClient, build_clients
from defidb.storage import archive_previous, write_json
from defidb.utils import format_percentage, setup_logging, truncate_address
from defidb.vaults import fetch_vault_assets

logger = logging.getLogger(__name__)
console = Console()


def resolve_asset_prices(
    clients: Dict[int, ChainClient],
    price_feed: PriceFeed,
    gauges: Sequence[GaugeData],
) -> Dict[str, float]:
    """
    USD price of each gauge's vault asset.

    Args:
        clients: Chain clients by chain id
        price_feed: Price source
        gauges: Gauges to price

    Returns:
        Dictionary mapping gauge address to asset price

    Raises:
        PriceNotFoundError: If any asset has no quote
    """
    by_chain: Dict[int, List[GaugeData]] = defaultdict(list)
    for gauge in gauges:
        by_chain[gauge.chain_id].append(gauge)

    prices = {}
    for chain_id, chain_gauges in by_chain.items():
        vaults = list(dict.fromkeys(gauge.vault for gauge in chain_gauges))
        assets = fetch_vault_assets(clients[chain_id], vaults)
        # one request per chain; the per-gauge lookups below are served from cache
        price_feed.get_batch_prices(chain_id, list(dict.fromkeys(assets.values())))

        for gauge in chain_gauges:
            asset = assets[gauge.vault]
            try:
                prices[gauge.address] = price_feed.require_token_price(chain_id, asset)
            except PriceNotFoundError:
                logger.error(f"No price for asset {asset} of gauge {gauge.address}")
                raise
    return prices


def fetch_gauge_apy(
    clients: Dict[int, ChainClient],
    price_feed: PriceFeed,
    controller_address: str = GAUGE_CONTROLLER_ADDRESS,
    reward_token: str = REWARD_TOKEN_ADDRESS,
    hidden: Iterable[str] = HIDDEN_GAUGES,
    now_ts: Optional[int] = None,
) -> Dict[str, GaugeApyRecord]:
    """
    Compute the APR snapshot.

    Args:
        clients: Chain clients by chain id, including the root chain
        price_feed: Price source
        controller_address: Gauge controller on the root chain
        reward_token: Token the gauges emit
        hidden: Gauges excluded from the snapshot
        now_ts: Reference Unix time, defaults to now

    Returns:
        Dictionary mapping gauge address to its record, in controller order
    """
    root_client = clients[ROOT_CHAIN_ID]
    period = Config.get_current_period_timestamp(now_ts)

    gauges = enumerate_gauges(root_client, controller_address, hidden)
    routes = classify_gauges(root_client, controller_address, gauges)
    gauge_data = collect_gauge_data(clients, routes, period)

    reward_price = price_feed.get_reward_token_price(reward_token)
    logger.info(f"Reward token price: ${reward_price}")

    # Gauges without emissions have a zero APR whatever their asset is worth
    emitting = [gauge for gauge in gauge_data if gauge.relative_inflation > 0]
    asset_prices = resolve_asset_prices(clients, price_feed, emitting)

    records = {}
    for gauge in gauge_data:
        apr = calculate_gauge_apr(gauge, asset_prices.get(gauge.address), reward_price)
        records[gauge.address] = GaugeApyRecord(
            address=gauge.address,
            vault=gauge.vault,
            lower_apr=apr.lower_apr,
            upper_apr=apr.upper_apr,
        )
    return records


def run(
    data_dir: Path,
    clients: Dict[int, ChainClient],
    price_feed: PriceFeed,
    now_ts: Optional[int] = None,
) -> Dict[str, GaugeApyRecord]:
    """Archive the previous snapshot, compute a new one and write it."""
    data_dir = Path(data_dir)
    output_path = data_dir / GAUGE_APY_FILE

    console.print("[cyan]Moving current gauge APY file to archive...[/cyan]")
    archive_previous(output_path, data_dir / GAUGE_APY_ARCHIVE_DIR)

    records = fetch_gauge_apy(clients, price_feed, now_ts=now_ts)
    for record in records.values():
        console.print(
            f"  {truncate_address(record.address)}: "
            f"{format_percentage(record.lower_apr)} - {format_percentage(record.upper_apr)}"
        )

    write_json(output_path, {address: record.to_dict() for address, record in records.items()})
    console.print(f"[green]✓ Saved APR of {len(records)} gauges -> {output_path}[/green]")
    return records


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute gauge reward APRs")
    parser.add_argument("--data-dir", default=Config.DATA_DIR, help="Database root directory")
    args = parser.parse_args()

    setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
    chains = Config.chain_endpoints()
    run(Path(args.data_dir), build_clients(chains), PriceFeed(chains))


if __name__ == "__main__":
    main()
