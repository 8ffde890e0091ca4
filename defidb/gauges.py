"""
Liquidity gauge reads.

Gauges are enumerated from the gauge controller on the root chain. Root
gauges keep all their state on the root chain. Child gauges keep their
reward rate and weight on the root chain while their stake (tokenless
production, vault and working supply) lives on the chain their type code
points to, so they are read from two endpoints.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from web3 import Web3

from config.settings import (
    CHILD_GAUGE_TYPES,
    GAUGE_TYPE_CHAINS,
    HIDDEN_GAUGES,
    ONE_E18,
    ROOT_CHAIN_ID,
)
from defidb.rpc import ChainClient, ContractRead
from defidb.utils import format_token_amount
from defidb.vaults import BALANCE_OF, DECIMALS, fetch_vault_supplies

logger = logging.getLogger(__name__)

# Gauge controller
N_GAUGES = "n_gauges()(uint256)"
GAUGES = "gauges(uint256)(address)"
GAUGE_TYPES = "gauge_types(address)(int128)"

# Gauge
IS_KILLED = "is_killed()(bool)"
LP_TOKEN = "lp_token()(address)"
INFLATION_RATE = "inflation_rate()(uint256)"
INFLATION_PARAMS = "inflation_params()((uint256,uint256))"  # (rate, finish_time)
CAPPED_RELATIVE_WEIGHT = "getCappedRelativeWeight(uint256)(uint256)"
TOKENLESS_PRODUCTION = "tokenless_production()(uint256)"
WORKING_SUPPLY = "working_supply()(uint256)"
GAUGE_DECIMALS = "decimals()(uint256)"


@dataclass
class GaugeRoute:
    """Where a gauge's data lives."""

    address: str
    gauge_type: int
    chain_id: int

    @property
    def is_child(self) -> bool:
        return self.gauge_type in CHILD_GAUGE_TYPES


@dataclass
class GaugeData:
    """Normalized reward inputs of one gauge for the current period."""

    address: str
    gauge_type: int
    chain_id: int
    vault: str
    inflation_rate: float  # reward tokens per second
    capped_relative_weight: float  # 0-1
    tokenless_production: int  # 0-100
    working_supply: float  # in vault asset units
    decimals: int

    @property
    def is_child(self) -> bool:
        return self.gauge_type in CHILD_GAUGE_TYPES

    @property
    def relative_inflation(self) -> float:
        return self.inflation_rate * self.capped_relative_weight


def enumerate_gauges(
    client: ChainClient,
    controller_address: str,
    hidden: Iterable[str] = HIDDEN_GAUGES,
) -> List[str]:
    """
    List live gauges registered in the controller.

    Args:
        client: Root chain client
        controller_address: Gauge controller address
        hidden: Gauges that must never be reported

    Returns:
        Checksummed addresses of gauges that are neither hidden nor killed,
        in controller order
    """
    n_gauges = client.read(controller_address, N_GAUGES)
    results = client.read_many(
        [ContractRead(index, controller_address, GAUGES, (index,)) for index in range(n_gauges)]
    )
    gauges = list(
        dict.fromkeys(Web3.to_checksum_address(results[index]) for index in range(n_gauges))
    )

    hidden_gauges = {Web3.to_checksum_address(address) for address in hidden}
    visible = [gauge for gauge in gauges if gauge not in hidden_gauges]
    if len(visible) != len(gauges):
        logger.info(f"Dropped {len(gauges) - len(visible)} hidden gauges")

    killed = client.read_many([ContractRead(gauge, gauge, IS_KILLED) for gauge in visible])
    alive = [gauge for gauge in visible if not killed[gauge]]
    logger.info(f"{len(alive)} live gauges of {n_gauges} registered")
    return alive


def classify_gauges(
    client: ChainClient, controller_address: str, gauges: Sequence[str]
) -> List[GaugeRoute]:
    """
    Route gauges to the chain holding their stake.

    Gauges with a type code missing from GAUGE_TYPE_CHAINS are logged and
    left out.
    """
    types = client.read_many(
        [ContractRead(gauge, controller_address, GAUGE_TYPES, (gauge,)) for gauge in gauges]
    )

    routes = []
    for gauge in gauges:
        gauge_type = int(types[gauge])
        chain_id = GAUGE_TYPE_CHAINS.get(gauge_type)
        if chain_id is None:
            logger.warning(f"Skipping gauge {gauge} with unknown type {gauge_type}")
            continue
        routes.append(GaugeRoute(address=gauge, gauge_type=gauge_type, chain_id=chain_id))
    return routes


def collect_root_gauge_data(
    client: ChainClient, routes: Sequence[GaugeRoute], period: int
) -> Dict[str, GaugeData]:
    """Read every input of root gauges from the root chain in one batch."""
    reads = []
    for route in routes:
        gauge = route.address
        reads.extend(
            [
                ContractRead((gauge, "lp_token"), gauge, LP_TOKEN),
                ContractRead((gauge, "inflation_rate"), gauge, INFLATION_RATE),
                ContractRead((gauge, "capped_weight"), gauge, CAPPED_RELATIVE_WEIGHT, (period,)),
                ContractRead((gauge, "tokenless_production"), gauge, TOKENLESS_PRODUCTION),
                ContractRead((gauge, "working_supply"), gauge, WORKING_SUPPLY),
                ContractRead((gauge, "decimals"), gauge, GAUGE_DECIMALS),
            ]
        )
    results = client.read_many(reads)

    data = {}
    for route in routes:
        gauge = route.address
        decimals = int(results[(gauge, "decimals")])
        data[gauge] = GaugeData(
            address=gauge,
            gauge_type=route.gauge_type,
            chain_id=route.chain_id,
            vault=Web3.to_checksum_address(results[(gauge, "lp_token")]),
            inflation_rate=results[(gauge, "inflation_rate")] / ONE_E18,
            capped_relative_weight=results[(gauge, "capped_weight")] / ONE_E18,
            tokenless_production=int(results[(gauge, "tokenless_production")]),
            working_supply=format_token_amount(results[(gauge, "working_supply")], decimals),
            decimals=decimals,
        )
    return data


def collect_child_gauge_data(
    root_client: ChainClient,
    child_client: ChainClient,
    routes: Sequence[GaugeRoute],
    period: int,
) -> Dict[str, GaugeData]:
    """
    Read child gauges of one chain.

    Reward rate and weight come from the root chain. Tokenless production and
    the vault come from the child chain, where the working supply is derived
    from the gauge's vault share balance:
    assetsPerShare * balanceOf(gauge) / 10**decimals.
    """
    if not routes:
        return {}

    root_results = root_client.read_many(
        [
            read
            for route in routes
            for read in (
                ContractRead((route.address, "inflation_params"), route.address, INFLATION_PARAMS),
                ContractRead(
                    (route.address, "capped_weight"),
                    route.address,
                    CAPPED_RELATIVE_WEIGHT,
                    (period,),
                ),
            )
        ]
    )

    child_results = child_client.read_many(
        [
            read
            for route in routes
            for read in (
                ContractRead(
                    (route.address, "tokenless_production"), route.address, TOKENLESS_PRODUCTION
                ),
                ContractRead((route.address, "lp_token"), route.address, LP_TOKEN),
            )
        ]
    )
    vaults = {
        route.address: Web3.to_checksum_address(child_results[(route.address, "lp_token")])
        for route in routes
    }

    vault_results = child_client.read_many(
        [
            read
            for route in routes
            for read in (
                ContractRead((route.address, "decimals"), vaults[route.address], DECIMALS),
                ContractRead(
                    (route.address, "balance"),
                    vaults[route.address],
                    BALANCE_OF,
                    (route.address,),
                ),
            )
        ]
    )
    supplies = fetch_vault_supplies(child_client, list(dict.fromkeys(vaults.values())))

    data = {}
    for route in routes:
        gauge = route.address
        vault = vaults[gauge]
        decimals = int(vault_results[(gauge, "decimals")])
        balance = vault_results[(gauge, "balance")]
        rate, _ = root_results[(gauge, "inflation_params")]
        data[gauge] = GaugeData(
            address=gauge,
            gauge_type=route.gauge_type,
            chain_id=route.chain_id,
            vault=vault,
            inflation_rate=rate / ONE_E18,
            capped_relative_weight=root_results[(gauge, "capped_weight")] / ONE_E18,
            tokenless_production=int(child_results[(gauge, "tokenless_production")]),
            working_supply=supplies[vault].assets_per_share * format_token_amount(balance, decimals),
            decimals=decimals,
        )
    return data


def collect_gauge_data(
    clients: Dict[int, ChainClient], routes: Sequence[GaugeRoute], period: int
) -> List[GaugeData]:
    """
    Collect reward inputs for all routed gauges.

    Args:
        clients: Chain clients by chain id; must include the root chain and
            every child chain present in ``routes``
        routes: Output of classify_gauges
        period: Week-aligned timestamp of the current reward period

    Returns:
        GaugeData in the order of ``routes``
    """
    root_client = clients[ROOT_CHAIN_ID]
    collected = collect_root_gauge_data(
        root_client, [route for route in routes if not route.is_child], period
    )

    child_chains = list(dict.fromkeys(route.chain_id for route in routes if route.is_child))
    for chain_id in child_chains:
        chain_routes = [route for route in routes if route.is_child and route.chain_id == chain_id]
        logger.info(f"Reading {len(chain_routes)} child gauges on chain {chain_id}")
        collected.update(
            collect_child_gauge_data(root_client, clients[chain_id], chain_routes, period)
        )

    return [collected[route.address] for route in routes]
