"""
Gauge reward APR.

    relative_inflation = inflation_rate * capped_relative_weight
    annual_reward_usd  = relative_inflation * SECONDS_PER_YEAR * reward_price * discount
    working_supply_usd = working_supply * asset_price
    upper_apr          = annual_reward_usd / working_supply_usd
    lower_apr          = upper_apr * tokenless_production / 100

The upper bound is the fully boosted yield, the lower bound the yield of an
unboosted staker. Both are returned in percent.
"""

import logging
from dataclasses import dataclass
from typing import Dict

from config.settings import (
    REWARD_TOKEN_DISCOUNT,
    SECONDS_PER_YEAR,
    WORKING_SUPPLY_FLOOR,
)
from defidb.gauges import GaugeData

logger = logging.getLogger(__name__)


@dataclass
class GaugeApr:
    """Lower and upper APR of a gauge, in percent."""

    lower_apr: float
    upper_apr: float


@dataclass
class GaugeApyRecord:
    """One entry of the gauge APY snapshot."""

    address: str
    vault: str
    lower_apr: float
    upper_apr: float

    def to_dict(self) -> Dict[str, object]:
        return {
            "address": self.address,
            "vault": self.vault,
            "lowerAPR": self.lower_apr,
            "upperAPR": self.upper_apr,
        }


def calculate_apr(
    inflation_rate: float,
    capped_relative_weight: float,
    tokenless_production: float,
    working_supply: float,
    asset_price_usd: float,
    reward_price_usd: float,
    discount: float = REWARD_TOKEN_DISCOUNT,
) -> GaugeApr:
    """
    Annualized reward yield of a gauge.

    Args:
        inflation_rate: Reward tokens emitted per second
        capped_relative_weight: Gauge share of emissions (0-1)
        tokenless_production: Unboosted share of a stake (0-100)
        working_supply: Boost-adjusted stake in asset units
        asset_price_usd: USD price of the staked vault's asset
        reward_price_usd: USD spot price of the reward token
        discount: Fraction of spot the paid-out reward is worth

    Returns:
        GaugeApr in percent; both zero when nothing is emitted

    Raises:
        ValueError: If the asset price is not positive
    """
    relative_inflation = inflation_rate * capped_relative_weight
    if relative_inflation <= 0:
        return GaugeApr(lower_apr=0.0, upper_apr=0.0)

    if asset_price_usd is None or asset_price_usd <= 0:
        raise ValueError(f"Asset price must be positive, got {asset_price_usd}")

    annual_reward_usd = relative_inflation * SECONDS_PER_YEAR * reward_price_usd * discount
    if working_supply <= 0:
        working_supply = WORKING_SUPPLY_FLOOR
    working_supply_usd = working_supply * asset_price_usd

    upper_apr = annual_reward_usd / working_supply_usd
    # tokenless_production == 0 means no unboosted yield at all
    tokenless = min(max(tokenless_production, 0), 100)
    lower_apr = upper_apr * tokenless / 100

    return GaugeApr(lower_apr=lower_apr * 100, upper_apr=upper_apr * 100)


def calculate_gauge_apr(
    gauge: GaugeData,
    asset_price_usd: float,
    reward_price_usd: float,
    discount: float = REWARD_TOKEN_DISCOUNT,
) -> GaugeApr:
    """APR of a gauge from its collected on-chain data."""
    apr = calculate_apr(
        inflation_rate=gauge.inflation_rate,
        capped_relative_weight=gauge.capped_relative_weight,
        tokenless_production=gauge.tokenless_production,
        working_supply=gauge.working_supply,
        asset_price_usd=asset_price_usd,
        reward_price_usd=reward_price_usd,
        discount=discount,
    )
    logger.debug(
        f"Gauge {gauge.address}: lower={apr.lower_apr:.4f}% upper={apr.upper_apr:.4f}%"
    )
    return apr
