"""
Strategy descriptions.

A strategy's ERC-20 name looks like ``"VaultCraft AaveV3 Adapter"``; its
second word is the strategy family. Each family maps to a descriptor holding
the display name, description template and yield resolver. Families whose
text depends on the full name (senior/junior tranches, OUSD/OETH) list
variants matched by a marker in the name. Per-address exceptions are checked
before any of that.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

DESCRIPTION_TEMPLATES = {
    "lpCompounding": (
        "**{subject} LP-Compounding** - The vault stakes the user's LP Token in a {subject} "
        "gauge, earning the platform's governance token. Earned token is swapped for more "
        "LP Token. To complete the compounding cycle, the new LP Token is added to the farm, "
        "ready to go for the next earning event. The transaction cost required to do all "
        "this is socialized among the vault's users."
    ),
    "lending": "**Lending** - The vault supplies assets into {subject} to earn interest.",
    "automatedAssetStrategy": (
        "**Automated Asset Strategy** - The vault supplies assets into {subject} to earn "
        "yield on their automated asset strategies."
    ),
    "seniorTranche": (
        "**Senior Tranche** - The vault supplies assets into a senior tranche of {subject}. "
        "Senior tranches offer stable returns with built-in coverage but reduced upside."
    ),
    "juniorTranche": (
        "**Junior Tranche** - The vault supplies assets into a junior tranche of {subject}. "
        "Junior tranches offer higher returns but carry more risk since they cover losses "
        "of the corresponding senior tranche."
    ),
    "originUsd": (
        "OUSD integrates with Aave and Compound to automate yield on over-collateralized "
        "loans.\n----\nThe OUSD protocol also routes USDT, USDC, and DAI to highly-performing "
        "liquidity pools as determined by trading volume and rewards tokens (e.g. Curve "
        "rewards CRV tokens to liquidity providers). Yields are then passed on to OUSD "
        "holders.\n---\nIn addition to collecting interest from and fees from market making, "
        "the protocol automatically claims and converts bonus incentives that are being "
        "distributed by DeFi protocols."
    ),
    "originEth": (
        "OETH integrates with various Liquid Staking Provider to optimize interest earned by "
        "staking Ether.\n----\nThe OETH protocol also utilizes Curve and Convex Finance to "
        "earn trading fees and additional rewards on ETH / OETH. It automatically claims and "
        "converts bonus incentives that are being distributed by these protocols."
    ),
}


@dataclass(frozen=True)
class StrategyDescriptor:
    """How a strategy family is presented."""

    display_name: str
    template: str
    resolver: str
    subject: Optional[str] = None

    def describe(self) -> Dict[str, str]:
        template = DESCRIPTION_TEMPLATES.get(self.template, self.template)
        return {
            "name": self.display_name,
            "description": template.format(subject=self.subject or self.display_name),
            "resolver": self.resolver,
        }


STRATEGY_FAMILIES: Dict[str, StrategyDescriptor] = {
    "Stargate": StrategyDescriptor("Stargate", "lpCompounding", "stargate"),
    "Convex": StrategyDescriptor("Convex", "lpCompounding", "convex"),
    "Aura": StrategyDescriptor("Aura", "lpCompounding", "aura"),
    "AaveV2": StrategyDescriptor("Aave", "lending", "aaveV2", subject="AaveV2"),
    "AaveV3": StrategyDescriptor("Aave", "lending", "aaveV3", subject="AaveV3"),
    "CompoundV2": StrategyDescriptor("Compound", "lending", "compoundV2", subject="CompoundV2"),
    "CompoundV3": StrategyDescriptor("Compound", "lending", "compoundV3", subject="CompoundV3"),
    "Flux": StrategyDescriptor("Flux", "lending", "flux"),
    "Beefy": StrategyDescriptor("Beefy", "automatedAssetStrategy", "beefy"),
    "Yearn": StrategyDescriptor("Yearn", "automatedAssetStrategy", "yearn"),
    "Pirex": StrategyDescriptor("Pirex", "automatedAssetStrategy", "pirex"),
    "Sommelier": StrategyDescriptor("Sommelier", "automatedAssetStrategy", "sommelier"),
}

# family -> [(marker in name, descriptor)], last entry is the default
STRATEGY_VARIANTS: Dict[str, List[Tuple[str, StrategyDescriptor]]] = {
    "Idle": [
        ("Senior", StrategyDescriptor("Idle", "seniorTranche", "idleSenior")),
        ("", StrategyDescriptor("Idle", "juniorTranche", "idleJunior")),
    ],
    "Origin": [
        ("Ether", StrategyDescriptor("Origin", "originEth", "origin")),
        ("", StrategyDescriptor("Origin", "originUsd", "origin")),
    ],
}
STRATEGY_VARIANTS["Ousd"] = STRATEGY_VARIANTS["Origin"]

STRATEGY_EXCEPTIONS: Dict[str, Dict[str, str]] = {
    "0xE3267A9Ff2d38B748B6aA202e006F7d94Ca22df3": {
        "name": "Sommelier Turbo",
        "description": "Sommelier Turbo",
        "resolver": "sommelier",
    },
}

EMPTY_DESCRIPTION = {"name": "Strategy", "description": "Not found", "resolver": "none"}


def strategy_family(name: str) -> Optional[str]:
    """Second word of the strategy name, if any."""
    words = name.split(" ")
    return words[1] if len(words) > 1 else None


def describe_strategy(address: str, name: str) -> Dict[str, str]:
    """
    Metadata for a strategy.

    Args:
        address: Checksummed strategy address
        name: ERC-20 name of the strategy

    Returns:
        Dictionary with name, description and resolver
    """
    if address in STRATEGY_EXCEPTIONS:
        return dict(STRATEGY_EXCEPTIONS[address])

    family = strategy_family(name)
    if family in STRATEGY_VARIANTS:
        for marker, descriptor in STRATEGY_VARIANTS[family]:
            if marker in name:
                return descriptor.describe()
    if family in STRATEGY_FAMILIES:
        return STRATEGY_FAMILIES[family].describe()
    return dict(EMPTY_DESCRIPTION)

