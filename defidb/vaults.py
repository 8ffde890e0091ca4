"""
Vault registry and vault state reads.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

from web3 import Web3

from config.settings import MIN_ASSETS_PER_SHARE, SHARE_OFFSET
from defidb.rpc import ChainClient, ContractRead

logger = logging.getLogger(__name__)

# Vault registry
GET_REGISTERED_ADDRESSES = "getRegisteredAddresses()(address[])"
# (vault, staking, creator, metadataCID, swapTokenAddresses, swapAddress, exchange)
REGISTRY_METADATA = "metadata(address)((address,address,address,string,address[8],address,uint256))"

# Vault (ERC-4626)
ASSET = "asset()(address)"
DECIMALS = "decimals()(uint8)"
BALANCE_OF = "balanceOf(address)(uint256)"
TOTAL_ASSETS = "totalAssets()(uint256)"
TOTAL_SUPPLY = "totalSupply()(uint256)"
ADAPTER = "adapter()(address)"
FEES = "fees()((uint64,uint64,uint64,uint64))"
FEE_RECIPIENT = "feeRecipient()(address)"


def assets_per_share(total_assets: float, total_supply: float) -> float:
    """
    Vault share price with a stabilizing offset.

    (totalAssets + 1) / (totalSupply + 1e9) while shares exist, otherwise the
    fixed minimum of 1e-9.
    """
    if total_supply > 0:
        return (total_assets + 1) / (total_supply + SHARE_OFFSET)
    return MIN_ASSETS_PER_SHARE


@dataclass
class VaultSupply:
    """Assets and shares of a vault at read time."""

    address: str
    total_assets: int
    total_supply: int

    @property
    def assets_per_share(self) -> float:
        return assets_per_share(self.total_assets, self.total_supply)


@dataclass
class VaultFees:
    """Vault fee schedule, in 1e18 = 100% units."""

    deposit: int
    withdrawal: int
    management: int
    performance: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "deposit": self.deposit,
            "withdrawal": self.withdrawal,
            "management": self.management,
            "performance": self.performance,
        }


@dataclass
class VaultConfiguration:
    """Strategy and fee settings of a vault."""

    address: str
    strategy: str
    fees: VaultFees
    fee_recipient: str


def get_registered_vaults(client: ChainClient, registry_address: str) -> List[str]:
    """Checksummed addresses of every vault in the registry."""
    addresses = client.read(registry_address, GET_REGISTERED_ADDRESSES)
    logger.info(f"Registry on chain {client.chain_id} lists {len(addresses)} vaults")
    return [Web3.to_checksum_address(address) for address in addresses]


def fetch_vault_assets(client: ChainClient, vaults: Sequence[str]) -> Dict[str, str]:
    """Map vault -> underlying asset address."""
    results = client.read_many([ContractRead(vault, vault, ASSET) for vault in vaults])
    return {vault: Web3.to_checksum_address(results[vault]) for vault in vaults}


def fetch_vault_creators(
    client: ChainClient, registry_address: str, vaults: Sequence[str]
) -> Dict[str, str]:
    """Map vault -> creator recorded in the registry metadata."""
    results = client.read_many(
        [ContractRead(vault, registry_address, REGISTRY_METADATA, (vault,)) for vault in vaults]
    )
    return {vault: Web3.to_checksum_address(results[vault][2]) for vault in vaults}


def fetch_vault_supplies(client: ChainClient, vaults: Sequence[str]) -> Dict[str, VaultSupply]:
    """Read totalAssets and totalSupply of every vault in one batch."""
    reads = []
    for vault in vaults:
        reads.append(ContractRead((vault, "total_assets"), vault, TOTAL_ASSETS))
        reads.append(ContractRead((vault, "total_supply"), vault, TOTAL_SUPPLY))
    results = client.read_many(reads)

    return {
        vault: VaultSupply(
            address=vault,
            total_assets=results[(vault, "total_assets")],
            total_supply=results[(vault, "total_supply")],
        )
        for vault in vaults
    }


def fetch_vault_configurations(
    client: ChainClient, vaults: Sequence[str]
) -> Dict[str, VaultConfiguration]:
    """Read adapter, fees and fee recipient of every vault in one batch."""
    reads = []
    for vault in vaults:
        reads.append(ContractRead((vault, "adapter"), vault, ADAPTER))
        reads.append(ContractRead((vault, "fees"), vault, FEES))
        reads.append(ContractRead((vault, "fee_recipient"), vault, FEE_RECIPIENT))
    results = client.read_many(reads)

    configurations = {}
    for vault in vaults:
        deposit, withdrawal, management, performance = results[(vault, "fees")]
        configurations[vault] = VaultConfiguration(
            address=vault,
            strategy=Web3.to_checksum_address(results[(vault, "adapter")]),
            fees=VaultFees(
                deposit=int(deposit),
                withdrawal=int(withdrawal),
                management=int(management),
                performance=int(performance),
            ),
            fee_recipient=Web3.to_checksum_address(results[(vault, "fee_recipient")]),
        )
    return configurations
