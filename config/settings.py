"""
Configuration constants for the DeFi database fetchers.

Centralizes all static configuration including:
- Contract addresses
- Chain tables
- Gauge type routing
- Output file layout
"""

import os
from dotenv import load_dotenv

load_dotenv()

# ═══ Chains ═══
ETHEREUM = 1
OPTIMISM = 10
POLYGON = 137
ARBITRUM = 42161

SUPPORTED_CHAINS = [ETHEREUM, POLYGON, OPTIMISM, ARBITRUM]
ROOT_CHAIN_ID = ETHEREUM

# Chain keys used by the DefiLlama and DexScreener price APIs
CHAIN_NAMES = {
    ETHEREUM: "ethereum",
    OPTIMISM: "optimism",
    POLYGON: "polygon",
    ARBITRUM: "arbitrum",
}

# Public endpoints used when neither RPC_URL_<chainId> nor ALCHEMY_API_KEY is set
DEFAULT_RPC_URLS = {
    ETHEREUM: "https://eth.llamarpc.com",
    OPTIMISM: "https://mainnet.optimism.io",
    POLYGON: "https://polygon-rpc.com",
    ARBITRUM: "https://arb1.arbitrum.io/rpc",
}

ALCHEMY_RPC_TEMPLATES = {
    ETHEREUM: "https://eth-mainnet.g.alchemy.com/v2/{key}",
    OPTIMISM: "https://opt-mainnet.g.alchemy.com/v2/{key}",
    POLYGON: "https://polygon-mainnet.g.alchemy.com/v2/{key}",
    ARBITRUM: "https://arb-mainnet.g.alchemy.com/v2/{key}",
}

# ═══ Contract Addresses ═══
GAUGE_CONTROLLER_ADDRESS = os.getenv(
    "GAUGE_CONTROLLER_ADDRESS", "0xD57d8EEC36F0Ba7D8Fd693B9D97e02D8353EB1F4"
)
REWARD_TOKEN_ADDRESS = os.getenv(
    "REWARD_TOKEN_ADDRESS", "0xcE246eEa10988C495B4A90a905Ee9237a0f91543"
)

VAULT_REGISTRY_BY_CHAIN = {
    ETHEREUM: "0x007318Dc89B314b47609C684260CfbfbcD412864",
    POLYGON: "0x2246c4c469735bCE95C120939b0C078EC37A08D0",
    OPTIMISM: "0xdD0d135b5b52B7EDd90a83d4A4112C55a1A6D23A",
    ARBITRUM: "0xB205e94D402742B919E851892f7d515592a7A6cC",
}

# Deployment ran out of gas and registered a random address as a gauge
HIDDEN_GAUGES = {
    "0x38098e3600665168eBE4d827D24D0416efC24799",
}

# ═══ Gauge Types ═══
# type code -> chain holding the gauge's stake (working supply / vault)
GAUGE_TYPE_CHAINS = {
    0: ETHEREUM,
    1: ETHEREUM,
    2: ETHEREUM,
    3: OPTIMISM,
    4: ARBITRUM,
}
CHILD_GAUGE_TYPES = {3, 4}

# ═══ Constants ═══
ONE_E18 = 10**18
WEEK = 604800  # 7 days in seconds
SECONDS_PER_YEAR = 86400 * 365

# Reward token is paid out as an option token worth 25% of spot
REWARD_TOKEN_DISCOUNT = 0.25
# Used in place of a non-positive working supply
WORKING_SUPPLY_FLOOR = 1e18

MIN_ASSETS_PER_SHARE = 1e-9
SHARE_OFFSET = 1e9

# ═══ Token Lists ═══
ENSO_BASE_TOKENS_URL = "https://enso-scrape.s3.us-east-2.amazonaws.com/output/backend/baseTokens.json"
ENSO_DEFI_TOKENS_URL = "https://enso-scrape.s3.us-east-2.amazonaws.com/output/backend/defiTokens.json"

VAULT_LOGO_URI = "https://app.vaultcraft.io/images/tokens/vcx.svg"

EMPTY_TOKEN_LOGO_BY_CHAIN = {
    ETHEREUM: "https://etherscan.io/images/main/empty-token.png",
    POLYGON: "https://polygonscan.com/images/main/empty-token.png",
    OPTIMISM: "/images/networks/empty-op.svg",
    ARBITRUM: "https://arbiscan.io/images/main/empty-token.png",
}

# ═══ Output Layout (relative to DATA_DIR) ═══
GAUGE_APY_FILE = "gauge-apy-data.json"
GAUGE_APY_ARCHIVE_DIR = "archive/gauge-apy"
VAULTS_DIR = "archive/vaults"
VAULT_TOKENS_DIR = "archive/vaults/tokens"
PRICE_PER_SHARE_DIR = "archive/vaults/pricePerShare"
ASSET_ADDRESSES_DIR = "archive/assets/addresses"
ASSET_TOKENS_DIR = "archive/assets/tokens"
STRATEGY_DESCRIPTIONS_DIR = "archive/descriptions/strategies"
