"""
Token price feed.

Asset prices come from DefiLlama's current-price endpoint and are required:
a missing quote raises PriceNotFoundError. The reward token is priced from
its most liquid DEX pair, then CoinGecko, then a configured last-known price,
so its lookup never aborts a run.
"""

import logging
import time
from typing import Dict, Iterable, Optional, Tuple

import requests
from pycoingecko import CoinGeckoAPI

from config import ChainConfig, Config
from config.settings import ROOT_CHAIN_ID

logger = logging.getLogger(__name__)


class PriceNotFoundError(LookupError):
    """Raised when a required USD quote is unavailable."""


class PriceFeed:
    """Fetches and caches USD token prices for the duration of a run."""

    LLAMA_PRICES_URL = "https://coins.llama.fi/prices/current/{coins}"
    DEXSCREENER_TOKEN_URL = "https://api.dexscreener.com/latest/dex/tokens/{address}"

    # CoinGecko asset platform ids
    COINGECKO_PLATFORMS = {
        1: "ethereum",
        10: "optimistic-ethereum",
        137: "polygon-pos",
        42161: "arbitrum-one",
    }

    def __init__(
        self,
        chains: Dict[int, ChainConfig],
        coingecko_api_key: Optional[str] = None,
        reward_fallback_price: Optional[float] = None,
        cache_ttl: Optional[int] = None,
        timeout: Optional[int] = None,
    ):
        """
        Initialize price feed.

        Args:
            chains: Chain map, used for the API chain keys
            coingecko_api_key: Optional CoinGecko API key for higher rate limits
            reward_fallback_price: Last-known reward token price
            cache_ttl: Seconds a quote stays in the in-memory cache
            timeout: HTTP timeout in seconds
        """
        self.chains = chains
        api_key = coingecko_api_key or Config.COINGECKO_API_KEY
        self.api = CoinGeckoAPI(api_key=api_key) if api_key else CoinGeckoAPI()
        self.reward_fallback_price = (
            reward_fallback_price
            if reward_fallback_price is not None
            else Config.REWARD_TOKEN_FALLBACK_PRICE
        )
        self.cache_ttl = cache_ttl if cache_ttl is not None else Config.PRICE_CACHE_TTL
        self.timeout = timeout or Config.HTTP_TIMEOUT
        self.cache: Dict[Tuple[int, str], Tuple[float, float]] = {}  # (chain, token) -> (price, timestamp)
        logger.info("Price feed initialized")

    def _coin_key(self, chain_id: int, token_address: str) -> str:
        return f"{self.chains[chain_id].name}:{token_address}"

    def _cached(self, chain_id: int, token_address: str) -> Optional[float]:
        entry = self.cache.get((chain_id, token_address.lower()))
        if entry is None:
            return None
        price, cached_at = entry
        if time.time() - cached_at < self.cache_ttl:
            logger.debug(f"Cache hit for {token_address} on {chain_id}: ${price}")
            return price
        return None

    def get_token_price(self, chain_id: int, token_address: str) -> Optional[float]:
        """
        Get current USD price for a token.

        Args:
            chain_id: Chain the token lives on
            token_address: Token contract address

        Returns:
            USD price per token, or None if not found
        """
        return self.get_batch_prices(chain_id, [token_address]).get(token_address.lower())

    def require_token_price(self, chain_id: int, token_address: str) -> float:
        """
        Get a USD price that the caller cannot do without.

        Raises:
            PriceNotFoundError: If no positive quote is available
        """
        price = self.get_token_price(chain_id, token_address)
        if price is None or price <= 0:
            raise PriceNotFoundError(
                f"No USD price for {self._coin_key(chain_id, token_address)}"
            )
        return price

    def get_batch_prices(self, chain_id: int, token_addresses: Iterable[str]) -> Dict[str, float]:
        """
        Get prices for multiple tokens on one chain in a single request.

        Args:
            chain_id: Chain the tokens live on
            token_addresses: Token contract addresses

        Returns:
            Dictionary mapping lowercase address to price (missing quotes are absent)
        """
        prices: Dict[str, float] = {}
        uncached = []
        for address in token_addresses:
            cached = self._cached(chain_id, address)
            if cached is not None:
                prices[address.lower()] = cached
            elif address not in uncached:
                uncached.append(address)

        if not uncached:
            return prices

        coins = ",".join(self._coin_key(chain_id, address) for address in uncached)
        try:
            response = requests.get(
                self.LLAMA_PRICES_URL.format(coins=coins), timeout=self.timeout
            )
            response.raise_for_status()
            quotes = {
                key.lower(): value for key, value in response.json().get("coins", {}).items()
            }
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to fetch prices for {coins}: {e}")
            return prices

        for address in uncached:
            quote = quotes.get(self._coin_key(chain_id, address).lower())
            if quote is None or quote.get("price") is None:
                logger.warning(f"No DefiLlama quote for {self._coin_key(chain_id, address)}")
                continue
            price = float(quote["price"])
            prices[address.lower()] = price
            self.cache[(chain_id, address.lower())] = (price, time.time())

        return prices

    def get_reward_token_price(self, token_address: str, chain_id: int = ROOT_CHAIN_ID) -> float:
        """
        Get the reward token price, falling back instead of failing.

        Order: most liquid DEX pair, CoinGecko, configured last-known price.

        Args:
            token_address: Reward token address
            chain_id: Chain the token trades on

        Returns:
            USD price per token
        """
        cached = self._cached(chain_id, token_address)
        if cached is not None:
            return cached

        price = self._fetch_dex_pair_price(chain_id, token_address)
        if price is None:
            price = self._fetch_coingecko_price(chain_id, token_address)
        if price is None:
            logger.warning(
                f"Reward token price unavailable, using fallback ${self.reward_fallback_price}"
            )
            return self.reward_fallback_price

        self.cache[(chain_id, token_address.lower())] = (price, time.time())
        return price

    def _fetch_dex_pair_price(self, chain_id: int, token_address: str) -> Optional[float]:
        """
        Price from the most liquid DEX pair quoting the token as base.

        Args:
            chain_id: Chain to select pairs from
            token_address: Token contract address

        Returns:
            Positive USD price or None
        """
        try:
            response = requests.get(
                self.DEXSCREENER_TOKEN_URL.format(address=token_address), timeout=self.timeout
            )
            response.raise_for_status()
            pairs = response.json().get("pairs") or []
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Failed to fetch DEX pairs for {token_address}: {e}")
            return None

        chain_name = self.chains[chain_id].name
        candidates = [
            pair
            for pair in pairs
            if pair.get("chainId") == chain_name
            and (pair.get("baseToken") or {}).get("address", "").lower() == token_address.lower()
            and _positive_price(pair.get("priceUsd")) is not None
        ]
        if not candidates:
            logger.warning(f"No DEX pair quotes {token_address} on {chain_name}")
            return None

        best = max(candidates, key=lambda pair: float((pair.get("liquidity") or {}).get("usd") or 0))
        return float(best["priceUsd"])

    def _fetch_coingecko_price(self, chain_id: int, token_address: str) -> Optional[float]:
        """
        Fetch price by contract address from CoinGecko.

        Args:
            chain_id: Chain the token lives on
            token_address: Token contract address

        Returns:
            Positive USD price or None
        """
        platform = self.COINGECKO_PLATFORMS.get(chain_id)
        if platform is None:
            return None

        try:
            data = self.api.get_token_price(
                id=platform, contract_addresses=token_address, vs_currencies="usd"
            )
        except Exception as e:
            logger.warning(f"Failed to fetch CoinGecko price for {token_address}: {e}")
            return None

        quote = {key.lower(): value for key, value in data.items()}.get(token_address.lower()) or {}
        price = _positive_price(quote.get("usd"))
        if price is None:
            logger.warning(f"No usable CoinGecko quote for {token_address}: {quote}")
        return price


def _positive_price(value) -> Optional[float]:
    """Quote as a float, or None when it is missing, malformed or not above zero."""
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None
