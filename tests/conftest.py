from types import SimpleNamespace

import pytest
from web3 import Web3

from defidb.price_feed import PriceNotFoundError


def addr(n: int) -> str:
    """Deterministic checksummed address for tests."""
    return Web3.to_checksum_address(f"0x{n:040x}")


class FakeChainClient:
    """In-memory stand-in for ChainClient.

    ``responses`` maps (address, function name, args) to the decoded value.
    Reading anything not listed raises, like a reverting call would.
    """

    def __init__(self, chain_id, responses=None):
        self.chain_id = chain_id
        self.responses = {}
        self.calls = []
        for (address, name, args), value in (responses or {}).items():
            self.set(address, name, args, value)

    @staticmethod
    def _key(address, name, args):
        normalized = tuple(arg.lower() if isinstance(arg, str) else arg for arg in args)
        return address.lower(), name, normalized

    def set(self, address, name, args, value):
        self.responses[self._key(address, name, tuple(args))] = value

    def read(self, address, signature, *args):
        name = signature.split("(")[0]
        self.calls.append((address, name, args))
        key = self._key(address, name, args)
        if key not in self.responses:
            raise RuntimeError(f"execution reverted: {name} on {address} (chain {self.chain_id})")
        return self.responses[key]

    def read_many(self, reads):
        return {read.key: self.read(read.address, read.signature, *read.args) for read in reads}

    def called(self, address, name):
        return any(a.lower() == address.lower() and n == name for a, n, _ in self.calls)


class FakePriceFeed:
    def __init__(self, prices=None, reward_price=1.0):
        self.prices = {(chain, token.lower()): price for (chain, token), price in (prices or {}).items()}
        self.reward_price = reward_price
        self.batch_requests = []

    def get_batch_prices(self, chain_id, token_addresses):
        self.batch_requests.append((chain_id, list(token_addresses)))
        return {
            token.lower(): self.prices[(chain_id, token.lower())]
            for token in token_addresses
            if (chain_id, token.lower()) in self.prices
        }

    def require_token_price(self, chain_id, token_address):
        price = self.prices.get((chain_id, token_address.lower()))
        if price is None or price <= 0:
            raise PriceNotFoundError(f"No USD price for {token_address} on chain {chain_id}")
        return price

    def get_reward_token_price(self, token_address, chain_id=1):
        return self.reward_price


@pytest.fixture
def fake_client_factory():
    return FakeChainClient


NOW = 1_700_000_000
E18 = 10**18


@pytest.fixture
def gauge_world():
    """
    A controller with one gauge of each type plus a killed and a hidden one.

    Expected APRs with the prices below and a reward price of $1:
      root0   20% / 50%
      root1   0 / 0 (zero weight)
      root2   200% / 200%
      op      50% / 100%
      arb     20% / 100%
    """
    from config import Config
    from config.settings import GAUGE_CONTROLLER_ADDRESS, HIDDEN_GAUGES

    period = Config.get_current_period_timestamp(NOW)
    controller = GAUGE_CONTROLLER_ADDRESS
    hidden = next(iter(HIDDEN_GAUGES))
    g = SimpleNamespace(
        root0=addr(0x10),
        root1=addr(0x11),
        root2=addr(0x12),
        op=addr(0x13),
        arb=addr(0x14),
        killed=addr(0x15),
        hidden=hidden,
    )
    v = SimpleNamespace(root0=addr(0xA0), root1=addr(0xA1), root2=addr(0xA2), op=addr(0xB0), arb=addr(0xB1))
    t = SimpleNamespace(root0=addr(0xD0), root2=addr(0xD2), op=addr(0xE0), arb=addr(0xE1))

    root = FakeChainClient(1)
    order = [g.root0, g.root1, g.root2, g.op, g.arb, g.killed, g.hidden]
    root.set(controller, "n_gauges", (), len(order))
    for index, gauge in enumerate(order):
        root.set(controller, "gauges", (index,), gauge)
    for gauge in order[:-1]:
        root.set(gauge, "is_killed", (), gauge == g.killed)
    for gauge, gauge_type in [(g.root0, 0), (g.root1, 1), (g.root2, 2), (g.op, 3), (g.arb, 4)]:
        root.set(controller, "gauge_types", (gauge,), gauge_type)

    # root gauges: (vault, inflation, weight, tokenless, working supply, decimals)
    root_gauges = [
        (g.root0, v.root0, E18, E18 // 10, 40, 788_400 * E18, 18),
        (g.root1, v.root1, E18, 0, 40, 0, 18),
        (g.root2, v.root2, 2 * E18, E18 // 20, 100, 394_200 * 10**6, 6),
    ]
    for gauge, vault, inflation, weight, tokenless, working_supply, decimals in root_gauges:
        root.set(gauge, "lp_token", (), vault)
        root.set(gauge, "inflation_rate", (), inflation)
        root.set(gauge, "getCappedRelativeWeight", (period,), weight)
        root.set(gauge, "tokenless_production", (), tokenless)
        root.set(gauge, "working_supply", (), working_supply)
        root.set(gauge, "decimals", (), decimals)
    root.set(v.root0, "asset", (), t.root0)
    root.set(v.root2, "asset", (), t.root2)

    # child gauges keep rate and weight on the root chain
    for gauge in (g.op, g.arb):
        root.set(gauge, "inflation_params", (), (E18, NOW + 86400))
        root.set(gauge, "getCappedRelativeWeight", (period,), E18 // 10)

    # Optimism vault: 2 assets per share, 394,200 shares staked
    op = FakeChainClient(10)
    op.set(g.op, "tokenless_production", (), 50)
    op.set(g.op, "lp_token", (), v.op)
    op.set(v.op, "decimals", (), 18)
    op.set(v.op, "balanceOf", (g.op,), 394_200 * E18)
    op.set(v.op, "totalAssets", (), 2 * E18 - 1)
    op.set(v.op, "totalSupply", (), E18 - 10**9)
    op.set(v.op, "asset", (), t.op)

    # Arbitrum vault: 1 asset per share, 788,400 shares staked
    arb = FakeChainClient(42161)
    arb.set(g.arb, "tokenless_production", (), 20)
    arb.set(g.arb, "lp_token", (), v.arb)
    arb.set(v.arb, "decimals", (), 6)
    arb.set(v.arb, "balanceOf", (g.arb,), 788_400 * 10**6)
    arb.set(v.arb, "totalAssets", (), 10**15 - 1)
    arb.set(v.arb, "totalSupply", (), 10**15 - 10**9)
    arb.set(v.arb, "asset", (), t.arb)

    prices = FakePriceFeed(
        {(1, t.root0): 2.0, (1, t.root2): 1.0, (10, t.op): 1.0, (42161, t.arb): 1.0},
        reward_price=1.0,
    )
    return SimpleNamespace(
        controller=controller,
        period=period,
        gauges=g,
        vaults=v,
        tokens=t,
        clients={1: root, 10: op, 42161: arb},
        price_feed=prices,
    )
