from conftest import FakeChainClient, addr
from defidb.fetchers.fetch_strategy_descriptions import fetch_strategy_descriptions


def test_only_missing_strategies_are_described():
    known, new = addr(0x50), addr(0x51)
    client = FakeChainClient(1, {(new, "name", ()): "VaultCraft Beefy Adapter"})
    vaults = {
        addr(0xA0): {"strategies": [known]},
        addr(0xA1): {"strategies": [new]},
        addr(0xA2): {"strategies": [new]},
        addr(0xA3): {},
    }
    existing = {known: {"address": known, "name": "Curated"}}

    data = fetch_strategy_descriptions(client, vaults, existing)

    assert data[known] == {"address": known, "name": "Curated"}
    assert data[new]["address"] == new
    assert data[new]["resolver"] == "beefy"
    assert len(client.calls) == 1


def test_nothing_to_describe():
    client = FakeChainClient(1)
    assert fetch_strategy_descriptions(client, {}, {"x": {}}) == {"x": {}}
    assert client.calls == []
