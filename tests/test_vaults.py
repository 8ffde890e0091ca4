import pytest

from conftest import FakeChainClient, addr
from defidb.fetchers.fetch_price_per_share import fetch_price_per_share
from defidb.fetchers.fetch_vault_tokens import fetch_vault_tokens
from defidb.fetchers.fetch_vaults import VAULT_TYPE, fetch_vaults
from defidb.vaults import assets_per_share, fetch_vault_configurations, fetch_vault_supplies

REGISTRY = addr(0xF0)
VAULT_A = addr(0xA0)
VAULT_B = addr(0xA1)


def test_assets_per_share_without_supply():
    assert assets_per_share(0, 0) == 1e-9
    assert assets_per_share(10**18, 0) == 1e-9


def test_assets_per_share_offsets():
    assert assets_per_share(100, 50) == pytest.approx(101 / (50 + 1e9))
    assert assets_per_share(2 * 10**18 - 1, 10**18 - 10**9) == pytest.approx(2.0)


@pytest.fixture
def registry_client():
    client = FakeChainClient(1)
    client.set(REGISTRY, "getRegisteredAddresses", (), [VAULT_A.lower(), VAULT_B])
    for index, vault in enumerate((VAULT_A, VAULT_B)):
        client.set(vault, "asset", (), addr(0xD0 + index))
        client.set(
            REGISTRY,
            "metadata",
            (vault,),
            (vault, addr(0x1), addr(0xCC + index), "cid", [addr(0)] * 8, addr(0), 0),
        )
        client.set(vault, "adapter", (), addr(0x50 + index))
        client.set(vault, "fees", (), (0, 10**15, 2 * 10**16, 10**17))
        client.set(vault, "feeRecipient", (), addr(0xFE))
        client.set(vault, "totalAssets", (), 1_000 * (index + 1))
        client.set(vault, "totalSupply", (), 500 * (index + 1))
        client.set(vault, "name", (), f"Vault {index}")
        client.set(vault, "symbol", (), f"v{index}")
        client.set(vault, "decimals", (), 18)
    return client


def test_fetch_vault_configurations(registry_client):
    configuration = fetch_vault_configurations(registry_client, [VAULT_A])[VAULT_A]
    assert configuration.strategy == addr(0x50)
    assert configuration.fee_recipient == addr(0xFE)
    assert configuration.fees.to_dict() == {
        "deposit": 0,
        "withdrawal": 10**15,
        "management": 2 * 10**16,
        "performance": 10**17,
    }


def test_fetch_vault_supplies(registry_client):
    supplies = fetch_vault_supplies(registry_client, [VAULT_A, VAULT_B])
    assert supplies[VAULT_B].total_assets == 2_000
    assert supplies[VAULT_B].total_supply == 1_000
    assert supplies[VAULT_B].assets_per_share == pytest.approx(2_001 / (1_000 + 1e9))


def test_fetch_vaults_adds_new_vaults(registry_client):
    data = fetch_vaults(registry_client, REGISTRY, {})

    assert list(data) == [VAULT_A, VAULT_B]
    assert data[VAULT_A] == {
        "address": VAULT_A,
        "assetAddress": addr(0xD0),
        "chainId": 1,
        "type": VAULT_TYPE,
        "description": "",
        "creator": addr(0xCC),
        "strategies": [addr(0x50)],
        "fees": {
            "deposit": 0,
            "withdrawal": 10**15,
            "management": 2 * 10**16,
            "performance": 10**17,
        },
        "feeRecipient": addr(0xFE),
    }


def test_fetch_vaults_refreshes_known_vaults(registry_client):
    existing = {
        VAULT_A: {
            "address": VAULT_A,
            "assetAddress": addr(0xD0),
            "description": "Curated",
            "strategies": [addr(0x99)],
        }
    }

    data = fetch_vaults(registry_client, REGISTRY, existing)

    assert data[VAULT_A]["description"] == "Curated"
    assert data[VAULT_A]["strategies"] == [addr(0x50)]
    # known vaults are not read again for asset or creator
    assert not registry_client.called(VAULT_A, "asset")
    assert existing[VAULT_A]["strategies"] == [addr(0x99)]


def test_fetch_vault_tokens_only_reads_new_vaults(registry_client):
    existing = {VAULT_A: {"address": VAULT_A, "name": "Vault 0"}}

    data, added = fetch_vault_tokens(registry_client, REGISTRY, existing)

    assert added == 1
    assert data[VAULT_B]["symbol"] == "v1"
    assert data[VAULT_B]["chainId"] == 1
    assert data[VAULT_B]["logoURI"]
    assert not registry_client.called(VAULT_A, "name")


def test_fetch_vault_tokens_nothing_new(registry_client):
    existing = {VAULT_A: {}, VAULT_B: {}}
    data, added = fetch_vault_tokens(registry_client, REGISTRY, existing)
    assert added == 0
    assert data == existing


def test_price_per_share_prepends_observations(registry_client):
    existing = {
        VAULT_A: {
            "totalAssets": [{"date": 1, "value": 900}],
            "totalSupply": [{"date": 1, "value": 500}],
            "pricePerShare": [{"date": 1, "value": 1.8}],
            "label": "kept",
        }
    }

    data = fetch_price_per_share(registry_client, REGISTRY, existing, date_ms=2_000)

    assert data[VAULT_A]["totalAssets"] == [{"date": 2_000, "value": 1_000}, {"date": 1, "value": 900}]
    assert data[VAULT_A]["label"] == "kept"
    assert data[VAULT_A]["pricePerShare"][0]["value"] == pytest.approx(1_001 / (500 + 1e9))
    assert data[VAULT_B]["totalSupply"] == [{"date": 2_000, "value": 1_000}]
    assert isinstance(data[VAULT_A]["totalAssets"][0]["value"], float)
    assert isinstance(data[VAULT_B]["totalSupply"][0]["value"], float)
    assert len(existing[VAULT_A]["totalAssets"]) == 1
