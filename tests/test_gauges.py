import pytest

from conftest import FakeChainClient, addr
from defidb.gauges import (
    GaugeRoute,
    classify_gauges,
    collect_child_gauge_data,
    collect_gauge_data,
    enumerate_gauges,
)


def test_enumerate_drops_hidden_and_killed(gauge_world):
    root = gauge_world.clients[1]
    g = gauge_world.gauges

    gauges = enumerate_gauges(root, gauge_world.controller)

    assert gauges == [g.root0, g.root1, g.root2, g.op, g.arb]
    assert not root.called(g.hidden, "is_killed")


def test_enumerate_deduplicates_registrations():
    controller = addr(0xC0)
    gauge = addr(0x10)
    client = FakeChainClient(
        1,
        {
            (controller, "n_gauges", ()): 2,
            (controller, "gauges", (0,)): gauge,
            (controller, "gauges", (1,)): gauge.lower(),
            (gauge, "is_killed", ()): False,
        },
    )
    assert enumerate_gauges(client, controller, hidden=()) == [gauge]


def test_enumerate_empty_controller():
    controller = addr(0xC0)
    client = FakeChainClient(1, {(controller, "n_gauges", ()): 0})
    assert enumerate_gauges(client, controller) == []


def test_classify_routes_type_codes(gauge_world):
    g = gauge_world.gauges
    routes = classify_gauges(
        gauge_world.clients[1], gauge_world.controller, [g.root0, g.root1, g.root2, g.op, g.arb]
    )

    assert [(route.gauge_type, route.chain_id) for route in routes] == [
        (0, 1),
        (1, 1),
        (2, 1),
        (3, 10),
        (4, 42161),
    ]
    assert [route.is_child for route in routes] == [False, False, False, True, True]


def test_classify_skips_unknown_type(caplog):
    controller = addr(0xC0)
    known, unknown = addr(0x10), addr(0x11)
    client = FakeChainClient(
        1,
        {
            (controller, "gauge_types", (known,)): 0,
            (controller, "gauge_types", (unknown,)): 7,
        },
    )

    routes = classify_gauges(client, controller, [known, unknown])

    assert [route.address for route in routes] == [known]
    assert "unknown type 7" in caplog.text


def test_collect_normalizes_root_gauges(gauge_world):
    g = gauge_world.gauges
    routes = [GaugeRoute(g.root0, 0, 1), GaugeRoute(g.root2, 2, 1)]

    root0, root2 = collect_gauge_data(gauge_world.clients, routes, gauge_world.period)

    assert root0.vault == gauge_world.vaults.root0
    assert root0.inflation_rate == pytest.approx(1.0)
    assert root0.capped_relative_weight == pytest.approx(0.1)
    assert root0.tokenless_production == 40
    assert root0.working_supply == pytest.approx(788_400)

    # working supply is scaled by the gauge's own decimals
    assert root2.decimals == 6
    assert root2.working_supply == pytest.approx(394_200)
    assert root2.relative_inflation == pytest.approx(0.1)


def test_collect_reads_child_stake_on_child_chain(gauge_world):
    g = gauge_world.gauges
    root, op = gauge_world.clients[1], gauge_world.clients[10]

    (data,) = collect_gauge_data(gauge_world.clients, [GaugeRoute(g.op, 3, 10)], gauge_world.period)

    assert data.chain_id == 10
    assert data.vault == gauge_world.vaults.op
    assert data.inflation_rate == pytest.approx(1.0)
    assert data.capped_relative_weight == pytest.approx(0.1)
    assert data.tokenless_production == 50
    assert data.working_supply == pytest.approx(788_400)

    assert root.called(g.op, "inflation_params")
    assert not root.called(g.op, "tokenless_production")
    assert not root.called(g.op, "lp_token")
    assert op.called(g.op, "tokenless_production")
    assert not op.called(g.op, "inflation_params")


def test_child_working_supply_uses_vault_decimals(gauge_world):
    g = gauge_world.gauges
    (data,) = collect_child_gauge_data(
        gauge_world.clients[1],
        gauge_world.clients[42161],
        [GaugeRoute(g.arb, 4, 42161)],
        gauge_world.period,
    ).values()
    assert data.decimals == 6
    assert data.working_supply == pytest.approx(788_400)


def test_child_gauge_of_empty_vault_uses_minimum_share_price(gauge_world):
    g = gauge_world.gauges
    arb = gauge_world.clients[42161]
    arb.set(gauge_world.vaults.arb, "totalSupply", (), 0)

    (data,) = collect_child_gauge_data(
        gauge_world.clients[1], arb, [GaugeRoute(g.arb, 4, 42161)], gauge_world.period
    ).values()
    assert data.working_supply == pytest.approx(788_400 * 1e-9)


def test_collect_keeps_route_order(gauge_world):
    g = gauge_world.gauges
    routes = [
        GaugeRoute(g.arb, 4, 42161),
        GaugeRoute(g.root0, 0, 1),
        GaugeRoute(g.op, 3, 10),
    ]
    data = collect_gauge_data(gauge_world.clients, routes, gauge_world.period)
    assert [gauge.address for gauge in data] == [g.arb, g.root0, g.op]


def test_collect_propagates_read_failure(gauge_world):
    g = gauge_world.gauges
    with pytest.raises(RuntimeError, match="execution reverted"):
        collect_gauge_data(
            gauge_world.clients, [GaugeRoute(addr(0x99), 0, 1), GaugeRoute(g.root0, 0, 1)], gauge_world.period
        )


@pytest.mark.parametrize(
    "name, gauge_type, chain_id",
    [
        ("root0", 0, 1),
        ("root1", 1, 1),
        ("root2", 2, 1),
        ("op", 3, 10),
        ("arb", 4, 42161),
    ],
)
def test_fields_are_read_on_the_right_chain(gauge_world, name, gauge_type, chain_id):
    gauge = getattr(gauge_world.gauges, name)
    root = gauge_world.clients[1]

    (data,) = collect_gauge_data(
        gauge_world.clients, [GaugeRoute(gauge, gauge_type, chain_id)], gauge_world.period
    )
    assert data.chain_id == chain_id

    if gauge_type in (3, 4):
        child = gauge_world.clients[chain_id]
        assert root.called(gauge, "inflation_params")
        assert root.called(gauge, "getCappedRelativeWeight")
        assert not root.called(gauge, "tokenless_production")
        assert not root.called(gauge, "lp_token")
        assert child.called(gauge, "tokenless_production")
        assert child.called(gauge, "lp_token")
        assert not child.called(gauge, "inflation_params")
        assert not child.called(gauge, "getCappedRelativeWeight")
    else:
        assert root.called(gauge, "inflation_rate")
        assert root.called(gauge, "tokenless_production")
        assert root.called(gauge, "working_supply")
        assert gauge_world.clients[10].calls == []
        assert gauge_world.clients[42161].calls == []
