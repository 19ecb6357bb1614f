import asyncio

import pytest


@pytest.mark.parametrize("denied", [False, True])
def test_recent_visits_are_newest_first_and_resolved(services, store, denied):
    store.deny_collection_group = denied

    state = asyncio.run(services.dashboard(limit=3).load_recent())

    assert [v.visit.id for v in state.recent] == ["v3", "v5", "v2"]
    assert [v.farmer_label for v in state.recent] == ["Çiğdem Yılmaz", "Ahmet Kaya", "Çiğdem Yılmaz"]
    assert state.recent[0].field_label == "Zeytin"
    assert state.error is None


def test_recent_visits_skip_the_catalog(services, store):
    state = asyncio.run(services.dashboard(limit=3).load_recent())

    assert not any(call == ("query", "recommendations") for call in store.calls)
    assert state.recent[0].recommendation_names == ["r2", "r2"]


def test_failure_leaves_an_empty_dashboard_with_message(services, store):
    store.fail_collection_group = True

    state = asyncio.run(services.dashboard().load_recent())

    assert state.recent == []
    assert state.loading is False
    assert "network down" in state.error


def test_unexpected_errors_still_end_the_load(services, monkeypatch):
    dashboard = services.dashboard()

    async def broken(**kwargs):
        raise ValueError("bad data")

    monkeypatch.setattr(dashboard.aggregator, "aggregate", broken)

    state = asyncio.run(dashboard.load_recent())

    assert state.recent == []
    assert state.loading is False
    assert state.error == "bad data"
