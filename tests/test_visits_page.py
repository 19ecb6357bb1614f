import asyncio

import pytest

from tests.conftest import TZ


def ids(views):
    return [v.visit.id for v in views]


@pytest.fixture
def page(services):
    return services.visits_page(page_size=2, tz=TZ)


def test_load_fills_state_and_first_page(page):
    state = asyncio.run(page.load())

    assert ids(state.visits) == ["v3", "v5", "v2", "v4", "v1"]
    assert state.loading is False
    assert state.error is None
    assert ids(page.page_items) == ["v3", "v5"]
    assert page.has_next
    assert page.farmer_options() == [("F1", "Çiğdem Yılmaz"), ("F2", "Ahmet Kaya")]
    assert page.field_options() == []


@pytest.mark.parametrize("denied", [False, True])
def test_scope_filters_reload(page, store, denied):
    store.deny_collection_group = denied

    async def run():
        await page.load()
        by_farmer = ids((await page.set_farmer_filter("F1")).visits)
        options = page.field_options()
        by_field = ids((await page.set_field_filter("A")).visits)
        switched = ids((await page.set_farmer_filter("F2")).visits)
        return by_farmer, options, by_field, switched

    by_farmer, options, by_field, switched = asyncio.run(run())

    assert by_farmer == ["v3", "v2", "v1"]
    assert options == [("A", "Buğday"), ("B", "Zeytin")]
    assert by_field == ["v2", "v1"]
    # Changing the farmer drops the field scope.
    assert page.filters.field_id is None
    assert switched == ["v5", "v4"]
    assert len(page.farmer_options()) == 2


def test_failed_load_resets_to_empty_with_message(page, store):
    asyncio.run(page.load())
    store.fail_collection_group = True

    state = asyncio.run(page.load())

    assert state.visits == []
    assert state.loading is False
    assert "network down" in state.error
    assert page.page_items == []


def test_stale_load_is_discarded(page, store):
    async def run():
        gate = asyncio.Event()
        store.gate = gate
        page.filters.farmer_id = "F1"
        slow = asyncio.create_task(page.load())
        while store.count("collection_group") == 0:
            await asyncio.sleep(0)
        for _ in range(3):
            await asyncio.sleep(0)

        store.gate = None
        await page.set_farmer_filter("F2")
        gate.set()
        await slow

    asyncio.run(run())

    assert ids(page.state.visits) == ["v5", "v4"]
    assert all(v.visit.farmer_id == "F2" for v in page.state.visits)


def test_scope_on_deleted_field_is_cleared(page, store):
    page.filters.farmer_id = "F1"
    page.filters.field_id = "A"
    asyncio.run(page.load())
    del store.docs["farmers/F1/fields/A"]

    state = asyncio.run(page.load())

    assert page.filters.field_id is None
    assert ids(state.visits) == ["v3", "v2", "v1"]
    # The deleted field's visits stay and show the raw field id.
    assert {v.field_label for v in state.visits if v.visit.field_id == "A"} == {"A"}


def test_local_filters_do_not_touch_the_store(page, store):
    asyncio.run(page.load())
    calls = len(store.calls)

    page.set_search("cigdem")

    assert ids(page.state.visits) == ["v3", "v2", "v4", "v1"]
    assert len(store.calls) == calls


def test_filter_changes_return_to_first_page(page):
    asyncio.run(page.load())
    assert page.next()
    assert page.page_index == 1

    page.set_search("")
    assert page.page_index == 0

    page.next()
    page.set_date_from("2024-05-01")
    assert page.page_index == 0


def test_date_bounds_stay_ordered(page):
    asyncio.run(page.load())

    page.set_date_to("2024-05-02")
    page.set_date_from("2024-05-04")
    assert page.filters.date_to == "2024-05-04"
    assert ids(page.state.visits) == ["v5"]

    page.set_date_to("2024-05-01")
    assert page.filters.date_from == "2024-05-01"
    assert ids(page.state.visits) == ["v1"]


def test_pager_navigation_clamps(page):
    asyncio.run(page.load())

    assert page.prev() is False
    assert page.next() and page.next()
    assert ids(page.page_items) == ["v1"]
    assert page.next() is False
    assert page.page_index == 2


def test_export_covers_only_the_visible_page(page, tmp_path):
    asyncio.run(page.load())

    content = page.export_csv()

    assert content.count("\r\n") == 3
    assert page.export(str(tmp_path)) is not None


def test_export_of_empty_page_is_a_no_op(page, tmp_path):
    asyncio.run(page.load())
    page.set_search("nothing matches this")

    assert page.export_csv() is None
    assert page.export(str(tmp_path)) is None
    assert list(tmp_path.iterdir()) == []


def test_unexpected_errors_still_end_the_load(page, monkeypatch):
    async def broken(**kwargs):
        raise ValueError("bad data")

    monkeypatch.setattr(page.aggregator, "aggregate", broken)

    state = asyncio.run(page.load())

    assert state.visits == []
    assert state.loading is False
    assert state.error == "bad data"


def test_malformed_dates_do_not_blank_the_view(page, store):
    store.docs["farmers/F1/fields/A/visits/nan"] = {
        "ownerUid": "u1", "farmerId": "F1", "fieldId": "A", "date": float("nan"), "note": "nan",
    }
    store.docs["farmers/F1/fields/A/visits/huge"] = {
        "ownerUid": "u1", "farmerId": "F1", "fieldId": "A", "date": {"seconds": 10**15}, "note": "huge",
    }

    state = asyncio.run(page.load())

    assert state.error is None
    assert len(state.visits) == 7
    assert set(ids(state.visits[-2:])) == {"nan", "huge"}

    page.set_date_to("2024-05-02")
    assert {"nan", "huge"} <= set(ids(page.state.visits))
    while page.next():
        pass
    assert "nan" in page.export_csv()


def test_hierarchical_load_lists_farmers_once(page, store):
    store.deny_collection_group = True
    for path in [p for p in store.docs if store.docs[p].get("ownerUid") == "u1"]:
        del store.docs[path]

    state = asyncio.run(page.load())

    assert state.visits == []
    assert page.farmer_options() == []
    assert sum(1 for call in store.calls if call == ("query", "farmers")) == 1
