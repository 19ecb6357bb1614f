from datetime import datetime, timedelta

from core.models import Farmer, FieldPlot, Visit, VisitView
from core.visit_filters import VisitFilters, build_haystack, filter_visits, normalize_text
from tests.conftest import TZ


def view(vid, farmer_id="F1", field_id="A", date=None, note="", farmer=None, field=None, recs=()):
    return VisitView(
        visit=Visit(id=vid, farmer_id=farmer_id, field_id=field_id, date=date, note=note),
        farmer=farmer,
        field=field,
        recommendation_names=list(recs),
    )


FARMER = Farmer(id="F1", name="Ahmet", phone="0532 111 22 33")
FIELD = FieldPlot(id="A", farmer_id="F1", type="Buğday", address="Menemen, İzmir")

VIEWS = [
    view("v1", note="Çiğdem hanım ile görüşüldü", farmer=FARMER, field=FIELD),
    view("v2", farmer_id="F2", field_id="C", note="Sulama"),
    view("v3", field_id="B", note="", recs=["Bakırlı Fungusit"]),
    view("v4", farmer=FARMER, field=FIELD),
]


def ids(views):
    return [v.visit.id for v in views]


def test_normalize_text_strips_diacritics():
    assert normalize_text("Çiğdem") == "cigdem"
    assert normalize_text("İZMİR") == "izmir"
    assert normalize_text(None) == ""


def test_search_is_diacritic_and_case_insensitive():
    assert ids(filter_visits(VIEWS, VisitFilters(search="cigdem"))) == ["v1"]
    assert ids(filter_visits(VIEWS, VisitFilters(search="  FUNGUSIT "))) == ["v3"]
    assert ids(filter_visits(VIEWS, VisitFilters(search="bugday"))) == ["v1", "v4"]


def test_search_covers_phone_and_address():
    assert ids(filter_visits(VIEWS, VisitFilters(search="111 22"))) == ["v1", "v4"]
    assert ids(filter_visits(VIEWS, VisitFilters(search="izmir"))) == ["v1", "v4"]


def test_empty_search_after_diacritic_query_returns_everything():
    filters = VisitFilters(search="Çiğdem")
    assert len(filter_visits(VIEWS, filters)) == 1

    filters.search = "   "
    assert ids(filter_visits(VIEWS, filters)) == ids(VIEWS)


def test_haystack_joins_present_values_with_single_spaces():
    v = view("x", note="Not", farmer=Farmer(id="F1", name="Ali", phone=""), recs=["R1", "R2"])
    assert build_haystack(v) == "not ali r1 r2"


def test_scope_filters_are_exact():
    assert ids(filter_visits(VIEWS, VisitFilters(farmer_id="F1"))) == ["v1", "v3", "v4"]
    assert ids(filter_visits(VIEWS, VisitFilters(farmer_id="F1", field_id="B"))) == ["v3"]
    assert ids(filter_visits(VIEWS, VisitFilters(farmer_id="F"))) == []


def test_date_to_is_inclusive_to_the_last_millisecond():
    end_of_day = datetime(2024, 5, 1, 23, 59, 59, 999000, tzinfo=TZ)
    views = [
        view("inside", date=end_of_day),
        view("outside", date=end_of_day + timedelta(milliseconds=1)),
    ]

    matched = filter_visits(views, VisitFilters(date_to="2024-05-01"), tz=TZ)

    assert ids(matched) == ["inside"]


def test_date_from_starts_at_local_midnight():
    midnight = datetime(2024, 5, 2, 0, 0, tzinfo=TZ)
    views = [
        view("before", date=midnight - timedelta(milliseconds=1)),
        view("at", date=midnight),
    ]

    assert ids(filter_visits(views, VisitFilters(date_from="2024-05-02"), tz=TZ)) == ["at"]


def test_unreadable_dates_compare_as_epoch():
    views = [view("bad", date="yesterday-ish"), view("old", date="1970-01-01T00:00:00+00:00")]

    assert ids(filter_visits(views, VisitFilters(date_from="2000-01-01"), tz=TZ)) == []
    assert ids(filter_visits(views, VisitFilters(date_to="2000-01-01"), tz=TZ)) == ["bad", "old"]


def test_unreadable_bounds_impose_nothing():
    assert ids(filter_visits(VIEWS, VisitFilters(date_from="05/01/2024"), tz=TZ)) == ids(VIEWS)


def test_criteria_combine_with_and():
    views = [
        view("a", date=datetime(2024, 5, 1, 12, tzinfo=TZ), note="ilaçlama"),
        view("b", date=datetime(2024, 5, 3, 12, tzinfo=TZ), note="ilaçlama"),
        view("c", farmer_id="F2", date=datetime(2024, 5, 1, 12, tzinfo=TZ), note="ilaçlama"),
    ]
    filters = VisitFilters(farmer_id="F1", date_from="2024-05-01", date_to="2024-05-02", search="ilaclama")

    assert ids(filter_visits(views, filters, tz=TZ)) == ["a"]
