try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import date

import pytest

from damwatch.clients.sqlite_store import SQLiteStore
from damwatch.services.dam_registry import DamRegistry
from damwatch.services.prediction import PredictedOpening, PredictionUnavailable
from damwatch.services.range_comparison import (
    InvalidDateFormat,
    MissingParameters,
    NoDataInRange,
    NoPriorAnalysis,
    RangeComparisonService,
    parse_day,
)


@pytest.fixture()
def store(tmp_path) -> SQLiteStore:
    store = SQLiteStore(str(tmp_path / "damwatch.db"))
    search = store.insert_search(dam_name="Tehri Dam", lat=30.38, lon=78.48)
    store.insert_readings(
        search_id=search.id,
        readings=[
            (date(2024, 6, 1), 800.0),
            (date(2024, 6, 3), 804.0),
            (date(2024, 6, 5), 806.5),
        ],
    )
    return store


@pytest.fixture()
def service(store, registry) -> RangeComparisonService:
    return RangeComparisonService(store=store, registry=registry)


def test_compare_uses_first_and_last_reading_in_window(service) -> None:
    comparison = service.compare("Tehri Dam", "2024-06-01", "2024-06-05")

    assert comparison.start_level == 800.0
    assert comparison.end_level == 806.5
    assert comparison.difference == 6.5
    assert comparison.days == 4
    assert comparison.rate_of_change == pytest.approx(1.625)
    assert len(comparison.data) == 3
    assert isinstance(comparison.prediction, PredictedOpening)
    # 23.5 m left at 1.625 m/day
    assert comparison.prediction.days_to_open == 15
    assert comparison.prediction.predicted_open_date == date(2024, 6, 20)
    assert comparison.dam_config.id == "tehri_dam"


def test_single_reading_in_window_has_zero_difference(service) -> None:
    comparison = service.compare("Tehri Dam", "2024-06-02T00:00:00Z", "2024-06-04")

    assert comparison.difference == 0
    assert comparison.days == 1
    assert comparison.rate_of_change == 0
    assert isinstance(comparison.prediction, PredictionUnavailable)
    assert comparison.prediction.reason == "not_rising"


def test_compare_uses_latest_search_for_the_name(service, store) -> None:
    newer = store.insert_search(dam_name="Tehri Dam", lat=30.38, lon=78.48)
    store.insert_readings(search_id=newer.id, readings=[(date(2024, 6, 2), 810.0)])

    comparison = service.compare("Tehri Dam", "2024-06-01", "2024-06-05")

    assert [point.water_level for point in comparison.data] == [810.0]


def test_unknown_dam_config_degrades_prediction(store) -> None:
    service = RangeComparisonService(store=store, registry=DamRegistry({}))

    comparison = service.compare("Tehri Dam", "2024-06-01", "2024-06-05")

    assert comparison.dam_config is None
    assert comparison.prediction.reason == "missing_inputs"
    assert comparison.to_payload()["dam_config"] is None


def test_missing_parameters_are_listed(service) -> None:
    with pytest.raises(MissingParameters) as excinfo:
        service.compare("Tehri Dam", None, " ")

    assert excinfo.value.missing == ["start", "end"]


@pytest.mark.parametrize(
    ("start", "end"),
    [("yesterday", "2024-06-05"), ("2024-06-01", "2024-13-01"), ("2024-06-05", "2024-06-01")],
)
def test_invalid_dates_are_rejected(service, start, end) -> None:
    with pytest.raises(InvalidDateFormat):
        service.compare("Tehri Dam", start, end)


def test_no_prior_analysis(service) -> None:
    with pytest.raises(NoPriorAnalysis) as excinfo:
        service.compare("Bhakra Dam", "2024-06-01", "2024-06-05")

    assert "Bhakra Dam" in str(excinfo.value)


def test_no_data_in_range(service) -> None:
    with pytest.raises(NoDataInRange):
        service.compare("Tehri Dam", "2023-01-01", "2023-12-31")


def test_parse_day_converts_offsets_to_utc() -> None:
    assert parse_day("2024-06-01T23:30:00-02:00", field_name="start") == date(2024, 6, 2)
    assert parse_day("2024-06-01", field_name="start") == date(2024, 6, 1)
