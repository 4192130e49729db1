try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import date

from damwatch.clients.sqlite_store import SQLiteStore


def test_store_creates_parent_directory(tmp_path) -> None:
    db_path = tmp_path / "nested" / "damwatch.db"

    SQLiteStore(str(db_path))

    assert db_path.exists()


def test_recent_searches_are_newest_first_and_limited(tmp_path) -> None:
    store = SQLiteStore(str(tmp_path / "damwatch.db"))
    for name in ("Tehri Dam", "Bhakra Dam", "Hirakud Dam"):
        store.insert_search(dam_name=name, lat=1.0, lon=2.0)

    recent = store.list_recent_searches(limit=2)

    assert [record.dam_name for record in recent] == ["Hirakud Dam", "Bhakra Dam"]
    assert recent[0].created_at.tzinfo is not None


def test_readings_are_filtered_inclusively_and_ordered(tmp_path) -> None:
    store = SQLiteStore(str(tmp_path / "damwatch.db"))
    search = store.insert_search(dam_name="Idukki", lat=9.84, lon=76.97)

    saved = store.insert_readings(
        search_id=search.id,
        readings=[
            (date(2024, 1, 3), 700.0),
            (date(2024, 1, 1), 698.5),
            (date(2024, 1, 2), 699.0),
            (date(2024, 1, 9), 705.0),
        ],
    )

    points = store.readings_between(
        search_id=search.id, start=date(2024, 1, 1), end=date(2024, 1, 3)
    )

    assert saved == 4
    assert store.count_readings(search_id=search.id) == 4
    assert [point.timestamp for point in points] == [
        date(2024, 1, 1),
        date(2024, 1, 2),
        date(2024, 1, 3),
    ]
    assert store.insert_readings(search_id=search.id, readings=[]) == 0


def test_latest_search_for_matches_exact_name(tmp_path) -> None:
    store = SQLiteStore(str(tmp_path / "damwatch.db"))
    store.insert_search(dam_name="Koyna Dam", lat=17.4, lon=73.75)
    latest = store.insert_search(dam_name="Koyna Dam", lat=17.4, lon=73.75)

    assert store.latest_search_for("Koyna Dam").id == latest.id
    assert store.latest_search_for("koyna dam") is None
