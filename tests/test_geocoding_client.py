try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import functools

import httpx
import pytest

from damwatch.clients.geocoding import Coordinates, GeocodingError, OpenCageGeocoder
from damwatch.core.config import GeocodingSettings

pytestmark = pytest.mark.anyio("asyncio")


def _settings(**overrides) -> GeocodingSettings:
    values = {"api_key": "key-123", "retry_attempts": 1}
    values.update(overrides)
    return GeocodingSettings(**values)


async def test_geocode_returns_first_candidate() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "results": [
                    {"geometry": {"lat": 30.3775, "lng": 78.4803}},
                    {"geometry": {"lat": 1.0, "lng": 2.0}},
                ]
            },
        )

    geocoder = OpenCageGeocoder(_settings(), transport=httpx.MockTransport(handler))

    coords = await geocoder.geocode("Tehri Dam")

    assert coords == Coordinates(lat=30.3775, lon=78.4803)
    params = seen[0].url.params
    assert params["q"] == "Tehri Dam, India"
    assert params["key"] == "key-123"
    assert params["countrycode"] == "in"


async def test_geocode_returns_none_without_results() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"results": []}))
    geocoder = OpenCageGeocoder(_settings(), transport=transport)

    assert await geocoder.geocode("Atlantis") is None


async def test_geocode_wraps_http_errors() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(401, json={}))
    geocoder = OpenCageGeocoder(_settings(), transport=transport)

    with pytest.raises(GeocodingError):
        await geocoder.geocode("Tehri Dam")


async def test_geocode_retries_transient_statuses_when_configured(monkeypatch) -> None:
    from damwatch.clients import geocoding
    from damwatch.utils.http import RetryConfig

    monkeypatch.setattr(
        geocoding, "RetryConfig", functools.partial(RetryConfig, backoff_seconds=0.0)
    )
    responses = [
        httpx.Response(503, json={}),
        httpx.Response(200, json={"results": [{"geometry": {"lat": 1.5, "lng": 2.5}}]}),
    ]
    transport = httpx.MockTransport(lambda request: responses.pop(0))
    geocoder = OpenCageGeocoder(_settings(retry_attempts=2), transport=transport)

    assert await geocoder.geocode("Hirakud") == Coordinates(lat=1.5, lon=2.5)
    assert responses == []


def test_query_suffix_is_not_duplicated() -> None:
    geocoder = OpenCageGeocoder(_settings())

    assert geocoder.build_query("Idukki, India") == "Idukki, India"
    assert geocoder.build_query("Idukki") == "Idukki, India"
