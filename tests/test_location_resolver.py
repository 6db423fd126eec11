"""Tests du résolveur de lieux: garde, cache, géocodage, dédoublonnage et persistance."""

from __future__ import annotations

import pytest

from backend.domain.entities import Location, LocationCreate
from backend.domain.geo_types import TimezoneResult
from backend.domain.location_resolver import (
    LocationResolver,
    ResolverLimits,
    is_duplicate,
    merge_unique,
)
from backend.infra.repositories import InMemoryLocationRepo
from tests.fakes import MOSCOW, MOSCOW_TZ, FakePlaceSearch, FakeTimezoneLookup, place

MAX_RESULTS = 10


def _stored(repo: InMemoryLocationRepo, name: str, lat: float, lon: float) -> Location:
    return repo.insert(
        LocationCreate(
            name=name,
            display_name=f"{name}, Testland",
            latitude=lat,
            longitude=lon,
            timezone="UTC",
            utc_offset=0,
        )
    )


def _resolver(repo, places, timezones, **limits) -> LocationResolver:
    return LocationResolver(repo, places, timezones, ResolverLimits(**limits))


@pytest.mark.parametrize("query", [None, "", "M", " M ", "   "])
def test_short_query_returns_empty_without_calls(query):
    repo = InMemoryLocationRepo()
    places, timezones = FakePlaceSearch([MOSCOW]), FakeTimezoneLookup()
    assert _resolver(repo, places, timezones).resolve_search(query) == []
    assert places.calls == []
    assert timezones.calls == []


def test_cache_hit_skips_external_calls():
    repo = InMemoryLocationRepo()
    for i in range(3):
        _stored(repo, f"Paris {i}", 48.0 + i, 2.0 + i)
    places, timezones = FakePlaceSearch([MOSCOW]), FakeTimezoneLookup()

    result = _resolver(repo, places, timezones).resolve_search("paris")

    assert [loc.name for loc in result] == ["Paris 0", "Paris 1", "Paris 2"]
    assert places.calls == []
    assert timezones.calls == []


def test_cache_hit_is_capped():
    repo = InMemoryLocationRepo()
    for i in range(12):
        _stored(repo, f"Springfield {i}", 10.0 + i, 10.0 + i)
    result = _resolver(repo, FakePlaceSearch(), FakeTimezoneLookup()).resolve_search(
        "Springfield"
    )
    assert len(result) == MAX_RESULTS


def test_remote_search_persists_new_location():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch([MOSCOW])
    timezones = FakeTimezoneLookup({(MOSCOW.latitude, MOSCOW.longitude): MOSCOW_TZ})

    result = _resolver(repo, places, timezones).resolve_search("Moscow")

    assert len(result) == 1
    moscow = result[0]
    assert moscow.display_name == "Moscow, Russia"
    assert moscow.latitude == pytest.approx(55.7558)
    assert moscow.longitude == pytest.approx(37.6176)
    assert moscow.timezone == "Europe/Moscow"
    assert moscow.utc_offset == 180  # noqa: PLR2004
    assert moscow.country == "Russia"
    assert moscow.id
    assert repo.find_by_id(moscow.id) == moscow
    assert places.calls == [("Moscow", 5)]


def test_repeated_search_reuses_stored_location():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch([MOSCOW])
    timezones = FakeTimezoneLookup({(MOSCOW.latitude, MOSCOW.longitude): MOSCOW_TZ})
    resolver = _resolver(repo, places, timezones)

    first = resolver.resolve_search("Moscow")
    second = resolver.resolve_search("Moscow")

    assert [loc.id for loc in second] == [first[0].id]
    assert len(repo.search_by_name_substring("Moscow")) == 1
    # le fuseau n'est déterminé qu'une fois
    assert len(timezones.calls) == 1


def test_near_duplicate_candidates_keep_first():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch(
        [
            place("Ujjain", 23.1793, 75.7849),
            place("Ujjain City", 23.1800, 75.7850),
            place("Ujjain Junction", 23.2500, 75.7849),
        ]
    )
    result = _resolver(repo, places, FakeTimezoneLookup()).resolve_search("Ujjain")

    assert [loc.name for loc in result] == ["Ujjain", "Ujjain Junction"]
    assert len(repo.search_by_name_substring("ujjain")) == 2  # noqa: PLR2004


def test_local_results_come_first_and_are_not_duplicated():
    repo = InMemoryLocationRepo()
    local = _stored(repo, "Lyon", 45.764, 4.8357)
    places = FakePlaceSearch(
        [
            place("Lyon", 45.7640, 4.8357, display_name="Lyon, Métropole de Lyon, France"),
            place("Lyons", 40.2, -105.27, display_name="Lyons, Colorado, United States"),
        ]
    )

    result = _resolver(repo, places, FakeTimezoneLookup()).resolve_search("Lyon")

    assert result[0].id == local.id
    assert [loc.name for loc in result] == ["Lyon", "Lyons"]


def test_candidate_failure_is_isolated():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch(
        [place("Goa", 15.49, 73.82), place("Gorakhpur", 26.76, 83.37), place("Gonda", 27.13, 81.96)]
    )
    timezones = FakeTimezoneLookup(fail_for={(26.76, 83.37)})

    result = _resolver(repo, places, timezones).resolve_search("Go")

    assert [loc.name for loc in result] == ["Goa", "Gonda"]
    assert repo.find_near(26.76, 83.37, 0.01) is None


def test_remote_results_are_capped():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch([place(f"Salem {i}", float(i), float(i)) for i in range(15)])
    result = _resolver(repo, places, FakeTimezoneLookup(), remote_limit=15).resolve_search(
        "Salem"
    )
    assert len(result) == MAX_RESULTS
    assert [loc.name for loc in result] == [f"Salem {i}" for i in range(MAX_RESULTS)]


def test_degraded_search_returns_local_matches():
    repo = InMemoryLocationRepo()
    local = _stored(repo, "Delhi", 28.61, 77.21)
    places = FakePlaceSearch(degraded=True)

    result = _resolver(repo, places, FakeTimezoneLookup()).resolve_search("Delhi")

    assert [loc.id for loc in result] == [local.id]
    assert len(places.calls) == 1


def test_estimated_timezone_is_persisted_as_is():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch([place("Dhaka", 23.81, 90.0)])
    result = _resolver(repo, places, FakeTimezoneLookup()).resolve_search("Dhaka")
    assert result[0].timezone == "UTC+6"
    assert result[0].utc_offset == 360  # noqa: PLR2004


def test_resolve_one_does_not_persist():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch([MOSCOW, place("Moscow", 46.73, -117.0)])
    timezones = FakeTimezoneLookup({(MOSCOW.latitude, MOSCOW.longitude): MOSCOW_TZ})
    resolver = _resolver(repo, places, timezones)

    resolved = resolver.resolve_one("Moscow")

    assert resolved is not None
    assert resolved.display_name == "Moscow, Russia"
    assert resolved.timezone == "Europe/Moscow"
    assert resolved.timezone_source == "provider"
    assert places.calls == [("Moscow", 1)]
    assert repo.search_by_name_substring("Moscow") == []


def test_resolve_one_not_found():
    resolver = _resolver(InMemoryLocationRepo(), FakePlaceSearch([]), FakeTimezoneLookup())
    assert resolver.resolve_one("Atlantis") is None
    assert resolver.resolve_one("  ") is None


def test_persist_reuses_nearby_location():
    repo = InMemoryLocationRepo()
    places = FakePlaceSearch([MOSCOW])
    timezones = FakeTimezoneLookup(
        {(MOSCOW.latitude, MOSCOW.longitude): TimezoneResult(timezone="Europe/Moscow", utc_offset=180)}
    )
    resolver = _resolver(repo, places, timezones)

    first = resolver.persist(resolver.resolve_one("Moscow"))
    again = resolver.persist(resolver.resolve_one("Moscow"))

    assert again.id == first.id
    assert len(repo.search_by_name_substring("moscow")) == 1


def test_is_duplicate_and_merge_unique():
    repo = InMemoryLocationRepo()
    a = _stored(repo, "A", 10.0, 10.0)
    b = _stored(repo, "B", 10.005, 9.996)
    c = _stored(repo, "C", 10.0, 10.02)

    assert is_duplicate(a, b)
    assert not is_duplicate(a, c)
    assert merge_unique([a], [b, c, a]) == [a, c]
