import asyncio

from app.schemas.route import GeocodeCandidate
from app.services.places_service import LocationSearch
from app.services.search_guard import SearchGuard


def test_generations_supersede():
    guard = SearchGuard()

    first = guard.begin()
    second = guard.begin()

    assert not guard.is_current(first)
    assert guard.is_current(second)
    assert guard.generation == second


def test_latest_response_wins_even_if_older_arrives_last():
    guard = SearchGuard()

    async def fetch(value, delay):
        await asyncio.sleep(delay)
        return value

    async def scenario():
        slow = asyncio.create_task(guard.run(lambda: fetch("old", 0.05)))
        await asyncio.sleep(0)
        fast = asyncio.create_task(guard.run(lambda: fetch("new", 0.0)))
        return await slow, await fast

    assert asyncio.run(scenario()) == (None, "new")


def test_debounce_skips_superseded_calls():
    guard = SearchGuard()
    calls = []

    async def fetch(value):
        calls.append(value)
        return value

    async def scenario():
        tasks = [asyncio.create_task(guard.run(lambda q=q: fetch(q), delay=0.02)) for q in ("M", "Ma", "Man")]
        return [await t for t in tasks]

    assert asyncio.run(scenario()) == [None, None, "Man"]
    assert calls == ["Man"]


class FakePlaces:
    def __init__(self):
        self.queries = []

    async def autocomplete_location(self, query, focus=None, limit=5):
        self.queries.append(query)
        # Shorter queries take longer, so they resolve after newer ones
        await asyncio.sleep(0.05 / len(query))
        return [GeocodeCandidate(name=query.upper())]


def test_location_search_delivers_only_latest():
    places = FakePlaces()
    search = LocationSearch(places, debounce_s=0)

    async def scenario():
        first = asyncio.create_task(search.search("Que"))
        await asyncio.sleep(0.001)
        second = asyncio.create_task(search.search("Quezon"))
        return await first, await second

    first, second = asyncio.run(scenario())

    assert places.queries == ["Que", "Quezon"]
    assert first is None
    assert [c.name for c in second] == ["QUEZON"]
