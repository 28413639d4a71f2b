import json
import pytest
import httpx

from services.search import SearchError, SearchService
from utils.http_client import HTTPClientManager
from tests.fixtures.responses import MOCK_SERPER_SEARCH_RESPONSE


@pytest.fixture
def serper_key(monkeypatch):
    monkeypatch.setattr("services.search.Config.SERPER_API_KEY", "dummy-key")


@pytest.fixture
def search_transport(monkeypatch):
    """Install a mock transport on the shared search client; returns the recorded requests."""
    requests = []

    def install(status_code=200, payload=None, error=None):
        def handler(request):
            requests.append(request)
            if error is not None:
                raise error
            return httpx.Response(status_code, json=payload if payload is not None else {})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        monkeypatch.setattr(HTTPClientManager, "_search_client", client)
        return requests

    return install


@pytest.mark.anyio
async def test_search_web_returns_organic_results(serper_key, search_transport):
    """Given a successful API response, it should return title/link/snippet for each linked result."""
    requests = search_transport(payload=MOCK_SERPER_SEARCH_RESPONSE)

    results = await SearchService.search_web("latest news on SpaceX launches")

    assert results == [
        {
            "title": "SpaceX Sets Record with Most Falcon 9 Launches in a Year",
            "link": "https://www.space.com/spacex-falcon-9-launch-record-2025",
            "snippet": "SpaceX has broken its own record for the most Falcon 9 launches in a single year.",
        },
        {
            "title": "NASA's Artemis II Mission Crew Prepares for Lunar Flyby",
            "link": "https://www.nasa.gov/artemis-ii-crew-preparation",
            "snippet": "The crew of the Artemis II mission are in their final phase of training.",
        },
    ]

    request = requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://google.serper.dev/search"
    assert request.headers["X-API-KEY"] == "dummy-key"
    assert json.loads(request.content) == {"q": "latest news on SpaceX launches", "num": 10}


@pytest.mark.anyio
async def test_search_web_handles_missing_organic_section(serper_key, search_transport):
    search_transport(payload={"searchParameters": {"q": "nothing"}})
    assert await SearchService.search_web("nothing") == []


@pytest.mark.anyio
async def test_search_web_without_api_key_raises(monkeypatch, search_transport):
    """Given no API key, it should fail without calling the provider."""
    monkeypatch.setattr("services.search.Config.SERPER_API_KEY", "")
    requests = search_transport(payload=MOCK_SERPER_SEARCH_RESPONSE)

    with pytest.raises(SearchError, match="API key not configured"):
        await SearchService.search_web("query")
    assert requests == []


@pytest.mark.anyio
@pytest.mark.parametrize("status_code, message", [
    (401, "Invalid API key"),
    (403, "Invalid API key"),
    (429, "rate limit"),
    (500, "status 500"),
])
async def test_search_web_error_statuses_raise(serper_key, search_transport, status_code, message):
    search_transport(status_code=status_code)

    with pytest.raises(SearchError, match=message):
        await SearchService.search_web("query")


@pytest.mark.anyio
async def test_search_web_timeout_raises(serper_key, search_transport):
    search_transport(error=httpx.ReadTimeout("timed out"))

    with pytest.raises(SearchError, match="timed out"):
        await SearchService.search_web("query")


@pytest.mark.anyio
async def test_search_web_connection_error_raises(serper_key, search_transport):
    search_transport(error=httpx.ConnectError("connection refused"))

    with pytest.raises(SearchError, match="Search request failed"):
        await SearchService.search_web("query")
