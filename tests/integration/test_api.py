"""API 통합 테스트"""
import httpx
import pytest

from scholar_search import __version__
from scholar_search.api.routes.scholar_routes import get_scholar_client
# App factory 사용
from scholar_search.app import create_app
from scholar_search.core.exceptions import NetworkConnectionException
from scholar_search.engine.result import ScholarResult
from tests.fakes import FakeSource, FakeTransport, html_response
from tests.fixtures import RESULTS_PAGE


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def bind_client(app):
    """get_scholar_client 를 테스트용 클라이언트로 교체"""

    def _bind(client):
        app.dependency_overrides[get_scholar_client] = lambda: client
        return client

    yield _bind
    app.dependency_overrides.clear()


def _http(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.mark.asyncio
class TestHealthAPI:
    """헬스 체크 API 테스트"""

    async def test_health_ok(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport(head=html_response("", status_code=200))))

        async with _http(app) as http:
            response = await http.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert data["scholar"]["success"] is True
        assert "timestamp" in data

    async def test_health_degraded_when_probe_fails(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport(head=NetworkConnectionException("dns failure"))))

        async with _http(app) as http:
            response = await http.get("/health")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["scholar"]["success"] is False

    async def test_root_endpoint(self, app) -> None:
        async with _http(app) as http:
            response = await http.get("/")

        assert response.status_code == 200
        data = response.json()
        assert "service" in data
        assert "version" in data


@pytest.mark.asyncio
class TestScholarSearchAPI:
    """논문 검색 API 테스트"""

    async def test_search_success(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport([html_response(RESULTS_PAGE)])))

        async with _http(app) as http:
            response = await http.post(
                "/api/v1/scholar/search",
                json={"query": "attention", "options": {"max_results": 2}},
            )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert len(data["data"]) == 2
        first = data["data"][0]
        assert first["title"] == "Attention is all you need"
        assert first["metadata"] == (
            "A Vaswani, N Shazeer, N Parmar - Advances in neural information processing systems, 2017"
        )
        assert first["source"] == "google_scholar"

    async def test_search_failure_payload(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport([html_response("", status_code=429, headers={"Retry-After": "30"})])))

        async with _http(app) as http:
            response = await http.post("/api/v1/scholar/search", json={"query": "attention"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "fail"
        assert data["data"] == []
        assert data["error_code"] == "RATE_LIMIT"
        assert data["error_type"] == "rate_limit"
        assert data["retry_after"] == 30
        assert data["attempts"] == 1
        assert data["fallback_attempted"] is False

    async def test_search_with_fallback(self, app, bind_client, make_client) -> None:
        alternate = FakeSource("crossref", results=[ScholarResult(title="Alternate source paper")])
        bind_client(make_client(FakeTransport([html_response("", status_code=403)]), fallback_sources=[alternate]))

        async with _http(app) as http:
            response = await http.post("/api/v1/scholar/search", json={"query": "attention"})

        data = response.json()
        assert data["status"] == "success"
        assert data["data"][0]["source"] == "crossref"
        assert data["data"][0]["confidence"] == 0.3

    async def test_empty_query_is_400(self, app, bind_client, make_client) -> None:
        transport = FakeTransport([html_response(RESULTS_PAGE)])
        bind_client(make_client(transport))

        async with _http(app) as http:
            response = await http.post("/api/v1/scholar/search", json={"query": "   "})

        assert response.status_code == 400
        assert transport.calls == []

    async def test_invalid_options_is_400(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport([html_response(RESULTS_PAGE)])))

        async with _http(app) as http:
            response = await http.post(
                "/api/v1/scholar/search",
                json={"query": "attention", "options": {"max_results": 0}},
            )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
class TestClientStateAPI:
    """상태 조회 / 초기화 API 테스트"""

    async def test_rate_limit_and_reset(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport([html_response(RESULTS_PAGE)])))

        async with _http(app) as http:
            await http.post("/api/v1/scholar/search", json={"query": "attention"})
            before = (await http.get("/api/v1/scholar/rate-limit")).json()
            reset = await http.post("/api/v1/scholar/reset")
            after = (await http.get("/api/v1/scholar/rate-limit")).json()

        assert before["requests_in_last_minute"] == 1
        assert before["remaining_minute_requests"] == 9
        assert reset.json()["status"] == "success"
        assert after["requests_in_last_minute"] == 0
        assert after["is_blocked"] is False

    async def test_status(self, app, bind_client, make_client) -> None:
        bind_client(make_client(FakeTransport([html_response(RESULTS_PAGE)])))

        async with _http(app) as http:
            response = await http.get("/api/v1/scholar/status")

        assert response.status_code == 200
        data = response.json()
        assert data["service_status"]["is_available"] is True
        assert data["error_handling"]["max_retries"] == 3
        assert data["rate_limit_status"]["remaining_hourly_requests"] == 100
