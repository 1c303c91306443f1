from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.crawlers.search.contracts import FetchResult
from app.crawlers.search.reconcile_stage import ReconcileResult
import app.main as main_module
from app.main import app, get_orchestrator
from app.orchestrator import SearchConfig, SearchOrchestrator
from app.services.search.repository_mapper import RepositoryRecord

RECORD = RepositoryRecord(
    id=42,
    name="spring-boot-starter",
    owner_name="spring-projects",
    description="Starter",
    language="Java",
    stars_count=1000,
    forks_count=100,
    last_updated=datetime(2024, 7, 9, 14, 30, tzinfo=timezone.utc),
)


class FakeOrchestrator:
    def __init__(self) -> None:
        self.search_result: FetchResult[ReconcileResult] = FetchResult.success(
            ReconcileResult(records=[RECORD], created=1)
        )
        self.stored: list[RepositoryRecord] = [RECORD]
        self.read_calls: list[dict[str, Any]] = []
        self.search_calls: list[Any] = []

    async def search_and_reconcile(self, request: Any) -> FetchResult[ReconcileResult]:
        self.search_calls.append(request)
        return self.search_result

    async def read_stored(self, language=None, min_stars=None, sort=None) -> list[RepositoryRecord]:
        self.read_calls.append({"language": language, "min_stars": min_stars, "sort": sort})
        return self.stored


@pytest.fixture
def fake_orchestrator():
    fake = FakeOrchestrator()
    app.dependency_overrides[get_orchestrator] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(fake_orchestrator) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


def test_search_returns_saved_repositories_in_camel_case(client: TestClient, fake_orchestrator) -> None:
    response = client.post("/api/github/search", json={"query": "spring", "language": "Java", "sort": "stars"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Repositories fetched and saved successfully"
    assert body["repositories"][0]["name"] == "spring-boot-starter"
    assert body["repositories"][0]["starsCount"] == 1000
    assert body["repositories"][0]["ownerName"] == "spring-projects"
    assert body["stats"]["created"] == 1
    assert fake_orchestrator.search_calls[0].language == "Java"


@pytest.mark.parametrize("payload", [{"query": ""}, {"query": "   "}, {"query": None}, {}, {"language": "Java"}])
def test_blank_query_is_rejected(client: TestClient, fake_orchestrator, payload) -> None:
    response = client.post("/api/github/search", json=payload)

    assert response.status_code == 400
    assert response.json() == {"query": "Query cannot be empty"}
    assert fake_orchestrator.search_calls == []


def test_rate_limit_maps_to_429_with_retry_after(client: TestClient, fake_orchestrator) -> None:
    fake_orchestrator.search_result = FetchResult.rate_limited(60, error="GitHub API rate limit exceeded.")

    response = client.post("/api/github/search", json={"query": "test"})

    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"
    assert response.json() == {
        "error": "GitHub API Rate Limit Exceeded",
        "message": "GitHub API rate limit exceeded.",
        "retryAfterSeconds": 60,
    }


def test_api_error_passes_upstream_status_through(client: TestClient, fake_orchestrator) -> None:
    fake_orchestrator.search_result = FetchResult.api_error("GitHub API client error: Missing 'q' parameter.", 422)

    response = client.post("/api/github/search", json={"query": "test"})

    assert response.status_code == 422
    assert response.json() == {
        "error": "GitHub API Error",
        "message": "GitHub API client error: Missing 'q' parameter.",
    }


def test_unclassified_failure_maps_to_500(client: TestClient, fake_orchestrator) -> None:
    fake_orchestrator.search_result = FetchResult.failed("Error fetching or saving repositories: boom")

    response = client.post("/api/github/search", json={"query": "test"})

    assert response.status_code == 500
    assert response.json()["error"] == "Internal Server Error"
    assert "boom" in response.json()["message"]


def test_unhandled_exception_maps_to_500(client: TestClient, fake_orchestrator) -> None:
    async def explode(_: Any) -> None:
        raise RuntimeError("Something unexpected happened!")

    fake_orchestrator.search_and_reconcile = explode

    response = client.post("/api/github/search", json={"query": "test"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred: Something unexpected happened!",
    }


def test_stored_repositories_forwards_filters(client: TestClient, fake_orchestrator) -> None:
    response = client.get("/api/github/repositories", params={"language": "Java", "minStars": 100, "sort": "forks"})

    assert response.status_code == 200
    assert response.json()[0]["forksCount"] == 100
    assert fake_orchestrator.read_calls == [{"language": "Java", "min_stars": 100, "sort": "forks"}]


def test_stored_repositories_empty(client: TestClient, fake_orchestrator) -> None:
    fake_orchestrator.stored = []

    response = client.get("/api/github/repositories")

    assert response.status_code == 200
    assert response.json() == []


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json()["status"] == "healthy"


class MemoryStore:
    def __init__(self, records: list[RepositoryRecord]) -> None:
        self.rows = {record.id: record for record in records}

    def find_by_id(self, repo_id: int) -> RepositoryRecord | None:
        return self.rows.get(repo_id)

    def save(self, record: RepositoryRecord) -> RepositoryRecord:
        self.rows[record.id] = record
        return record

    def find_matching(self, repository_filter: Any, sort_spec: Any) -> list[RepositoryRecord]:
        return list(self.rows.values())


def test_app_serves_reads_across_repeated_startups(monkeypatch) -> None:
    built: list[SearchOrchestrator] = []

    def build() -> SearchOrchestrator:
        orchestrator = SearchOrchestrator(
            config=SearchConfig(base_url="https://api.github.test", store_max_workers=1),
            store=MemoryStore([RECORD]),
        )
        built.append(orchestrator)
        return orchestrator

    monkeypatch.setattr(main_module, "init_db", lambda: None)
    monkeypatch.setattr(main_module, "build_orchestrator", build)

    for _ in range(2):
        with TestClient(app) as client:
            response = client.get("/api/github/repositories")

        assert response.status_code == 200
        assert response.json()[0]["name"] == "spring-boot-starter"

    assert len(built) == 2
    assert built[0] is not built[1]
