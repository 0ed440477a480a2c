"""API tests for the countdown endpoints."""

from collections.abc import Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from deadline_coach.core.settings import settings
from deadline_coach.main import app
from deadline_coach.services.controller import CountdownController
from deadline_coach.services.deadline_store import DeadlineStore
from deadline_coach.services.registry import CountdownRegistry

IDENTITY_HEADERS = {settings.identity_header: "api-user"}


@pytest.fixture
def registry(session_factory, mock_generator: AsyncMock) -> CountdownRegistry:
    store = DeadlineStore(session_factory)

    def factory() -> CountdownController:
        return CountdownController(
            store,
            mock_generator,
            tick_interval=3600,
            delete_delay=0,
            deadline_timezone="UTC",
        )

    return CountdownRegistry(store, mock_generator, controller_factory=factory)


@pytest.fixture
def client(registry: CountdownRegistry) -> Iterator[TestClient]:
    app.state.registry = registry
    with TestClient(app) as test_client:
        yield test_client
    app.state.registry = None


class TestCountdownEndpoints:
    """Lifecycle of a countdown through the HTTP surface."""

    def test_requires_identity_header(self, client: TestClient) -> None:
        response = client.get("/api/v1/countdown")
        assert response.status_code == 401

    def test_new_identity_awaits_input(self, client: TestClient) -> None:
        response = client.get("/api/v1/countdown", headers=IDENTITY_HEADERS)
        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "awaiting_input"
        assert data["headline"] == "Exam Countdown"
        assert data["deadline_ms"] is None
        assert data["remaining"] == {"days": 0, "hours": 0, "minutes": 0, "seconds": 0}
        assert data["content"]["loading"] is False

    def test_start_countdown(self, client: TestClient, registry: CountdownRegistry) -> None:
        response = client.post("/api/v1/countdown", json={"days": 10}, headers=IDENTITY_HEADERS)
        assert response.status_code == 202
        data = response.json()
        assert data["state"] == "counting"
        assert data["deadline_ms"] is not None
        assert data["remaining"]["days"] in {9, 10}
        assert data["headline"].endswith("days to go! 💪")
        assert len(registry) == 1

        follow_up = client.get("/api/v1/countdown", headers=IDENTITY_HEADERS)
        assert follow_up.json()["state"] == "counting"
        assert follow_up.json()["deadline_ms"] == data["deadline_ms"]

    @pytest.mark.parametrize("days", [0, -4, 366])
    def test_out_of_range_days_rejected(self, client: TestClient, days: int) -> None:
        response = client.post("/api/v1/countdown", json={"days": days}, headers=IDENTITY_HEADERS)
        assert response.status_code == 422

    def test_second_start_conflicts(self, client: TestClient) -> None:
        first = client.post("/api/v1/countdown", json={"days": 30}, headers=IDENTITY_HEADERS)
        assert first.status_code == 202

        second = client.post("/api/v1/countdown", json={"days": 5}, headers=IDENTITY_HEADERS)
        assert second.status_code == 409

    def test_reset_returns_to_input(self, client: TestClient) -> None:
        client.post("/api/v1/countdown", json={"days": 30}, headers=IDENTITY_HEADERS)

        response = client.post("/api/v1/countdown/reset", headers=IDENTITY_HEADERS)
        assert response.status_code == 200
        assert response.json()["state"] == "awaiting_input"
        assert response.json()["deadline_ms"] is None

        restart = client.post("/api/v1/countdown", json={"days": 3}, headers=IDENTITY_HEADERS)
        assert restart.status_code == 202

    def test_identities_are_independent(self, client: TestClient) -> None:
        client.post("/api/v1/countdown", json={"days": 30}, headers=IDENTITY_HEADERS)

        other = client.get(
            "/api/v1/countdown", headers={settings.identity_header: "someone-else"}
        )
        assert other.json()["state"] == "awaiting_input"


class TestSystemEndpoints:
    """Health and configuration endpoints."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_root(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == settings.app_name

    def test_public_config_hides_secrets(self, client: TestClient) -> None:
        response = client.get("/api/v1/system/config")
        assert response.status_code == 200
        data = response.json()
        assert data["countdown"]["max_days"] == settings.max_days
        assert data["generation"]["backoff_schedule_seconds"] == [1.0, 2.0, 4.0, 8.0, 16.0]
        assert "api_key" not in str(data)
        assert "database_url" not in str(data)
