"""Tests for the HTTP layer."""
from collections.abc import Iterator
from pathlib import Path
from urllib.error import URLError

import pytest
from fastapi.testclient import TestClient

from subteam_logs.adapters.events import google_proxy
from subteam_logs.main import app


@pytest.fixture
def client(config_path: Path) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def offline_google(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_urlopen(request, timeout):
        raise URLError("connection refused")

    monkeypatch.setattr(google_proxy, "urlopen", failing_urlopen)


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["environment"] == "test"
    assert payload["sources"] == ["local", "google"]
    assert payload["default_source"] == "local"


def test_calendar_api_returns_month_view(client: TestClient) -> None:
    response = client.get("/api/calendar", params={"year": 2025, "month": 1})

    assert response.status_code == 200
    payload = response.json()
    assert payload["label"] == "January 2025"
    assert payload["month"] == 0
    assert payload["range"] == {"start": "2024-12-29", "end": "2025-02-09"}
    assert len(payload["cells"]) == 42
    assert [cell["iso_date"] for cell in payload["cells"] if cell["has_events"]] == ["2025-01-10", "2025-01-12"]
    assert [event["title"] for event in payload["events_by_date"]["2025-01-10"]] == [
        "Built intake prototype",
        "PID tuning",
        "Team photo",
    ]
    assert payload["failed"] is False


def test_calendar_api_defaults_to_current_month(client: TestClient) -> None:
    response = client.get("/api/calendar")

    assert response.status_code == 200
    assert len(response.json()["cells"]) == 42


def test_failing_source_still_returns_grid(client: TestClient, offline_google: None) -> None:
    response = client.get("/api/calendar", params={"year": 2025, "month": 3, "source": "google"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["failed"] is True
    assert payload["source_id"] == "google"
    assert payload["events_by_date"] == {}
    assert len(payload["cells"]) == 42
    assert not any(cell["has_events"] for cell in payload["cells"])


def test_unknown_source_is_404(client: TestClient) -> None:
    assert client.get("/api/calendar", params={"source": "outlook"}).status_code == 404


def test_month_is_validated(client: TestClient) -> None:
    assert client.get("/api/calendar", params={"year": 2025, "month": 13}).status_code == 422


def test_day_logs_api_filters_by_category(client: TestClient) -> None:
    response = client.get("/api/calendar/2025-01-10/logs", params={"category": "programming"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["date"] == "2025-01-10"
    assert [entry["title"] for entry in payload["entries"]] == ["PID tuning"]
    assert payload["message"] is None
    assert payload["can_edit"] is False


def test_day_logs_api_defaults_to_first_category(client: TestClient) -> None:
    payload = client.get("/api/calendar/2025-01-10/logs").json()

    assert payload["category"] == "Mechanical"
    assert [entry["title"] for entry in payload["entries"]] == ["Built intake prototype"]


def test_day_logs_api_uncategorized_and_empty(client: TestClient) -> None:
    uncategorized = client.get("/api/calendar/2025-01-10/logs", params={"category": ""}).json()
    empty = client.get("/api/calendar/2025-01-11/logs", params={"category": "Mechanical"}).json()

    assert [entry["title"] for entry in uncategorized["entries"]] == ["Team photo"]
    assert empty["entries"] == []
    assert empty["message"] == "No logs for this subteam on this date."


def test_day_logs_for_another_day(client: TestClient) -> None:
    payload = client.get("/api/calendar/2025-01-12/logs", params={"category": "Electrical"}).json()

    assert [entry["title"] for entry in payload["entries"]] == ["Battery tests"]


def test_session_cookie_enables_edit(client: TestClient) -> None:
    client.cookies.set("team_session", "abc123")

    payload = client.get("/api/calendar/2025-01-10/logs").json()

    assert payload["can_edit"] is True


def test_malformed_date_is_404(client: TestClient) -> None:
    assert client.get("/api/calendar/2025-13-01/logs").status_code == 404
    assert client.get("/modals/day/yesterday").status_code == 404


def test_calendar_page_renders_grid(client: TestClient) -> None:
    response = client.get("/", params={"year": 2025, "month": 1})

    assert response.status_code == 200
    assert "January 2025" in response.text
    assert response.text.count('class="calendar-cell') == 42
    assert response.text.count('class="event-dot"') == 2
    assert "year=2024&amp;month=12" in response.text or "year=2024&month=12" in response.text


def test_calendar_partial(client: TestClient) -> None:
    response = client.get("/partials/calendar", params={"year": 2025, "month": 3})

    assert response.status_code == 200
    assert "March 2025" in response.text
    assert response.text.count('class="calendar-cell') == 42


def test_day_modal_lists_subteam_tabs(client: TestClient) -> None:
    response = client.get("/modals/day/2025-01-10", params={"category": "Programming"})

    assert response.status_code == 200
    assert "PID tuning" in response.text
    assert "Built intake prototype" not in response.text
    assert "Uncategorized" in response.text
    assert "Add / Edit Log" not in response.text


def test_day_modal_empty_message(client: TestClient) -> None:
    response = client.get("/modals/day/2025-01-11")

    assert response.status_code == 200
    assert "No logs for this subteam on this date." in response.text


@pytest.mark.parametrize("year,month", [(1, 1), (9999, 12)])
def test_years_without_a_full_grid_are_rejected(client: TestClient, year: int, month: int) -> None:
    for path in ("/", "/partials/calendar", "/api/calendar"):
        assert client.get(path, params={"year": year, "month": month}).status_code == 422


@pytest.mark.parametrize("year,month", [(2, 1), (9998, 12)])
def test_boundary_years_render(client: TestClient, year: int, month: int) -> None:
    response = client.get("/api/calendar", params={"year": year, "month": month})

    assert response.status_code == 200
    assert len(response.json()["cells"]) == 42


@pytest.mark.parametrize("raw_date", ["20250110", "2025-W02-5", "2025-01-10T00:00:00", "0001-01-01", "9999-12-31"])
def test_non_calendar_day_paths_are_404(client: TestClient, raw_date: str) -> None:
    assert client.get(f"/api/calendar/{raw_date}/logs").status_code == 404
    assert client.get(f"/modals/day/{raw_date}").status_code == 404
