"""Tests for the HTTP API."""

from datetime import datetime
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from wplookup.errors import BrowserLaunchError
from wplookup.main import create_app
from wplookup.models.person import NO_RESULTS_ERROR, PersonRecord, SearchRequest

HEADERS = {"email": "user@example.com", "password": "hunter2"}
PEOPLE = [
    {"name": "John Smith", "location": "New York, NY"},
    {"name": "Jane Doe", "location": "Austin, TX"},
]


async def fake_batch(credentials, requests, config=None):
    records = []
    for request in requests:
        if request.name == "Jane Doe":
            records.append(PersonRecord.failure(request, NO_RESULTS_ERROR))
        else:
            records.append(
                PersonRecord.from_fields(
                    request,
                    {
                        "address": "123 Main St, New York, NY 10001",
                        "city": "New York",
                        "state": "NY",
                        "zip_code": "10001",
                        "county": "New York County",
                        "birthday": "1970-03-01",
                        "emails": "john.smith@example.com",
                        "phone_number": "(212) 555-0100",
                    },
                )
            )
    return records


@pytest.fixture
def client(test_config):
    return TestClient(create_app(test_config))


@pytest.fixture
def runner():
    with patch("wplookup.api.endpoints.run_search_batch", new=AsyncMock(side_effect=fake_batch)) as mock:
        yield mock


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00"))


class TestSearchValidation:
    """Test request validation; the batch runner must never be reached."""

    @pytest.mark.parametrize("headers", [{}, {"email": "user@example.com"}, {"password": "x"}])
    def test_missing_credentials(self, client, runner, headers):
        response = client.post("/api/search", json=PEOPLE, headers=headers)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Missing credentials in headers. Required: email and password headers",
        }
        runner.assert_not_called()

    @pytest.mark.parametrize("body", [[], {"name": "John", "location": "NY"}, "text"])
    def test_body_not_a_list(self, client, runner, body):
        response = client.post("/api/search", json=body, headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "Body must be an array of people with name and location"
        runner.assert_not_called()

    def test_invalid_json(self, client, runner):
        response = client.post(
            "/api/search",
            content=b"{not json",
            headers={**HEADERS, "content-type": "application/json"},
        )

        assert response.status_code == 400
        runner.assert_not_called()

    @pytest.mark.parametrize(
        "entry",
        [{"name": "Jane Doe"}, {"location": "Austin, TX"}, {"name": "", "location": "TX"}, "Jane"],
    )
    def test_entry_missing_field_names_index(self, client, runner, entry):
        response = client.post("/api/search", json=[PEOPLE[0], entry], headers=HEADERS)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Person at index 1 must have 'name' and 'location' fields",
        }
        runner.assert_not_called()


class TestSearch:
    """Test successful and failed batches."""

    def test_records_in_order(self, client, runner):
        response = client.post("/api/search", json=PEOPLE, headers=HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [r["name"] for r in body["data"]] == ["John Smith", "Jane Doe"]
        assert body["data"][0]["zipCode"] == "10001"
        assert body["data"][0]["phoneNumber"] == "(212) 555-0100"
        assert body["data"][1] == {
            "name": "Jane Doe",
            "location": "Austin, TX",
            "error": "No results found",
        }

        credentials, requests = runner.call_args.args
        assert credentials.email == "user@example.com"
        assert requests == [SearchRequest(**p) for p in PEOPLE]

    def test_batch_failure_is_500(self, client):
        failing = AsyncMock(side_effect=BrowserLaunchError("Failed to launch browser"))
        with patch("wplookup.api.endpoints.run_search_batch", new=failing):
            response = client.post("/api/search", json=PEOPLE, headers=HEADERS)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to launch browser"}


class TestErrors:
    def test_unknown_route(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Endpoint not found"}

    def test_rate_limit(self, test_config, runner):
        config = test_config.model_copy(update={"rate_limit_enabled": True, "rate_limit": "2/minute"})
        client = TestClient(create_app(config))

        statuses = [
            client.post("/api/search", json=PEOPLE, headers=HEADERS).status_code for _ in range(3)
        ]

        assert statuses == [200, 200, 429]
        response = client.post("/api/search", json=PEOPLE, headers=HEADERS)
        assert response.json()["success"] is False
