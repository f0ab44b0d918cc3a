"""
Tests for the /statements endpoints.

The NextGen resolver is replaced by one built on ``FakeRegistry``; the
store by the seeded in-memory one.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from api.deps import get_nextgen_http, get_resolver, get_settings, get_store
from api.main import app
from billview.models import PersonCandidate, StatementStatus
from billview.nextgen import NextGenApiError
from billview.resolver import PersonResolver
from billview.settings import Settings


@pytest.fixture
def client(store, registry):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_resolver] = lambda: PersonResolver(registry)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestNextGenBalances:
    def test_single_match(self, client, registry):
        response = client.get("/statements/stmt-1/nextgen-balances")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["personId"] == "ng-1"
        assert body["personNumber"] == "PN-1001"
        assert float(body["balances"]["totalAmountDue"]) == 150.25
        assert float(body["balances"]["badDebtAmount"]) == 0
        assert registry.lookups[0]["date_of_birth"] == "1990-01-15"

    def test_unknown_statement(self, client):
        assert client.get("/statements/missing/nextgen-balances").status_code == 404

    def test_missing_patient_data(self, client, registry):
        response = client.get("/statements/stmt-2/nextgen-balances")

        assert response.status_code == 200
        assert response.json()["error"] == "MISSING_PATIENT_DATA"
        assert registry.lookups == []

    def test_person_not_found(self, client, registry):
        registry.candidates = []
        body = client.get("/statements/stmt-1/nextgen-balances").json()
        assert body["success"] is False
        assert body["error"] == "PERSON_NOT_FOUND"

    def test_multiple_persons(self, client, registry):
        registry.candidates.append(PersonCandidate("ng-2", "PN-1002", "Jane", "Doe", "1990-01-15"))
        response = client.get("/statements/stmt-1/nextgen-balances")

        assert response.status_code == 200
        body = response.json()
        assert body["error"] == "MULTIPLE_PERSONS_FOUND"
        assert body["count"] == 2
        assert registry.balance_calls == []

    @pytest.mark.parametrize("upstream, expected", [(401, 401), (404, 404), (500, 502), (503, 502)])
    def test_upstream_status(self, client, registry, upstream, expected):
        registry.error = NextGenApiError("upstream said no", upstream)
        response = client.get("/statements/stmt-1/nextgen-balances")

        assert response.status_code == expected
        assert response.json() == {
            "success": False,
            "error": "NEXTGEN_API_ERROR",
            "message": "upstream said no",
        }

    def test_unusable_balances_payload(self, client, registry):
        registry.balances = {"totalAmountDue": "twelve"}
        response = client.get("/statements/stmt-1/nextgen-balances")

        assert response.status_code == 502
        assert response.json()["error"] == "NEXTGEN_API_ERROR"

    def test_unconfigured_nextgen(self, store):
        async def no_network():
            async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500))) as http:
                yield http

        app.dependency_overrides[get_store] = lambda: store
        app.dependency_overrides[get_nextgen_http] = no_network
        app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, balances_environment="test")
        try:
            response = TestClient(app).get("/statements/stmt-1/nextgen-balances")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error"] == "INTERNAL_ERROR"


class TestReject:
    def test_reject_sent_statement(self, client, store):
        response = client.post("/statements/stmt-1/reject")

        assert response.status_code == 200
        assert response.json() == {"success": True, "old_status": "SENT", "new_status": "REJECTED"}
        assert store.get_statement("stmt-1").status is StatementStatus.REJECTED
        assert client.get("/view/ABC123").status_code == 400

    def test_reject_twice(self, client):
        client.post("/statements/stmt-3/reject")
        response = client.post("/statements/stmt-3/reject")
        assert response.status_code == 400

    def test_reject_unknown(self, client):
        assert client.post("/statements/missing/reject").status_code == 404
