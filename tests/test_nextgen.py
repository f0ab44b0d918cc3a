"""
Tests for the NextGen API client.

No network: every request goes through an ``httpx.MockTransport`` that
plays the token endpoint, the login-defaults call and the person APIs.
"""

import asyncio
import json

import httpx
import pytest

from billview.nextgen import NextGenApiError, NextGenClient
from billview.settings import NextGenConfig

CONFIG = NextGenConfig(
    environment="test",
    client_id="cid",
    client_secret="secret",
    site_id="site-1",
    practice_id="0001",
    enterprise_id="00001",
    base_url="https://ng.example/api",
    token_url="https://ng.example/oauth/token",
)

MOCK_LOOKUP_RESPONSE = [
    {
        "id": "a1b2",
        "personNumber": "1001",
        "firstName": "Jane",
        "lastName": "Doe",
        "dateOfBirth": "1990-01-15T00:00:00",
    }
]


class FakeNextGen:
    """Request handler for MockTransport that records what it saw."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/oauth/token":
            return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 3600})
        if path == "/api/users/me/login-defaults":
            return httpx.Response(200, headers={"x-ng-sessionid": "sess-1"})
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": "no such route"})
        # fresh Response per call; a served one is bound to its request
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def paths(self):
        return [r.url.path for r in self.requests]


def run(handler, call):
    """Build a client on ``handler`` and await ``call(client)``."""

    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await call(NextGenClient(http, CONFIG))

    return asyncio.run(go())


class TestAuthentication:
    def test_token_and_session_are_cached(self):
        handler = FakeNextGen({("GET", "/api/persons/lookup"): httpx.Response(200, json=[])})

        async def twice(client):
            await client.lookup_persons(last_name="Doe")
            await client.lookup_persons(last_name="Roe")

        run(handler, twice)
        assert handler.paths().count("/oauth/token") == 1
        assert handler.paths().count("/api/users/me/login-defaults") == 1
        assert handler.paths().count("/api/persons/lookup") == 2

    def test_token_request_is_client_credentials_form(self):
        handler = FakeNextGen()
        run(handler, lambda c: c.get_access_token())

        token_req = handler.requests[0]
        form = dict(pair.split("=") for pair in token_req.content.decode().split("&"))
        assert form["grant_type"] == "client_credentials"
        assert form["client_id"] == "cid"
        assert form["site_id"] == "site-1"

    def test_login_defaults_body_and_bearer(self):
        handler = FakeNextGen()
        session_id = run(handler, lambda c: c.get_session_id())

        assert session_id == "sess-1"
        login = handler.requests[1]
        assert login.method == "PUT"
        assert login.headers["Authorization"] == "Bearer tok-1"
        assert json.loads(login.content) == {"practiceId": "0001", "enterpriseId": "00001"}

    def test_token_failure_raises(self):
        def handler(request):
            return httpx.Response(401, text="bad client")

        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.get_access_token())
        assert exc.value.status_code == 401

    def test_missing_session_header_raises(self):
        def handler(request):
            if request.url.path == "/oauth/token":
                return httpx.Response(200, json={"access_token": "t", "expires_in": 3600})
            return httpx.Response(200)

        with pytest.raises(NextGenApiError):
            run(handler, lambda c: c.get_session_id())


class TestRequests:
    def test_lookup_sends_headers_and_drops_none(self):
        handler = FakeNextGen({("GET", "/api/persons/lookup"): httpx.Response(200, json=MOCK_LOOKUP_RESPONSE)})

        persons = run(
            handler,
            lambda c: c.lookup_persons(
                first_name="Jane", last_name="Doe", date_of_birth="1990-01-15",
                exclude_expired=True, patients_only=False,
            ),
        )

        lookup = handler.requests[-1]
        assert lookup.headers["Authorization"] == "Bearer tok-1"
        assert lookup.headers["x-ng-sessionid"] == "sess-1"
        params = dict(lookup.url.params)
        assert params == {
            "firstName": "Jane",
            "lastName": "Doe",
            "dateOfBirth": "1990-01-15",
            "excludeExpired": "true",
            "searchPatientsOnly": "false",
        }
        assert len(persons) == 1
        assert persons[0].id == "a1b2"
        assert persons[0].person_number == "1001"

    def test_lookup_non_list_body_is_empty(self):
        handler = FakeNextGen({("GET", "/api/persons/lookup"): httpx.Response(200, json={"items": []})})
        assert run(handler, lambda c: c.lookup_persons(last_name="Doe")) == []

    def test_chart_balances(self):
        handler = FakeNextGen(
            {("GET", "/api/persons/a1b2/chart/balances"): httpx.Response(200, json={"totalAmountDue": 12.5})}
        )
        assert run(handler, lambda c: c.get_chart_balances("a1b2")) == {"totalAmountDue": 12.5}

    def test_empty_body_decodes_to_empty_dict(self):
        handler = FakeNextGen({("DELETE", "/api/things/1"): httpx.Response(204)})
        assert run(handler, lambda c: c.request("DELETE", "/things/1")) == {}

    def test_json_error_message_is_used(self):
        handler = FakeNextGen(
            {("GET", "/api/persons/lookup"): httpx.Response(400, json={"message": "lastName is required"})}
        )
        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.lookup_persons())
        assert exc.value.status_code == 400
        assert exc.value.message == "lastName is required"

    def test_text_error_message_is_used(self):
        handler = FakeNextGen({("GET", "/api/persons/x/chart/balances"): httpx.Response(503, text="maintenance")})
        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.get_chart_balances("x"))
        assert exc.value.status_code == 503
        assert exc.value.message == "maintenance"

    def test_empty_error_body_falls_back(self):
        handler = FakeNextGen({("GET", "/api/persons/x/chart/balances"): httpx.Response(500)})
        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.get_chart_balances("x"))
        assert exc.value.message == "NextGen API error: 500"

    def test_transport_failure_is_bad_gateway(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.get_access_token())
        assert exc.value.status_code == 502


class TestMalformedResponses:
    """2xx answers NextGen should never send still surface as NextGenApiError."""

    @pytest.mark.parametrize(
        "token_response",
        [
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"token_type": "bearer"}),
            httpx.Response(200, json=["tok"]),
        ],
    )
    def test_unusable_token_response(self, token_response):
        def handler(request):
            return httpx.Response(token_response.status_code, headers=token_response.headers,
                                  content=token_response.content)

        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.get_access_token())
        assert exc.value.status_code == 502

    def test_non_numeric_expiry_still_caches_token(self):
        def handler(request):
            return httpx.Response(200, json={"access_token": "tok-9", "expires_in": "soon"})

        assert run(handler, lambda c: c.get_access_token()) == "tok-9"

    def test_non_json_success_body(self):
        handler = FakeNextGen({("GET", "/api/persons/lookup"): httpx.Response(200, text="not json")})
        with pytest.raises(NextGenApiError) as exc:
            run(handler, lambda c: c.lookup_persons(last_name="Doe"))
        assert exc.value.status_code == 502
