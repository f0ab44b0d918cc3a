"""
billview.nextgen
================

NextGen Enterprise API client.

Handles the OAuth2 client‑credentials handshake, the ``X-NG-SessionId``
that scopes every call to one practice/enterprise, and the two person
endpoints the portal needs (lookup and chart balances).

Usage:
------
async with httpx.AsyncClient(timeout=30) as http:
    client = NextGenClient(http, settings.nextgen_config("prod"))
    persons = await client.lookup_persons(first_name="Ada", last_name="Lovelace")
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

from httpx import AsyncClient, HTTPError, Response

from billview.models import PersonCandidate
from billview.settings import NextGenConfig

logger = logging.getLogger(__name__)

# Tokens are refreshed this many seconds before NextGen says they expire
TOKEN_EXPIRY_BUFFER = 5 * 60

# Status reported when NextGen was unreachable or sent an unusable body
TRANSPORT_ERROR_STATUS = 502

QUICK_SEARCH_IDS = (
    "PersonNumber",
    "MedicalRecordNumber",
    "OtherIdNumber",
    "SocialSecurityNumber",
    "PhoneNumber",
)

# environment-site -> (token, expires_at)
_token_cache: Dict[str, tuple] = {}
# environment-practice-enterprise -> session id (these don't expire)
_session_cache: Dict[str, str] = {}


class NextGenApiError(Exception):
    """A NextGen call failed; ``status_code`` is the upstream HTTP status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _json_body(response: Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise NextGenApiError(f"Invalid JSON from NextGen: {e}", TRANSPORT_ERROR_STATUS) from e


def _error_message(response: Response) -> str:
    text = response.text
    fallback = f"NextGen API error: {response.status_code}"
    try:
        payload = json.loads(text)
    except ValueError:
        return text or fallback
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return fallback


class NextGenClient:
    """
    Async client for one NextGen environment.

    The ``http`` client is owned by the caller (FastAPI dependency or test),
    which keeps connection pooling and timeouts out of this class.
    """

    def __init__(self, http: AsyncClient, config: NextGenConfig):
        self.http = http
        self.config = config

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    async def get_access_token(self) -> str:
        """Return a bearer token, reusing the cached one while still valid."""
        cache_key = f"{self.config.environment}-{self.config.site_id}"
        cached = _token_cache.get(cache_key)
        if cached and cached[1] > time.time() + TOKEN_EXPIRY_BUFFER:
            return cached[0]

        logger.info(f"Requesting NextGen access token ({self.config.environment})")
        response = await self._send(
            "POST",
            self.config.token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "site_id": self.config.site_id,
            },
        )
        if response.is_error:
            raise NextGenApiError(
                f"Failed to obtain access token: {response.status_code} {response.text}",
                response.status_code,
            )

        data = _json_body(response)
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise NextGenApiError("No access_token in NextGen token response", TRANSPORT_ERROR_STATUS)
        try:
            expires_in = int(data.get("expires_in", 3600))
        except (TypeError, ValueError):
            expires_in = 3600
        _token_cache[cache_key] = (token, time.time() + expires_in)
        return token

    async def get_session_id(self) -> str:
        """Return the ``X-NG-SessionId`` for the configured practice."""
        cache_key = f"{self.config.environment}-{self.config.practice_id}-{self.config.enterprise_id}"
        cached = _session_cache.get(cache_key)
        if cached:
            return cached

        token = await self.get_access_token()
        response = await self._send(
            "PUT",
            f"{self.config.base_url}/users/me/login-defaults",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "practiceId": self.config.practice_id,
                "enterpriseId": self.config.enterprise_id,
            },
        )
        if response.is_error:
            raise NextGenApiError(
                f"Failed to set login defaults: {response.status_code} {response.text}",
                response.status_code,
            )

        session_id = response.headers.get("x-ng-sessionid")
        if not session_id:
            raise NextGenApiError("No X-NG-SessionId returned from login-defaults", TRANSPORT_ERROR_STATUS)

        _session_cache[cache_key] = session_id
        return session_id

    @classmethod
    def clear_caches(cls) -> None:
        """Forget cached tokens and session ids (tests, credential rotation)."""
        _token_cache.clear()
        _session_cache.clear()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    async def _send(self, method: str, url: str, **kwargs) -> Response:
        try:
            return await self.http.request(method, url, **kwargs)
        except HTTPError as e:
            logger.error(f"NextGen request {method} {url} failed: {e}")
            raise NextGenApiError(f"NextGen API unreachable: {e}", TRANSPORT_ERROR_STATUS) from e

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        """
        Make an authenticated call and return the decoded JSON body.

        ``None`` params are dropped.  Any non‑2xx response raises
        :class:`NextGenApiError`; an empty body decodes to ``{}``.
        """
        token = await self.get_access_token()
        session_id = await self.get_session_id()

        query = {k: _query_value(v) for k, v in (params or {}).items() if v is not None}
        kwargs: Dict[str, Any] = {
            "params": query,
            "headers": {"Authorization": f"Bearer {token}", "x-ng-sessionid": session_id},
        }
        if body is not None:
            kwargs["json"] = body

        response = await self._send(method, f"{self.config.base_url}{endpoint}", **kwargs)
        if response.is_error:
            message = _error_message(response)
            logger.warning(f"NextGen {method} {endpoint} returned {response.status_code}")
            raise NextGenApiError(message, response.status_code)

        if not response.content:
            return {}
        return _json_body(response)

    # ------------------------------------------------------------------
    # Person endpoints
    # ------------------------------------------------------------------
    async def lookup_persons(
        self,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        date_of_birth: Optional[str] = None,
        exclude_expired: Optional[bool] = None,
        patients_only: Optional[bool] = None,
        middle_name: Optional[str] = None,
        address_line1: Optional[str] = None,
        city: Optional[str] = None,
        zip_code: Optional[str] = None,
        sex: Optional[str] = None,
        email_address: Optional[str] = None,
        quick_search_id: Optional[str] = None,
        quick_search_input: Optional[str] = None,
    ) -> List[PersonCandidate]:
        """
        GET /persons/lookup

        Args:
            date_of_birth: ``YYYY-MM-DD``
            exclude_expired: leave out deceased/expired persons
            patients_only: restrict to person records that are patients
            quick_search_id: one of :data:`QUICK_SEARCH_IDS`

        Returns:
            Every candidate NextGen returned, in its order.
        """
        data = await self.request(
            "GET",
            "/persons/lookup",
            params={
                "firstName": first_name,
                "lastName": last_name,
                "middleName": middle_name,
                "dateOfBirth": date_of_birth,
                "addressLine1": address_line1,
                "city": city,
                "zip": zip_code,
                "sex": sex,
                "emailAddress": email_address,
                "excludeExpired": exclude_expired,
                "searchPatientsOnly": patients_only,
                "quickSearchId": quick_search_id,
                "quickSearchInput": quick_search_input,
            },
        )
        if not isinstance(data, list):
            return []
        return [PersonCandidate.from_api(row) for row in data]

    async def get_chart_balances(self, person_id: str) -> Dict[str, Any]:
        """GET /persons/{person_id}/chart/balances (raw payload, fields optional)."""
        data = await self.request("GET", f"/persons/{person_id}/chart/balances")
        return data if isinstance(data, dict) else {}
