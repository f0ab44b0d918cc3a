"""
api.deps
========

FastAPI dependency providers.

`get_store` yields a fresh **DBStatementStore** per request (its session is
closed when the response is done).  The NextGen dependencies hand out an
``httpx.AsyncClient`` and build the registry client and resolver on top of
it, so tests can override any layer with ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import AsyncGenerator, Iterator

from fastapi import Depends
from httpx import AsyncClient

from billview.nextgen import NextGenClient
from billview.resolver import PersonResolver
from billview.settings import HTTP_TIMEOUT, Settings, settings
from billview.store_db import DBStatementStore
from billview.verification import DateIdentityMatcher


@lru_cache
def get_settings() -> Settings:
    """Return application settings."""
    return settings


def get_store() -> Iterator[DBStatementStore]:
    """Per‑request DB‑backed statement store."""
    with DBStatementStore() as store:
        yield store


def get_matcher(store=Depends(get_store)) -> DateIdentityMatcher:
    """Return the date‑of‑birth matcher bound to this request's store."""
    return DateIdentityMatcher(store)


async def get_nextgen_http() -> AsyncGenerator[AsyncClient, None]:
    """
    Return an AsyncClient for NextGen API access.

    Yields:
        AsyncClient: HTTP client with the configured timeout
    """
    async with AsyncClient(
        headers={"Accept": "application/json"},
        timeout=HTTP_TIMEOUT,
    ) as client:
        yield client


def get_nextgen_client(
    http: AsyncClient = Depends(get_nextgen_http),
    settings: Settings = Depends(get_settings),
) -> NextGenClient:
    """
    Return a NextGen client for the environment used by statement balances.

    Raises:
        NextGenConfigError: credentials for that environment are incomplete
    """
    return NextGenClient(http, settings.nextgen_config(settings.balances_environment))


def get_resolver(client: NextGenClient = Depends(get_nextgen_client)) -> PersonResolver:
    """Return a PersonResolver backed by the NextGen client."""
    return PersonResolver(client)
