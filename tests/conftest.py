"""
Pytest configuration: make sure `import billview` works regardless of
where pytest is invoked, and provide the shared fixtures.

It prepends the project root (one directory above *tests/*) to
``sys.path`` **before** any tests are collected.
"""

import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# /path/to/project/tests -> project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from billview.models import Person, PersonCandidate, Statement, StatementStatus  # noqa: E402
from billview.nextgen import NextGenClient  # noqa: E402
from billview.store import StatementStore  # noqa: E402


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------
def _seed(store):
    store.add_person(Person(1, "Jane", "Doe", date(1990, 1, 15), "Jane Doe"))
    store.add_person(Person(2, "John", "Roe", None, "John Roe"))
    store.add_statement(
        Statement(
            "stmt-1", 1, "ABC123", StatementStatus.SENT,
            statement_date=date(2024, 3, 1), patient_balance=Decimal("125.40"),
        )
    )
    store.add_statement(Statement("stmt-2", 2, "NoDob2", StatementStatus.SENT))
    store.add_statement(Statement("stmt-3", 1, "Pend33", StatementStatus.PENDING))
    return store


@pytest.fixture
def store():
    """In‑memory store with three statements (see ``_seed``)."""
    return _seed(StatementStore())


@pytest.fixture
def db_store():
    """SQLModel store on a private in‑memory SQLite database, same seed."""
    from sqlalchemy.pool import StaticPool
    from sqlmodel import Session, create_engine

    from billview.db import create_all
    from billview.store_db import DBStatementStore

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all(engine)
    with DBStatementStore(Session(engine)) as s:
        yield _seed(s)
    engine.dispose()


# ---------------------------------------------------------------------------
# Registry double
# ---------------------------------------------------------------------------
class FakeRegistry:
    """
    Stand‑in for NextGenClient.

    ``candidates`` is what every lookup returns; ``balances`` what every
    balances call returns.  Set ``error`` to make the next call raise.
    """

    def __init__(self, candidates=None, balances=None, error=None):
        self.candidates = list(candidates or [])
        self.balances = balances if balances is not None else {}
        self.error = error
        self.lookups = []
        self.balance_calls = []

    async def lookup_persons(self, **criteria):
        self.lookups.append(criteria)
        if self.error:
            raise self.error
        return self.candidates

    async def get_chart_balances(self, person_id):
        self.balance_calls.append(person_id)
        return self.balances


@pytest.fixture
def registry():
    return FakeRegistry(
        candidates=[PersonCandidate("ng-1", "PN-1001", "Jane", "Doe", "1990-01-15")],
        balances={"totalAmountDue": 150.25, "accountCredit": "10.00"},
    )


@pytest.fixture(autouse=True)
def _clear_nextgen_caches():
    NextGenClient.clear_caches()
    yield
    NextGenClient.clear_caches()


