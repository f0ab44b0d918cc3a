"""
billview.db
===========

Relational persistence layer for Billview.

This module exposes:

* ``engine`` – a global SQLModel engine built from ``BILLVIEW_DB_URL``
* ``SessionLocal`` – a session factory used via ``with SessionLocal() as s:``
* ``create_all()`` – helper to create tables at first run
* table models for persons, statements and statement events, plus the
  CRUD helpers used by :class:`billview.store_db.DBStatementStore`
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import JSON, Column, func, update
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine, select

from billview.models import (
    EventType,
    Person,
    Statement,
    StatementEvent,
    StatementStatus,
    utcnow,
)
from billview.settings import DB_ECHO, DB_URL


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
_connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}
engine = create_engine(DB_URL, echo=DB_ECHO, connect_args=_connect_args)


# ---------------------------------------------------------------------------
# Session factory
# ---------------------------------------------------------------------------
def SessionLocal() -> Session:  # noqa: N802 (factory camel‑case for consistency with FastAPI docs)
    """Return a new Session bound to the global engine."""
    return Session(engine)


# ---------------------------------------------------------------------------
# ORM models that mirror billview.models
# ---------------------------------------------------------------------------
class PersonDB(SQLModel, table=True):
    """Row for a :class:`billview.models.Person`."""

    __tablename__ = "persons"

    person_id: int = Field(primary_key=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    full_name: Optional[str] = None

    @classmethod
    def from_person(cls, person: Person) -> "PersonDB":
        return cls(
            person_id=person.person_id,
            first_name=person.first_name,
            last_name=person.last_name,
            date_of_birth=person.date_of_birth,
            full_name=person.full_name,
        )

    def to_person(self) -> Person:
        return Person(
            person_id=self.person_id,
            first_name=self.first_name,
            last_name=self.last_name,
            date_of_birth=self.date_of_birth,
            full_name=self.full_name,
        )


class StatementDB(SQLModel, table=True):
    """
    Row for a :class:`billview.models.Statement`.

    ``short_code`` is unique and compared case‑sensitively.
    """

    __tablename__ = "statements"

    id: str = Field(primary_key=True)
    person_id: int = Field(foreign_key="persons.person_id", index=True)
    short_code: str = Field(unique=True, index=True)
    status: StatementStatus = StatementStatus.PENDING
    statement_date: Optional[date] = None
    patient_balance: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    currency_code: str = "USD"
    first_view_at: Optional[datetime] = None
    last_view_at: Optional[datetime] = None
    view_count: int = 0

    @classmethod
    def from_statement(cls, stmt: Statement) -> "StatementDB":
        return cls(
            id=stmt.id,
            person_id=stmt.person_id,
            short_code=stmt.short_code,
            status=stmt.status,
            statement_date=stmt.statement_date,
            patient_balance=stmt.patient_balance,
            currency_code=stmt.currency_code,
            first_view_at=stmt.first_view_at,
            last_view_at=stmt.last_view_at,
            view_count=stmt.view_count,
        )

    def to_statement(self) -> Statement:
        return Statement(
            id=self.id,
            person_id=self.person_id,
            short_code=self.short_code,
            status=self.status,
            statement_date=self.statement_date,
            patient_balance=Decimal(self.patient_balance),
            currency_code=self.currency_code,
            first_view_at=self.first_view_at,
            last_view_at=self.last_view_at,
            view_count=self.view_count,
        )


class StatementEventDB(SQLModel, table=True):
    """Append‑only audit row; never updated or deleted."""

    __tablename__ = "statement_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    statement_id: str = Field(foreign_key="statements.id", index=True)
    event_type: EventType
    old_status: Optional[StatementStatus] = None
    new_status: Optional[StatementStatus] = None
    metadata_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    created_by_user_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: StatementEvent) -> "StatementEventDB":
        return cls(
            statement_id=event.statement_id,
            event_type=event.event_type,
            old_status=event.old_status,
            new_status=event.new_status,
            metadata_json=dict(event.metadata),
            created_at=event.created_at,
            created_by_user_id=event.created_by_user_id,
        )

    def to_event(self) -> StatementEvent:
        return StatementEvent(
            statement_id=self.statement_id,
            event_type=self.event_type,
            old_status=self.old_status,
            new_status=self.new_status,
            metadata=dict(self.metadata_json or {}),
            created_at=self.created_at,
            created_by_user_id=self.created_by_user_id,
        )


# ---------------------------------------------------------------------------
# Convenience CRUD helpers
# ---------------------------------------------------------------------------
@contextmanager
def _writing(s: Session) -> Iterator[None]:
    """Commit on success; on any failure roll back so ``s`` stays usable."""
    try:
        yield
        s.commit()
    except Exception:
        s.rollback()
        raise


def upsert_person(s: Session, person: Person) -> None:
    with _writing(s):
        s.merge(PersonDB.from_person(person))


def upsert_statement(s: Session, stmt: Statement) -> None:
    with _writing(s):
        s.merge(StatementDB.from_statement(stmt))


def get_person(s: Session, person_id: int) -> Person | None:
    row = s.get(PersonDB, person_id)
    return row.to_person() if row else None


def get_statement(s: Session, statement_id: str) -> Statement | None:
    row = s.get(StatementDB, statement_id)
    return row.to_statement() if row else None


def get_statement_by_short_code(s: Session, code: str) -> Statement | None:
    row = s.exec(select(StatementDB).where(StatementDB.short_code == code)).first()
    return row.to_statement() if row else None


def increment_view(s: Session, statement_id: str, now: datetime) -> int:
    """
    Record one view with a single server‑side UPDATE and return the count.

    ``view_count = view_count + 1`` is evaluated by the database, so two
    concurrent views always yield two increments.  ``first_view_at`` keeps
    its first value through ``COALESCE``.
    """
    stmt = (
        update(StatementDB)
        .where(StatementDB.id == statement_id)
        .values(
            view_count=StatementDB.view_count + 1,
            last_view_at=now,
            first_view_at=func.coalesce(StatementDB.first_view_at, now),
        )
        .execution_options(synchronize_session=False)
    )
    with _writing(s):
        result = s.execute(stmt)
        if result.rowcount == 0:
            raise KeyError(statement_id)
    return s.exec(select(StatementDB.view_count).where(StatementDB.id == statement_id)).one()


def update_status(s: Session, statement_id: str, status: StatementStatus) -> None:
    with _writing(s):
        row = s.get(StatementDB, statement_id)
        if row is None:
            raise KeyError(statement_id)
        row.status = status
        s.add(row)


def insert_event(s: Session, event: StatementEvent) -> None:
    with _writing(s):
        s.add(StatementEventDB.from_event(event))


def events_for(s: Session, statement_id: str) -> List[StatementEvent]:
    rows = s.exec(
        select(StatementEventDB)
        .where(StatementEventDB.statement_id == statement_id)
        .order_by(StatementEventDB.id)
    ).all()
    return [row.to_event() for row in rows]


def all_statements(s: Session) -> List[Statement]:
    return [row.to_statement() for row in s.exec(select(StatementDB)).all()]


# ---------------------------------------------------------------------------
# Utility: create tables
# ---------------------------------------------------------------------------
def create_all(bind: Engine | None = None) -> None:
    """Create all tables for the SQLModel subclasses above (safe to repeat)."""
    SQLModel.metadata.create_all(bind or engine)


# ---------------------------------------------------------------------------
# Lightweight CLI
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    """
    Quick bootstrap helper.

    Examples
    --------
    $ python -m billview.db --create        # first‑time table creation
    """
    import argparse
    import textwrap

    parser = argparse.ArgumentParser(
        prog="python -m billview.db",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=textwrap.dedent(
            """\
            Billview DB utilities
            ---------------------
            --create   Create all SQLModel tables (safe if they already exist)
            """
        ),
    )
    parser.add_argument("--create", action="store_true", help="create tables")
    args = parser.parse_args()

    if args.create:
        create_all()
        print(f"✅ schema initialised at {DB_URL}")
