"""
billview.store_db
=================

Database‑backed implementation of the :class:`billview.store.StatementStore`
public surface.

This adapter wraps the CRUD helpers in :pymod:`billview.db` so that the
verification and resolution flows can switch from the in‑memory store to a
persistent one without changing their calls.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterator, List, Optional

from sqlmodel import Session

from billview import db
from billview.models import Person, Statement, StatementEvent, StatementStatus


class DBStatementStore:
    """
    Drop‑in replacement backed by SQLModel.

    Methods mirror the in‑memory StatementStore:
    * add_person / add_statement
    * get_person / get_statement / find_by_short_code
    * record_view (atomic increment) / set_status
    * append_event / events_for
    * iteration / len()
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session = session or db.SessionLocal()

    # --------------------------------------------------------------- seeding
    def add_person(self, person: Person) -> None:
        db.upsert_person(self._session, person)

    def add_statement(self, statement: Statement) -> None:
        db.upsert_statement(self._session, statement)

    # ----------------------------------------------------------------- reads
    def get_person(self, person_id: int) -> Optional[Person]:
        return db.get_person(self._session, person_id)

    def get_statement(self, statement_id: str) -> Optional[Statement]:
        return db.get_statement(self._session, statement_id)

    def find_by_short_code(self, code: str) -> Optional[Statement]:
        return db.get_statement_by_short_code(self._session, code)

    def events_for(self, statement_id: str) -> List[StatementEvent]:
        return db.events_for(self._session, statement_id)

    # ---------------------------------------------------------------- writes
    def record_view(self, statement_id: str, now: datetime) -> int:
        return db.increment_view(self._session, statement_id, now)

    def set_status(self, statement_id: str, status: StatementStatus) -> None:
        db.update_status(self._session, statement_id, status)

    def append_event(self, event: StatementEvent) -> None:
        db.insert_event(self._session, event)

    # ------------------------------------------------------ dunder helpers
    def __iter__(self) -> Iterator[Statement]:
        yield from db.all_statements(self._session)

    def __len__(self) -> int:
        return len(db.all_statements(self._session))

    # ----------------------------------------------------- context manager
    def __enter__(self) -> "DBStatementStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._session.close()
