"""
billview.store
==============

An in‑memory statement store holding :class:`~billview.models.Person`,
:class:`~billview.models.Statement` and their audit events.

This module is standard library only, so that the
verification and resolution flows can be unit‑tested without a database.
:class:`billview.store_db.DBStatementStore` exposes the same surface.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from .models import Person, Statement, StatementEvent, StatementStatus


class StatementStore:
    """
    Dictionary‑backed store.

    Example
    -------
    >>> from billview.models import Person, Statement
    >>> store = StatementStore()
    >>> store.add_person(Person(7, "Ada", "Lovelace"))
    >>> store.add_statement(Statement("s-1", 7, "Xy7Kp2"))
    >>> store.find_by_short_code("Xy7Kp2").id
    's-1'
    """

    def __init__(self) -> None:
        self._people: Dict[int, Person] = {}
        self._statements: Dict[str, Statement] = {}
        self._events: List[StatementEvent] = []

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------
    def add_person(self, person: Person) -> None:
        """Insert or overwrite a person."""
        self._people[person.person_id] = person

    def add_statement(self, statement: Statement) -> None:
        """Insert or overwrite a statement."""
        self._statements[statement.id] = statement

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_person(self, person_id: int) -> Optional[Person]:
        return self._people.get(person_id)

    def get_statement(self, statement_id: str) -> Optional[Statement]:
        stmt = self._statements.get(statement_id)
        return replace(stmt) if stmt else None

    def find_by_short_code(self, code: str) -> Optional[Statement]:
        """Exact, case‑sensitive short code match."""
        for stmt in self._statements.values():
            if stmt.short_code == code:
                return replace(stmt)
        return None

    def events_for(self, statement_id: str) -> List[StatementEvent]:
        return [e for e in self._events if e.statement_id == statement_id]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def record_view(self, statement_id: str, now: datetime) -> int:
        """
        Apply one successful view and return the new view count.

        Raises :class:`KeyError` if the statement no longer exists.
        """
        stmt = self._statements[statement_id]
        if stmt.first_view_at is None:
            stmt.first_view_at = now
        stmt.last_view_at = now
        stmt.view_count += 1
        return stmt.view_count

    def set_status(self, statement_id: str, status: StatementStatus) -> None:
        self._statements[statement_id].status = status

    def append_event(self, event: StatementEvent) -> None:
        self._events.append(event)

    # ------------------------------------------------------------------
    # Dunder helpers for convenience
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Statement]:
        return iter(list(self._statements.values()))

    def __len__(self) -> int:
        return len(self._statements)
