"""
billview.verification
=====================

Date‑of‑birth gate for short‑code statement links.

A patient who opens ``/view/<short code>`` must type the date of birth on
file before the statement is shown.  :class:`DateIdentityMatcher` decides
whether the claimed date matches and, only when it does, records the view.

Every branch of :meth:`DateIdentityMatcher.verify` is terminal.  Failure
reasons are deliberately coarse (see :class:`~billview.results.VerifyOutcome`)
so the endpoint cannot be used as an oracle on patient data.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from .dates import dates_equal, parse_date_of_birth
from .models import EventType, Statement, StatementEvent, StatementStatus, utcnow
from .results import VerifyOutcome, VerifyResult

logger = logging.getLogger(__name__)


class DateIdentityMatcher:
    """
    Verify a claimed DOB against the person who owns a statement.

    Parameters
    ----------
    store : StatementStore | DBStatementStore
        Anything exposing ``find_by_short_code``, ``get_person``,
        ``record_view`` and ``append_event``.
    clock : callable, optional
        Returns the current aware datetime; defaults to UTC now.
    """

    def __init__(self, store, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.store = store
        self.clock = clock or utcnow

    def verify(self, short_code: str, claimed_dob: str) -> VerifyResult:
        statement = self.store.find_by_short_code(short_code)
        if statement is None:
            return VerifyResult(VerifyOutcome.INVALID_CODE)

        if statement.status is not StatementStatus.SENT:
            return VerifyResult(VerifyOutcome.UNAVAILABLE)

        claimed = parse_date_of_birth(claimed_dob)
        if claimed is None:
            return VerifyResult(VerifyOutcome.INVALID_FORMAT)

        person = self.store.get_person(statement.person_id)
        if person is None or person.date_of_birth is None:
            logger.warning(f"No DOB on file for person {statement.person_id}, denying access")
            return VerifyResult(VerifyOutcome.VERIFICATION_UNAVAILABLE)

        if not dates_equal(claimed, person.date_of_birth):
            return VerifyResult(VerifyOutcome.MISMATCH)

        view_count = self._record_view(statement)
        return VerifyResult(VerifyOutcome.SUCCESS, view_count=view_count, statement=statement, person=person)

    # ------------------------------------------------------------------
    # Bookkeeping: failures are logged, never surfaced to the patient
    # ------------------------------------------------------------------
    def _record_view(self, statement: Statement) -> int:
        now = self.clock()
        view_count = statement.view_count + 1
        try:
            view_count = self.store.record_view(statement.id, now)
        except Exception:
            logger.exception(f"Failed to update view tracking for statement {statement.id}")

        # returned copy reflects this view
        statement.view_count = view_count
        statement.last_view_at = now
        if statement.first_view_at is None:
            statement.first_view_at = now

        event = StatementEvent(
            statement_id=statement.id,
            event_type=EventType.VIEWED,
            metadata={"view_count": view_count},
            created_at=now,
        )
        try:
            self.store.append_event(event)
        except Exception:
            logger.exception(f"Failed to log view event for statement {statement.id}")

        logger.info(f"Statement {statement.id} viewed (view #{view_count})")
        return view_count
