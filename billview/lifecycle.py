"""
billview.lifecycle
==================

State‑transition guard for a :class:`billview.models.Statement`.

A tiny finite‑state‑machine describes which life‑cycle phases are legal
successors of each status.  :pyfunc:`advance_status` persists a legal
transition through the store and appends the matching audit event.
"""

from __future__ import annotations

import logging
from typing import Optional

from .models import EventType, Statement, StatementEvent, StatementStatus

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Allowed transitions: source status → set[valid target statuses]
# ---------------------------------------------------------------------
RULES = {
    StatementStatus.PENDING: {StatementStatus.SENT, StatementStatus.REJECTED, StatementStatus.ERROR},
    StatementStatus.ERROR:   {StatementStatus.PENDING},
    StatementStatus.SENT:    {StatementStatus.REJECTED},
}


def advance_status(
    store,
    statement: Statement,
    new_status: StatementStatus,
    user_id: Optional[str] = None,
) -> StatementEvent:
    """
    Move ``statement`` to ``new_status`` if the transition is legal,
    otherwise raise :class:`ValueError`.

    The statement object is updated in place, the store row is updated and
    the audit event (carrying the before/after pair) is returned.

    Examples
    --------
    >>> s = Statement("s-1", 1, "ABC123")
    >>> advance_status(store, s, StatementStatus.SENT).new_status
    <StatementStatus.SENT: 'SENT'>
    >>> advance_status(store, s, StatementStatus.PENDING)
    Traceback (most recent call last):
        ...
    ValueError: illegal transition SENT → PENDING
    """
    current = statement.status
    if new_status not in RULES.get(current, set()):
        raise ValueError(f"illegal transition {current.name} → {new_status.name}")

    store.set_status(statement.id, new_status)
    statement.status = new_status

    event = StatementEvent(
        statement_id=statement.id,
        event_type=EventType.STATUS_CHANGE,
        old_status=current,
        new_status=new_status,
        created_by_user_id=user_id,
    )
    store.append_event(event)
    logger.info(f"Statement {statement.id}: {current.name} → {new_status.name}")
    return event
