#!/usr/bin/env python
"""
Seed database with sample patients and statements for local testing.

Every statement is created PENDING with a CREATED event and then moved
through the normal life‑cycle guard, so the audit trail looks like one
produced by the real workflow.
"""

import sys
import uuid
from datetime import date
from decimal import Decimal

from billview.lifecycle import advance_status
from billview.models import EventType, Person, Statement, StatementEvent, StatementStatus
from billview.shortcodes import generate_short_code
from billview.store_db import DBStatementStore

SAMPLE_PEOPLE = [
    Person(10001, "Maria", "Garcia", date(1990, 1, 15), "Maria Garcia"),
    Person(10002, "David", "Kim", date(1978, 11, 3), "David Kim"),
    Person(10003, "Patricia", "White", date(1962, 6, 30), "Patricia White"),
    # No DOB on file: can never pass verification
    Person(10004, "Thomas", "Brown", None, "Thomas Brown"),
]

# (person id, balance, final status)
SAMPLE_STATEMENTS = [
    (10001, Decimal("125.40"), StatementStatus.SENT),
    (10002, Decimal("980.00"), StatementStatus.SENT),
    (10003, Decimal("42.15"), StatementStatus.PENDING),
    (10003, Decimal("0.00"), StatementStatus.REJECTED),
    (10004, Decimal("310.75"), StatementStatus.SENT),
]


def seed_database():
    """Add sample people and statements to the database."""
    with DBStatementStore() as store:
        for person in SAMPLE_PEOPLE:
            store.add_person(person)
            print(f"Added person: {person.full_name} ({person.person_id})")

        for person_id, balance, status in SAMPLE_STATEMENTS:
            statement = Statement(
                id=str(uuid.uuid4()),
                person_id=person_id,
                short_code=generate_short_code(),
                statement_date=date.today(),
                patient_balance=balance,
            )
            store.add_statement(statement)
            store.append_event(StatementEvent(statement.id, EventType.CREATED))
            if status is not StatementStatus.PENDING:
                advance_status(store, statement, status, user_id="seed")
            print(f"Added statement {statement.short_code} for {person_id} ({status.name})")

    print(f"\nAdded {len(SAMPLE_PEOPLE)} people and {len(SAMPLE_STATEMENTS)} statements to the database!")


if __name__ == "__main__":
    # Initialize DB if needed
    from billview.db import create_all
    print("Ensuring database tables exist...")
    create_all()

    # Seed the database
    print("Seeding database with sample statements...")
    seed_database()

    print("\nDone! You can now run the API server with:")
    print("uvicorn api.main:app --reload")
    sys.exit(0)
