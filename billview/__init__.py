"""
Billview
========

Back end for the patient statement portal: date-of-birth verification for
short-code statement links, and NextGen chart-balance lookups for staff.

Import structure
----------------
`import billview` is intentionally cheap: nothing heavy is imported until
you reach for the persistence layer (:pymod:`billview.db`) or the registry
client (:pymod:`billview.nextgen`).

Sub‑modules
~~~~~~~~~~~
- :pymod:`billview.models`        – ``Statement`` / ``Person`` dataclasses + status enums
- :pymod:`billview.dates`         – date‑of‑birth parsing and calendar comparison
- :pymod:`billview.verification`  – ``DateIdentityMatcher`` (short code + DOB gate)
- :pymod:`billview.resolver`      – ``PersonResolver`` (NextGen match + balances)
- :pymod:`billview.results`       – closed result types for both flows
- :pymod:`billview.store`         – ``StatementStore`` in‑memory registry
- :pymod:`billview.store_db`      – ``DBStatementStore`` SQLModel‑backed store
- :pymod:`billview.nextgen`       – async NextGen Enterprise API client
- :pymod:`billview.lifecycle`     – statement status guard (`advance_status`)

Quick start
-----------
>>> from datetime import date
>>> from billview.models import Person, Statement, StatementStatus
>>> from billview.store import StatementStore
>>> from billview.verification import DateIdentityMatcher
>>> store = StatementStore()
>>> store.add_person(Person(1, "Ada", "Lovelace", date(1990, 1, 15)))
>>> store.add_statement(Statement("s-1", 1, "ABC123", StatementStatus.SENT))
>>> DateIdentityMatcher(store).verify("ABC123", "01151990").ok
True

"""

__all__ = [
    "models",
    "dates",
    "verification",
    "resolver",
    "results",
    "store",
    "store_db",
    "nextgen",
    "lifecycle",
]

__version__ = "0.1.0"
