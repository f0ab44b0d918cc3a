"""
billview.models
===============

Dataclasses and enums for the records the portal reads and writes: the
patient (:class:`Person`), the statement addressed by a short code
(:class:`Statement`), its append‑only audit trail (:class:`StatementEvent`),
and the shapes returned by the NextGen registry.  Like the rest of the
domain layer these carry **no** external‑library dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional


class StatementStatus(Enum):
    """Life‑cycle states for a patient statement."""
    PENDING = "PENDING"
    SENT = "SENT"
    REJECTED = "REJECTED"
    ERROR = "ERROR"

    def __str__(self) -> str:        # nicer REPL display
        return self.name


class EventType(Enum):
    """Kinds of audit events recorded against a statement."""
    CREATED = "CREATED"
    STATUS_CHANGE = "STATUS_CHANGE"
    VIEWED = "VIEWED"

    def __str__(self) -> str:
        return self.name


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Person:
    """
    Patient as held in the local data store.

    Parameters
    ----------
    person_id : int
        Practice‑management person id (also the store key).
    first_name, last_name : str | None
        Legal names; either may be missing on imported rows.
    date_of_birth : datetime.date | None
        On‑file DOB.  ``None`` is a distinct state: such a person can never
        pass date‑of‑birth verification.
    full_name : str | None
        Display name shown on the patient view.
    """
    person_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name
        return " ".join(p for p in (self.first_name, self.last_name) if p)


@dataclass
class Statement:
    """
    A patient statement reachable through its short code.

    View tracking fields are only ever touched by the verification flow:
    ``first_view_at`` is written once, ``last_view_at`` on every successful
    view and ``view_count`` grows by one per successful view.
    """
    id: str
    person_id: int
    short_code: str
    status: StatementStatus = StatementStatus.PENDING
    statement_date: Optional[date] = None
    patient_balance: Decimal = Decimal("0")
    currency_code: str = "USD"
    first_view_at: Optional[datetime] = None
    last_view_at: Optional[datetime] = None
    view_count: int = 0

    def __post_init__(self):
        if self.view_count < 0:
            raise ValueError("view_count cannot be negative")


@dataclass(frozen=True)
class StatementEvent:
    """Immutable audit record; ``metadata`` is free‑form JSON."""
    statement_id: str
    event_type: EventType
    old_status: Optional[StatementStatus] = None
    new_status: Optional[StatementStatus] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    created_by_user_id: Optional[str] = None


@dataclass(frozen=True)
class PersonCandidate:
    """One row returned by a NextGen person lookup."""
    id: str
    person_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PersonCandidate":
        number = data.get("personNumber")
        return cls(
            id=str(data["id"]),
            person_number=str(number) if number is not None else None,
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            date_of_birth=data.get("dateOfBirth"),
        )


BALANCE_FIELDS = (
    "totalAmountDue",
    "badDebtAmount",
    "amountDueInsurance",
    "availableCredit",
    "accountCredit",
)


@dataclass(frozen=True)
class BalancesSummary:
    """
    Chart balances for one NextGen person.

    Amounts are :class:`~decimal.Decimal`; any field the registry omits (or
    sends as ``null``) is zero.  A value that is not a finite number makes
    :meth:`from_api` raise :class:`ValueError`.
    """
    total_amount_due: Decimal = Decimal("0")
    bad_debt_amount: Decimal = Decimal("0")
    amount_due_insurance: Decimal = Decimal("0")
    available_credit: Decimal = Decimal("0")
    account_credit: Decimal = Decimal("0")

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "BalancesSummary":
        def amount(key: str) -> Decimal:
            value = data.get(key)
            if value is None:
                return Decimal("0")
            try:
                result = Decimal(str(value))
            except InvalidOperation:
                raise ValueError(f"{key} is not a number: {value!r}") from None
            if not result.is_finite():
                raise ValueError(f"{key} is not a number: {value!r}")
            return result

        return cls(*(amount(key) for key in BALANCE_FIELDS))

    def to_dict(self) -> Dict[str, Decimal]:
        """camelCase mapping matching the registry's own field names."""
        return {
            "totalAmountDue": self.total_amount_due,
            "badDebtAmount": self.bad_debt_amount,
            "amountDueInsurance": self.amount_due_insurance,
            "availableCredit": self.available_credit,
            "accountCredit": self.account_credit,
        }
