"""
billview.results
================

Closed result types for the two core flows.

Expected business outcomes (bad code, wrong DOB, no match, several matches)
are values, not exceptions: callers branch on them exhaustively.  The
``error`` codes are the strings the HTTP layer puts on the wire, so they
must stay stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .models import BalancesSummary, Person, Statement


# ---------------------------------------------------------------------
# Date‑of‑birth verification
# ---------------------------------------------------------------------
class VerifyOutcome(Enum):
    """Every terminal state of :meth:`DateIdentityMatcher.verify`."""
    SUCCESS = "SUCCESS"
    INVALID_CODE = "INVALID_CODE"
    UNAVAILABLE = "STATEMENT_UNAVAILABLE"
    INVALID_FORMAT = "INVALID_DOB_FORMAT"
    VERIFICATION_UNAVAILABLE = "VERIFICATION_UNAVAILABLE"
    MISMATCH = "DOB_MISMATCH"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class VerifyResult:
    """
    Outcome of one verification attempt.

    On success ``statement`` and ``person`` are the records that were
    verified (``statement.view_count`` already reflects this view); on any
    failure they are ``None``.
    """
    outcome: VerifyOutcome
    view_count: Optional[int] = None
    statement: Optional[Statement] = None
    person: Optional[Person] = None

    @property
    def ok(self) -> bool:
        return self.outcome is VerifyOutcome.SUCCESS


# ---------------------------------------------------------------------
# NextGen person resolution
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ResolveSuccess:
    person_id: str
    person_number: Optional[str]
    balances: BalancesSummary

    ok = True


@dataclass(frozen=True)
class MissingPatientData:
    error = "MISSING_PATIENT_DATA"
    message = "Patient first name, last name, and date of birth are required"
    ok = False


@dataclass(frozen=True)
class PersonNotFound:
    error = "PERSON_NOT_FOUND"
    message = "No matching patient found in NextGen"
    ok = False


@dataclass(frozen=True)
class MultiplePersonsFound:
    """Ambiguous identity; ``count`` helps whoever reviews it by hand."""
    count: int

    error = "MULTIPLE_PERSONS_FOUND"
    ok = False

    @property
    def message(self) -> str:
        return f"Multiple patients found ({self.count}). Unable to determine which record to use."


@dataclass(frozen=True)
class UpstreamError:
    """The registry call itself failed; ``status_code`` is NextGen's."""
    status_code: int
    message: str

    error = "NEXTGEN_API_ERROR"
    ok = False


ResolveResult = Union[
    ResolveSuccess,
    MissingPatientData,
    PersonNotFound,
    MultiplePersonsFound,
    UpstreamError,
]
