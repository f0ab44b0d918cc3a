"""
api.view
========

Unauthenticated patient endpoints behind a statement short code.

The patient first sees only that a statement exists (``GET /view/{code}``),
then proves who they are with their date of birth
(``POST /view/verify-dob``).  Statement details are returned only by a
successful verification.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from billview.models import Statement, StatementStatus
from billview.results import VerifyOutcome
from billview.verification import DateIdentityMatcher
from .deps import get_matcher, get_store

# Create router
router = APIRouter(prefix="/view", tags=["view"])

# Configure logging
logger = logging.getLogger(__name__)

# Caller‑visible HTTP status for each failed verification
STATUS_FOR_OUTCOME = {
    VerifyOutcome.INVALID_CODE: 404,
    VerifyOutcome.UNAVAILABLE: 400,
    VerifyOutcome.INVALID_FORMAT: 400,
    VerifyOutcome.VERIFICATION_UNAVAILABLE: 400,
    VerifyOutcome.MISMATCH: 401,
}


class VerifyDobRequest(BaseModel):
    """Body of ``POST /view/verify-dob``; both fields are required."""
    short_code: Optional[str] = None
    dob: Optional[str] = None


def _statement_details(statement: Statement, patient_name: Optional[str]) -> Dict[str, Any]:
    return {
        "short_code": statement.short_code,
        "statement_date": statement.statement_date.isoformat() if statement.statement_date else None,
        "patient_balance": statement.patient_balance,
        "currency_code": statement.currency_code,
        "patient_name": patient_name,
    }


@router.get("/{short_code}")
def get_statement_summary(short_code: str, store=Depends(get_store)):
    """
    Confirm that a short code points at a viewable statement.

    Returns only the short code and statement date; everything tied to the
    patient waits for date‑of‑birth verification.
    """
    statement = store.find_by_short_code(short_code)
    if statement is None:
        raise HTTPException(status_code=404, detail="Statement not found")
    if statement.status is not StatementStatus.SENT:
        raise HTTPException(status_code=400, detail="Statement is not available")

    return {
        "short_code": statement.short_code,
        "statement_date": statement.statement_date.isoformat() if statement.statement_date else None,
        "requires_verification": True,
    }


@router.post("/verify-dob")
def verify_dob(
    body: VerifyDobRequest,
    matcher: DateIdentityMatcher = Depends(get_matcher),
):
    """
    Verify the patient's date of birth for a short‑coded statement.

    - ``MMDDYYYY``, ``MM/DD/YYYY``, ``YYYY-MM-DD`` and ``MM-DD-YYYY`` are accepted
    - A successful verification counts as a view and returns the statement
    - Failures carry one of a fixed set of error codes, never the reason a
      date did not match
    """
    if not body.short_code or not body.dob:
        return JSONResponse(status_code=400, content={"success": False, "error": "MISSING_FIELDS"})

    result = matcher.verify(body.short_code, body.dob)
    if not result.ok:
        return JSONResponse(
            status_code=STATUS_FOR_OUTCOME[result.outcome],
            content={"success": False, "error": result.outcome.value},
        )

    return {
        "success": True,
        "view_count": result.view_count,
        "statement": _statement_details(result.statement, result.person.display_name or None),
    }
