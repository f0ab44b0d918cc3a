"""
api.statements
==============

Staff endpoints on a single statement: NextGen chart balances for the
patient behind it, and rejection of a statement that should not go out.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from billview.lifecycle import advance_status
from billview.models import StatementStatus
from billview.resolver import PersonResolver
from billview.results import MultiplePersonsFound, ResolveSuccess, UpstreamError
from .deps import get_resolver, get_store

# Create router
router = APIRouter(prefix="/statements", tags=["statements"])

# Configure logging
logger = logging.getLogger(__name__)


@router.get("/{statement_id}/nextgen-balances")
async def get_nextgen_balances(
    statement_id: str,
    store=Depends(get_store),
    resolver: PersonResolver = Depends(get_resolver),
):
    """
    Fetch NextGen chart balances for the patient associated with a statement.

    The patient's first name, last name and date of birth are used to look
    the person up in NextGen.  Exactly one match is required; zero or
    several matches come back as ``success: false`` with a reason code.
    """
    statement = store.get_statement(statement_id)
    if statement is None:
        raise HTTPException(status_code=404, detail="Statement not found")

    person = store.get_person(statement.person_id)
    if person is None:
        raise HTTPException(status_code=400, detail="No patient information associated with this statement")

    result = await resolver.resolve_balances(person)

    if isinstance(result, ResolveSuccess):
        return {
            "success": True,
            "personId": result.person_id,
            "personNumber": result.person_number,
            "balances": result.balances.to_dict(),
        }

    body = {"success": False, "error": result.error, "message": result.message}

    if isinstance(result, UpstreamError):
        status_code = 502 if result.status_code >= 500 else result.status_code
        return JSONResponse(status_code=status_code, content=body)

    if isinstance(result, MultiplePersonsFound):
        body["count"] = result.count
    return body


@router.post("/{statement_id}/reject")
def reject_statement(statement_id: str, store=Depends(get_store)):
    """
    Mark a statement REJECTED so its short‑code link stops working.

    Only PENDING and SENT statements can be rejected.
    """
    statement = store.get_statement(statement_id)
    if statement is None:
        raise HTTPException(status_code=404, detail="Statement not found")

    try:
        event = advance_status(store, statement, StatementStatus.REJECTED)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        "old_status": event.old_status.name,
        "new_status": event.new_status.name,
    }
