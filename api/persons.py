"""
api.persons
===========

FastAPI router for direct NextGen person lookups.

Staff use this to find a chart by hand, typically after the balances
endpoint reported several matching persons.
"""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from httpx import AsyncClient

from billview.nextgen import QUICK_SEARCH_IDS, NextGenApiError, NextGenClient
from billview.settings import NEXTGEN_ENVIRONMENTS, Settings
from .deps import get_nextgen_http, get_settings

# Create router
router = APIRouter(prefix="/ng/persons", tags=["nextgen"])


@router.get("/lookup")
async def lookup_persons(
    env: str = Query("test", description="NextGen environment: 'prod' or 'test'"),
    # Quick search (takes precedence over demographics)
    quick_search_id: Optional[str] = Query(None, alias="quickSearchId"),
    quick_search_input: Optional[str] = Query(None, alias="quickSearchInput"),
    # Demographic filters
    first_name: Optional[str] = Query(None, alias="firstName"),
    last_name: Optional[str] = Query(None, alias="lastName"),
    middle_name: Optional[str] = Query(None, alias="middleName"),
    date_of_birth: Optional[str] = Query(None, alias="dateOfBirth", description="YYYY-MM-DD"),
    address_line1: Optional[str] = Query(None, alias="addressLine1"),
    city: Optional[str] = Query(None),
    zip_code: Optional[str] = Query(None, alias="zip"),
    sex: Optional[str] = Query(None),
    email_address: Optional[str] = Query(None, alias="emailAddress"),
    # Filters
    exclude_expired: bool = Query(True, alias="excludeExpired", description="Exclude deceased patients"),
    patients_only: bool = Query(True, alias="searchPatientsOnly", description="Only search patients"),
    http: AsyncClient = Depends(get_nextgen_http),
    settings: Settings = Depends(get_settings),
):
    """
    Lookup persons in NextGen by quick search or by demographics.

    - ``env`` defaults to ``test`` for safety
    - A quick search needs both ``quickSearchId`` and ``quickSearchInput``
    - Otherwise at least one of firstName, lastName, dateOfBirth or
      emailAddress is required
    """
    if env not in NEXTGEN_ENVIRONMENTS:
        raise HTTPException(status_code=400, detail="Invalid environment. Must be 'prod' or 'test'")

    if quick_search_id and quick_search_input:
        if quick_search_id not in QUICK_SEARCH_IDS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid quickSearchId. Must be one of: {', '.join(QUICK_SEARCH_IDS)}",
            )
        criteria = {"quick_search_id": quick_search_id, "quick_search_input": quick_search_input}
    else:
        if not any([first_name, last_name, date_of_birth, email_address]):
            raise HTTPException(
                status_code=400,
                detail="At least one search parameter is required (firstName, lastName, dateOfBirth, or emailAddress)",
            )
        criteria = {
            "first_name": first_name,
            "last_name": last_name,
            "middle_name": middle_name,
            "date_of_birth": date_of_birth,
            "address_line1": address_line1,
            "city": city,
            "zip_code": zip_code,
            "sex": sex,
            "email_address": email_address,
        }

    client = NextGenClient(http, settings.nextgen_config(env))
    try:
        persons = await client.lookup_persons(
            exclude_expired=exclude_expired,
            patients_only=patients_only,
            **criteria,
        )
    except NextGenApiError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})

    return {
        "success": True,
        "environment": env,
        "count": len(persons),
        "persons": [asdict(p) for p in persons],
    }
