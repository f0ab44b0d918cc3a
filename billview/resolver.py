"""
billview.resolver
=================

Match a local patient to exactly one NextGen person and fetch their chart
balances.

The disambiguation rule is conservative: zero candidates and several
candidates are both failures, and the latter is never resolved
automatically; staff have to pick the right chart by hand.
"""

from __future__ import annotations

import logging

from .models import BalancesSummary, Person
from .nextgen import TRANSPORT_ERROR_STATUS, NextGenApiError
from .results import (
    MissingPatientData,
    MultiplePersonsFound,
    PersonNotFound,
    ResolveResult,
    ResolveSuccess,
    UpstreamError,
)

logger = logging.getLogger(__name__)


class PersonResolver:
    """
    Resolve a :class:`~billview.models.Person` against the registry.

    ``registry`` is normally a :class:`billview.nextgen.NextGenClient`; any
    object with async ``lookup_persons`` and ``get_chart_balances`` works.
    """

    def __init__(self, registry) -> None:
        self.registry = registry

    async def resolve_balances(self, person: Person) -> ResolveResult:
        if not (person.first_name and person.last_name and person.date_of_birth):
            return MissingPatientData()

        try:
            candidates = await self.registry.lookup_persons(
                first_name=person.first_name,
                last_name=person.last_name,
                date_of_birth=person.date_of_birth.isoformat(),
                exclude_expired=True,
                patients_only=True,
            )
            if not candidates:
                return PersonNotFound()
            if len(candidates) > 1:
                logger.info(f"Person {person.person_id} matched {len(candidates)} NextGen records")
                return MultiplePersonsFound(count=len(candidates))

            match = candidates[0]
            raw = await self.registry.get_chart_balances(match.id)
        except NextGenApiError as e:
            logger.error(f"NextGen error resolving person {person.person_id}: {e.status_code} {e.message}")
            return UpstreamError(status_code=e.status_code, message=e.message)

        try:
            balances = BalancesSummary.from_api(raw)
        except ValueError as e:
            logger.error(f"Unusable NextGen balances for person {person.person_id}: {e}")
            return UpstreamError(status_code=TRANSPORT_ERROR_STATUS, message="Invalid balances returned by NextGen")

        return ResolveSuccess(
            person_id=match.id,
            person_number=match.person_number,
            balances=balances,
        )
