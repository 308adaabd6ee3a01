# SPDX-License-Identifier: Apache-2.0

"""
Storage contract consumed by the case core.

Any backend (MongoDB, in-process) that satisfies ``CaseStore`` can be plugged
into ``CaseLifecycle``, ``NgoMatcher`` and ``CaseCatalog``.
"""

from typing import Any, Dict, List, Optional, Protocol

from models.entities import Case, NgoContact, UserContext
from models.enums import CaseStatus


class _Any:
    """Sentinel: do not constrain on the current assignee."""

    def __repr__(self) -> str:
        return "ANY"


ANY = _Any()


class CaseStore(Protocol):
    """Durable keyed storage for cases and NGO identities."""

    def get_case(self, case_id: str) -> Optional[Case]:
        ...

    def create_case(self, case: Case) -> Case:
        ...

    def update_case(self, case_id: str, changes: Dict[str, Any]) -> Case:
        """Apply field changes; raises NotFound if the case is absent."""
        ...

    def delete_case(self, case_id: str, expected_assigned_ngo_id: Any = ANY) -> Case:
        """
        Remove a case in one conditional step.

        Raises NotFound if absent, Conflict if ``expected_assigned_ngo_id``
        is given and no longer matches the stored assignee.
        """
        ...

    def list_operational_cases(self) -> List[Case]:
        """Non-adoption cases, newest first."""
        ...

    def list_adoptions(self) -> List[Case]:
        """Adoption listings, newest first."""
        ...

    def get_user_with_ngo_profile(self, user_id: str) -> Optional[UserContext]:
        ...

    def get_ngo_contact(self, ngo_profile_id: str) -> Optional[NgoContact]:
        ...

    def compare_and_assign(
        self,
        case_id: str,
        expected_assigned_ngo_id: Optional[str],
        new_assigned_ngo_id: Optional[str],
        new_status: CaseStatus,
    ) -> Case:
        """
        Atomically set assignee and status if the current assignee equals
        ``expected_assigned_ngo_id``; raises Conflict otherwise, NotFound if
        the case is absent.
        """
        ...

    def health_check(self) -> Dict[str, Any]:
        ...
