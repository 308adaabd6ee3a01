# SPDX-License-Identifier: Apache-2.0

"""
Authorization rules for case operations.

Pure decision functions with no side effects: they answer who may update,
claim, delete or match cases. Callers turn a ``False`` into ``Forbidden``.
"""

from typing import Optional

from models.entities import Case, UserContext
from models.enums import UserRole


class CaseAccessPolicy:
    """
    Role, ownership and assignment checks for the case core.

    Args:
        require_verified_ngo: When set, NGO-only operations also require the
            principal's NGO profile to be verified
    """

    def __init__(self, require_verified_ngo: bool = False):
        self.require_verified_ngo = require_verified_ngo

    def _is_eligible_ngo(self, principal: Optional[UserContext]) -> bool:
        if principal is None or principal.role != UserRole.NGO:
            return False
        if self.require_verified_ngo:
            return principal.ngo_profile is not None and principal.ngo_profile.verified
        return True

    def can_update(self, case: Case, acting_user_id: str) -> bool:
        """Only the reporting citizen may edit descriptive fields."""
        return acting_user_id == case.reported_by

    def can_claim(self, case: Case, principal: Optional[UserContext]) -> bool:
        """Any NGO may attempt a claim or status change; exclusivity is checked at write time."""
        return self._is_eligible_ngo(principal)

    def can_delete(self, case: Case, principal: Optional[UserContext]) -> bool:
        """
        Only the NGO currently holding the case may delete it.

        An unassigned case yields False: an NGO cannot dismiss a report it
        never claimed.
        """
        if not self._is_eligible_ngo(principal) or principal.ngo_profile is None:
            return False
        return case.assigned_ngo_id is not None and case.assigned_ngo_id == principal.ngo_profile.id

    def can_match(self, principal: Optional[UserContext]) -> bool:
        """Nearby-case discovery needs an NGO with a profile."""
        return self._is_eligible_ngo(principal) and principal.ngo_profile is not None
