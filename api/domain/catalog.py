# SPDX-License-Identifier: Apache-2.0

"""
Read-only case listings.
"""

from typing import List

from domain.exceptions import NotFound
from models.entities import Case


class CaseCatalog:
    """Public reads over the case store."""

    def __init__(self, store):
        self.store = store

    def list_cases(self) -> List[Case]:
        """Operational cases, newest first."""
        return self.store.list_operational_cases()

    def list_adoptions(self) -> List[Case]:
        """Adoption listings, newest first."""
        return self.store.list_adoptions()

    def get_case(self, case_id: str) -> Case:
        case = self.store.get_case(case_id)
        if case is None:
            raise NotFound(f"Case {case_id} not found")
        return case
