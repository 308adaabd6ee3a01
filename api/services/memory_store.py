# SPDX-License-Identifier: Apache-2.0

"""
In-process case store for local development and tests.

This module provides the same operations as the MongoDB store, backed by
dictionaries and guarded by a single lock so the check-and-write of a claim
is atomic across threads.
"""

import threading
from typing import Any, Dict, List, Optional

from opentelemetry import trace
import logging

from domain.exceptions import Conflict, NotFound
from models.base import utcnow
from models.entities import Case, NgoContact, NgoProfile, User, UserContext
from models.enums import CaseStatus, CaseType
from services.store import ANY

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class InMemoryCaseStore:
    """
    Dictionary-backed ``CaseStore``.

    Returned models are copies; callers never hold a reference into the
    store's own state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cases: Dict[str, Case] = {}
        self._users: Dict[str, User] = {}
        self._profiles: Dict[str, NgoProfile] = {}

    # Seeding helpers

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user.model_copy(deep=True)
        return user

    def add_ngo_profile(self, profile: NgoProfile) -> NgoProfile:
        with self._lock:
            self._profiles[profile.id] = profile.model_copy(deep=True)
        return profile

    # Cases

    def get_case(self, case_id: str) -> Optional[Case]:
        with self._lock:
            case = self._cases.get(case_id)
            return case.model_copy(deep=True) if case else None

    def create_case(self, case: Case) -> Case:
        with self._lock:
            if case.id in self._cases:
                raise Conflict(f"Case {case.id} already exists")
            self._cases[case.id] = case.model_copy(deep=True)
        logger.info(f"Created case {case.id}")
        return case.model_copy(deep=True)

    def update_case(self, case_id: str, changes: Dict[str, Any]) -> Case:
        with self._lock:
            current = self._cases.get(case_id)
            if current is None:
                raise NotFound("Case not found")
            data = current.model_dump()
            data.update(changes)
            data["updated_at"] = utcnow()
            updated = Case.model_validate(data)
            self._cases[case_id] = updated
            return updated.model_copy(deep=True)

    def delete_case(self, case_id: str, expected_assigned_ngo_id: Any = ANY) -> Case:
        with self._lock:
            current = self._cases.get(case_id)
            if current is None:
                raise NotFound("Case not found")
            if expected_assigned_ngo_id is not ANY and current.assigned_ngo_id != expected_assigned_ngo_id:
                raise Conflict("Case assignment changed before deletion")
            del self._cases[case_id]
        logger.info(f"Deleted case {case_id}")
        return current

    def _sorted(self, predicate) -> List[Case]:
        with self._lock:
            # Insertion order is storage order; sort is stable on created_at ties
            cases = [c.model_copy(deep=True) for c in self._cases.values() if predicate(c)]
        return sorted(cases, key=lambda c: c.created_at, reverse=True)

    def list_operational_cases(self) -> List[Case]:
        return self._sorted(lambda c: c.kind != CaseType.ADOPTION)

    def list_adoptions(self) -> List[Case]:
        return self._sorted(lambda c: c.kind == CaseType.ADOPTION)

    def compare_and_assign(
        self,
        case_id: str,
        expected_assigned_ngo_id: Optional[str],
        new_assigned_ngo_id: Optional[str],
        new_status: CaseStatus,
    ) -> Case:
        with tracer.start_as_current_span("store.memory.compare_and_assign") as span:
            span.set_attribute("case.id", case_id)
            with self._lock:
                current = self._cases.get(case_id)
                if current is None:
                    raise NotFound("Case not found")
                if current.assigned_ngo_id != expected_assigned_ngo_id:
                    span.set_attribute("store.cas_result", "conflict")
                    raise Conflict("Case already assigned")
                updated = current.model_copy(
                    update={
                        "assigned_ngo_id": new_assigned_ngo_id,
                        "status": CaseStatus(new_status),
                        "updated_at": utcnow(),
                    },
                    deep=True,
                )
                self._cases[case_id] = updated
            span.set_attribute("store.cas_result", "applied")
            return updated.model_copy(deep=True)

    # Users

    def get_user_with_ngo_profile(self, user_id: str) -> Optional[UserContext]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            profile = next((p for p in self._profiles.values() if p.user_id == user_id), None)
            return UserContext(
                user_id=user.id,
                role=user.role,
                email=user.email,
                name=user.name,
                ngo_profile=profile.model_copy() if profile else None,
            )

    def get_ngo_contact(self, ngo_profile_id: str) -> Optional[NgoContact]:
        with self._lock:
            profile = self._profiles.get(ngo_profile_id)
            user = self._users.get(profile.user_id) if profile else None
            if user is None:
                return None
            return NgoContact(
                ngo_profile_id=profile.id,
                user_id=user.id,
                name=user.name,
                email=user.email,
            )

    def health_check(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'status': 'healthy',
                'backend': 'memory',
                'cases': len(self._cases)
            }
