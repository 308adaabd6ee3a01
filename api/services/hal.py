# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS Level-3 API responses with conditional affordance links.
"""

from typing import Callable, Dict, List, Any, Optional
from urllib.parse import urlencode

from domain.access import CaseAccessPolicy
from models.entities import Case, NgoContact, UserContext
from models.responses import CaseResponse, ErrorResponse, HalLink

PROBLEM_BASE = "https://api.animal-rescue.org/problems"

CASES_PATH = "/api/cases"
ADOPTIONS_PATH = "/api/adoptions"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        return HalLink(
            href=f"{self.base_url}/{path.lstrip('/')}",
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")


class CaseAffordanceBuilder:
    """Builder for case links; action links follow the access policy."""

    def __init__(self, base_url: str, policy: CaseAccessPolicy):
        self.link_builder = HalLinkBuilder(base_url)
        self.policy = policy

    def build_case_affordances(self, case: Case, principal: Optional[UserContext]) -> Dict[str, HalLink]:
        """
        Build conditional affordance links for a case.

        Args:
            case: Case being rendered
            principal: Caller, or None for anonymous requests

        Returns:
            Mapping of link relation to HalLink
        """
        links = {}
        resource_path = f"{CASES_PATH}/{case.id}"
        collection_path = ADOPTIONS_PATH if case.is_adoption() else CASES_PATH

        links['self'] = self.link_builder.build_self_link(resource_path)
        links['collection'] = self.link_builder.build_collection_link(collection_path)

        if principal is None:
            return links

        # Claim is offered only while nobody holds the case
        if case.is_operational() and not case.is_assigned() and self.policy.can_claim(case, principal):
            links['claim'] = self.link_builder.build_link(
                f"{resource_path}/status",
                method="PATCH",
                content_type="application/json",
                title="Claim case"
            )

        if self.policy.can_update(case, principal.user_id):
            links['edit'] = self.link_builder.build_link(
                resource_path,
                method="PUT",
                content_type="application/json",
                title="Edit case"
            )

        if self.policy.can_delete(case, principal):
            links['delete'] = self.link_builder.build_link(
                f"{collection_path}/{case.id}",
                method="DELETE",
                title="Delete case"
            )

        return links


class HalFormatter:
    """
    High-level HAL formatter for cases and problem documents.

    Args:
        base_url: Public base URL used in links
        policy: Access policy driving affordances
        contact_lookup: Resolves an NGO profile ID to its public contact
    """

    def __init__(
        self,
        base_url: str,
        policy: CaseAccessPolicy,
        contact_lookup: Optional[Callable[[str], Optional[NgoContact]]] = None
    ):
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = CaseAffordanceBuilder(base_url, policy)
        self.contact_lookup = contact_lookup

    def _contact_for(self, case: Case, cache: Dict[str, Optional[NgoContact]]) -> Optional[NgoContact]:
        if not case.assigned_ngo_id or self.contact_lookup is None:
            return None
        if case.assigned_ngo_id not in cache:
            cache[case.assigned_ngo_id] = self.contact_lookup(case.assigned_ngo_id)
        return cache[case.assigned_ngo_id]

    def format_case(
        self,
        case: Case,
        principal: Optional[UserContext] = None,
        contacts: Optional[Dict[str, Optional[NgoContact]]] = None
    ) -> Dict[str, Any]:
        """Format a case with HAL links."""
        contact = self._contact_for(case, contacts if contacts is not None else {})
        response = CaseResponse.from_case(case, contact).to_dict()
        links = self.affordance_builder.build_case_affordances(case, principal)
        response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return response

    def format_case_collection(
        self,
        cases: List[Case],
        collection_path: str,
        principal: Optional[UserContext] = None,
        query_params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a collection of cases with HAL links."""
        contacts: Dict[str, Optional[NgoContact]] = {}
        items = [self.format_case(case, principal, contacts) for case in cases]

        self_path = collection_path
        if query_params:
            query = urlencode({key: value for key, value in query_params.items() if value is not None})
            self_path = f"{collection_path}?{query}"

        return {
            'total': len(items),
            '_links': {'self': self.link_builder.build_self_link(self_path).model_dump(exclude_none=True)},
            '_embedded': {
                'cases': items
            }
        }

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response."""
        problem = ErrorResponse(
            type=f"{PROBLEM_BASE}/{error_type}",
            title=title,
            status=status,
            detail=detail,
            instance=instance,
            errors=validation_errors or None
        )
        return problem.model_dump(exclude_none=True)
