# SPDX-License-Identifier: Apache-2.0

"""
Case lifecycle: reporting, status transitions, exclusive NGO claims,
descriptive updates and deletion.

States are Reported, InProgress, Resolved and Closed. Reported is initial and
no state is terminal: the holding NGO may move a case between any statuses.
Entering InProgress on an unassigned case is the only move that assigns an
NGO, and that write goes through the store's compare-and-assign so exactly
one of several concurrent claimers wins.
"""

import logging
from typing import Any, Dict, Union

from opentelemetry import trace

from domain.access import CaseAccessPolicy
from domain.exceptions import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound
from models.entities import Case, UserContext
from models.enums import CaseStatus, CaseType
from models.requests import CasePatch, ReportAdoptionCommand, ReportCaseCommand, parse_command

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


def parse_status(value: Union[CaseStatus, str]) -> CaseStatus:
    """
    Parse a requested status.

    Args:
        value: CaseStatus member or its string value

    Returns:
        The CaseStatus

    Raises:
        InvalidArgument: If the value names no known status
    """
    if isinstance(value, CaseStatus):
        return value
    try:
        return CaseStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in CaseStatus)
        raise InvalidArgument(f"Unknown case status {value!r}; expected one of {allowed}")


class CaseLifecycle:
    """
    Mutating operations on cases.

    Args:
        store: CaseStore backend
        policy: Access policy consulted before every mutation
    """

    def __init__(self, store, policy: CaseAccessPolicy):
        self.store = store
        self.policy = policy

    def _load_case(self, case_id: str) -> Case:
        case = self.store.get_case(case_id)
        if case is None:
            raise NotFound(f"Case {case_id} not found")
        return case

    def _resolve_ngo(self, acting_user_id: str) -> UserContext:
        principal = self.store.get_user_with_ngo_profile(acting_user_id)
        if principal is None or not principal.is_ngo() or principal.ngo_profile is None:
            raise Forbidden("Only NGO users with a profile can manage case status")
        return principal

    def report(self, command: Union[ReportCaseCommand, ReportAdoptionCommand], reporter_id: str) -> Case:
        """
        Create a case from a validated report command.

        A ``ReportCaseCommand`` creates an operational case; a plain
        ``ReportAdoptionCommand`` creates an adoption listing without severity.

        Args:
            command: Validated report command
            reporter_id: ID of the authenticated reporting user

        Returns:
            The stored case, status Reported and unassigned
        """
        with tracer.start_as_current_span("lifecycle.report") as span:
            if isinstance(command, ReportCaseCommand):
                kind, severity = command.kind, command.severity
            else:
                kind, severity = CaseType.ADOPTION, None

            case = Case(
                title=command.title,
                description=command.description,
                kind=kind,
                severity=severity,
                status=CaseStatus.REPORTED,
                latitude=command.latitude,
                longitude=command.longitude,
                reported_by=reporter_id,
                animal_type=command.animal_type,
                animal_count=command.animal_count,
                tags=list(command.tags),
                image_url=command.image_url,
            )
            created = self.store.create_case(case)
            span.set_attribute("case.id", created.id)
            span.set_attribute("case.type", created.kind.value)

            logger.info(
                f"Case {created.id} reported by {reporter_id}",
                extra={'case_id': created.id, 'case_type': created.kind.value, 'user_id': reporter_id}
            )
            return created

    def transition(self, case_id: str, requested_status: Union[CaseStatus, str], acting_user_id: str) -> Case:
        """
        Move a case to a new status on behalf of an NGO.

        Args:
            case_id: Case ID
            requested_status: Target status
            acting_user_id: ID of the acting user

        Returns:
            The case after the transition

        Raises:
            InvalidArgument: Unknown status
            Forbidden: Actor is not an NGO with a profile
            NotFound: Case does not exist
            Conflict: Case held by another NGO, or claim lost to another NGO
            InvalidTransition: Non-InProgress move on an unassigned case
        """
        with tracer.start_as_current_span("lifecycle.transition") as span:
            target = parse_status(requested_status)
            span.set_attribute("case.id", case_id)
            span.set_attribute("case.target_status", target.value)

            principal = self._resolve_ngo(acting_user_id)
            case = self._load_case(case_id)
            if not self.policy.can_claim(case, principal):
                raise Forbidden("Only NGO users can change case status")

            ngo_id = principal.ngo_profile_id
            log_extra = {'case_id': case_id, 'ngo_profile_id': ngo_id, 'target_status': target.value}

            if case.assigned_ngo_id is not None and case.assigned_ngo_id != ngo_id:
                raise Conflict("Case is already assigned to another NGO")

            if case.assigned_ngo_id is None:
                if target != CaseStatus.IN_PROGRESS:
                    raise InvalidTransition(
                        current=case.status.value,
                        target=target.value,
                        reason="The case must be claimed before it can change status."
                    )
                return self._claim_unassigned(case_id, ngo_id, span, log_extra)

            if case.status == target:
                span.set_attribute("lifecycle.outcome", "unchanged")
                return case

            try:
                updated = self.store.compare_and_assign(case_id, ngo_id, ngo_id, target)
            except Conflict:
                logger.warning(f"Assignment of case {case_id} changed during transition", extra=log_extra)
                raise Conflict("Case assignment changed before the status could be updated")

            span.set_attribute("lifecycle.outcome", "transitioned")
            logger.info(
                f"Case {case_id} moved from {case.status.value} to {target.value}",
                extra={**log_extra, 'previous_status': case.status.value}
            )
            return updated

    def _claim_unassigned(self, case_id: str, ngo_id: str, span, log_extra: Dict[str, Any]) -> Case:
        try:
            claimed = self.store.compare_and_assign(case_id, None, ngo_id, CaseStatus.IN_PROGRESS)
        except Conflict:
            current = self._load_case(case_id)
            if current.assigned_ngo_id == ngo_id:
                span.set_attribute("lifecycle.outcome", "already_claimed")
                return current
            span.set_attribute("lifecycle.outcome", "claim_lost")
            logger.warning(f"Claim on case {case_id} lost to another NGO", extra=log_extra)
            raise Conflict("Case is already assigned to another NGO")

        span.set_attribute("lifecycle.outcome", "claimed")
        logger.info(f"Case {case_id} claimed by NGO {ngo_id}", extra=log_extra)
        return claimed

    def claim(self, case_id: str, acting_user_id: str) -> Case:
        """Claim a case for the acting NGO. Repeating a claim you already hold is a no-op."""
        return self.transition(case_id, CaseStatus.IN_PROGRESS, acting_user_id)

    def update(self, case_id: str, patch: Union[CasePatch, Dict[str, Any]], acting_user_id: str) -> Case:
        """
        Apply a descriptive patch on behalf of the reporting citizen.

        Status and assignment never change through this path.

        Args:
            case_id: Case ID
            patch: CasePatch or raw dictionary
            acting_user_id: ID of the acting user

        Returns:
            The updated case

        Raises:
            InvalidArgument: Patch fails validation or breaks the kind/severity rule
            NotFound: Case does not exist
            Forbidden: Actor did not report the case
        """
        with tracer.start_as_current_span("lifecycle.update") as span:
            span.set_attribute("case.id", case_id)
            if not isinstance(patch, CasePatch):
                patch = parse_command(CasePatch, patch)

            case = self._load_case(case_id)
            if not self.policy.can_update(case, acting_user_id):
                raise Forbidden("Only the reporter can update this case")

            changes = patch.to_changes()
            if not changes:
                return case

            kind = changes.get('kind', case.kind)
            if kind == CaseType.ADOPTION:
                if changes.get('severity') is not None:
                    raise InvalidArgument("Adoption cases cannot carry a severity")
                if case.severity is not None or 'severity' in changes:
                    changes['severity'] = None
            else:
                severity = changes['severity'] if 'severity' in changes else case.severity
                if severity is None:
                    raise InvalidArgument("Severity is required for injured and abuse cases")

            updated = self.store.update_case(case_id, changes)
            span.set_attribute("case.updated_fields", ",".join(sorted(changes)))
            logger.info(
                f"Case {case_id} updated by reporter",
                extra={'case_id': case_id, 'user_id': acting_user_id, 'fields': sorted(changes)}
            )
            return updated

    def delete(self, case_id: str, acting_user_id: str, adoption: bool = False) -> Case:
        """
        Delete a case held by the acting NGO.

        Args:
            case_id: Case ID
            acting_user_id: ID of the acting user
            adoption: True on the adoption path, False on the operational path

        Returns:
            The deleted case

        Raises:
            Forbidden: Actor is not an NGO with a profile, or does not hold the case
            NotFound: Case does not exist or does not belong to this path
        """
        with tracer.start_as_current_span("lifecycle.delete") as span:
            span.set_attribute("case.id", case_id)
            principal = self._resolve_ngo(acting_user_id)

            case = self._load_case(case_id)
            if case.is_adoption() != adoption:
                raise NotFound(f"Case {case_id} not found")

            if not self.policy.can_delete(case, principal):
                raise Forbidden("Only the NGO assigned to this case can delete it")

            ngo_id = principal.ngo_profile_id
            try:
                deleted = self.store.delete_case(case_id, expected_assigned_ngo_id=ngo_id)
            except Conflict:
                logger.warning(
                    f"Assignment of case {case_id} changed before deletion",
                    extra={'case_id': case_id, 'ngo_profile_id': ngo_id}
                )
                raise Forbidden("Only the NGO assigned to this case can delete it")

            logger.info(
                f"Case {case_id} deleted by NGO {ngo_id}",
                extra={'case_id': case_id, 'ngo_profile_id': ngo_id, 'case_type': case.kind.value}
            )
            return deleted
