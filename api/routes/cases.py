# SPDX-License-Identifier: Apache-2.0

"""
Case endpoints.

Reporting, reading, editing, status changes and deletion of injured and
abused animal cases. Every handler is a thin adapter over the case core;
domain errors propagate to the error handler middleware.
"""

from flask import request, jsonify, current_app, g
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from middleware.auth import current_principal, optional_auth, require_auth, require_role
from models.enums import UserRole
from models.requests import (
    CasePatch, CasePath, ReportCaseCommand, StatusChangeRequest, parse_command
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

cases_tag = Tag(name="Cases", description="Injured and abused animal reports")
cases_bp = APIBlueprint(
    'cases',
    __name__,
    url_prefix='/api/cases',
    abp_tags=[cases_tag]
)


@cases_bp.get('')
@optional_auth
def list_cases():
    """
    List operational cases.

    Injured and abuse reports, newest first. Adoption listings are served
    under /api/adoptions.
    """
    with tracer.start_as_current_span("cases.list"):
        cases = current_app.case_catalog.list_cases()
        return jsonify(current_app.hal_formatter.format_case_collection(
            cases, '/api/cases', current_principal()
        ))


@cases_bp.get('/<case_id>')
@optional_auth
def get_case(path: CasePath):
    """Get a case of any kind by ID."""
    with tracer.start_as_current_span("cases.get", attributes={"case.id": path.case_id}):
        case = current_app.case_catalog.get_case(path.case_id)
        return jsonify(current_app.hal_formatter.format_case(case, current_principal()))


@cases_bp.post('')
@require_auth
def report_case():
    """
    Report an injured or abused animal.

    Accepts ``lat``/``lng`` as shorthands for the coordinates and tags as a
    list, a JSON array string or a comma-separated string.
    """
    user_context = g.user_context
    with tracer.start_as_current_span("cases.report", attributes={"user.id": user_context.user_id}):
        command = parse_command(ReportCaseCommand, request.get_json(silent=True))
        case = current_app.case_lifecycle.report(command, user_context.user_id)
        return jsonify(current_app.hal_formatter.format_case(case, current_principal())), 201


@cases_bp.put('/<case_id>')
@require_auth
def update_case(path: CasePath):
    """
    Update the descriptive fields of a case.

    Only the reporting user may edit. Status and assignment in the body are ignored.
    """
    user_context = g.user_context
    with tracer.start_as_current_span(
        "cases.update",
        attributes={"case.id": path.case_id, "user.id": user_context.user_id}
    ):
        patch = parse_command(CasePatch, request.get_json(silent=True))
        case = current_app.case_lifecycle.update(path.case_id, patch, user_context.user_id)
        return jsonify(current_app.hal_formatter.format_case(case, current_principal()))


@cases_bp.patch('/<case_id>/status')
@require_role(UserRole.NGO)
def change_case_status(path: CasePath):
    """
    Claim a case or change its status.

    Without a ``status`` in the body the case is claimed (moved to
    InProgress and assigned to the calling NGO).
    """
    user_context = g.user_context
    with tracer.start_as_current_span(
        "cases.change_status",
        attributes={"case.id": path.case_id, "user.id": user_context.user_id}
    ) as span:
        body = parse_command(StatusChangeRequest, request.get_json(silent=True))
        lifecycle = current_app.case_lifecycle

        if body.status is None:
            span.set_attribute("case.operation", "claim")
            case = lifecycle.claim(path.case_id, user_context.user_id)
        else:
            span.set_attribute("case.operation", "transition")
            case = lifecycle.transition(path.case_id, body.status, user_context.user_id)

        return jsonify(current_app.hal_formatter.format_case(case, current_principal()))


@cases_bp.delete('/<case_id>')
@require_role(UserRole.NGO)
def delete_case(path: CasePath):
    """Delete a case held by the calling NGO and return the deleted case."""
    user_context = g.user_context
    with tracer.start_as_current_span(
        "cases.delete",
        attributes={"case.id": path.case_id, "user.id": user_context.user_id}
    ):
        deleted = current_app.case_lifecycle.delete(path.case_id, user_context.user_id)
        return jsonify(current_app.hal_formatter.format_case(deleted, current_principal()))
