# SPDX-License-Identifier: Apache-2.0

"""
Adoption listing endpoints.
"""

from flask import request, jsonify, current_app, g
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from middleware.auth import current_principal, optional_auth, require_auth, require_role
from models.enums import UserRole
from models.requests import CasePath, ReportAdoptionCommand, parse_command

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

adoptions_tag = Tag(name="Adoptions", description="Adoption listings")
adoptions_bp = APIBlueprint(
    'adoptions',
    __name__,
    url_prefix='/api/adoptions',
    abp_tags=[adoptions_tag]
)


@adoptions_bp.get('')
@optional_auth
def list_adoptions():
    """List adoption listings, newest first."""
    with tracer.start_as_current_span("adoptions.list"):
        cases = current_app.case_catalog.list_adoptions()
        return jsonify(current_app.hal_formatter.format_case_collection(
            cases, '/api/adoptions', current_principal()
        ))


@adoptions_bp.post('')
@require_auth
def create_adoption():
    """List an animal for adoption. Adoption listings never carry a severity."""
    user_context = g.user_context
    with tracer.start_as_current_span("adoptions.create", attributes={"user.id": user_context.user_id}):
        command = parse_command(ReportAdoptionCommand, request.get_json(silent=True))
        case = current_app.case_lifecycle.report(command, user_context.user_id)
        return jsonify(current_app.hal_formatter.format_case(case, current_principal())), 201


@adoptions_bp.delete('/<case_id>')
@require_role(UserRole.NGO)
def delete_adoption(path: CasePath):
    """Delete an adoption listing held by the calling NGO and return it."""
    user_context = g.user_context
    with tracer.start_as_current_span(
        "adoptions.delete",
        attributes={"case.id": path.case_id, "user.id": user_context.user_id}
    ):
        deleted = current_app.case_lifecycle.delete(path.case_id, user_context.user_id, adoption=True)
        return jsonify(current_app.hal_formatter.format_case(deleted, current_principal()))
