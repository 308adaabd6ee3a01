# SPDX-License-Identifier: Apache-2.0

"""
NGO case discovery endpoints.
"""

from flask import request, jsonify, current_app, g
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
import logging

from middleware.auth import current_principal, require_role
from models.enums import UserRole
from models.requests import NearbyCasesQuery, parse_command

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ngo_tag = Tag(name="NGO", description="NGO case discovery")
ngo_bp = APIBlueprint(
    'ngo',
    __name__,
    url_prefix='/api/ngo',
    abp_tags=[ngo_tag]
)


@ngo_bp.get('/nearby-cases')
@require_role(UserRole.NGO)
def nearby_cases():
    """
    Find operational cases near a point.

    Query parameters ``lat`` and ``lng`` are required; ``radiusKm`` defaults
    to the configured radius. Results are ordered by severity, then distance.
    """
    user_context = g.user_context
    with tracer.start_as_current_span("ngo.nearby_cases", attributes={"user.id": user_context.user_id}):
        query = parse_command(NearbyCasesQuery, request.args.to_dict())
        cases = current_app.ngo_matcher.nearby(
            user_context.user_id,
            (query.lat, query.lng),
            query.radius_km
        )
        return jsonify(current_app.hal_formatter.format_case_collection(
            cases,
            '/api/ngo/nearby-cases',
            current_principal(),
            {'lat': query.lat, 'lng': query.lng, 'radiusKm': query.radius_km}
        ))
