# SPDX-License-Identifier: Apache-2.0

"""
Animal Rescue Case API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support,
configures middleware and wires the case core onto the app.
"""

import os
from typing import Optional
from flask import jsonify
from flask_openapi3 import OpenAPI, Info, Tag

from config import Settings
from domain.access import CaseAccessPolicy
from domain.catalog import CaseCatalog
from domain.lifecycle import CaseLifecycle
from domain.matching import NgoMatcher
from middleware.auth import AuthMiddleware
from middleware.error_handler import ErrorHandlerMiddleware
from models.base import utcnow
from models.responses import HealthCheckResponse
from observability.config import setup_observability
from observability.middleware import add_observability_middleware
from services.auth import AuthService
from services.hal import HalFormatter

# OpenAPI info
info = Info(
    title="Animal Rescue Case API",
    version="1.0.0",
    description="Case lifecycle API for animal rescue reports, NGO claims and adoptions"
)


def build_store(settings: Settings):
    """Create the case store selected by ``STORE_BACKEND``."""
    if settings.store_backend == 'memory':
        from services.memory_store import InMemoryCaseStore
        return InMemoryCaseStore()

    from services.mongodb import MongoCaseStore
    return MongoCaseStore.from_settings(settings)


def create_app(settings: Optional[Settings] = None, store=None) -> OpenAPI:
    """
    Build the Flask application.

    Args:
        settings: Application settings, read from the environment when omitted
        store: CaseStore backend, built from settings when omitted

    Returns:
        Configured OpenAPI application
    """
    settings = settings or Settings.from_env()
    setup_observability(settings)

    app = OpenAPI(__name__, info=info)
    app.config['ENVIRONMENT'] = settings.environment
    app.config['DEBUG'] = settings.debug
    app.config['BASE_URL'] = settings.base_url

    add_observability_middleware(app, instrument=settings.otel_enabled)

    store = store if store is not None else build_store(settings)
    policy = CaseAccessPolicy(require_verified_ngo=settings.require_verified_ngo)
    hal_formatter = HalFormatter(settings.base_url, policy, contact_lookup=store.get_ngo_contact)

    ErrorHandlerMiddleware(app, hal_formatter, expose_details=settings.environment != 'production')

    # Make services available to routes
    app.settings = settings
    app.case_store = store
    app.access_policy = policy
    app.hal_formatter = hal_formatter
    app.auth_middleware = AuthMiddleware(AuthService.from_settings(settings))
    app.case_lifecycle = CaseLifecycle(store, policy)
    app.case_catalog = CaseCatalog(store)
    app.ngo_matcher = NgoMatcher(store, policy, default_radius_km=settings.nearby_radius_km)

    # Register routes
    from routes.cases import cases_bp
    from routes.adoptions import adoptions_bp
    from routes.ngos import ngo_bp

    app.register_api(cases_bp)
    app.register_api(adoptions_bp)
    app.register_api(ngo_bp)

    health_tag = Tag(name="Health", description="System health and status")

    @app.get('/api/healthz', tags=[health_tag])
    def health_check():
        """Health check endpoint reporting store connectivity."""
        store_health = store.health_check()
        healthy = store_health.get('status') == 'healthy'

        health = HealthCheckResponse(
            status='healthy' if healthy else 'unhealthy',
            version=settings.service_version,
            environment=settings.environment,
            timestamp=utcnow(),
            dependencies={'store': store_health}
        )
        return jsonify(health.model_dump(mode='json')), 200 if healthy else 503

    return app


if __name__ == '__main__':
    # Development server
    app = create_app()
    app.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=app.config['DEBUG']
    )
