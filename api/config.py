# SPDX-License-Identifier: Apache-2.0

"""
Application settings.

Settings are read from the environment once and then passed explicitly to
the app factory, the store and the access policy.
"""

import os
from typing import Optional
from pydantic import BaseModel, Field, field_validator


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class Settings(BaseModel):
    """Runtime configuration for the rescue case API."""

    environment: str = Field(default='development', description="Deployment environment")
    debug: bool = Field(default=False, description="Flask debug mode")

    # Database configuration
    store_backend: str = Field(default='mongodb', description="Store backend: mongodb or memory")
    mongodb_uri: str = Field(default='mongodb://localhost:27017/animal_rescue_dev')
    mongodb_database: str = Field(default='animal_rescue_dev')
    mongodb_max_pool_size: int = Field(default=10, ge=1)
    mongodb_server_selection_timeout_ms: int = Field(default=5000, ge=1)
    mongodb_socket_timeout_ms: int = Field(default=10000, ge=1)

    # Security configuration
    jwt_secret: str = Field(default='dev-secret-key', description="HS256 secret for access tokens")
    jwt_algorithm: str = Field(default='HS256')

    # API configuration
    base_url: str = Field(default='http://localhost:5000')
    nearby_radius_km: float = Field(default=5.0, ge=0)
    require_verified_ngo: bool = Field(default=False)

    # Observability
    otel_enabled: bool = Field(default=True)
    otel_exporter_otlp_endpoint: Optional[str] = Field(default=None)
    service_version: str = Field(default='1.0.0')

    @field_validator('store_backend')
    @classmethod
    def validate_store_backend(cls, v):
        """Validate store backend name."""
        if v not in ('mongodb', 'memory'):
            raise ValueError('STORE_BACKEND must be "mongodb" or "memory"')
        return v

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        environment = os.getenv('ENVIRONMENT', 'development')
        return cls(
            environment=environment,
            debug=environment == 'development',
            store_backend=os.getenv('STORE_BACKEND', 'mongodb'),
            mongodb_uri=os.getenv('MONGODB_URI', 'mongodb://localhost:27017/animal_rescue_dev'),
            mongodb_database=os.getenv('MONGODB_DATABASE', 'animal_rescue_dev'),
            mongodb_max_pool_size=int(os.getenv('MONGODB_MAX_POOL_SIZE', '10')),
            mongodb_server_selection_timeout_ms=int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000')),
            mongodb_socket_timeout_ms=int(os.getenv('MONGODB_SOCKET_TIMEOUT_MS', '10000')),
            jwt_secret=os.getenv('JWT_SECRET', 'dev-secret-key'),
            base_url=os.getenv('BASE_URL', 'http://localhost:5000'),
            nearby_radius_km=float(os.getenv('NEARBY_RADIUS_KM', '5.0')),
            require_verified_ngo=_env_bool('REQUIRE_VERIFIED_NGO', 'false'),
            otel_enabled=_env_bool('OTEL_ENABLED', 'true'),
            otel_exporter_otlp_endpoint=os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT'),
            service_version=os.getenv('SERVICE_VERSION', '1.0.0')
        )
