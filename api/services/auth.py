# SPDX-License-Identifier: Apache-2.0

"""
Authentication service for JWT access token validation.

Tokens are issued elsewhere and signed with a shared HS256 secret. This
module only verifies them and extracts the claims the API relies on:
``sub`` (user id), ``role`` and the optional ``email`` and ``name``.
"""

import jwt
from typing import Dict, Any, Optional
from opentelemetry import trace
import logging

from models.enums import UserRole

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("sub", "role")


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """
    JWT validation service.

    Args:
        secret: Shared HS256 secret
        algorithm: Signing algorithm
        leeway_seconds: Clock skew tolerated on ``exp``/``nbf``
    """

    def __init__(self, secret: str, algorithm: str = "HS256", leeway_seconds: int = 0):
        self.secret = secret
        self.algorithm = algorithm
        self.leeway_seconds = leeway_seconds

    @classmethod
    def from_settings(cls, settings) -> "AuthService":
        return cls(settings.jwt_secret, settings.jwt_algorithm)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate and decode an access token.

        Args:
            token: JWT token string to validate

        Returns:
            Decoded token payload with ``role`` normalized to a UserRole

        Raises:
            TokenValidationError: If token is invalid, expired or lacks claims
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attribute("auth.operation", "validate_token")

            try:
                payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    leeway=self.leeway_seconds,
                    options={"verify_exp": True}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            missing = [claim for claim in REQUIRED_CLAIMS if not payload.get(claim)]
            if missing:
                span.set_attribute("auth.validation_result", "missing_claims")
                raise TokenValidationError(f"Token is missing claims: {', '.join(missing)}")

            try:
                payload["role"] = UserRole(payload["role"])
            except ValueError:
                span.set_attribute("auth.validation_result", "invalid_role")
                raise TokenValidationError(f"Unknown role in token: {payload['role']!r}")

            span.set_attributes({
                "auth.validation_result": "success",
                "user.id": str(payload["sub"])
            })
            logger.debug(
                "Token validated successfully",
                extra={"user_id": payload["sub"], "role": payload["role"].value}
            )
            return payload

    def extract_user_id(self, token: str) -> Optional[str]:
        """Read ``sub`` without verifying the signature; for logging only."""
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        return payload.get("sub")
