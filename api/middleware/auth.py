# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and user context extraction.

This module provides Flask decorators that validate bearer tokens, build the
request's ``UserContext`` in ``flask.g`` and gate NGO-only endpoints.
"""

from functools import wraps
from flask import request, jsonify, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from models.entities import UserContext
from models.enums import UserRole
from services.auth import TokenValidationError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


def _problem(error_type: str, title: str, status: int, detail: str):
    response = jsonify(current_app.hal_formatter.build_error_response(
        error_type, title, status, detail, request.path
    ))
    response.status_code = status
    response.mimetype = "application/problem+json"
    return response


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation and user context building for
    protected endpoints.
    """

    def __init__(self, auth_service):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: JWT authentication service
        """
        self.auth_service = auth_service

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        return None

    def build_user_context(self, token_payload: Dict[str, Any], request_info: Dict[str, Any]) -> UserContext:
        """
        Build user context from validated token payload and request information.

        Args:
            token_payload: Decoded JWT payload
            request_info: Request metadata (IP, user agent)

        Returns:
            UserContext object for request processing
        """
        return UserContext(
            user_id=str(token_payload["sub"]),
            role=token_payload["role"],
            email=token_payload.get("email"),
            name=token_payload.get("name"),
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent")
        )

    def get_request_info(self) -> Dict[str, Any]:
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', '')
        }

    def authenticate(self):
        """
        Authenticate the current request.

        Returns:
            Tuple of (UserContext, None) on success or (None, error response)
        """
        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")

            token = self.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token")
                return None, _problem(
                    "authentication-required", "Authentication Required", 401,
                    "Missing authorization token"
                )

            try:
                token_payload = self.auth_service.validate_token(token)
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(
                    f"Authentication failed: {str(e)}",
                    extra={"user_id": self.auth_service.extract_user_id(token)}
                )
                return None, _problem("invalid-token", "Invalid Token", 401, str(e))

            user_context = self.build_user_context(token_payload, self.get_request_info())
            span.set_attributes({
                "auth.result": "success",
                "user.id": user_context.user_id,
                "user.role": user_context.role.value
            })
            logger.debug(
                "Authentication successful",
                extra={"user_id": user_context.user_id, "ip_address": user_context.ip_address}
            )
            return user_context, None


def require_auth(f: Callable) -> Callable:
    """
    Decorator to require JWT authentication for Flask routes.

    The validated ``UserContext`` is stored in ``g.user_context``.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_context, error = current_app.auth_middleware.authenticate()
        if error is not None:
            return error
        g.user_context = user_context
        return f(*args, **kwargs)

    return decorated_function


def require_role(role: UserRole) -> Callable:
    """
    Decorator to require authentication and a specific role.

    Args:
        role: Required user role

    Returns:
        Decorator function
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        @require_auth
        def decorated_function(*args, **kwargs):
            user_context = g.user_context
            if user_context.role != role:
                logger.warning(
                    f"Authorization failed: role '{role.value}' required",
                    extra={"user_id": user_context.user_id, "role": user_context.role.value}
                )
                return _problem(
                    "insufficient-permissions", "Insufficient Permissions", 403,
                    f"This endpoint requires the {role.value} role"
                )
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def optional_auth(f: Callable) -> Callable:
    """
    Decorator for optional authentication (user context if a valid token is present).

    Anonymous or invalid-token requests proceed with ``g.user_context`` set to None.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.user_context = None
        if current_app.auth_middleware.extract_token_from_request():
            user_context, error = current_app.auth_middleware.authenticate()
            if error is None:
                g.user_context = user_context
        return f(*args, **kwargs)

    return decorated_function


def current_principal() -> Optional[UserContext]:
    """
    The caller as the access policy sees it.

    NGO callers are resolved through the store so their NGO profile is
    available for affordance decisions.
    """
    user_context = g.get('user_context')
    if user_context is None or user_context.role != UserRole.NGO:
        return user_context

    resolved = current_app.case_store.get_user_with_ngo_profile(user_context.user_id)
    if resolved is None:
        return user_context
    return resolved.model_copy(update={
        "ip_address": user_context.ip_address,
        "user_agent": user_context.user_agent
    })
