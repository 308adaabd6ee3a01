# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured problem responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Optional
from opentelemetry import trace
import logging

from domain.exceptions import (
    Conflict, DomainError, Forbidden, InvalidArgument, InvalidTransition, NotFound, StorageError
)
from services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

# Most specific class first: InvalidTransition is a Conflict
DOMAIN_ERROR_STATUS = [
    (InvalidArgument, 400, "Invalid Argument"),
    (NotFound, 404, "Resource Not Found"),
    (Forbidden, 403, "Insufficient Permissions"),
    (InvalidTransition, 409, "Invalid Status Transition"),
    (Conflict, 409, "Resource Conflict"),
]


def _problem_response(body, status: int):
    response = jsonify(body)
    response.status_code = status
    response.mimetype = "application/problem+json"
    return response


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with problem+json formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter, expose_details: bool = False):
        self.app = app
        self.hal_formatter = hal_formatter
        self.expose_details = expose_details
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(DomainError)
        def handle_domain_error(error):
            return self.handle_domain_error(error)

        @self.app.errorhandler(StorageError)
        def handle_storage_error(error):
            return self.handle_storage_error(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error):
            return self.handle_http_exception(error)

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def _status_for(self, error: DomainError):
        for error_class, status, title in DOMAIN_ERROR_STATUS:
            if isinstance(error, error_class):
                return status, title
        return 400, "Bad Request"

    def handle_domain_error(self, error: DomainError):
        """
        Render a business-rule error as a client error.

        Args:
            error: Domain error raised by the case core

        Returns:
            Problem response with the mapped status code
        """
        status, title = self._status_for(error)
        with tracer.start_as_current_span("error_handler.domain_error") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": status,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error.error_type,
                    "status_code": status,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method,
                    "ip_address": request.remote_addr
                }
            )

            validation_errors: Optional[list] = getattr(error, "errors", None)
            body = self.hal_formatter.build_error_response(
                error.error_type,
                title,
                status,
                error.message,
                request.path,
                validation_errors
            )
            return _problem_response(body, status)

    def handle_storage_error(self, error: StorageError):
        """Storage failures are opaque to clients and reported as 503."""
        with tracer.start_as_current_span("error_handler.storage_error") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": 503,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                "Storage error",
                extra={
                    "error_type": error.error_type,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=error
            )

            detail = error.message if self.expose_details else "The storage backend is unavailable"
            body = self.hal_formatter.build_error_response(
                "service-unavailable", "Service Unavailable", 503, detail, request.path
            )
            return _problem_response(body, 503)

    def handle_http_exception(self, error: HTTPException):
        """Werkzeug errors such as unknown routes and wrong methods."""
        status = error.code or 500
        title = error.name
        error_type = title.lower().replace(" ", "-")
        detail = str(error.description) if error.description else title

        log = logger.error if status >= 500 else logger.warning
        log(
            f"HTTP error: {title}",
            extra={"status_code": status, "path": request.path, "method": request.method}
        )

        body = self.hal_formatter.build_error_response(error_type, title, status, detail, request.path)
        return _problem_response(body, status)

    def handle_unexpected_error(self, error: Exception):
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Problem response with status 500
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=error
            )

            detail = "An unexpected error occurred"
            if self.expose_details:
                detail = f"{error.__class__.__name__}: {str(error)}"

            body = self.hal_formatter.build_error_response(
                "internal-server-error", "Internal Server Error", 500, detail, request.path
            )
            return _problem_response(body, 500)
