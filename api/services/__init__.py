# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - Storage backends, token validation and HAL formatting.
"""

from .store import ANY, CaseStore
from .memory_store import InMemoryCaseStore
from .auth import AuthService, TokenValidationError
from .hal import HalFormatter, HalLinkBuilder

__all__ = [
    "ANY",
    "CaseStore",
    "InMemoryCaseStore",
    "AuthService",
    "TokenValidationError",
    "HalFormatter",
    "HalLinkBuilder"
]
