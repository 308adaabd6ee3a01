# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import jwt
import pytest

from config import Settings
from domain.access import CaseAccessPolicy
from domain.catalog import CaseCatalog
from domain.lifecycle import CaseLifecycle
from domain.matching import NgoMatcher
from models.entities import Case, NgoProfile, User
from models.enums import CaseSeverity, CaseType, UserRole
from services.memory_store import InMemoryCaseStore

# Set test environment
os.environ['ENVIRONMENT'] = 'test'

TEST_JWT_SECRET = 'test-secret-key'

# Rua Augusta, Sao Paulo
ORIGIN = (-23.5505, -46.6333)


@pytest.fixture
def store():
    """Fresh in-memory case store."""
    return InMemoryCaseStore()


@pytest.fixture
def citizen(store):
    """Citizen user who reports cases."""
    return store.add_user(User(email="maria@example.com", name="Maria Silva", role=UserRole.CITIZEN))


@pytest.fixture
def other_citizen(store):
    return store.add_user(User(email="joao@example.com", name="Joao Souza", role=UserRole.CITIZEN))


def _add_ngo(store, email, name, verified=True):
    user = store.add_user(User(email=email, name=name, role=UserRole.NGO))
    profile = store.add_ngo_profile(NgoProfile(user_id=user.id, organization_name=name, verified=verified))
    return user, profile


@pytest.fixture
def ngo_a(store):
    """NGO user with a verified profile, as (user, profile)."""
    return _add_ngo(store, "contato@patinhas.org", "Patinhas")


@pytest.fixture
def ngo_b(store):
    """Second NGO user with a verified profile, as (user, profile)."""
    return _add_ngo(store, "ajuda@focinhos.org", "Focinhos")


@pytest.fixture
def unverified_ngo(store):
    return _add_ngo(store, "novo@abrigo.org", "Abrigo Novo", verified=False)


@pytest.fixture
def ngo_without_profile(store):
    """NGO-role user that never completed an NGO profile."""
    return store.add_user(User(email="semperfil@example.org", name="Sem Perfil", role=UserRole.NGO))


@pytest.fixture
def policy():
    return CaseAccessPolicy()


@pytest.fixture
def lifecycle(store, policy):
    return CaseLifecycle(store, policy)


@pytest.fixture
def matcher(store, policy):
    return NgoMatcher(store, policy)


@pytest.fixture
def catalog(store):
    return CaseCatalog(store)


@pytest.fixture
def make_case(store, citizen):
    """Factory storing a case reported by ``citizen`` unless overridden."""
    def _make_case(**overrides):
        data = {
            "title": "Injured dog near the market",
            "description": "Dog limping with a wounded paw",
            "kind": CaseType.INJURED,
            "severity": CaseSeverity.URGENT,
            "latitude": ORIGIN[0],
            "longitude": ORIGIN[1],
            "reported_by": citizen.id,
            "animal_type": "dog",
            "animal_count": 1,
            "tags": ["dog", "injured"],
        }
        data.update(overrides)
        if data["kind"] == CaseType.ADOPTION and "severity" not in overrides:
            data["severity"] = None
        return store.create_case(Case(**data))

    return _make_case


@pytest.fixture
def settings():
    """Settings for an app backed by the in-memory store."""
    return Settings(
        environment='test',
        store_backend='memory',
        jwt_secret=TEST_JWT_SECRET,
        base_url='http://testserver',
        otel_enabled=False
    )


@pytest.fixture
def app(settings, store):
    """Flask application wired to the shared in-memory store."""
    from app import create_app

    application = create_app(settings, store)
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(user, secret=TEST_JWT_SECRET, **claims):
    """Mint an HS256 access token for ``user``."""
    payload = {
        "sub": user.id,
        "role": user.role.value,
        "email": user.email,
        "name": user.name,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user."""
    def _auth_headers(user, **claims):
        return {"Authorization": f"Bearer {make_token(user, **claims)}"}

    return _auth_headers
