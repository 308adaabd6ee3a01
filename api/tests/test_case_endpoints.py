# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Endpoint tests for cases, adoptions and NGO discovery using the Flask test
client over the in-memory store.
"""

from unittest.mock import patch

from domain.exceptions import StorageError
from models.enums import CaseSeverity, CaseType

ORIGIN_QUERY = "lat=-23.5505&lng=-46.6333"

REPORT_BODY = {
    "title": "Injured dog near the market",
    "description": "Dog limping with a wounded paw",
    "type": "INJURED",
    "severity": "Critical",
    "lat": -23.5505,
    "lng": -46.6333,
    "animalType": "dog",
    "tags": "dog, street",
}


class TestAppFactory:

    def test_create_app_registers_routes(self, settings, store):
        from app import create_app

        application = create_app(settings, store)
        rules = {rule.rule for rule in application.url_map.iter_rules()}

        assert {
            '/api/healthz',
            '/api/cases',
            '/api/cases/<case_id>',
            '/api/cases/<case_id>/status',
            '/api/adoptions',
            '/api/adoptions/<case_id>',
            '/api/ngo/nearby-cases'
        } <= rules
        assert application.case_lifecycle.store is store


class TestHealthEndpoint:

    def test_healthz(self, client):
        response = client.get('/api/healthz')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['dependencies']['store']['backend'] == 'memory'


class TestReportAndRead:

    def test_report_requires_token(self, client):
        response = client.post('/api/cases', json=REPORT_BODY)

        assert response.status_code == 401
        assert response.mimetype == 'application/problem+json'
        assert response.get_json()['type'].endswith('/authentication-required')

    def test_invalid_token(self, client, citizen, auth_headers):
        response = client.post('/api/cases', json=REPORT_BODY, headers=auth_headers(citizen, secret='wrong-secret'))

        assert response.status_code == 401

    def test_report_and_get(self, client, citizen, auth_headers):
        response = client.post('/api/cases', json=REPORT_BODY, headers=auth_headers(citizen))

        assert response.status_code == 201
        created = response.get_json()
        assert created['type'] == 'INJURED'
        assert created['severity'] == 'Critical'
        assert created['status'] == 'Reported'
        assert created['tags'] == ['dog', 'street']
        assert created['reportedById'] == citizen.id
        assert created['assignedNgo'] is None
        assert 'edit' in created['_links']

        fetched = client.get(f"/api/cases/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.get_json()['title'] == REPORT_BODY['title']

    def test_report_validation_error(self, client, citizen, auth_headers):
        body = {**REPORT_BODY, 'lat': 'north'}
        response = client.post('/api/cases', json=body, headers=auth_headers(citizen))

        assert response.status_code == 400
        data = response.get_json()
        assert data['status'] == 400
        assert data['errors']

    def test_get_missing_case(self, client):
        response = client.get('/api/cases/507f1f77bcf86cd799439011')

        assert response.status_code == 404
        assert response.get_json()['instance'] == '/api/cases/507f1f77bcf86cd799439011'

    def test_list_excludes_adoptions(self, client, make_case):
        case = make_case()
        make_case(kind=CaseType.ADOPTION, title='Kittens')

        data = client.get('/api/cases').get_json()

        assert data['total'] == 1
        assert data['_embedded']['cases'][0]['id'] == case.id


class TestStatusEndpoint:

    def test_claim_without_status(self, client, make_case, ngo_a, auth_headers):
        user, profile = ngo_a
        case = make_case()

        response = client.patch(f'/api/cases/{case.id}/status', headers=auth_headers(user))

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'InProgress'
        assert data['assignedNgo'] == {'id': user.id, 'name': user.name, 'email': user.email}
        assert 'delete' in data['_links']
        assert 'claim' not in data['_links']

    def test_second_ngo_conflicts(self, client, make_case, ngo_a, ngo_b, auth_headers):
        case = make_case()
        client.patch(f'/api/cases/{case.id}/status', json={}, headers=auth_headers(ngo_a[0]))

        response = client.patch(f'/api/cases/{case.id}/status', json={}, headers=auth_headers(ngo_b[0]))

        assert response.status_code == 409
        assert response.get_json()['type'].endswith('/resource-conflict')

    def test_resolve_unclaimed_is_invalid_transition(self, client, make_case, ngo_a, auth_headers):
        case = make_case()

        response = client.patch(
            f'/api/cases/{case.id}/status', json={'status': 'Resolved'}, headers=auth_headers(ngo_a[0])
        )

        assert response.status_code == 409
        assert response.get_json()['type'].endswith('/invalid-transition')

    def test_blank_status_claims(self, client, make_case, ngo_a, auth_headers):
        case = make_case()

        response = client.patch(
            f'/api/cases/{case.id}/status', json={'status': '  '}, headers=auth_headers(ngo_a[0])
        )

        assert response.status_code == 200
        assert response.get_json()['status'] == 'InProgress'

    def test_unknown_status(self, client, make_case, ngo_a, auth_headers):
        case = make_case()

        response = client.patch(
            f'/api/cases/{case.id}/status', json={'status': 'Archived'}, headers=auth_headers(ngo_a[0])
        )

        assert response.status_code == 400

    def test_citizen_rejected_before_core(self, client, make_case, citizen, auth_headers):
        case = make_case()

        response = client.patch(f'/api/cases/{case.id}/status', json={}, headers=auth_headers(citizen))

        assert response.status_code == 403

    def test_ngo_without_profile_forbidden(self, client, make_case, ngo_without_profile, auth_headers):
        case = make_case()

        response = client.patch(f'/api/cases/{case.id}/status', json={}, headers=auth_headers(ngo_without_profile))

        assert response.status_code == 403


class TestUpdateEndpoint:

    def test_reporter_updates(self, client, make_case, citizen, auth_headers):
        case = make_case()

        response = client.put(
            f'/api/cases/{case.id}',
            json={'title': 'Dog moved to the park', 'status': 'Closed'},
            headers=auth_headers(citizen)
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data['title'] == 'Dog moved to the park'
        assert data['status'] == 'Reported'

    def test_other_user_forbidden(self, client, make_case, other_citizen, auth_headers):
        case = make_case()

        response = client.put(f'/api/cases/{case.id}', json={'title': 'Mine now'}, headers=auth_headers(other_citizen))

        assert response.status_code == 403


class TestDeleteEndpoints:

    def test_delete_scenario(self, client, store, make_case, ngo_a, ngo_b, auth_headers):
        case = make_case()
        client.patch(f'/api/cases/{case.id}/status', headers=auth_headers(ngo_a[0]))

        assert client.delete(f'/api/cases/{case.id}', headers=auth_headers(ngo_b[0])).status_code == 403
        response = client.delete(f'/api/cases/{case.id}', headers=auth_headers(ngo_a[0]))
        assert response.status_code == 200
        assert response.get_json()['id'] == case.id
        assert response.get_json()['assignedNgo']['email'] == ngo_a[0].email
        assert store.get_case(case.id) is None
        assert client.get(f'/api/cases/{case.id}').status_code == 404

    def test_unassigned_delete_forbidden(self, client, make_case, ngo_a, auth_headers):
        case = make_case()
        assert client.delete(f'/api/cases/{case.id}', headers=auth_headers(ngo_a[0])).status_code == 403

    def test_adoption_path(self, client, store, citizen, ngo_a, auth_headers):
        body = {k: v for k, v in REPORT_BODY.items() if k not in ('type', 'severity')}
        created = client.post('/api/adoptions', json=body, headers=auth_headers(citizen)).get_json()
        assert created['type'] == 'ADOPTION'
        assert created['severity'] is None

        listing = client.get('/api/adoptions').get_json()
        assert [c['id'] for c in listing['_embedded']['cases']] == [created['id']]

        # Operational path does not see adoption listings
        client.patch(f"/api/cases/{created['id']}/status", headers=auth_headers(ngo_a[0]))
        assert client.delete(f"/api/cases/{created['id']}", headers=auth_headers(ngo_a[0])).status_code == 404
        response = client.delete(f"/api/adoptions/{created['id']}", headers=auth_headers(ngo_a[0]))
        assert response.status_code == 200
        assert response.get_json()['type'] == 'ADOPTION'
        assert store.get_case(created['id']) is None


class TestNearbyEndpoint:

    def test_ranked_results(self, client, make_case, ngo_a, auth_headers):
        low = make_case(title='Low', severity=CaseSeverity.LOW)
        critical = make_case(title='Critical', severity=CaseSeverity.CRITICAL)
        urgent = make_case(title='Urgent', severity=CaseSeverity.URGENT)

        response = client.get(f'/api/ngo/nearby-cases?{ORIGIN_QUERY}', headers=auth_headers(ngo_a[0]))

        assert response.status_code == 200
        ids = [c['id'] for c in response.get_json()['_embedded']['cases']]
        assert ids == [critical.id, urgent.id, low.id]

    def test_radius_parameter(self, client, make_case, ngo_a, auth_headers):
        make_case(latitude=-23.5505 + 0.05)

        narrow = client.get(f'/api/ngo/nearby-cases?{ORIGIN_QUERY}&radiusKm=1', headers=auth_headers(ngo_a[0]))
        wide = client.get(f'/api/ngo/nearby-cases?{ORIGIN_QUERY}&radiusKm=10', headers=auth_headers(ngo_a[0]))

        assert narrow.get_json()['total'] == 0
        assert wide.get_json()['total'] == 1

    def test_missing_coordinates(self, client, ngo_a, auth_headers):
        response = client.get('/api/ngo/nearby-cases?lat=-23.5', headers=auth_headers(ngo_a[0]))
        assert response.status_code == 400

    def test_negative_radius(self, client, ngo_a, auth_headers):
        response = client.get(f'/api/ngo/nearby-cases?{ORIGIN_QUERY}&radiusKm=-2', headers=auth_headers(ngo_a[0]))
        assert response.status_code == 400

    def test_citizen_forbidden(self, client, citizen, auth_headers):
        response = client.get(f'/api/ngo/nearby-cases?{ORIGIN_QUERY}', headers=auth_headers(citizen))
        assert response.status_code == 403


class TestStorageFailure:

    def test_storage_error_is_503(self, client, store):
        with patch.object(store, 'list_operational_cases', side_effect=StorageError("mongo down")):
            response = client.get('/api/cases')

        assert response.status_code == 503
        assert response.get_json()['type'].endswith('/service-unavailable')
