# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for nearby-case ranking and catalog reads.
"""

from datetime import timedelta

import pytest

from domain.access import CaseAccessPolicy
from domain.exceptions import Forbidden, InvalidArgument, NotFound
from domain.geo import GeoPoint
from domain.matching import NgoMatcher, severity_rank
from models.base import utcnow
from models.enums import CaseSeverity, CaseType

ORIGIN = (-23.5505, -46.6333)


class TestNearby:
    """Ranking and filtering of cases around an NGO."""

    def test_ranks_by_severity_when_equidistant(self, matcher, make_case, ngo_a):
        low = make_case(title="Low", severity=CaseSeverity.LOW)
        critical = make_case(title="Critical", severity=CaseSeverity.CRITICAL)
        urgent = make_case(title="Urgent", severity=CaseSeverity.URGENT)

        results = matcher.nearby(ngo_a[0].id, ORIGIN, 5.0)

        assert [c.id for c in results] == [critical.id, urgent.id, low.id]

    def test_closer_case_first_within_same_severity(self, matcher, make_case, ngo_a):
        far = make_case(title="Far", latitude=ORIGIN[0] + 0.02)
        near = make_case(title="Near", latitude=ORIGIN[0] + 0.001)

        results = matcher.nearby(ngo_a[0].id, GeoPoint(*ORIGIN), 5.0)

        assert [c.id for c in results] == [near.id, far.id]

    def test_full_ties_keep_storage_order(self, matcher, store, make_case, ngo_a):
        now = utcnow()
        make_case(title="First", severity=CaseSeverity.CRITICAL, created_at=now - timedelta(minutes=5))
        make_case(title="Second", severity=CaseSeverity.CRITICAL, created_at=now)

        results = matcher.nearby(ngo_a[0].id, ORIGIN, 5.0)

        assert [c.id for c in results] == [c.id for c in store.list_operational_cases()]

    def test_radius_excludes_far_critical_case(self, matcher, make_case, ngo_a):
        moderate = make_case(title="Nearby moderate", severity=CaseSeverity.MODERATE)
        # About 11 km north
        make_case(title="Far critical", severity=CaseSeverity.CRITICAL, latitude=ORIGIN[0] + 0.1)

        results = matcher.nearby(ngo_a[0].id, ORIGIN, 5.0)

        assert [c.id for c in results] == [moderate.id]

    def test_default_radius(self, store, policy, make_case, ngo_a):
        make_case(title="Eight km away", latitude=ORIGIN[0] + 0.072)

        assert NgoMatcher(store, policy).nearby(ngo_a[0].id, ORIGIN) == []
        assert len(NgoMatcher(store, policy, default_radius_km=10.0).nearby(ngo_a[0].id, ORIGIN)) == 1

    def test_adoptions_excluded(self, matcher, make_case, ngo_a):
        make_case(title="Kittens", kind=CaseType.ADOPTION)

        assert matcher.nearby(ngo_a[0].id, ORIGIN, 5.0) == []

    def test_assigned_cases_still_listed(self, matcher, lifecycle, make_case, ngo_a, ngo_b):
        case = make_case()
        lifecycle.claim(case.id, ngo_b[0].id)

        results = matcher.nearby(ngo_a[0].id, ORIGIN, 5.0)

        assert [c.id for c in results] == [case.id]
        assert results[0].assigned_ngo_id == ngo_b[1].id

    def test_zero_radius_keeps_exact_match(self, matcher, make_case, ngo_a):
        case = make_case()
        assert [c.id for c in matcher.nearby(ngo_a[0].id, ORIGIN, 0)] == [case.id]

    @pytest.mark.parametrize("radius", [-1.0, float("nan"), float("inf")])
    def test_invalid_radius(self, matcher, ngo_a, radius):
        with pytest.raises(InvalidArgument):
            matcher.nearby(ngo_a[0].id, ORIGIN, radius)

    def test_non_finite_origin(self, matcher, ngo_a):
        with pytest.raises(InvalidArgument):
            matcher.nearby(ngo_a[0].id, (float("nan"), 0.0), 5.0)

    def test_citizen_forbidden(self, matcher, citizen):
        with pytest.raises(Forbidden):
            matcher.nearby(citizen.id, ORIGIN, 5.0)

    def test_ngo_without_profile_forbidden(self, matcher, ngo_without_profile):
        with pytest.raises(Forbidden):
            matcher.nearby(ngo_without_profile.id, ORIGIN, 5.0)

    def test_verified_requirement(self, store, make_case, unverified_ngo, ngo_a):
        make_case()
        matcher = NgoMatcher(store, CaseAccessPolicy(require_verified_ngo=True))

        with pytest.raises(Forbidden):
            matcher.nearby(unverified_ngo[0].id, ORIGIN, 5.0)
        assert len(matcher.nearby(ngo_a[0].id, ORIGIN, 5.0)) == 1

    def test_severity_rank_of_missing_severity(self):
        assert severity_rank(None) == 999
        assert severity_rank(CaseSeverity.CRITICAL) < severity_rank(CaseSeverity.LOW)


class TestCatalog:
    """Public listings."""

    def test_list_cases_excludes_adoptions_newest_first(self, catalog, make_case):
        now = utcnow()
        older = make_case(title="Older", created_at=now - timedelta(hours=2))
        make_case(title="Kittens", kind=CaseType.ADOPTION, created_at=now - timedelta(hours=1))
        newer = make_case(title="Newer", created_at=now)

        assert [c.id for c in catalog.list_cases()] == [newer.id, older.id]

    def test_list_adoptions(self, catalog, make_case):
        make_case()
        adoption = make_case(title="Kittens", kind=CaseType.ADOPTION)

        assert [c.id for c in catalog.list_adoptions()] == [adoption.id]

    def test_get_case(self, catalog, make_case):
        case = make_case()
        assert catalog.get_case(case.id) == case

        with pytest.raises(NotFound):
            catalog.get_case("507f1f77bcf86cd799439011")
