# SPDX-License-Identifier: Apache-2.0

"""
Nearby-case discovery for NGOs.

Operational cases inside a radius are ranked most severe first, then
closest first. Assignment state is not filtered here; exclusivity is only
enforced when a case is claimed.
"""

import logging
import math
from typing import List, Optional, Tuple, Union

from opentelemetry import trace

from domain.access import CaseAccessPolicy
from domain.exceptions import Forbidden, InvalidArgument
from domain.geo import GeoPoint, distance_km
from models.entities import Case
from models.enums import CaseSeverity

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_RADIUS_KM = 5.0

SEVERITY_RANK = {
    CaseSeverity.CRITICAL: 1,
    CaseSeverity.URGENT: 2,
    CaseSeverity.MODERATE: 3,
    CaseSeverity.LOW: 4,
}
UNRANKED = 999


def severity_rank(severity: Optional[CaseSeverity]) -> int:
    """Rank used for ordering; absent or unknown severity sorts last."""
    return SEVERITY_RANK.get(severity, UNRANKED)


class NgoMatcher:
    """
    Finds and ranks operational cases near an NGO.

    Args:
        store: CaseStore backend
        policy: Access policy deciding who may match
        default_radius_km: Radius used when the caller passes none
    """

    def __init__(self, store, policy: CaseAccessPolicy, default_radius_km: float = DEFAULT_RADIUS_KM):
        self.store = store
        self.policy = policy
        self.default_radius_km = default_radius_km

    def nearby(
        self,
        acting_user_id: str,
        origin: Union[GeoPoint, Tuple[float, float]],
        radius_km: Optional[float] = None,
    ) -> List[Case]:
        """
        List operational cases within ``radius_km`` of ``origin``.

        Args:
            acting_user_id: ID of the acting user
            origin: GeoPoint or (latitude, longitude) pair
            radius_km: Search radius in kilometres

        Returns:
            Cases ordered by (severity rank, distance)

        Raises:
            InvalidArgument: Non-finite origin or invalid radius
            Forbidden: Actor is not an NGO with a profile
        """
        with tracer.start_as_current_span("matching.nearby") as span:
            point = GeoPoint.coerce(origin)
            radius = self.default_radius_km if radius_km is None else radius_km
            if isinstance(radius, bool) or not isinstance(radius, (int, float)) \
                    or not math.isfinite(radius) or radius < 0:
                raise InvalidArgument(f"Radius must be a finite, non-negative number, got {radius!r}")

            principal = self.store.get_user_with_ngo_profile(acting_user_id)
            if not self.policy.can_match(principal):
                raise Forbidden("Only NGO users with a profile can search nearby cases")

            span.set_attribute("matching.radius_km", float(radius))

            ranked = []
            for case in self.store.list_operational_cases():
                distance = distance_km(point, GeoPoint(case.latitude, case.longitude))
                if distance <= radius:
                    ranked.append((severity_rank(case.severity), distance, case))

            # sort() is stable: full ties keep storage order
            ranked.sort(key=lambda item: (item[0], item[1]))
            span.set_attribute("matching.result_count", len(ranked))

            logger.debug(
                f"Found {len(ranked)} cases within {radius} km",
                extra={'user_id': acting_user_id, 'radius_km': radius, 'result_count': len(ranked)}
            )
            return [case for _, _, case in ranked]
