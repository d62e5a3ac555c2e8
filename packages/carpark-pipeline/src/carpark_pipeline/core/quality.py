from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import asdict, dataclass
from numbers import Real

from pyuca import Collator

from carpark_pipeline.core.exceptions import AggregateEmptyError, ValidationRejected
from carpark_pipeline.core.models import ParkingFacility

logger = logging.getLogger(__name__)

_collator: Collator | None = None


def collation_key(value: str) -> tuple[int, ...]:
    """Root (DUCET) collation key.

    Not tailored for zh-Hant: unified CJK ideographs get implicit weights in
    code point order, which only approximates radical-stroke order and differs
    from a zh-Hant stroke collation. Pass ``sort_key`` to ``FacilityQualityGate``
    for a tailored ordering.
    """
    global _collator
    if _collator is None:
        _collator = Collator()
    return _collator.sort_key(value)


@dataclass(frozen=True)
class QualityRejectedSample:
    name: str
    reason: str


@dataclass(frozen=True)
class QualityResult:
    accepted: list[ParkingFacility]
    rejected_count: int
    rejected_samples: list[QualityRejectedSample]


def reject_reason(facility: ParkingFacility) -> str | None:
    if not isinstance(facility.name, str) or not facility.name.strip():
        return "missing_name"
    for label, value in (("latitude", facility.latitude), ("longitude", facility.longitude)):
        if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
            return f"invalid_{label}"
    if not (-90 <= facility.latitude <= 90):
        return "latitude_out_of_range"
    if not (-180 <= facility.longitude <= 180):
        return "longitude_out_of_range"
    return None


def validate_facility(facility: ParkingFacility) -> bool:
    return reject_reason(facility) is None


def ensure_valid(facility: ParkingFacility) -> ParkingFacility:
    reason = reject_reason(facility)
    if reason is not None:
        raise ValidationRejected(f"{facility.name!r}: {reason}")
    return facility


class FacilityQualityGate:
    def __init__(
        self,
        reject_sample_size: int = 5,
        sort_key: Callable[[str], object] = collation_key,
    ) -> None:
        if reject_sample_size < 0:
            raise ValueError("reject_sample_size must be >= 0")
        self._reject_sample_size = reject_sample_size
        self._sort_key = sort_key

    def filter_and_sort(self, facilities: list[ParkingFacility]) -> QualityResult:
        accepted: list[ParkingFacility] = []
        rejected_samples: list[QualityRejectedSample] = []
        for facility in facilities:
            try:
                accepted.append(ensure_valid(facility))
            except ValidationRejected as exc:
                logger.warning(
                    "facility_rejected",
                    extra={"component": "carpark_pipeline", "reason": str(exc), "record": asdict(facility)},
                )
                if len(rejected_samples) < self._reject_sample_size:
                    rejected_samples.append(
                        QualityRejectedSample(name=str(facility.name), reason=reject_reason(facility) or "")
                    )
        rejected = len(facilities) - len(accepted)
        if not accepted:
            raise AggregateEmptyError(
                f"no valid facilities: rejected={rejected}, total={len(facilities)}"
            )
        accepted.sort(key=lambda facility: self._sort_key(facility.name))
        return QualityResult(
            accepted=accepted,
            rejected_count=rejected,
            rejected_samples=rejected_samples,
        )
