import logging
import math
from typing import Iterable, List, Optional

from lrv.directory.interfaces import ReferenceRangeDirectory
from lrv.directory.records import ReferenceRange
from lrv.governance.cache import BatchCache, is_missing

logger = logging.getLogger(__name__)


def sex_matches(rr: ReferenceRange, sex: str) -> bool:
    rs = (rr.sex or "U").upper()
    return rs == "U" or rs == (sex or "").upper()


def age_matches(rr: ReferenceRange, age: Optional[float]) -> bool:
    # an unknown age never satisfies a bound
    if rr.age_min is not None and (age is None or age < rr.age_min):
        return False
    if rr.age_max is not None and (age is None or age > rr.age_max):
        return False
    return True


def _specificity(rr: ReferenceRange):
    sex_rank = 1 if (rr.sex or "U").upper() == "U" else 0
    bounds = (rr.age_min is not None) + (rr.age_max is not None)
    if bounds == 2:
        span = rr.age_max - rr.age_min
    else:
        span = math.inf
    return (sex_rank, 2 - bounds, span)


def select_range(
    ranges: Iterable[ReferenceRange],
    *,
    sex: str,
    age: Optional[float],
    tie_break: str = "first",
) -> Optional[ReferenceRange]:
    candidates: List[ReferenceRange] = [r for r in ranges if sex_matches(r, sex) and age_matches(r, age)]
    if not candidates:
        return None

    if tie_break == "first":
        return candidates[0]
    if tie_break == "most_specific":
        # min() keeps the earliest of equally specific ranges
        return min(candidates, key=_specificity)
    raise ValueError(f"Unknown tie-break policy: {tie_break}")


def select_reference_range(
    canonical_code: str,
    *,
    sex: str,
    age: Optional[float],
    directory: ReferenceRangeDirectory,
    cache: "BatchCache[str, List[ReferenceRange]]",
    tie_break: str = "first",
) -> Optional[ReferenceRange]:
    ranges = cache.lookup(canonical_code)
    if is_missing(ranges):
        logger.debug("reference range cache miss: %s", canonical_code)
        ranges = cache.store(canonical_code, list(directory.find_all_by_code(canonical_code)))

    return select_range(ranges, sex=sex, age=age, tie_break=tie_break)
