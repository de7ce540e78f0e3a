"""
Age norm resolution.

Maps an optional age onto one of the AgeBucket breakpoints and returns the
population reference values for that bucket. Upper bounds are inclusive:
25 resolves to 18-25, 50 to 36-50, 65 to 51-65. Unknown age resolves to the
26-35 bucket. There is no error path.
"""

from __future__ import annotations

import bisect
import logging
from typing import TYPE_CHECKING

from sleep_score_engine.core.constants import AgeBucket

if TYPE_CHECKING:
    from sleep_score_engine.schemas.models import AgeNorm

    from .config import ScoringConfig

logger = logging.getLogger(__name__)

_BUCKETS_BY_UPPER_BOUND: tuple[AgeBucket, ...] = tuple(sorted(AgeBucket, key=lambda bucket: bucket.value))
_UPPER_BOUNDS: tuple[int, ...] = tuple(bucket.value for bucket in _BUCKETS_BY_UPPER_BOUND)


def resolve_age_bucket(age: int | None) -> AgeBucket:
    """Return the bucket whose inclusive upper bound is the first one >= age."""
    if age is None:
        return AgeBucket.get_default()
    index = bisect.bisect_left(_UPPER_BOUNDS, age)
    if index >= len(_BUCKETS_BY_UPPER_BOUND):
        return AgeBucket.AGE_65_PLUS
    return _BUCKETS_BY_UPPER_BOUND[index]


def resolve_age_norm(age: int | None, config: ScoringConfig) -> AgeNorm:
    """Return the population norm for an optional age."""
    bucket = resolve_age_bucket(age)
    logger.debug("Resolved age %s to norm bucket %s", age, bucket.label)
    return config.age_norms[bucket]
