"""Review interval policy per subscription tier."""
from typing import Optional

PREMIUM_REVIEW_INTERVALS = [1, 3, 7, 14, 30, 60]
FREE_REVIEW_INTERVALS = [1, 3]

PREMIUM_REVIEW_COUNT_OPTIONS = [2, 4, 6]
FREE_REVIEW_COUNT_OPTIONS = [2]

DEFAULT_REVIEW_COUNT_PREMIUM = 6
DEFAULT_REVIEW_COUNT_FREE = 2

MIN_REVIEW_COUNT = 1
MAX_REVIEW_COUNT_FREE = 2
MAX_REVIEW_COUNT_PREMIUM = 6


def default_review_count(is_premium: bool) -> int:
    return DEFAULT_REVIEW_COUNT_PREMIUM if is_premium else DEFAULT_REVIEW_COUNT_FREE


def max_review_count(is_premium: bool) -> int:
    return MAX_REVIEW_COUNT_PREMIUM if is_premium else MAX_REVIEW_COUNT_FREE


def review_count_options(is_premium: bool) -> list[int]:
    options = PREMIUM_REVIEW_COUNT_OPTIONS if is_premium else FREE_REVIEW_COUNT_OPTIONS
    return list(options)


def intervals_for(is_premium: bool, override_count: Optional[int] = None) -> list[int]:
    """Return the day offsets for review occurrences after a session.

    Args:
        is_premium: Whether the subscriber is on the premium tier.
        override_count: Per-task review count. None uses the tier default.

    Returns:
        The first ``count`` entries of the tier's interval table. On the free
        tier the count is clamped to the free maximum, so a task configured
        while premium keeps working after a downgrade.
    """
    count = override_count if override_count is not None else default_review_count(is_premium)
    count = max(MIN_REVIEW_COUNT, min(count, max_review_count(is_premium)))
    table = PREMIUM_REVIEW_INTERVALS if is_premium else FREE_REVIEW_INTERVALS
    return table[:count]
