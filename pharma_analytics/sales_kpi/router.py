# pharma_analytics/sales_kpi/router.py
"""
Query Router: rollup (materialized view) vs raw facts.

The monthly rollup has no product grain and only covers whole months from
ROLLUP_START_DATE onward, so a request is eligible only when:
- start is the first day of its month
- end is the last day of its month
- start is not before the first rollup month
- there is no product / laboratory / category code filter

Pure function, no I/O.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date

from .constants import ROLLUP_START_DATE
from .models import DateRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteDecision:
    use_aggregate: bool
    is_start_of_month: bool
    is_end_of_month: bool
    is_within_rollup_range: bool
    no_code_filter: bool


def last_day_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def decide_route(
    date_range: DateRange,
    has_code_filter: bool,
    earliest_month: date = ROLLUP_START_DATE
) -> RouteDecision:
    """
    Decide whether the rollup can serve this date range.

    Args:
        date_range: Requested period
        has_code_filter: True when any product/laboratory/category code is set
        earliest_month: First day covered by the rollup

    Returns:
        RouteDecision (use_aggregate plus the individual checks)
    """
    is_start_of_month = date_range.start.day == 1
    is_end_of_month = date_range.end == last_day_of_month(date_range.end)
    is_within_rollup_range = date_range.start >= earliest_month
    no_code_filter = not has_code_filter

    decision = RouteDecision(
        use_aggregate=(
            is_start_of_month
            and is_end_of_month
            and is_within_rollup_range
            and no_code_filter
        ),
        is_start_of_month=is_start_of_month,
        is_end_of_month=is_end_of_month,
        is_within_rollup_range=is_within_rollup_range,
        no_code_filter=no_code_filter,
    )

    logger.info(
        f"🤔 Rollup eligibility {date_range.start} → {date_range.end}: "
        f"start_of_month={is_start_of_month}, end_of_month={is_end_of_month}, "
        f"in_range={is_within_rollup_range}, no_codes={no_code_filter} "
        f"→ {'rollup' if decision.use_aggregate else 'raw facts'}"
    )
    return decision
