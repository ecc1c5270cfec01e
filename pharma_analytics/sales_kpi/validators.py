# pharma_analytics/sales_kpi/validators.py
"""
Request Normalizer for the Sales KPI engine.

Turns a loosely-shaped filter payload (parsed JSON body) into a canonical,
immutable KpiRequest. Validation happens once, here, at the boundary:
downstream components only ever see KpiRequest.

Rules:
- dateRange.start / dateRange.end are required and must parse as dates
- comparisonDateRange is kept only if both bounds are present and parse
- productCodes / laboratoryCodes / categoryCodes / pharmacyIds are kept
  only if they are lists of strings; anything else is dropped
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from ..errors import ValidationError
from .constants import CODE_FILTER_KEYS
from .models import DateRange, KpiRequest

logger = logging.getLogger(__name__)

# Breadcrumb depth limit for hierarchical drill-down
MAX_PATH_DEPTH = 5

# YYYY-MM-DD, optionally followed by a time part
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ].*)?$")


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a calendar date.

    Accepts date/datetime objects and ISO strings (a datetime string keeps
    only its date part). Keywords such as "today" or "now" are rejected.
    Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value.strip()):
        return None

    try:
        parsed = pd.to_datetime(value.strip(), format="ISO8601")
    except (ValueError, TypeError, OverflowError):
        return None

    if pd.isna(parsed):
        return None
    return parsed.date()


def _parse_range(raw: Any) -> Optional[DateRange]:
    """Parse a {start, end} mapping. None if either bound is missing or invalid."""
    if not isinstance(raw, Mapping):
        return None
    if not raw.get('start') or not raw.get('end'):
        return None

    start = parse_date(raw['start'])
    end = parse_date(raw['end'])
    if start is None or end is None:
        return None
    return DateRange(start=start, end=end)


def _string_list(value: Any) -> Optional[Tuple[str, ...]]:
    if not isinstance(value, (list, tuple)):
        return None
    if not all(isinstance(item, str) for item in value):
        return None
    return tuple(value)


def normalize_kpi_request(payload: Any) -> KpiRequest:
    """
    Validate and canonicalize a KPI request payload.

    Args:
        payload: dict shaped like
            {dateRange: {start, end}, comparisonDateRange?: {start, end},
             productCodes?: [...], laboratoryCodes?: [...],
             categoryCodes?: [...], pharmacyIds?: [...]}

    Returns:
        KpiRequest

    Raises:
        ValidationError: missing or malformed date range
    """
    if isinstance(payload, KpiRequest):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError("Date range is required")

    raw_range = payload.get('dateRange')
    if not isinstance(raw_range, Mapping) or not raw_range.get('start') or not raw_range.get('end'):
        raise ValidationError("Date range is required")

    date_range = _parse_range(raw_range)
    if date_range is None:
        raise ValidationError("Invalid date format")

    if date_range.start > date_range.end:
        raise ValidationError(
            f"Date range start ({date_range.start}) is after end ({date_range.end})"
        )

    comparison = _parse_range(payload.get('comparisonDateRange'))
    if payload.get('comparisonDateRange') is not None and comparison is None:
        logger.debug("Dropping incomplete or invalid comparisonDateRange")

    filters: Dict[str, Tuple[str, ...]] = {}
    for field_name, key in CODE_FILTER_KEYS.items():
        if key not in payload:
            continue
        values = _string_list(payload[key])
        if values is None:
            logger.debug(f"Dropping invalid {key}: expected a list of strings")
            continue
        filters[field_name] = values

    request = KpiRequest(
        date_range=date_range,
        comparison_date_range=comparison,
        **filters
    )

    logger.info(
        f"✅ Request validated: {date_range.start} → {date_range.end}, "
        f"comparison={comparison is not None}, "
        f"codes={len(request.combined_codes)}, "
        f"pharmacies={len(request.pharmacy_ids or ())}"
    )
    return request


def normalize_path(path: Any) -> List[str]:
    """
    Validate a breadcrumb path.

    Raises:
        ValidationError: not a list of strings, or deeper than MAX_PATH_DEPTH
    """
    if path is None:
        return []
    labels = _string_list(path)
    if labels is None:
        raise ValidationError("Path must be a list of category labels")
    if len(labels) > MAX_PATH_DEPTH:
        raise ValidationError(f"Path depth {len(labels)} exceeds maximum of {MAX_PATH_DEPTH}")
    return list(labels)


def normalize_hierarchy_request(payload: Any) -> Tuple[KpiRequest, List[str]]:
    """Validate a {request, path} hierarchical payload."""
    if not isinstance(payload, Mapping):
        raise ValidationError("Date range is required")
    request = normalize_kpi_request(payload.get('request'))
    return request, normalize_path(payload.get('path'))
