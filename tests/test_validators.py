# tests/test_validators.py
from dataclasses import FrozenInstanceError
from datetime import date, datetime

import pytest

from pharma_analytics.errors import ValidationError
from pharma_analytics.sales_kpi.models import DateRange, KpiRequest
from pharma_analytics.sales_kpi.validators import (
    normalize_hierarchy_request,
    normalize_kpi_request,
    normalize_path,
    parse_date,
)

JANUARY = {'start': '2024-01-01', 'end': '2024-01-31'}


class TestDateRange:

    @pytest.mark.parametrize("payload", [
        {},
        {'dateRange': None},
        {'dateRange': {'start': '2024-01-01'}},
        {'dateRange': {'end': '2024-01-31'}},
        {'dateRange': {'start': '', 'end': '2024-01-31'}},
        None,
    ])
    def test_missing_date_range(self, payload):
        with pytest.raises(ValidationError, match="Date range is required"):
            normalize_kpi_request(payload)

    @pytest.mark.parametrize("bounds", [
        {'start': 'not-a-date', 'end': '2024-01-31'},
        {'start': '2024-01-01', 'end': '2024-02-30'},
        {'start': '2024-13-01', 'end': '2024-12-31'},
    ])
    def test_invalid_date_format(self, bounds):
        with pytest.raises(ValidationError, match="Invalid date format"):
            normalize_kpi_request({'dateRange': bounds})

    @pytest.mark.parametrize("keyword", ['today', 'now', 'tomorrow', 'yesterday', '1', '2024', '20240101'])
    def test_keywords_and_partial_dates_rejected(self, keyword):
        with pytest.raises(ValidationError, match="Invalid date format"):
            normalize_kpi_request({'dateRange': {'start': keyword, 'end': keyword}})

    def test_start_after_end_rejected(self):
        with pytest.raises(ValidationError):
            normalize_kpi_request({'dateRange': {'start': '2024-02-01', 'end': '2024-01-31'}})

    def test_parses_dates(self):
        request = normalize_kpi_request({'dateRange': JANUARY})
        assert request.date_range == DateRange(date(2024, 1, 1), date(2024, 1, 31))

    def test_datetime_string_keeps_date_part(self):
        assert parse_date('2024-03-05T00:00:00Z') == date(2024, 3, 5)

    def test_date_objects_accepted(self):
        assert parse_date(datetime(2024, 3, 5, 12, 30)) == date(2024, 3, 5)
        assert parse_date(date(2024, 3, 5)) == date(2024, 3, 5)

    def test_non_string_is_not_a_date(self):
        assert parse_date(20240101) is None
        assert parse_date(None) is None


class TestOptionalFields:

    def test_absent_fields_are_omitted(self):
        request = normalize_kpi_request({'dateRange': JANUARY})
        assert request.comparison_date_range is None
        assert request.product_codes is None
        assert request.laboratory_codes is None
        assert request.category_codes is None
        assert request.pharmacy_ids is None

    def test_comparison_range_copied_when_complete(self):
        request = normalize_kpi_request({
            'dateRange': JANUARY,
            'comparisonDateRange': {'start': '2023-01-01', 'end': '2023-01-31'},
        })
        assert request.comparison_date_range == DateRange(date(2023, 1, 1), date(2023, 1, 31))

    @pytest.mark.parametrize("comparison", [
        {'start': '2023-01-01'},
        {'start': '2023-01-01', 'end': 'garbage'},
        'last-year',
    ])
    def test_incomplete_comparison_range_dropped(self, comparison):
        request = normalize_kpi_request({'dateRange': JANUARY, 'comparisonDateRange': comparison})
        assert request.comparison_date_range is None

    def test_code_lists_copied(self):
        request = normalize_kpi_request({
            'dateRange': JANUARY,
            'productCodes': ['111', '222'],
            'laboratoryCodes': ['222', '333'],
            'categoryCodes': ['444'],
            'pharmacyIds': ['ph-1'],
        })
        assert request.product_codes == ('111', '222')
        assert request.pharmacy_ids == ('ph-1',)
        assert request.combined_codes == ('111', '222', '333', '444')
        assert request.has_code_filter is True

    @pytest.mark.parametrize("value", ['111', [1, 2], {'code': '111'}, ['111', None]])
    def test_invalid_code_lists_dropped(self, value):
        request = normalize_kpi_request({'dateRange': JANUARY, 'productCodes': value})
        assert request.product_codes is None
        assert request.has_code_filter is False

    def test_request_is_immutable(self):
        request = normalize_kpi_request({'dateRange': JANUARY})
        with pytest.raises(FrozenInstanceError):
            request.pharmacy_ids = ('ph-1',)

    def test_already_normalized_request_passes_through(self):
        request = KpiRequest(date_range=DateRange(date(2024, 1, 1), date(2024, 1, 31)))
        assert normalize_kpi_request(request) is request


class TestHierarchyPayload:

    def test_path_and_request(self):
        request, path = normalize_hierarchy_request({
            'request': {'dateRange': JANUARY},
            'path': ['Médicaments', 'Douleur'],
        })
        assert request.date_range.start == date(2024, 1, 1)
        assert path == ['Médicaments', 'Douleur']

    def test_missing_path_is_root(self):
        _, path = normalize_hierarchy_request({'request': {'dateRange': JANUARY}})
        assert path == []

    def test_path_deeper_than_five_rejected(self):
        with pytest.raises(ValidationError):
            normalize_path(['a', 'b', 'c', 'd', 'e', 'f'])

    def test_path_of_five_accepted(self):
        assert normalize_path(['a', 'b', 'c', 'd', 'e']) == ['a', 'b', 'c', 'd', 'e']

    def test_path_must_be_strings(self):
        with pytest.raises(ValidationError):
            normalize_path(['a', 3])
