# pharma_analytics/__init__.py
"""
Pharmacy Sales Analytics

This package contains:
- config: Configuration management (local .env + Streamlit Cloud)
- db: Database engine singleton and DataFrame query helper
- errors: ValidationError / StoreQueryError
- sorting: Generic sort + paginate for tables
- sales_kpi: KPI aggregation and rollup/raw-fact routing
- category_analysis: Hierarchical drill-down with top-N + Others
- dimension_analysis: "My pharmacy vs group" tables

Usage:
    from pharma_analytics.sales_kpi import handle_kpi_request
    from pharma_analytics.category_analysis import CategoryAnalysis
"""

from .config import config, Config
from .db import (
    get_db_engine,
    check_db_connection,
    reset_db_engine,
    read_frame,
)
from .errors import PharmaAnalyticsError, ValidationError, StoreQueryError
from .sorting import Page, sort_and_paginate

__all__ = [
    # Config
    'config',
    'Config',

    # Database
    'get_db_engine',
    'check_db_connection',
    'reset_db_engine',
    'read_frame',

    # Errors
    'PharmaAnalyticsError',
    'ValidationError',
    'StoreQueryError',

    # Tables
    'Page',
    'sort_and_paginate',
]

__version__ = '1.0.0'
