# pharma_analytics/sales_kpi/constants.py
"""
Constants for Sales KPI Module

Centralized configuration for:
- Rollup coverage and routing
- Pareto analysis
- Store table names
- Wire (response) field names
"""

from datetime import date

# =====================================================================
# ROUTING
# =====================================================================

# First month covered by mv_sales_kpi_monthly. Ranges starting earlier
# are always computed from raw facts.
ROLLUP_START_DATE = date(2024, 1, 1)

# =====================================================================
# PARETO ANALYSIS
# =====================================================================

PARETO_THRESHOLD = 0.8

# Float tolerance when comparing cumulative revenue to the threshold
PARETO_TOLERANCE = 1e-9

# =====================================================================
# STORE TABLES
# =====================================================================

SALES_TABLE = "data_sales"
SNAPSHOT_TABLE = "data_inventorysnapshot"
INTERNAL_PRODUCT_TABLE = "data_internalproduct"
GLOBAL_PRODUCT_TABLE = "data_globalproduct"
ROLLUP_TABLE = "mv_sales_kpi_monthly"

# =====================================================================
# CONCURRENCY
# =====================================================================

COMPARISON_MAX_WORKERS = 2

# =====================================================================
# RESPONSE FIELDS
# =====================================================================

# KpiMetrics attribute -> wire key
METRIC_FIELDS = {
    "quantity_sold": "quantite_vendue",
    "revenue_ttc": "ca_ttc",
    "market_share_revenue_pct": "part_marche_ca_pct",
    "market_share_margin_pct": "part_marche_marge_pct",
    "selection_reference_count": "nb_references_selection",
    "pareto_reference_count": "nb_references_80pct_ca",
    "margin_amount": "montant_marge",
    "margin_rate_pct": "taux_marge_pct",
}

# Request payload keys for the optional code filters
CODE_FILTER_KEYS = {
    "product_codes": "productCodes",
    "laboratory_codes": "laboratoryCodes",
    "category_codes": "categoryCodes",
    "pharmacy_ids": "pharmacyIds",
}
