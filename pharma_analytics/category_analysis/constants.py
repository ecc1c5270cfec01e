# pharma_analytics/category_analysis/constants.py
"""
Constants for Category Analysis (hierarchical drill-down)
"""

# Nodes shown individually before the rest is folded into "Others"
TOP_N = 10

# Breadcrumb depth limit (segment levels l0..l5 -> at most 5 parents)
MAX_DEPTH = 5

OTHERS_PREFIX = "Others"

# Store tables / columns
PRODUCT_ROLLUP_TABLE = "mv_product_stats_monthly"
GLOBAL_PRODUCT_TABLE = "data_globalproduct"
SEGMENT_COLUMN_TEMPLATE = "gp.bcb_segment_l{level}"

# Segment labels that are present but meaningless
INVALID_SEGMENT_LABELS = ['', 'NaN']
