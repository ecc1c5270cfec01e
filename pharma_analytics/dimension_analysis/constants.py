# pharma_analytics/dimension_analysis/constants.py
"""
Constants for Dimension Analysis ("my pharmacy vs group" tables)
"""

# Dimension name -> SQL expression of its key
DIMENSIONS = {
    'product': 'ip.code_13_ref_id',
    'laboratory': 'gp.bcb_lab',
    'pharmacy': 'ip.pharmacy_id',
}

# Additive metrics loaded per (dimension_key, pharmacy_id)
METRICS = ['quantity', 'revenue', 'margin']

# Metrics a table can be ranked on
RANK_BASES = METRICS

DEFAULT_RANK_BASIS = 'revenue'
