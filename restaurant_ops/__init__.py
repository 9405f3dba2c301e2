"""
Restaurant operations dashboard backend.

Weekly sales-data entry workflow: gated entry orchestrator, aggregation
engine and the debounced category-summary cache.
"""

__version__ = "0.1.0"
