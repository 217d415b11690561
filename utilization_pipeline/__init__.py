"""
Weekly utilization ingestion and consolidation.

Reads the current utilization export (source A) and the deployment plan
(source B), normalizes both into per-person weekly percentages and merges
them into one series where source A wins.
"""

__version__ = "0.1.0"
