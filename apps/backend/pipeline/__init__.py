"""
Job persistence pipeline.

Page snapshots and duplicate-aware storage of normalized job documents in
PostgreSQL.
"""

__version__ = "0.1.0"
