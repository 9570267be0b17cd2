"""Aggregation module for dashboard summaries.

Boundary:
- Derives per-user summaries, rankings, time series and chart payloads
  from already-fetched records
- Forbidden: database access, mutation of input records
"""
