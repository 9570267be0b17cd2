"""API module for finadmin.

Boundary:
- Authenticates admins, reads/deletes through the repository
- Returns payloads for the dashboard
- Forbidden: aggregation logic beyond calling the aggregation module
"""
