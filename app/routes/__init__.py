"""
Routes package for the stub case dashboard.

This package contains route blueprints:
- api: health check and the authentication endpoint
- views: login page and role dashboards
"""
