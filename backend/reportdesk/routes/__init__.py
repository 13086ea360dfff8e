# Routes package init
"""
ReportDesk Backend: API Routes Package
=======================================

Route Inventory:
    - reports.py:  /api/v1/reports/...   (report CRUD and status)
    - health.py:   GET /health           (service health check)

Routes stay thin: resolve the caller and session, call the service,
wrap the result. Access rules live in the services package.
"""
