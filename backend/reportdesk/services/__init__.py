# Services package init
"""
ReportDesk Backend: Services Layer
===================================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - report_policy: pure visibility / update / delete rules
    - ReportRepository: persistence primitives over an AsyncSession
    - ReportService: access controller combining the two
"""
