"""Services Layer — updaters, upserts, access control, users and cron orchestration.

Invariants:
    - Services receive an AsyncSession and provider Protocols; they never build clients
    - Updaters commit their own work; upsert helpers never commit

Design Decisions:
    - One updater module per data source for locality
"""
