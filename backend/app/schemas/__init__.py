"""Pydantic Schemas: request/response validation for cron, admin and user endpoints.

Invariants:
    - Schemas validate at the system boundary (request bodies, cron reports)
    - Domain enums from core/ used for status fields
"""
