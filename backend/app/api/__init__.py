"""API Layer — FastAPI routes, access middleware and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON (or CSV on format=csv)
"""
