"""Core Layer — parsing, calendar arithmetic, variations and statistics. No DB, no HTTP.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions that depend on the clock accept now/today so callers and tests can pin it

Design Decisions:
    - Functional core separated from imperative shell: updaters and routes own the IO
"""
