"""Infrastructure Layer — provider clients, database session manager, logging.

Invariants:
    - Clients only map provider payloads to plain dicts / Quote values
    - All external calls wrapped with retry/timeout/error mapping

Design Decisions:
    - One shared resilient HTTP wrapper under every provider client
"""
