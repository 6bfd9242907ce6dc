"""Route Modules — one file per indicator or concern.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Parsing and statistics live in core/; routes shape queries and payloads

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
