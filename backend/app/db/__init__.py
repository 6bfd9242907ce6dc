"""Database layer: SQLAlchemy Base shared by every model.

Invariants:
    - Single async engine per process (initialized via init_db)
    - All sessions are async (AsyncSession)
"""
