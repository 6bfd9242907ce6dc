"""Root conftest: shared test configuration."""

import os

# Tests never reach a real database or real secrets
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("CRON_SECRET_KEY", "test-cron-secret")
os.environ.setdefault("ADMIN_SYNC_KEY", "test-admin-key")
os.environ.setdefault("LOG_FORMAT", "text")
