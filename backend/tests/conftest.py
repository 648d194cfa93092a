"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real database or use a production secret
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production-use-only")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
