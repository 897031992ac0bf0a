# tests/conftest.py
"""
Global test bootstrap
- Sets env BEFORE any `movie_reviews` import (settings and limiter read it at import)
- Makes SlowAPI rate-limiting test-friendly (bypass by default)
- Keeps rate-limit counters isolated per run (namespace)
- Pulls in the shared fixtures
"""

from __future__ import annotations

import os
import random

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set before importing the app)
# ──────────────────────────────────────────────────────────────────────────────
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-movie-reviews")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("DATABASE_DSN", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REVIEWS_BACKEND", "memory")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Fixtures (db, app, auth)
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *      # noqa: E402,F401,F403
from tests.fixtures.app import *     # noqa: E402,F401,F403
from tests.fixtures.auth import *    # noqa: E402,F401,F403
