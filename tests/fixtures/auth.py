from typing import Callable, Dict
from uuid import uuid4

import pytest

from movie_reviews.core.security import create_access_token

# ─────────────────────────────────────────────────────────────
# 🔐 Token + Auth Fixtures for Testing
# ─────────────────────────────────────────────────────────────


@pytest.fixture
def auth_headers() -> Callable[[str], Dict[str, str]]:
    """Build `Authorization` headers carrying an access token for `user_id`."""
    def _headers(user_id: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}
    return _headers


@pytest.fixture
def author_id() -> str:
    return str(uuid4())


@pytest.fixture
def other_user_id() -> str:
    return str(uuid4())
