import os

import pytest

# Settings are read at import time; these must be in place before app modules load.
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("MONGODB_TRANSACTIONS", "false")


class FakeTransaction:
    """Drop-in for ``app.db.transaction``: yields a marker session and records how the block ended."""

    def __init__(self):
        self.session = object()
        self.outcome = None

    def __call__(self):
        return self

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, exc_type, exc, tb):
        self.outcome = "aborted" if exc_type else "committed"
        return False


@pytest.fixture
def fake_transaction():
    return FakeTransaction()
