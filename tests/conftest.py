"""
Pytest configuration and fixtures for the Cube League Draft Bot tests.

This file provides test isolation and shared fixtures.
"""
import asyncio
import os
import pytest

# Ensure environment is set up before any imports happen
os.environ.setdefault("GUILD_ID", "669356687294988350")
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("SUPABASE_URL", "https://league.supabase.test")
os.environ.setdefault("SUPABASE_KEY", "test-service-key")

from tests.fake_store import FakeStore  # noqa: E402


def _store_backed_services():
    """Every service singleton that talks to the store."""
    from services import (
        auth_service,
        season_service,
        team_service,
        card_pool_service,
        draft_pick_service,
        draft_order_service,
        draft_queue_service,
        auto_draft_service,
        draft_session_service,
        notification_service,
        vote_service,
    )
    return [
        auth_service, season_service, team_service, card_pool_service,
        draft_pick_service, draft_order_service, draft_queue_service,
        auto_draft_service, draft_session_service, notification_service,
        vote_service,
    ]


@pytest.fixture(autouse=True)
def reset_singleton_state():
    """
    Reset any singleton/global state between tests.

    This prevents test pollution from global state in services.
    """
    yield  # Run test

    # Reset the pick broadcaster so subscriptions never leak between tests
    try:
        import services.pick_broadcast_service as broadcast
        broadcast._broadcaster = None
    except ImportError:
        pass

    # Forget any injected clients
    for service in _store_backed_services():
        service._client = None
        if hasattr(service, '_cached_client'):
            service._cached_client = None

    try:
        from utils.logging import clear_context
        clear_context()
    except ImportError:
        pass

    # Reset config singleton to ensure clean state
    try:
        import config as cfg
        cfg._config = None
    except (ImportError, AttributeError):
        pass


@pytest.fixture
def store() -> FakeStore:
    """In-memory store wired into every service singleton."""
    fake = FakeStore()
    for service in _store_backed_services():
        service._client = fake
    return fake


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use default event loop policy."""
    return asyncio.DefaultEventLoopPolicy()
