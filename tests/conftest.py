"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from config.settings import AppConfig, DebateLimits, PersistenceConfig
from web.audience_hub import AudienceHub
from web.auth_utils import ModeratorIdentity
from web.event_router import ModeratorContext, PrivilegedEventRouter
from web.moderation_store import ModerationStore
from tests.fakes import FakePersistence


@pytest.fixture
def limits() -> DebateLimits:
    return DebateLimits(
        max_title_length=20,
        max_description_length=50,
        max_question_length=30,
        max_closed_answers=3,
    )


@pytest.fixture
def store() -> ModerationStore:
    return ModerationStore()


@pytest.fixture
def persistence() -> FakePersistence:
    return FakePersistence()


@pytest.fixture
def hub() -> AudienceHub:
    return AudienceHub()


@pytest.fixture
def router(store, persistence, hub, limits) -> PrivilegedEventRouter:
    return PrivilegedEventRouter(store, persistence, hub, limits)  # type: ignore[arg-type]


@pytest.fixture
def alice(router) -> ModeratorContext:
    return router.attach(ModeratorIdentity("alice", 1), object(), "socket-alice")


@pytest.fixture
def bob(router) -> ModeratorContext:
    return router.attach(ModeratorIdentity("bob", 2), object(), "socket-bob")


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        persistence=PersistenceConfig(
            database_path=str(tmp_path / "moderation.db"),
            timeout_seconds=2.0,
        ),
    )


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
