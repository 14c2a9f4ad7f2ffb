"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the challenge engine, including
a throwaway SQLite database, the managers, the service and ready-made
challenges.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from repquest.challenges import ChallengeCreate, ChallengeManager, CreatorType
from repquest.config import reset_config
from repquest.db.sqlite import Database, reset_db
from repquest.parts import PartManager
from repquest.service import ChallengeService
from repquest.verification import VerificationManager


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()

    os.environ["REPQUEST_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.engine.dispose()
    reset_db()
    reset_config()
    if "REPQUEST_DB_PATH" in os.environ:
        del os.environ["REPQUEST_DB_PATH"]


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def challenges(db: Database) -> ChallengeManager:
    """Challenge manager over the test database."""
    return ChallengeManager(db)


@pytest.fixture
def parts(db: Database, challenges: ChallengeManager) -> PartManager:
    """Part manager over the test database."""
    return PartManager(db, challenges)


@pytest.fixture
def verifications(
    db: Database, parts: PartManager, challenges: ChallengeManager
) -> VerificationManager:
    """Verification manager over the test database."""
    return VerificationManager(db, parts, challenges)


@pytest.fixture
def service(db: Database) -> ChallengeService:
    """Challenge service over the test database."""
    return ChallengeService(db)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def pushups_data() -> ChallengeCreate:
    """Three days a week for two weeks of pushups."""
    return ChallengeCreate(
        creator="user:alice",
        creator_type=CreatorType.USER,
        level=1,
        exercise="Pushups",
        reps=10,
        sets=3,
        frequency=3,
        duration=2,
    )


@pytest.fixture
def pushups(
    db: Database,
    challenges: ChallengeManager,
    parts: PartManager,
    pushups_data: ChallengeCreate,
):
    """A created, closed pushups challenge with its six parts."""
    with db.get_session() as session:
        challenge = challenges.create_challenge(pushups_data, session=session)
        parts.schedule_parts(challenge, session=session)
    return challenge


@pytest.fixture
def open_pushups(pushups, challenges: ChallengeManager):
    """The pushups challenge, opened, with bob accepted and carol invited."""
    challenges.set_open(pushups.id, True)
    challenges.invite(pushups.id, ["user:bob", "user:carol"])
    challenges.accept(pushups.id, "user:bob")
    return pushups


@pytest.fixture
def open_challenge(service: ChallengeService) -> dict:
    """An open 2x2 challenge created through the service, bob accepted.

    Returns a dict with the challenge id and its part ids in week/day order.
    """
    challenge = service.create_challenge(
        creator="user:alice",
        creator_type="User",
        level=2,
        exercise="Squats",
        reps=15,
        frequency=2,
        duration=2,
    )["challenge"]
    service.open_challenge(challenge=challenge)
    service.invite_to_challenge(challenge=challenge, users=["user:bob"])
    service.accept_challenge(challenge=challenge, user="user:bob")
    part_ids = [p["id"] for p in service.get_parts(challenge=challenge)]
    return {"challenge": challenge, "parts": part_ids}


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()


@pytest.fixture
def cli_app():
    """Get the CLI app for testing."""
    from repquest.cli import app
    return app
