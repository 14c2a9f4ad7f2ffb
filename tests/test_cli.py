"""Tests for the CLI interface."""

import os
import re
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from repquest.cli import app
from repquest.config import reset_config
from repquest.db.sqlite import get_db, reset_db
from repquest.service import ChallengeService

ID_PATTERN = re.compile(r"Challenge created: ([0-9a-f-]{36})")


@pytest.fixture(autouse=True)
def setup_test_db():
    """Set up a test database for each test."""
    reset_db()
    reset_config()

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    os.environ["REPQUEST_DB_PATH"] = db_path

    yield

    # Cleanup
    reset_db()
    reset_config()
    if "REPQUEST_DB_PATH" in os.environ:
        del os.environ["REPQUEST_DB_PATH"]
    if Path(db_path).exists():
        Path(db_path).unlink()


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def create_challenge(runner: CliRunner, *extra: str) -> str:
    result = runner.invoke(
        app,
        [
            "challenge", "create", "Pushups",
            "--creator", "user:alice",
            "--level", "2",
            "--frequency", "3",
            "--duration", "2",
            *extra,
        ],
    )
    assert result.exit_code == 0, result.stdout
    match = ID_PATTERN.search(result.stdout)
    assert match, result.stdout
    return match.group(1)


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "fitness challenges" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout


class TestChallengeCommands:
    """Tests for the challenge command group."""

    def test_create(self, runner: CliRunner):
        """Test creating a challenge reports parts and points."""
        result = runner.invoke(
            app,
            [
                "challenge", "create", "Pushups",
                "--creator", "user:alice",
                "--level", "2",
                "--frequency", "3",
                "--duration", "2",
            ],
        )
        assert result.exit_code == 0
        assert "Challenge created:" in result.stdout
        assert "6 parts, 20 points each, 42 bonus points" in result.stdout

    def test_create_invalid_level(self, runner: CliRunner):
        """Test a validation error exits with status 1."""
        result = runner.invoke(
            app,
            [
                "challenge", "create", "Pushups",
                "--creator", "user:alice",
                "--level", "4",
                "--frequency", "3",
                "--duration", "2",
            ],
        )
        assert result.exit_code == 1
        assert "Level must be an integer between 1 and 3." in result.stdout

    def test_create_group_challenge(self, runner: CliRunner):
        """Test --group marks the creator as a group."""
        challenge = create_challenge(runner, "--group", "--minutes", "30")

        service = ChallengeService(get_db())
        assert service.get_creator(challenge=challenge) == [
            {"creator": "user:alice", "creator_type": "Group"}
        ]

    def test_open_invite_accept_flow(self, runner: CliRunner):
        """Test the usual roster flow end to end."""
        challenge = create_challenge(runner)

        assert runner.invoke(app, ["challenge", "open", challenge]).exit_code == 0
        result = runner.invoke(app, ["challenge", "invite", challenge, "user:bob", "user:carol"])
        assert result.exit_code == 0
        assert "Invited 2 user(s)" in result.stdout
        result = runner.invoke(app, ["challenge", "accept", challenge, "user:bob"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["challenge", "show", challenge])
        assert result.exit_code == 0
        assert "Pushups" in result.stdout
        assert "OPEN" in result.stdout
        assert "user:bob" in result.stdout
        assert "user:carol" in result.stdout

        result = runner.invoke(app, ["challenge", "list", "user:bob"])
        assert result.exit_code == 0
        assert "Pushups" in result.stdout

    def test_accept_uninvited(self, runner: CliRunner):
        """Test an error record prints and exits with status 1."""
        challenge = create_challenge(runner)

        result = runner.invoke(app, ["challenge", "accept", challenge, "user:mallory"])

        assert result.exit_code == 1
        assert "Error:" in result.stdout
        assert "User is not invited to this challenge." in result.stdout

    def test_open_missing(self, runner: CliRunner):
        """Test opening an unknown challenge."""
        result = runner.invoke(app, ["challenge", "open", "nonexistent-id"])
        assert result.exit_code == 1
        assert "Challenge not found." in result.stdout

    def test_show_missing(self, runner: CliRunner):
        """Test showing an unknown challenge."""
        result = runner.invoke(app, ["challenge", "show", "nonexistent-id"])
        assert result.exit_code == 1

    def test_delete_force(self, runner: CliRunner):
        """Test deleting without confirmation."""
        challenge = create_challenge(runner)

        result = runner.invoke(app, ["challenge", "delete", challenge, "--force"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["challenge", "delete", challenge, "--force"])
        assert result.exit_code == 1
        assert "Challenge not found." in result.stdout

    def test_delete_cancelled(self, runner: CliRunner):
        """Test declining the confirmation keeps the challenge."""
        challenge = create_challenge(runner)

        result = runner.invoke(app, ["challenge", "delete", challenge], input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.stdout
        assert ChallengeService(get_db()).get_challenge_details(challenge=challenge) != []


class TestPartAndVerifyCommands:
    """Tests for the part and verify command groups."""

    @pytest.fixture
    def ready(self, runner: CliRunner) -> dict:
        challenge = create_challenge(runner)
        runner.invoke(app, ["challenge", "open", challenge])
        runner.invoke(app, ["challenge", "invite", challenge, "user:bob"])
        runner.invoke(app, ["challenge", "accept", challenge, "user:bob"])
        parts = ChallengeService(get_db()).get_parts(challenge=challenge)
        return {"challenge": challenge, "parts": [p["id"] for p in parts]}

    def test_complete_part(self, runner: CliRunner, ready):
        """Test completing a part then checking progress."""
        result = runner.invoke(app, ["part", "complete", ready["parts"][0], "user:bob"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["challenge", "progress", ready["challenge"], "user:bob"])
        assert result.exit_code == 0
        assert "1 / 6" in result.stdout

    def test_complete_every_part(self, runner: CliRunner, ready):
        """Test the last part announces the completed challenge."""
        for part in ready["parts"][:-1]:
            runner.invoke(app, ["part", "complete", part, "user:bob"])

        result = runner.invoke(app, ["part", "complete", ready["parts"][-1], "user:bob"])

        assert result.exit_code == 0
        assert "Challenge complete!" in result.stdout

    def test_complete_not_accepted(self, runner: CliRunner, ready):
        """Test completing as a stranger fails."""
        result = runner.invoke(app, ["part", "complete", ready["parts"][0], "user:zoe"])
        assert result.exit_code == 1
        assert "User is not an accepted participant" in result.stdout

    def test_request_and_approve(self, runner: CliRunner, ready):
        """Test the verification round trip."""
        part = ready["parts"][0]
        result = runner.invoke(
            app,
            [
                "verify", "request", part,
                "--requester", "user:bob",
                "--approver", "user:alice",
                "--evidence", "media://clip",
            ],
        )
        assert result.exit_code == 0
        assert "Verification request created" in result.stdout

        result = runner.invoke(app, ["verify", "list", "--pending"])
        assert result.exit_code == 0
        assert "pending" in result.stdout

        result = runner.invoke(app, ["verify", "approve", part, "user:bob", "--approver", "user:alice"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["verify", "approve", part, "user:bob"])
        assert result.exit_code == 1
        assert "Pending verification request not found" in result.stdout

    def test_list_empty(self, runner: CliRunner):
        """Test listing with no requests."""
        result = runner.invoke(app, ["verify", "list"])
        assert result.exit_code == 0
        assert "No verification requests found." in result.stdout
