"""Command-line interface for repquest.

Built with Typer for commands and Rich for output.
"""

from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .challenges.schemas import CreatorType
from .config import configure_logging
from .db import get_db
from .service import ChallengeService

# Create the main app
app = typer.Typer(
    name="repquest",
    help="Run social fitness challenges: schedule, complete and verify.",
    no_args_is_help=True,
)

# Sub-apps for command groups
challenge_app = typer.Typer(help="Create challenges and manage their rosters.")
app.add_typer(challenge_app, name="challenge")

part_app = typer.Typer(help="Complete the scheduled parts of a challenge.")
app.add_typer(part_app, name="part")

verify_app = typer.Typer(help="Request and approve peer verification.")
app.add_typer(verify_app, name="verify")

# Rich console for pretty output
console = Console()


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (defaults to REPQUEST_LOG_LEVEL)"
    ),
) -> None:
    """Run social fitness challenges: schedule, complete and verify."""
    configure_logging(log_level)


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def get_service() -> ChallengeService:
    """Build a service over the configured database."""
    return ChallengeService(get_db())


def check(result: dict[str, Any]) -> dict[str, Any]:
    """Exit with status 1 if an action returned an error record."""
    if "error" in result:
        print_error(result["error"])
        raise typer.Exit(1)
    return result


def first_row(rows: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """First row of a query result, exiting on a storage error row."""
    if rows and "error" in rows[0]:
        print_error(rows[0]["error"])
        raise typer.Exit(1)
    return rows[0] if rows else None


def yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


# ============================================================================
# Challenge Commands
# ============================================================================


@challenge_app.command("create")
def challenge_create(
    exercise: str = typer.Argument(..., help="Exercise name, e.g. Pushups"),
    creator: str = typer.Option(..., "--creator", "-c", help="Creating user or group id"),
    group: bool = typer.Option(False, "--group", "-g", help="Creator is a group"),
    level: int = typer.Option(1, "--level", "-l", help="Difficulty level 1-3"),
    frequency: int = typer.Option(..., "--frequency", "-f", help="Days per week"),
    duration: int = typer.Option(..., "--duration", "-d", help="Number of weeks"),
    reps: Optional[int] = typer.Option(None, "--reps", help="Repetitions per set"),
    sets: Optional[int] = typer.Option(None, "--sets", help="Number of sets"),
    weight: Optional[float] = typer.Option(None, "--weight", help="Weight in kg"),
    minutes: Optional[float] = typer.Option(None, "--minutes", help="Minutes of exercise"),
) -> None:
    """Create a new challenge with one part per week and day."""
    service = get_service()
    result = check(service.create_challenge(
        creator=creator,
        creator_type=CreatorType.GROUP if group else CreatorType.USER,
        level=level,
        exercise=exercise,
        reps=reps,
        sets=sets,
        weight=weight,
        minutes=minutes,
        frequency=frequency,
        duration=duration,
    ))

    challenge_id = result["challenge"]
    parts = service.get_parts(challenge=challenge_id)
    points = first_row(service.get_part_points(part=parts[0]["id"]))
    bonus = first_row(service.get_challenge_points(challenge=challenge_id))
    print_success(f"Challenge created: {challenge_id}")
    console.print(
        f"[dim]{len(parts)} parts, {points['points']} points each, "
        f"{bonus['bonus_points']} bonus points[/dim]"
    )


@challenge_app.command("open")
def challenge_open(
    challenge: str = typer.Argument(..., help="Challenge ID"),
) -> None:
    """Open a challenge for completions and verification."""
    check(get_service().open_challenge(challenge=challenge))
    print_success(f"Challenge {challenge} is open")


@challenge_app.command("close")
def challenge_close(
    challenge: str = typer.Argument(..., help="Challenge ID"),
) -> None:
    """Close a challenge."""
    check(get_service().close_challenge(challenge=challenge))
    print_success(f"Challenge {challenge} is closed")


@challenge_app.command("delete")
def challenge_delete(
    challenge: str = typer.Argument(..., help="Challenge ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
) -> None:
    """Delete a challenge with its parts and verification requests."""
    if not force:
        confirm = typer.confirm(f"Delete challenge {challenge}?")
        if not confirm:
            console.print("[dim]Cancelled[/dim]")
            return

    check(get_service().delete_challenge(challenge=challenge))
    print_success(f"Deleted challenge {challenge}")


@challenge_app.command("invite")
def challenge_invite(
    challenge: str = typer.Argument(..., help="Challenge ID"),
    users: list[str] = typer.Argument(..., help="User ids to invite"),
) -> None:
    """Invite users to a challenge."""
    check(get_service().invite_to_challenge(challenge=challenge, users=users))
    print_success(f"Invited {len(users)} user(s)")


@challenge_app.command("accept")
def challenge_accept(
    challenge: str = typer.Argument(..., help="Challenge ID"),
    user: str = typer.Argument(..., help="Invited user id"),
) -> None:
    """Accept an invitation to a challenge."""
    check(get_service().accept_challenge(challenge=challenge, user=user))
    print_success(f"{user} accepted the challenge")


@challenge_app.command("leave")
def challenge_leave(
    challenge: str = typer.Argument(..., help="Challenge ID"),
    user: str = typer.Argument(..., help="User id"),
) -> None:
    """Leave a challenge, discarding all completed parts."""
    check(get_service().leave_challenge(challenge=challenge, user=user))
    print_success(f"{user} left the challenge")


@challenge_app.command("show")
def challenge_show(
    challenge: str = typer.Argument(..., help="Challenge ID"),
) -> None:
    """Show a challenge's definition and roster."""
    service = get_service()

    details = first_row(service.get_challenge_details(challenge=challenge))
    if details is None:
        print_error(f"Challenge not found: {challenge}")
        raise typer.Exit(1)

    creator = first_row(service.get_creator(challenge=challenge))
    is_open = first_row(service.is_open(challenge=challenge))["result"]
    bonus = first_row(service.get_challenge_points(challenge=challenge))

    extras = [
        f"{details[key]} {label}"
        for key, label in (("reps", "reps"), ("sets", "sets"), ("weight", "kg"), ("minutes", "min"))
        if details[key] is not None
    ]
    console.print(Panel(
        f"[bold]{details['exercise']}[/bold] (level {details['level']})\n"
        f"{', '.join(extras) or 'no targets'}\n"
        f"{details['frequency']} day(s)/week for {details['duration']} week(s)\n"
        f"Created by {creator['creator_type'].lower()} {creator['creator']}\n"
        f"Bonus: {bonus['bonus_points']} points\n"
        f"{'[green]OPEN[/green]' if is_open else '[yellow]CLOSED[/yellow]'}",
        style="cyan",
    ))

    invitees = service.get_invitees(challenge=challenge)
    if not invitees:
        console.print("[dim]Nobody invited yet. Use 'challenge invite'.[/dim]")
        return

    table = Table(title="Roster", show_header=True, header_style="bold magenta")
    table.add_column("User", style="cyan")
    table.add_column("Accepted", justify="center")
    table.add_column("Parts", justify="right")
    table.add_column("Completed", justify="center")

    for row in invitees:
        progress = first_row(service.get_progress(challenge=challenge, user=row["user"]))
        table.add_row(
            row["user"],
            yes_no(progress["accepted"]),
            f"{progress['parts_completed']}/{progress['total_parts']}",
            yes_no(progress["completed"]),
        )

    console.print(table)


@challenge_app.command("parts")
def challenge_parts(
    challenge: str = typer.Argument(..., help="Challenge ID"),
) -> None:
    """List the parts of a challenge."""
    parts = get_service().get_parts(challenge=challenge)
    first_row(parts)
    if not parts:
        print_error(f"Challenge not found: {challenge}")
        raise typer.Exit(1)

    table = Table(title="Parts", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Week", justify="right")
    table.add_column("Day", justify="right")
    table.add_column("Completed by", style="green")

    for part in parts:
        table.add_row(part["id"], str(part["week"]), str(part["day"]), ", ".join(part["completers"]) or "-")

    console.print(table)


@challenge_app.command("progress")
def challenge_progress(
    challenge: str = typer.Argument(..., help="Challenge ID"),
    user: str = typer.Argument(..., help="User id"),
) -> None:
    """Show one user's progress through a challenge."""
    progress = first_row(get_service().get_progress(challenge=challenge, user=user))
    if progress is None:
        print_error(f"{user} is not on the roster of {challenge}")
        raise typer.Exit(1)

    bar_width = 30
    filled = int((progress["percent"] / 100) * bar_width)
    bar = "[green]" + "#" * filled + "[/green]" + "-" * (bar_width - filled)
    console.print(f"  Progress: [{bar}] {progress['percent']:.1f}%")
    console.print(
        f"  Parts: {progress['parts_completed']} / {progress['total_parts']} "
        f"({progress['remaining']} remaining)"
    )
    if progress["completed"]:
        console.print("  Status: [bold green]COMPLETED[/bold green]")
    elif not progress["accepted"]:
        console.print("  Status: [yellow]invited, not accepted[/yellow]")


@challenge_app.command("list")
def challenge_list(
    user: str = typer.Argument(..., help="User id"),
) -> None:
    """List the challenges a user has accepted."""
    service = get_service()
    rows = service.get_challenges(user=user)
    first_row(rows)

    if not rows:
        console.print(f"[dim]{user} has not accepted any challenges.[/dim]")
        return

    table = Table(title=f"Challenges for {user}", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Open", justify="center")
    table.add_column("Completed", justify="center")

    for row in rows:
        details = first_row(service.get_challenge_details(challenge=row["challenge"]))
        table.add_row(
            row["challenge"],
            details["exercise"],
            yes_no(first_row(service.is_open(challenge=row["challenge"]))["result"]),
            yes_no(first_row(service.is_completed_challenge(challenge=row["challenge"], user=user))["result"]),
        )

    console.print(table)


# ============================================================================
# Part Commands
# ============================================================================


@part_app.command("complete")
def part_complete(
    part: str = typer.Argument(..., help="Part ID"),
    user: str = typer.Argument(..., help="User id"),
) -> None:
    """Mark a part as completed by a user."""
    service = get_service()
    check(service.complete_part(part=part, user=user))
    print_success(f"{user} completed part {part}")

    challenge = first_row(service.get_associated_challenge(part=part))
    if challenge and first_row(service.is_completed_challenge(challenge=challenge["challenge"], user=user))["result"]:
        console.print("[bold green]Challenge complete![/bold green]")


# ============================================================================
# Verification Commands
# ============================================================================


@verify_app.command("request")
def verify_request(
    part: str = typer.Argument(..., help="Part ID"),
    requester: str = typer.Option(..., "--requester", "-r", help="User asking for verification"),
    approver: str = typer.Option(..., "--approver", "-a", help="User asked to approve"),
    evidence: str = typer.Option(..., "--evidence", "-e", help="Evidence file reference"),
) -> None:
    """Ask another user to verify a completed part."""
    result = check(get_service().create_verification_request(
        part=part, requester=requester, approver=approver, evidence=evidence
    ))
    print_success(f"Verification request created: {result['verification_request']}")


@verify_app.command("approve")
def verify_approve(
    part: str = typer.Argument(..., help="Part ID"),
    requester: str = typer.Argument(..., help="User who asked for verification"),
    approver: Optional[str] = typer.Option(None, "--approver", "-a", help="Check the approver"),
) -> None:
    """Approve a pending verification request."""
    check(get_service().verify(part=part, requester=requester, approver=approver))
    print_success(f"Verified {requester}'s part {part}")


@verify_app.command("list")
def verify_list(
    approver: Optional[str] = typer.Option(None, "--approver", "-a", help="Filter by approver"),
    requester: Optional[str] = typer.Option(None, "--requester", "-r", help="Filter by requester"),
    challenge: Optional[str] = typer.Option(None, "--challenge", "-c", help="Filter by challenge"),
    pending: bool = typer.Option(False, "--pending", "-p", help="Only pending requests"),
) -> None:
    """List verification requests."""
    rows = get_service().get_verification_requests(
        approver=approver, requester=requester, challenge=challenge, pending_only=pending
    )
    first_row(rows)

    if not rows:
        console.print("[dim]No verification requests found.[/dim]")
        return

    table = Table(title="Verification Requests", show_header=True, header_style="bold magenta")
    table.add_column("Part", style="dim")
    table.add_column("Requester", style="cyan")
    table.add_column("Approver", style="green")
    table.add_column("Evidence")
    table.add_column("Status")

    for row in rows:
        table.add_row(
            row["part_id"],
            row["requester"],
            row["approver"],
            row["evidence"],
            "[green]approved[/green]" if row["approved"] else "[yellow]pending[/yellow]",
        )

    console.print(table)


# ============================================================================
# Version Command
# ============================================================================


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"repquest version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
