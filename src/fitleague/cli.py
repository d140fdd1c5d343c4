#!/usr/bin/env python3
"""
fitleague CLI.

Operator tools for the league submission service.

Usage:
    fitleague rr --workout-type run --duration 90     # Score an entry
    fitleague rr --type rest
    fitleague queue LEAGUE_ID --status pending          # Validation queue with counts
    fitleague auto-approve --hours 48                   # Approve stale pending entries
    fitleague serve                                     # Run the API
"""

import argparse
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .db.repositories import LeagueRepository, SubmissionRepository
from .metrics.run_rate import QUALIFYING_RR, compute_rr, baseline_for_age
from .models.submissions import SubmissionStatus
from .services.submission_service import SubmissionService
from .services.validation_queue import ValidationQueueAggregator, current_submissions, member_index

console = Console()


def get_status_color(status: SubmissionStatus) -> str:
    """Get rich color for a submission status."""
    if status is SubmissionStatus.APPROVED:
        return "green"
    if status is SubmissionStatus.PENDING:
        return "yellow"
    return "red"


def cmd_rr(args):
    """Score an entry without saving it."""
    rr = compute_rr(
        submission_type=args.type,
        workout_type=args.workout_type,
        duration=args.duration,
        distance=args.distance,
        steps=args.steps,
        holes=args.holes,
        baseline=baseline_for_age(args.age),
    )
    color = "green" if args.type == "rest" or rr >= QUALIFYING_RR else "red"
    text = f"""
[cyan]Type:[/cyan]      {args.type}{f' ({args.workout_type})' if args.workout_type else ''}
[cyan]RR:[/cyan]        [{color}]{rr:.2f}[/{color}]
"""
    console.print(Panel(text, title="Run Rate", box=box.ROUNDED))
    return rr


def cmd_queue(args, submissions: SubmissionRepository, leagues: LeagueRepository):
    """Show a league's validation queue."""
    league = leagues.get_league(args.league_id)
    if league is None:
        console.print(f"[red]League {args.league_id} not found[/red]")
        return None

    members = member_index(leagues.list_members(args.league_id))
    scoped = current_submissions(submissions.list_by_league(args.league_id))
    if args.team:
        scoped = [s for s in scoped if members.get(s.league_member_id) and
                  members[s.league_member_id].team_id == args.team]
    queue = ValidationQueueAggregator().build(scoped, members=members, status=args.status)

    stats = queue["stats"]
    console.print()
    console.print(Panel(
        f"[bold]{league.name}[/bold]  total {stats.total}  "
        f"[yellow]pending {stats.pending}[/yellow]  "
        f"[green]approved {stats.approved}[/green]  "
        f"[red]rejected {stats.rejected}[/red]"
    ))

    table = Table(box=box.ROUNDED)
    table.add_column("Date", style="cyan")
    table.add_column("Member")
    table.add_column("Team")
    table.add_column("Type")
    table.add_column("RR", justify="right")
    table.add_column("Status")

    for submission in queue["submissions"][:args.limit]:
        member = members.get(submission.league_member_id)
        color = get_status_color(submission.status)
        table.add_row(
            submission.date,
            member.user_id if member else submission.league_member_id,
            (member.team_id if member else None) or "-",
            submission.workout_type or submission.type.value,
            f"{submission.points:.2f}",
            f"[{color}]{submission.status.value}[/{color}]",
        )

    console.print(table)
    console.print()
    return queue


def cmd_auto_approve(args, service: SubmissionService):
    """Approve pending entries older than the window."""
    approved = service.auto_approve_stale(hours=args.hours)
    console.print(f"Auto-approved [green]{len(approved)}[/green] submission(s)")
    return approved


def cmd_serve(args):
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "fitleague.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="fitleague - league submission scoring and validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", help="SQLite database path (defaults to the configured path)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    rr_p = subparsers.add_parser("rr", help="Compute the run rate of an entry")
    rr_p.add_argument("--type", choices=["workout", "rest"], default="workout")
    rr_p.add_argument("--workout-type", help="Activity (run, cycling, steps, golf, ...)")
    rr_p.add_argument("--duration", type=float, help="Duration in minutes")
    rr_p.add_argument("--distance", type=float, help="Distance in km")
    rr_p.add_argument("--steps", type=float)
    rr_p.add_argument("--holes", type=float)
    rr_p.add_argument("--age", type=int, help="Member age for the age-adjusted baseline")

    queue_p = subparsers.add_parser("queue", help="Show a league's validation queue")
    queue_p.add_argument("league_id")
    queue_p.add_argument("--status", choices=["all", "pending", "approved", "rejected",
                                              "rejected_resubmit", "rejected_permanent"])
    queue_p.add_argument("--team", help="Only this team")
    queue_p.add_argument("--limit", "-n", type=int, default=50, help="Rows to show")

    auto_p = subparsers.add_parser("auto-approve", help="Approve stale pending submissions")
    auto_p.add_argument("--hours", type=int, help="Pending age in hours (default from settings)")

    serve_p = subparsers.add_parser("serve", help="Run the API server")
    serve_p.add_argument("--host")
    serve_p.add_argument("--port", type=int)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "rr":
        cmd_rr(args)
    elif args.command == "serve":
        cmd_serve(args)
    elif args.command in ("queue", "auto-approve"):
        submissions = SubmissionRepository(args.db)
        leagues = LeagueRepository(args.db)
        if args.command == "queue":
            cmd_queue(args, submissions, leagues)
        else:
            cmd_auto_approve(args, SubmissionService(submission_repo=submissions, league_repo=leagues))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
