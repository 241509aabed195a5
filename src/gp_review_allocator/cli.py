from __future__ import annotations

import csv
import random
from pathlib import Path

import typer
from rich import print, print_json
from rich.table import Table

from .config import load_settings
from .db import db_cursor, load_sql
from .errors import AllocationError, InvalidRequestError, NoEligibleApplicationsError, UnknownAdminError
from .logging_utils import configure_console_logging
from .models import ADMIN_ROLE, DistributionLogic
from .notifier import SmtpNotifier, notify_reviewers
from .postgres import PostgresApplicationStore, PostgresAssignmentStore, PostgresIdentityStore
from .reports import assignments_table, build_summary, page_count, summary_table, workload_table
from .schemas import parse_request
from .service import allocate

app = typer.Typer(help="GP application reviewer assignment CLI.")

SQL_DIR = Path(__file__).resolve().parents[2] / "sql"


@app.callback()
def main() -> None:
    configure_console_logging(load_settings().log_level)


def read_email_file(path: Path) -> list[str]:
    """Collect emails from a CSV export or a plain one-per-line list."""
    emails: list[str] = []
    with path.open(newline="", encoding="utf-8") as handle:
        for row in csv.reader(handle):
            emails.extend(cell.strip() for cell in row if "@" in cell)
    return emails


@app.command("init-db")
def init_db() -> None:
    """Create schema and tables."""
    sql = load_sql(SQL_DIR / "001_init.sql")
    with db_cursor() as cursor:
        cursor.execute(sql)
    print("[green]Database initialized.[/green]")


@app.command("seed")
def seed() -> None:
    """Insert seed data."""
    sql = load_sql(SQL_DIR / "seed.sql")
    with db_cursor() as cursor:
        cursor.execute(sql)
    print("[green]Seed data inserted.[/green]")


@app.command("assign")
def assign(
    email: list[str] | None = typer.Option(None, "--email", "-e", help="Reviewer email, repeatable."),
    emails_file: Path | None = typer.Option(None, exists=True, dir_okay=False, help="CSV of reviewer emails."),
    assigned_by: str = typer.Option(..., help="Email of the admin triggering the run."),
    ratings_per_app: int | None = typer.Option(None, help="Reviewers to add per application."),
    logic: DistributionLogic = typer.Option(DistributionLogic.BALANCED, case_sensitive=False),
    seed: int | None = typer.Option(None, help="Seed for the random policy."),
    notify: bool = typer.Option(True, "--notify/--no-notify", help="Email reviewers their new workload."),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """Assign reviewers to every eligible application."""
    settings = load_settings()
    emails = list(email or [])
    if emails_file is not None:
        emails.extend(read_email_file(emails_file))

    try:
        with db_cursor() as cursor:
            identities = PostgresIdentityStore(cursor)
            admin = identities.find_by_email(assigned_by)
            if admin is None or admin.role != ADMIN_ROLE:
                raise UnknownAdminError(assigned_by)
            request = parse_request(
                {
                    "reviewerEmails": emails,
                    "ratingsPerApp": (
                        ratings_per_app if ratings_per_app is not None else settings.default_ratings_per_app
                    ),
                    "logic": logic,
                    "assignedBy": admin.id,
                },
                max_ratings_per_app=settings.max_ratings_per_app,
            )
            outcome = allocate(
                request,
                identities=identities,
                applications=PostgresApplicationStore(cursor),
                assignments=PostgresAssignmentStore(cursor),
                rng=random.Random(seed) if seed is not None else None,
            )
    except NoEligibleApplicationsError as exc:
        print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=2)
    except InvalidRequestError as exc:
        print(f"[red]Invalid {exc.field}: {exc.message}[/red]")
        raise typer.Exit(code=1)
    except AllocationError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    email_results = []
    if notify:
        email_results = notify_reviewers(
            outcome.reviewers,
            outcome.created_counts(),
            SmtpNotifier(settings),
            settings,
        )
        delivered = [result.reviewer_id for result in email_results if result.success]
        if delivered:
            with db_cursor() as cursor:
                PostgresAssignmentStore(cursor).mark_notified(outcome.batch_id, delivered)

    summary = build_summary(outcome, email_results)
    if as_json:
        print_json(data=summary.to_dict())
        return

    print(summary_table(summary))
    print(workload_table(summary))
    if summary.failures:
        print(f"[yellow]{len(summary.failures)} assignments were not created:[/yellow]")
        for failure in summary.failures:
            print(
                f"  application {failure.draft.application_id} -> "
                f"reviewer {failure.draft.reviewer_id}: {failure.reason}"
            )


@app.command("queue")
def queue() -> None:
    """Show applications eligible for reviewer assignment."""
    with db_cursor() as cursor:
        applications = PostgresApplicationStore(cursor).list_eligible()

    if not applications:
        print("[yellow]No eligible applications.[/yellow]")
        return

    table = Table(title="Eligible Applications")
    table.add_column("ID", justify="right")
    table.add_column("Application")
    table.add_column("Company")
    table.add_column("Qualification")
    for application in applications:
        table.add_row(
            str(application.id),
            application.unique_id,
            application.company_name,
            application.admin_qualification_status,
        )
    print(table)


@app.command("batch")
def batch(batch_id: str = typer.Argument(..., help="Batch id printed by assign.")) -> None:
    """Show the live assignments created by one allocation run."""
    with db_cursor() as cursor:
        records = PostgresAssignmentStore(cursor).list_batch(batch_id)

    if not records:
        print(f"[yellow]No live assignments for batch {batch_id}.[/yellow]")
        return
    print(assignments_table(f"Batch {batch_id}", records))


@app.command("assignments")
def assignments(
    reviewer_email: str = typer.Argument(..., help="Reviewer email."),
    page: int = typer.Option(1, min=1),
    limit: int = typer.Option(20, min=1, max=100),
) -> None:
    """Show one reviewer's open and finished assignments, newest first."""
    with db_cursor() as cursor:
        reviewer = PostgresIdentityStore(cursor).find_by_email(reviewer_email)
        if reviewer is None:
            print(f"[red]No account found for {reviewer_email}.[/red]")
            raise typer.Exit(code=1)
        records, total = PostgresAssignmentStore(cursor).list_for_reviewer(
            reviewer.id,
            offset=(page - 1) * limit,
            limit=limit,
        )

    print(
        f"[bold]Total:[/bold] {total} | "
        f"[bold]Page:[/bold] {page}/{page_count(total, limit)}"
    )
    if not records:
        print("[yellow]No assignments on this page.[/yellow]")
        return
    print(assignments_table(f"Assignments for {reviewer.email}", records))


@app.command("workload")
def workload() -> None:
    """Show live assignment counts per reviewer by status."""
    with db_cursor() as cursor:
        rows = PostgresAssignmentStore(cursor).workload_by_status()

    table = Table(title="Reviewer Workload")
    table.add_column("Reviewer")
    table.add_column("Pending", justify="right")
    table.add_column("In Review", justify="right")
    table.add_column("Completed", justify="right")
    table.add_column("Declined", justify="right")
    for row in rows:
        table.add_row(
            row["email"],
            str(row["pending"]),
            str(row["in_review"]),
            str(row["completed"]),
            str(row["declined"]),
        )
    print(table)


if __name__ == "__main__":
    app()
