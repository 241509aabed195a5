from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from rich.table import Table

from .models import AssignmentRecord, InsertOutcome
from .notifier import EmailResult
from .service import AllocationOutcome


@dataclass(frozen=True)
class WorkloadEntry:
    reviewer_id: int
    email: str
    assigned_count: int
    resolution: str


@dataclass(frozen=True)
class AllocationSummary:
    batch_id: str
    total_applications: int
    total_assignments: int
    reviewer_count: int
    ratings_per_app: int
    logic: str
    workload: list[WorkloadEntry]
    email_results: list[EmailResult] = field(default_factory=list)
    failures: list[InsertOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "batchId": self.batch_id,
            "totalApplications": self.total_applications,
            "totalAssignments": self.total_assignments,
            "reviewerCount": self.reviewer_count,
            "ratingsPerApp": self.ratings_per_app,
            "logic": self.logic,
            "workload": [
                {"email": entry.email, "assignedCount": entry.assigned_count}
                for entry in self.workload
            ],
            "emailResults": [result.to_dict() for result in self.email_results],
            "failures": [
                {
                    "applicationId": failure.draft.application_id,
                    "reviewerId": failure.draft.reviewer_id,
                    "reason": failure.reason,
                }
                for failure in self.failures
            ],
        }


def build_workload(outcome: AllocationOutcome) -> list[WorkloadEntry]:
    counts = outcome.created_counts()
    return [
        WorkloadEntry(
            reviewer_id=reviewer.id,
            email=reviewer.email,
            assigned_count=counts.get(reviewer.id, 0),
            resolution=reviewer.resolution.value,
        )
        for reviewer in outcome.reviewers
    ]


def build_summary(
    outcome: AllocationOutcome,
    email_results: Iterable[EmailResult] = (),
) -> AllocationSummary:
    return AllocationSummary(
        batch_id=outcome.batch_id,
        total_applications=len(outcome.applications),
        total_assignments=len(outcome.created),
        reviewer_count=len(outcome.reviewers),
        ratings_per_app=outcome.request.ratings_per_app,
        logic=outcome.request.logic.value,
        workload=build_workload(outcome),
        email_results=list(email_results),
        failures=outcome.failures,
    )


def summary_table(summary: AllocationSummary) -> Table:
    table = Table(title=f"Allocation Batch {summary.batch_id}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Eligible applications", str(summary.total_applications))
    table.add_row("Assignments created", str(summary.total_assignments))
    table.add_row("Reviewers", str(summary.reviewer_count))
    table.add_row("Ratings per app", str(summary.ratings_per_app))
    table.add_row("Logic", summary.logic)
    table.add_row("Failed rows", str(len(summary.failures)))
    return table


def workload_table(summary: AllocationSummary) -> Table:
    sent = {result.recipient: result for result in summary.email_results}
    table = Table(title="Reviewer Workload")
    table.add_column("Reviewer")
    table.add_column("Account")
    table.add_column("New", justify="right")
    table.add_column("Email")
    for entry in summary.workload:
        result = sent.get(entry.email)
        if result is None:
            email_status = "-"
        elif result.success:
            email_status = "[green]sent[/green]"
        else:
            email_status = f"[red]failed: {result.error}[/red]"
        table.add_row(entry.email, entry.resolution, str(entry.assigned_count), email_status)
    return table


def assignments_table(title: str, records: Sequence[AssignmentRecord]) -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right")
    table.add_column("Application")
    table.add_column("Company")
    table.add_column("Reviewer")
    table.add_column("Status")
    table.add_column("Batch")
    table.add_column("Assigned")
    for record in records:
        table.add_row(
            str(record.id),
            record.unique_id,
            record.company_name,
            record.reviewer_email,
            record.status,
            record.batch_id or "-",
            record.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def page_count(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return (total + limit - 1) // limit
