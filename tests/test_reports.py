from conftest import make_application
from gp_review_allocator.allocator import AllocationPlan
from gp_review_allocator.models import (
    AssignmentDraft,
    DistributionLogic,
    Identity,
    InsertOutcome,
    Resolution,
    ResolvedReviewer,
)
from gp_review_allocator.notifier import EmailResult
from gp_review_allocator.reports import build_summary, page_count, summary_table, workload_table
from gp_review_allocator.schemas import parse_request
from gp_review_allocator.service import AllocationOutcome


def _outcome() -> AllocationOutcome:
    reviewers = [
        ResolvedReviewer(Identity(1, "amina@gpreview.org", "reviewer"), Resolution.REUSED),
        ResolvedReviewer(Identity(2, "david@gpreview.org", "reviewer"), Resolution.CREATED),
        ResolvedReviewer(Identity(3, "lila@gpreview.org", "reviewer"), Resolution.PROMOTED),
    ]
    drafts = [
        AssignmentDraft(101, 1, 9, "abc123", DistributionLogic.BALANCED),
        AssignmentDraft(102, 2, 9, "abc123", DistributionLogic.BALANCED),
        AssignmentDraft(103, 1, 9, "abc123", DistributionLogic.BALANCED),
    ]
    request = parse_request(
        {
            "reviewerEmails": [reviewer.email for reviewer in reviewers],
            "ratingsPerApp": 1,
            "logic": "balanced",
            "assignedBy": 9,
        }
    )
    return AllocationOutcome(
        request=request,
        applications=[make_application(app_id) for app_id in (101, 102, 103)],
        reviewers=reviewers,
        plan=AllocationPlan("abc123", DistributionLogic.BALANCED, 1, drafts, {1: 2, 2: 1, 3: 0}),
        outcomes=[
            InsertOutcome(drafts[0], True, assignment_id=1),
            InsertOutcome(drafts[1], False, reason="duplicate"),
            InsertOutcome(drafts[2], True, assignment_id=2),
        ],
    )


def test_summary_counts_only_created_rows() -> None:
    summary = build_summary(_outcome())

    assert summary.total_applications == 3
    assert summary.total_assignments == 2
    assert summary.reviewer_count == 3
    assert [(entry.email, entry.assigned_count) for entry in summary.workload] == [
        ("amina@gpreview.org", 2),
        ("david@gpreview.org", 0),
        ("lila@gpreview.org", 0),
    ]
    assert [entry.resolution for entry in summary.workload] == ["reused", "created", "promoted"]


def test_summary_wire_shape() -> None:
    email_results = [EmailResult("amina@gpreview.org", "reviewer_assignment", True, message_id="<m1>")]

    payload = build_summary(_outcome(), email_results).to_dict()

    assert payload["batchId"] == "abc123"
    assert payload["totalApplications"] == 3
    assert payload["totalAssignments"] == 2
    assert payload["reviewerCount"] == 3
    assert payload["ratingsPerApp"] == 1
    assert payload["logic"] == "balanced"
    assert payload["workload"][0] == {"email": "amina@gpreview.org", "assignedCount": 2}
    assert payload["emailResults"] == [
        {
            "to": "amina@gpreview.org",
            "templateName": "reviewer_assignment",
            "success": True,
            "messageId": "<m1>",
            "error": None,
        }
    ]
    assert payload["failures"] == [{"applicationId": 102, "reviewerId": 2, "reason": "duplicate"}]


def test_tables_have_one_row_per_reviewer() -> None:
    summary = build_summary(_outcome())

    assert workload_table(summary).row_count == 3
    assert summary_table(summary).row_count == 6


def test_page_count() -> None:
    assert page_count(0, 20) == 0
    assert page_count(20, 20) == 1
    assert page_count(21, 20) == 2
