from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from .allocator import AllocationPlan, plan_assignments
from .directory import resolve_reviewers
from .errors import NoReviewersError
from .exclusions import build_exclusion_index
from .models import Application, InsertOutcome, ResolvedReviewer
from .schemas import AllocationRequest
from .selector import select_eligible_applications
from .stores import ApplicationStore, AssignmentStore, IdentityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationOutcome:
    request: AllocationRequest
    applications: list[Application]
    reviewers: list[ResolvedReviewer]
    plan: AllocationPlan
    outcomes: list[InsertOutcome]

    @property
    def batch_id(self) -> str:
        return self.plan.batch_id

    @property
    def created(self) -> list[InsertOutcome]:
        return [outcome for outcome in self.outcomes if outcome.succeeded]

    @property
    def failures(self) -> list[InsertOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def created_counts(self) -> dict[int, int]:
        counts = {reviewer.id: 0 for reviewer in self.reviewers}
        for outcome in self.created:
            counts[outcome.draft.reviewer_id] = counts.get(outcome.draft.reviewer_id, 0) + 1
        return counts


def persist_batch(store: AssignmentStore, plan: AllocationPlan) -> list[InsertOutcome]:
    if not plan.drafts:
        return []
    outcomes = store.insert_batch(plan.drafts)
    for outcome in outcomes:
        if not outcome.succeeded:
            logger.warning(
                "Assignment of application %s to reviewer %s not created: %s",
                outcome.draft.application_id,
                outcome.draft.reviewer_id,
                outcome.reason,
            )
    created = sum(1 for outcome in outcomes if outcome.succeeded)
    logger.info("Batch %s: created %d of %d planned assignments", plan.batch_id, created, len(plan.drafts))
    return outcomes


def allocate(
    request: AllocationRequest,
    *,
    identities: IdentityStore,
    applications: ApplicationStore,
    assignments: AssignmentStore,
    rng: random.Random | None = None,
    batch_id: str | None = None,
) -> AllocationOutcome:
    """Run one allocation: select, resolve, exclude, plan, persist.

    The eligible pool is read before any reviewer identity is created so an
    empty pool leaves the identity store untouched.
    """
    pool = select_eligible_applications(applications)

    reviewers = resolve_reviewers(request.reviewer_emails, identities)
    if not reviewers:
        raise NoReviewersError()

    application_ids = [application.id for application in pool]
    reviewer_ids = [reviewer.id for reviewer in reviewers]
    excluded = build_exclusion_index(assignments, application_ids, reviewer_ids)
    if excluded:
        logger.info("Skipping %d existing live pairings", len(excluded))

    plan = plan_assignments(
        reviewer_ids,
        application_ids,
        ratings_per_app=request.ratings_per_app,
        logic=request.logic,
        assigned_by=request.assigned_by,
        excluded=excluded,
        rng=rng,
        batch_id=batch_id,
    )
    outcomes = persist_batch(assignments, plan)

    return AllocationOutcome(
        request=request,
        applications=pool,
        reviewers=reviewers,
        plan=plan,
        outcomes=outcomes,
    )
