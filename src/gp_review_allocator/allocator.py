from __future__ import annotations

import random
import secrets
from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import InvalidRequestError, NoReviewersError
from .models import AssignmentDraft, DistributionLogic


@dataclass(frozen=True)
class AllocationPlan:
    batch_id: str
    logic: DistributionLogic
    ratings_per_app: int
    drafts: list[AssignmentDraft]
    workload: dict[int, int]

    def drafts_for(self, application_id: int) -> list[AssignmentDraft]:
        return [draft for draft in self.drafts if draft.application_id == application_id]


def new_batch_id() -> str:
    return secrets.token_hex(8)


def order_reviewers(
    reviewer_ids: Sequence[int],
    workload: dict[int, int],
    logic: DistributionLogic,
    rng: random.Random,
) -> list[int]:
    """Candidate order for one application.

    Balanced ordering is a stable sort on the run's workload, so ties keep the
    caller's reviewer order. Random ordering ignores workload entirely.
    """
    if logic is DistributionLogic.RANDOM:
        shuffled = list(reviewer_ids)
        rng.shuffle(shuffled)
        return shuffled
    return sorted(reviewer_ids, key=lambda reviewer_id: workload[reviewer_id])


def _unique(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    ordered: list[int] = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def plan_assignments(
    reviewer_ids: Iterable[int],
    application_ids: Iterable[int],
    *,
    ratings_per_app: int,
    logic: DistributionLogic,
    assigned_by: int,
    excluded: frozenset[tuple[int, int]] | set[tuple[int, int]] = frozenset(),
    rng: random.Random | None = None,
    batch_id: str | None = None,
) -> AllocationPlan:
    reviewers = _unique(reviewer_ids)
    if not reviewers:
        raise NoReviewersError()
    if ratings_per_app < 1:
        raise InvalidRequestError("ratingsPerApp", "must be at least 1.")

    logic = DistributionLogic(logic)
    rng = rng or random.Random()
    batch_id = batch_id or new_batch_id()

    workload = {reviewer_id: 0 for reviewer_id in reviewers}
    drafts: list[AssignmentDraft] = []

    for application_id in _unique(application_ids):
        assigned = 0
        for reviewer_id in order_reviewers(reviewers, workload, logic, rng):
            if assigned >= ratings_per_app:
                break
            if (application_id, reviewer_id) in excluded:
                continue
            drafts.append(
                AssignmentDraft(
                    application_id=application_id,
                    reviewer_id=reviewer_id,
                    assigned_by=assigned_by,
                    batch_id=batch_id,
                    logic=logic,
                )
            )
            workload[reviewer_id] += 1
            assigned += 1

    return AllocationPlan(
        batch_id=batch_id,
        logic=logic,
        ratings_per_app=ratings_per_app,
        drafts=drafts,
        workload=workload,
    )
