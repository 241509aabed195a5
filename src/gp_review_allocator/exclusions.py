from __future__ import annotations

from typing import Iterable

from .stores import AssignmentStore


def build_exclusion_index(
    store: AssignmentStore,
    application_ids: Iterable[int],
    reviewer_ids: Iterable[int],
) -> frozenset[tuple[int, int]]:
    """Live (application_id, reviewer_id) pairs that must not be assigned again."""
    application_ids = list(application_ids)
    reviewer_ids = list(reviewer_ids)
    if not application_ids or not reviewer_ids:
        return frozenset()
    return frozenset(store.live_pairs(application_ids, reviewer_ids))
