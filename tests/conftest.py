from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Sequence

import pytest

from gp_review_allocator.models import (
    REVIEWER_ROLE,
    Application,
    AssignmentDraft,
    DistributionLogic,
    Identity,
    InsertOutcome,
)


class InMemoryIdentityStore:
    def __init__(self, identities: Iterable[Identity] = ()) -> None:
        self.by_email = {identity.email: identity for identity in identities}
        self.next_id = max((identity.id for identity in self.by_email.values()), default=0) + 1
        self.create_calls = 0
        self.fail_on_create = False

    def add(self, email: str, role: str, name: str | None = None) -> Identity:
        identity = Identity(id=self.next_id, email=email, role=role, name=name)
        self.next_id += 1
        self.by_email[email] = identity
        return identity

    def find_by_email(self, email: str) -> Identity | None:
        return self.by_email.get(email.lower())

    def create_reviewer(self, email: str) -> tuple[Identity, bool]:
        if self.fail_on_create:
            raise ConnectionError("identity store unavailable")
        self.create_calls += 1
        existing = self.by_email.get(email)
        if existing is not None:
            return existing, False
        identity = Identity(id=self.next_id, email=email, role=REVIEWER_ROLE)
        self.next_id += 1
        self.by_email[email] = identity
        return identity, True

    def promote_to_reviewer(self, identity: Identity) -> Identity:
        promoted = replace(identity, role=REVIEWER_ROLE)
        self.by_email[identity.email] = promoted
        return promoted


class InMemoryApplicationStore:
    """Returns every application unfiltered so the selector predicate does the work."""

    def __init__(self, applications: Iterable[Application] = ()) -> None:
        self.applications = list(applications)

    def list_eligible(self) -> list[Application]:
        return list(self.applications)


class InMemoryAssignmentStore:
    def __init__(self) -> None:
        self.rows: list[dict] = []
        self.rejected_pairs: set[tuple[int, int]] = set()

    def live(self) -> list[dict]:
        return [row for row in self.rows if row["deleted_at"] is None]

    def add_existing(self, application_id: int, reviewer_id: int, deleted: bool = False) -> None:
        self.rows.append(
            {
                "id": len(self.rows) + 1,
                "draft": AssignmentDraft(application_id, reviewer_id, 0, "previous", DistributionLogic.BALANCED),
                "deleted_at": "2026-01-01" if deleted else None,
            }
        )

    def live_pairs(self, application_ids: Iterable[int], reviewer_ids: Iterable[int]) -> set[tuple[int, int]]:
        apps = set(application_ids)
        reviewers = set(reviewer_ids)
        return {
            row["draft"].pair
            for row in self.live()
            if row["draft"].application_id in apps and row["draft"].reviewer_id in reviewers
        }

    def insert_batch(self, drafts: Sequence[AssignmentDraft]) -> list[InsertOutcome]:
        outcomes = []
        for draft in drafts:
            if draft.pair in self.rejected_pairs:
                outcomes.append(InsertOutcome(draft, False, reason="connection reset"))
                continue
            if any(row["draft"].pair == draft.pair for row in self.live()):
                outcomes.append(InsertOutcome(draft, False, reason="duplicate"))
                continue
            row_id = len(self.rows) + 1
            self.rows.append({"id": row_id, "draft": draft, "deleted_at": None})
            outcomes.append(InsertOutcome(draft, True, assignment_id=row_id))
        return outcomes


def make_application(app_id: int, **overrides) -> Application:
    fields = {
        "id": app_id,
        "unique_id": f"GP-{app_id:04d}",
        "company_name": f"Fund {app_id}",
    }
    fields.update(overrides)
    return Application(**fields)


@pytest.fixture
def identity_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture
def assignment_store() -> InMemoryAssignmentStore:
    return InMemoryAssignmentStore()


@pytest.fixture
def application_store() -> InMemoryApplicationStore:
    return InMemoryApplicationStore(make_application(app_id) for app_id in range(101, 106))
