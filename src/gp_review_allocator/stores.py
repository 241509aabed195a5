"""Storage interfaces the allocator reads from and writes to.

``postgres.py`` implements these against the production database; tests use
in-memory versions.
"""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .models import Application, AssignmentDraft, AssignmentRecord, Identity, InsertOutcome


class IdentityStore(Protocol):
    def find_by_email(self, email: str) -> Identity | None: ...

    def create_reviewer(self, email: str) -> tuple[Identity, bool]:
        """Create a reviewer identity, or return the one a concurrent writer created.

        The flag is True only when this call inserted the row.
        """
        ...

    def promote_to_reviewer(self, identity: Identity) -> Identity: ...


class ApplicationStore(Protocol):
    def list_eligible(self) -> list[Application]:
        """Submitted, not disqualified, not soft-deleted; creation order."""
        ...


class AssignmentStore(Protocol):
    def live_pairs(
        self,
        application_ids: Iterable[int],
        reviewer_ids: Iterable[int],
    ) -> set[tuple[int, int]]: ...

    def insert_batch(self, drafts: Sequence[AssignmentDraft]) -> list[InsertOutcome]:
        """Insert each draft independently; one failed row never aborts the rest."""
        ...

    def mark_notified(self, batch_id: str, reviewer_ids: Iterable[int]) -> int: ...

    def list_batch(self, batch_id: str) -> list[AssignmentRecord]: ...

    def list_for_reviewer(
        self,
        reviewer_id: int,
        offset: int,
        limit: int,
    ) -> tuple[list[AssignmentRecord], int]: ...
