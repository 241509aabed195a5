from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

REVIEWER_ROLE = "reviewer"
ADMIN_ROLE = "admin"

SUBMITTED = "submitted"
NOT_QUALIFIED = "not_qualified"

PENDING = "pending"


class DistributionLogic(str, Enum):
    BALANCED = "balanced"
    RANDOM = "random"


class Resolution(str, Enum):
    CREATED = "created"
    PROMOTED = "promoted"
    REUSED = "reused"


@dataclass(frozen=True)
class Identity:
    id: int
    email: str
    role: str
    name: str | None = None


@dataclass(frozen=True)
class ResolvedReviewer:
    identity: Identity
    resolution: Resolution

    @property
    def id(self) -> int:
        return self.identity.id

    @property
    def email(self) -> str:
        return self.identity.email

    @property
    def display_name(self) -> str:
        return self.identity.name or self.identity.email


@dataclass(frozen=True)
class Application:
    id: int
    unique_id: str
    company_name: str
    applicant_progress_status: str = SUBMITTED
    admin_qualification_status: str = PENDING
    deleted_at: datetime | None = None


@dataclass(frozen=True)
class AssignmentDraft:
    application_id: int
    reviewer_id: int
    assigned_by: int
    batch_id: str
    logic: DistributionLogic
    status: str = PENDING

    @property
    def pair(self) -> tuple[int, int]:
        return (self.application_id, self.reviewer_id)


@dataclass(frozen=True)
class InsertOutcome:
    draft: AssignmentDraft
    succeeded: bool
    assignment_id: int | None = None
    reason: str | None = None


@dataclass(frozen=True)
class AssignmentRecord:
    id: int
    application_id: int
    unique_id: str
    company_name: str
    reviewer_id: int
    reviewer_email: str
    batch_id: str | None
    logic: str | None
    status: str
    created_at: datetime
