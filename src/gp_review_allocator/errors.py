from __future__ import annotations


class AllocationError(Exception):
    """Base class for expected faults of an allocation run."""


class InvalidRequestError(AllocationError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NoEligibleApplicationsError(AllocationError):
    def __init__(self) -> None:
        super().__init__("No eligible applications found for assignment.")


class NoReviewersError(AllocationError):
    def __init__(self) -> None:
        super().__init__("No reviewers resolved; nothing to assign.")


class UnknownAdminError(AllocationError):
    def __init__(self, email: str) -> None:
        super().__init__(f"No admin account found for {email}.")
        self.email = email
