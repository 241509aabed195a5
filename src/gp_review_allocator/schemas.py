from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, ValidationInfo, field_validator

from .errors import InvalidRequestError
from .models import DistributionLogic

DEFAULT_MAX_RATINGS_PER_APP = 10


class AllocationRequest(BaseModel):
    """Input of one allocation run. Accepts both snake_case and wire (camelCase) keys."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    reviewer_emails: list[EmailStr] = Field(alias="reviewerEmails", min_length=1)
    ratings_per_app: int = Field(alias="ratingsPerApp", ge=1)
    logic: DistributionLogic
    assigned_by: int = Field(alias="assignedBy")

    @field_validator("ratings_per_app")
    @classmethod
    def _within_configured_max(cls, value: int, info: ValidationInfo) -> int:
        maximum = (info.context or {}).get("max_ratings_per_app", DEFAULT_MAX_RATINGS_PER_APP)
        if value > maximum:
            raise ValueError(f"ratingsPerApp must be 1-{maximum}.")
        return value


def parse_request(
    data: Mapping[str, Any],
    max_ratings_per_app: int = DEFAULT_MAX_RATINGS_PER_APP,
) -> AllocationRequest:
    try:
        return AllocationRequest.model_validate(
            dict(data),
            context={"max_ratings_per_app": max_ratings_per_app},
        )
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "request"
        raise InvalidRequestError(field, first["msg"]) from exc
