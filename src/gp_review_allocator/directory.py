from __future__ import annotations

import logging
from typing import Iterable

from .models import REVIEWER_ROLE, Resolution, ResolvedReviewer
from .stores import IdentityStore

logger = logging.getLogger(__name__)


def normalize_emails(emails: Iterable[str]) -> list[str]:
    """Lower-case and strip emails, dropping repeats but keeping first-seen order."""
    seen: set[str] = set()
    normalized: list[str] = []
    for email in emails:
        key = email.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        normalized.append(key)
    return normalized


def resolve_reviewer(email: str, store: IdentityStore) -> ResolvedReviewer:
    identity = store.find_by_email(email)
    if identity is None:
        identity, inserted = store.create_reviewer(email)
        if identity.role == REVIEWER_ROLE:
            return ResolvedReviewer(identity, Resolution.CREATED if inserted else Resolution.REUSED)
    if identity.role != REVIEWER_ROLE:
        logger.info("Promoting %s from %s to reviewer", identity.email, identity.role)
        return ResolvedReviewer(store.promote_to_reviewer(identity), Resolution.PROMOTED)
    return ResolvedReviewer(identity, Resolution.REUSED)


def resolve_reviewers(emails: Iterable[str], store: IdentityStore) -> list[ResolvedReviewer]:
    resolved = [resolve_reviewer(email, store) for email in normalize_emails(emails)]

    # Distinct emails can still land on one identity if the store folds them together.
    unique: dict[int, ResolvedReviewer] = {}
    for reviewer in resolved:
        unique.setdefault(reviewer.id, reviewer)

    counts = {resolution: 0 for resolution in Resolution}
    for reviewer in unique.values():
        counts[reviewer.resolution] += 1
    logger.info(
        "Resolved %d reviewers (created=%d promoted=%d reused=%d)",
        len(unique),
        counts[Resolution.CREATED],
        counts[Resolution.PROMOTED],
        counts[Resolution.REUSED],
    )
    return list(unique.values())
