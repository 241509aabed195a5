from __future__ import annotations

import logging

from .errors import NoEligibleApplicationsError
from .models import NOT_QUALIFIED, SUBMITTED, Application
from .stores import ApplicationStore

logger = logging.getLogger(__name__)


def is_eligible(application: Application) -> bool:
    return (
        application.applicant_progress_status == SUBMITTED
        and application.admin_qualification_status != NOT_QUALIFIED
        and application.deleted_at is None
    )


def select_eligible_applications(store: ApplicationStore) -> list[Application]:
    applications = [application for application in store.list_eligible() if is_eligible(application)]
    if not applications:
        raise NoEligibleApplicationsError()
    logger.info("Selected %d eligible applications", len(applications))
    return applications
