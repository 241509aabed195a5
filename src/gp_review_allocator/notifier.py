"""Reviewer notification emails.

Delivery is best effort: every job yields an ``EmailResult`` and a failed send
never undoes the allocation that triggered it. Nothing here retries.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path
from typing import Any, Mapping, Protocol, Sequence

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from .config import Settings
from .models import ResolvedReviewer

logger = logging.getLogger(__name__)

REVIEWER_ASSIGNMENT = "reviewer_assignment"

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

SUBJECTS = {
    REVIEWER_ASSIGNMENT: "You have {{ application_count }} new GP application(s) to review",
}


@dataclass(frozen=True)
class EmailJob:
    recipient: str
    template: str
    template_data: Mapping[str, Any] = field(default_factory=dict)
    reviewer_id: int | None = None


@dataclass(frozen=True)
class EmailResult:
    recipient: str
    template: str
    success: bool
    message_id: str | None = None
    error: str | None = None
    reviewer_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "to": self.recipient,
            "templateName": self.template,
            "success": self.success,
            "messageId": self.message_id,
            "error": self.error,
        }


class Notifier(Protocol):
    def send_bulk(self, jobs: Sequence[EmailJob]) -> list[EmailResult]: ...


class TemplateRenderer:
    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml", "j2"], default_for_string=False),
        )

    def render(self, template: str, data: Mapping[str, Any]) -> tuple[str, str]:
        if template not in SUBJECTS:
            raise TemplateError(f"Unknown email template: {template}")
        subject = self.env.from_string(SUBJECTS[template]).render(**data)
        html = self.env.get_template(f"{template}.html.j2").render(**data)
        return subject, html


def html_to_text(html: str) -> str:
    text = re.sub(r"<[^>]+>", "", html)
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


class SmtpNotifier:
    def __init__(self, settings: Settings, renderer: TemplateRenderer | None = None) -> None:
        self.settings = settings
        self.renderer = renderer or TemplateRenderer()

    def build_message(self, job: EmailJob) -> EmailMessage:
        subject, html = self.renderer.render(job.template, job.template_data)
        message = EmailMessage()
        message["From"] = f"{self.settings.email_from_name} <{self.settings.email_from}>"
        message["To"] = job.recipient
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(html_to_text(html), charset="utf-8")
        message.add_alternative(html, subtype="html", charset="utf-8")
        return message

    async def _send(self, job: EmailJob) -> EmailResult:
        try:
            message = self.build_message(job)
            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_host,
                port=self.settings.smtp_port,
                username=self.settings.smtp_user,
                password=self.settings.smtp_pass,
                use_tls=self.settings.smtp_secure,
            )
        except (aiosmtplib.SMTPException, OSError, TemplateError) as exc:
            logger.warning("Email send failed [%s] to %s: %s", job.template, job.recipient, exc)
            return EmailResult(
                recipient=job.recipient,
                template=job.template,
                success=False,
                error=str(exc),
                reviewer_id=job.reviewer_id,
            )
        return EmailResult(
            recipient=job.recipient,
            template=job.template,
            success=True,
            message_id=message["Message-ID"],
            reviewer_id=job.reviewer_id,
        )

    async def _send_all(self, jobs: Sequence[EmailJob]) -> list[EmailResult]:
        return list(await asyncio.gather(*(self._send(job) for job in jobs)))

    def send_bulk(self, jobs: Sequence[EmailJob]) -> list[EmailResult]:
        if not jobs:
            return []
        return asyncio.run(self._send_all(jobs))


def build_email_jobs(
    reviewers: Sequence[ResolvedReviewer],
    counts: Mapping[int, int],
    review_link: str,
) -> list[EmailJob]:
    return [
        EmailJob(
            recipient=reviewer.email,
            template=REVIEWER_ASSIGNMENT,
            template_data={
                "reviewer_name": reviewer.display_name,
                "application_count": counts[reviewer.id],
                "review_link": review_link,
            },
            reviewer_id=reviewer.id,
        )
        for reviewer in reviewers
        if counts.get(reviewer.id, 0) > 0
    ]


def notify_reviewers(
    reviewers: Sequence[ResolvedReviewer],
    counts: Mapping[int, int],
    notifier: Notifier,
    settings: Settings,
) -> list[EmailResult]:
    jobs = build_email_jobs(reviewers, counts, settings.review_link)
    results = notifier.send_bulk(jobs)
    failed = sum(1 for result in results if not result.success)
    logger.info("Sent %d reviewer emails (%d failed)", len(results) - failed, failed)
    return results
