from __future__ import annotations

from typing import Iterable, Sequence

import psycopg2

from .db import SCHEMA
from .models import REVIEWER_ROLE, Application, AssignmentDraft, AssignmentRecord, Identity, InsertOutcome

DUPLICATE_REASON = "live assignment already exists for this pair"


def _identity(row) -> Identity:
    return Identity(id=row["id"], email=row["email"], role=row["role"], name=row["name"])


def _record(row) -> AssignmentRecord:
    return AssignmentRecord(
        id=row["id"],
        application_id=row["application_id"],
        unique_id=row["unique_id"],
        company_name=row["company_name"],
        reviewer_id=row["reviewer_user_id"],
        reviewer_email=row["reviewer_email"],
        batch_id=row["batch_id"],
        logic=row["distribution_logic"],
        status=row["status"],
        created_at=row["created_at"],
    )


_RECORD_SELECT = f"""
    SELECT s.id,
           s.application_id,
           a.unique_id,
           a.company_name,
           s.reviewer_user_id,
           u.email AS reviewer_email,
           s.batch_id,
           s.distribution_logic,
           s.status,
           s.created_at
      FROM {SCHEMA}.review_assignments s
      JOIN {SCHEMA}.gp_applications a
        ON a.id = s.application_id
      JOIN {SCHEMA}.users u
        ON u.id = s.reviewer_user_id
"""


class PostgresIdentityStore:
    def __init__(self, cursor) -> None:
        self.cursor = cursor

    def find_by_email(self, email: str) -> Identity | None:
        self.cursor.execute(
            f"SELECT id, email, role, name FROM {SCHEMA}.users WHERE email = %s;",
            (email.lower(),),
        )
        row = self.cursor.fetchone()
        return _identity(row) if row else None

    def create_reviewer(self, email: str) -> tuple[Identity, bool]:
        self.cursor.execute(
            f"""
            INSERT INTO {SCHEMA}.users (email, role)
            VALUES (%s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING id, email, role, name;
            """,
            (email.lower(), REVIEWER_ROLE),
        )
        row = self.cursor.fetchone()
        if row:
            return _identity(row), True
        # Lost a race with another writer; the unique email constraint kept one row.
        existing = self.find_by_email(email)
        if existing is None:
            raise RuntimeError(f"User {email} conflicted on insert but could not be read back.")
        return existing, False

    def promote_to_reviewer(self, identity: Identity) -> Identity:
        self.cursor.execute(
            f"""
            UPDATE {SCHEMA}.users
               SET role = %s, updated_at = NOW()
             WHERE id = %s
            RETURNING id, email, role, name;
            """,
            (REVIEWER_ROLE, identity.id),
        )
        return _identity(self.cursor.fetchone())


class PostgresApplicationStore:
    def __init__(self, cursor) -> None:
        self.cursor = cursor

    def list_eligible(self) -> list[Application]:
        self.cursor.execute(
            f"""
            SELECT id,
                   unique_id,
                   company_name,
                   applicant_progress_status,
                   admin_qualification_status,
                   deleted_at
              FROM {SCHEMA}.gp_applications
             WHERE applicant_progress_status = 'submitted'
               AND admin_qualification_status <> 'not_qualified'
               AND deleted_at IS NULL
             ORDER BY created_at ASC, id ASC;
            """
        )
        return [
            Application(
                id=row["id"],
                unique_id=row["unique_id"],
                company_name=row["company_name"],
                applicant_progress_status=row["applicant_progress_status"],
                admin_qualification_status=row["admin_qualification_status"],
                deleted_at=row["deleted_at"],
            )
            for row in self.cursor.fetchall()
        ]


class PostgresAssignmentStore:
    def __init__(self, cursor) -> None:
        self.cursor = cursor

    def live_pairs(
        self,
        application_ids: Iterable[int],
        reviewer_ids: Iterable[int],
    ) -> set[tuple[int, int]]:
        self.cursor.execute(
            f"""
            SELECT application_id, reviewer_user_id
              FROM {SCHEMA}.review_assignments
             WHERE application_id = ANY(%s)
               AND reviewer_user_id = ANY(%s)
               AND deleted_at IS NULL;
            """,
            (list(application_ids), list(reviewer_ids)),
        )
        return {(row["application_id"], row["reviewer_user_id"]) for row in self.cursor.fetchall()}

    def insert_batch(self, drafts: Sequence[AssignmentDraft]) -> list[InsertOutcome]:
        query = f"""
            INSERT INTO {SCHEMA}.review_assignments
                (application_id, reviewer_user_id, assigned_by, batch_id, distribution_logic, status)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (application_id, reviewer_user_id) WHERE deleted_at IS NULL DO NOTHING
            RETURNING id;
        """
        outcomes: list[InsertOutcome] = []
        for draft in drafts:
            self.cursor.execute("SAVEPOINT assignment_row;")
            try:
                self.cursor.execute(
                    query,
                    (
                        draft.application_id,
                        draft.reviewer_id,
                        draft.assigned_by,
                        draft.batch_id,
                        draft.logic.value,
                        draft.status,
                    ),
                )
                row = self.cursor.fetchone()
            except psycopg2.Error as exc:
                self.cursor.execute("ROLLBACK TO SAVEPOINT assignment_row;")
                reason = (exc.pgerror or str(exc)).strip()
                outcomes.append(InsertOutcome(draft=draft, succeeded=False, reason=reason))
                continue
            self.cursor.execute("RELEASE SAVEPOINT assignment_row;")
            if row is None:
                outcomes.append(InsertOutcome(draft=draft, succeeded=False, reason=DUPLICATE_REASON))
            else:
                outcomes.append(InsertOutcome(draft=draft, succeeded=True, assignment_id=row["id"]))
        return outcomes

    def mark_notified(self, batch_id: str, reviewer_ids: Iterable[int]) -> int:
        reviewer_ids = list(reviewer_ids)
        if not reviewer_ids:
            return 0
        self.cursor.execute(
            f"""
            UPDATE {SCHEMA}.review_assignments
               SET email_sent_at = NOW(), updated_at = NOW()
             WHERE batch_id = %s
               AND reviewer_user_id = ANY(%s)
               AND deleted_at IS NULL;
            """,
            (batch_id, reviewer_ids),
        )
        return self.cursor.rowcount

    def list_batch(self, batch_id: str) -> list[AssignmentRecord]:
        self.cursor.execute(
            _RECORD_SELECT
            + """
             WHERE s.batch_id = %s
               AND s.deleted_at IS NULL
             ORDER BY s.id ASC;
            """,
            (batch_id,),
        )
        return [_record(row) for row in self.cursor.fetchall()]

    def list_for_reviewer(
        self,
        reviewer_id: int,
        offset: int,
        limit: int,
    ) -> tuple[list[AssignmentRecord], int]:
        self.cursor.execute(
            _RECORD_SELECT
            + """
             WHERE s.reviewer_user_id = %s
               AND s.deleted_at IS NULL
               AND s.status <> 'declined'
             ORDER BY s.created_at DESC, s.id DESC
             LIMIT %s OFFSET %s;
            """,
            (reviewer_id, limit, offset),
        )
        records = [_record(row) for row in self.cursor.fetchall()]
        self.cursor.execute(
            f"""
            SELECT COUNT(*) AS total
              FROM {SCHEMA}.review_assignments
             WHERE reviewer_user_id = %s
               AND deleted_at IS NULL
               AND status <> 'declined';
            """,
            (reviewer_id,),
        )
        return records, self.cursor.fetchone()["total"]

    def workload_by_status(self) -> list[dict]:
        self.cursor.execute(
            f"""
            SELECT u.email,
                   COUNT(s.id) FILTER (WHERE s.status = 'pending') AS pending,
                   COUNT(s.id) FILTER (WHERE s.status = 'in_review') AS in_review,
                   COUNT(s.id) FILTER (WHERE s.status = 'completed') AS completed,
                   COUNT(s.id) FILTER (WHERE s.status = 'declined') AS declined
              FROM {SCHEMA}.users u
              LEFT JOIN {SCHEMA}.review_assignments s
                ON s.reviewer_user_id = u.id
               AND s.deleted_at IS NULL
             WHERE u.role = 'reviewer'
             GROUP BY u.email
             ORDER BY pending DESC, u.email;
            """
        )
        return self.cursor.fetchall()
