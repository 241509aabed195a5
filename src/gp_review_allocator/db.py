import os
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from psycopg2.extras import RealDictCursor

SCHEMA = "gp_review"
APPLICATION_NAME = "gp-review-allocator"


def get_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Point it at the GP platform Postgres database.")
    return database_url


@contextmanager
def db_cursor():
    """Yield a dict-row cursor inside one transaction, committed on clean exit."""
    conn = psycopg2.connect(get_database_url(), application_name=APPLICATION_NAME)
    try:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(f"SET search_path TO {SCHEMA}, public;")
            yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def load_sql(path: Path) -> str:
    return path.read_text(encoding="utf-8")
