import pytest
from conftest import InMemoryIdentityStore

from gp_review_allocator.directory import normalize_emails, resolve_reviewers
from gp_review_allocator.models import REVIEWER_ROLE, Resolution


def test_normalize_emails_lowercases_and_dedupes_in_order():
    emails = [" Amina@GPReview.org", "david@gpreview.org", "amina@gpreview.org", ""]

    assert normalize_emails(emails) == ["amina@gpreview.org", "david@gpreview.org"]


def test_resolution_tags_created_promoted_reused(identity_store):
    existing = identity_store.add("amina@gpreview.org", REVIEWER_ROLE, name="Amina")
    lp = identity_store.add("david@gpreview.org", "lp")

    resolved = resolve_reviewers(
        ["amina@gpreview.org", "DAVID@gpreview.org", "lila@gpreview.org"],
        identity_store,
    )

    assert [reviewer.resolution for reviewer in resolved] == [
        Resolution.REUSED,
        Resolution.PROMOTED,
        Resolution.CREATED,
    ]
    assert resolved[0].id == existing.id
    assert resolved[0].display_name == "Amina"
    assert resolved[1].id == lp.id
    assert identity_store.find_by_email("david@gpreview.org").role == REVIEWER_ROLE
    assert resolved[2].identity.role == REVIEWER_ROLE
    assert resolved[2].display_name == "lila@gpreview.org"


def test_admin_is_promoted_not_left_alone(identity_store):
    identity_store.add("ops@gpreview.org", "admin")

    (resolved,) = resolve_reviewers(["ops@gpreview.org"], identity_store)

    assert resolved.resolution is Resolution.PROMOTED
    assert resolved.identity.role == REVIEWER_ROLE


def test_resolution_is_idempotent(identity_store):
    emails = ["a@gpreview.org", "B@gpreview.org", "b@gpreview.org"]

    first = resolve_reviewers(emails, identity_store)
    second = resolve_reviewers(emails, identity_store)

    assert len(identity_store.by_email) == 2
    assert identity_store.create_calls == 2
    assert [reviewer.id for reviewer in first] == [reviewer.id for reviewer in second]
    assert all(reviewer.resolution is Resolution.REUSED for reviewer in second)


def test_store_failure_aborts_resolution(identity_store):
    identity_store.fail_on_create = True

    with pytest.raises(ConnectionError):
        resolve_reviewers(["new@gpreview.org"], identity_store)


class LateReaderIdentityStore(InMemoryIdentityStore):
    """Misses every lookup, as if another writer inserted the row right after we looked."""

    def find_by_email(self, email):
        return None


def test_losing_create_race_to_a_reviewer_is_reused():
    store = LateReaderIdentityStore()
    other_writer = store.add("amina@gpreview.org", REVIEWER_ROLE)

    (resolved,) = resolve_reviewers(["amina@gpreview.org"], store)

    assert resolved.resolution is Resolution.REUSED
    assert resolved.id == other_writer.id
    assert store.create_calls == 1


def test_losing_create_race_to_a_non_reviewer_promotes():
    store = LateReaderIdentityStore()
    store.add("david@gpreview.org", "lp")

    (resolved,) = resolve_reviewers(["david@gpreview.org"], store)

    assert resolved.resolution is Resolution.PROMOTED
    assert resolved.identity.role == REVIEWER_ROLE
