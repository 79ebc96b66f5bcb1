"""
Tests for the SQL verification store
"""
from datetime import datetime, timedelta, timezone

from otp_recovery.models.verification import Verification
from otp_recovery.schemas.verification import (VerificationRecord,
                                               VerificationType)

KIND = VerificationType.reset_password


def test_find_active_returns_record(store, issue_record):
    code = issue_record("kody@example.com", secret="ABC123", algorithm="SHA256",
                        valid_seconds=60)

    record = store.find_active(KIND, "kody@example.com", code)

    assert record is not None
    assert record.kind is KIND
    assert record.target == "kody@example.com"
    assert record.secret == "ABC123"
    assert record.algorithm == "SHA256"
    assert record.valid_seconds == 60
    assert record.expires_at.tzinfo is not None
    assert "ABC123" not in repr(record)


def test_find_active_matches_exact_triple(store, issue_record):
    issue_record("kody@example.com", otp="123456")

    assert store.find_active(KIND, "kody@example.com", "654321") is None
    assert store.find_active(KIND, "kody", "123456") is None
    assert store.find_active(KIND, "KODY@example.com", "123456") is None
    assert store.find_active(KIND, "kody@example.com", "123456") is not None


def test_find_active_ignores_other_kinds(store, db_session):
    db_session.add(Verification(type="onboarding", target="kody@example.com",
                                otp="123456", secret_key="ABC123"))
    db_session.commit()

    assert store.find_active(KIND, "kody@example.com", "123456") is None
    assert store.count(KIND, "kody@example.com") == 0


def test_expired_record_is_not_active(store, issue_record):
    expired = datetime.now(timezone.utc) - timedelta(seconds=1)
    issue_record("kody@example.com", otp="123456", expires_at=expired)

    assert store.find_active(KIND, "kody@example.com", "123456") is None


def test_record_without_expiry_stays_active(store, db_session):
    db_session.add(Verification(type=KIND.value, target="kody", otp="123456",
                                secret_key="ABC123", algorithm="SHA1",
                                valid_seconds=30))
    db_session.commit()

    record = store.find_active(KIND, "kody", "123456")
    assert record is not None
    assert record.expires_at is None


def test_consume_is_idempotent(store, issue_record):
    issue_record("kody@example.com", otp="123456")

    assert store.consume(KIND, "kody@example.com", "123456") == 1
    assert store.consume(KIND, "kody@example.com", "123456") == 0
    assert store.find_active(KIND, "kody@example.com", "123456") is None


def test_consume_removes_every_matching_row(store, issue_record):
    issue_record("kody@example.com", otp="123456")
    issue_record("kody@example.com", otp="123456")
    issue_record("kody@example.com", otp="999999")

    assert store.consume(KIND, "kody@example.com", "123456") == 2
    assert store.count(KIND, "kody@example.com") == 1


def test_revoke_removes_all_codes_for_target(store, issue_record):
    issue_record("kody@example.com", otp="123456")
    issue_record("kody@example.com", otp="999999")
    issue_record("someone@example.com", otp="123456")

    assert store.revoke(KIND, "kody@example.com") == 2
    assert store.count(KIND, "kody@example.com") == 0
    assert store.count(KIND, "someone@example.com") == 1


def test_purge_expired_keeps_live_records(store, issue_record):
    now = datetime.now(timezone.utc)
    issue_record("kody@example.com", otp="111111", expires_at=now - timedelta(minutes=1))
    issue_record("kody@example.com", otp="222222", expires_at=now + timedelta(minutes=1))

    assert store.purge_expired() == 1
    assert store.find_active(KIND, "kody@example.com", "222222") is not None
    assert store.count(KIND, "kody@example.com") == 1


def test_create_sets_created_at(store):
    record = store.create(VerificationRecord(
        kind=KIND, target="kody", otp="123456", secret="ABC123"))

    assert record.created_at is not None
    assert store.count(KIND, "kody") == 1
