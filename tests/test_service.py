"""
Store, service and limiter tests -- no HTTP involved.
"""

import os
import sqlite3
import threading
from datetime import datetime, timezone

import pytest

from newsletter_api.core.database import SubscriberStore, utc_timestamp
from newsletter_api.core.errors import RateLimitExceeded, StorageError, ValidationError
from newsletter_api.core.rate_limit import SlidingWindowLimiter
from newsletter_api.modules.newsletter import Outcome, SubscriptionService, validate_email


# ---------------------------------------------------------------------------
# SubscriberStore
# ---------------------------------------------------------------------------

def test_insert_if_absent_signals_noop(standalone_store):
    assert standalone_store.insert_if_absent("reader@example.com") is True
    assert standalone_store.insert_if_absent("reader@example.com") is False
    assert standalone_store.count("reader@example.com") == 1


def test_schema_has_unique_email_and_active_flag(standalone_store):
    with sqlite3.connect(standalone_store.path) as conn:
        columns = {row[1]: row for row in conn.execute("PRAGMA table_info(subscribers)")}
        assert set(columns) == {"id", "email", "subscription_date", "is_active"}
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO subscribers (email, subscription_date) VALUES (?, ?)",
                ("dupe@example.com", utc_timestamp()),
            )
            conn.execute(
                "INSERT INTO subscribers (email, subscription_date) VALUES (?, ?)",
                ("dupe@example.com", utc_timestamp()),
            )
    conn.close()


def test_other_constraint_failures_raise_storage_error(standalone_store):
    with pytest.raises(StorageError):
        standalone_store.insert_if_absent(None, subscription_date=utc_timestamp())


def test_list_active_skips_inactive_rows(standalone_store):
    standalone_store.insert_if_absent("kept@example.com")
    standalone_store.insert_if_absent("gone@example.com")
    with sqlite3.connect(standalone_store.path) as conn:
        conn.execute("UPDATE subscribers SET is_active = 0 WHERE email = ?", ("gone@example.com",))
    conn.close()

    assert [row["email"] for row in standalone_store.list_active()] == ["kept@example.com"]


def test_list_active_orders_by_subscription_date(standalone_store):
    standalone_store.insert_if_absent("old@example.com", utc_timestamp(datetime(2024, 1, 1, tzinfo=timezone.utc)))
    standalone_store.insert_if_absent("new@example.com", utc_timestamp(datetime(2025, 1, 1, tzinfo=timezone.utc)))
    standalone_store.insert_if_absent("mid@example.com", utc_timestamp(datetime(2024, 6, 1, tzinfo=timezone.utc)))

    rows = standalone_store.list_active()
    assert [row["email"] for row in rows] == ["new@example.com", "mid@example.com", "old@example.com"]
    assert rows[0]["subscription_date"] == "2025-01-01T00:00:00.000000Z"


def test_data_survives_reopen(tmp_db_dir):
    path = os.path.join(tmp_db_dir, "nested", "newsletter.db")
    with SubscriberStore(path) as store:
        store.insert_if_absent("reader@example.com")

    with SubscriberStore(path) as store:
        assert store.insert_if_absent("reader@example.com") is False
        assert store.count() == 1


def test_closed_store_raises_storage_error(tmp_db_dir):
    store = SubscriberStore(os.path.join(tmp_db_dir, "newsletter.db")).open()
    store.close()
    assert not store.is_open
    with pytest.raises(StorageError):
        store.list_active()
    store.close()


def test_unopenable_path_raises_storage_error(tmp_db_dir):
    blocker = os.path.join(tmp_db_dir, "not-a-dir")
    with open(blocker, "w") as f:
        f.write("x")
    with pytest.raises(StorageError):
        SubscriberStore(os.path.join(blocker, "newsletter.db")).open()


# ---------------------------------------------------------------------------
# SubscriptionService
# ---------------------------------------------------------------------------

def test_service_created_then_already_exists(standalone_store):
    service = SubscriptionService(standalone_store)
    assert service.subscribe("reader@example.com") is Outcome.CREATED
    assert service.subscribe("reader@example.com") is Outcome.ALREADY_EXISTS
    assert standalone_store.count("reader@example.com") == 1


@pytest.mark.parametrize("email,reason", [
    (None, ValidationError.MISSING_EMAIL),
    ("", ValidationError.MISSING_EMAIL),
    ("not-an-email", ValidationError.INVALID_FORMAT),
    ("a@b", ValidationError.INVALID_FORMAT),
    (42, ValidationError.INVALID_FORMAT),
    (False, ValidationError.MISSING_EMAIL),
    (0, ValidationError.MISSING_EMAIL),
    (True, ValidationError.INVALID_FORMAT),
])
def test_service_rejects_bad_input(standalone_store, email, reason):
    service = SubscriptionService(standalone_store)
    with pytest.raises(ValidationError) as excinfo:
        service.subscribe(email)
    assert excinfo.value.reason == reason
    assert standalone_store.count() == 0


@pytest.mark.parametrize("email", [
    "reader@example.com",
    "first.last+news@sub.example.co.uk",
    "under_score%tag@my-domain.org",
    "o'brien@example.com",
    "a&b@example.com",
    "user!tag@example.com",
    "{curly}|pipe~tilde@example.com",
])
def test_validate_email_accepts_common_addresses(email):
    assert validate_email(email) == email


def test_concurrent_duplicate_subscribe(standalone_store):
    service = SubscriptionService(standalone_store)

    for attempt in range(20):
        email = f"race{attempt}@example.com"
        barrier = threading.Barrier(2)
        outcomes = []

        def worker():
            barrier.wait()
            outcomes.append(service.subscribe(email))

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(o.value for o in outcomes) == ["already_exists", "created"]
        assert standalone_store.count(email) == 1


def test_concurrent_subscribe_across_connections(tmp_db_dir):
    path = os.path.join(tmp_db_dir, "shared.db")
    with SubscriberStore(path) as first, SubscriberStore(path) as second:
        barrier = threading.Barrier(2)
        results = []

        def worker(store):
            barrier.wait()
            results.append(store.insert_if_absent("x@y.com"))

        threads = [threading.Thread(target=worker, args=(s,)) for s in (first, second)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == [False, True]
        assert first.count("x@y.com") == 1


# ---------------------------------------------------------------------------
# SlidingWindowLimiter
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limiter_window_slides():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=3, window=60, clock=clock)

    limiter.hit("10.0.0.1")
    clock.now += 30
    limiter.hit("10.0.0.1")
    limiter.hit("10.0.0.1")

    with pytest.raises(RateLimitExceeded) as excinfo:
        limiter.hit("10.0.0.1")
    assert 0 < excinfo.value.retry_after <= 31

    # first hit leaves the window; one slot frees up
    clock.now += 31
    limiter.hit("10.0.0.1")
    with pytest.raises(RateLimitExceeded):
        limiter.hit("10.0.0.1")


def test_limiter_tracks_identities_separately():
    limiter = SlidingWindowLimiter(max_requests=1, window=60, clock=FakeClock())
    limiter.hit("10.0.0.1")
    limiter.hit("10.0.0.2")
    assert limiter.remaining("10.0.0.1") == 0
    limiter.reset()
    assert limiter.remaining("10.0.0.1") == 1


def test_limiter_forgets_idle_identities():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=10, window=60, clock=clock)

    for i in range(1000):
        limiter.hit(f"2001:db8::{i:x}")
    assert limiter.tracked_identities() == 1000

    clock.now += 3600
    limiter.hit("10.0.0.1")
    assert limiter.tracked_identities() == 1


def test_limiter_sweep_keeps_active_identities():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=10, window=60, clock=clock)

    limiter.hit("idle")
    clock.now += 50
    limiter.hit("busy")
    clock.now += 20
    limiter.hit("busy")

    assert limiter.tracked_identities() == 1
    assert limiter.remaining("busy") == 8
