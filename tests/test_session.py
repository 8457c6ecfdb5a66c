"""
Tests for the client-held session token and the SessionGuard.

A token issued at T is accepted at T+23h59m and rejected at T+24h01m;
it only ever admits the project it names.
"""

import json

import pytest

from fintrack.errors import AccessDeniedError
from fintrack.session import (
    PROJECT_AUTH_KEY,
    ClientSessionStorage,
    ProjectSession,
    SessionGuard,
)

ISSUED_AT = 1_735_689_600_000  # 2025-01-01T00:00:00Z in ms
MINUTE = 60 * 1000
HOUR = 60 * MINUTE


class FakeClock:
    def __init__(self, now_ms):
        self.now_ms = now_ms

    def __call__(self):
        return self.now_ms


@pytest.fixture
def clock():
    return FakeClock(ISSUED_AT)


@pytest.fixture
def storage():
    return ClientSessionStorage()


@pytest.fixture
def guard(storage, clock):
    guard = SessionGuard(storage, clock=clock)
    guard.issue(ProjectSession(
        project_id="65a1f0c2e4b0a1b2c3d4e5f6",
        project_name="veritas25",
        authenticated_at=ISSUED_AT,
    ))
    return guard


class TestValidityWindow:

    def test_admitted_right_after_issue(self, guard):
        session = guard.admit("veritas25")
        assert session.project_id == "65a1f0c2e4b0a1b2c3d4e5f6"

    def test_admitted_at_23h59m(self, guard, clock):
        clock.now_ms = ISSUED_AT + 23 * HOUR + 59 * MINUTE
        assert guard.admit("veritas25").project_name == "veritas25"

    def test_rejected_at_24h01m(self, guard, clock):
        clock.now_ms = ISSUED_AT + 24 * HOUR + MINUTE
        with pytest.raises(AccessDeniedError):
            guard.admit("veritas25")

    def test_rejected_at_exactly_24h(self, guard, clock):
        clock.now_ms = ISSUED_AT + 24 * HOUR
        with pytest.raises(AccessDeniedError):
            guard.admit("veritas25")

    def test_expired_token_is_cleared(self, guard, clock, storage):
        clock.now_ms = ISSUED_AT + 25 * HOUR
        with pytest.raises(AccessDeniedError):
            guard.admit("veritas25")
        assert storage.get_item(PROJECT_AUTH_KEY) is None

        # Winding the clock back does not bring it back
        clock.now_ms = ISSUED_AT
        with pytest.raises(AccessDeniedError):
            guard.admit("veritas25")


class TestProjectMatch:

    def test_other_project_denied(self, guard):
        with pytest.raises(AccessDeniedError):
            guard.admit("another-project")

    def test_mismatch_keeps_token(self, guard, storage):
        with pytest.raises(AccessDeniedError):
            guard.admit("another-project")
        assert storage.get_item(PROJECT_AUTH_KEY) is not None
        assert guard.is_admitted("veritas25")

    def test_name_match_is_exact(self, guard):
        assert not guard.is_admitted("Veritas25")
        assert not guard.is_admitted("veritas25 ")


class TestTokenPresence:

    def test_no_token_denied(self, storage, clock):
        guard = SessionGuard(storage, clock=clock)
        with pytest.raises(AccessDeniedError):
            guard.admit("veritas25")

    def test_logout_clears_token(self, guard):
        guard.clear()
        assert not guard.is_admitted("veritas25")

    def test_unreadable_token_denied(self, storage, clock):
        storage.set_item(PROJECT_AUTH_KEY, "{not json")
        guard = SessionGuard(storage, clock=clock)
        assert not guard.is_admitted("veritas25")
        assert storage.get_item(PROJECT_AUTH_KEY) is None

    def test_incomplete_token_denied(self, storage, clock):
        storage.set_item(PROJECT_AUTH_KEY, json.dumps({"project_name": "veritas25"}))
        guard = SessionGuard(storage, clock=clock)
        assert not guard.is_admitted("veritas25")


def test_every_denial_looks_the_same(storage, clock):
    """Missing, mismatched and expired tokens produce identical errors"""
    guard = SessionGuard(storage, clock=clock)
    messages = []

    with pytest.raises(AccessDeniedError) as missing:
        guard.admit("veritas25")
    messages.append(str(missing.value))

    guard.issue(ProjectSession(project_id="x", project_name="veritas25", authenticated_at=ISSUED_AT))
    with pytest.raises(AccessDeniedError) as mismatched:
        guard.admit("other")
    messages.append(str(mismatched.value))

    clock.now_ms = ISSUED_AT + 48 * HOUR
    with pytest.raises(AccessDeniedError) as expired:
        guard.admit("veritas25")
    messages.append(str(expired.value))

    assert len(set(messages)) == 1


def test_token_round_trips_through_storage_as_json(guard, storage):
    stored = json.loads(storage.get_item(PROJECT_AUTH_KEY))
    assert stored == {
        "project_id": "65a1f0c2e4b0a1b2c3d4e5f6",
        "project_name": "veritas25",
        "authenticated_at": ISSUED_AT,
    }
