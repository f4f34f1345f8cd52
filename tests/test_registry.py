import random

import pytest

from ballotbox import AuthorizationError, CallContext, VoterRegistry
from conftest import ADMIN, NOW


def test_administrator_is_creator_and_count_starts_at_zero():
    reg = VoterRegistry(ADMIN)
    assert reg.administrator == ADMIN
    assert reg.count() == 0
    assert reg.is_registered("alice") is False


def test_register_and_unregister_voter(voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    assert voters.is_registered("alice")
    assert "alice" in voters
    assert voters.count() == 1

    voters.unregister(admin_ctx, "alice")
    assert not voters.is_registered("alice")
    assert voters.count() == 0


def test_only_administrator_can_register_or_unregister(voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    intruder = CallContext("mallory", NOW)
    with pytest.raises(AuthorizationError):
        voters.register(intruder, "bob")
    with pytest.raises(AuthorizationError):
        voters.unregister(intruder, "alice")
    assert voters.is_registered("alice")
    assert not voters.is_registered("bob")
    assert voters.count() == 1


def test_authorization_error_is_a_permission_error(voters):
    with pytest.raises(PermissionError):
        voters.register(CallContext("mallory", NOW), "mallory")


def test_register_twice_is_idempotent(voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    voters.register(admin_ctx, "alice")
    assert voters.count() == 1


def test_unregister_unknown_voter_is_noop(voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    voters.unregister(admin_ctx, "nobody")
    voters.unregister(admin_ctx, "nobody")
    assert voters.count() == 1


def test_multiple_voters_registered_and_unregistered(voters, admin_ctx):
    for vid in ("a0", "a1", "a2"):
        voters.register(admin_ctx, vid)
    voters.unregister(admin_ctx, "a1")
    assert voters.count() == 2
    assert voters.voters() == ["a0", "a2"]


def test_count_matches_registered_flags_after_random_operations(voters, admin_ctx):
    rng = random.Random(1234)
    ids = [f"v{i}" for i in range(8)]
    for _ in range(200):
        vid = rng.choice(ids)
        if rng.random() < 0.6:
            voters.register(admin_ctx, vid)
        else:
            voters.unregister(admin_ctx, vid)
        assert voters.count() == sum(voters.is_registered(v) for v in ids)
        assert voters.count() == len(voters.voters())


def test_reregistering_after_unregister(voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    voters.unregister(admin_ctx, "alice")
    voters.register(admin_ctx, "alice")
    assert voters.is_registered("alice")
    assert voters.count() == 1
