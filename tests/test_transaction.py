import pytest

from ballotbox import CallContext, HomomorphicBallot, ResourceExhaustionError, config
from ballotbox.transaction import Transactional, atomic
from conftest import ADMIN, NOW

OPEN = NOW + 60


class Counter(Transactional):
    _state_fields = ("items", "total")

    def __init__(self):
        self.items = []
        self.total = 0

    @atomic
    def add(self, value, fail=False):
        self.items.append(value)
        self.total += value
        if fail:
            raise RuntimeError("boom")


def test_atomic_rolls_back_partial_mutation():
    c = Counter()
    c.add(1)
    view = c.items
    with pytest.raises(RuntimeError):
        c.add(5, fail=True)
    assert c.items == [1]
    assert c.total == 1
    # containers are restored in place
    assert view is c.items


def test_charge_tracks_usage():
    ctx = CallContext("x", gas=100)
    ctx.charge(40)
    assert ctx.gas == 60
    assert ctx.gas_used == 40
    with pytest.raises(ResourceExhaustionError) as info:
        ctx.charge(61)
    assert info.value.needed == 61
    assert info.value.remaining == 60
    assert ctx.gas == 0
    assert ctx.gas_used == 100


def test_unmetered_context_never_runs_out():
    ctx = CallContext("x")
    ctx.charge(10 ** 12)
    assert ctx.gas is None
    assert ctx.gas_used == 10 ** 12


def test_register_out_of_gas_has_no_effect(voters):
    ctx = CallContext(ADMIN, NOW, gas=config.GAS_BASE)
    with pytest.raises(ResourceExhaustionError):
        voters.register(ctx, "alice")
    assert not voters.is_registered("alice")
    assert voters.count() == 0


def test_create_election_out_of_gas_has_no_effect(factory):
    deployed = factory.deployed_elections()
    with pytest.raises(ResourceExhaustionError):
        factory.create_election(CallContext(ADMIN, NOW, gas=config.GAS_BASE + 1), "", "", 0, 0)
    assert len(deployed) == 0
    assert len(factory.deployed_elections()) == 0


def test_add_option_out_of_gas_has_no_effect(pending_election):
    with pytest.raises(ResourceExhaustionError):
        pending_election.add_option(CallContext(ADMIN, NOW, gas=config.GAS_BASE), "late", "")
    assert len(pending_election.get_options()) == 3


def test_vote_out_of_gas_keeps_previous_ballot(pending_election, voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    pending_election.vote(CallContext("alice", OPEN), [1, 0, 0])
    with pytest.raises(ResourceExhaustionError):
        pending_election.vote(CallContext("alice", OPEN, gas=config.GAS_BASE + 1), [0, 1, 0])
    assert pending_election.get_encrypted_vote_of_voter("alice") == HomomorphicBallot((1, 0, 0))


def test_first_vote_out_of_gas_leaves_no_trace(pending_election, voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    with pytest.raises(ResourceExhaustionError):
        pending_election.vote(CallContext("alice", OPEN, gas=config.GAS_BASE + 1), [0, 1, 0])
    assert not pending_election.has_voted("alice")
    assert pending_election.ballot_count() == 0


def test_vote_within_budget_succeeds(pending_election, voters, admin_ctx):
    voters.register(admin_ctx, "alice")
    ctx = CallContext("alice", OPEN, gas=config.DEFAULT_GAS_LIMIT)
    pending_election.vote(ctx, [0, 1, 0])
    assert ctx.gas_used == config.GAS_BASE + 3 * config.GAS_STORE_SLOT
