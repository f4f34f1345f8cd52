import os
import sys

import pytest


# Ensure repository src directory is on sys.path for tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from ballotbox import CallContext, EncryptingScheme, deploy  # noqa: E402

ADMIN = "admin"
NOW = 1_700_000_000


class SumScheme(EncryptingScheme):
    """Plaintext stand-in: ciphertexts are the integers themselves"""

    def combine(self, a, b):
        return a + b

    def identity(self):
        return 0

    def encrypt(self, m):
        return m


@pytest.fixture
def scheme():
    return SumScheme()


@pytest.fixture
def engine():
    """A fresh (VoterRegistry, ElectionRegistry) pair administered by ADMIN"""
    return deploy(ADMIN)


@pytest.fixture
def voters(engine):
    return engine[0]


@pytest.fixture
def factory(engine):
    return engine[1]


@pytest.fixture
def admin_ctx():
    return CallContext(ADMIN, NOW)


@pytest.fixture
def pending_election(factory, admin_ctx):
    """Election opening in 60s with three options"""
    election = factory.create_election(admin_ctx, "t", "d", NOW + 60, NOW + 120)
    for name in ("O0", "O1", "O2"):
        election.add_option(admin_ctx, name, f"desc {name}")
    return election
