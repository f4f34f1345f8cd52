"""Election factory: administrator-controlled creation of elections."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Hashable, List, Optional, Tuple

from . import config
from .context import CallContext
from .election import Election
from .errors import AuthorizationError
from .registry import VoterRegistry
from .transaction import Transactional, atomic

logger = logging.getLogger(__name__)


class DeployedElections(Sequence):
    """Read-only, ordered view over the elections a factory created"""

    def __init__(self, elections: List[Election]):
        self._elections = elections

    def __getitem__(self, index):
        return self._elections[index]

    def __len__(self) -> int:
        return len(self._elections)

    def __repr__(self) -> str:
        return f"DeployedElections({self._elections!r})"


class ElectionRegistry(Transactional):
    """Creates elections bound to one voter registry and remembers them"""

    _state_fields = ("_elections",)

    def __init__(self, administrator: Hashable, voter_registry: VoterRegistry):
        self._administrator = administrator
        self._voter_registry = voter_registry
        self._elections: List[Election] = []

    @property
    def administrator(self) -> Hashable:
        return self._administrator

    @property
    def voter_registry(self) -> VoterRegistry:
        return self._voter_registry

    @atomic
    def create_election(
        self,
        ctx: CallContext,
        title: str,
        description: str,
        start_time: float,
        end_time: float,
        public_key: Optional[str] = None,
    ) -> Election:
        """Create an election managed by the caller

        Args
        - ctx: call context; ctx.caller must be the factory administrator
        - title, description: free text, not validated
        - start_time, end_time: voting window [start_time, end_time)
        - public_key: opaque key material of the encryption scheme, if any

        Returns: the new Election
        """

        if ctx.caller != self._administrator:
            raise AuthorizationError(f"{ctx.caller!r} is not the factory administrator")
        ctx.charge(config.GAS_BASE)
        election = Election(
            manager=ctx.caller,
            registry=self._voter_registry,
            title=title,
            description=description,
            start_time=start_time,
            end_time=end_time,
            public_key=public_key,
            factory=self,
        )
        self._elections.append(election)
        ctx.charge(config.GAS_CREATE_ELECTION)
        logger.info(
            "created election #%d %r [%s, %s)",
            len(self._elections) - 1,
            title,
            start_time,
            end_time,
        )
        return election

    def deployed_elections(self) -> DeployedElections:
        return DeployedElections(self._elections)

    def deployed_election(self, index: int) -> Election:
        return self._elections[index]


def deploy(administrator: Hashable) -> Tuple[VoterRegistry, ElectionRegistry]:
    """Set up a voter registry and an election factory run by one administrator"""

    voter_registry = VoterRegistry(administrator)
    return voter_registry, ElectionRegistry(administrator, voter_registry)
