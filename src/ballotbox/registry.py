"""Registration authority: the set of identities eligible to vote."""

from __future__ import annotations

import logging
from typing import Dict, Hashable, List

from . import config
from .context import CallContext
from .errors import AuthorizationError
from .transaction import Transactional, atomic

logger = logging.getLogger(__name__)


class VoterRegistry(Transactional):
    """Registry of voter identities, administered by a single principal

    Voters are created on their first registration and afterwards only toggle
    between registered and unregistered; entries are never deleted.
    """

    _state_fields = ("_voters", "_count")

    def __init__(self, administrator: Hashable):
        self._administrator = administrator
        self._voters: Dict[Hashable, bool] = {}
        self._count = 0

    @property
    def administrator(self) -> Hashable:
        return self._administrator

    def _only_administrator(self, ctx: CallContext) -> None:
        if ctx.caller != self._administrator:
            raise AuthorizationError(
                f"{ctx.caller!r} is not the registry administrator"
            )

    @atomic
    def register(self, ctx: CallContext, voter_id: Hashable) -> None:
        """Mark ``voter_id`` as eligible; registering twice is a no-op"""

        self._only_administrator(ctx)
        ctx.charge(config.GAS_BASE)
        if self._voters.get(voter_id, False):
            return
        self._voters[voter_id] = True
        self._count += 1
        ctx.charge(config.GAS_FLAG_WRITE)
        logger.info("registered voter %r (%d registered)", voter_id, self._count)

    @atomic
    def unregister(self, ctx: CallContext, voter_id: Hashable) -> None:
        """Revoke eligibility of ``voter_id``; unknown voters are ignored"""

        self._only_administrator(ctx)
        ctx.charge(config.GAS_BASE)
        if not self._voters.get(voter_id, False):
            return
        self._voters[voter_id] = False
        self._count -= 1
        ctx.charge(config.GAS_FLAG_WRITE)
        logger.info("unregistered voter %r (%d registered)", voter_id, self._count)

    def is_registered(self, voter_id: Hashable) -> bool:
        return self._voters.get(voter_id, False)

    def count(self) -> int:
        return self._count

    def voters(self) -> List[Hashable]:
        """Currently registered identities, in first-registration order"""

        return [v for v, registered in self._voters.items() if registered]

    def __contains__(self, voter_id: Hashable) -> bool:
        return self.is_registered(voter_id)
