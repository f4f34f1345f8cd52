"""A single election: options, time window, ballot box and tally.

The phase of an election is never stored. Each operation compares the time in
its ``CallContext`` to the election's window:

- PENDING: now < start_time; the manager may still add options
- OPEN: start_time <= now < end_time; registered voters may cast and recast
- CLOSED: now >= end_time; the ballot box is frozen

Ballots hold one ciphertext per option, so the option list must not change
once voting can start, and every ballot must be exactly as long as it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Hashable, List, Optional

from . import config
from .ballot import HomomorphicBallot, HomomorphicScheme, aggregate
from .context import CallContext
from .errors import AuthorizationError, InvalidInputError, NotRegisteredError, PhaseError
from .registry import VoterRegistry
from .schemes import load_public_key
from .transaction import Transactional, atomic

if TYPE_CHECKING:
    from .factory import ElectionRegistry

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    PENDING = "pending"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Option:
    """A voting option

    Attributes
    - index: position in the option list, also its ballot slot
    - name: short label
    - description: free text
    """

    index: int
    name: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "name": self.name, "description": self.description}


class Election(Transactional):
    """State machine of one election, bound to a voter registry"""

    _state_fields = ("_options", "_ballots", "_voted")

    def __init__(
        self,
        manager: Hashable,
        registry: VoterRegistry,
        title: str,
        description: str,
        start_time: float,
        end_time: float,
        public_key: Optional[str] = None,
        factory: Optional["ElectionRegistry"] = None,
    ):
        self._manager = manager
        self._registry = registry
        self._factory = factory
        self._title = title
        self._description = description
        self._start_time = start_time
        self._end_time = end_time
        self._public_key = public_key
        self._options: List[Option] = []
        self._ballots: Dict[Hashable, HomomorphicBallot] = {}
        # dict keeps first-cast order; values are unused
        self._voted: Dict[Hashable, None] = {}

    def __repr__(self) -> str:
        return f"<Election {self._title!r} [{self._start_time}, {self._end_time})>"

    @property
    def manager(self) -> Hashable:
        return self._manager

    @property
    def registry(self) -> VoterRegistry:
        return self._registry

    @property
    def factory(self) -> Optional["ElectionRegistry"]:
        return self._factory

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> str:
        return self._description

    @property
    def start_time(self) -> float:
        return self._start_time

    @property
    def end_time(self) -> float:
        return self._end_time

    @property
    def public_key(self) -> Optional[str]:
        return self._public_key

    def phase(self, now: float) -> Phase:
        if now < self._start_time:
            return Phase.PENDING
        if now < self._end_time:
            return Phase.OPEN
        return Phase.CLOSED

    def _require_phase(self, expected: Phase, now: float, action: str) -> None:
        current = self.phase(now)
        if current is not expected:
            raise PhaseError(
                f"cannot {action} while the election is {current.value}"
                f" (only while {expected.value})"
            )

    @atomic
    def add_option(self, ctx: CallContext, name: str, description: str) -> Option:
        """Append an option; manager only and only before voting starts"""

        if ctx.caller != self._manager:
            raise AuthorizationError(f"{ctx.caller!r} is not the election manager")
        self._require_phase(Phase.PENDING, ctx.now, "add options")
        if not isinstance(name, str) or not isinstance(description, str):
            raise InvalidInputError("option name and description must be strings")
        ctx.charge(config.GAS_BASE)
        option = Option(index=len(self._options), name=name, description=description)
        self._options.append(option)
        ctx.charge(config.GAS_ADD_OPTION)
        logger.info("added option %d %r to %r", option.index, name, self._title)
        return option

    @atomic
    def vote(self, ctx: CallContext, ballot: Any) -> None:
        """Store the caller's ballot, replacing any earlier one

        Args
        - ctx: call context; ctx.caller is the voter
        - ballot: sequence of ciphertexts, one per option
        """

        if not self._registry.is_registered(ctx.caller):
            raise NotRegisteredError(f"{ctx.caller!r} is not a registered voter")
        self._require_phase(Phase.OPEN, ctx.now, "vote")
        ballot = HomomorphicBallot.from_sequence(ballot)
        if len(ballot) != len(self._options):
            raise InvalidInputError(
                f"ballot has {len(ballot)} slots but the election has"
                f" {len(self._options)} options"
            )
        ctx.charge(config.GAS_BASE)
        revote = ctx.caller in self._ballots
        self._ballots[ctx.caller] = ballot
        self._voted[ctx.caller] = None
        ctx.charge(config.GAS_STORE_SLOT * len(ballot))
        logger.info(
            "%s ballot from %r in %r", "replaced" if revote else "stored", ctx.caller, self._title
        )

    def get_encrypted_vote_of_voter(self, voter_id: Hashable) -> Optional[HomomorphicBallot]:
        return self._ballots.get(voter_id)

    def has_voted(self, voter_id: Hashable) -> bool:
        return voter_id in self._voted

    def get_options(self) -> List[Option]:
        return list(self._options)

    def voters(self) -> List[Hashable]:
        return list(self._voted)

    def ballot_count(self) -> int:
        return len(self._ballots)

    def tally(self, scheme: Optional[HomomorphicScheme] = None) -> List[Any]:
        """Per-option encrypted sums over the ballots stored right now

        Without ``scheme`` the combination operator comes from the election's
        public key material.
        """

        if scheme is None:
            if self._public_key is None:
                raise InvalidInputError("election has no public key material to tally with")
            scheme = load_public_key(self._public_key)
        return aggregate(self._ballots.values(), scheme, len(self._options))
