"""ballotbox - a privacy-preserving election engine

The package contains a registration authority (``registry``), an election
factory (``factory``) and the election state machine (``election``) that
stores one encrypted one-hot ballot per voter and tallies them in the
ciphertext domain (``ballot``, ``schemes``). ``server`` and ``cli`` expose the
engine over HTTP.
"""

from .ballot import EncryptingScheme, HomomorphicBallot, HomomorphicScheme, encrypt_choice, one_hot
from .context import CallContext
from .election import Election, Option, Phase
from .errors import (
    AuthorizationError,
    ElectionError,
    InvalidInputError,
    NotRegisteredError,
    PhaseError,
    ResourceExhaustionError,
)
from .factory import ElectionRegistry, deploy
from .registry import VoterRegistry

__all__ = [
    "AuthorizationError",
    "CallContext",
    "Election",
    "ElectionError",
    "ElectionRegistry",
    "EncryptingScheme",
    "HomomorphicBallot",
    "HomomorphicScheme",
    "InvalidInputError",
    "NotRegisteredError",
    "Option",
    "Phase",
    "PhaseError",
    "ResourceExhaustionError",
    "VoterRegistry",
    "deploy",
    "encrypt_choice",
    "one_hot",
]
