"""Error taxonomy for the election engine.

Every failing operation raises one of these and leaves no partial state
behind. The permission-style errors also subclass ``PermissionError`` and the
input errors ``ValueError`` so callers catching the builtin families keep
working.
"""

from __future__ import annotations


class ElectionError(Exception):
    """Base class for all engine errors"""


class AuthorizationError(ElectionError, PermissionError):
    """Caller is not the administrator or manager the operation requires"""


class NotRegisteredError(ElectionError, PermissionError):
    """Caller is not a registered voter at the time of the call"""


class PhaseError(ElectionError):
    """Operation attempted outside of the phase it is valid in"""


class InvalidInputError(ElectionError, ValueError):
    """Malformed ballot or option data"""


class ResourceExhaustionError(ElectionError):
    """The call ran out of its execution budget (gas)"""

    def __init__(self, needed: int, remaining: int):
        super().__init__(f"out of gas: needed {needed}, {remaining} remaining")
        self.needed = needed
        self.remaining = remaining
