from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional

from .errors import ResourceExhaustionError


@dataclass
class CallContext:
    """Identity, clock reading and budget of one engine call

    Attributes
    - caller: opaque principal id of whoever issued the call
    - now: timestamp (seconds) phase checks compare against
    - gas: remaining execution budget, or None for an unmetered call
    - gas_used: total charged so far, kept even when the call rolls back
    """

    caller: Hashable
    now: float = 0
    gas: Optional[int] = None
    gas_used: int = 0

    def charge(self, amount: int) -> None:
        """Consume ``amount`` units of gas or raise ResourceExhaustionError"""

        if self.gas is not None:
            if amount > self.gas:
                remaining = self.gas
                self.gas_used += remaining
                self.gas = 0
                raise ResourceExhaustionError(amount, remaining)
            self.gas -= amount
        self.gas_used += amount
