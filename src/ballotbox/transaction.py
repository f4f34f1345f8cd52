"""All-or-nothing execution of engine operations.

Components list the attributes holding their owned mutable state in
``_state_fields``. Those containers only ever hold immutable values (flags,
ballots, options) or references to other components, so a shallow copy of each
is a complete snapshot.
"""

from __future__ import annotations

import copy
import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Tuple, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Transactional:
    _state_fields: Tuple[str, ...] = ()

    def _snapshot(self) -> Dict[str, Any]:
        return {name: copy.copy(getattr(self, name)) for name in self._state_fields}

    def _restore(self, snapshot: Dict[str, Any]) -> None:
        # containers are refilled in place so live views stay valid
        for name, value in snapshot.items():
            current = getattr(self, name)
            if isinstance(current, list):
                current[:] = value
            elif isinstance(current, (dict, set)):
                current.clear()
                current.update(value)
            else:
                setattr(self, name, value)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Restore owned state if the body raises, then re-raise"""

        snapshot = self._snapshot()
        try:
            yield
        except BaseException as exc:
            self._restore(snapshot)
            logger.debug("rolled back %s: %r", type(self).__name__, exc)
            raise


def atomic(method: F) -> F:
    """Run a Transactional method inside its own transaction"""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.transaction():
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
