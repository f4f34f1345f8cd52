"""Encrypted one-hot ballots and their ciphertext-domain aggregation.

A ballot holds one ciphertext per election option. Slot ``i`` encrypts 1 when
option ``i`` was chosen and 0 otherwise, so combining slot ``i`` across all
ballots with the scheme's homomorphic operation yields an encryption of the
number of votes option ``i`` received. The engine only ever sees ciphertexts
and the combination operator; it never decrypts.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from collections.abc import Mapping
from functools import reduce
from typing import Any, Iterable, Iterator, List, Tuple

from .errors import InvalidInputError


class HomomorphicScheme(abc.ABC):
    """Capability the engine needs from an additively homomorphic cryptosystem

    Implementations must satisfy Dec(combine(Enc(a), Enc(b))) == a + b and
    Dec(identity()) == 0.
    """

    @abc.abstractmethod
    def combine(self, a: Any, b: Any) -> Any:
        """Return a ciphertext of the sum of the plaintexts of ``a`` and ``b``"""

    @abc.abstractmethod
    def identity(self) -> Any:
        """Return a ciphertext of 0 that is neutral for ``combine``"""


class EncryptingScheme(HomomorphicScheme):
    """A scheme that also holds the public key needed to produce ciphertexts"""

    @abc.abstractmethod
    def encrypt(self, m: int) -> Any:
        """Return a fresh ciphertext of ``m``"""


def _freeze(value: Any) -> Any:
    # JSON transports tuples as lists
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class HomomorphicBallot:
    """Immutable vector of opaque ciphertexts, one per option

    Attributes
    - ciphertexts: tuple of ciphertexts positionally aligned with the options
    """

    ciphertexts: Tuple[Any, ...] = ()

    @classmethod
    def from_sequence(cls, values: Any) -> "HomomorphicBallot":
        """Build a ballot from any sequence of ciphertexts

        Raises InvalidInputError for strings, bytes, mappings and anything that
        is not iterable.
        """

        if isinstance(values, cls):
            return values
        if isinstance(values, (str, bytes, bytearray, Mapping)):
            raise InvalidInputError(
                f"ballot must be a sequence of ciphertexts, got {type(values).__name__}"
            )
        try:
            items = tuple(_freeze(v) for v in values)
        except TypeError:
            raise InvalidInputError(
                f"ballot must be a sequence of ciphertexts, got {type(values).__name__}"
            ) from None
        return cls(items)

    def __len__(self) -> int:
        return len(self.ciphertexts)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.ciphertexts)

    def __getitem__(self, index: int) -> Any:
        return self.ciphertexts[index]

    def combine(self, other: "HomomorphicBallot", scheme: HomomorphicScheme) -> "HomomorphicBallot":
        """Slot-wise homomorphic sum of two ballots of equal length"""

        if len(other) != len(self):
            raise InvalidInputError(
                f"cannot combine ballots of length {len(self)} and {len(other)}"
            )
        try:
            return HomomorphicBallot(
                tuple(scheme.combine(a, b) for a, b in zip(self, other))
            )
        except (TypeError, ValueError, IndexError, ArithmeticError) as exc:
            raise InvalidInputError(f"ciphertext not valid for this scheme: {exc}") from None

    def to_list(self) -> List[Any]:
        return [list(c) if isinstance(c, tuple) else c for c in self.ciphertexts]


def one_hot(choice: int, width: int) -> List[int]:
    """Encode ``choice`` as a 0/1 vector of length ``width`` with a single 1"""

    if not isinstance(choice, int) or not 0 <= choice < width:
        raise InvalidInputError(f"choice {choice!r} is not in range [0, {width})")
    vec = [0] * width
    vec[choice] = 1
    return vec


def encrypt_choice(scheme: EncryptingScheme, choice: int, width: int) -> HomomorphicBallot:
    """Encrypt a one-hot encoding of ``choice`` slot by slot"""

    return HomomorphicBallot(tuple(scheme.encrypt(bit) for bit in one_hot(choice, width)))


def aggregate(
    ballots: Iterable[HomomorphicBallot], scheme: HomomorphicScheme, width: int
) -> List[Any]:
    """Combine ballots slot-wise into ``width`` tally ciphertexts

    Returns identity ciphertexts when there are no ballots.
    """

    start = HomomorphicBallot(tuple(scheme.identity() for _ in range(width)))
    total = reduce(lambda acc, b: acc.combine(b, scheme), ballots, start)
    return list(total.ciphertexts)
