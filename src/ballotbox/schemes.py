"""Concrete additively homomorphic schemes for encrypted ballots.

Two schemes are provided:

- exponential ElGamal over the RFC 3526 group 14: a ciphertext is (c1, c2) and
  combining multiplies component-wise modulo p. Decrypting a sum needs a small
  discrete log, bounded by the number of voters.
- Paillier with g = n + 1: a ciphertext is an integer modulo n^2 and combining
  multiplies modulo n^2.

Public keys implement ``EncryptingScheme`` and serialise to a JSON blob that
an election stores as its opaque key material. Private keys stay with the key
holder; the engine never imports them.
"""

from __future__ import annotations

import json
import math
import secrets
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .ballot import EncryptingScheme, HomomorphicScheme
from .errors import InvalidInputError

# RFC 3526 2048-bit MODP Group (Group 14) prime p
# Source for prime: https://datatracker.ietf.org/doc/html/rfc3526
_P_HEX = (
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE65381"
    "FFFFFFFFFFFFFFFF"
)


def _rand_scalar(q: int) -> int:
    """Return a random scalar in [1 to q-1]"""

    return secrets.randbelow(q - 1) + 1


## --- exponential ElGamal ---------------------------------------------------


@dataclass(frozen=True)
class ElGamalParams:
    """ElGamal group params

    Attributes
    - p: safe prime modulus
    - q: large prime such that p = 2q + 1
    - g: generator of the subgroup of order q (here: g=2)
    """

    p: int
    q: int
    g: int


def elgamal_params_default() -> ElGamalParams:
    p = int(_P_HEX, 16)
    return ElGamalParams(p=p, q=(p - 1) // 2, g=2)


@dataclass(frozen=True)
class ElGamalPublicKey(EncryptingScheme):
    """ElGamal public key with exponent encoding of messages

    Attributes
    - params: the group parameters
    - y: public component y = g^x mod p
    """

    params: ElGamalParams
    y: int

    def encrypt(self, m: int, r: Optional[int] = None) -> Tuple[int, int]:
        """Encrypt a small non-negative integer as (g^r, y^r * g^m)"""

        if m < 0:
            raise InvalidInputError("ElGamal messages must be non-negative")
        params = self.params
        if r is None:
            r = _rand_scalar(params.q)
        c1 = pow(params.g, r, params.p)
        c2 = (pow(self.y, r, params.p) * pow(params.g, m, params.p)) % params.p
        return c1, c2

    def combine(self, a: Any, b: Any) -> Tuple[int, int]:
        """Enc(m1) * Enc(m2) = Enc(m1 + m2), component-wise modulo p"""

        p = self.params.p
        return (int(a[0]) * int(b[0])) % p, (int(a[1]) * int(b[1])) % p

    def identity(self) -> Tuple[int, int]:
        return 1, 1

    def to_blob(self) -> str:
        return json.dumps(
            {
                "scheme": "elgamal",
                "p": str(self.params.p),
                "q": str(self.params.q),
                "g": str(self.params.g),
                "y": str(self.y),
            },
            sort_keys=True,
        )


@dataclass(frozen=True)
class ElGamalPrivateKey:
    """ElGamal private key

    Attributes
    - params: the group parameters
    - x: secret exponent in [1..q-1]
    """

    params: ElGamalParams
    x: int

    def decrypt_element(self, c: Any) -> int:
        """Recover the group element g^m from a ciphertext"""

        c1, c2 = int(c[0]), int(c[1])
        p = self.params.p
        s = pow(c1, self.x, p)
        # Inverse modulo p (p is prime). Using Fermat: s^(p-2) mod p
        s_inv = pow(s, p - 2, p)
        return (c2 * s_inv) % p

    def decrypt(self, c: Any, max_k: int = 1) -> int:
        """Decrypt a ciphertext whose plaintext is known to lie in [0, max_k]"""

        m = discrete_log(self.params.g, self.decrypt_element(c), self.params.p, max_k)
        if m is None:
            raise ValueError(f"Ciphertext does not decrypt to a value in [0, {max_k}].")
        return m


def elgamal_keygen(params: Optional[ElGamalParams] = None) -> Tuple[ElGamalPublicKey, ElGamalPrivateKey]:
    """Generate an ElGamal public and private key from the given parameters"""

    if params is None:
        params = elgamal_params_default()
    x = _rand_scalar(params.q)
    y = pow(params.g, x, params.p)
    return ElGamalPublicKey(params=params, y=y), ElGamalPrivateKey(params=params, x=x)


def discrete_log_small(base: int, value: int, p: int, max_k: int) -> Optional[int]:
    """Brute-force discrete log for small ranges (0 to max_k)"""

    if value == 1:
        return 0
    cur = 1
    for k in range(1, max_k + 1):
        cur = (cur * base) % p
        if cur == value:
            return k
    return None


def discrete_log_bsgs(base: int, value: int, p: int, max_k: int) -> Optional[int]:
    """Baby-step giant-step discrete log: find k <= max_k with base^k = value (mod p)"""

    if value == 1:
        return 0
    m = math.isqrt(max_k) + 1

    # Baby steps: store base^j -> j for j in [0, m)
    baby = {}
    cur = 1
    for j in range(m):
        baby.setdefault(cur, j)
        cur = (cur * base) % p

    base_m_inv = pow(pow(base, m, p), p - 2, p)
    gamma = value
    for i in range(math.ceil(max_k / m) + 1):
        if gamma in baby:
            k = i * m + baby[gamma]
            return k if k <= max_k else None
        gamma = (gamma * base_m_inv) % p
    return None


def discrete_log(base: int, value: int, p: int, max_k: int) -> Optional[int]:
    """Choose an appropriate discrete-log routine based on max_k."""

    if max_k <= 64:
        return discrete_log_small(base, value, p, max_k)
    return discrete_log_bsgs(base, value, p, max_k)


## --- Paillier --------------------------------------------------------------


_SMALL_PRIMES = (3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47)


def is_probable_prime(n: int, rounds: int = 40) -> bool:
    """Miller-Rabin primality test"""

    if n < 2:
        return False
    if n in (2,) + _SMALL_PRIMES:
        return True
    if n % 2 == 0 or any(n % sp == 0 for sp in _SMALL_PRIMES):
        return False
    d, s = n - 1, 0
    while d % 2 == 0:
        d //= 2
        s += 1
    for _ in range(rounds):
        a = secrets.randbelow(n - 3) + 2
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def random_prime(bits: int) -> int:
    while True:
        # top two bits set so p * q has the full modulus size
        candidate = secrets.randbits(bits) | (3 << (bits - 2)) | 1
        if is_probable_prime(candidate):
            return candidate


@dataclass(frozen=True)
class PaillierPublicKey(EncryptingScheme):
    """Paillier public key in the g = n + 1 variant

    Attributes
    - n: RSA modulus p * q
    """

    n: int

    @property
    def n_sq(self) -> int:
        return self.n * self.n

    def encrypt(self, m: int, r: Optional[int] = None) -> int:
        """Encrypt m as (1 + n)^m * r^n mod n^2"""

        if not 0 <= m < self.n:
            raise InvalidInputError("Paillier messages must lie in [0, n)")
        if r is None:
            r = _rand_scalar(self.n)
            while math.gcd(r, self.n) != 1:
                r = _rand_scalar(self.n)
        n_sq = self.n_sq
        return ((1 + m * self.n) % n_sq) * pow(r, self.n, n_sq) % n_sq

    def combine(self, a: Any, b: Any) -> int:
        """Enc(m1) * Enc(m2) = Enc(m1 + m2) modulo n^2"""

        return (int(a) * int(b)) % self.n_sq

    def identity(self) -> int:
        return 1

    def to_blob(self) -> str:
        return json.dumps({"scheme": "paillier", "n": str(self.n)}, sort_keys=True)


@dataclass(frozen=True)
class PaillierPrivateKey:
    """Paillier private key

    Attributes
    - public: the matching public key
    - lmbda: phi(n) = (p - 1)(q - 1)
    - mu: lmbda^-1 mod n
    """

    public: PaillierPublicKey
    lmbda: int
    mu: int

    def decrypt(self, c: Any) -> int:
        n = self.public.n
        u = pow(int(c), self.lmbda, self.public.n_sq)
        return ((u - 1) // n) * self.mu % n


def paillier_keygen(bits: int = 512) -> Tuple[PaillierPublicKey, PaillierPrivateKey]:
    """Generate a Paillier key pair with an n of roughly ``bits`` bits"""

    half = bits // 2
    p = random_prime(half)
    q = random_prime(half)
    while q == p:
        q = random_prime(half)
    n = p * q
    lmbda = (p - 1) * (q - 1)
    public = PaillierPublicKey(n=n)
    return public, PaillierPrivateKey(public=public, lmbda=lmbda, mu=pow(lmbda, -1, n))


## --- key material blobs ----------------------------------------------------


def load_public_key(blob: str) -> HomomorphicScheme:
    """Rebuild a public key from the JSON blob produced by ``to_blob``"""

    try:
        data = json.loads(blob)
        scheme = data["scheme"]
        if scheme == "paillier":
            n = int(data["n"])
            if n < 2:
                raise InvalidInputError(f"Paillier modulus must be at least 2, got {n}")
            return PaillierPublicKey(n=n)
        if scheme == "elgamal":
            params = ElGamalParams(p=int(data["p"]), q=int(data["q"]), g=int(data["g"]))
            if params.p < 3:
                raise InvalidInputError(f"ElGamal modulus must be at least 3, got {params.p}")
            return ElGamalPublicKey(params=params, y=int(data["y"]))
    except (TypeError, ValueError, KeyError) as exc:
        raise InvalidInputError(f"malformed public key material: {exc}") from None
    raise InvalidInputError(f"unknown scheme {scheme!r}")
