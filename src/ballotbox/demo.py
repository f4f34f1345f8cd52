"""Reference runner that walks one election through every phase.

Run with ``python -m ballotbox.demo`` (or the ``ballotbox-demo`` script) to
register voters, open an election, cast and recast encrypted ballots and
decrypt the homomorphic tally.
"""

from __future__ import annotations

import argparse
import logging
import random
import time
from typing import Dict, List, Optional

from . import config
from .ballot import encrypt_choice
from .context import CallContext
from .factory import deploy
from .schemes import elgamal_keygen, paillier_keygen

OPTIONS = ["Alice", "Bob", "Carol"]


def _print_heading(msg: str):
    print()
    print(msg)


def _print_kv(key: str, value: str):
    print(f"  {key}: {value}")


def run_demo(scheme: str = "paillier", num_voters: int = 5, seed: Optional[int] = None) -> Dict[str, int]:
    """Run a full election and return the decrypted tally by option name"""

    rng = random.Random(seed)
    admin = "admin"
    now = int(time.time())
    start, end = now + 60, now + 120

    _print_heading("[Setup] deploy registry and factory, generate election key")
    voters, factory = deploy(admin)
    if scheme == "paillier":
        pub, priv = paillier_keygen(config.PAILLIER_KEY_BITS)
        decrypt = priv.decrypt
    else:
        pub, priv = elgamal_keygen()

        def decrypt(c):
            return priv.decrypt(c, max_k=num_voters)

    _print_kv("scheme", scheme)

    _print_heading("[Registration] register voters")
    ids = [f"voter{i:03d}" for i in range(num_voters)]
    for vid in ids:
        voters.register(CallContext(admin, now), vid)
    _print_kv("registered", str(voters.count()))

    _print_heading("[Pending] create election and add options")
    election = factory.create_election(
        CallContext(admin, now), "Demo election", "homomorphic tally demo", start, end, pub.to_blob()
    )
    for name in OPTIONS:
        election.add_option(CallContext(admin, now), name, f"candidate {name}")
    _print_kv("options", ", ".join(o.name for o in election.get_options()))

    _print_heading("[Open] cast ballots; the first voter changes their mind")
    choices: Dict[str, int] = {}
    for vid in ids:
        choice = rng.randrange(len(OPTIONS))
        election.vote(CallContext(vid, start), encrypt_choice(pub, choice, len(OPTIONS)))
        choices[vid] = choice
        _print_kv(vid, OPTIONS[choice])
    if ids:
        recast = (choices[ids[0]] + 1) % len(OPTIONS)
        election.vote(CallContext(ids[0], end - 1), encrypt_choice(pub, recast, len(OPTIONS)))
        choices[ids[0]] = recast
        _print_kv(f"{ids[0]} (recast)", OPTIONS[recast])

    _print_heading("[Closed] aggregate and decrypt")
    counts: List[int] = [decrypt(c) for c in election.tally()]
    result = dict(zip(OPTIONS, counts))
    for name, cnt in result.items():
        _print_kv(name, str(cnt))

    expected = [list(choices.values()).count(i) for i in range(len(OPTIONS))]
    print("\nVerification result:", "OK" if counts == expected else "MISMATCH")
    return result


def main(argv=None):
    logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
    p = argparse.ArgumentParser(prog="ballotbox-demo")
    p.add_argument("--scheme", choices=("paillier", "elgamal"), default="paillier")
    p.add_argument("--voters", type=int, default=5)
    p.add_argument("--seed", type=int)
    args = p.parse_args(argv)
    run_demo(args.scheme, args.voters, args.seed)


if __name__ == "__main__":
    main()
