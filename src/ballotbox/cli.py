"""Small CLI for interacting with the ballotbox Flask server.

Usage examples:
    ballotbox init --caller admin
    ballotbox register --caller admin --voter alice
    ballotbox keygen --out election.key
    ballotbox create --caller admin --title Board --start 1700000000 --end 1700003600 --key election.key
    ballotbox add-option --caller admin --election 0 --name Alice
    ballotbox vote --caller alice --election 0 --choice 1
    ballotbox tally --election 0 --key election.key
"""

from __future__ import annotations

import argparse
import json
import logging

import requests

from . import config
from .ballot import encrypt_choice
from .schemes import PaillierPrivateKey, PaillierPublicKey, load_public_key, paillier_keygen


def _post(base: str, path: str, payload: dict) -> dict:
    r = requests.post(f"{base}{path}", json=payload, timeout=config.REQUEST_TIMEOUT)
    return r.json()


def _get(base: str, path: str) -> dict:
    r = requests.get(f"{base}{path}", timeout=config.REQUEST_TIMEOUT)
    return r.json()


def _gas(args) -> dict:
    return {} if args.gas is None else {"gas": args.gas}


def save_key(path: str, priv: PaillierPrivateKey):
    with open(path, "w") as fh:
        json.dump(
            {"public": priv.public.to_blob(), "lmbda": str(priv.lmbda), "mu": str(priv.mu)}, fh
        )


def load_key(path: str) -> PaillierPrivateKey:
    with open(path) as fh:
        data = json.load(fh)
    public = load_public_key(data["public"])
    if not isinstance(public, PaillierPublicKey):
        raise ValueError(f"{path} does not hold a Paillier key")
    return PaillierPrivateKey(public=public, lmbda=int(data["lmbda"]), mu=int(data["mu"]))


def keygen(args) -> dict:
    _, priv = paillier_keygen(args.bits)
    save_key(args.out, priv)
    return {"public_key": priv.public.to_blob(), "key_file": args.out}


def init(args) -> dict:
    return _post(args.base, "/init", {"caller": args.caller})


def register(args) -> dict:
    return _post(args.base, "/voters/register", {"caller": args.caller, "voter_id": args.voter, **_gas(args)})


def unregister(args) -> dict:
    return _post(args.base, "/voters/unregister", {"caller": args.caller, "voter_id": args.voter, **_gas(args)})


def create(args) -> dict:
    payload = {
        "caller": args.caller,
        "title": args.title,
        "description": args.description,
        "start_time": args.start,
        "end_time": args.end,
        **_gas(args),
    }
    if args.key:
        payload["public_key"] = load_key(args.key).public.to_blob()
    return _post(args.base, "/elections", payload)


def elections(args) -> dict:
    return _get(args.base, "/elections")


def add_option(args) -> dict:
    return _post(
        args.base,
        f"/elections/{args.election}/options",
        {"caller": args.caller, "name": args.name, "description": args.description, **_gas(args)},
    )


def vote(args) -> dict:
    """Encrypt a one-hot ballot for ``args.choice`` under the election's key and cast it"""

    info = _get(args.base, f"/elections/{args.election}")
    if "error" in info:
        return info
    if info["public_key"] is None:
        return {"error": "InvalidInputError", "detail": f"election {args.election} has no public key"}
    scheme = load_public_key(info["public_key"])
    ballot = encrypt_choice(scheme, args.choice, info["options"])
    return _post(
        args.base,
        f"/elections/{args.election}/vote",
        {"caller": args.caller, "ballot": ballot.to_list(), **_gas(args)},
    )


def tally(args) -> dict:
    res = _post(args.base, f"/elections/{args.election}/tally", {})
    if args.key and "tally" in res:
        priv = load_key(args.key)
        res["counts"] = [priv.decrypt(c) for c in res["tally"]]
    return res


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ballotbox")
    p.add_argument("--base", default=config.BASE_URL, help="server base URL")
    sub = p.add_subparsers(dest="cmd")

    s = sub.add_parser("keygen")
    s.add_argument("--out", required=True)
    s.add_argument("--bits", type=int, default=config.PAILLIER_KEY_BITS)
    s.set_defaults(func=keygen)

    s = sub.add_parser("init")
    s.add_argument("--caller", required=True)
    s.set_defaults(func=init)

    for name, func in (("register", register), ("unregister", unregister)):
        s = sub.add_parser(name)
        s.add_argument("--caller", required=True)
        s.add_argument("--voter", required=True)
        s.add_argument("--gas", type=int)
        s.set_defaults(func=func)

    s = sub.add_parser("create")
    s.add_argument("--caller", required=True)
    s.add_argument("--title", default="")
    s.add_argument("--description", default="")
    s.add_argument("--start", type=int, default=0)
    s.add_argument("--end", type=int, default=0)
    s.add_argument("--key", help="key file written by keygen")
    s.add_argument("--gas", type=int)
    s.set_defaults(func=create)

    s = sub.add_parser("elections")
    s.set_defaults(func=elections)

    s = sub.add_parser("add-option")
    s.add_argument("--caller", required=True)
    s.add_argument("--election", type=int, required=True)
    s.add_argument("--name", required=True)
    s.add_argument("--description", default="")
    s.add_argument("--gas", type=int)
    s.set_defaults(func=add_option)

    s = sub.add_parser("vote")
    s.add_argument("--caller", required=True)
    s.add_argument("--election", type=int, required=True)
    s.add_argument("--choice", type=int, required=True)
    s.add_argument("--gas", type=int)
    s.set_defaults(func=vote)

    s = sub.add_parser("tally")
    s.add_argument("--election", type=int, required=True)
    s.add_argument("--key", help="decrypt the tally with this key file")
    s.set_defaults(func=tally)
    return p


def main(argv=None):
    logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
    p = build_parser()
    args = p.parse_args(argv)
    if args.cmd is None:
        p.print_help()
        return
    print(json.dumps(args.func(args), indent=2))


if __name__ == "__main__":
    main()
