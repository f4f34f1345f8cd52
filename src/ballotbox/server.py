"""Flask API exposing the election engine.

Every POST body carries the calling identity as ``caller`` and may carry a gas
budget as ``gas``. The current time is read from the clock the app was created
with.

The service does not authenticate callers: ``caller`` is taken from the
request body as given, so anyone who can reach the server can act as the
administrator or an election manager. Run it only behind a trusted front end.

Endpoints:
- POST /init -> deploy a voter registry and election factory run by ``caller``
- POST /voters/register, POST /voters/unregister -> {"voter_id": ...}
- GET /voters, GET /voters/<voter_id>
- POST /elections -> {"title", "description", "start_time", "end_time", "public_key"}
- GET /elections, GET /elections/<n>
- POST /elections/<n>/options -> {"name", "description"}; GET /elections/<n>/options
- POST /elections/<n>/vote -> {"ballot": [ciphertext, ...]}
- GET /elections/<n>/ballots/<voter_id>, GET /elections/<n>/voted/<voter_id>
- POST /elections/<n>/tally -> {"tally": [ciphertext, ...]}
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict

from flask import Blueprint, Flask, abort, current_app, jsonify, request

from . import config
from .context import CallContext
from .election import Election
from .errors import (
    AuthorizationError,
    ElectionError,
    InvalidInputError,
    NotRegisteredError,
    PhaseError,
    ResourceExhaustionError,
)
from .factory import deploy

logger = logging.getLogger(__name__)

bp = Blueprint("ballotbox", __name__)

_STATUS = {
    AuthorizationError: 403,
    NotRegisteredError: 403,
    PhaseError: 409,
    InvalidInputError: 400,
    ResourceExhaustionError: 402,
}


def _state() -> Dict[str, Any]:
    return current_app.config["BALLOTBOX_STATE"]


def _engine() -> Dict[str, Any]:
    st = _state()
    if st["factory"] is None:
        raise InvalidInputError("election engine not initialized; POST /init first")
    return st


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _ctx(data: Dict[str, Any]) -> CallContext:
    caller = data.get("caller")
    if not isinstance(caller, str) or not caller:
        raise InvalidInputError("missing caller")
    gas = data.get("gas", config.DEFAULT_GAS_LIMIT)
    if gas is not None and (not isinstance(gas, int) or isinstance(gas, bool) or gas < 0):
        raise InvalidInputError("gas must be a non-negative integer or null")
    return CallContext(caller=caller, now=_state()["clock"](), gas=gas)


def _voter_id(data: Dict[str, Any]) -> str:
    voter_id = data.get("voter_id")
    if not isinstance(voter_id, str) or not voter_id:
        raise InvalidInputError("missing voter_id")
    return voter_id


def _timestamp(data: Dict[str, Any], key: str) -> float:
    value = data.get(key, 0)
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise InvalidInputError(f"{key} must be a number")
    return value


def _election(n: int) -> Election:
    try:
        return _engine()["factory"].deployed_election(n)
    except IndexError:
        abort(404, description=f"no election #{n}")


def _election_info(n: int, election: Election) -> Dict[str, Any]:
    return {
        "index": n,
        "title": election.title,
        "description": election.description,
        "start_time": election.start_time,
        "end_time": election.end_time,
        "manager": election.manager,
        "public_key": election.public_key,
        "phase": election.phase(_state()["clock"]()).value,
        "options": len(election.get_options()),
        "ballots": election.ballot_count(),
    }


@bp.errorhandler(ElectionError)
def _election_error(exc: ElectionError):
    status = _STATUS.get(type(exc), 400)
    logger.debug("rejected %s %s: %s", request.method, request.path, exc)
    return jsonify({"error": type(exc).__name__, "detail": str(exc)}), status


@bp.errorhandler(404)
def _not_found(exc):
    return jsonify({"error": "NotFound", "detail": exc.description}), 404


@bp.route("/init", methods=["POST"])
def init_engine():
    """Deploy the registry and factory with the caller as administrator."""
    st = _state()
    ctx = _ctx(_body())
    with st["lock"]:
        if st["factory"] is not None:
            return jsonify({"error": "already initialized"}), 400
        st["voters"], st["factory"] = deploy(ctx.caller)
    logger.info("engine initialized by %r", ctx.caller)
    return jsonify({"status": "initialized", "administrator": ctx.caller})


@bp.route("/voters/register", methods=["POST"])
def register_voter():
    st = _engine()
    data = _body()
    ctx = _ctx(data)
    with st["lock"]:
        st["voters"].register(ctx, _voter_id(data))
    return jsonify({"status": "registered", "count": st["voters"].count(), "gas_used": ctx.gas_used})


@bp.route("/voters/unregister", methods=["POST"])
def unregister_voter():
    st = _engine()
    data = _body()
    ctx = _ctx(data)
    with st["lock"]:
        st["voters"].unregister(ctx, _voter_id(data))
    return jsonify({"status": "unregistered", "count": st["voters"].count(), "gas_used": ctx.gas_used})


@bp.route("/voters", methods=["GET"])
def list_voters():
    voters = _engine()["voters"]
    return jsonify({"count": voters.count(), "voters": voters.voters()})


@bp.route("/voters/<voter_id>", methods=["GET"])
def voter_status(voter_id: str):
    return jsonify({"voter_id": voter_id, "registered": _engine()["voters"].is_registered(voter_id)})


@bp.route("/elections", methods=["POST"])
def create_election():
    st = _engine()
    data = _body()
    ctx = _ctx(data)
    with st["lock"]:
        election = st["factory"].create_election(
            ctx,
            data.get("title", ""),
            data.get("description", ""),
            _timestamp(data, "start_time"),
            _timestamp(data, "end_time"),
            data.get("public_key"),
        )
        n = len(st["factory"].deployed_elections()) - 1
    return jsonify(_election_info(n, election)), 201


@bp.route("/elections", methods=["GET"])
def list_elections():
    deployed = _engine()["factory"].deployed_elections()
    return jsonify({"elections": [_election_info(n, e) for n, e in enumerate(deployed)]})


@bp.route("/elections/<int:n>", methods=["GET"])
def get_election(n: int):
    return jsonify(_election_info(n, _election(n)))


@bp.route("/elections/<int:n>/options", methods=["POST"])
def add_option(n: int):
    election = _election(n)
    data = _body()
    ctx = _ctx(data)
    with _state()["lock"]:
        option = election.add_option(ctx, data.get("name"), data.get("description", ""))
    return jsonify({"option": option.to_dict(), "gas_used": ctx.gas_used}), 201


@bp.route("/elections/<int:n>/options", methods=["GET"])
def get_options(n: int):
    return jsonify({"options": [o.to_dict() for o in _election(n).get_options()]})


@bp.route("/elections/<int:n>/vote", methods=["POST"])
def cast_vote(n: int):
    election = _election(n)
    data = _body()
    ctx = _ctx(data)
    with _state()["lock"]:
        election.vote(ctx, data.get("ballot"))
    return jsonify({"status": "cast", "gas_used": ctx.gas_used}), 201


@bp.route("/elections/<int:n>/ballots/<voter_id>", methods=["GET"])
def get_ballot(n: int, voter_id: str):
    ballot = _election(n).get_encrypted_vote_of_voter(voter_id)
    return jsonify({"voter_id": voter_id, "ballot": None if ballot is None else ballot.to_list()})


@bp.route("/elections/<int:n>/voted/<voter_id>", methods=["GET"])
def has_voted(n: int, voter_id: str):
    return jsonify({"voter_id": voter_id, "voted": _election(n).has_voted(voter_id)})


@bp.route("/elections/<int:n>/tally", methods=["POST"])
def compute_tally(n: int):
    election = _election(n)
    with _state()["lock"]:
        tally = election.tally()
    return jsonify({"tally": [list(c) if isinstance(c, tuple) else c for c in tally]})


def create_app(clock: Callable[[], float] = time.time) -> Flask:
    """Build an app with fresh, uninitialized engine state"""

    app = Flask(__name__)
    app.config["BALLOTBOX_STATE"] = {
        "clock": clock,
        "lock": threading.Lock(),
        "voters": None,
        "factory": None,
    }
    app.register_blueprint(bp)
    return app


app = create_app()


def main():
    logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
    app.run(host=config.SERVER_HOST, port=config.SERVER_PORT)


if __name__ == "__main__":
    main()
