import json

import pytest

pytest.importorskip("flask")

from ballotbox import cli, server
from conftest import NOW

BASE = "http://ballotbox.test"


class _Response:
    def __init__(self, rv):
        self._rv = rv

    def json(self):
        return self._rv.get_json()


class FakeRequests:
    """Routes requests.get/post calls to a Flask test client"""

    def __init__(self, client):
        self.client = client

    def post(self, url, json=None, timeout=None):
        return _Response(self.client.post(url[len(BASE):], json=json))

    def get(self, url, timeout=None):
        return _Response(self.client.get(url[len(BASE):]))


@pytest.fixture
def clock():
    return {"now": NOW}


@pytest.fixture
def run(monkeypatch, capsys, clock):
    app = server.create_app(clock=lambda: clock["now"])
    monkeypatch.setattr(cli, "requests", FakeRequests(app.test_client()))

    def _run(*argv):
        cli.main(["--base", BASE, *argv])
        return json.loads(capsys.readouterr().out)

    return _run


def test_cli_election_roundtrip(run, clock, tmp_path):
    key = str(tmp_path / "election.key")
    assert run("keygen", "--out", key, "--bits", "256")["key_file"] == key
    assert run("init", "--caller", "admin")["status"] == "initialized"
    assert run("register", "--caller", "admin", "--voter", "alice")["count"] == 1
    assert run("register", "--caller", "admin", "--voter", "bob")["count"] == 2

    created = run(
        "create", "--caller", "admin", "--title", "Board",
        "--start", str(NOW + 60), "--end", str(NOW + 120), "--key", key,
    )
    assert created["index"] == 0
    for name in ("A", "B"):
        run("add-option", "--caller", "admin", "--election", "0", "--name", name)

    clock["now"] = NOW + 60
    assert run("vote", "--caller", "alice", "--election", "0", "--choice", "1")["status"] == "cast"
    assert run("vote", "--caller", "bob", "--election", "0", "--choice", "1")["status"] == "cast"

    clock["now"] = NOW + 120
    result = run("tally", "--election", "0", "--key", key)
    assert result["counts"] == [0, 2]
    assert len(run("elections")["elections"]) == 1


def test_cli_reports_server_errors(run):
    run("init", "--caller", "admin")
    result = run("unregister", "--caller", "mallory", "--voter", "alice")
    assert result["error"] == "AuthorizationError"


def test_cli_without_command_prints_help(capsys):
    cli.main([])
    assert "usage" in capsys.readouterr().out


def test_cli_vote_without_election_key_reports_error(run, clock):
    run("init", "--caller", "admin")
    run("register", "--caller", "admin", "--voter", "alice")
    run("create", "--caller", "admin", "--start", str(NOW + 60), "--end", str(NOW + 120))
    run("add-option", "--caller", "admin", "--election", "0", "--name", "A")
    clock["now"] = NOW + 60
    result = run("vote", "--caller", "alice", "--election", "0", "--choice", "0")
    assert result["error"] == "InvalidInputError"
