import pytest

from ballotbox import demo


@pytest.mark.parametrize("scheme", ["paillier", "elgamal"])
def test_demo_tally_matches_cast_ballots(scheme, capsys):
    result = demo.run_demo(scheme, num_voters=4, seed=7)
    assert sum(result.values()) == 4
    assert set(result) == set(demo.OPTIONS)
    assert "Verification result: OK" in capsys.readouterr().out


def test_demo_main(capsys):
    demo.main(["--voters", "2", "--seed", "1"])
    assert "Verification result: OK" in capsys.readouterr().out
