import json

from radio_progression.__main__ import run

def test_prints_default_profile(capsys):
    assert run(["alice", "--database-url", "sqlite://"]) == 0

    output = json.loads(capsys.readouterr().out)
    assert output["stats"]["totalTime"] == 0
    assert output["theme"] == "dynamic"

def test_requires_a_user_when_nobody_is_logged_in():
    assert run(["--database-url", "sqlite://"]) == 1
