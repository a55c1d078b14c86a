import json

import pytest

from semver_next import cli
from semver_next.errors import TransportError
from semver_next.models import Commit, Pull

SHA0 = "0aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
SHA1 = "1aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"


@pytest.fixture
def gh(monkeypatch, fake_github):
    monkeypatch.setenv("GITHUB_TOKEN", "tok")
    fake = fake_github(
        refs={"v0.15.0": SHA0, "main": SHA1},
        pages=[[Commit(sha=SHA1, message="feat: omg"), Commit(sha=SHA0)]],
        pulls={SHA1: [Pull(number=1, labels=("something else",))]},
    )
    monkeypatch.setattr(cli, "GitHubClient", lambda **kw: fake)
    return fake


def test_prints_next_version(gh, capsys):
    code = cli.main(["willabides/semver-next", "-r", "main", "-p", "v0.15.0"])
    assert code == cli.EXIT_OK
    assert capsys.readouterr().out == "0.16.0\n"


def test_json_output(gh, capsys):
    code = cli.main(["willabides/semver-next", "--ref", "main", "--prev", "v0.15.0", "--json"])
    assert code == cli.EXIT_OK
    out = json.loads(capsys.readouterr().out)
    assert out["next_version"] == "0.16.0"
    assert out["previous_version"] == "0.15.0"
    assert out["change_level"] == "minor"
    assert out["commits"][0]["sha"] == SHA1
    assert out["commits"][0]["pulls"] == [{"number": 1, "labels": [], "change_level": "none"}]


def test_unlabeled_still_prints_version(gh, capsys):
    code = cli.main(["willabides/semver-next", "-r", "main", "-p", "v0.15.0", "--require-labels"])
    assert code == cli.EXIT_UNLABELED
    captured = capsys.readouterr()
    assert captured.out == "0.16.0\n"
    assert f"{SHA1} (#1)" in captured.err


def test_require_change(gh, capsys):
    code = cli.main(["willabides/semver-next", "-r", "main", "-p", "v0.15.0", "--max-bump", "none", "--require-change"])
    assert code == cli.EXIT_NO_CHANGE
    assert capsys.readouterr().out == "0.15.0\n"


def test_create_tag(gh, capsys):
    code = cli.main(["willabides/semver-next", "-r", "main", "-p", "v0.15.0", "--create-tag"])
    assert code == cli.EXIT_OK
    assert gh.tags == [("willabides", "semver-next", "v0.16.0", "v0.16.0", SHA1)]
    assert gh.created_refs[0][2] == "refs/tags/v0.16.0"


def test_transport_error_prints_nothing(gh, capsys):
    gh.errors[("list_commits", "1")] = TransportError("GET /commits returned HTTP 502: bad gateway")
    code = cli.main(["willabides/semver-next", "-r", "main", "-p", "v0.15.0"])
    assert code == cli.EXIT_ERROR
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "bad gateway" in captured.err


def test_invalid_range(gh, capsys):
    code = cli.main(["willabides/semver-next", "-r", "main", "--min-bump", "major", "--max-bump", "minor"])
    assert code == cli.EXIT_ERROR
    assert "minBump must be less than or equal to maxBump" in capsys.readouterr().err
    assert gh.calls == []


def test_bad_bump_token_is_usage_error(gh):
    with pytest.raises(SystemExit) as ei:
        cli.main(["willabides/semver-next", "-r", "main", "--min-bump", "huge"])
    assert ei.value.code == 2


def test_token_required(monkeypatch, capsys):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr("semver_next.config.load_dotenv", lambda *a, **k: False)
    code = cli.main(["willabides/semver-next", "-r", "main"])
    assert code == cli.EXIT_ERROR
    assert "GITHUB_TOKEN" in capsys.readouterr().err


def test_check_pr(monkeypatch, fake_github, capsys):
    monkeypatch.setenv("GITHUB_TOKEN", "tok")
    fake = fake_github(
        pull_info={5: Pull(number=5)},
        pull_commits={5: [Commit(sha="abc", message="wip")]},
    )
    monkeypatch.setattr(cli, "GitHubClient", lambda **kw: fake)
    assert cli.main(["check-pr", "willabides/semver-next", "5"]) == cli.EXIT_ERROR
    assert "abc" in capsys.readouterr().err

    fake.pull_info[5] = Pull(number=5, labels=("breaking",))
    assert cli.main(["check-pr", "willabides/semver-next", "5"]) == cli.EXIT_OK
    assert capsys.readouterr().out == "ok: #5 (major)\n"
