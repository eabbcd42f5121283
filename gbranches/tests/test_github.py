"""Tests for the GitHub client against the fake PyGithub."""

import os
import stat

import pytest

from gbranches.errors import PrCreationFailed
from gbranches.github import GitHubClient, PullRequestSpec, connect, find_github_token, gh_auth_token
from gbranches.github.adapters import PyGithubSession
from gbranches.tests.fake_github import FakeGithub
from gbranches.tests.utils import make_config


@pytest.fixture
def no_token_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    monkeypatch.setenv("GH_CONFIG_DIR", str(tmp_path / "gh"))
    # Only stub executables are visible to the token lookup
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))


def install_gh(tmp_path, script: str) -> None:
    gh = tmp_path / "bin" / "gh"
    gh.write_text("#!/bin/sh\n" + script)
    os.chmod(gh, os.stat(gh).st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def test_token_from_env(no_token_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GH_TOKEN", "gh-token")
    assert find_github_token() == "gh-token"
    monkeypatch.setenv("GITHUB_TOKEN", "github-token")
    assert find_github_token() == "github-token"


def test_token_from_gh_hosts_file(no_token_env: None, tmp_path) -> None:
    gh_dir = tmp_path / "gh"
    gh_dir.mkdir()
    (gh_dir / "hosts.yml").write_text("github.com:\n  oauth_token: from-gh\n  user: tester\n")
    assert find_github_token("github.com") == "from-gh"
    assert find_github_token("github.example.com") is None


def test_no_token(no_token_env: None) -> None:
    assert find_github_token() is None


def test_authenticated() -> None:
    assert GitHubClient(make_config(), github_client=FakeGithub()).is_authenticated()
    assert not GitHubClient(make_config(), github_client=FakeGithub(login=None)).is_authenticated()
    assert not GitHubClient(make_config()).is_authenticated()


def test_create_and_find_pull_request() -> None:
    client = GitHubClient(make_config(), github_client=FakeGithub())
    spec = PullRequestSpec(head="STG_feat", base="staging", title="[STG] feat", body="Pull request for feat")

    created = client.create_pull_request(spec)
    found = client.get_pull_request_for_branch("STG_feat")

    assert (created.number, created.head, created.base) == (1, "STG_feat", "staging")
    assert found == created
    assert client.get_pull_request_for_branch("DEV_feat") is None


def test_unknown_repository_fails() -> None:
    client = GitHubClient(make_config(github_repo_owner=None), github_client=FakeGithub())
    with pytest.raises(PrCreationFailed) as exc_info:
        client.create_pull_request(PullRequestSpec("DEV_feat", "develop", "[DEV] feat", ""))
    assert "repo owner/name" in exc_info.value.reason


KEYRING_GH = """\
if [ "$1 $2 $3 $4" = "auth token --hostname github.com" ]; then
  echo keyring-token
  exit 0
fi
echo "no oauth token found for $4" >&2
exit 1
"""


def test_token_from_gh_keyring(no_token_env: None, tmp_path) -> None:
    gh_dir = tmp_path / "gh"
    gh_dir.mkdir()
    (gh_dir / "hosts.yml").write_text(
        "github.com:\n  users:\n    me: {}\n  user: me\n  git_protocol: https\n")
    install_gh(tmp_path, KEYRING_GH)

    assert find_github_token("github.com") == "keyring-token"
    assert find_github_token("github.example.com") is None


def test_hosts_file_token_wins_over_gh(no_token_env: None, tmp_path) -> None:
    gh_dir = tmp_path / "gh"
    gh_dir.mkdir()
    (gh_dir / "hosts.yml").write_text("github.com:\n  oauth_token: from-gh\n")
    install_gh(tmp_path, KEYRING_GH)

    assert find_github_token("github.com") == "from-gh"


def test_gh_logged_out(no_token_env: None, tmp_path) -> None:
    install_gh(tmp_path, "exit 1\n")
    assert gh_auth_token("github.com") is None


def test_gh_missing(no_token_env: None) -> None:
    assert gh_auth_token("github.com") is None


def test_connect_with_gh_keyring_session(no_token_env: None, tmp_path) -> None:
    install_gh(tmp_path, KEYRING_GH)

    client = connect(make_config())

    assert isinstance(client.client, PyGithubSession)
