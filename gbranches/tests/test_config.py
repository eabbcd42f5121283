"""Tests for config parsing."""

import pytest

from gbranches.config import Config, default_config
from gbranches.config.config_parser import CONFIG_FILE_NAME, parse_config, parse_remote_url
from gbranches.errors import InvalidConfig
from gbranches.git import RealGit
from gbranches.tests.utils import TierRepo


@pytest.mark.parametrize("url,expected", [
    ("git@github.com:acme/shop.git", ("acme", "shop")),
    ("https://github.com/acme/shop.git", ("acme", "shop")),
    ("https://github.com/acme/shop", ("acme", "shop")),
    ("ssh://git@github.example.com/acme/shop.git", ("acme", "shop")),
    ("file:///tmp/remote.git", ("tmp", "remote")),
    ("", None),
    ("not-a-url", None),
])
def test_parse_remote_url(url, expected) -> None:
    assert parse_remote_url(url) == expected


def test_defaults() -> None:
    config = default_config()
    assert config.repo.remote == "origin"
    assert config.repo.marker_file == "README.md"
    assert config.repo.tier_labels is False
    assert config.user.assume_yes is False
    assert config.tool.pretend is False


def test_owner_and_name_from_remote(tier_repo: TierRepo) -> None:
    tier_repo.git("remote set-url origin git@github.com:acme/shop.git")
    git_cmd = RealGit(default_config(), tier_repo.repo_dir)

    config = Config(parse_config(git_cmd, tier_repo.repo_dir))

    assert config.repo.github_repo_owner == "acme"
    assert config.repo.github_repo_name == "shop"
    assert config.repo.github_host == "github.com"


def test_config_file_overrides(tier_repo: TierRepo) -> None:
    tier_repo.git("remote set-url origin git@github.com:acme/shop.git")
    tier_repo.write(CONFIG_FILE_NAME, "\n".join([
        "repo:",
        "  github_repo_owner: platform",
        "  marker_file: CHANGELOG.md",
        "  tier_labels: true",
        "user:",
        "  assume_yes: true",
        "tool:",
        "  gbranches:",
        "    pretend: true",
        "",
    ]))
    git_cmd = RealGit(default_config(), tier_repo.repo_dir)

    config = Config(parse_config(git_cmd, tier_repo.repo_dir))

    assert config.repo.github_repo_owner == "platform"
    assert config.repo.github_repo_name == "shop"
    assert config.repo.marker_file == "CHANGELOG.md"
    assert config.repo.tier_labels is True
    assert config.user.assume_yes is True
    assert config.tool.pretend is True


def test_missing_remote_leaves_repo_unset(tier_repo: TierRepo) -> None:
    tier_repo.git("remote remove origin")
    git_cmd = RealGit(default_config(), tier_repo.repo_dir)

    config = Config(parse_config(git_cmd, tier_repo.repo_dir))

    assert config.repo.github_repo_owner is None
    assert config.repo.github_repo_name is None


def test_malformed_config_file(tier_repo: TierRepo) -> None:
    tier_repo.write(CONFIG_FILE_NAME, "repo: [unclosed\n")
    git_cmd = RealGit(default_config(), tier_repo.repo_dir)

    with pytest.raises(InvalidConfig) as exc_info:
        parse_config(git_cmd, tier_repo.repo_dir)
    assert exc_info.value.source == CONFIG_FILE_NAME
    assert "not valid YAML" in exc_info.value.reason


def test_wrong_value_type(tier_repo: TierRepo) -> None:
    tier_repo.write(CONFIG_FILE_NAME, "repo:\n  tier_labels: [1, 2]\n")
    git_cmd = RealGit(default_config(), tier_repo.repo_dir)

    with pytest.raises(InvalidConfig) as exc_info:
        Config(parse_config(git_cmd, tier_repo.repo_dir))
    assert "repo.tier_labels" in exc_info.value.reason
