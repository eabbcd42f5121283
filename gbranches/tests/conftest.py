"""Configuration for pytest."""

import io
import logging
from typing import Generator

import pytest

from gbranches.config import Config
from gbranches.git import RealGit, RepositoryGateway
from gbranches.github import GitHubClient
from gbranches.tests.fake_github import FakeGithub
from gbranches.tests.utils import TierRepo, create_tier_repo, make_config

logger = logging.getLogger(__name__)

@pytest.fixture
def tier_repo(tmp_path) -> Generator[TierRepo, None, None]:
    """Repository with develop/testing/staging/master on a local bare remote."""
    repo = create_tier_repo(str(tmp_path))
    logger.info(f"Created tier repo in {repo.repo_dir}")
    yield repo

@pytest.fixture
def config() -> Config:
    return make_config()

@pytest.fixture
def gateway(tier_repo: TierRepo, config: Config) -> RepositoryGateway:
    return RepositoryGateway(config, RealGit(config, tier_repo.repo_dir), tier_repo.repo_dir)

@pytest.fixture
def fake_github() -> FakeGithub:
    return FakeGithub()

@pytest.fixture
def hosting(config: Config, fake_github: FakeGithub) -> GitHubClient:
    return GitHubClient(config, github_client=fake_github)

@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()
