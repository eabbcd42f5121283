"""PyGithub objects seen through the hosting protocols."""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from github import Github
from github.GithubObject import NotSet
from github.PullRequest import PullRequest
from github.Repository import Repository

from . import GitHubPullRequestProtocol, GitHubRepoProtocol, GitHubUserProtocol, PyGithubProtocol

logger = logging.getLogger(__name__)


def _or_not_set(value: str) -> Any:
    # PyGithub leaves a filter out only when it is NotSet
    return value if value else NotSet


@dataclass
class BranchRef:
    """Base or head of a pull request."""
    ref: str


@dataclass
class SessionUser:
    """Login of the authenticated user."""
    login: str


class PullRequestHandle(GitHubPullRequestProtocol):
    """Live PyGithub pull request with its refs copied out once."""

    def __init__(self, pr: PullRequest) -> None:
        self._pr = pr
        self._base = BranchRef(pr.base.ref)
        self._head = BranchRef(pr.head.ref)

    @property
    def number(self) -> int:
        return self._pr.number

    @property
    def html_url(self) -> str:
        return self._pr.html_url

    @property
    def base(self) -> BranchRef:
        return self._base

    @property
    def head(self) -> BranchRef:
        return self._head

    def add_to_labels(self, *labels: str) -> None:
        self._pr.add_to_labels(*labels)


class RepositoryHandle(GitHubRepoProtocol):
    """PyGithub repository restricted to the pull request calls gbranches makes."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def get_pulls(self, state: str = "open", head: str = "", base: str = "") -> List[GitHubPullRequestProtocol]:
        pulls = self._repo.get_pulls(state=state, head=_or_not_set(head), base=_or_not_set(base))
        return [PullRequestHandle(pr) for pr in pulls]

    def create_pull(self, title: str, body: str, base: str, head: str) -> GitHubPullRequestProtocol:
        pr = self._repo.create_pull(base=base, head=head, title=title, body=body)
        logger.debug(f"GitHub created PR #{pr.number} for {head}")
        return PullRequestHandle(pr)


class PyGithubSession(PyGithubProtocol):
    """Authenticated ``github.Github`` client."""

    def __init__(self, github: Github) -> None:
        self._github = github

    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        return RepositoryHandle(self._github.get_repo(full_name_or_id))

    def get_user(self) -> Optional[GitHubUserProtocol]:
        # Reading login makes the request, so bad credentials raise here
        login = self._github.get_user().login
        return SessionUser(login) if login else None
