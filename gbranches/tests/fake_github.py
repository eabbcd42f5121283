"""Fake PyGithub implementation for testing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

logger = logging.getLogger(__name__)

class FakeGithubException(Exception):
    """Stands in for github.GithubException in tests."""

@dataclass
class FakeNamedUser:
    """Fake implementation of the NamedUser class from PyGithub."""
    login: str

@dataclass
class FakeRef:
    """Fake implementation of a PR base/head ref."""
    ref: str

@dataclass
class FakePullRequest:
    """Fake implementation of the PullRequest class from PyGithub."""
    number: int
    title: str
    body: str
    base: FakeRef
    head: FakeRef
    html_url: str
    state: str = "open"
    labels: List[str] = field(default_factory=list)
    fail_labels: bool = False

    def add_to_labels(self, *labels: str) -> None:
        if self.fail_labels:
            raise FakeGithubException("Validation Failed: label")
        self.labels.extend(labels)

@dataclass
class FakeRepository:
    """Fake implementation of the Repository class from PyGithub."""
    full_name: str
    branches: Set[str] = field(default_factory=set)
    pulls: Dict[int, FakePullRequest] = field(default_factory=dict)
    fail_heads: Set[str] = field(default_factory=set)
    fail_labels: bool = False

    def create_pull(self, title: str, body: str, base: str, head: str) -> FakePullRequest:
        if head in self.fail_heads:
            raise FakeGithubException(f"502 Bad Gateway creating PR for {head}")
        if self.branches and base not in self.branches:
            raise FakeGithubException(f"Validation Failed: base {base} is invalid")
        for pr in self.pulls.values():
            if pr.state == "open" and pr.head.ref == head and pr.base.ref == base:
                raise FakeGithubException(
                    f"422 Validation Failed: A pull request already exists for {head}.")
        number = len(self.pulls) + 1
        pr = FakePullRequest(
            number=number, title=title, body=body,
            base=FakeRef(base), head=FakeRef(head),
            html_url=f"https://github.com/{self.full_name}/pull/{number}",
            fail_labels=self.fail_labels,
        )
        self.pulls[number] = pr
        logger.debug(f"Fake PR #{number}: {head} -> {base}")
        return pr

    def get_pulls(self, state: str = "open", head: str = "", base: str = "") -> List[FakePullRequest]:
        owner = self.full_name.split("/")[0]
        result: List[FakePullRequest] = []
        for pr in self.pulls.values():
            if state != "all" and pr.state != state:
                continue
            if head and f"{owner}:{pr.head.ref}" != head:
                continue
            if base and pr.base.ref != base:
                continue
            result.append(pr)
        return result

class FakeGithub:
    """Fake implementation of the Github class from PyGithub."""

    def __init__(self, login: Optional[str] = "tester"):
        self.login = login
        self.repos: Dict[str, FakeRepository] = {}

    def get_repo(self, full_name_or_id: str) -> FakeRepository:
        if full_name_or_id not in self.repos:
            self.repos[full_name_or_id] = FakeRepository(full_name_or_id)
        return self.repos[full_name_or_id]

    def get_user(self) -> FakeNamedUser:
        if self.login is None:
            raise FakeGithubException("401 Bad credentials")
        return FakeNamedUser(self.login)
