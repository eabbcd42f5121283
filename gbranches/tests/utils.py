"""Shared utilities for gbranches tests."""
import os
import subprocess
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from gbranches.config import Config
from gbranches.git import BranchExistence
from gbranches.plan import CreationOutcome, FeatureBranch, plan_branches

logger = logging.getLogger(__name__)

BASE_BRANCHES = ("develop", "testing", "staging", "master")

def run_cmd(cmd: str, cwd: Optional[str] = None, check: bool = True) -> str:
    """Run shell command and return output.

    Args:
        cmd: Command to run
        cwd: Working directory
        check: Whether to check return code

    Returns:
        str: Command output
    """
    logger.debug(f"Running command: {cmd}")
    result = subprocess.run(
        cmd, shell=True, check=check, cwd=cwd,
        capture_output=True, text=True
    )
    logger.debug(f"Command output: {result.stdout.strip()}")
    if result.stderr:
        logger.debug(f"Command stderr: {result.stderr.strip()}")
    return result.stdout.strip()

@dataclass
class TierRepo:
    """A clone with a bare file:// remote holding the tier base branches."""
    root: str
    remote_dir: str
    repo_dir: str

    def git(self, args: str, check: bool = True) -> str:
        return run_cmd(f"git {args}", cwd=self.repo_dir, check=check)

    def write(self, name: str, content: str) -> None:
        with open(os.path.join(self.repo_dir, name), "w") as f:
            f.write(content)

    def read(self, name: str) -> str:
        with open(os.path.join(self.repo_dir, name)) as f:
            return f.read()

    def commit_file(self, name: str, content: str, msg: str) -> str:
        self.write(name, content)
        self.git(f"add {name}")
        self.git(f"commit -q -m '{msg}'")
        return self.git("rev-parse HEAD")

    def current_branch(self) -> str:
        return self.git("rev-parse --abbrev-ref HEAD")

    def local_branches(self) -> set:
        return set(self.git("for-each-ref --format='%(refname:short)' refs/heads").split())

    def remote_branches(self) -> set:
        output = run_cmd("git for-each-ref --format='%(refname:short)' refs/heads", cwd=self.remote_dir)
        return set(output.split())

    def log_subjects(self, branch: str) -> list:
        return self.git(f"log --format=%s {branch}").splitlines()


def create_tier_repo(root: str, bases: Iterable[str] = BASE_BRANCHES) -> TierRepo:
    """Create a bare remote plus a clone with master and the given base branches pushed."""
    remote_dir = os.path.join(root, "remote.git")
    repo_dir = os.path.join(root, "work")
    run_cmd(f"git init -q --bare {remote_dir}")
    run_cmd("git symbolic-ref HEAD refs/heads/master", cwd=remote_dir)
    os.mkdir(repo_dir)
    repo = TierRepo(root, remote_dir, repo_dir)

    repo.git("init -q")
    repo.git("symbolic-ref HEAD refs/heads/master")
    repo.git("config user.name 'Test User'")
    repo.git("config user.email 'test@example.com'")
    repo.git("config commit.gpgsign false")
    repo.git(f"remote add origin file://{remote_dir}")

    repo.commit_file("README.md", "# tier test repository\n", "Initial commit")
    repo.git("push -q -u origin master")
    for base in bases:
        if base == "master":
            continue
        repo.git(f"checkout -q -b {base} master")
        repo.git(f"push -q -u origin {base}")
    repo.git("checkout -q master")
    return repo


def usable_branches(feature: str = "feat", skip: Iterable[str] = ()) -> List[FeatureBranch]:
    """Planned branches marked as created locally, except the tiers named in ``skip``."""
    branches = plan_branches(feature)
    for branch in branches:
        if branch.tier.prefix in skip:
            branch.outcome = CreationOutcome.SKIPPED_NO_BASE
        else:
            branch.outcome = CreationOutcome.CREATED
            branch.existence = BranchExistence.LOCAL
    return branches


def make_config(**repo: object) -> Config:
    """Config for the acme/shop repository with git command logging on."""
    repo_config = {'remote': 'origin', 'github_repo_owner': 'acme', 'github_repo_name': 'shop'}
    repo_config.update(repo)
    return Config({'repo': repo_config, 'user': {'log_git_commands': True}})
