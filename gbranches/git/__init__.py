"""Git interfaces and implementation."""

import os
import logging
import functools
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, TypeVar, cast
import git
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..config.models import GbranchesConfig
from ..errors import (
    BaseUnavailable, BranchCollision, GitCommandFailed, NoRemote, NotARepository, PushRejected
)
from ..typing import CommitHash, GitInterface

# Get module logger
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

MARKER_LINE = "# Automated change by gbranches"


class BranchExistence(Enum):
    """Where a branch ref exists."""
    ABSENT = "absent"
    LOCAL = "local"
    REMOTE = "remote"
    BOTH = "both"

    @classmethod
    def from_flags(cls, local: bool, remote: bool) -> 'BranchExistence':
        if local and remote:
            return cls.BOTH
        if local:
            return cls.LOCAL
        if remote:
            return cls.REMOTE
        return cls.ABSENT

    @property
    def exists(self) -> bool:
        return self is not BranchExistence.ABSENT

    @property
    def local(self) -> bool:
        return self in (BranchExistence.LOCAL, BranchExistence.BOTH)

    @property
    def remote(self) -> bool:
        return self in (BranchExistence.REMOTE, BranchExistence.BOTH)


class CherryPickOutcome(Enum):
    """Result of replaying a commit onto the checked-out branch."""
    APPLIED = "applied"
    ALREADY_PRESENT = "already-present"
    CONFLICT = "conflict"


@dataclass
class PendingCommit:
    """Commit produced by ``commit_pending``."""
    commit: CommitHash
    synthesized: bool = False


class RealGit:
    """Real Git implementation backed by GitPython."""
    def __init__(self, config: GbranchesConfig, path: Optional[str] = None):
        """Initialize with config and the directory to operate in."""
        self.config: GbranchesConfig = config
        self.path = path or os.getcwd()
        self._repo: Optional[git.Repo] = None

    @property
    def repo(self) -> git.Repo:
        """GitPython repository for ``path``."""
        if self._repo is None:
            try:
                self._repo = git.Repo(self.path, search_parent_directories=True)
            except (InvalidGitRepositoryError, NoSuchPathError):
                raise NotARepository(self.path)
        return self._repo

    @property
    def working_dir(self) -> str:
        """Root of the work tree."""
        working_dir = self.repo.working_tree_dir
        if working_dir is None:
            raise NotARepository(self.path)
        return str(working_dir)

    def run(self, *args: str) -> str:
        """Run git command."""
        cmd_str = " ".join(args)

        if self.config.tool.pretend and args and args[0] == "push":
            # Pretend mode - just log
            logger.info(f"> git {cmd_str} (pretend)")
            return ""

        if self.config.user.log_git_commands:
            logger.info(f"> git {cmd_str}")
        else:
            logger.debug(f"> git {cmd_str}")
        try:
            result = self.repo.git.execute(["git", *args])
        except GitCommandError as e:
            stderr = e.stderr if isinstance(e.stderr, str) else str(e.stderr)
            raise GitCommandFailed(args, cast(Optional[int], e.status), stderr)
        return result if isinstance(result, str) else str(result)


def serialized(method: F) -> F:
    """Run a gateway method while holding the working copy lock."""
    @functools.wraps(method)
    def wrapper(self: 'RepositoryGateway', *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)
    return cast(F, wrapper)


class RepositoryGateway:
    """Owned handle to one working copy.

    The checked-out branch and the work tree are shared mutable state, so every
    operation runs under a single lock.
    """

    def __init__(self, config: GbranchesConfig, git_cmd: GitInterface, working_dir: Optional[str] = None):
        self.config = config
        self.git_cmd = git_cmd
        self._working_dir = working_dir
        self._lock = threading.RLock()

    @property
    def remote(self) -> str:
        return self.config.repo.remote

    @property
    def working_dir(self) -> str:
        if self._working_dir is None:
            if isinstance(self.git_cmd, RealGit):
                self._working_dir = self.git_cmd.working_dir
            else:
                self._working_dir = self.git_cmd.run("rev-parse", "--show-toplevel").strip()
        return self._working_dir

    @serialized
    def validate(self) -> None:
        """Raise NotARepository or NoRemote when the workflow cannot run here."""
        try:
            inside = self.git_cmd.run("rev-parse", "--is-inside-work-tree").strip()
        except GitCommandFailed:
            raise NotARepository(self._working_dir or os.getcwd())
        if inside != "true":
            raise NotARepository(self._working_dir or os.getcwd())

        try:
            url = self.git_cmd.run("remote", "get-url", self.remote).strip()
        except GitCommandFailed:
            raise NoRemote(self.remote)
        if not url:
            raise NoRemote(self.remote)

    @serialized
    def current_branch(self) -> Optional[str]:
        """Name of the checked-out branch, or None for a detached HEAD."""
        try:
            return self.git_cmd.run("symbolic-ref", "--short", "-q", "HEAD").strip() or None
        except GitCommandFailed:
            return None

    @serialized
    def has_pending_changes(self) -> bool:
        """Whether tracked files differ from HEAD."""
        self.git_cmd.run("update-index", "-q", "--refresh")
        try:
            self.git_cmd.run("diff-index", "--quiet", "HEAD", "--")
        except GitCommandFailed as e:
            if e.status == 1:
                return True
            raise
        return False

    def _local_exists(self, name: str) -> bool:
        try:
            self.git_cmd.run("show-ref", "--verify", "--quiet", f"refs/heads/{name}")
        except GitCommandFailed as e:
            if e.status == 1:
                return False
            raise
        return True

    def _remote_exists(self, name: str) -> bool:
        ref = f"refs/heads/{name}"
        output = self.git_cmd.run("ls-remote", "--heads", self.remote, ref)
        for line in output.splitlines():
            parts = line.split()
            # Exact ref match; ls-remote patterns also match on path suffixes
            if len(parts) == 2 and parts[1] == ref:
                return True
        return False

    @serialized
    def branch_exists(self, name: str) -> BranchExistence:
        """Check local refs first, then the remote's heads."""
        local = self._local_exists(name)
        remote = self._remote_exists(name)
        existence = BranchExistence.from_flags(local, remote)
        logger.debug(f"branch_exists({name}) = {existence.value}")
        return existence

    @serialized
    def ensure_local(self, name: str) -> BranchExistence:
        """Check out ``name`` locally, refreshing or tracking it from the remote."""
        existence = self.branch_exists(name)
        if existence.local:
            self.git_cmd.run("checkout", name)
            if existence.remote:
                self.git_cmd.run("pull", "--ff-only", self.remote, name)
        elif existence.remote:
            self.git_cmd.run("fetch", self.remote, f"+refs/heads/{name}:refs/remotes/{self.remote}/{name}")
            self.git_cmd.run("checkout", "-b", name, "--track", f"{self.remote}/{name}")
        else:
            raise BaseUnavailable(name)
        return existence

    @serialized
    def checkout(self, name: str) -> None:
        self.git_cmd.run("checkout", name)

    @serialized
    def create_branch(self, name: str) -> None:
        """Create ``name`` at HEAD and check it out."""
        if self._local_exists(name):
            raise BranchCollision(name)
        self.git_cmd.run("checkout", "-b", name)

    @serialized
    def pull_ff_only(self, name: str) -> None:
        self.git_cmd.run("pull", "--ff-only", self.remote, name)

    def _write_marker(self) -> str:
        marker_file = self.config.repo.marker_file
        marker_path = os.path.join(self.working_dir, marker_file)
        prefix = ""
        if os.path.exists(marker_path):
            with open(marker_path, "rb") as f:
                f.seek(0, os.SEEK_END)
                if f.tell() > 0:
                    f.seek(-1, os.SEEK_END)
                    if f.read(1) != b"\n":
                        prefix = "\n"
        with open(marker_path, "a") as f:
            f.write(f"{prefix}{MARKER_LINE}\n")
        return marker_file

    @serialized
    def commit_pending(self, message: str) -> PendingCommit:
        """Commit the pending change, synthesizing a marker change if there is none."""
        synthesized = False
        if not self.has_pending_changes():
            marker_file = self._write_marker()
            logger.warning(f"No changes to commit. Appended '{MARKER_LINE}' to {marker_file} "
                           "so there is a change to propagate")
            self.git_cmd.run("add", "--", marker_file)
            synthesized = True
        self.git_cmd.run("add", "-u")
        self.git_cmd.run("commit", "-m", message)
        commit = CommitHash(self.git_cmd.run("rev-parse", "HEAD").strip())
        return PendingCommit(commit, synthesized)

    def _unmerged_paths(self) -> List[str]:
        output = self.git_cmd.run("diff", "--name-only", "--diff-filter=U")
        return [line for line in output.splitlines() if line.strip()]

    def _cherry_pick_in_progress(self) -> bool:
        try:
            self.git_cmd.run("rev-parse", "-q", "--verify", "CHERRY_PICK_HEAD")
        except GitCommandFailed:
            return False
        return True

    def _index_matches_head(self) -> bool:
        try:
            self.git_cmd.run("diff-index", "--cached", "--quiet", "HEAD", "--")
        except GitCommandFailed as e:
            if e.status == 1:
                return False
            raise
        return True

    @serialized
    def has_conflict(self) -> bool:
        return bool(self._unmerged_paths())

    @serialized
    def cherry_pick(self, commit: CommitHash) -> CherryPickOutcome:
        """Replay ``commit`` onto the checked-out branch."""
        try:
            self.git_cmd.run("cherry-pick", commit)
        except GitCommandFailed as e:
            unmerged = self._unmerged_paths()
            if unmerged:
                logger.warning(f"Cherry-pick of {commit[:8]} left unmerged paths: {', '.join(unmerged)}")
                return CherryPickOutcome.CONFLICT
            if self._cherry_pick_in_progress() and self._index_matches_head():
                # Change is already on this branch; the pick is empty
                logger.info(f"Cherry-pick of {commit[:8]} is empty, skipping")
                self.git_cmd.run("cherry-pick", "--skip")
                return CherryPickOutcome.ALREADY_PRESENT
            raise
        return CherryPickOutcome.APPLIED

    @serialized
    def push(self, name: str) -> None:
        """Push ``name`` and set upstream tracking."""
        try:
            self.git_cmd.run("push", "-u", self.remote, name)
        except GitCommandFailed as e:
            raise PushRejected(name, push_failure_reason(e.stderr))


def push_failure_reason(stderr: str) -> str:
    """Short reason for a failed push."""
    lowered = stderr.lower()
    if "non-fast-forward" in lowered or "fetch first" in lowered or "[rejected]" in lowered:
        return "non-fast-forward (pull and merge or rebase first)"
    if ("authentication failed" in lowered or "permission denied" in lowered
            or "could not read username" in lowered):
        return "authentication failed"
    return stderr.strip() or "unknown error"
