"""Error taxonomy for the branch workflow."""

from typing import Optional, Sequence


class GbranchesError(Exception):
    """Base class for all expected gbranches failures."""


class InvalidFeatureName(GbranchesError):
    """Feature name is empty or cannot be used in a git branch name."""

    def __init__(self, feature_name: str, reason: str):
        self.feature_name = feature_name
        self.reason = reason
        super().__init__(f"Invalid feature name '{feature_name}': {reason}")


class InvalidOptions(GbranchesError):
    """Option combination that cannot be run, e.g. apply changes without a message."""


class InvalidConfig(GbranchesError):
    """Configuration file that cannot be read or holds values of the wrong type."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")


class NotARepository(GbranchesError):
    """Working directory is not inside a git work tree."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Not in a git repository: {path}")


class NoRemote(GbranchesError):
    """The configured remote is missing."""

    def __init__(self, remote: str):
        self.remote = remote
        super().__init__(f"No remote named '{remote}' found")


class GitCommandFailed(GbranchesError):
    """A git invocation exited non-zero."""

    def __init__(self, args: Sequence[str], status: Optional[int], stderr: str = ""):
        self.args_list = list(args)
        self.status = status
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"git {' '.join(self.args_list)} failed (exit {status}){detail}")


class BaseUnavailable(GbranchesError):
    """Base branch exists neither locally nor on the remote."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Base branch {branch} doesn't exist locally or on the remote")


class BranchCollision(GbranchesError):
    """Branch to be created already exists."""

    def __init__(self, branch: str):
        self.branch = branch
        super().__init__(f"Branch {branch} already exists")


class PushRejected(GbranchesError):
    """Push was refused (non-fast-forward, authentication, ...)."""

    def __init__(self, branch: str, reason: str):
        self.branch = branch
        self.reason = reason
        super().__init__(f"Push of {branch} rejected: {reason}")


class CherryPickConflict(GbranchesError):
    """Cherry-pick could not be applied automatically; the repository is left mid-pick."""

    def __init__(self, branch: str, commit: str):
        self.branch = branch
        self.commit = commit
        super().__init__(f"Cherry-pick of {commit[:8]} onto {branch} stopped on conflicts")

    def instructions(self) -> str:
        """Manual resolution steps for the halted cherry-pick."""
        return "\n".join([
            f"⚠️  Cherry-pick conflicts in {self.branch} (commit: {self.commit})",
            "To resolve manually:",
            "  1. Fix the conflicts in the files",
            "  2. git add <resolved-files>",
            "  3. git cherry-pick --continue",
            "  4. Or to abort: git cherry-pick --abort",
            "Manual intervention required - stopping propagation",
        ])


class PrCreationFailed(GbranchesError):
    """Pull request could not be opened for one branch."""

    def __init__(self, head: str, base: str, reason: str, existing_url: Optional[str] = None):
        self.head = head
        self.base = base
        self.reason = reason
        self.existing_url = existing_url
        message = f"Failed to create PR for {head} → {base}: {reason}"
        if existing_url:
            message += f" (existing PR: {existing_url})"
        super().__init__(message)


class MissingHostingAuth(GbranchesError):
    """No authenticated GitHub session; pull request creation is disabled."""

    def __init__(self, detail: str = ""):
        message = "Not authenticated with GitHub. Please run 'gh auth login' or set GITHUB_TOKEN."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
