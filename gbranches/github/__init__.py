"""GitHub interfaces and implementation."""

import os
import shutil
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

import yaml

from ..config.models import GbranchesConfig
from ..errors import PrCreationFailed

# Get module logger
logger = logging.getLogger(__name__)

@dataclass
class PullRequestSpec:
    """Pull request to open for one branch."""
    head: str
    base: str
    title: str
    body: str
    labels: List[str] = field(default_factory=list)

@dataclass
class PullRequestResult:
    """Pull request as reported by GitHub."""
    number: int
    url: str
    head: str
    base: str

    def __str__(self) -> str:
        return f"PR #{self.number} {self.head} → {self.base} ({self.url})"

# Define protocols for GitHub objects
@runtime_checkable
class GitHubUserProtocol(Protocol):
    """Protocol for GitHub user objects (real or fake)."""
    @property
    def login(self) -> str:
        """Get the user's login name."""
        ...

@runtime_checkable
class GitHubRefProtocol(Protocol):
    """Protocol for GitHub ref objects (base/head references)."""
    @property
    def ref(self) -> str:
        """Get the ref name (e.g., 'master', 'PROD_feature')."""
        ...

@runtime_checkable
class GitHubPullRequestProtocol(Protocol):
    """Protocol for GitHub pull request objects (real or fake)."""
    @property
    def number(self) -> int:
        """Get the PR number."""
        ...

    @property
    def html_url(self) -> str:
        """Get the PR web URL."""
        ...

    @property
    def base(self) -> GitHubRefProtocol:
        """Get the base reference."""
        ...

    @property
    def head(self) -> GitHubRefProtocol:
        """Get the head reference."""
        ...

    def add_to_labels(self, *labels: str) -> None:
        """Add labels to the pull request."""
        ...

@runtime_checkable
class GitHubRepoProtocol(Protocol):
    """Protocol for GitHub repository objects (real or fake)."""
    def get_pulls(self, state: str = "open", head: str = "", base: str = "") -> List[GitHubPullRequestProtocol]:
        """Get pull requests with optional filtering."""
        ...

    def create_pull(self, title: str, body: str, base: str, head: str) -> GitHubPullRequestProtocol:
        """Create a new pull request."""
        ...

@runtime_checkable
class PyGithubProtocol(Protocol):
    """Protocol for PyGithub implementations (real or fake)."""
    def get_repo(self, full_name_or_id: str) -> GitHubRepoProtocol:
        """Get a repository by full name."""
        ...

    def get_user(self) -> Optional[GitHubUserProtocol]:
        """Get the authenticated user."""
        ...

def find_github_token(host: str = "github.com") -> Optional[str]:
    """Find GitHub token from env vars, the gh CLI config, or the gh CLI itself.

    Recent gh releases keep the token in the system keyring, leaving no
    oauth_token in hosts.yml; `gh auth token` reads it from wherever it is stored.
    """
    for env_var in ("GITHUB_TOKEN", "GH_TOKEN"):
        token = os.environ.get(env_var)
        if token:
            return token

    # Then try gh CLI config at ~/.config/gh/hosts.yml
    gh_config_path = Path(os.environ.get("GH_CONFIG_DIR", Path.home() / ".config" / "gh")) / "hosts.yml"
    try:
        if gh_config_path.exists():
            with open(gh_config_path, "r") as f:
                gh_config = yaml.safe_load(f)
            if isinstance(gh_config, dict) and isinstance(gh_config.get(host), dict):
                host_config: Dict[str, object] = gh_config[host]
                token = host_config.get("oauth_token")
                if isinstance(token, str) and token:
                    return token
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error reading gh CLI config: {e}")
    return gh_auth_token(host)

def gh_auth_token(host: str = "github.com") -> Optional[str]:
    """Token printed by `gh auth token`, or None when gh is missing or logged out."""
    gh = shutil.which("gh")
    if gh is None:
        logger.debug("gh CLI not found")
        return None
    try:
        token = subprocess.run(
            [gh, "auth", "token", "--hostname", host],
            check=True,
            capture_output=True,
            text=True
        ).stdout.strip()
    except (subprocess.CalledProcessError, OSError) as e:
        logger.debug(f"gh auth token failed for {host}: {e}")
        return None
    return token or None

class GitHubClient:
    """Hosting gateway: pull request creation and lookup on GitHub."""
    def __init__(self, config: GbranchesConfig, github_client: Optional[PyGithubProtocol] = None):
        """Initialize with config and GitHub client implementation.

        Args:
            config: The configuration
            github_client: GitHub client implementation (real or fake).
                           None means no session; is_authenticated() is False.
        """
        self.config = config
        self.client = github_client
        if github_client is None:
            logger.info("No GitHub client provided - pull request creation is disabled")
        self._repo: Optional[GitHubRepoProtocol] = None

    @property
    def repo_full_name(self) -> Optional[str]:
        owner = self.config.repo.github_repo_owner
        name = self.config.repo.github_repo_name
        if owner and name:
            return f"{owner}/{name}"
        return None

    @property
    def repo(self) -> Optional[GitHubRepoProtocol]:
        """Get GitHub repository."""
        if self._repo is None and self.client is not None and self.repo_full_name:
            self._repo = self.client.get_repo(self.repo_full_name)
        return self._repo

    def is_authenticated(self) -> bool:
        """Check that the session is usable; never establishes one."""
        if self.client is None:
            return False
        try:
            user = self.client.get_user()
            login = user.login if user else None
        except Exception as e:
            logger.warning(f"GitHub authentication check failed: {e}")
            return False
        if not login:
            return False
        logger.info(f"> github authenticated as {login}")
        return True

    def create_pull_request(self, spec: PullRequestSpec) -> PullRequestResult:
        """Open a pull request, raising PrCreationFailed on any failure."""
        try:
            repo = self.repo
        except Exception as e:
            raise PrCreationFailed(spec.head, spec.base, f"cannot access repository: {e}")
        if repo is None:
            raise PrCreationFailed(spec.head, spec.base,
                                   "GitHub repo not initialized - check token and repo owner/name config")

        logger.info(f"> github create {spec.head} → {spec.base} : {spec.title}")
        try:
            pr = repo.create_pull(title=spec.title, body=spec.body, base=spec.base, head=spec.head)
        except Exception as e:
            error_msg = str(e)
            existing_url: Optional[str] = None
            if "A pull request already exists" in error_msg:
                logger.warning(f"PR already exists for branch {spec.head}, attempting to find it")
                existing = self.get_pull_request_for_branch(spec.head)
                if existing:
                    existing_url = existing.url
                error_msg = "a pull request already exists"
            raise PrCreationFailed(spec.head, spec.base, error_msg, existing_url=existing_url)

        if spec.labels:
            logger.debug(f"Adding labels to PR #{pr.number}: {spec.labels}")
            try:
                pr.add_to_labels(*spec.labels)
                logger.info(f"> github add labels #{pr.number} : {spec.labels}")
            except Exception as e:
                logger.error(f"Failed to add labels to PR #{pr.number}: {e}")

        return PullRequestResult(pr.number, pr.html_url, spec.head, spec.base)

    def get_pull_request_for_branch(self, branch_name: str) -> Optional[PullRequestResult]:
        """Get the open pull request whose head is ``branch_name``."""
        if not self.repo:
            logger.debug(f"No repo available for finding PR for branch {branch_name}")
            return None

        owner = self.config.repo.github_repo_owner
        head_filter = f"{owner}:{branch_name}"
        logger.debug(f"Using head filter: {head_filter}")
        try:
            pulls = list(self.repo.get_pulls(state='open', head=head_filter))
        except Exception as e:
            logger.error(f"Error getting PR for branch {branch_name}: {e}")
            return None

        for pr in pulls:
            if pr.head.ref == branch_name:
                logger.debug(f"Found matching PR #{pr.number} for branch {branch_name}")
                return PullRequestResult(pr.number, pr.html_url, pr.head.ref, pr.base.ref)
        logger.debug(f"No PR found for branch {branch_name} after checking {len(pulls)} PRs")
        return None

def connect(config: GbranchesConfig) -> GitHubClient:
    """Create a GitHubClient backed by PyGithub, or an unauthenticated one if no token is found."""
    token = find_github_token(config.repo.github_host)
    if not token:
        logger.info("No GitHub token found (GITHUB_TOKEN, GH_TOKEN or 'gh auth login')")
        return GitHubClient(config)

    from github import Auth, Github
    from .adapters import PyGithubSession

    host = config.repo.github_host
    if host == "github.com":
        real_github = Github(auth=Auth.Token(token))
    else:
        real_github = Github(base_url=f"https://{host}/api/v3", auth=Auth.Token(token))
    return GitHubClient(config, github_client=PyGithubSession(real_github))
