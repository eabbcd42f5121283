"""Pushing feature branches and opening their pull requests."""

import sys
import logging
from dataclasses import dataclass, field
from typing import Dict, IO, List, Optional, Sequence

from ..errors import GitCommandFailed, MissingHostingAuth, PrCreationFailed, PushRejected
from ..git import BranchExistence, RepositoryGateway
from ..github import GitHubClient, PullRequestResult, PullRequestSpec
from ..plan import FeatureBranch
from ..pretty import marker, print_rule

logger = logging.getLogger(__name__)


def default_pr_body(feature_name: str) -> str:
    return f"Pull request for {feature_name}"


def pr_title(branch: FeatureBranch, feature_name: str, title: Optional[str] = None) -> str:
    """``[PREFIX] feature-name``, or ``[PREFIX] title`` when a title is given."""
    return f"[{branch.tier.prefix}] {title or feature_name}"


@dataclass
class PushReport:
    pushed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class PrReport:
    created: List[PullRequestResult] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    auth_error: Optional[MissingHostingAuth] = None

    @property
    def ok(self) -> bool:
        return not self.failed and self.auth_error is None


class Publisher:
    """Push/PR orchestrator. Both loops are fail-soft per branch."""

    def __init__(self, gateway: RepositoryGateway, hosting: GitHubClient,
                 output: Optional[IO[str]] = None, tier_labels: bool = False, pretend: bool = False):
        self.gateway = gateway
        self.hosting = hosting
        self.output = output or sys.stdout
        self.tier_labels = tier_labels
        self.pretend = pretend

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def push_all(self, branches: List[FeatureBranch]) -> PushReport:
        """Check out and push each usable branch, setting upstream tracking."""
        report = PushReport()
        targets = [b for b in branches if b.is_usable]
        if not targets:
            self._print("No branches to push.")
            return report

        self._print()
        self._print("Pushing branches to remote")
        print_rule(self.output)
        for branch in targets:
            self._print(f"Pushing {branch.name}...")
            try:
                self.gateway.checkout(branch.name)
                self.gateway.push(branch.name)
            except PushRejected as e:
                report.failed[branch.name] = e.reason
                self._print(marker(False, f"Failed to push {branch.name}: {e.reason}"))
                continue
            except GitCommandFailed as e:
                report.failed[branch.name] = str(e)
                self._print(marker(False, f"Failed to push {branch.name}: {e}"))
                continue
            if not self.pretend:
                branch.existence = BranchExistence.BOTH
            report.pushed.append(branch.name)
            self._print(marker(True, f"Successfully pushed {branch.name} to remote"))

        print_rule(self.output)
        if report.failed:
            self._print(f"Pushed {len(report.pushed)} branch(es), {len(report.failed)} failed: "
                        f"{', '.join(report.failed)}")
        else:
            self._print("All branches pushed to remote")
        return report

    def build_spec(self, branch: FeatureBranch, feature_name: str, title: Optional[str] = None,
                   body: Optional[str] = None, labels: Sequence[str] = ()) -> PullRequestSpec:
        spec_labels = list(labels)
        if self.tier_labels and branch.tier.prefix not in spec_labels:
            spec_labels.append(branch.tier.prefix)
        return PullRequestSpec(
            head=branch.name,
            base=branch.tier.base_branch,
            title=pr_title(branch, feature_name, title),
            body=body or default_pr_body(feature_name),
            labels=spec_labels,
        )

    def create_all_prs(self, branches: List[FeatureBranch], feature_name: str, title: Optional[str] = None,
                       body: Optional[str] = None, labels: Sequence[str] = ()) -> PrReport:
        """Open one pull request per usable branch against its tier base."""
        report = PrReport()
        targets = [b for b in branches if b.is_usable]
        if not targets:
            self._print("No branches to create PRs for.")
            return report

        if self.pretend:
            self._print()
            self._print("Pretend mode: pull requests that would be created")
            for branch in targets:
                spec = self.build_spec(branch, feature_name, title, body, labels)
                self._print(f"  {spec.head} → {spec.base}: {spec.title}")
            return report

        if not self.hosting.is_authenticated():
            report.auth_error = MissingHostingAuth()
            logger.debug(f"No GitHub session: {report.auth_error!r}")
            self._print(marker(False, str(report.auth_error)))
            return report

        self._print()
        self._print("Creating pull requests")
        print_rule(self.output)
        for branch in targets:
            spec = self.build_spec(branch, feature_name, title, body, labels)
            self._print(f"Creating PR for {spec.head} → {spec.base}")
            try:
                result = self.hosting.create_pull_request(spec)
            except PrCreationFailed as e:
                report.failed[branch.name] = str(e)
                self._print(marker(False, f"Failed to create PR for {branch.name}: {e.reason}"))
                if e.existing_url:
                    self._print(f"   Existing PR: {e.existing_url}")
                continue
            report.created.append(result)
            self._print(marker(True, f"Successfully created PR for {branch.name}"))
            self._print(f"   PR URL: {result.url}")

        print_rule(self.output)
        self._print(f"PR creation completed: {len(report.created)} created, {len(report.failed)} failed")
        return report
