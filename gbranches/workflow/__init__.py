"""Workflow that sequences the branch stages for one feature."""

import sys
import logging
from dataclasses import dataclass, field, replace
from typing import IO, List, Optional

from ..config.models import GbranchesConfig
from ..create import BranchCreator
from ..errors import GbranchesError, InvalidOptions
from ..git import RepositoryGateway
from ..github import GitHubClient
from ..plan import FeatureBranch, plan_branches
from ..pretty import WARN, print_header
from ..propagate import PropagationEngine, PropagationReport, SourcePolicy
from ..publish import PrReport, Publisher, PushReport, default_pr_body
from ..typing import ConfirmCallback

logger = logging.getLogger(__name__)


@dataclass
class WorkflowOptions:
    """What to do for a feature, mirroring the command line flags."""
    feature_name: str
    create_only: bool = False
    push: bool = False
    apply_changes: bool = False
    message: Optional[str] = None
    create_pr: bool = False
    pr_title: Optional[str] = None
    pr_body: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    source_policy: SourcePolicy = SourcePolicy.HIGHEST_RANK


@dataclass
class WorkflowResult:
    exit_code: int = 0
    cancelled: bool = False
    error: Optional[GbranchesError] = None
    branches: List[FeatureBranch] = field(default_factory=list)
    propagation: Optional[PropagationReport] = None
    push: Optional[PushReport] = None
    prs: Optional[PrReport] = None


def resolve_options(options: WorkflowOptions) -> WorkflowOptions:
    """Apply flag implications and reject combinations that cannot run."""
    if options.create_only:
        return replace(options, apply_changes=False, push=False, create_pr=False)
    if options.apply_changes and not options.message:
        raise InvalidOptions("Commit message (-m) is required with apply changes (-a)")
    if options.create_pr:
        # PR creation requires pushing
        return replace(options, push=True)
    return options


class BranchWorkflow:
    """Planner → creator → propagation → push → pull requests."""

    def __init__(self, config: GbranchesConfig, gateway: RepositoryGateway, hosting: GitHubClient,
                 confirm: ConfirmCallback, output: Optional[IO[str]] = None):
        self.config = config
        self.gateway = gateway
        self.hosting = hosting
        self.confirm = confirm
        self.output = output or sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def _fail(self, result: WorkflowResult, error: GbranchesError) -> WorkflowResult:
        logger.debug(f"Workflow failed: {error!r}")
        self._print(f"Error: {error}")
        result.error = error
        result.exit_code = 1
        return result

    def run(self, options: WorkflowOptions) -> WorkflowResult:
        """Run every requested stage; see WorkflowResult.exit_code for the outcome."""
        result = WorkflowResult()

        # Structural checks happen before anything touches the repository
        try:
            options = resolve_options(options)
            branches = plan_branches(options.feature_name)
            self.gateway.validate()
        except GbranchesError as e:
            return self._fail(result, e)
        result.branches = branches

        if options.create_pr and not options.pr_body:
            self._print("Note: Using default PR description. You can specify one with -b option.")
            options = replace(options, pr_body=default_pr_body(options.feature_name))

        try:
            if not options.apply_changes and self.gateway.has_pending_changes():
                self._print(f"{WARN} Warning: You have uncommitted changes")
                if not self.confirm("Do you want to continue anyway?"):
                    self._print("Operation cancelled.")
                    result.cancelled = True
                    return result

            original_branch = self.gateway.current_branch()
            self._run_stages(options, result, original_branch)
        except GbranchesError as e:
            return self._fail(result, e)
        return result

    def _run_stages(self, options: WorkflowOptions, result: WorkflowResult,
                    original_branch: Optional[str]) -> None:
        branches = result.branches

        print_header(f"Creating feature branches for: {options.feature_name}", file=self.output)
        creator = BranchCreator(self.gateway, self.output)
        creator.create(branches, return_to=None if options.apply_changes else original_branch)

        if options.apply_changes:
            engine = PropagationEngine(self.gateway, self.output,
                                       refresh_before_pick=self.config.repo.refresh_before_pick)
            result.propagation = engine.propagate(branches, options.message, True,
                                                  source_policy=options.source_policy)
            if result.propagation.halted:
                # Repository is left mid cherry-pick for manual resolution
                result.exit_code = 1
                result.error = result.propagation.conflict
                return

        publisher = Publisher(self.gateway, self.hosting, self.output,
                              tier_labels=self.config.repo.tier_labels, pretend=self.config.tool.pretend)
        if options.push:
            result.push = publisher.push_all(branches)
        if options.create_pr:
            result.prs = publisher.create_all_prs(branches, options.feature_name, title=options.pr_title,
                                                  body=options.pr_body, labels=options.labels)

        if original_branch and self.gateway.current_branch() != original_branch:
            self._print(f"Returning to original branch: {original_branch}")
            self.gateway.checkout(original_branch)

        self._print()
        self._print("Done! 🎉")
