"""Branch creation: one branch per tier, cut from the tier's base branch."""

import sys
import logging
from typing import IO, List, Optional

from ..errors import BaseUnavailable, BranchCollision, GitCommandFailed
from ..git import BranchExistence, RepositoryGateway
from ..plan import CreationOutcome, FeatureBranch
from ..pretty import marker, print_rule

logger = logging.getLogger(__name__)


class BranchCreator:
    """Creates the planned feature branches that don't exist yet."""

    def __init__(self, gateway: RepositoryGateway, output: Optional[IO[str]] = None):
        self.gateway = gateway
        self.output = output or sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def create(self, branches: List[FeatureBranch], return_to: Optional[str] = None) -> List[FeatureBranch]:
        """Create each branch in the given order and record its outcome.

        A missing base or a failing git call only affects that tier. When
        ``return_to`` is set it is checked out once all tiers are processed.
        """
        for branch in branches:
            self._print(f"Processing: {branch.base_branch} -> {branch.name}")
            self._create_one(branch)
            ok = branch.outcome is CreationOutcome.CREATED
            if branch.outcome is CreationOutcome.CREATED:
                text = f"Successfully created {branch.name} from {branch.base_branch}"
            elif branch.outcome is CreationOutcome.PRE_EXISTING:
                text = f"Branch {branch.name} already exists. Skipping creation."
            elif branch.outcome is CreationOutcome.SKIPPED_NO_BASE:
                text = f"Base branch {branch.base_branch} doesn't exist. Skipping."
            else:
                text = f"Failed to create {branch.name}: {branch.error}"
            self._print(marker(ok, text))

        if return_to:
            self._print(f"Returning to branch: {return_to}")
            self.gateway.checkout(return_to)

        self._print_summary(branches)
        return branches

    def _create_one(self, branch: FeatureBranch) -> None:
        try:
            branch.existence = self.gateway.branch_exists(branch.name)
            if branch.existence.exists:
                branch.outcome = CreationOutcome.PRE_EXISTING
                return

            if not self.gateway.branch_exists(branch.base_branch).exists:
                branch.outcome = CreationOutcome.SKIPPED_NO_BASE
                return

            self.gateway.ensure_local(branch.base_branch)
            self.gateway.create_branch(branch.name)
        except BaseUnavailable:
            branch.outcome = CreationOutcome.SKIPPED_NO_BASE
        except BranchCollision:
            branch.outcome = CreationOutcome.PRE_EXISTING
            branch.existence = BranchExistence.from_flags(True, branch.existence.remote)
        except GitCommandFailed as e:
            logger.debug(f"Creating {branch.name} failed: {e!r}")
            branch.outcome = CreationOutcome.FAILED
            branch.error = str(e)
        else:
            branch.outcome = CreationOutcome.CREATED
            branch.existence = BranchExistence.LOCAL

    def _print_summary(self, branches: List[FeatureBranch]) -> None:
        print_rule(self.output)
        self._print("Summary of feature branches:")
        for branch in branches:
            self._print(marker(branch.is_usable, f"{branch.name} ({branch.outcome.value})"))
