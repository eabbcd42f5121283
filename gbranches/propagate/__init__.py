"""Propagation of one change across the tier branches by cherry-pick.

The change is committed once on the source branch and that exact commit is
replayed onto every other usable branch in promotion order. The first
conflict halts the run; nothing is retried or resolved automatically.
"""

import sys
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, List, Optional

from ..errors import CherryPickConflict
from ..git import BranchExistence, CherryPickOutcome, PendingCommit, RepositoryGateway
from ..plan import FeatureBranch, promotion_sorted
from ..pretty import marker, print_rule
from ..typing import CommitHash

logger = logging.getLogger(__name__)


class SourcePolicy(Enum):
    """Which branch receives the commit that is then propagated."""
    HIGHEST_RANK = "highest-rank"


class PropagationState(Enum):
    CREATE_ONLY = "create-only"
    NOTHING_TO_DO = "nothing-to-do"
    PROPAGATING = "propagating"
    COMPLETE = "complete"
    HALTED = "halted"


@dataclass
class PropagationStep:
    branch: FeatureBranch
    outcome: CherryPickOutcome


@dataclass
class PropagationReport:
    state: PropagationState
    source: Optional[FeatureBranch] = None
    commit: Optional[CommitHash] = None
    synthesized: bool = False
    steps: List[PropagationStep] = field(default_factory=list)
    conflict: Optional[CherryPickConflict] = None

    @property
    def halted(self) -> bool:
        return self.state is PropagationState.HALTED

    @property
    def processed(self) -> List[FeatureBranch]:
        """Source plus every branch the commit was applied to."""
        result = [self.source] if self.source and self.commit else []
        result.extend(step.branch for step in self.steps
                      if step.outcome is not CherryPickOutcome.CONFLICT)
        return result


class PropagationEngine:
    """Commit-then-replicate state machine over the promotion-ordered branches."""

    def __init__(self, gateway: RepositoryGateway, output: Optional[IO[str]] = None,
                 refresh_before_pick: bool = False):
        self.gateway = gateway
        self.output = output or sys.stdout
        self.refresh_before_pick = refresh_before_pick

    def _print(self, text: str = "") -> None:
        print(text, file=self.output)

    def select_source(self, ordered: List[FeatureBranch],
                      policy: SourcePolicy = SourcePolicy.HIGHEST_RANK) -> Optional[FeatureBranch]:
        if policy is SourcePolicy.HIGHEST_RANK:
            return ordered[0] if ordered else None
        raise ValueError(f"Unknown source policy: {policy}")

    def propagate(self, branches: List[FeatureBranch], message: Optional[str], apply_changes: bool,
                  source_policy: SourcePolicy = SourcePolicy.HIGHEST_RANK) -> PropagationReport:
        """Commit the pending change on the source branch and cherry-pick it onto the rest."""
        if not apply_changes:
            return PropagationReport(PropagationState.CREATE_ONLY)
        if not message:
            raise ValueError("A commit message is required to apply changes")

        ordered = promotion_sorted(b for b in branches if b.is_usable)
        source = self.select_source(ordered, source_policy)
        if source is None:
            self._print("No branches to propagate changes to.")
            return PropagationReport(PropagationState.NOTHING_TO_DO)

        self._print()
        self._print("Propagating changes across branches using cherry-pick")
        print_rule(self.output)

        pending = self._commit(source, message)
        commit = pending.commit
        report = PropagationReport(PropagationState.PROPAGATING, source=source,
                                   commit=commit, synthesized=pending.synthesized)

        for branch in ordered[1:]:
            self._print(f"Cherry-picking to: {branch.name} (from commit: {commit[:8]})")
            self._switch(branch)
            if self.refresh_before_pick and branch.existence.remote:
                self.gateway.pull_ff_only(branch.name)

            outcome = self.gateway.cherry_pick(commit)
            report.steps.append(PropagationStep(branch, outcome))
            if outcome is CherryPickOutcome.CONFLICT:
                report.state = PropagationState.HALTED
                report.conflict = CherryPickConflict(branch.name, commit)
                logger.debug(f"Propagation halted: {report.conflict!r}")
                self._print(report.conflict.instructions())
                return report
            if outcome is CherryPickOutcome.ALREADY_PRESENT:
                self._print(marker(True, f"Changes already present in {branch.name}"))
            else:
                self._print(marker(True, f"Successfully cherry-picked changes to {branch.name}"))

        self.gateway.checkout(source.name)
        report.state = PropagationState.COMPLETE
        print_rule(self.output)
        self._print("Successfully propagated changes to all branches using cherry-pick")
        return report

    def _switch(self, branch: FeatureBranch) -> None:
        if branch.existence.local:
            self.gateway.checkout(branch.name)
        else:
            # Pre-existing branch that only lives on the remote
            self.gateway.ensure_local(branch.name)
            branch.existence = BranchExistence.BOTH

    def _commit(self, source: FeatureBranch, message: str) -> PendingCommit:
        self._print(f"Starting with branch: {source.name}")
        self._switch(source)
        pending = self.gateway.commit_pending(message)
        if pending.synthesized:
            self._print("No changes to commit. Made a marker change so there is a commit to propagate.")
        self._print(marker(True, f"Committed changes to {source.name} (Commit: {pending.commit[:8]})"))
        return pending
