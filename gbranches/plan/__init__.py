"""Tier table and branch planning.

Every feature gets one branch per deployment tier, named ``{PREFIX}_{feature}``
and cut from the tier's base branch::

    PROD  master   rank 0 (most stable)
    STG   staging  rank 1
    QA    testing  rank 2
    DEV   develop  rank 3 (least stable)

Branches are created in ``CREATION_ORDER`` and a change is propagated in
``PROMOTION_ORDER``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from ..errors import InvalidFeatureName
from ..git import BranchExistence


class Tier(Enum):
    """Deployment tier: (prefix, base branch, promotion rank)."""
    DEV = ("DEV", "develop", 3)
    QA = ("QA", "testing", 2)
    STG = ("STG", "staging", 1)
    PROD = ("PROD", "master", 0)

    def __init__(self, prefix: str, base_branch: str, rank: int):
        self.prefix = prefix
        self.base_branch = base_branch
        self.rank = rank

    def branch_name(self, feature_name: str) -> str:
        return f"{self.prefix}_{feature_name}"


CREATION_ORDER = (Tier.DEV, Tier.QA, Tier.STG, Tier.PROD)
PROMOTION_ORDER = tuple(sorted(Tier, key=lambda tier: tier.rank))


class CreationOutcome(Enum):
    """What the branch creator did for a tier."""
    PENDING = "pending"
    CREATED = "created"
    PRE_EXISTING = "pre-existing"
    SKIPPED_NO_BASE = "skipped-no-base"
    FAILED = "failed"


@dataclass
class FeatureBranch:
    """One tier's branch for a feature.

    The tier travels with the record; downstream stages never parse it back
    out of the name.
    """
    name: str
    tier: Tier
    base_branch: str
    existence: BranchExistence = BranchExistence.ABSENT
    outcome: CreationOutcome = CreationOutcome.PENDING
    error: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        """Whether later stages should operate on this branch."""
        return self.outcome in (CreationOutcome.CREATED, CreationOutcome.PRE_EXISTING)

    def __str__(self) -> str:
        return self.name


# Characters git refuses in ref names (see git-check-ref-format)
_FORBIDDEN_CHARS = re.compile(r'[\s~^:?*\[\\\x00-\x1f\x7f]')


def validate_feature_name(feature_name: str) -> str:
    """Return ``feature_name`` if it can be used in every tier's branch name."""
    if feature_name is None or not feature_name.strip():
        raise InvalidFeatureName(feature_name or "", "feature name is required")
    if feature_name.startswith("-"):
        raise InvalidFeatureName(feature_name, "must not start with '-'")
    match = _FORBIDDEN_CHARS.search(feature_name)
    if match:
        raise InvalidFeatureName(feature_name, f"contains forbidden character {match.group(0)!r}")
    if ".." in feature_name or "@{" in feature_name or "//" in feature_name:
        raise InvalidFeatureName(feature_name, "contains '..', '@{' or '//'")
    if feature_name.endswith((".", "/", ".lock")):
        raise InvalidFeatureName(feature_name, "must not end with '.', '/' or '.lock'")
    if feature_name == "@" or "/." in feature_name:
        raise InvalidFeatureName(feature_name, "is not a valid ref component")
    return feature_name


def plan_branches(feature_name: str) -> List[FeatureBranch]:
    """Four feature branches, in creation order."""
    validate_feature_name(feature_name)
    return [FeatureBranch(tier.branch_name(feature_name), tier, tier.base_branch)
            for tier in CREATION_ORDER]


def promotion_sorted(branches: Iterable[FeatureBranch]) -> List[FeatureBranch]:
    """Branches ordered from most to least stable tier."""
    return sorted(branches, key=lambda branch: branch.tier.rank)
