"""Classification and scoring policies for work item aggregation.

A policy decides which status labels count as concluded, in development or in
QA, how risk levels translate into points and how completions are bucketed in
time. The aggregation loop only talks to the policy, so each report variant is
a different policy instance rather than a different code path.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from .errors import ConfigurationError
from .models import RawWorkItem


class Bucket(Enum):
    COMPLETED = "completed"
    IN_DEVELOPMENT = "inDevelopment"
    QA = "qa"
    OTHER = "other"


class Granularity(Enum):
    """Evolution bucket width.

    Keys are fixed-width, zero-padded ISO strings, so lexicographic order is
    chronological order.
    """

    DAY = "day"
    HOUR = "hour"

    @property
    def label(self) -> str:
        return "date" if self is Granularity.DAY else "dateHour"

    def key_for(self, moment: datetime) -> str:
        utc_moment = moment.astimezone(timezone.utc)
        if self is Granularity.DAY:
            return utc_moment.strftime("%Y-%m-%d")
        return utc_moment.strftime("%Y-%m-%dT%H")


class RiskTier(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ClassificationRule:
    """Maps status labels to a bucket.

    ``match`` is ``"exact"`` for set membership or ``"contains"`` for a
    substring test against any of ``labels``.
    """

    bucket: Bucket
    labels: FrozenSet[str]
    match: str = "exact"
    case_sensitive: bool = True

    def __post_init__(self) -> None:
        if self.match not in ("exact", "contains"):
            raise ValueError(f"Unsupported match mode: {self.match!r}")

    def matches(self, label: str) -> bool:
        candidate = label if self.case_sensitive else label.lower()
        labels = self.labels if self.case_sensitive else {value.lower() for value in self.labels}
        if self.match == "exact":
            return candidate in labels
        return any(value in candidate for value in labels)


DEFAULT_TIER_POINTS: Mapping[RiskTier, int] = {
    RiskTier.LOW: 5,
    RiskTier.MEDIUM: 10,
    RiskTier.HIGH: 15,
}

DEFAULT_RISK_TIERS: Mapping[str, RiskTier] = {
    "1 - Baixo": RiskTier.LOW,
    "2 - Médio": RiskTier.MEDIUM,
    "3 - Alto": RiskTier.HIGH,
}


@dataclass(frozen=True)
class ClassificationPolicy:
    """Ordered classification rules plus scoring and bucketing settings."""

    name: str
    rules: Tuple[ClassificationRule, ...]
    status_field: str = "board_column"
    risk_tiers: Mapping[str, RiskTier] = field(default_factory=lambda: dict(DEFAULT_RISK_TIERS))
    tier_points: Mapping[RiskTier, int] = field(default_factory=lambda: dict(DEFAULT_TIER_POINTS))
    new_columns: FrozenSet[str] = frozenset()
    granularity: Granularity = Granularity.DAY
    series_name: str = "evolutionData"
    include_totals: bool = False
    track_qa: bool = False
    list_in_progress: bool = True

    def __post_init__(self) -> None:
        if self.status_field not in ("board_column", "state"):
            raise ValueError(f"Unsupported status field: {self.status_field!r}")

    def status_of(self, item: RawWorkItem) -> Optional[str]:
        value = getattr(item, self.status_field)
        return value or None

    def classify(self, label: Optional[str]) -> Bucket:
        """Return the bucket of the first rule matching ``label``."""
        if not label:
            return Bucket.OTHER
        for rule in self.rules:
            if rule.matches(label):
                return rule.bucket
        return Bucket.OTHER

    def tier_of(self, risk_level: Optional[str]) -> Optional[RiskTier]:
        if not risk_level:
            return None
        return self.risk_tiers.get(risk_level.strip())

    def points_for(self, risk_level: Optional[str]) -> int:
        tier = self.tier_of(risk_level)
        if tier is None:
            return 0
        return self.tier_points.get(tier, 0)

    def is_in_progress(self, label: Optional[str]) -> bool:
        """True for a present, non-concluded label outside the entry columns."""
        if not self.list_in_progress or not label:
            return False
        if label in self.new_columns:
            return False
        return self.classify(label) is not Bucket.COMPLETED

    def bucket_key(self, moment: datetime) -> str:
        return self.granularity.key_for(moment)


BOARD_POLICY = ClassificationPolicy(
    name="board",
    rules=(
        ClassificationRule(
            Bucket.COMPLETED,
            frozenset(
                {
                    "Code Review",
                    "Wait Deploy",
                    "Publicado",
                    "Aguardando comunicação",
                    "Finalizado",
                }
            ),
        ),
        ClassificationRule(
            Bucket.IN_DEVELOPMENT,
            frozenset({"desenvolvimento"}),
            match="contains",
            case_sensitive=False,
        ),
    ),
    status_field="board_column",
    new_columns=frozenset({"New", "Novo"}),
    granularity=Granularity.DAY,
    series_name="evolutionData",
)

LEGACY_STATE_POLICY = ClassificationPolicy(
    name="legacy",
    rules=(
        ClassificationRule(
            Bucket.COMPLETED,
            frozenset({"Closed", "Aguardando publicação", "Aguardando release"}),
            case_sensitive=False,
        ),
        ClassificationRule(
            Bucket.IN_DEVELOPMENT,
            frozenset({"Em Desenvolvimento", "Code Review"}),
            case_sensitive=False,
        ),
        ClassificationRule(Bucket.QA, frozenset({"Em teste"}), case_sensitive=False),
    ),
    status_field="state",
    granularity=Granularity.HOUR,
    series_name="timelineData",
    include_totals=True,
    track_qa=True,
    list_in_progress=False,
)

POLICIES: Dict[str, ClassificationPolicy] = {
    BOARD_POLICY.name: BOARD_POLICY,
    LEGACY_STATE_POLICY.name: LEGACY_STATE_POLICY,
}


def get_policy(name: str) -> ClassificationPolicy:
    """Look up a policy preset by report variant name.

    Raises:
        ConfigurationError: If no preset with that name exists.
    """
    try:
        return POLICIES[name]
    except KeyError as exc:
        raise ConfigurationError(
            f"Unknown report variant '{name}'. Expected one of: {', '.join(sorted(POLICIES))}."
        ) from exc


def with_granularity(policy: ClassificationPolicy, granularity: Granularity) -> ClassificationPolicy:
    """Return a copy of ``policy`` bucketing evolution at ``granularity``."""
    return dataclasses.replace(policy, granularity=granularity)


def resolve_policy(variant: str, granularity: Optional[str] = None) -> ClassificationPolicy:
    """Resolve a report variant and optional bucket width into a policy.

    Raises:
        ConfigurationError: If the variant or granularity name is unknown.
    """
    policy = get_policy(variant)
    if granularity is None:
        return policy

    try:
        width = Granularity(granularity)
    except ValueError as exc:
        choices = ", ".join(member.value for member in Granularity)
        raise ConfigurationError(
            f"Unknown granularity '{granularity}'. Expected one of: {choices}."
        ) from exc
    return with_granularity(policy, width)
