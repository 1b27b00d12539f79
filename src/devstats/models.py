"""Domain models for developer stats aggregation.

``RawWorkItem`` models only the subset of Azure DevOps work item fields the
dashboard reads. The remaining dataclasses are derived by the aggregation
engine and rebuilt from scratch on every fetch cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TITLE_PLACEHOLDER = "N/A"
REVIEWER_PLACEHOLDER = "N/A"
COMPLEXITY_PLACEHOLDER = "Não definida"


def _empty_risk_breakdown() -> Dict[str, int]:
    return {"low": 0, "medium": 0, "high": 0}


@dataclass(slots=True, frozen=True)
class RawWorkItem:
    """Represents one work item as returned by the work item batch API."""

    id: int
    title: Optional[str] = None
    board_column: Optional[str] = None
    state: Optional[str] = None
    assigned_developer: Optional[str] = None
    quality_reviewer: Optional[str] = None
    risk_level: Optional[str] = None
    state_change_timestamp: Optional[str] = None


@dataclass(slots=True)
class DeveloperSummary:
    """Per-assignee counters accumulated over one aggregation pass."""

    name: str
    in_development_count: int = 0
    completed_count: int = 0
    qa_count: int = 0
    score: int = 0
    completed_by_risk_tier: Dict[str, int] = field(default_factory=_empty_risk_breakdown)

    def to_dict(self, include_qa: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "inDevelopment": self.in_development_count,
            "completed": self.completed_count,
            "score": self.score,
            "completedByRisk": dict(self.completed_by_risk_tier),
        }
        if include_qa:
            payload["qa"] = self.qa_count
        return payload


@dataclass(slots=True)
class EvolutionEntry:
    """Completions per developer within one day or hour bucket."""

    bucket_key: str
    per_developer_count: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.per_developer_count.values())

    def to_dict(self, bucket_label: str = "date", include_total: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {bucket_label: self.bucket_key}
        payload.update(self.per_developer_count)
        if include_total:
            payload["total"] = self.total
        return payload


@dataclass(slots=True)
class DetailedWorkItem:
    """A completed work item with a resolvable completion date."""

    id: int
    title: str
    developer_name: str
    quality_reviewer_name: str
    complexity_label: str
    resolved_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "dev": self.developer_name,
            "qa": self.quality_reviewer_name,
            "complexity": self.complexity_label,
            "resolvedDate": self.resolved_date,
        }


@dataclass(slots=True)
class InProgressWorkItem:
    """An assigned work item that has not reached a concluded column yet."""

    id: int
    title: str
    developer_name: str
    quality_reviewer_name: str
    complexity_label: str
    column: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "dev": self.developer_name,
            "qa": self.quality_reviewer_name,
            "complexity": self.complexity_label,
            "column": self.column,
        }


@dataclass(slots=True)
class RankedDeveloper:
    """A developer summary with the position assigned by the presentation layer."""

    position: int
    developer: DeveloperSummary


@dataclass(slots=True)
class Summary:
    """Complete result of one aggregation pass.

    The ``series_name``/``bucket_label``/``include_*`` fields mirror the
    classification policy that produced the summary and only affect
    serialization.
    """

    developers: List[DeveloperSummary] = field(default_factory=list)
    evolution: List[EvolutionEntry] = field(default_factory=list)
    detailed_work_items: List[DetailedWorkItem] = field(default_factory=list)
    in_progress_work_items: List[InProgressWorkItem] = field(default_factory=list)
    series_name: str = "evolutionData"
    bucket_label: str = "date"
    include_totals: bool = False
    include_qa: bool = False
    include_in_progress: bool = True

    def developer(self, name: str) -> Optional[DeveloperSummary]:
        for developer in self.developers:
            if developer.name == name:
                return developer
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON body returned by ``GET /api/dev-stats``."""
        payload: Dict[str, Any] = {
            "developers": [dev.to_dict(include_qa=self.include_qa) for dev in self.developers],
            self.series_name: [
                entry.to_dict(bucket_label=self.bucket_label, include_total=self.include_totals)
                for entry in self.evolution
            ],
            "detailedWorkItems": [item.to_dict() for item in self.detailed_work_items],
        }
        if self.include_in_progress:
            payload["inProgressWorkItems"] = [
                item.to_dict() for item in self.in_progress_work_items
            ]
        return payload
