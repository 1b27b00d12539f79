"""Aggregation of raw work items into the dashboard summary.

``aggregate`` turns a flat list of work items into:
- per-developer counters and a risk-weighted score
- a chronological completion series per developer
- detailed (completed, dated) and in-progress item lists

The function is pure: no I/O, no shared state, and the same input sequence
always yields the same summary. Problems with individual items never abort
the pass; the item is degraded instead.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from .errors import MalformedRecordError
from .models import (
    COMPLEXITY_PLACEHOLDER,
    REVIEWER_PLACEHOLDER,
    TITLE_PLACEHOLDER,
    DetailedWorkItem,
    DeveloperSummary,
    EvolutionEntry,
    InProgressWorkItem,
    RawWorkItem,
    Summary,
)
from .policy import BOARD_POLICY, Bucket, ClassificationPolicy

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> datetime:
    """Parse an Azure DevOps ISO8601 timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC.

    Raises:
        MalformedRecordError: If ``value`` is empty, not ISO8601, or falls
            outside the representable range once shifted to UTC.
    """
    if not value:
        raise MalformedRecordError("Missing state change timestamp")

    normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError) as exc:
        raise MalformedRecordError(f"Unparseable timestamp: {value!r}") from exc


def _resolve_completion(item: RawWorkItem) -> Optional[datetime]:
    try:
        return parse_timestamp(item.state_change_timestamp)
    except MalformedRecordError as exc:
        logger.debug(
            "Completed work item has no usable timestamp",
            extra={"work_item_id": item.id, "reason": str(exc)},
        )
        return None


def aggregate(
    items: Sequence[RawWorkItem],
    policy: ClassificationPolicy = BOARD_POLICY,
) -> Summary:
    """Aggregate work items into developer, evolution and item-list views.

    Items without an assignee are ignored. Concluded items always count
    toward ``completed_count`` and ``score``; they only reach the evolution
    series and the detailed list when their state change timestamp parses.

    Args:
        items: Raw work items in fetch order.
        policy: Classification, scoring and bucketing rules for the report.

    Returns:
        A ``Summary``. Developers keep first-seen order, evolution entries
        are ascending by bucket key with an explicit zero for every known
        developer, and detailed items are most recent first.
    """
    developers: Dict[str, DeveloperSummary] = {}
    buckets: Dict[str, Dict[str, int]] = {}
    detailed: List[DetailedWorkItem] = []
    in_progress: List[InProgressWorkItem] = []
    undated_completions = 0
    reserved_keys = {policy.granularity.label}
    if policy.include_totals:
        reserved_keys.add("total")

    for item in items:
        dev_name = item.assigned_developer
        if not dev_name:
            continue

        summary = developers.get(dev_name)
        if summary is None:
            summary = developers[dev_name] = DeveloperSummary(name=dev_name)
            if dev_name in reserved_keys:
                logger.warning(
                    "Developer name collides with an evolution entry key; "
                    "serialized evolution entries will lose one of the values",
                    extra={"developer": dev_name, "reserved_keys": sorted(reserved_keys)},
                )

        label = policy.status_of(item)
        bucket = policy.classify(label)
        title = item.title or TITLE_PLACEHOLDER
        reviewer = item.quality_reviewer or REVIEWER_PLACEHOLDER
        complexity = item.risk_level or COMPLEXITY_PLACEHOLDER

        if bucket is Bucket.COMPLETED:
            summary.completed_count += 1
            summary.score += policy.points_for(item.risk_level)
            tier = policy.tier_of(item.risk_level)
            if tier is not None:
                summary.completed_by_risk_tier[tier.value] += 1

            completed_at = _resolve_completion(item)
            if completed_at is None:
                undated_completions += 1
                continue

            counts = buckets.setdefault(policy.bucket_key(completed_at), {})
            counts[dev_name] = counts.get(dev_name, 0) + 1
            detailed.append(
                DetailedWorkItem(
                    id=item.id,
                    title=title,
                    developer_name=dev_name,
                    quality_reviewer_name=reviewer,
                    complexity_label=complexity,
                    resolved_date=completed_at.date().isoformat(),
                )
            )
            continue

        if bucket is Bucket.IN_DEVELOPMENT:
            summary.in_development_count += 1
        elif bucket is Bucket.QA and policy.track_qa:
            summary.qa_count += 1

        if policy.is_in_progress(label):
            in_progress.append(
                InProgressWorkItem(
                    id=item.id,
                    title=title,
                    developer_name=dev_name,
                    quality_reviewer_name=reviewer,
                    complexity_label=complexity,
                    column=label or "",
                )
            )

    names = list(developers)
    evolution = [
        EvolutionEntry(
            bucket_key=key,
            per_developer_count={name: buckets[key].get(name, 0) for name in names},
        )
        for key in sorted(buckets)
    ]
    detailed.sort(key=lambda entry: entry.resolved_date, reverse=True)

    logger.debug(
        "Aggregated work items",
        extra={
            "items": len(items),
            "developers": len(names),
            "buckets": len(evolution),
            "detailed": len(detailed),
            "undated_completions": undated_completions,
        },
    )

    return Summary(
        developers=list(developers.values()),
        evolution=evolution,
        detailed_work_items=detailed,
        in_progress_work_items=in_progress,
        series_name=policy.series_name,
        bucket_label=policy.granularity.label,
        include_totals=policy.include_totals,
        include_qa=policy.track_qa,
        include_in_progress=policy.list_in_progress,
    )
