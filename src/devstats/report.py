"""Presentation helpers for the developer stats dashboard.

This module provides utilities for:
- Ranking developer summaries and assigning 1-based positions.
- Building a human-readable text rendering of the dashboard sections.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from .models import DeveloperSummary, RankedDeveloper, Summary

_RANK_KEYS: Dict[str, Callable[[DeveloperSummary], int]] = {
    "completed": lambda dev: dev.completed_count,
    "score": lambda dev: dev.score,
}

RANK_CHOICES = tuple(_RANK_KEYS)


def rank_developers(
    developers: Sequence[DeveloperSummary],
    rank_by: str = "completed",
) -> List[RankedDeveloper]:
    """Order developers by ``rank_by`` descending and assign positions.

    Ties keep the input order, so the first developer seen ranks first.

    Args:
        developers: Summaries in aggregation (first-seen) order.
        rank_by: ``"completed"`` or ``"score"``.

    Returns:
        Ranked developers with positions starting at 1.

    Raises:
        ValueError: If ``rank_by`` is not a supported ranking key.
    """
    try:
        key = _RANK_KEYS[rank_by]
    except KeyError as exc:
        raise ValueError(
            f"Unsupported ranking key '{rank_by}'. Expected one of: {', '.join(RANK_CHOICES)}."
        ) from exc

    ordered = sorted(developers, key=key, reverse=True)
    return [
        RankedDeveloper(position=index, developer=developer)
        for index, developer in enumerate(ordered, start=1)
    ]


def _format_row(values: Sequence[str], widths: Sequence[int]) -> str:
    return "  ".join(value.ljust(width) for value, width in zip(values, widths)).rstrip()


def _format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(value)) for width, value in zip(widths, row)]
    lines = [_format_row(headers, widths), _format_row(["-" * width for width in widths], widths)]
    lines.extend(_format_row(row, widths) for row in rows)
    return lines


def generate_report(summary: Summary, rank_by: str = "completed") -> str:
    """Generate a human-readable dashboard report.

    Sections: headline indicators, developer ranking, completion evolution
    and the detailed list of completed items (plus in-progress items when
    the summary carries them).
    """
    ranked = rank_developers(summary.developers, rank_by=rank_by)
    total_resolved = sum(dev.completed_count for dev in summary.developers)
    leader = ranked[0].developer.name if ranked else "n/a"

    lines = [
        "Developer Stats Report",
        "",
        f"Total resolved: {total_resolved}",
        f"Current leader: {leader}",
        f"Developers: {len(summary.developers)}",
        "",
        f"1) Developer Ranking (by {rank_by})",
    ]

    if ranked:
        rows = []
        for entry in ranked:
            dev = entry.developer
            row = [
                f"{entry.position}.",
                dev.name,
                str(dev.completed_count),
                str(dev.in_development_count),
                str(dev.score),
            ]
            if summary.include_qa:
                row.append(str(dev.qa_count))
            rows.append(row)
        headers = ["Pos", "Developer", "Completed", "In development", "Score"]
        if summary.include_qa:
            headers.append("QA")
        lines.extend("   " + line for line in _format_table(headers, rows))
    else:
        lines.append("   No developers.")

    lines.extend(["", "2) Completion Evolution"])
    if summary.evolution:
        names = [dev.name for dev in summary.developers]
        rows = [
            [entry.bucket_key, str(entry.total)]
            + [str(entry.per_developer_count.get(name, 0)) for name in names]
            for entry in summary.evolution
        ]
        headers = [summary.bucket_label, "total"] + names
        lines.extend("   " + line for line in _format_table(headers, rows))
    else:
        lines.append("   No completions.")

    lines.extend(["", "3) Completed Work Items"])
    if summary.detailed_work_items:
        rows = [
            [
                str(item.id),
                item.title,
                item.developer_name,
                item.quality_reviewer_name,
                item.complexity_label,
                item.resolved_date,
            ]
            for item in summary.detailed_work_items
        ]
        headers = ["ID", "Title", "Developer", "QA", "Complexity", "Resolved"]
        lines.extend("   " + line for line in _format_table(headers, rows))
    else:
        lines.append("   No completed work items.")

    if summary.include_in_progress:
        lines.extend(["", "4) Work Items In Progress"])
        if summary.in_progress_work_items:
            rows = [
                [
                    str(item.id),
                    item.title,
                    item.developer_name,
                    item.quality_reviewer_name,
                    item.complexity_label,
                    item.column,
                ]
                for item in summary.in_progress_work_items
            ]
            headers = ["ID", "Title", "Developer", "QA", "Complexity", "Column"]
            lines.extend("   " + line for line in _format_table(headers, rows))
        else:
            lines.append("   No work items in progress.")

    return "\n".join(lines)
