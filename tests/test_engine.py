"""Tests for work item aggregation logic."""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devstats.engine import aggregate, parse_timestamp
from devstats.errors import MalformedRecordError
from devstats.models import RawWorkItem
from devstats.policy import BOARD_POLICY, LEGACY_STATE_POLICY, Granularity, with_granularity


def _item(
    item_id: int = 1,
    dev: str | None = "Ana",
    column: str | None = "Publicado",
    state: str | None = None,
    risk: str | None = "1 - Baixo",
    timestamp: str | None = "2025-07-01T10:00:00Z",
    title: str | None = "Item",
    reviewer: str | None = "Bruno",
) -> RawWorkItem:
    return RawWorkItem(
        id=item_id,
        title=title,
        board_column=column,
        state=state,
        assigned_developer=dev,
        quality_reviewer=reviewer,
        risk_level=risk,
        state_change_timestamp=timestamp,
    )


def test_single_completed_item_scenario():
    """Verify one concluded, dated item produces the expected summary shape."""
    summary = aggregate([_item(item_id=10)])
    payload = summary.to_dict()

    assert payload["developers"] == [
        {
            "name": "Ana",
            "inDevelopment": 0,
            "completed": 1,
            "score": 5,
            "completedByRisk": {"low": 1, "medium": 0, "high": 0},
        }
    ]
    assert payload["detailedWorkItems"] == [
        {
            "id": 10,
            "title": "Item",
            "dev": "Ana",
            "qa": "Bruno",
            "complexity": "1 - Baixo",
            "resolvedDate": "2025-07-01",
        }
    ]
    assert payload["evolutionData"] == [{"date": "2025-07-01", "Ana": 1}]
    assert payload["inProgressWorkItems"] == []


def test_item_without_assignee_contributes_nothing():
    """Verify unassigned items never appear in any output."""
    payload = aggregate([_item(dev=None), _item(dev="", column="Em desenvolvimento")]).to_dict()

    assert payload == {
        "developers": [],
        "evolutionData": [],
        "detailedWorkItems": [],
        "inProgressWorkItems": [],
    }


def test_empty_input_returns_empty_summary():
    """Verify aggregating no items yields the empty-shape summary."""
    summary = aggregate([])

    assert summary.developers == []
    assert summary.evolution == []
    assert summary.detailed_work_items == []
    assert summary.in_progress_work_items == []


def test_score_is_weighted_sum_of_risk_tiers():
    """Verify two low-risk and one high-risk completion score 2*5 + 15."""
    items = [
        _item(1, risk="1 - Baixo"),
        _item(2, risk="1 - Baixo"),
        _item(3, risk="3 - Alto"),
    ]

    ana = aggregate(items).developer("Ana")

    assert ana.score == 25
    assert ana.completed_by_risk_tier == {"low": 2, "medium": 0, "high": 1}


def test_unknown_or_missing_risk_scores_zero_and_uses_placeholder():
    """Verify unrecognized risk levels contribute no points and a placeholder label."""
    summary = aggregate([_item(1, risk="Extremo"), _item(2, risk=None)])

    assert summary.developer("Ana").score == 0
    assert summary.developer("Ana").completed_count == 2
    assert [item.complexity_label for item in summary.detailed_work_items] == [
        "Extremo",
        "Não definida",
    ]


def test_completed_item_without_timestamp_counts_but_is_undated():
    """Verify undated completions count toward totals but skip dated outputs."""
    summary = aggregate([_item(1, timestamp=None), _item(2, timestamp="not-a-date")])

    ana = summary.developer("Ana")
    assert ana.completed_count == 2
    assert ana.score == 10
    assert summary.evolution == []
    assert summary.detailed_work_items == []


def test_in_development_uses_substring_match_and_lists_in_progress():
    """Verify columns containing 'desenvolvimento' count as in development."""
    items = [
        _item(1, column="Em Desenvolvimento"),
        _item(2, column="Desenvolvimento - Doing"),
        _item(3, column="Em Teste"),
        _item(4, column="New"),
    ]

    summary = aggregate(items)
    ana = summary.developer("Ana")

    assert ana.in_development_count == 2
    assert ana.completed_count == 0
    assert [item.id for item in summary.in_progress_work_items] == [1, 2, 3]
    assert summary.in_progress_work_items[2].column == "Em Teste"


def test_developer_with_only_other_items_keeps_explicit_zero_counters():
    """Verify a developer seen only on unclassified items is still summarized with zeros."""
    summary = aggregate([_item(1, dev="Caio", column="New")])

    assert summary.to_dict()["developers"] == [
        {
            "name": "Caio",
            "inDevelopment": 0,
            "completed": 0,
            "score": 0,
            "completedByRisk": {"low": 0, "medium": 0, "high": 0},
        }
    ]


def test_evolution_is_sorted_and_dense_across_all_developers():
    """Verify buckets ascend by date and list every known developer."""
    items = [
        _item(1, dev="Ana", timestamp="2025-07-03T09:00:00Z"),
        _item(2, dev="Bia", timestamp="2025-07-01T09:00:00Z"),
        _item(3, dev="Ana", timestamp="2025-07-01T18:00:00Z"),
        _item(4, dev="Caio", column="Em desenvolvimento"),
    ]

    payload = aggregate(items).to_dict()

    assert payload["evolutionData"] == [
        {"date": "2025-07-01", "Ana": 1, "Bia": 1, "Caio": 0},
        {"date": "2025-07-03", "Ana": 1, "Bia": 0, "Caio": 0},
    ]


def test_detailed_items_sorted_most_recent_first_with_stable_ties():
    """Verify detailed items are ordered by resolved date descending, ties in input order."""
    items = [
        _item(1, timestamp="2025-07-01T08:00:00Z"),
        _item(2, timestamp="2025-07-02T08:00:00Z"),
        _item(3, timestamp="2025-07-01T20:00:00Z"),
        _item(4, timestamp="2025-07-02T01:00:00Z"),
    ]

    summary = aggregate(items)

    assert [item.id for item in summary.detailed_work_items] == [2, 4, 1, 3]


def test_timestamp_offsets_are_bucketed_in_utc():
    """Verify timestamps with offsets resolve to their UTC date."""
    summary = aggregate([_item(1, timestamp="2025-07-01T22:30:00-03:00")])

    assert summary.detailed_work_items[0].resolved_date == "2025-07-02"
    assert summary.evolution[0].bucket_key == "2025-07-02"


def test_completed_count_matches_concluded_items_per_developer():
    """Verify completed counts equal concluded items per assignee across mixed input."""
    columns = ["Code Review", "Wait Deploy", "Publicado", "Aguardando comunicação", "Finalizado"]
    items = [_item(i, dev="Ana" if i % 2 else "Bia", column=columns[i % 5]) for i in range(10)]
    items.append(_item(99, dev="Ana", column="Em desenvolvimento"))

    summary = aggregate(items)

    assert summary.developer("Ana").completed_count == 5
    assert summary.developer("Bia").completed_count == 5
    for entry in summary.evolution:
        matching = [
            item for item in summary.detailed_work_items if item.resolved_date == entry.bucket_key
        ]
        assert entry.total == len(matching)


def test_concluded_match_is_exact():
    """Verify concluded columns require an exact label match in the board policy."""
    summary = aggregate([_item(1, column="publicado"), _item(2, column="Publicado ")])

    assert summary.developer("Ana").completed_count == 0


def test_aggregate_is_idempotent():
    """Verify repeated aggregation of the same input yields identical output."""
    items = [
        _item(1, dev="Ana"),
        _item(2, dev="Bia", column="Em desenvolvimento"),
        _item(3, dev="Bia", timestamp="2025-07-02T10:00:00Z", risk="2 - Médio"),
    ]

    assert aggregate(items).to_dict() == aggregate(items).to_dict()


def test_legacy_policy_uses_state_hour_buckets_qa_and_totals():
    """Verify the legacy policy keys off state, tracks QA and buckets by hour."""
    items = [
        _item(1, column=None, state="Closed", timestamp="2025-07-01T10:15:00Z"),
        _item(2, column=None, state="aguardando release", timestamp="2025-07-01T10:45:00Z"),
        _item(3, dev="Bia", column=None, state="Em teste"),
        _item(4, dev="Bia", column=None, state="Code Review"),
        _item(5, dev="Bia", column=None, state="Aguardando publicação", timestamp="2025-07-01T09:05:00Z"),
    ]

    summary = aggregate(items, LEGACY_STATE_POLICY)
    payload = summary.to_dict()

    assert "inProgressWorkItems" not in payload
    assert payload["developers"][1]["qa"] == 1
    assert payload["developers"][1]["inDevelopment"] == 1
    assert payload["developers"][0]["completed"] == 2
    assert payload["timelineData"] == [
        {"dateHour": "2025-07-01T09", "Ana": 0, "Bia": 1, "total": 1},
        {"dateHour": "2025-07-01T10", "Ana": 2, "Bia": 0, "total": 2},
    ]


def test_board_policy_ignores_state_field():
    """Verify the board policy classifies by board column only."""
    summary = aggregate([_item(1, column="Em desenvolvimento", state="Closed")], BOARD_POLICY)

    assert summary.developer("Ana").completed_count == 0
    assert summary.developer("Ana").in_development_count == 1


def test_parse_timestamp_handles_zulu_and_naive_values():
    """Verify timestamps with Z suffix or no offset are parsed as UTC."""
    assert parse_timestamp("2025-07-01T10:00:00Z").isoformat() == "2025-07-01T10:00:00+00:00"
    assert parse_timestamp("2025-07-01T10:00:00").isoformat() == "2025-07-01T10:00:00+00:00"


@pytest.mark.parametrize(
    "value",
    [None, "", "yesterday", "2025-13-40", "0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"],
)
def test_parse_timestamp_invalid_values_raise_malformed_record_error(value):
    """Verify unparseable timestamps raise MalformedRecordError."""
    with pytest.raises(MalformedRecordError):
        parse_timestamp(value)


def test_completed_item_with_out_of_range_timestamp_counts_but_is_undated():
    """Verify a timestamp that overflows when shifted to UTC degrades instead of raising."""
    summary = aggregate(
        [
            _item(1, timestamp="0001-01-01T00:00:00+05:00"),
            _item(2, timestamp="2025-07-01T10:00:00Z"),
        ]
    )

    ana = summary.developer("Ana")
    assert ana.completed_count == 2
    assert ana.score == 10
    assert [item.id for item in summary.detailed_work_items] == [2]
    assert [entry.bucket_key for entry in summary.evolution] == ["2025-07-01"]


def test_hour_buckets_match_truncated_timestamps_of_detailed_items():
    """Verify each hour bucket total equals its detailed items, keyed by truncated timestamp."""
    timestamps = {
        1: "2025-07-01T09:05:00Z",
        2: "2025-07-01T09:55:00Z",
        3: "2025-07-01T10:00:00Z",
        4: "2025-07-02T09:30:00Z",
        5: "2025-07-01T09:59:59Z",
    }
    items = [
        _item(item_id, dev="Ana" if item_id % 2 else "Bia", timestamp=timestamp)
        for item_id, timestamp in timestamps.items()
    ]
    items.append(_item(6, dev="Caio", timestamp=None))

    summary = aggregate(items, with_granularity(BOARD_POLICY, Granularity.HOUR))

    assert [entry.bucket_key for entry in summary.evolution] == [
        "2025-07-01T09",
        "2025-07-01T10",
        "2025-07-02T09",
    ]
    for entry in summary.evolution:
        matching = [
            item
            for item in summary.detailed_work_items
            if timestamps[item.id][:13] == entry.bucket_key
        ]
        assert entry.total == len(matching)
        assert entry.per_developer_count["Caio"] == 0
    assert sum(entry.total for entry in summary.evolution) == len(summary.detailed_work_items)


@pytest.mark.parametrize(
    "policy, name",
    [(BOARD_POLICY, "date"), (LEGACY_STATE_POLICY, "dateHour"), (LEGACY_STATE_POLICY, "total")],
)
def test_developer_named_like_entry_key_logs_warning(caplog, policy, name):
    """Verify a developer name colliding with an evolution entry key is reported."""
    item = _item(1, dev=name, column="Publicado", state="Closed")

    with caplog.at_level(logging.WARNING, logger="devstats.engine"):
        aggregate([item], policy)

    assert any(
        "collides with an evolution entry key" in record.getMessage()
        and record.developer == name
        for record in caplog.records
    )


def test_developer_named_total_without_totals_does_not_warn(caplog):
    """Verify 'total' is only reserved when the policy emits bucket totals."""
    with caplog.at_level(logging.WARNING, logger="devstats.engine"):
        aggregate([_item(1, dev="total")], BOARD_POLICY)

    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]
