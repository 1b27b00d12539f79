"""Tests for command-line argument parsing."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from devstats.cli import parse_args


def test_parse_args_with_valid_arguments():
    """Verify CLI parsing keeps all explicitly provided arguments."""
    args = parse_args(
        [
            "--org",
            "my-org",
            "--project",
            "my-project",
            "--iteration-path",
            "Team\\Sprint 1",
            "--variant",
            "legacy",
            "--granularity",
            "day",
            "--rank-by",
            "score",
            "--json",
        ]
    )

    assert args.org == "my-org"
    assert args.project == "my-project"
    assert args.iteration_path == "Team\\Sprint 1"
    assert args.variant == "legacy"
    assert args.granularity == "day"
    assert args.rank_by == "score"
    assert args.json is True


def test_parse_args_defaults(monkeypatch):
    """Verify connection values default to None so the environment is used."""
    monkeypatch.setattr(sys, "argv", ["devstats"])

    args = parse_args()

    assert args.org is None
    assert args.project is None
    assert args.iteration_path is None
    assert args.variant is None
    assert args.granularity is None
    assert args.rank_by == "completed"
    assert args.json is False
    assert args.verbose is False


def test_parse_args_with_unknown_variant_fails_validation():
    """Verify CLI parsing exits with an error for an unknown report variant."""
    with pytest.raises(SystemExit):
        parse_args(["--variant", "weekly"])


def test_parse_args_with_unknown_rank_key_fails_validation():
    """Verify CLI parsing exits with an error for an unsupported ranking key."""
    with pytest.raises(SystemExit):
        parse_args(["--rank-by", "title"])
