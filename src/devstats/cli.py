"""Command-line argument parsing for the developer stats dashboard."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .policy import POLICIES, Granularity
from .report import RANK_CHOICES


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for a dev stats run.

    Connection values left out on the command line are read from the
    ``AZURE_DEVOPS_*`` environment variables by ``load_config``.

    Returns:
        Parsed CLI arguments.
    """
    parser = argparse.ArgumentParser(
        prog="devstats",
        description=(
            "Aggregate Azure DevOps work items into per-developer statistics, "
            "a completion evolution series and detailed item lists."
        ),
    )

    parser.add_argument(
        "--org",
        default=None,
        help="Azure DevOps organization name (default: $AZURE_DEVOPS_ORG).",
    )
    parser.add_argument(
        "--project",
        default=None,
        help="Azure DevOps project name (default: $AZURE_DEVOPS_PROJECT).",
    )
    parser.add_argument(
        "--iteration-path",
        default=None,
        help="Iteration path to query (default: $AZURE_DEVOPS_ITERATION_PATH).",
    )
    parser.add_argument(
        "--variant",
        choices=sorted(POLICIES),
        default=None,
        help="Report variant selecting the classification policy (default: $DEVSTATS_VARIANT or board).",
    )
    parser.add_argument(
        "--granularity",
        choices=[granularity.value for granularity in Granularity],
        default=None,
        help="Evolution bucket width (default: $DEVSTATS_GRANULARITY or the variant's own).",
    )
    parser.add_argument(
        "--rank-by",
        choices=RANK_CHOICES,
        default="completed",
        help="Developer ranking key (default: completed).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON instead of a text report.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser.parse_args(argv)
