"""Entry point orchestration for the developer stats CLI."""

from __future__ import annotations

import json
import logging
import sys
from typing import Optional, Sequence

from .ado_client import AdoClient
from .cli import parse_args
from .config import load_config
from .errors import ConfigurationError, UpstreamError
from .policy import resolve_policy
from .report import generate_report
from .service import DevStatsService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_UPSTREAM = 4


def orchestrate_dev_stats(argv: Optional[Sequence[str]] = None) -> int:
    """Run one fetch-aggregate cycle and print the result.

    Returns:
        Process exit code.
    """
    try:
        args = parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        config = load_config(
            organization=args.org,
            project=args.project,
            iteration_path=args.iteration_path,
            variant=args.variant,
            granularity=args.granularity,
        )
        policy = resolve_policy(config.variant, config.granularity)

        service = DevStatsService(client_factory=lambda: AdoClient(config=config), policy=policy)
        summary = service.refresh()

        if args.json:
            print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
        else:
            print(generate_report(summary, rank_by=args.rank_by))
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except UpstreamError as exc:
        print(f"Azure DevOps error: {exc}", file=sys.stderr)
        return EXIT_UPSTREAM
    except Exception as exc:
        logger.exception("Unexpected error while generating dev stats")
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED


def main() -> None:
    sys.exit(orchestrate_dev_stats())


if __name__ == "__main__":
    main()
