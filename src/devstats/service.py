"""Fetch-aggregate cycle and the state presented to dashboard consumers."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .ado_client import AdoClient
from .engine import aggregate
from .models import Summary
from .policy import BOARD_POLICY, ClassificationPolicy

logger = logging.getLogger(__name__)


class RefreshCoordinator:
    """Applies only the result of the most recently started refresh.

    Every cycle takes a generation token from ``begin``. A cycle that finishes
    after a newer one has started is discarded by ``publish``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[Summary] = None

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def publish(self, token: int, summary: Summary) -> bool:
        """Store ``summary`` if ``token`` is the latest issued generation."""
        with self._lock:
            if token != self._generation:
                logger.info(
                    "Discarding stale refresh result",
                    extra={"token": token, "current_generation": self._generation},
                )
                return False
            self._latest = summary
            return True

    @property
    def latest(self) -> Optional[Summary]:
        with self._lock:
            return self._latest


class DevStatsService:
    """Runs fetch-aggregate cycles against Azure DevOps."""

    def __init__(
        self,
        client_factory: Callable[[], AdoClient],
        policy: ClassificationPolicy = BOARD_POLICY,
        coordinator: Optional[RefreshCoordinator] = None,
    ) -> None:
        self._client_factory = client_factory
        self._policy = policy
        self._coordinator = coordinator or RefreshCoordinator()

    @property
    def policy(self) -> ClassificationPolicy:
        return self._policy

    @property
    def latest(self) -> Optional[Summary]:
        return self._coordinator.latest

    def run_cycle(self) -> Summary:
        """Fetch all candidate items and aggregate them.

        Raises:
            UpstreamError: If the ID query or any detail batch fails.
        """
        client = self._client_factory()

        ids = client.fetch_candidate_ids()
        if not ids:
            logger.info("No work items matched the query; returning empty summary")
            return aggregate([], self._policy)

        items = client.fetch_details(ids)
        summary = aggregate(items, self._policy)
        logger.info(
            "Completed dev stats cycle",
            extra={
                "work_items": len(items),
                "developers": len(summary.developers),
                "detailed_work_items": len(summary.detailed_work_items),
            },
        )
        return summary

    def refresh(self) -> Summary:
        """Run one cycle and return the summary currently presented.

        When a newer refresh started while this one was in flight, the newer
        refresh owns the presented state and this cycle's result is dropped.
        Errors propagate and leave the previous summary in place.
        """
        token = self._coordinator.begin()
        summary = self.run_cycle()
        if self._coordinator.publish(token, summary):
            return summary
        return self._coordinator.latest or summary
