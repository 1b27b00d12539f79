"""Azure DevOps work item tracking client used to fetch dashboard input."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.auth import HTTPBasicAuth

from .config import Config
from .errors import UpstreamError
from .models import RawWorkItem

logger = logging.getLogger(__name__)

FIELDS: List[str] = [
    "System.Id",
    "System.Title",
    "System.State",
    "System.BoardColumn",
    "System.AssignedTo",
    "Custom.Qualidade",
    "Microsoft.VSTS.Common.Risk",
    "Microsoft.VSTS.Common.StateChangeDate",
]


def _quote_wiql(value: str) -> str:
    """Quote a literal for use inside a WIQL string comparison."""
    return "'" + value.replace("'", "''") + "'"


def _identity_name(value: Any) -> Optional[str]:
    """Extract a display name from an identity reference field."""
    if isinstance(value, dict):
        value = value.get("displayName")
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_work_item(payload: Dict[str, Any]) -> RawWorkItem:
    """Convert one ``workitemsbatch`` entry into a ``RawWorkItem``.

    Raises:
        UpstreamError: If the entry is not an object, has no usable integer
            ``id``, or carries a non-object ``fields`` value.
    """
    if not isinstance(payload, dict):
        raise UpstreamError(f"Azure DevOps work item payload is not an object: {payload!r}")

    item_id = payload.get("id")
    try:
        parsed_id = int(item_id)
    except (TypeError, ValueError) as exc:
        raise UpstreamError(
            f"Azure DevOps work item payload is missing a valid id: payload={payload}"
        ) from exc

    fields = payload.get("fields") or {}
    if not isinstance(fields, dict):
        raise UpstreamError(
            f"Azure DevOps work item {parsed_id} has a non-object fields value: {fields!r}"
        )

    return RawWorkItem(
        id=parsed_id,
        title=_text(fields.get("System.Title")),
        board_column=_text(fields.get("System.BoardColumn")),
        state=_text(fields.get("System.State")),
        assigned_developer=_identity_name(fields.get("System.AssignedTo")),
        quality_reviewer=_identity_name(fields.get("Custom.Qualidade")),
        risk_level=_text(fields.get("Microsoft.VSTS.Common.Risk")),
        state_change_timestamp=_text(fields.get("Microsoft.VSTS.Common.StateChangeDate")),
    )


class AdoClient:
    """Small, typed client for the Azure DevOps work item tracking APIs."""

    _API_VERSION = "7.1"
    BATCH_SIZE = 200

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated Azure DevOps API client.

        Args:
            config: Validated runtime configuration including org/project/PAT.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._org_url = f"https://dev.azure.com/{config.organization}"

        self._session = requests.Session()
        self._session.auth = HTTPBasicAuth("", config.pat)
        self._session.headers.update(
            {"Accept": "application/json", "Content-Type": "application/json"}
        )

    def _build_url(self, path: str, project_scoped: bool = True) -> str:
        """Build a fully qualified API URL from a path below ``_apis``."""
        base = f"{self._org_url}/{self._config.project}" if project_scoped else self._org_url
        return f"{base}/_apis/{path.lstrip('/')}"

    def _post_json(
        self,
        path: str,
        body: Dict[str, Any],
        project_scoped: bool = True,
    ) -> Dict[str, Any]:
        """Execute a single POST request and return the decoded JSON object.

        Failures are not retried.

        Raises:
            UpstreamError: If the request fails, returns a non-success status,
                or does not return a JSON object.
        """
        url = self._build_url(path, project_scoped=project_scoped)

        try:
            response = self._session.post(
                url,
                params={"api-version": self._API_VERSION},
                json=body,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise UpstreamError(f"Azure DevOps request failed: POST {url}") from exc

        if response.status_code >= 400:
            logger.error(
                "Azure DevOps request returned an error status",
                extra={"url": url, "status_code": response.status_code},
            )
            raise UpstreamError(
                "Azure DevOps API request failed: "
                f"POST {url} returned {response.status_code} - {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Azure DevOps API returned invalid JSON: POST {url}") from exc

        if not isinstance(payload, dict):
            raise UpstreamError(f"Azure DevOps API returned unexpected payload shape: POST {url}")

        return payload

    def build_query(self) -> str:
        """Build the WIQL statement selecting the dashboard's candidate items."""
        query = self._config.query
        return (
            "SELECT [System.Id] FROM WorkItems WHERE "
            f"[System.WorkItemType] = {_quote_wiql(query.work_item_type)} "
            f"AND [Custom.Tipo] = {_quote_wiql(query.category)} "
            f"AND [System.IterationPath] = {_quote_wiql(query.iteration_path)}"
        )

    def fetch_candidate_ids(self) -> List[int]:
        """Return the IDs of all work items matching the configured query."""
        payload = self._post_json("wit/wiql", {"query": self.build_query()})

        work_items = payload.get("workItems") or []
        if not isinstance(work_items, list):
            raise UpstreamError(
                f"Azure DevOps WIQL response has an unexpected workItems value: {work_items!r}"
            )

        ids: List[int] = []
        for item in work_items:
            item_id = item.get("id") if isinstance(item, dict) else None
            if item_id is None:
                continue
            try:
                ids.append(int(item_id))
            except (TypeError, ValueError) as exc:
                raise UpstreamError(
                    f"Azure DevOps WIQL response contains an invalid work item id: {item_id!r}"
                ) from exc

        logger.info("Fetched candidate work item ids", extra={"count": len(ids)})
        return ids

    def fetch_details(self, ids: Sequence[int]) -> List[RawWorkItem]:
        """Fetch full field data for ``ids`` in sequential batches.

        Batches hold at most ``BATCH_SIZE`` IDs and results keep the batch
        order. A failing batch aborts the whole fetch.

        Raises:
            UpstreamError: If any batch request fails.
        """
        if not ids:
            return []

        work_items: List[RawWorkItem] = []
        for start in range(0, len(ids), self.BATCH_SIZE):
            batch = list(ids[start:start + self.BATCH_SIZE])
            logger.debug(
                "Fetching work item batch",
                extra={"batch_start": start, "batch_size": len(batch)},
            )
            payload = self._post_json(
                "wit/workitemsbatch",
                {"ids": batch, "fields": FIELDS},
                project_scoped=False,
            )
            entries = payload.get("value") or []
            if not isinstance(entries, list):
                raise UpstreamError(
                    f"Azure DevOps work item batch has an unexpected value: {entries!r}"
                )
            work_items.extend(parse_work_item(entry) for entry in entries)

        logger.info(
            "Fetched work item details",
            extra={"requested": len(ids), "received": len(work_items)},
        )
        return work_items
