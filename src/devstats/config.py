"""Configuration parsing and validation for the developer stats dashboard."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .errors import ConfigurationError

ORG_ENV = "AZURE_DEVOPS_ORG"
PROJECT_ENV = "AZURE_DEVOPS_PROJECT"
PAT_ENV = "AZURE_DEVOPS_PAT"
ITERATION_PATH_ENV = "AZURE_DEVOPS_ITERATION_PATH"
WORK_ITEM_TYPE_ENV = "DEVSTATS_WORK_ITEM_TYPE"
CATEGORY_ENV = "DEVSTATS_CATEGORY"
VARIANT_ENV = "DEVSTATS_VARIANT"
GRANULARITY_ENV = "DEVSTATS_GRANULARITY"

DEFAULT_WORK_ITEM_TYPE = "User Story"
DEFAULT_CATEGORY = "Chamado"
DEFAULT_ITERATION_PATH = "TMB Educação\\Sprint Livre 01.07.25"
DEFAULT_VARIANT = "board"


@dataclass(frozen=True)
class WorkItemQuery:
    """Fixed filter used to select candidate work items."""

    work_item_type: str = DEFAULT_WORK_ITEM_TYPE
    category: str = DEFAULT_CATEGORY
    iteration_path: str = DEFAULT_ITERATION_PATH


@dataclass(frozen=True)
class Config:
    """Validated settings handed to the item fetcher and report service.

    ``variant`` names a classification policy preset; ``granularity`` of
    ``None`` keeps the preset's own evolution bucket width.
    """

    organization: str
    project: str
    pat: str
    query: WorkItemQuery = field(default_factory=WorkItemQuery)
    variant: str = DEFAULT_VARIANT
    granularity: Optional[str] = None


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def load_config(
    organization: Optional[str] = None,
    project: Optional[str] = None,
    iteration_path: Optional[str] = None,
    variant: Optional[str] = None,
    granularity: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """Build and validate application configuration.

    Explicit arguments take precedence over environment variables.

    Args:
        organization: Azure DevOps organization name.
        project: Azure DevOps project name.
        iteration_path: Sprint/iteration path the query is restricted to.
        variant: Report variant name (``board`` or ``legacy``).
        granularity: Evolution bucket width (``day`` or ``hour``).
        environ: Environment mapping, ``os.environ`` when omitted.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If the organization, project or personal access
            token is not configured.
    """
    env = os.environ if environ is None else environ

    resolved_org = _clean(organization) or _clean(env.get(ORG_ENV))
    resolved_project = _clean(project) or _clean(env.get(PROJECT_ENV))
    pat = _clean(env.get(PAT_ENV))

    missing = [
        name
        for name, value in (
            (ORG_ENV, resolved_org),
            (PROJECT_ENV, resolved_project),
            (PAT_ENV, pat),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            "Azure DevOps connection is not configured. "
            f"Set the following environment variables: {', '.join(missing)}."
        )

    query = WorkItemQuery(
        work_item_type=_clean(env.get(WORK_ITEM_TYPE_ENV)) or DEFAULT_WORK_ITEM_TYPE,
        category=_clean(env.get(CATEGORY_ENV)) or DEFAULT_CATEGORY,
        iteration_path=(
            _clean(iteration_path)
            or _clean(env.get(ITERATION_PATH_ENV))
            or DEFAULT_ITERATION_PATH
        ),
    )

    return Config(
        organization=resolved_org,
        project=resolved_project,
        pat=pat,
        query=query,
        variant=(_clean(variant) or _clean(env.get(VARIANT_ENV)) or DEFAULT_VARIANT).lower(),
        granularity=(_clean(granularity) or _clean(env.get(GRANULARITY_ENV))).lower() or None,
    )
