"""Developer work item statistics from Azure DevOps."""

__version__ = "0.1.0"
