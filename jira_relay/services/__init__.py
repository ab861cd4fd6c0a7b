"""Gateway operations."""

from .issue_service import IssueService

__all__ = ["IssueService"]
