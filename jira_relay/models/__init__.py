"""Data models for the Jira relay gateway."""

from .config import Settings
from .jira import AccountLookup, IssuePeople, JiraUser, RemoteResult, ServiceDesk

__all__ = ["Settings", "AccountLookup", "IssuePeople", "JiraUser", "RemoteResult", "ServiceDesk"]
