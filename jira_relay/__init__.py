"""HTTP gateway that relays browser requests to the Jira Cloud REST API."""

__version__ = "1.0.0"
