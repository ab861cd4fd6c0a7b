"""Health check utilities for monitoring application status."""

from datetime import datetime, timezone
from typing import Any, Dict

import httpx

from jira_relay import __version__
from jira_relay.integrations.jira_client import JiraClient
from jira_relay.utils.errors import parse_json_body
from jira_relay.utils.logger import get_logger

logger = get_logger(__name__)


class HealthChecker:
    """Health checker for the gateway and its Jira Cloud site."""

    def __init__(self, jira: JiraClient):
        self.jira = jira

    async def check_jira_api(self) -> Dict[str, Any]:
        """Check Jira API connectivity without a credential."""
        try:
            response = await self.jira.server_info()
        except httpx.HTTPError as e:
            logger.error(f"Jira API health check failed: {e}")
            return {
                "status": "unhealthy",
                "error": str(e)
            }

        if response.status_code == 200:
            data = parse_json_body(response) or {}
            return {
                "status": "healthy",
                "response_time_ms": response.elapsed.total_seconds() * 1000,
                "server_info": {
                    "version": data.get("version"),
                    "deployment_type": data.get("deploymentType")
                }
            }
        if response.status_code == 401:
            return {
                "status": "authentication_required",
                "error": "Jira requires authentication for server info"
            }

        return {
            "status": "unhealthy",
            "error": f"API returned status {response.status_code}",
            "response": response.text[:200]
        }

    async def basic_health_check(self) -> Dict[str, Any]:
        """Basic health check for application readiness."""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "jira_base_url": self.jira.base_url,
            "version": __version__
        }
