"""Jira Cloud REST client that relays caller-supplied credentials."""

from typing import Any, Dict, Iterable, Optional
from urllib.parse import urljoin, urlsplit

import httpx

from jira_relay.models.config import DEFAULT_USER_AGENT
from jira_relay.models.jira import (
    CommentPayload,
    CustomerRequestPayload,
    IssuePayload,
    NotificationPayload,
)
from jira_relay.utils.logger import get_logger, mask_credential

logger = get_logger(__name__)

# Jira rejects non-browser writes to some endpoints unless this header is set.
XSRF_BYPASS_HEADERS = {"X-Atlassian-Token": "no-check"}

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class JiraClient:
    """Client for the Jira Cloud REST API.

    The client holds no credentials of its own. Every call takes the caller's
    credential header and forwards it unmodified.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.api_base = f"{self.base_url}/rest/api/3"
        self.service_desk_base = f"{self.base_url}/rest/servicedeskapi"
        self.user_agent = user_agent
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    def _headers(self, auth_header: str, json_body: bool = True) -> Dict[str, str]:
        headers = {
            "Authorization": auth_header,
            "Accept": "application/json"
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def proxy_headers(self, auth_header: str) -> Dict[str, str]:
        """Headers sent by the generic path proxy."""
        return {
            **self._headers(auth_header),
            "User-Agent": self.user_agent,
            **XSRF_BYPASS_HEADERS,
            "X-ExperimentalApi": "opt-in"
        }

    async def _request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        **kwargs: Any
    ) -> httpx.Response:
        """
        Send one request to Jira.

        Args:
            method: HTTP method
            url: Absolute Jira URL
            headers: Request headers, including the caller's credential

        Returns:
            HTTP response, whatever its status

        Raises:
            httpx.HTTPError: On transport failures; never retried
        """
        logger.debug(f"[{method}] {url} auth={mask_credential(headers.get('Authorization'))}")
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise

        logger.debug(f"Response status: {response.status_code}, Content-Type: {response.headers.get('content-type')}")
        return response

    async def forward(
        self,
        method: str,
        path: str,
        auth_header: str,
        body: Optional[bytes] = None,
        params: Optional[Any] = None
    ) -> httpx.Response:
        """
        Forward a request to an arbitrary path under the Jira base URL.

        Args:
            method: HTTP method, copied from the inbound request
            path: Path relative to the Jira base URL (e.g. rest/api/3/myself)
            auth_header: Caller's credential header
            body: Raw body, only sent for POST, PUT and PATCH
            params: Query string to forward

        Returns:
            HTTP response
        """
        method = method.upper()
        url = f"{self.base_url}/{path.lstrip('/')}"
        content = None
        if method in BODY_METHODS:
            content = body or b"{}"

        logger.info(f"[{method}] {url}")
        return await self._request(
            method,
            url,
            self.proxy_headers(auth_header),
            content=content,
            params=params
        )

    async def add_comment(self, auth_header: str, issue_key: str, text: str) -> httpx.Response:
        """Post a plain-text comment wrapped in an ADF document."""
        payload = CommentPayload.from_text(text)
        return await self._request(
            "POST",
            f"{self.api_base}/issue/{issue_key}/comment",
            self._headers(auth_header),
            json=payload.model_dump()
        )

    async def get_issue(
        self,
        auth_header: str,
        issue_key: str,
        fields: Optional[Iterable[str]] = None
    ) -> httpx.Response:
        """Fetch an issue, optionally restricted to the given fields."""
        params = {"fields": ",".join(fields)} if fields else None
        return await self._request(
            "GET",
            f"{self.api_base}/issue/{issue_key}",
            self._headers(auth_header, json_body=False),
            params=params
        )

    async def update_issue_fields(
        self,
        auth_header: str,
        issue_key: str,
        fields: Dict[str, Any]
    ) -> httpx.Response:
        return await self._request(
            "PUT",
            f"{self.api_base}/issue/{issue_key}",
            self._headers(auth_header),
            json={"fields": fields}
        )

    async def upload_attachment(
        self,
        auth_header: str,
        issue_key: str,
        file_path: str,
        filename: str,
        content_type: Optional[str] = None
    ) -> httpx.Response:
        """
        Upload a local file as an attachment to a Jira issue.

        Args:
            auth_header: Caller's credential header
            issue_key: Jira issue key (e.g., PROJ-123)
            file_path: Local path to the file
            filename: Name for the attachment
            content_type: MIME type to declare for the file part

        Returns:
            HTTP response
        """
        logger.info(f"Uploading attachment {filename} to issue {issue_key}")

        headers = {
            **self._headers(auth_header, json_body=False),
            **XSRF_BYPASS_HEADERS
        }
        with open(file_path, 'rb') as file:
            files = {
                'file': (filename, file, content_type or 'application/octet-stream')
            }
            return await self._request(
                "POST",
                f"{self.api_base}/issue/{issue_key}/attachments",
                headers,
                files=files
            )

    def resolve_download_url(self, url: str) -> Optional[str]:
        """
        Resolve an attachment URL against the Jira base URL.

        Returns:
            The absolute URL, or None when it points outside the Jira host
        """
        absolute = urljoin(self.base_url + "/", url)
        target = urlsplit(absolute)
        site = urlsplit(self.base_url)
        if target.scheme != site.scheme or target.netloc != site.netloc:
            return None
        return absolute

    async def download(self, auth_header: str, url: str) -> httpx.Response:
        """Fetch attachment content; redirects to the media host are followed."""
        return await self._request(
            "GET",
            url,
            {"Authorization": auth_header, "Accept": "*/*"},
            follow_redirects=True
        )

    async def search_users(self, auth_header: str, query: str) -> httpx.Response:
        return await self._request(
            "GET",
            f"{self.api_base}/user/search",
            self._headers(auth_header, json_body=False),
            params={"query": query}
        )

    async def notify(
        self,
        auth_header: str,
        issue_key: str,
        payload: NotificationPayload
    ) -> httpx.Response:
        return await self._request(
            "POST",
            f"{self.api_base}/issue/{issue_key}/notify",
            self._headers(auth_header),
            json=payload.model_dump(by_alias=True, exclude_none=True)
        )

    async def transition_issue(
        self,
        auth_header: str,
        issue_key: str,
        transition_id: str
    ) -> httpx.Response:
        return await self._request(
            "POST",
            f"{self.api_base}/issue/{issue_key}/transitions",
            self._headers(auth_header),
            json={"transition": {"id": transition_id}}
        )

    async def get_service_desk(self, auth_header: str, project_key: str) -> httpx.Response:
        """Look up a service desk by project key or id."""
        return await self._request(
            "GET",
            f"{self.service_desk_base}/servicedesk/{project_key}",
            self._headers(auth_header, json_body=False)
        )

    async def create_customer_request(
        self,
        auth_header: str,
        payload: CustomerRequestPayload
    ) -> httpx.Response:
        return await self._request(
            "POST",
            f"{self.service_desk_base}/request",
            self._headers(auth_header),
            json=payload.model_dump(by_alias=True)
        )

    async def create_issue(self, auth_header: str, payload: IssuePayload) -> httpx.Response:
        return await self._request(
            "POST",
            f"{self.api_base}/issue",
            self._headers(auth_header),
            json=payload.model_dump()
        )

    async def server_info(self) -> httpx.Response:
        """Unauthenticated server info call, used for connectivity checks."""
        return await self._request(
            "GET",
            f"{self.api_base}/serverInfo",
            {"Accept": "application/json"}
        )
