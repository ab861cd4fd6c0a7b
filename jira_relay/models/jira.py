"""Jira payload and response models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SERVICE_DESK_PROJECT_TYPE = "servicedesk"


def adf_document(text: str) -> Dict[str, Any]:
    """Wrap plain text into an Atlassian Document Format document.

    The document holds a single paragraph with a single text node.
    """
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {
                        "type": "text",
                        "text": text
                    }
                ]
            }
        ]
    }


class CommentPayload(BaseModel):
    """Jira API payload for adding a comment."""

    body: Dict[str, Any] = Field(..., description="ADF comment body")

    @classmethod
    def from_text(cls, text: str) -> "CommentPayload":
        return cls(body=adf_document(text))


class IssuePayload(BaseModel):
    """Jira API payload for creating an issue in a standard project."""

    fields: Dict[str, Any] = Field(..., description="Jira issue fields")

    @classmethod
    def build(
        cls,
        project_key: str,
        summary: str,
        description: str,
        issue_type: str
    ) -> "IssuePayload":
        """Create the standard issue payload with an ADF description."""
        return cls(fields={
            "project": {"key": project_key},
            "summary": summary,
            "description": adf_document(description),
            "issuetype": {"name": issue_type}
        })


class CustomerRequestPayload(BaseModel):
    """Jira Service Management payload for creating a customer request."""

    model_config = ConfigDict(populate_by_name=True)

    service_desk_id: str = Field(..., alias="serviceDeskId")
    request_type_id: Optional[str] = Field(None, alias="requestTypeId")
    request_field_values: Dict[str, Any] = Field(..., alias="requestFieldValues")

    @classmethod
    def build(
        cls,
        service_desk_id: str,
        request_type_id: Optional[str],
        summary: str,
        description: str
    ) -> "CustomerRequestPayload":
        return cls(
            service_desk_id=service_desk_id,
            request_type_id=request_type_id,
            request_field_values={"summary": summary, "description": description}
        )


class NotificationRecipients(BaseModel):
    """The `to` block of an issue notification."""

    reporter: bool = False
    assignee: bool = False
    users: List[Dict[str, str]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.reporter or self.assignee or self.users)


class NotificationPayload(BaseModel):
    """Jira API payload for the issue notify endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    subject: str
    text_body: str = Field(..., alias="textBody")
    html_body: Optional[str] = Field(None, alias="htmlBody")
    to: NotificationRecipients


class JiraUser(BaseModel):
    """A Jira Cloud user as returned inside issue fields and user search."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    account_id: Optional[str] = Field(None, alias="accountId")
    display_name: Optional[str] = Field(None, alias="displayName")
    email_address: Optional[str] = Field(None, alias="emailAddress")
    active: Optional[bool] = None


class IssuePeople(BaseModel):
    """Reporter, assignee, creator and summary of an issue."""

    reporter: Optional[JiraUser] = None
    assignee: Optional[JiraUser] = None
    creator: Optional[JiraUser] = None
    summary: Optional[str] = None

    @classmethod
    def from_issue(cls, issue: Dict[str, Any]) -> "IssuePeople":
        fields = issue.get("fields") or {}
        return cls(
            reporter=fields.get("reporter"),
            assignee=fields.get("assignee"),
            creator=fields.get("creator"),
            summary=fields.get("summary")
        )


class ServiceDesk(BaseModel):
    """A Jira Service Management service desk."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    project_id: Optional[str] = Field(None, alias="projectId")
    project_key: Optional[str] = Field(None, alias="projectKey")
    project_name: Optional[str] = Field(None, alias="projectName")


class AccountLookup(BaseModel):
    """Result of resolving an email address to a Jira account id."""

    success: bool = Field(..., description="Whether exactly one account matched")
    account_id: Optional[str] = Field(None, description="Resolved account id")
    status_code: int = Field(200, description="Status to report when the lookup failed")
    error: Optional[Any] = Field(None, description="Error payload if the lookup failed")


class RemoteResult(BaseModel):
    """Outcome of a gateway operation, ready to be rendered to the caller."""

    success: bool = Field(..., description="Whether the operation succeeded")
    status_code: int = Field(..., description="HTTP status to relay")
    data: Optional[Any] = Field(None, description="Response body to relay")
