"""Inbound request models for the gateway routes.

Field aliases follow the camelCase names sent by the browser client. The
credential is read by the `body_credential` route dependency before these
models are validated; `authHeader` is declared here for the API schema.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GatewayRequest(BaseModel):
    """Fields shared by every JSON operation."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    auth_header: Optional[str] = Field(None, alias="authHeader", description="Credential header value")


class IssueRequest(GatewayRequest):
    issue_key: str = Field(..., alias="issueKey", examples=["PROJ-123"])


class AddCommentRequest(IssueRequest):
    comment: str = Field(..., description="Plain-text comment")


class UpdateReporterRequest(IssueRequest):
    email: Optional[str] = Field(None, description="Email of the new reporter")


class SendNotificationRequest(IssueRequest):
    subject: str = Field(..., description="Notification subject")
    message: str = Field(..., description="Plain-text notification body")
    notify_reporter: bool = Field(False, alias="notifyReporter")
    notify_assignee: bool = Field(False, alias="notifyAssignee")
    emails: List[str] = Field(default_factory=list, description="Additional recipients by email")


class ExecuteTransitionRequest(IssueRequest):
    transition_id: str = Field(..., alias="transitionId", examples=["31"])


class CreateIssueRequest(GatewayRequest):
    project_key: str = Field(..., alias="projectKey", examples=["PROJ"])
    project_type: Optional[str] = Field(None, alias="projectType", examples=["software", "servicedesk"])
    request_type_id: Optional[str] = Field(None, alias="requestTypeId")
    issue_type: Optional[str] = Field("Task", alias="issueType")
    summary: str
    description: str = ""
