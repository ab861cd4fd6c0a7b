"""HTTP routes exposed by the gateway."""

from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from jira_relay.integrations.jira_client import JiraClient
from jira_relay.models.jira import RemoteResult
from jira_relay.models.requests import (
    AddCommentRequest,
    CreateIssueRequest,
    ExecuteTransitionRequest,
    IssueRequest,
    SendNotificationRequest,
    UpdateReporterRequest,
)
from jira_relay.services.issue_service import IssueService
from jira_relay.utils.errors import GatewayError, error_body, require_credential
from jira_relay.utils.health import HealthChecker
from jira_relay.utils.logger import get_context_logger, mask_credential

logger = get_context_logger(__name__)

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def get_jira_client(request: Request) -> JiraClient:
    """Dependency to get the Jira client."""
    return request.app.state.jira_client


def get_issue_service(request: Request) -> IssueService:
    """Dependency to get the issue service."""
    return request.app.state.issue_service


def get_health_checker(request: Request) -> HealthChecker:
    return request.app.state.health_checker


def credential_for(value: Optional[str], request: Request) -> str:
    """Credential from the body field, falling back to the Authorization header."""
    return require_credential(value or request.headers.get("authorization"))


async def body_credential(request: Request) -> str:
    """
    Dependency reading the credential of a JSON operation.

    Dependencies are solved before the body model is validated, so a request
    without a credential is refused with 401 whatever else it is missing.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    value = body.get("authHeader") if isinstance(body, dict) else None
    return credential_for(value if isinstance(value, str) else None, request)


def render(result: RemoteResult) -> Response:
    """Render an operation result, bodiless when there is nothing to relay."""
    if result.data is None:
        return Response(status_code=result.status_code)
    return JSONResponse(status_code=result.status_code, content=result.data)


@router.get("/health")
async def health_check(checker: HealthChecker = Depends(get_health_checker)):
    """Basic health check endpoint."""
    return await checker.basic_health_check()


@router.get("/health/jira")
async def jira_health_check(checker: HealthChecker = Depends(get_health_checker)):
    """Connectivity check against the configured Jira site."""
    return await checker.check_jira_api()


@router.post("/add-comment")
async def add_comment(
    payload: AddCommentRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    logger.with_context(operation="add-comment", issue_key=payload.issue_key).info("Adding comment")
    return render(await service.add_comment(auth_header, payload.issue_key, payload.comment))


@router.post("/add-attachment")
async def add_attachment(
    request: Request,
    file: Optional[UploadFile] = File(None),
    auth_header: Optional[str] = Form(None, alias="authHeader"),
    issue_key: Optional[str] = Form(None, alias="issueKey"),
    service: IssueService = Depends(get_issue_service)
):
    """
    Re-send one uploaded file to an issue as an attachment.

    The upload is spooled to a temporary file which is always removed.
    """
    credential = credential_for(auth_header, request)
    if file is None:
        raise GatewayError.message(400, "No file uploaded")
    if not issue_key:
        raise GatewayError.missing_field("issueKey")

    log = logger.with_context(operation="add-attachment", issue_key=issue_key)
    log.info(f"Uploading {file.filename}")
    try:
        result = await service.add_attachment(credential, issue_key, file)
    finally:
        await file.close()

    if not result.success:
        log.warning(f"Jira rejected attachment: {result.status_code}")
    return render(result)


@router.post("/list-attachments")
async def list_attachments(
    payload: IssueRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    return render(await service.list_attachments(auth_header, payload.issue_key))


@router.get("/download-attachment")
async def download_attachment(
    url: Optional[str] = Query(None),
    auth: Optional[str] = Query(None),
    jira: JiraClient = Depends(get_jira_client)
):
    """Relay attachment content with its content type and disposition."""
    credential = require_credential(auth)
    if not url:
        raise GatewayError.missing_field("url")

    target = jira.resolve_download_url(url)
    if target is None:
        raise GatewayError.message(400, "URL must point at the configured Jira site")

    response = await jira.download(credential, target)
    if not response.is_success:
        return JSONResponse(status_code=response.status_code, content=error_body(response))

    # Set directly so Starlette does not append a charset to text types
    headers = {"Content-Type": response.headers.get("content-type", "application/octet-stream")}
    disposition = response.headers.get("content-disposition")
    if disposition:
        headers["Content-Disposition"] = disposition
    return Response(content=response.content, headers=headers)


@router.post("/get-issue-reporter")
async def get_issue_reporter(
    payload: IssueRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    return render(await service.get_issue_people(auth_header, payload.issue_key))


@router.post("/update-issue-reporter")
async def update_issue_reporter(
    payload: UpdateReporterRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    if not payload.email:
        raise GatewayError.missing_field("email")

    logger.with_context(operation="update-reporter", issue_key=payload.issue_key).info(
        "Updating reporter"
    )
    return render(await service.update_reporter(auth_header, payload.issue_key, payload.email))


@router.post("/send-notification")
async def send_notification(
    payload: SendNotificationRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    log = logger.with_context(operation="send-notification", issue_key=payload.issue_key)
    log.info(f"Sending notification to {len(payload.emails)} extra recipient(s)")

    result = await service.send_notification(auth_header, payload)
    if result.success and "warning" in result.data:
        log.warning(result.data["warning"])
    return render(result)


@router.post("/execute-transition")
async def execute_transition(
    payload: ExecuteTransitionRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    return render(
        await service.execute_transition(auth_header, payload.issue_key, payload.transition_id)
    )


@router.post("/create-issue")
async def create_issue(
    payload: CreateIssueRequest,
    auth_header: str = Depends(body_credential),
    service: IssueService = Depends(get_issue_service)
):
    """Create a standard issue, or a customer request for service desk projects."""
    logger.with_context(
        operation="create-issue",
        project_key=payload.project_key,
        project_type=payload.project_type
    ).info("Creating issue")
    return render(await service.create_issue(auth_header, payload))


@router.api_route("/api/{path:path}", methods=PROXY_METHODS)
async def proxy(
    path: str,
    request: Request,
    jira: JiraClient = Depends(get_jira_client)
):
    """
    Forward any request under /api to the same path on the Jira site.

    Empty remote responses are relayed bodiless with the remote status;
    non-JSON bodies are wrapped into an error-shaped object.
    """
    auth_header = request.headers.get("authorization")
    log = logger.with_context(method=request.method, path=request.url.path)
    log.info(f"Proxy request, auth={mask_credential(auth_header)}")
    if not auth_header:
        raise GatewayError.missing_credential("Authorization header required")

    body = await request.body()
    try:
        response = await jira.forward(
            request.method,
            path,
            auth_header,
            body=body,
            params=request.query_params.multi_items()
        )
    except httpx.HTTPError as e:
        log.error(f"Proxy error: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Proxy error", "message": str(e) or e.__class__.__name__}
        )

    if response.status_code == 204 or response.headers.get("content-length") == "0":
        return Response(status_code=response.status_code)

    text = response.text
    if not text:
        return Response(status_code=response.status_code)

    try:
        data = response.json()
    except ValueError:
        log.error(f"Response is not JSON. Text: {text[:500]}")
        return JSONResponse(
            status_code=response.status_code,
            content={"message": text, "errorMessages": [text]}
        )
    return JSONResponse(status_code=response.status_code, content=data)
