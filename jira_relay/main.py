"""Main FastAPI application for the Jira relay gateway."""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jira_relay import __version__
from jira_relay.integrations.jira_client import JiraClient
from jira_relay.models.config import Settings
from jira_relay.routes import router
from jira_relay.services.issue_service import IssueService
from jira_relay.utils.errors import GatewayError, error_payload
from jira_relay.utils.health import HealthChecker
from jira_relay.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings: Settings = app.state.settings
    setup_logging(log_level=settings.log_level)

    logger.info(f"Jira relay running, forwarding to {settings.jira_base_url}")

    yield

    logger.info("Shutting down Jira relay")
    await app.state.jira_client.close()


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as client errors."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())}
    )


async def transport_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """Report a failed call to Jira as a server error carrying its message."""
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content=error_payload(exc))


def create_app(
    settings: Optional[Settings] = None,
    jira_client: Optional[JiraClient] = None
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        jira_client: Jira client to use; built from settings when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings()
    jira_client = jira_client or JiraClient(
        base_url=settings.jira_base_url,
        timeout=settings.http_timeout,
        user_agent=settings.user_agent
    )

    app = FastAPI(
        title="Jira Relay",
        description="Gateway relaying browser requests to the Jira Cloud REST API",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.jira_client = jira_client
    app.state.issue_service = IssueService(
        jira=jira_client,
        upload_dir=settings.upload_dir,
        max_upload_size=settings.max_upload_size
    )
    app.state.health_checker = HealthChecker(jira_client)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"]
    )
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(httpx.HTTPError, transport_error_handler)
    app.include_router(router)
    return app


def main() -> None:
    """Run the gateway with uvicorn; the app is built by the server process."""
    settings = Settings()
    uvicorn.run(
        "jira_relay.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
