#!/usr/bin/env python3
"""Development runner script for the Jira relay gateway."""

import sys
from pathlib import Path

from jira_relay.models.config import Settings
from jira_relay.utils.logger import setup_logging, get_logger


def main():
    """Main development runner."""
    print("🚀 Starting Jira relay in development mode...")

    env_file = Path(".env")
    if not env_file.exists():
        print("⚠️  .env file not found, using environment variables and defaults")
        print("   cp config/.env.example .env")

    settings = Settings()

    setup_logging(log_level=settings.log_level)
    logger = get_logger(__name__)

    logger.info("🔧 Development mode configuration:")
    logger.info(f"   Environment: {settings.environment}")
    logger.info(f"   Log Level: {settings.log_level}")
    logger.info(f"   Host: {settings.host}:{settings.port}")
    logger.info(f"   Jira site: {settings.jira_base_url}")

    if "your-domain" in settings.jira_base_url:
        print("⚠️  JIRA_DOMAIN is still the placeholder value!")
        print("📝 Set JIRA_DOMAIN in your .env file to your Jira Cloud site")

    print("\n🔗 Available endpoints:")
    print(f"   Health Check: http://{settings.host}:{settings.port}/health")
    print(f"   API Docs: http://{settings.host}:{settings.port}/docs")
    print(f"   Jira proxy: http://{settings.host}:{settings.port}/api/rest/api/3/...")

    print(f"\n🤖 Starting server on {settings.host}:{settings.port}...")
    print("   Press Ctrl+C to stop")

    import uvicorn
    uvicorn.run(
        "jira_relay.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n👋 Shutting down...")
    except Exception as e:
        print(f"❌ Unexpected error: {e}")
        sys.exit(1)
