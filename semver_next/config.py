import os

from dotenv import load_dotenv
from pydantic import BaseModel

from .github_client import DEFAULT_API_URL


class Settings(BaseModel):
    # github
    github_token: str | None = None  # GITHUB_TOKEN
    github_api_url: str = DEFAULT_API_URL  # GITHUB_API_URL
    http_timeout: float = 30.0  # SEMVER_NEXT_HTTP_TIMEOUT (seconds)

    # logging
    log_level: str | None = None  # SEMVER_NEXT_LOG_LEVEL
    structured_logging: bool = True  # SEMVER_NEXT_STRUCT_LOG ("0" to disable)

    # service
    webhook_secret: str | None = None  # SEMVER_NEXT_WEBHOOK_SECRET
    auth_token: str | None = None  # SEMVER_NEXT_AUTH_TOKEN


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        github_token=os.getenv("GITHUB_TOKEN") or None,
        github_api_url=os.getenv("GITHUB_API_URL", DEFAULT_API_URL) or DEFAULT_API_URL,
        http_timeout=float(os.getenv("SEMVER_NEXT_HTTP_TIMEOUT", "30") or "30"),
        log_level=os.getenv("SEMVER_NEXT_LOG_LEVEL") or None,
        structured_logging=os.getenv("SEMVER_NEXT_STRUCT_LOG", "1") != "0",
        webhook_secret=os.getenv("SEMVER_NEXT_WEBHOOK_SECRET") or None,
        auth_token=os.getenv("SEMVER_NEXT_AUTH_TOKEN") or None,
    )
