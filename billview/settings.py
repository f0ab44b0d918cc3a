"""
billview.settings
=================

Configuration settings for the Billview application.

This module provides centralized configuration options that can be used across
the application. It includes default values that can be overridden
via environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------------
# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

# Database settings
# ---------------------------------------------------------------------------
DB_FILE = os.environ.get("BILLVIEW_DB_FILE", BASE_DIR / "billview.db")
DB_URL = os.environ.get("BILLVIEW_DB_URL", f"sqlite:///{DB_FILE}")
DB_ECHO = os.environ.get("BILLVIEW_DB_ECHO", "False").lower() == "true"

# API settings
# ---------------------------------------------------------------------------
API_HOST = os.environ.get("BILLVIEW_API_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("BILLVIEW_API_PORT", "8000"))
API_DEBUG = os.environ.get("BILLVIEW_API_DEBUG", "False").lower() == "true"
LOG_LEVEL = os.environ.get("BILLVIEW_LOG_LEVEL", "INFO").upper()

# Outbound HTTP settings
# ---------------------------------------------------------------------------
HTTP_TIMEOUT = float(os.environ.get("BILLVIEW_HTTP_TIMEOUT", "30"))

NEXTGEN_ENVIRONMENTS = ("prod", "test")
NEXTGEN_CONFIG_FIELDS = ("CLIENT_ID", "CLIENT_SECRET", "SITE_ID", "PRACTICE_ID", "ENTERPRISE_ID")


class NextGenConfigError(RuntimeError):
    """Raised when credentials for a NextGen environment are incomplete."""


@dataclass(frozen=True)
class NextGenConfig:
    """Resolved credentials and endpoints for one NextGen environment."""
    environment: str
    client_id: str
    client_secret: str
    site_id: str
    practice_id: str
    enterprise_id: str
    base_url: str
    token_url: str


# ---------------------------------------------------------------------------
# Pydantic settings model for API integrations
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Pydantic model for application settings, loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",  # no prefix, use variable names as-is
        env_file=".env",  # load from .env file if present
        case_sensitive=False,  # case-insensitive environment variables
        extra="ignore",
    )

    # NextGen Enterprise API endpoints (shared by both environments)
    nextgen_base_url: HttpUrl = Field(
        default="https://nativeapi.nextgen.com/nge/prod/nge-api/api",
        description="NextGen Enterprise API base URL",
    )
    nextgen_token_url: HttpUrl = Field(
        default="https://nativeapi.nextgen.com/nge/prod/nge-oauth/token",
        description="NextGen OAuth2 token endpoint",
    )

    # Production credentials
    nextgen_prod_client_id: Optional[str] = None
    nextgen_prod_client_secret: Optional[str] = None
    nextgen_prod_site_id: Optional[str] = None
    nextgen_prod_practice_id: Optional[str] = None
    nextgen_prod_enterprise_id: Optional[str] = None

    # Test credentials
    nextgen_test_client_id: Optional[str] = None
    nextgen_test_client_secret: Optional[str] = None
    nextgen_test_site_id: Optional[str] = None
    nextgen_test_practice_id: Optional[str] = None
    nextgen_test_enterprise_id: Optional[str] = None

    # Environment used by the statement balances endpoint
    balances_environment: str = Field("prod", description="NextGen environment for chart balances")

    # Browser origins allowed to call the API
    cors_origins: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins",
    )

    def nextgen_config(self, environment: str) -> NextGenConfig:
        """
        Return the credentials for ``environment`` (``"prod"`` or ``"test"``).

        Raises:
            ValueError: unknown environment name
            NextGenConfigError: one or more variables are unset
        """
        if environment not in NEXTGEN_ENVIRONMENTS:
            raise ValueError(f"unknown NextGen environment {environment!r}")

        values = {
            name.lower(): getattr(self, f"nextgen_{environment}_{name.lower()}")
            for name in NEXTGEN_CONFIG_FIELDS
        }
        if not all(values.values()):
            prefix = f"NEXTGEN_{environment.upper()}"
            required = ", ".join(f"{prefix}_{name}" for name in NEXTGEN_CONFIG_FIELDS)
            raise NextGenConfigError(
                f"Missing NextGen API configuration for {environment} environment. Required: {required}"
            )

        return NextGenConfig(
            environment=environment,
            base_url=str(self.nextgen_base_url).rstrip("/"),
            token_url=str(self.nextgen_token_url),
            **values,
        )


# Initialize settings
settings = Settings()
