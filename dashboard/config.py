"""Centralised settings for the Webpage Analyzer dashboard client.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Analysis service
    # ------------------------------------------------------------------
    api_base_url: str = field(
        default_factory=lambda: os.environ.get("ANALYZER_API_URL", "http://localhost:8080")
    )
    # Static bearer token; never refreshed or rotated by the client.
    api_token: str = field(
        default_factory=lambda: os.environ.get("ANALYZER_API_TOKEN", "devtoken123")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Table view
    # ------------------------------------------------------------------
    page_size: int = field(
        default_factory=lambda: int(os.environ.get("PAGE_SIZE", "10"))
    )
    default_sort_field: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_SORT_FIELD", "createdAt")
    )
    default_sort_order: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_SORT_ORDER", "desc")
    )

    # ------------------------------------------------------------------
    # Polling (seconds)
    # ------------------------------------------------------------------
    table_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("TABLE_POLL_INTERVAL", "5.0"))
    )
    detail_poll_interval: float = field(
        default_factory=lambda: float(os.environ.get("DETAIL_POLL_INTERVAL", "3.0"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "WARNING")
    )

    # ------------------------------------------------------------------
    # Mock analysis server
    # ------------------------------------------------------------------
    mock_host: str = field(
        default_factory=lambda: os.environ.get("MOCK_HOST", "127.0.0.1")
    )
    mock_port: int = field(
        default_factory=lambda: int(os.environ.get("MOCK_PORT", "8080"))
    )
    mock_advance_interval: float = field(
        default_factory=lambda: float(os.environ.get("MOCK_ADVANCE_INTERVAL", "2.0"))
    )

    @property
    def auth_header(self) -> str:
        """Value of the ``Authorization`` header sent on every request."""
        return f"Bearer {self.api_token}"


# Module-level singleton — import this everywhere:
#   from dashboard.config import settings
settings = Settings()
