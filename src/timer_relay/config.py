"""Runtime configuration.

Every value can be overridden with an environment variable. Values are read
once at import; functions that depend on them take keyword overrides so tests
and callers never need to touch the environment.
"""

from __future__ import annotations

import os
from typing import Optional

# Notion (primary provider)
NOTION_API_BASE = os.environ.get("NOTION_API_BASE", "https://api.notion.com/v1").rstrip("/")

# Revision 2025-09-03 introduced data sources: a database is a container of one
# or more queryable data sources, and queries target the data source.
LEGACY_NOTION_API_VERSION = "2022-06-28"
DATA_SOURCES_API_VERSION = "2025-09-03"
NOTION_API_VERSION = os.environ.get("NOTION_API_VERSION", DATA_SOURCES_API_VERSION)

# Toggl Track (tracking provider)
TOGGL_API_BASE = os.environ.get("TOGGL_API_BASE", "https://api.track.toggl.com/api/v9").rstrip("/")
TOGGL_CLIENT_TAG = os.environ.get("TOGGL_CLIENT_TAG", "timer-relay")

# Schema property names
CATEGORY_PROPERTY = os.environ.get("NOTION_CATEGORY_PROPERTY", "カテゴリ")
DEPARTMENT_PROPERTY = os.environ.get("NOTION_DEPARTMENT_PROPERTY", "部門")
HOURS_PROPERTY = os.environ.get("NOTION_HOURS_PROPERTY", "時間")
MINUTES_PROPERTY = os.environ.get("NOTION_MINUTES_PROPERTY", "")
COMPLETED_DATE_PROPERTY = os.environ.get("NOTION_COMPLETED_DATE_PROPERTY", "完了日")
STATUS_PROPERTY = os.environ.get("NOTION_STATUS_PROPERTY", "ステータス")
COMPLETED_STATUS = os.environ.get("NOTION_COMPLETED_STATUS", "")

# KPI windows
DEFAULT_KPI_LOOKBACK_DAYS = 30
# Never shorter than a calendar month, or the monthly total would be truncated.
KPI_LOOKBACK_DAYS = max(
    int(os.environ.get("KPI_LOOKBACK_DAYS", str(DEFAULT_KPI_LOOKBACK_DAYS))),
    DEFAULT_KPI_LOOKBACK_DAYS,
)
KPI_TIMEZONE = os.environ.get("KPI_TIMEZONE", "Asia/Tokyo")


def _optional_float(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


# None means the core imposes no timeout; the hosting boundary caps the call.
HTTP_TIMEOUT_SECONDS = _optional_float("RELAY_HTTP_TIMEOUT")

# Hosting boundary
ALLOWED_ORIGIN = os.environ.get("RELAY_ALLOWED_ORIGIN", "*")
RELAY_HOST = os.environ.get("RELAY_HOST", "127.0.0.1")
RELAY_PORT = int(os.environ.get("RELAY_PORT", "8000"))
RELAY_TRANSPORT = os.environ.get("RELAY_TRANSPORT", "streamable-http")
