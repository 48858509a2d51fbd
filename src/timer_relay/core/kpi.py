"""Weekly and monthly time-tracking KPIs.

Folds the pages of one filtered Notion query into minute totals. Nothing is
stored: every call recomputes the summary from what the query returns.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from .. import config
from .clients import notion
from .models import KpiProperties, KpiSummary, KpiWindow, TimeRecord

logger = logging.getLogger(__name__)


def default_properties() -> KpiProperties:
    return KpiProperties(
        hours=config.HOURS_PROPERTY,
        minutes=config.MINUTES_PROPERTY,
        completed_date=config.COMPLETED_DATE_PROPERTY,
        category=config.CATEGORY_PROPERTY,
        status=config.STATUS_PROPERTY,
        completed_status=config.COMPLETED_STATUS,
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def kpi_window(
    now: datetime,
    *,
    lookback_days: int = config.KPI_LOOKBACK_DAYS,
    tz: Optional[ZoneInfo] = None,
) -> KpiWindow:
    """Week start (Sunday), month start and query lookback for ``now``."""
    tz = tz or ZoneInfo(config.KPI_TIMEZONE)
    today = now.astimezone(tz).date() if now.tzinfo else now.date()
    # date.weekday() is Monday=0; weeks here begin on Sunday.
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    return KpiWindow(
        week_start=week_start,
        month_start=today.replace(day=1),
        lookback_start=today - timedelta(days=lookback_days),
    )


def build_query_filter(window: KpiWindow, properties: KpiProperties) -> dict:
    """Only pages with a time value completed inside the lookback window."""
    if properties.minutes:
        time_filter = {"property": properties.minutes, "number": {"is_not_empty": True}}
    else:
        time_filter = {"property": properties.hours, "formula": {"number": {"is_not_empty": True}}}

    conditions = [
        time_filter,
        {
            "property": properties.completed_date,
            "date": {"on_or_after": window.lookback_start.isoformat()},
        },
    ]
    if properties.status and properties.completed_status:
        conditions.append({"property": properties.status, "status": {"equals": properties.completed_status}})
    return {"and": conditions}


def _number(prop: Optional[dict]) -> Optional[float]:
    """Numeric value of a number or formula-number property."""
    if not isinstance(prop, dict):
        return None
    if isinstance(prop.get("number"), (int, float)):
        return prop["number"]
    formula = prop.get("formula")
    if isinstance(formula, dict) and isinstance(formula.get("number"), (int, float)):
        return formula["number"]
    return None


def _parse_date(value: Optional[str], tz: ZoneInfo) -> Optional[date]:
    if not value:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable completion date %r", value)
        return None
    return moment.astimezone(tz).date() if moment.tzinfo else moment.date()


def _nested(props: dict, name: str, key: str) -> Optional[dict]:
    """``props[name][key]`` when both levels are objects, else ``None``."""
    prop = props.get(name)
    value = prop.get(key) if isinstance(prop, dict) else None
    return value if isinstance(value, dict) else None


def parse_time_record(page: dict, properties: KpiProperties, tz: Optional[ZoneInfo] = None) -> TimeRecord:
    """Read minutes, completion date and category from one result page."""
    tz = tz or ZoneInfo(config.KPI_TIMEZONE)
    props = page.get("properties") if isinstance(page, dict) else None
    if not isinstance(props, dict):
        props = {}

    minutes: Optional[int] = None
    if properties.minutes:
        value = _number(props.get(properties.minutes))
        if value is not None:
            minutes = round_half_up(value)
    if minutes is None:
        hours = _number(props.get(properties.hours))
        if hours is not None:
            minutes = round_half_up(hours * 60)

    date_value = _nested(props, properties.completed_date, "date")
    start = date_value.get("start") if date_value else None
    completed = _parse_date(start if isinstance(start, str) else None, tz)

    select = _nested(props, properties.category, "select")
    category = select.get("name") if select else None
    if not isinstance(category, str):
        category = None

    return TimeRecord(minutes=minutes, completed_date=completed, category=category or None)


def summarize(records: Iterable[TimeRecord], window: KpiWindow) -> KpiSummary:
    """Fold records into weekly/monthly totals.

    The week and month windows accumulate independently; a record can count
    toward both. Records without minutes or without a completion date are skipped.
    """
    summary = KpiSummary()
    for record in records:
        if not record.minutes or record.minutes < 0 or record.completed_date is None:
            continue
        if record.completed_date >= window.week_start:
            summary.total_week_minutes += record.minutes
            if record.category:
                summary.category_week_minutes[record.category] = (
                    summary.category_week_minutes.get(record.category, 0) + record.minutes
                )
        if record.completed_date >= window.month_start:
            summary.total_month_minutes += record.minutes
    return summary


async def compute_kpi(
    source_id: str,
    secret: str,
    *,
    now: Optional[datetime] = None,
    api_version: str = config.NOTION_API_VERSION,
    properties: Optional[KpiProperties] = None,
    lookback_days: int = config.KPI_LOOKBACK_DAYS,
) -> KpiSummary:
    """Query a data source and compute its weekly/monthly KPIs.

    Raises:
        QueryError: The query round-trip failed; no partial summary is returned.
    """
    tz = ZoneInfo(config.KPI_TIMEZONE)
    properties = properties or default_properties()
    window = kpi_window(now or datetime.now(tz), lookback_days=lookback_days, tz=tz)

    pages = await notion.query_source(
        source_id, secret, build_query_filter(window, properties), api_version=api_version,
    )
    summary = summarize((parse_time_record(page, properties, tz) for page in pages), window)
    logger.info(
        "KPI for source %s: week=%d month=%d categories=%d",
        source_id, summary.total_week_minutes, summary.total_month_minutes,
        len(summary.category_week_minutes),
    )
    return summary
