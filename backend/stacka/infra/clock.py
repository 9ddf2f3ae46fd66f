from datetime import date, datetime
from zoneinfo import ZoneInfo

from stacka.settings import settings


def resolve_timezone(name: str | None = None) -> ZoneInfo:
    return ZoneInfo(name or settings.timezone)


def local_today(tz_name: str | None = None) -> date:
    """Calendar date in the household timezone; period math never uses UTC dates."""
    return datetime.now(resolve_timezone(tz_name)).date()
