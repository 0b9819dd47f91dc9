# utils.py
import math
import uuid
from datetime import datetime
from typing import Optional, Tuple

from config import settings
from errors import InvalidInput


def new_id() -> str:
    return str(uuid.uuid4())


def check_pagination(page: int, limit: int) -> Tuple[int, int]:
    """Validate page/limit and return the (offset, limit) pair."""
    if page < 1:
        raise InvalidInput("page must be a positive integer")
    if limit < 1 or limit > settings.MAX_PAGE_SIZE:
        raise InvalidInput(f"limit must be between 1 and {settings.MAX_PAGE_SIZE}")
    return (page - 1) * limit, limit


def pagination(total: int, page: int, limit: int) -> dict:
    return {"total": total, "page": page, "pages": math.ceil(total / limit) if limit else 0}


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'} ago"


def time_ago(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Human relative age: minutes under an hour, hours under a day, days under a week."""
    now = now or datetime.utcnow()
    seconds = abs((now - created_at).total_seconds())
    if seconds < 60 * 60:
        return _plural(int(seconds // 60), "minute")
    if seconds < 60 * 60 * 24:
        return _plural(int(seconds // 3600), "hour")
    days = int(seconds // 86400)
    if days < 7:
        return _plural(days, "day")
    return created_at.strftime("%Y-%m-%d")
