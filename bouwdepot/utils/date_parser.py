from datetime import datetime
from typing import Any, Optional

from bouwdepot.utils.logging import get_logger

LOGGER = get_logger(__name__)

# ISO first, then the day-first formats found on Dutch invoices
DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y.%m.%d",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
]


def parse_date(date_value: Any) -> Optional[datetime]:
    """Parse date from various formats.

    Args:
        date_value: Date value, usually a string returned by the model

    Returns:
        Parsed datetime or None
    """
    if isinstance(date_value, datetime):
        return date_value

    if not isinstance(date_value, str) or not date_value.strip():
        return None

    text = date_value.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    LOGGER.warning(f"Failed to parse date '{date_value}'")
    return None
