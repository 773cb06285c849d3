"""
Size and time formatting for EFU Finder.

Sizes and FILETIME values arrive as arbitrary-precision integers. Everything
here stays in integer or Decimal arithmetic, so byte counts and tick values
beyond 2**53 are never rounded through a float.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, Optional

from ..models.record import FileRecord
from ..models.search_results import FormattedDate


logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")
SIZE_STEP = 1024

# 100ns ticks between 1601-01-01 and 1970-01-01
EPOCH_DIFFERENCE = 116444736000000000
TICKS_PER_MILLISECOND = 10000
MAX_SAFE_INTEGER = 2 ** 53 - 1

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIME_FORMAT = "%H:%M:%S"


def format_size(value: Optional[int], placeholder: str = PLACEHOLDER) -> str:
    """
    Render a byte count with a binary unit.

    The value is divided by 1024 while it is at least 1024 and a larger unit
    exists. The shown magnitude keeps three decimal digits computed by
    integer division from the original value, then is shown with 0 decimals
    if >= 100, 1 if >= 10, otherwise 2.

    Args:
        value: Size in bytes, or None
        placeholder: Text returned for an absent size

    Returns:
        Formatted size such as "1.50 KB"
    """
    if value is None:
        return placeholder

    unit_index = 0
    remaining = value
    while remaining >= SIZE_STEP and unit_index < len(SIZE_UNITS) - 1:
        remaining //= SIZE_STEP
        unit_index += 1

    scaled = value * 1000 // (SIZE_STEP ** unit_index)
    with localcontext() as ctx:
        # Petabyte counts are unbounded; keep every digit
        ctx.prec = max(ctx.prec, len(str(scaled)) + 3)
        display = Decimal(scaled) / 1000
        if display >= 100:
            precision = 0
        elif display >= 10:
            precision = 1
        else:
            precision = 2
        rounded = display.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    return f"{rounded} {SIZE_UNITS[unit_index]}"


def filetime_to_datetime(ticks: Optional[int]) -> Optional[datetime]:
    """
    Convert FILETIME ticks to a UTC datetime.

    Args:
        ticks: 100ns intervals since 1601-01-01

    Returns:
        UTC-aware datetime, or None when the ticks are absent, not strictly
        after the Unix epoch, too large to convert safely, or outside the
        datetime range
    """
    if ticks is None or ticks <= EPOCH_DIFFERENCE:
        return None
    milliseconds = (ticks - EPOCH_DIFFERENCE) // TICKS_PER_MILLISECOND
    if milliseconds > MAX_SAFE_INTEGER:
        return None
    try:
        return UNIX_EPOCH + timedelta(milliseconds=milliseconds)
    except OverflowError:
        return None


def format_datetime(moment: Optional[datetime], tz: str = "utc",
                    date_format: str = DEFAULT_DATE_FORMAT,
                    time_format: str = DEFAULT_TIME_FORMAT,
                    placeholder: str = PLACEHOLDER) -> FormattedDate:
    """
    Split a datetime into display parts.

    Args:
        moment: UTC datetime, or None
        tz: "utc" to display as is, "local" to convert to local time
        date_format: strftime format for the date part
        time_format: strftime format for the time part
        placeholder: Date text used when the value is absent

    Returns:
        FormattedDate with date, time and combined title
    """
    if moment is None:
        return FormattedDate(date=placeholder, time="", title="")
    if tz == "local":
        try:
            moment = moment.astimezone()
        except (OverflowError, OSError, ValueError) as e:
            logger.warning(f"Cannot convert {moment.isoformat()} to local time, showing UTC: {e}")
    date_part = moment.strftime(date_format)
    time_part = moment.strftime(time_format)
    return FormattedDate(date=date_part, time=time_part, title=f"{date_part} {time_part}")


def format_filetime(ticks: Optional[int], **kwargs) -> FormattedDate:
    """Convert FILETIME ticks and split them into display parts."""
    return format_datetime(filetime_to_datetime(ticks), **kwargs)


def aggregate_size(records: Iterable[FileRecord]) -> int:
    """Sum the sizes of every non-directory record that has a size."""
    total = 0
    for record in records:
        if record.size_value is not None and not record.is_directory:
            total += record.size_value
    return total


def format_aggregate_size(records: Iterable[FileRecord], placeholder: str = PLACEHOLDER) -> str:
    """Render the aggregate size; a zero total shows the placeholder."""
    total = aggregate_size(records)
    if total == 0:
        return placeholder
    return format_size(total, placeholder)
