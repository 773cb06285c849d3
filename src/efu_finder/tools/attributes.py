"""
Windows file attribute decoding.

Maps the numeric attribute bitmask stored in EFU exports to readable labels and
to the directory classification used by the filter pipeline.
"""

import math
from typing import List, Optional, Tuple, Union

from ..models.record import DIRECTORY_FLAG


# Ordered (mask, label) table; labels are rendered in this order.
ATTRIBUTE_FLAGS: Tuple[Tuple[int, str], ...] = (
    (0x0001, "Read-only"),
    (0x0002, "Hidden"),
    (0x0004, "System"),
    (0x0008, "Volume label"),
    (0x0010, "Directory"),
    (0x0020, "Archive"),
    (0x0040, "Device"),
    (0x0080, "Normal"),
    (0x0100, "Temporary"),
    (0x0200, "Sparse file"),
    (0x0400, "Reparse point"),
    (0x0800, "Compressed"),
    (0x1000, "Offline"),
    (0x4000, "Encrypted"),
    (0x8000, "Integrity stream"),
    (0x10000, "Virtual"),
    (0x20000, "No scrub"),
    (0x40000, "Extended attributes"),
    (0x80000, "Pinned"),
    (0x100000, "Unpinned"),
    (0x200000, "Recall on open"),
    (0x400000, "Recall on data access"),
)

NO_FLAGS_LABEL = "No flags"
LABEL_SEPARATOR = ", "

_INTEGER_PREFIXES = ('0x', '0o', '0b')


def parse_number(raw: Optional[str]) -> Optional[Union[int, float]]:
    """
    Parse an attribute field as an ordinary number.

    Accepts integers, float literals and 0x/0o/0b prefixed integers.

    Args:
        raw: Attribute text from the export

    Returns:
        The parsed number, or None if empty, unparsable or not finite
    """
    if not raw:
        return None
    trimmed = str(raw).strip()
    if not trimmed or '_' in trimmed:
        return None
    try:
        return int(trimmed)
    except ValueError:
        pass
    if trimmed.lower().lstrip('+-').startswith(_INTEGER_PREFIXES):
        try:
            return int(trimmed, 0)
        except ValueError:
            return None
    try:
        number = float(trimmed)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def to_bitmask(value: Optional[Union[int, float]]) -> Optional[int]:
    """Truncate a parsed attribute number to an integer bitmask."""
    if value is None:
        return None
    return int(value)


def is_directory(value: Optional[int]) -> bool:
    """Check whether a bitmask has the directory bit set."""
    return value is not None and (value & DIRECTORY_FLAG) == DIRECTORY_FLAG


def decode_flags(value: int) -> List[str]:
    """
    Get the labels of every table bit present in a bitmask.

    Args:
        value: Attribute bitmask

    Returns:
        Labels in table order
    """
    return [label for mask, label in ATTRIBUTE_FLAGS if (value & mask) == mask]


def describe_attributes(raw: Optional[str],
                        no_flags_label: str = NO_FLAGS_LABEL,
                        separator: str = LABEL_SEPARATOR) -> str:
    """
    Render raw attribute text as human-readable labels.

    Args:
        raw: Attribute text from the export
        no_flags_label: Label used when the bitmask is exactly zero
        separator: Text placed between labels

    Returns:
        "" for empty input, the trimmed raw text if it is not numeric or no
        known bit is set, the no-flags label for zero, otherwise the joined
        labels
    """
    if not raw:
        return ""
    trimmed = raw.strip()
    if not trimmed:
        return ""
    number = parse_number(trimmed)
    if number is None:
        return trimmed
    if number == 0:
        return no_flags_label
    labels = decode_flags(to_bitmask(number))
    if not labels:
        return trimmed
    return separator.join(labels)
