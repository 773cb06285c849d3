"""
Filter and sort pipeline for EFU Finder.

This module applies a compiled QueryPlan and the directory inclusion policy to
a record set, then orders the survivors by one of the six display keys. Text
keys use a natural, case- and accent-insensitive collation so that "file2"
sorts before "file10".
"""

import re
import logging
import unicodedata
from operator import attrgetter
from typing import Callable, Iterable, List, Optional, Tuple, Union

from ..models.record import FileRecord
from ..models.search_query import QueryPlan
from ..models.search_results import SortKey, SortState
from .attributes import LABEL_SEPARATOR, NO_FLAGS_LABEL, describe_attributes


logger = logging.getLogger(__name__)

_DIGIT_RUNS = re.compile(r'(\d+)')

SortKeyFunc = Callable[[FileRecord], tuple]


def filter_records(records: Iterable[FileRecord], include_directories: bool = True,
                   plan: Optional[QueryPlan] = None) -> List[FileRecord]:
    """
    Keep records allowed by the directory policy and satisfying the plan.

    Args:
        records: Records in ingestion order
        include_directories: Whether directory records may be kept
        plan: Compiled query; None or an empty plan matches everything

    Returns:
        Matching records, in their original order
    """
    match_all = plan is None or plan.is_empty()
    filtered = []
    for record in records:
        if record.is_directory and not include_directories:
            continue
        if match_all or plan.matches(record):
            filtered.append(record)
    return filtered


def strip_accents(text: str) -> str:
    return "".join(
        ch for ch in unicodedata.normalize("NFKD", text)
        if not unicodedata.combining(ch)
    )


def natural_sort_key(text: Optional[str]) -> Tuple[Union[str, int], ...]:
    """
    Build a collation key comparing base letters and digit runs by value.

    Case and accents are ignored. The split always alternates text and digit
    parts, so keys of different strings compare position by position with
    matching types.

    Args:
        text: Value to collate

    Returns:
        Tuple alternating text parts and integer digit runs
    """
    base = strip_accents((text or "").casefold())
    parts = _DIGIT_RUNS.split(base)
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def _optional_value_key(value: Optional[int]) -> tuple:
    # Absent values sort before every present value
    return (0,) if value is None else (1, value)


def sort_key_for(key: SortKey, no_flags_label: str = NO_FLAGS_LABEL,
                 separator: str = LABEL_SEPARATOR) -> SortKeyFunc:
    """
    Get the key function ordering records by a display column.

    Attributes are ordered by their rendered label.

    Raises:
        ValueError: If the key is not a known sort key
    """
    key = SortKey.parse(key)
    if key is SortKey.FILE_NAME:
        return lambda record: natural_sort_key(record.file_name)
    if key is SortKey.PATH:
        return lambda record: natural_sort_key(record.path)
    if key is SortKey.SIZE:
        return lambda record: _optional_value_key(record.size_value)
    if key is SortKey.MODIFIED:
        return lambda record: _optional_value_key(record.modified_value)
    if key is SortKey.CREATED:
        return lambda record: _optional_value_key(record.created_value)
    return lambda record: natural_sort_key(
        describe_attributes(record.attributes_raw, no_flags_label, separator)
    )


def sort_records(records: Iterable[FileRecord], key: Union[SortKey, str] = SortKey.FILE_NAME,
                 ascending: bool = True, no_flags_label: str = NO_FLAGS_LABEL,
                 separator: str = LABEL_SEPARATOR) -> List[FileRecord]:
    """
    Order records by a display column.

    The sort is stable with respect to ingestion order in both directions:
    records with equal keys keep their original relative order.

    Args:
        records: Records to order
        key: Column to sort by
        ascending: Sort direction
        no_flags_label: Label shown for a zero attribute bitmask
        separator: Text shown between attribute labels

    Returns:
        A new, ordered list
    """
    key_func = sort_key_for(key, no_flags_label, separator)
    in_ingestion_order = sorted(records, key=attrgetter('index'))
    return sorted(in_ingestion_order, key=key_func, reverse=not ascending)


def apply_pipeline(records: Iterable[FileRecord], plan: Optional[QueryPlan] = None,
                   include_directories: bool = True,
                   sort_state: Optional[SortState] = None,
                   no_flags_label: str = NO_FLAGS_LABEL,
                   separator: str = LABEL_SEPARATOR) -> List[FileRecord]:
    """
    Filter records and order the survivors.

    Args:
        records: Records in ingestion order
        plan: Compiled query
        include_directories: Whether directory records may be kept
        sort_state: Ordering to apply; defaults to file name ascending
        no_flags_label: Label shown for a zero attribute bitmask
        separator: Text shown between attribute labels

    Returns:
        The filtered, ordered records
    """
    sort_state = sort_state or SortState()
    filtered = filter_records(records, include_directories, plan)
    ordered = sort_records(filtered, sort_state.key, sort_state.ascending,
                           no_flags_label, separator)
    logger.debug(f"Pipeline kept {len(ordered)} records, sorted by {sort_state}")
    return ordered
