"""
Record normalizer for EFU Finder.

This module turns the rows of an EFU export into immutable FileRecord objects.
It handles header removal, short-row rejection, lossless integer parsing of
sizes and FILETIME values, and reading export files from disk.
"""

import re
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..models.record import FileRecord, RecordSet
from .attributes import is_directory, parse_number, to_bitmask
from .csv_reader import iter_rows


logger = logging.getLogger(__name__)

MIN_FIELDS = 5
EXPORT_COLUMNS = ("Filename", "Size", "Date Modified", "Date Created", "Attributes")

_PATH_SEPARATORS = re.compile(r'[/\\]')
_INTEGER_PREFIXES = ('0x', '0o', '0b')


class IngestError(Exception):
    """Raised when export input cannot be read or decoded."""
    pass


def parse_big_int(raw: Optional[str]) -> Optional[int]:
    """
    Parse a size or timestamp field as a non-negative integer.

    Python integers are arbitrary precision, so values beyond 2**64 survive
    unchanged.

    Args:
        raw: Field text from the export

    Returns:
        The parsed value, or None for empty, negative or non-integer text
    """
    if not raw:
        return None
    trimmed = raw.strip()
    if not trimmed or '_' in trimmed:
        return None
    try:
        value = int(trimmed)
    except ValueError:
        if not trimmed.lower().lstrip('+-').startswith(_INTEGER_PREFIXES):
            return None
        try:
            value = int(trimmed, 0)
        except ValueError:
            return None
    return value if value >= 0 else None


def extract_file_name(path: str) -> str:
    """
    Get the last component of a path, splitting on both / and \\.

    A trailing separator leaves an empty last component; the whole path is
    returned instead so the name is never empty for a non-empty path.
    """
    if not path:
        return ""
    name = _PATH_SEPARATORS.split(path)[-1]
    return name or path


def build_record(index: int, row: Sequence[str]) -> FileRecord:
    """
    Build a record from one export row.

    Args:
        index: Ingestion ordinal of the row
        row: At least five field strings

    Returns:
        The normalized record
    """
    path, size_raw, modified_raw, created_raw, attributes_raw = row[:MIN_FIELDS]
    file_name = extract_file_name(path)
    attributes_numeric = to_bitmask(parse_number(attributes_raw))
    search_text = f"{path} {file_name} {attributes_raw}"

    return FileRecord(
        index=index,
        path=path,
        file_name=file_name,
        size_raw=size_raw,
        size_value=parse_big_int(size_raw),
        modified_raw=modified_raw,
        modified_value=parse_big_int(modified_raw),
        created_raw=created_raw,
        created_value=parse_big_int(created_raw),
        attributes_raw=attributes_raw,
        attributes_numeric=attributes_numeric,
        is_directory=is_directory(attributes_numeric),
        search_text=search_text,
    )


def normalize_rows(rows: Iterable[Sequence[str]], source: Optional[str] = None) -> RecordSet:
    """
    Convert parsed rows into a record set.

    The first row is the header and is discarded. Rows with fewer than five
    fields are dropped individually.

    Args:
        rows: Rows as produced by the CSV reader
        source: Optional label for the export

    Returns:
        RecordSet with records in file order
    """
    records: List[FileRecord] = []
    total_rows = 0
    dropped_rows = 0

    for line_number, row in enumerate(rows, 1):
        if line_number == 1:
            continue
        total_rows += 1
        if len(row) < MIN_FIELDS:
            dropped_rows += 1
            logger.debug(f"Dropping row {line_number}: expected {MIN_FIELDS} fields, got {len(row)}")
            continue
        records.append(build_record(len(records), row))

    logger.info(f"Ingested {len(records)} records from {source or 'text'} ({dropped_rows} rows dropped)")

    return RecordSet(
        records=tuple(records),
        source=source,
        total_rows=total_rows,
        dropped_rows=dropped_rows,
    )


def decode_export(data: Union[str, bytes]) -> str:
    """
    Decode export content to text, dropping a leading byte order mark.

    Raises:
        IngestError: If the content is not text or not valid UTF-8
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise IngestError(f"Export is not valid UTF-8: {e}") from e
    if not isinstance(data, str):
        raise IngestError(f"Export content must be text or bytes, got {type(data).__name__}")
    return data[1:] if data.startswith('\ufeff') else data


def ingest_text(data: Union[str, bytes], source: Optional[str] = None) -> RecordSet:
    """
    Parse raw export content into a record set.

    Empty or header-only input yields an empty record set, not an error.

    Args:
        data: Export content as text or UTF-8 bytes
        source: Optional label for the export

    Returns:
        RecordSet with records in file order

    Raises:
        IngestError: If the content cannot be decoded
    """
    text = decode_export(data)
    return normalize_rows(iter_rows(text), source=source)


def read_export(path: Union[str, Path]) -> str:
    """
    Read an export file from disk.

    Args:
        path: Location of the .efu file

    Returns:
        Decoded file content

    Raises:
        IngestError: If the file cannot be read or decoded
    """
    export_path = Path(path)
    try:
        with open(export_path, 'rb') as f:
            data = f.read()
    except (OSError, IOError) as e:
        raise IngestError(f"Cannot read export file {export_path}: {e}") from e
    return decode_export(data)
