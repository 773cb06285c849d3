"""
Record data models for EFU Finder.

This module defines the immutable in-memory representation of one row of an
EFU file list export, plus the record set produced by a single ingestion.
"""

from typing import Dict, Iterator, Optional, Any, Tuple
from datetime import datetime
from dataclasses import dataclass, field
from pydantic import BaseModel, ConfigDict, Field


DIRECTORY_FLAG = 0x0010


class FileRecord(BaseModel):
    """
    One filesystem entry parsed from an export row.

    Records are frozen once created. Numeric fields hold either a valid
    non-negative value or None, never a partial parse.

    Attributes:
        index: Ingestion ordinal (0-based), used as the stable tie-break
        path: Full original path string
        file_name: Last path component (split on both / and \\)
        size_raw: Original size text
        size_value: Parsed size in bytes, or None if absent/unparsable
        modified_raw: Original modification FILETIME text
        modified_value: Parsed modification FILETIME ticks, or None
        created_raw: Original creation FILETIME text
        created_value: Parsed creation FILETIME ticks, or None
        attributes_raw: Original attribute text
        attributes_numeric: Parsed attribute bitmask, or None
        is_directory: True iff the directory bit (0x10) is set
        search_text: Path, file name and raw attributes joined by spaces
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Ingestion ordinal")
    path: str = Field(..., description="Full original path")
    file_name: str = Field("", description="Last path component")
    size_raw: str = Field("", description="Original size text")
    size_value: Optional[int] = Field(None, ge=0, description="Size in bytes")
    modified_raw: str = Field("", description="Original modification time text")
    modified_value: Optional[int] = Field(None, ge=0, description="Modification FILETIME ticks")
    created_raw: str = Field("", description="Original creation time text")
    created_value: Optional[int] = Field(None, ge=0, description="Creation FILETIME ticks")
    attributes_raw: str = Field("", description="Original attribute text")
    attributes_numeric: Optional[int] = Field(None, description="Attribute bitmask")
    is_directory: bool = Field(False, description="Whether the entry is a directory")
    search_text: str = Field("", description="Concatenated searchable text")

    def get_extension(self) -> Optional[str]:
        """Get the lowercased file extension including the dot, if any."""
        if self.is_directory:
            return None
        name = self.file_name
        dot = name.rfind('.')
        if dot <= 0 or dot == len(name) - 1:
            return None
        return name[dot:].lower()

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a dictionary representation."""
        data = self.model_dump(exclude={'search_text'})
        data['extension'] = self.get_extension()
        return data

    def __str__(self) -> str:
        kind = "dir" if self.is_directory else "file"
        return f"{self.file_name} ({kind}) | {self.path}"


@dataclass(frozen=True)
class RecordSet:
    """
    The complete result of one ingestion.

    Attributes:
        records: Records in file order
        source: Label describing where the export came from
        total_rows: Number of data rows seen (header excluded)
        dropped_rows: Rows discarded for having fewer than five fields
        ingested_at: When the ingestion happened
    """
    records: Tuple[FileRecord, ...] = ()
    source: Optional[str] = None
    total_rows: int = 0
    dropped_rows: int = 0
    ingested_at: datetime = field(default_factory=datetime.now)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self.records)

    def is_empty(self) -> bool:
        """Check if the set holds no records."""
        return not self.records

    def directory_count(self) -> int:
        """Count records classified as directories."""
        return sum(1 for record in self.records if record.is_directory)
