"""
Search results data models for EFU Finder.

This module defines the structures describing an ordered, paginated view over
the record set: sort state, formatted dates, result pages, and the immutable
view snapshot the engine publishes after every change.
"""

from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass, field
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .record import FileRecord, RecordSet
from .search_query import QueryPlan


class SortKey(Enum):
    """The six sortable display columns."""
    FILE_NAME = "FileName"
    PATH = "Path"
    SIZE = "Size"
    MODIFIED = "Date Modified"
    CREATED = "Date Created"
    ATTRIBUTES = "Attributes"

    @classmethod
    def parse(cls, value) -> 'SortKey':
        """
        Resolve a sort key from its value, member name, or a short alias.

        Raises:
            ValueError: If the value does not name a sort key
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text)
        except ValueError:
            pass
        normalized = text.lower().replace('-', '_').replace(' ', '_')
        for member in cls:
            if normalized in (member.name.lower(), member.value.lower().replace(' ', '_')):
                return member
        if normalized in _SORT_KEY_ALIASES:
            return _SORT_KEY_ALIASES[normalized]
        raise ValueError(f"Invalid sort key: {value}")


_SORT_KEY_ALIASES = {
    'name': SortKey.FILE_NAME,
    'file': SortKey.FILE_NAME,
    'filename': SortKey.FILE_NAME,
    'modified': SortKey.MODIFIED,
    'mtime': SortKey.MODIFIED,
    'created': SortKey.CREATED,
    'ctime': SortKey.CREATED,
    'attrs': SortKey.ATTRIBUTES,
    'attributes': SortKey.ATTRIBUTES,
}


class DateField(Enum):
    """Timestamp fields of a record."""
    MODIFIED = "modified"
    CREATED = "created"


class SortState(BaseModel):
    """
    The single active sort key and its direction.

    Attributes:
        key: Column the view is ordered by
        ascending: Sort direction
    """

    model_config = ConfigDict(frozen=True)

    key: SortKey = Field(SortKey.FILE_NAME, description="Active sort column")
    ascending: bool = Field(True, description="Sort direction")

    @field_validator('key', mode='before')
    @classmethod
    def validate_key(cls, v) -> SortKey:
        """Accept sort keys given as strings."""
        return SortKey.parse(v)

    def toggled(self, key) -> 'SortState':
        """
        Get the state produced by selecting a column header.

        Selecting the active key flips the direction; selecting another key
        sorts by it ascending.
        """
        key = SortKey.parse(key)
        if key == self.key:
            return SortState(key=key, ascending=not self.ascending)
        return SortState(key=key, ascending=True)

    def to_dict(self) -> Dict[str, Any]:
        return {'key': self.key.value, 'ascending': self.ascending}

    def __str__(self) -> str:
        return f"{self.key.value} ({'asc' if self.ascending else 'desc'})"


class FormattedDate(BaseModel):
    """
    A timestamp split into display parts.

    Attributes:
        date: Calendar date text, or the placeholder if absent
        time: Time of day text, empty if absent
        title: Combined "date time" text, empty if absent
    """

    date: str = Field(..., description="Calendar date text")
    time: str = Field("", description="Time of day text")
    title: str = Field("", description="Combined date and time")

    def is_present(self) -> bool:
        """Check whether the date carries a real value."""
        return bool(self.title)


class PageResult(BaseModel):
    """
    One page of an ordered result set.

    Attributes:
        items: Records on this page, in view order
        current_page: 1-based page number, 0 when there are no results
        total_pages: Number of pages in the view
        page_size: Maximum number of items per page
        total_items: Size of the whole filtered set
    """

    model_config = ConfigDict(frozen=True)

    items: List[FileRecord] = Field(default_factory=list, description="Records on this page")
    current_page: int = Field(0, ge=0, description="1-based page number")
    total_pages: int = Field(0, ge=0, description="Number of pages")
    page_size: int = Field(20, gt=0, description="Items per page")
    total_items: int = Field(0, ge=0, description="Size of the filtered set")

    def has_previous(self) -> bool:
        return self.current_page > 1

    def has_next(self) -> bool:
        return 0 < self.current_page < self.total_pages

    def first_item_number(self) -> int:
        """Get the 1-based position of the first item on this page, 0 if empty."""
        if not self.items:
            return 0
        return (self.current_page - 1) * self.page_size + 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert the page to a dictionary representation."""
        data = self.model_dump(exclude={'items'})
        data['items'] = [item.to_dict() for item in self.items]
        return data

    def __str__(self) -> str:
        return f"Page {self.current_page}/{self.total_pages} | {len(self.items)} of {self.total_items} items"


@dataclass(frozen=True)
class ViewState:
    """
    Immutable snapshot of the engine's view.

    The engine replaces this object wholesale on every change, so a reader
    holding a reference always sees a consistent record set / filtered set
    pair.

    Attributes:
        record_set: The ingested records
        filtered: Records passing the directory policy and query, sorted
        sort: Active sort state
        page_size: Items per page
        page_index: 1-based page, 0 iff filtered is empty
        include_directories: Whether directory records are kept
        case_sensitive: Whether the query respects case
        regex_mode: Whether query tokens are regular expressions
        query_text: The active query text
        query_error: Compile error for the active query, if any
        plan: Compiled plan for the active query
    """
    record_set: RecordSet = field(default_factory=RecordSet)
    filtered: Tuple[FileRecord, ...] = ()
    sort: SortState = field(default_factory=SortState)
    page_size: int = 20
    page_index: int = 0
    include_directories: bool = True
    case_sensitive: bool = False
    regex_mode: bool = False
    query_text: str = ""
    query_error: Optional[str] = None
    plan: QueryPlan = field(default_factory=QueryPlan)

    @property
    def records(self) -> Tuple[FileRecord, ...]:
        return self.record_set.records

    def has_error(self) -> bool:
        return self.query_error is not None

    def __str__(self) -> str:
        parts = [f"Records: {len(self.records)}"]
        parts.append(f"Filtered: {len(self.filtered)}")
        parts.append(f"Sort: {self.sort}")
        parts.append(f"Page: {self.page_index}")
        if self.has_error():
            parts.append(f"Error: {self.query_error}")
        return " | ".join(parts)
