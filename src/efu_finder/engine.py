"""
Listing engine for EFU Finder.

The engine owns one record set and the view derived from it. Every operation
builds a new ViewState and publishes it with a single reference swap, so a
reader that grabs ``engine.view`` always sees a record set, filtered set and
page that belong together. Writers are serialised by a lock.
"""

import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .models.config import EngineConfig, ViewPreferences
from .models.record import FileRecord, RecordSet
from .models.search_query import QueryError, QueryPlan
from .models.search_results import (
    DateField, FormattedDate, PageResult, SortKey, SortState, ViewState
)
from .tools import attributes, formatter, paginator
from .tools.normalizer import ingest_text, read_export
from .tools.pipeline import apply_pipeline, sort_records
from .tools.query_planner import compile_query


logger = logging.getLogger(__name__)

QueryOutcome = Tuple[Tuple[FileRecord, ...], Optional[QueryError]]


class ListingEngine:
    """
    Searchable, sortable, paginated view over one EFU export.

    Instances share no state, so several listings can be open at once.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the engine with an empty record set.

        Args:
            config: Engine configuration; defaults are used when omitted
        """
        self.config = config or EngineConfig()
        self._lock = threading.Lock()
        self._view = ViewState(
            sort=self.config.sort.to_sort_state(),
            page_size=self.config.paging.page_size,
            include_directories=self.config.search.include_directories,
            case_sensitive=self.config.search.case_sensitive,
            regex_mode=self.config.search.regex_mode,
        )

    # View accessors

    @property
    def view(self) -> ViewState:
        return self._view

    @property
    def records(self) -> Tuple[FileRecord, ...]:
        return self._view.records

    @property
    def filtered(self) -> Tuple[FileRecord, ...]:
        return self._view.filtered

    @property
    def sort_state(self) -> SortState:
        return self._view.sort

    @property
    def query_error(self) -> Optional[str]:
        return self._view.query_error

    @property
    def page_index(self) -> int:
        return self._view.page_index

    @property
    def total_pages(self) -> int:
        view = self._view
        return paginator.total_pages(len(view.filtered), view.page_size)

    # Ingestion

    def ingest(self, raw_text: Union[str, bytes], source: Optional[str] = None) -> RecordSet:
        """
        Replace the record set with the contents of an export.

        The query is cleared and the sort returns to the configured default.
        The search flags and directory policy are kept.

        Args:
            raw_text: Export content as text or UTF-8 bytes
            source: Optional label for the export

        Returns:
            The new record set

        Raises:
            IngestError: If the content cannot be decoded; the view is unchanged
        """
        record_set = ingest_text(raw_text, source=source)
        with self._lock:
            current = self._view
            plan = QueryPlan(regex_mode=current.regex_mode, case_sensitive=current.case_sensitive)
            sort = self.config.sort.to_sort_state()
            filtered = apply_pipeline(record_set.records, plan, current.include_directories, sort,
                                      **self._attribute_labels())
            self._view = replace(
                current,
                record_set=record_set,
                filtered=tuple(filtered),
                sort=sort,
                page_index=paginator.clamp_page(1, self._page_count(len(filtered), current.page_size)),
                query_text="",
                query_error=None,
                plan=plan,
            )
        return record_set

    def ingest_file(self, path: Union[str, Path]) -> RecordSet:
        """Read an export file and ingest it, labelled with its file name."""
        export_path = Path(path)
        return self.ingest(read_export(export_path), source=export_path.name)

    # Query, directory policy and sort

    def set_query(self, text: Optional[str], regex_mode: Optional[bool] = None,
                  case_sensitive: Optional[bool] = None) -> QueryOutcome:
        """
        Compile a query and rebuild the filtered set.

        Args:
            text: Query text; blank matches every record
            regex_mode: New regex flag, or None to keep the current one
            case_sensitive: New case flag, or None to keep the current one

        Returns:
            Tuple of (filtered records, compile error or None). On error the
            filtered set is empty and the record set is untouched.
        """
        with self._lock:
            current = self._view
            if regex_mode is None:
                regex_mode = current.regex_mode
            if case_sensitive is None:
                case_sensitive = current.case_sensitive
            current = replace(current, regex_mode=regex_mode, case_sensitive=case_sensitive)
            self._view, error = self._apply_query(current, text or "", current.include_directories)
            return self._view.filtered, error

    def set_directory_inclusion(self, include: bool) -> Tuple[FileRecord, ...]:
        """Keep or drop directory records, re-running the active query."""
        with self._lock:
            current = self._view
            self._view, _ = self._apply_query(current, current.query_text, bool(include))
            return self._view.filtered

    def set_sort(self, key: Union[SortKey, str], ascending: Optional[bool] = None) -> Tuple[FileRecord, ...]:
        """
        Reorder the filtered set.

        Args:
            key: Column to sort by
            ascending: Direction; None behaves like a header click, flipping
                the direction of the active key or starting a new key ascending

        Returns:
            The reordered filtered records

        Raises:
            ValueError: If the key is not a known sort key
        """
        with self._lock:
            current = self._view
            if ascending is None:
                sort = current.sort.toggled(key)
            else:
                sort = SortState(key=key, ascending=ascending)
            ordered = sort_records(current.filtered, sort.key, sort.ascending, **self._attribute_labels())
            page_count = self._page_count(len(ordered), current.page_size)
            self._view = replace(
                current,
                filtered=tuple(ordered),
                sort=sort,
                page_index=paginator.clamp_page(current.page_index, page_count),
            )
            logger.debug(f"Sorted {len(ordered)} records by {sort}")
            return self._view.filtered

    # Pagination

    def get_page(self, page_index: Optional[int] = None, page_size: Optional[int] = None) -> PageResult:
        """
        Get one page of the filtered set.

        Args:
            page_index: 1-based page to show; None keeps the current page.
                Out of range values are clamped.
            page_size: New page size, or None to keep the current one

        Returns:
            The requested page

        Raises:
            ValueError: If page_size is not a positive integer
        """
        with self._lock:
            current = self._view
            size = current.page_size if page_size is None else paginator.validate_page_size(page_size)
            page_count = self._page_count(len(current.filtered), size)
            requested = current.page_index if page_index is None else page_index
            page = paginator.clamp_page(requested, page_count)
            if page != current.page_index or size != current.page_size:
                logger.debug(f"Moving to page {page}/{page_count} (page size {size})")
                self._view = replace(current, page_index=page, page_size=size)
            view = self._view

        return PageResult(
            items=paginator.slice_page(view.filtered, view.page_index, view.page_size),
            current_page=view.page_index,
            total_pages=page_count,
            page_size=view.page_size,
            total_items=len(view.filtered),
        )

    def next_page(self) -> PageResult:
        """Advance one page, staying on the last page."""
        return self.get_page(self._view.page_index + 1)

    def previous_page(self) -> PageResult:
        """Go back one page, staying on the first page."""
        return self.get_page(max(self._view.page_index - 1, 1))

    def iter_page_chunks(self, page: PageResult) -> Iterator[List[FileRecord]]:
        """Yield a page's records in bounded chunks for progressive rendering."""
        return paginator.iter_chunks(page.items, self.config.paging.chunk_size)

    # Formatting

    def format_size(self, record: FileRecord) -> str:
        """Format a record's size; directories show the placeholder."""
        placeholder = self.config.display.placeholder
        if record.is_directory:
            return placeholder
        return formatter.format_size(record.size_value, placeholder)

    def format_date(self, record: FileRecord, which: Union[DateField, str] = DateField.MODIFIED) -> FormattedDate:
        """
        Format one of a record's timestamps.

        Args:
            record: Record to format
            which: DateField.MODIFIED or DateField.CREATED

        Returns:
            FormattedDate, holding the placeholder when the value is absent
        """
        which = DateField(which)
        ticks = record.modified_value if which is DateField.MODIFIED else record.created_value
        display = self.config.display
        return formatter.format_filetime(
            ticks,
            tz=display.timezone.value,
            date_format=display.date_format,
            time_format=display.time_format,
            placeholder=display.placeholder,
        )

    def describe_attributes(self, record: FileRecord) -> str:
        return attributes.describe_attributes(record.attributes_raw, **self._attribute_labels())

    def aggregate_size(self) -> str:
        """Format the total size of every file in the record set, ignoring filters."""
        return formatter.format_aggregate_size(self._view.records, self.config.display.placeholder)

    # Statistics and preferences

    def get_stats(self) -> Dict[str, int]:
        """Get counts describing the current view."""
        view = self._view
        return {
            'total_records': len(view.records),
            'filtered_records': len(view.filtered),
            'directories': view.record_set.directory_count(),
            'dropped_rows': view.record_set.dropped_rows,
            'total_pages': self._page_count(len(view.filtered), view.page_size),
        }

    def export_preferences(self, theme: Optional[str] = None) -> ViewPreferences:
        """
        Capture the view settings worth restoring in a later session.

        Args:
            theme: Presentation theme name, stored as is

        Returns:
            ViewPreferences for the current view
        """
        view = self._view
        return ViewPreferences(
            query=view.query_text,
            regex_mode=view.regex_mode,
            case_sensitive=view.case_sensitive,
            include_directories=view.include_directories,
            sort_key=view.sort.key,
            sort_ascending=view.sort.ascending,
            page_size=view.page_size,
            theme=theme,
        )

    def apply_preferences(self, preferences: ViewPreferences) -> QueryOutcome:
        """
        Restore view settings and re-run the saved query.

        Returns:
            Tuple of (filtered records, compile error or None)
        """
        with self._lock:
            current = replace(
                self._view,
                regex_mode=preferences.regex_mode,
                case_sensitive=preferences.case_sensitive,
                page_size=preferences.page_size,
                sort=SortState(key=preferences.sort_key, ascending=preferences.sort_ascending),
            )
            self._view, error = self._apply_query(current, preferences.query, preferences.include_directories)
            return self._view.filtered, error

    # Internals

    def _attribute_labels(self) -> Dict[str, str]:
        # Attribute sorting compares the same text describe_attributes shows
        display = self.config.display
        return {
            'no_flags_label': display.no_flags_label,
            'separator': display.attribute_separator,
        }

    @staticmethod
    def _page_count(item_count: int, page_size: int) -> int:
        return paginator.total_pages(item_count, page_size)

    def _apply_query(self, current: ViewState, text: str,
                     include_directories: bool) -> Tuple[ViewState, Optional[QueryError]]:
        # Caller holds the lock
        try:
            plan = compile_query(text, current.regex_mode, current.case_sensitive)
        except QueryError as e:
            logger.warning(f"Query rejected: {e}")
            view = replace(
                current,
                filtered=(),
                page_index=0,
                include_directories=include_directories,
                query_text=text,
                query_error=str(e),
                plan=QueryPlan(regex_mode=current.regex_mode, case_sensitive=current.case_sensitive),
            )
            return view, e

        filtered = apply_pipeline(current.records, plan, include_directories, current.sort,
                                  **self._attribute_labels())
        page_count = self._page_count(len(filtered), current.page_size)
        view = replace(
            current,
            filtered=tuple(filtered),
            page_index=paginator.clamp_page(1, page_count),
            include_directories=include_directories,
            query_text=text,
            query_error=None,
            plan=plan,
        )
        return view, None
