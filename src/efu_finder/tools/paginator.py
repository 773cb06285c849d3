"""
Pagination helpers for EFU Finder.

Page numbers are 1-based. Page 0 is reserved for an empty result set.
"""

from typing import Iterator, List, Optional, Sequence, TypeVar


T = TypeVar('T')

DEFAULT_PAGE_SIZE = 20
DEFAULT_CHUNK_SIZE = 200


def validate_page_size(page_size: int) -> int:
    """
    Check that a page size is a positive integer.

    Raises:
        ValueError: If the page size is not positive
    """
    if isinstance(page_size, bool) or int(page_size) != page_size or page_size <= 0:
        raise ValueError(f"Page size must be a positive integer, got {page_size!r}")
    return int(page_size)


def total_pages(item_count: int, page_size: int) -> int:
    """Get the number of pages needed for item_count items; 0 when empty."""
    page_size = validate_page_size(page_size)
    if item_count <= 0:
        return 0
    return -(-item_count // page_size)


def clamp_page(page: Optional[int], page_count: int) -> int:
    """
    Clamp a requested page into the valid range.

    Args:
        page: Requested 1-based page; None is treated as 1
        page_count: Number of available pages

    Returns:
        0 if there are no pages, otherwise a page within [1, page_count]
    """
    if page_count <= 0:
        return 0
    if page is None:
        page = 1
    return min(max(int(page), 1), page_count)


def slice_page(items: Sequence[T], page: int, page_size: int) -> List[T]:
    """
    Get the items on a page.

    Args:
        items: Ordered items
        page: 1-based page; 0 yields an empty page
        page_size: Items per page

    Returns:
        The (page-1)*page_size .. page*page_size window
    """
    page_size = validate_page_size(page_size)
    if page <= 0:
        return []
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def iter_chunks(items: Sequence[T], chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[List[T]]:
    """
    Yield bounded slices of an ordered sequence.

    Lets a consumer process a large page progressively, yielding control
    between chunks. The items and their order are unchanged.
    """
    if chunk_size <= 0:
        raise ValueError(f"Chunk size must be positive, got {chunk_size}")
    for start in range(0, len(items), chunk_size):
        yield list(items[start:start + chunk_size])
