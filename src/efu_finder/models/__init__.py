"""
Data models for EFU Finder.

This module contains all the core data structures used throughout the system.
"""

from .record import FileRecord, RecordSet
from .search_query import QueryError, QueryPlan, QueryTerm, SearchField
from .search_results import DateField, FormattedDate, PageResult, SortKey, SortState, ViewState
from .config import EngineConfig, ViewPreferences

__all__ = [
    'FileRecord',
    'RecordSet',
    'QueryError',
    'QueryPlan',
    'QueryTerm',
    'SearchField',
    'DateField',
    'FormattedDate',
    'PageResult',
    'SortKey',
    'SortState',
    'ViewState',
    'EngineConfig',
    'ViewPreferences',
]
