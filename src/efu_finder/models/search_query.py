"""
Search query data models for EFU Finder.

This module defines the compiled form of a free-text query: individual match
terms scoped to a field, and the plan that combines them with logical AND.
"""

import re
from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass
from enum import Enum

from .record import FileRecord


class SearchField(Enum):
    """Record fields a query term can be scoped to."""
    ALL = "all"
    FILE_NAME = "file"
    PATH = "path"


class QueryError(Exception):
    """
    Raised when a query cannot be compiled.

    Attributes:
        message: Human readable description, including the regex complaint
        pattern: The offending token, if known
        query: The full query text, if known
    """

    def __init__(self, message: str, pattern: Optional[str] = None, query: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.pattern = pattern
        self.query = query

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class QueryTerm:
    """
    A single compiled match predicate.

    Attributes:
        negate: Whether the term requires the field to NOT match
        field: Which record field the pattern is tested against
        pattern: Compiled regular expression
        source: Token text the term was built from (prefixes stripped)
        anchored: Whether the pattern is pinned to the start or end of a field value
        case_sensitive: Whether matching respects case
    """
    negate: bool
    field: SearchField
    pattern: re.Pattern
    source: str = ""
    anchored: bool = False
    case_sensitive: bool = False

    def get_targets(self, record: FileRecord) -> Tuple[str, ...]:
        """Get the text values this term is tested against for a record."""
        if self.field is SearchField.FILE_NAME:
            return (record.file_name,)
        if self.field is SearchField.PATH:
            return (record.path,)
        if self.anchored:
            # Pinned patterns cannot be tested against the joined search text
            return (record.path, record.file_name, record.attributes_raw)
        return (record.search_text,)

    def is_match(self, record: FileRecord) -> bool:
        """Check whether the pattern matches the record, ignoring negation."""
        return any(self.pattern.search(target) is not None for target in self.get_targets(record))

    def matches(self, record: FileRecord) -> bool:
        """Check whether the record satisfies this term, honouring negation."""
        return self.is_match(record) != self.negate

    def to_dict(self) -> Dict[str, Any]:
        """Convert the term to a dictionary representation."""
        return {
            'negate': self.negate,
            'field': self.field.value,
            'pattern': self.pattern.pattern,
            'source': self.source,
            'anchored': self.anchored,
            'case_sensitive': self.case_sensitive,
        }

    def __str__(self) -> str:
        prefix = "!" if self.negate else ""
        scope = "" if self.field is SearchField.ALL else f"{self.field.value}:"
        return f"{prefix}{scope}{self.source}"


@dataclass(frozen=True)
class QueryPlan:
    """
    An ordered conjunction of query terms.

    A record satisfies the plan iff it satisfies every term. A plan with no
    terms matches every record.

    Attributes:
        terms: Compiled terms in query order
        text: The query text the plan was compiled from
        regex_mode: Whether tokens were compiled as regular expressions
        case_sensitive: Whether matching respects case
    """
    terms: Tuple[QueryTerm, ...] = ()
    text: str = ""
    regex_mode: bool = False
    case_sensitive: bool = False

    def is_empty(self) -> bool:
        """Check if the plan has no terms."""
        return not self.terms

    def matches(self, record: FileRecord) -> bool:
        """Check whether a record satisfies every term of the plan."""
        for term in self.terms:
            if not term.matches(record):
                return False
        return True

    def get_negated_terms(self) -> List[QueryTerm]:
        """Get the terms that exclude records."""
        return [term for term in self.terms if term.negate]

    def to_dict(self) -> Dict[str, Any]:
        """Convert the plan to a dictionary representation."""
        return {
            'text': self.text,
            'regex_mode': self.regex_mode,
            'case_sensitive': self.case_sensitive,
            'terms': [term.to_dict() for term in self.terms],
        }

    def __str__(self) -> str:
        if self.is_empty():
            return "Query: <match all>"
        parts = [f"Query: '{self.text}'"]
        parts.append(f"Terms: {len(self.terms)}")
        if self.regex_mode:
            parts.append("Mode: regex")
        if self.case_sensitive:
            parts.append("Case sensitive")
        return " | ".join(parts)
