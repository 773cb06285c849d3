"""
Query planner for EFU Finder.

This module compiles a free-text query into a QueryPlan. Queries are split into
whitespace-separated tokens (quotes group words), and each token may carry a
leading ! for negation and a file: or path: prefix for field scoping. Tokens are
compiled either as wildcard patterns (* and ?) or, in regex mode, verbatim as
regular expressions.
"""

import re
import logging
from typing import List, Optional

from ..models.search_query import QueryError, QueryPlan, QueryTerm, SearchField


logger = logging.getLogger(__name__)

NEGATION_PREFIX = '!'
FIELD_PREFIXES = (
    ('file:', SearchField.FILE_NAME),
    ('path:', SearchField.PATH),
)
QUOTE_CHARS = ('"', "'")


def tokenize_query(query: str) -> List[str]:
    """
    Split a query into tokens on whitespace outside quoted spans.

    Quote characters are removed. Inside a span opened by one quote kind the
    other kind is literal. An unterminated quote extends to the end of input.

    Args:
        query: Raw query text

    Returns:
        List of non-empty tokens
    """
    tokens = []
    current: List[str] = []
    quote: Optional[str] = None

    for char in query:
        if char in QUOTE_CHARS and (quote is None or quote == char):
            quote = None if quote == char else char
            continue
        if quote is None and char.isspace():
            if current:
                tokens.append(''.join(current))
                current = []
            continue
        current.append(char)

    if current:
        tokens.append(''.join(current))
    return tokens


def wildcard_to_regex(pattern: str) -> str:
    """
    Translate a wildcard pattern to regex source.

    * matches any run of characters, ? exactly one character, and everything
    else is escaped.
    """
    parts = []
    for char in pattern:
        if char == '*':
            parts.append('.*')
        elif char == '?':
            parts.append('.')
        else:
            parts.append(re.escape(char))
    return ''.join(parts)


def anchor_wildcard(pattern: str) -> str:
    """
    Translate a wildcard pattern, pinning the end opposite a lone outer *

    A leading * leaves the start open, so the rest must reach the end of the
    value: *.txt matches a.txt but not a.txtx. A trailing * pins the start the
    same way. Any other pattern matches anywhere in the value.
    """
    source = wildcard_to_regex(pattern)
    open_start = pattern.startswith('*')
    open_end = pattern.endswith('*')
    if open_start and not open_end:
        return source + r'\Z'
    if open_end and not open_start:
        return r'\A' + source
    return source


def is_anchored(pattern: str) -> bool:
    """Check whether a wildcard pattern is pinned to one end of the value."""
    return pattern.startswith('*') != pattern.endswith('*')


def build_wildcard_pattern(pattern: str, case_sensitive: bool = False) -> re.Pattern:
    """Compile a wildcard pattern."""
    flags = re.DOTALL if case_sensitive else re.DOTALL | re.IGNORECASE
    return re.compile(anchor_wildcard(pattern), flags)


def build_regex_pattern(pattern: str, case_sensitive: bool = False) -> re.Pattern:
    """
    Compile a token verbatim as a regular expression.

    Raises:
        QueryError: If the expression is invalid
    """
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise QueryError(f"Invalid regular expression '{pattern}': {e}", pattern=pattern) from e


def interpret_token(raw_token: str, regex_mode: bool = False,
                    case_sensitive: bool = False) -> Optional[QueryTerm]:
    """
    Resolve one token into a query term.

    Args:
        raw_token: Token produced by tokenize_query
        regex_mode: Compile the token as a regular expression
        case_sensitive: Match respecting case

    Returns:
        The compiled term, or None if nothing remains after stripping the
        negation and field prefixes

    Raises:
        QueryError: If regex_mode is set and the token is not a valid regex
    """
    if not raw_token:
        return None

    token = raw_token
    negate = False
    if token.startswith(NEGATION_PREFIX):
        negate = True
        token = token[len(NEGATION_PREFIX):]
    if not token:
        return None

    field = SearchField.ALL
    lowered = token.lower()
    for prefix, prefix_field in FIELD_PREFIXES:
        if lowered.startswith(prefix):
            field = prefix_field
            token = token[len(prefix):]
            break
    if not token:
        return None

    if regex_mode:
        pattern = build_regex_pattern(token, case_sensitive)
        anchored = False
    else:
        pattern = build_wildcard_pattern(token, case_sensitive)
        anchored = is_anchored(token)

    return QueryTerm(
        negate=negate,
        field=field,
        pattern=pattern,
        source=token,
        anchored=anchored,
        case_sensitive=case_sensitive,
    )


def compile_query(query: Optional[str], regex_mode: bool = False,
                  case_sensitive: bool = False) -> QueryPlan:
    """
    Compile query text into a plan.

    Blank text compiles to an empty plan, which matches every record.

    Args:
        query: Raw query text
        regex_mode: Compile tokens as regular expressions
        case_sensitive: Match respecting case

    Returns:
        The compiled QueryPlan

    Raises:
        QueryError: If any token is an invalid regular expression
    """
    text = (query or "").strip()
    if not text:
        return QueryPlan(regex_mode=regex_mode, case_sensitive=case_sensitive)

    terms = []
    for token in tokenize_query(text):
        try:
            term = interpret_token(token, regex_mode, case_sensitive)
        except QueryError as e:
            e.query = text
            raise
        if term is not None:
            terms.append(term)

    logger.debug(f"Compiled query '{text}' into {len(terms)} terms")
    return QueryPlan(
        terms=tuple(terms),
        text=text,
        regex_mode=regex_mode,
        case_sensitive=case_sensitive,
    )
