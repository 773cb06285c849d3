"""
Delimited-text reader for EFU exports.

The exporter writes plain comma-separated text. Fields may be wrapped in
double quotes, a doubled quote inside a quoted field is a literal quote, and
separators or line breaks inside quotes belong to the field.
"""

from typing import Iterator, List


DELIMITER = ','
QUOTE = '"'


def iter_rows(text: str) -> Iterator[List[str]]:
    """
    Split delimited text into rows of fields.

    Rows end at \\n, \\r\\n or a lone \\r outside quotes. A final row without
    a terminator is still produced when it has any content. A quote character
    anywhere toggles quoting, so malformed input never raises.

    Args:
        text: Raw export text

    Yields:
        Lists of field strings, one per row
    """
    row: List[str] = []
    value: List[str] = []
    inside_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]

        if char == QUOTE:
            if inside_quotes and i + 1 < length and text[i + 1] == QUOTE:
                value.append(QUOTE)
                i += 2
                continue
            inside_quotes = not inside_quotes
            i += 1
            continue

        if not inside_quotes and (char == '\n' or char == '\r'):
            if char == '\r' and i + 1 < length and text[i + 1] == '\n':
                i += 1
            row.append(''.join(value))
            yield row
            row = []
            value = []
            i += 1
            continue

        if not inside_quotes and char == DELIMITER:
            row.append(''.join(value))
            value = []
            i += 1
            continue

        value.append(char)
        i += 1

    if value or row:
        row.append(''.join(value))
        yield row


def parse_rows(text: str) -> List[List[str]]:
    """
    Parse delimited text into a list of rows.

    Args:
        text: Raw export text

    Returns:
        List of rows, each a list of field strings
    """
    return list(iter_rows(text))
