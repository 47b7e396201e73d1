"""Row parsing for spreadsheet exports.

Two inputs end up as the same ``RawTable``:

- CSV text from the public export endpoint (``parse_csv``)
- the ``values`` matrix returned by the Sheets values API (``table_from_values``)

Quoting follows a simple toggle: every ``"`` flips the in-quotes flag and is
dropped, a comma only separates fields outside quotes, and an unterminated
quote is closed by the end of the record. Spreadsheet cells may contain line
breaks; a physical line is joined onto the record before it while the joined
record still fits the header width, so a line-broken cell continues the
last cell and a short row that would overflow starts a row of its own.
"""

from typing import Any, Iterable, List, Optional, Sequence

from loguru import logger

from schedule_viewer.models.table import RawTable, RowRecord

QUOTE = '"'
DELIMITER = ","


def parse_csv_line(line: str, delimiter: str = DELIMITER) -> List[str]:
    """Splits one record into raw field values."""
    values: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == QUOTE:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    values.append("".join(current))

    return values


def _is_blank(values: Iterable[str]) -> bool:
    return not any(value.strip() for value in values)


def _opens_quote(text: str) -> bool:
    return text.count(QUOTE) % 2 == 1


def _continues(current: str, line: str, width: int) -> bool:
    """Whether ``line`` belongs to the record accumulated in ``current``.

    A line that is a full row on its own (``width`` fields, balanced quotes)
    always starts a new record, as does a line opening a quote while
    ``current`` has none open. Otherwise the line is part of the record only
    if the joined record still fits in ``width`` fields; a short row that
    would overflow the header is a row of its own.
    """
    if width <= 1:
        return False
    if len(parse_csv_line(line)) >= width and not _opens_quote(line):
        return False
    if _opens_quote(line) and not _opens_quote(current):
        return False
    return len(parse_csv_line(f"{current}\n{line}")) <= width


def _split_records(lines: Sequence[str], width: int) -> List[str]:
    """Groups physical lines into logical records of ``width`` columns."""
    records: List[str] = []
    current: Optional[str] = None

    for line in lines:
        if _is_blank(parse_csv_line(line)):
            continue
        if current is None:
            current = line
        elif _continues(current, line, width):
            current = f"{current}\n{line}"
        else:
            records.append(current)
            current = line

    if current is not None:
        records.append(current)
    return records


def _cell(value: Any) -> str:
    if value is None:
        return ""
    text = str(value)
    # Whitespace-only cells collapse to '', everything else keeps its line breaks
    return text if text.strip() else ""


def build_row(headers: Sequence[str], values: Sequence[Any]) -> RowRecord:
    """Aligns raw values to the headers, keeping the first value per label."""
    positional = [_cell(value) for value in list(values)[: len(headers)]]
    positional.extend([""] * (len(headers) - len(positional)))

    by_label: dict[str, str] = {}
    for header, value in zip(headers, positional):
        by_label.setdefault(header, value)

    return RowRecord(by_label=by_label, positional=positional)


def build_table(headers: Sequence[str], value_rows: Iterable[Sequence[Any]]) -> RawTable:
    """Builds a RawTable, dropping rows with no non-blank value."""
    rows: List[RowRecord] = []
    skipped = 0
    for values in value_rows:
        row = build_row(headers, values)
        if row.is_blank():
            skipped += 1
            continue
        rows.append(row)

    table = RawTable(headers=list(headers), rows=rows)
    if table.has_duplicate_headers:
        logger.debug(
            f"Duplicate header labels detected; later columns are positional only: {table.headers}"
        )
    logger.debug(f"Built table with {len(rows)} rows ({skipped} blank rows skipped)")
    return table


def parse_csv(text: str) -> RawTable:
    """Parses CSV export text into a RawTable."""
    lines = [line.rstrip("\r") for line in text.split("\n")]
    lines = [line for line in lines if line.strip()]
    if not lines:
        logger.warning("CSV text contained no non-empty lines.")
        return RawTable()

    headers = [header.strip() for header in parse_csv_line(lines[0])]
    records = _split_records(lines[1:], len(headers))
    return build_table(headers, (parse_csv_line(record) for record in records))


def table_from_values(values: Sequence[Sequence[Any]]) -> RawTable:
    """Converts a Sheets API ``values`` matrix (header row first) into a RawTable."""
    if not values:
        return RawTable()

    headers = [_cell(header).strip() for header in values[0]]
    return build_table(headers, values[1:])
