from __future__ import annotations

import csv
from dataclasses import dataclass
from io import StringIO
from typing import Optional

from flask import current_app

from gridbase.errors import ParseError, ValidationError
from gridbase.extensions import db
from gridbase.models import Cell, TableRow
from gridbase.services.ordering import allocate_orders
from gridbase.services.row_service import check_row_limit
from gridbase.tenancy import RequestContext, require_table


@dataclass(frozen=True)
class ParsedCsv:
    header: list[str]
    records: list[dict[str, str]]


def _detect_delimiter(text: str) -> str:
    """Pick ';' or ',' from the header line; values may contain either."""
    header = next((line for line in text.splitlines() if line.strip()), "")
    return ";" if header.count(";") > header.count(",") else ","


def parse_csv(data: bytes) -> ParsedCsv:
    """Parse delimited text with a header row.

    Separator is ',' or ';'. Blank lines are skipped. Every problem found is
    reported at once as ParseError details ``{line, code, message}``; a file
    with any error yields no records.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(details=[{"line": None, "code": "InvalidEncoding", "message": str(e)}])

    reader = csv.reader(StringIO(text, newline=""), delimiter=_detect_delimiter(text), strict=True)
    header: Optional[list[str]] = None
    records = []
    errors = []
    try:
        for fields in reader:
            if not fields or all(not f.strip() for f in fields):
                continue
            if header is None:
                header = list(fields)
                continue
            if len(fields) != len(header):
                code = "TooManyFields" if len(fields) > len(header) else "TooFewFields"
                errors.append({
                    "line": reader.line_num,
                    "code": code,
                    "message": f"Expected {len(header)} fields but parsed {len(fields)}",
                })
                continue
            records.append(dict(zip(header, fields)))
    except csv.Error as e:
        errors.append({"line": reader.line_num, "code": "MalformedQuotes", "message": str(e)})

    if header is None:
        errors.append({"line": 1, "code": "MissingHeader", "message": "File has no header row"})
    if errors:
        raise ParseError(details=errors)
    return ParsedCsv(header=header, records=records)


def import_csv(ctx: RequestContext, table_id: int, data: Optional[bytes]) -> int:
    """
    Append every data row of a CSV file to the table in one transaction.

    Header cells are matched to column names exactly; unmatched headers are
    ignored and columns absent from the file get null cells.

    Returns:
        Number of rows imported
    """
    table = require_table(ctx, table_id)
    if data is None:
        raise ValidationError("No file provided", details=[{"field": "file", "message": "file is required"}])

    parsed = parse_csv(data)
    columns = list(table.columns)

    try:
        orders = allocate_orders(TableRow, table_id, len(parsed.records))
        check_row_limit(table, len(parsed.records))
        rows = []
        for order, record in zip(orders, parsed.records):
            row = TableRow(table_id=table_id, order=order)
            for column in columns:
                row.cells.append(Cell(column_id=column.id, value=record.get(column.name) or None))
            rows.append(row)
        db.session.add_all(rows)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(f"Imported {len(rows)} rows into table {table_id}")
    return len(rows)
