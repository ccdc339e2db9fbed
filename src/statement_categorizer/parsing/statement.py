import io
from collections.abc import Sequence
from datetime import date

import pandas as pd
from pandas.errors import EmptyDataError

from statement_categorizer.logger import get_logger
from statement_categorizer.models import (
    ColumnMapping,
    ParsedTransaction,
    StatementParseResult,
)
from statement_categorizer.parsing.formats import BANK_FORMATS, BankFormat, detect_format
from statement_categorizer.parsing.values import (
    apply_direction,
    determine_transaction_type,
    explicit_type,
    extract_merchant,
    find_column_value,
    parse_amount,
    parse_date,
    resolve_debit_credit,
)

logger = get_logger(__name__)

UNKNOWN_DESCRIPTION = "Unknown Transaction"
MANUAL_MAPPING_SOURCE = "Manual Mapping"
PREVIEW_ROWS = 5

Row = dict[str, str]


def _dedupe_headers(raw_headers: Sequence[str]) -> list[str]:
    # Repeated names (including blanks) get a numeric suffix: "", "_1", "_2".
    seen: dict[str, int] = {}
    headers: list[str] = []
    for header in raw_headers:
        count = seen.get(header, 0)
        headers.append(header if count == 0 else f"{header}_{count}")
        seen[header] = count + 1
    return headers


def _read_frame(csv_bytes: bytes | str) -> pd.DataFrame:
    # Positional columns; the first non-blank row is promoted to headers below.
    options = dict(
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        engine="python",
        # Rows wider than the header keep their leading fields.
        on_bad_lines=lambda fields: fields,
    )
    if isinstance(csv_bytes, str):
        return pd.read_csv(io.StringIO(csv_bytes), **options)
    return pd.read_csv(io.BytesIO(csv_bytes), encoding="utf-8-sig", encoding_errors="replace", **options)


def read_rows(csv_bytes: bytes | str) -> tuple[list[str], list[Row]]:
    """Split CSV text into a header list and one dict per non-blank data row."""
    try:
        frame = _read_frame(csv_bytes)
    except EmptyDataError:
        return [], []

    frame = frame.fillna("")
    frame = frame[frame.apply(lambda values: any(str(value).strip() for value in values), axis=1)]
    if frame.empty:
        return [], []

    headers = _dedupe_headers([str(value) for value in frame.iloc[0]])
    body = frame.iloc[1:].set_axis(headers, axis=1)
    return headers, body.to_dict(orient="records")


class StatementParser:
    """
    Turns bank CSV exports into ``ParsedTransaction`` records.

    Rows that cannot be read (bad date, bad amount, missing columns) are
    dropped and counted; they never fail the statement.
    """

    def __init__(self, formats: Sequence[BankFormat] = BANK_FORMATS, preview_rows: int = PREVIEW_ROWS):
        self.formats = tuple(formats)
        self.preview_rows = preview_rows

    def detect_format(self, headers: Sequence[str]) -> BankFormat | None:
        return detect_format(headers, self.formats)

    def parse(self, csv_bytes: bytes | str, declared_source: str | None = None) -> StatementParseResult:
        headers, rows = read_rows(csv_bytes)
        bank_format = self.detect_format(headers)
        logger.info(
            "[CSV] Detected format '%s' for %d rows (headers: %s)",
            bank_format.name if bank_format else "none",
            len(rows),
            ", ".join(headers),
        )

        transactions: list[ParsedTransaction] = []
        if bank_format:
            source = declared_source or bank_format.source_label
            for index, row in enumerate(rows):
                parsed = self.parse_row(row, bank_format, source)
                if parsed:
                    transactions.append(parsed)
                else:
                    logger.debug("[CSV] Skipped row %d: %s", index + 1, row)

        skipped = len(rows) - len(transactions)
        if skipped:
            logger.info("[CSV] Skipped %d of %d rows", skipped, len(rows))

        return StatementParseResult(
            detected_format=bank_format.name if bank_format else None,
            transactions=transactions,
            headers=headers,
            preview_rows=rows[:self.preview_rows],
            total_rows=len(rows),
            skipped_rows=skipped,
        )

    def parse_with_mapping(
        self,
        csv_bytes: bytes | str,
        mapping: ColumnMapping,
        declared_source: str | None = None,
    ) -> StatementParseResult:
        headers, rows = read_rows(csv_bytes)
        source = declared_source or MANUAL_MAPPING_SOURCE

        transactions: list[ParsedTransaction] = []
        for row in rows:
            parsed = self._parse_mapped_row(row, mapping, source)
            if parsed:
                transactions.append(parsed)

        return StatementParseResult(
            detected_format=None,
            transactions=transactions,
            headers=headers,
            preview_rows=rows[:self.preview_rows],
            total_rows=len(rows),
            skipped_rows=len(rows) - len(transactions),
        )

    def parse_row(self, row: Row, bank_format: BankFormat, source: str) -> ParsedTransaction | None:
        parsed_date = parse_date(find_column_value(row, bank_format.date_columns))
        if not parsed_date:
            return None

        description = find_column_value(row, bank_format.description_columns) or UNKNOWN_DESCRIPTION

        amount_value = None
        if bank_format.debit_columns or bank_format.credit_columns:
            amount_value = resolve_debit_credit(row, bank_format.debit_columns, bank_format.credit_columns)
        if amount_value is None:
            if bank_format.split_amount:
                return None
            amount_value = find_column_value(row, bank_format.amount_columns)

        amount = parse_amount(amount_value)
        if amount is None:
            return None

        direction = find_column_value(row, bank_format.type_columns) if bank_format.type_columns else None
        amount = apply_direction(amount, direction)

        if bank_format.merchant_columns:
            merchant = find_column_value(row, bank_format.merchant_columns)
        else:
            merchant = extract_merchant(description)

        return self._build(row, parsed_date, description, amount, merchant, direction, source)

    def _parse_mapped_row(self, row: Row, mapping: ColumnMapping, source: str) -> ParsedTransaction | None:
        parsed_date = parse_date(row.get(mapping.date_column))
        if not parsed_date:
            return None

        description = row.get(mapping.description_column) or UNKNOWN_DESCRIPTION
        amount = parse_amount(row.get(mapping.amount_column))
        if amount is None:
            return None

        direction = row.get(mapping.type_column) if mapping.type_column else None
        amount = apply_direction(amount, direction)
        merchant = row.get(mapping.merchant_column) if mapping.merchant_column else None
        return self._build(row, parsed_date, description, amount, merchant, direction, source)

    @staticmethod
    def _build(
        row: Row,
        parsed_date: date,
        description: str,
        amount: float,
        merchant: str | None,
        type_value: str | None,
        source: str,
    ) -> ParsedTransaction:
        description = description.strip() or UNKNOWN_DESCRIPTION
        transaction_type = explicit_type(type_value) or determine_transaction_type(description, amount)
        merchant = merchant.strip() if merchant else None
        return ParsedTransaction(
            date=parsed_date,
            description=description,
            amount=abs(amount),
            merchant=merchant or None,
            type=transaction_type,
            source=source,
            original_row=dict(row),
        )
