import csv
import io
from datetime import date

import pytest

from statement_categorizer.models import ColumnMapping, TransactionType
from statement_categorizer.parsing.formats import BANK_FORMATS, detect_format, get_format
from statement_categorizer.parsing.statement import StatementParser, read_rows

SBI_HEADERS = ["Txn Date", "Value Date", "Description", "Ref No./Cheque No.", "Debit", "Credit", "Balance"]
HDFC_HEADERS = ["Date", "Narration", "Chq./Ref.No.", "Value Dt", "Withdrawal Amt.", "Deposit Amt.", "Closing Balance"]
BOB_HEADERS = ["Transaction Date", "Transaction Particulars", "Withdrawals", "Deposits", "Balance"]


def _csv(headers: list[str], *rows: list[str]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def test_format_priority_order() -> None:
    names = [bank_format.name for bank_format in BANK_FORMATS]
    assert names == [
        "SBI",
        "HDFC Bank",
        "ICICI Bank",
        "Axis Bank",
        "Kotak Bank",
        "PNB",
        "Bank of Baroda",
        "Generic",
    ]


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        (SBI_HEADERS, "SBI"),
        (HDFC_HEADERS, "HDFC Bank"),
        (["Transaction Date", "Transaction Remarks", "Withdrawal Amount", "Deposit Amount"], "ICICI Bank"),
        (["Tran Date", "Particulars", "Debit Amount", "Credit Amount"], "Axis Bank"),
        (["Transaction Date", "Description", "Amount", "Dr / Cr", "Balance"], "Kotak Bank"),
        (["Tran Date", "Transaction Details", "Debit", "Credit"], "PNB"),
        (BOB_HEADERS, "Bank of Baroda"),
        (["date", "description", "amount"], "Generic"),
    ],
)
def test_detect_format(headers: list[str], expected: str) -> None:
    assert detect_format(headers).name == expected


def test_sbi_requires_reference_column() -> None:
    headers = [header for header in SBI_HEADERS if header != "Ref No./Cheque No."]
    assert detect_format(headers).name == "Generic"


def test_baroda_particulars_is_not_axis() -> None:
    assert detect_format(BOB_HEADERS).name == "Bank of Baroda"


def test_balance_alone_is_not_kotak() -> None:
    assert detect_format(["Date", "Details", "Amount", "Balance"]).name == "Generic"


def test_get_format_is_case_insensitive() -> None:
    assert get_format("hdfc bank").name == "HDFC Bank"
    assert get_format("missing") is None


def test_read_rows_dedupes_headers_and_skips_blank_lines() -> None:
    headers, rows = read_rows(b"\xef\xbb\xbfDate,,,Amount\n\n01/01/2023,a,b,10\n,,,\n02/01/2023,c\n")
    assert headers == ["Date", "", "_1", "Amount"]
    assert len(rows) == 2
    assert rows[1] == {"Date": "02/01/2023", "": "c", "_1": "", "Amount": ""}


def test_read_rows_keeps_quoted_values_as_text() -> None:
    headers, rows = read_rows('Date,Description,Amount\n01/01/2023,"SWIGGY, BLR","1,234.50"\n02/01/2023,UPI,007\n')
    assert headers == ["Date", "Description", "Amount"]
    assert rows[0]["Description"] == "SWIGGY, BLR"
    assert rows[0]["Amount"] == "1,234.50"
    assert rows[1]["Amount"] == "007"


def test_read_rows_repeated_named_headers() -> None:
    headers, _ = read_rows(b"Date,Amount,Amount\n01/01/2023,1,2\n")
    assert headers == ["Date", "Amount", "Amount_1"]


def test_read_rows_empty_input() -> None:
    assert read_rows(b"") == ([], [])
    assert read_rows(b"\n\n") == ([], [])


def test_sbi_round_trip() -> None:
    data = _csv(
        SBI_HEADERS,
        ["15 Jan 2023", "15 Jan 2023", "ATM WDL BANDRA WEST", "TXN00042", "500.00", "", "10000.00"],
    )

    result = StatementParser().parse(data)

    assert result.detected_format == "SBI"
    assert result.total_rows == 1
    assert len(result.transactions) == 1
    transaction = result.transactions[0]
    assert transaction.date == date(2023, 1, 15)
    assert transaction.amount == 500.00
    assert transaction.type == TransactionType.EXPENSE
    assert transaction.source == "SBI Savings Account"
    assert transaction.original_row["Ref No./Cheque No."] == "TXN00042"


def test_sbi_credit_row_is_income() -> None:
    data = _csv(SBI_HEADERS, ["16 Jan 2023", "16 Jan 2023", "NEFT REVERSAL", "R1", "", "1,250.00", "11250.00"])

    transaction = StatementParser().parse(data).transactions[0]

    assert transaction.amount == 1250.0
    assert transaction.type == TransactionType.INCOME


def test_split_amount_row_without_debit_or_credit_is_skipped() -> None:
    data = _csv(SBI_HEADERS, ["17 Jan 2023", "17 Jan 2023", "BALANCE B/F", "", "", "", "11250.00"])

    result = StatementParser().parse(data)

    assert result.transactions == []
    assert result.skipped_rows == 1


def test_hdfc_statement_with_short_years() -> None:
    data = _csv(
        HDFC_HEADERS,
        ["15/01/23", "UPI-SWIGGY-1234567890-paytm", "0000123", "15/01/23", "350.00", "", "9650.00"],
        ["16/01/23", "SALARY JAN 2023 ACME", "0000124", "16/01/23", "", "50,000.00", "59650.00"],
    )

    result = StatementParser().parse(data, declared_source="My HDFC")

    assert result.detected_format == "HDFC Bank"
    first, second = result.transactions
    assert first.date == date(2023, 1, 15)
    assert first.amount == 350.0
    assert first.merchant == "SWIGGY-paytm"
    assert first.type == TransactionType.EXPENSE
    assert first.source == "My HDFC"
    assert second.amount == 50000.0
    assert second.type == TransactionType.INCOME


def test_drop_accounting() -> None:
    data = _csv(
        ["date", "description", "amount"],
        ["2023-01-15", "Coffee", "-50"],
        ["not-a-date", "Bad date", "10"],
        ["2023-01-16", "Bad amount", "abc"],
        ["2023-01-17", "", "25"],
    )

    result = StatementParser().parse(data)

    assert result.detected_format == "Generic"
    assert result.total_rows == 4
    assert len(result.transactions) == 2
    assert result.skipped_rows == 2
    assert len(result.transactions) + result.skipped_rows == result.total_rows
    assert result.transactions[1].description == "Unknown Transaction"


def test_generic_merchant_column_wins_over_extraction() -> None:
    data = _csv(["date", "description", "amount", "merchant"], ["2023-02-01", "POS 4411 BLR", "-99", "Cafe Blue"])

    transaction = StatementParser().parse(data).transactions[0]

    assert transaction.merchant == "Cafe Blue"


def test_preview_rows_are_capped() -> None:
    rows = [[f"2023-01-{day:02d}", f"Item {day}", "-10"] for day in range(1, 9)]
    result = StatementParser(preview_rows=5).parse(_csv(["date", "description", "amount"], *rows))

    assert len(result.preview_rows) == 5
    assert result.total_rows == 8


def test_parse_with_mapping() -> None:
    data = _csv(["When", "What", "HowMuch", "Direction"], ["03/02/2023", "Rent March", "15000", "Dr"])
    mapping = ColumnMapping(
        date_column="When",
        description_column="What",
        amount_column="HowMuch",
        type_column="Direction",
    )

    result = StatementParser().parse_with_mapping(data, mapping)

    transaction = result.transactions[0]
    assert result.detected_format is None
    assert transaction.date == date(2023, 2, 3)
    assert transaction.amount == 15000.0
    assert transaction.type == TransactionType.EXPENSE
    assert transaction.source == "Manual Mapping"


def test_parse_with_mapping_skips_bad_rows() -> None:
    data = _csv(["d", "t", "a"], ["junk", "x", "1"], ["01/02/2023", "ok", "12"])
    mapping = ColumnMapping(date_column="d", description_column="t", amount_column="a")

    result = StatementParser().parse_with_mapping(data, mapping)

    assert len(result.transactions) == 1
    assert result.skipped_rows == 1


def test_empty_file_yields_empty_result() -> None:
    result = StatementParser().parse(b"")
    assert result.transactions == []
    assert result.total_rows == 0
