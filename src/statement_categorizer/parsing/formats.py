"""
Bank statement format descriptors.

Formats are tried in ``BANK_FORMATS`` order and the first matching predicate
wins. Constrained formats come first and ``Generic`` always matches last.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass


HeaderPredicate = Callable[[Sequence[str]], bool]


def _norm(header: str | None) -> str:
    return (header or "").strip().lower()


def has_header(headers: Sequence[str], name: str) -> bool:
    target = name.strip().lower()
    return any(_norm(header) == target for header in headers)


def has_header_part(headers: Sequence[str], part: str) -> bool:
    target = part.lower()
    return any(target in _norm(header) for header in headers)


@dataclass(frozen=True)
class BankFormat:
    name: str
    source_label: str
    date_columns: tuple[str, ...]
    description_columns: tuple[str, ...]
    amount_columns: tuple[str, ...]
    detect: HeaderPredicate
    merchant_columns: tuple[str, ...] = ()
    type_columns: tuple[str, ...] = ()
    debit_columns: tuple[str, ...] = ()
    credit_columns: tuple[str, ...] = ()
    # Split formats have no signed amount column; rows need a debit or credit.
    split_amount: bool = False

    def matches(self, headers: Sequence[str]) -> bool:
        return self.detect(headers)


def _is_sbi(headers: Sequence[str]) -> bool:
    return (
        has_header(headers, "Txn Date")
        and has_header(headers, "Description")
        and has_header_part(headers, "Debit")
        and has_header_part(headers, "Credit")
        and has_header_part(headers, "Ref No.")
        and has_header(headers, "Balance")
    )


def _is_hdfc(headers: Sequence[str]) -> bool:
    if has_header_part(headers, "HDFC"):
        return True
    if has_header_part(headers, "Chq/Ref Number") or has_header_part(headers, "Chq./Ref.No."):
        return True
    if has_header(headers, "Narration"):
        return True
    # Exports with a broken header row come through as positional columns.
    return len(headers) > 15 and "_12" in headers and "_14" in headers


def _is_icici(headers: Sequence[str]) -> bool:
    return (
        has_header_part(headers, "ICICI")
        or has_header_part(headers, "Transaction Remarks")
        or has_header_part(headers, "Reference Number")
    )


def _is_axis(headers: Sequence[str]) -> bool:
    return (
        has_header_part(headers, "Axis")
        or has_header(headers, "Particulars")
        or has_header_part(headers, "Instrument Number")
    )


def _is_kotak(headers: Sequence[str]) -> bool:
    if has_header_part(headers, "Kotak"):
        return True
    has_dr_cr = has_header(headers, "Dr / Cr") or has_header(headers, "Dr/Cr")
    return has_dr_cr and has_header_part(headers, "Balance")


def _is_pnb(headers: Sequence[str]) -> bool:
    return has_header_part(headers, "PNB") or has_header(headers, "Tran Date")


def _is_bank_of_baroda(headers: Sequence[str]) -> bool:
    return has_header_part(headers, "Baroda") or has_header_part(headers, "Transaction Particulars")


BANK_FORMATS: tuple[BankFormat, ...] = (
    BankFormat(
        name="SBI",
        source_label="SBI Savings Account",
        date_columns=("Txn Date", "Value Date", "Transaction Date", "Date"),
        description_columns=("Description", "Remarks", "Narration", "Transaction Remarks"),
        amount_columns=("Amount", "Transaction Amount"),
        type_columns=("Type",),
        debit_columns=("Debit",),
        credit_columns=("Credit",),
        split_amount=True,
        detect=_is_sbi,
    ),
    BankFormat(
        name="HDFC Bank",
        source_label="HDFC Savings Account",
        date_columns=("Date", "Transaction Date", "Value Date", "", "_1"),
        description_columns=("Narration", "Description", "Transaction Details", "Particulars", "_1", "_2"),
        amount_columns=("Amount", "Transaction Amount"),
        type_columns=("Transaction Type", "Type"),
        debit_columns=("Debit Amount", "Withdrawal Amt", "_12"),
        credit_columns=("Credit Amount", "Deposit Amt", "_14"),
        split_amount=True,
        detect=_is_hdfc,
    ),
    BankFormat(
        name="ICICI Bank",
        source_label="ICICI Savings Account",
        date_columns=("Transaction Date", "Value Date", "Date"),
        description_columns=("Transaction Remarks", "Description", "Narration"),
        amount_columns=("Amount",),
        type_columns=("Transaction Type",),
        debit_columns=("Debit Amount", "Withdrawal Amount"),
        credit_columns=("Credit Amount", "Deposit Amount"),
        detect=_is_icici,
    ),
    BankFormat(
        name="Axis Bank",
        source_label="Axis Savings Account",
        date_columns=("Transaction Date", "Tran Date", "Date"),
        description_columns=("Particulars", "Description", "Transaction Details"),
        amount_columns=("Amount",),
        debit_columns=("Debit Amount",),
        credit_columns=("Credit Amount",),
        detect=_is_axis,
    ),
    BankFormat(
        name="Kotak Bank",
        source_label="Kotak Savings Account",
        date_columns=("Transaction Date", "Date"),
        description_columns=("Description", "Narration", "Transaction Description"),
        amount_columns=("Amount",),
        type_columns=("Dr / Cr", "Dr/Cr"),
        debit_columns=("Debit Amount",),
        credit_columns=("Credit Amount",),
        detect=_is_kotak,
    ),
    BankFormat(
        name="PNB",
        source_label="PNB Savings Account",
        date_columns=("Tran Date", "Transaction Date", "Date"),
        description_columns=("Transaction Details", "Description", "Narration"),
        amount_columns=("Amount",),
        debit_columns=("Debit",),
        credit_columns=("Credit",),
        detect=_is_pnb,
    ),
    BankFormat(
        name="Bank of Baroda",
        source_label="Bank of Baroda Savings Account",
        date_columns=("Transaction Date", "Date"),
        description_columns=("Transaction Particulars", "Description", "Remarks"),
        amount_columns=("Amount",),
        debit_columns=("Debit Amount", "Withdrawals"),
        credit_columns=("Credit Amount", "Deposits"),
        detect=_is_bank_of_baroda,
    ),
    BankFormat(
        name="Generic",
        source_label="Bank Statement",
        date_columns=("date", "transaction_date", "Transaction Date"),
        description_columns=("description", "memo", "payee", "narration", "details"),
        amount_columns=("amount",),
        merchant_columns=("merchant", "payee"),
        type_columns=("type",),
        debit_columns=("debit", "withdrawal"),
        credit_columns=("credit", "deposit"),
        detect=lambda headers: True,
    ),
)


def detect_format(headers: Sequence[str], formats: Sequence[BankFormat] = BANK_FORMATS) -> BankFormat | None:
    for bank_format in formats:
        if bank_format.matches(headers):
            return bank_format
    return None


def get_format(name: str, formats: Sequence[BankFormat] = BANK_FORMATS) -> BankFormat | None:
    lowered = name.strip().lower()
    for bank_format in formats:
        if bank_format.name.lower() == lowered:
            return bank_format
    return None
