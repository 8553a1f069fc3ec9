import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from models import AccountSnapshot, Transaction, TransactionType

logger = logging.getLogger(__name__)

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """
    Lazily decode CSV rows into Transactions.
    Rows that cannot be decoded are logged and skipped.
    """
    reader = csv.DictReader(stream)
    for row in reader:
        transaction = _parse_csv_row(row, reader.line_num)
        if transaction:
            yield transaction


def read_transactions_from_file(filepath: str) -> Iterator[Transaction]:
    with open(filepath, "r", newline="") as f:
        yield from read_transactions(f)


def _parse_csv_row(row: Dict[Optional[str], object], line_num: int) -> Optional[Transaction]:
    """Parse CSV row into Transaction."""
    try:
        # Extra trailing columns land under the None key; short rows have None values.
        normalized = {k.strip(): (v or "").strip() for k, v in row.items() if k is not None}

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_id(normalized["client"], "client")
        transaction_id = _parse_id(normalized["tx"], "tx")

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            amount = Decimal(amount_str)
            if not amount.is_finite():
                raise ValueError(f"amount must be finite, got {amount_str}")

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError, InvalidOperation) as e:
        logger.warning(f"Failed to parse row {line_num} {row}: {e!r}")
        return None


def _parse_id(value: str, field: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise ValueError(f"{field} must be unsigned, got {value}")
    return parsed


def format_decimal(value: Decimal) -> str:
    """Format decimal without exponent, removing trailing zeros."""
    normalized = value.normalize()
    return f"{normalized:f}"


def write_accounts(accounts: Iterable[AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in accounts:
        writer.writerow([
            account.client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])
