import logging
from typing import Iterable, Optional

from diagnostics import Diagnostic, DiagnosticSink, log_diagnostic
from errors import InvalidAmountError, LedgerError, MalformedRecordError
from ledger import Ledger
from models import ProcessingResult, ProcessingStats, Transaction, TransactionType

logger = logging.getLogger(__name__)


class TransactionEngine:
    """
    Drives a Ledger from an ordered stream of transaction records.

    Records are applied strictly in arrival order, one at a time. A rejected
    record is reported to the diagnostic sink and skipped; it never stops the
    stream.
    """

    def __init__(self, ledger: Optional[Ledger] = None, sink: DiagnosticSink = log_diagnostic):
        self._ledger = ledger if ledger is not None else Ledger()
        self._sink = sink
        self._stats = ProcessingStats()

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process(self, transactions: Iterable[Transaction]) -> Ledger:
        """Apply every record in order and return the ledger for snapshotting."""
        logger.info("Starting transaction processing")

        for transaction in transactions:
            self.process_transaction(transaction)

        logger.info(f"Processed: {self._stats.processed}, Failed: {self._stats.failed}")
        for kind, count in sorted(self._stats.failures_by_kind.items(), key=lambda item: item[0].value):
            logger.info(f"  {kind.value}: {count}")

        return self._ledger

    def process_transaction(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single record.

        Returns:
            SUCCESS: Applied to the ledger
            REJECTED: Reported to the diagnostic sink, ledger untouched
        """
        try:
            self._validate_shape(transaction)
            self._dispatch(transaction)
        except LedgerError as e:
            self._stats.record_failure(e.kind)
            self._sink(Diagnostic.from_error(e))
            return ProcessingResult.REJECTED

        self._stats.record_success()
        return ProcessingResult.SUCCESS

    def _validate_shape(self, transaction: Transaction) -> None:
        if transaction.transaction_type.carries_amount:
            if transaction.amount is None or transaction.amount <= 0:
                raise InvalidAmountError(
                    transaction.transaction_id,
                    transaction.client_id,
                    f"{transaction.transaction_type.value} requires a positive amount, got {transaction.amount}",
                )
        elif transaction.amount is not None:
            raise MalformedRecordError(
                transaction.transaction_id,
                transaction.client_id,
                f"{transaction.transaction_type.value} must not carry an amount (got {transaction.amount})",
            )

    def _dispatch(self, transaction: Transaction) -> None:
        transaction_id = transaction.transaction_id
        client_id = transaction.client_id

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._ledger.deposit(transaction_id, client_id, transaction.amount)
            case TransactionType.WITHDRAWAL:
                self._ledger.withdraw(transaction_id, client_id, transaction.amount)
            case TransactionType.DISPUTE:
                self._ledger.dispute(transaction_id, client_id)
            case TransactionType.RESOLVE:
                self._ledger.resolve(transaction_id, client_id)
            case TransactionType.CHARGEBACK:
                self._ledger.chargeback(transaction_id, client_id)
