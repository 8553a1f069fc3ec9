import logging
from dataclasses import dataclass
from typing import Callable

from errors import ErrorKind, LedgerError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    """One rejected record, as reported on the side channel."""

    error_kind: ErrorKind
    transaction_id: int
    client_id: int
    message: str

    @classmethod
    def from_error(cls, error: LedgerError) -> "Diagnostic":
        return cls(
            error_kind=error.kind,
            transaction_id=error.transaction_id,
            client_id=error.client_id,
            message=error.message,
        )


DiagnosticSink = Callable[[Diagnostic], None]


def log_diagnostic(diagnostic: Diagnostic) -> None:
    """Default sink: one warning per rejected record."""
    logger.warning(
        f"Rejected tx {diagnostic.transaction_id} for client {diagnostic.client_id}: "
        f"{diagnostic.error_kind.value} ({diagnostic.message})"
    )
