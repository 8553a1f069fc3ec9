import logging
from decimal import Context, Decimal, Inexact, InvalidOperation, Overflow, localcontext
from typing import Dict, Optional, Set, Tuple

from errors import (
    AccountLockedError,
    AccountNotFoundError,
    ClientMismatchError,
    DuplicateTransactionError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidStateError,
    TransactionNotFoundError,
)
from models import AccountSnapshot, ClientAccount, DisputableEntry, DisputeState

logger = logging.getLogger(__name__)

# Balance arithmetic must be exact: any rounding or overflow rejects the record.
BALANCE_CONTEXT = Context(prec=28, traps=[InvalidOperation, Overflow, Inexact])


class Ledger:
    """
    Owns client accounts and the deposits that may later be disputed.

    Every operation validates before it mutates: a raised LedgerError leaves
    accounts, entries and known transaction ids exactly as they were.
    Balances never go negative, and total is always available + held.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._entries: Dict[int, DisputableEntry] = {}
        self._applied_transaction_ids: Set[int] = set()

    def deposit(self, transaction_id: int, client_id: int, amount: Decimal) -> None:
        """Credit a client, opening the account on first sight."""
        if transaction_id in self._applied_transaction_ids:
            raise DuplicateTransactionError(transaction_id, client_id, f"transaction {transaction_id} already applied")

        if amount is None or amount <= 0:
            raise InvalidAmountError(transaction_id, client_id, f"deposit amount must be positive, got {amount}")

        account = self._accounts.get(client_id)
        if account is not None:
            self._require_unlocked(transaction_id, account)

        new_account = account is None
        if new_account:
            account = ClientAccount(client_id=client_id)
        self._require_exact(transaction_id, account, available_change=amount)

        if new_account:
            self._accounts[client_id] = account
        account.credit(amount)
        self._entries[transaction_id] = DisputableEntry(client_id=client_id, amount=amount)
        self._applied_transaction_ids.add(transaction_id)

    def withdraw(self, transaction_id: int, client_id: int, amount: Decimal) -> None:
        if transaction_id in self._applied_transaction_ids:
            raise DuplicateTransactionError(transaction_id, client_id, f"transaction {transaction_id} already applied")

        account = self._accounts.get(client_id)
        if account is None:
            raise AccountNotFoundError(transaction_id, client_id, f"no account for client {client_id}")

        self._require_unlocked(transaction_id, account)

        if amount is None or amount <= 0:
            raise InvalidAmountError(transaction_id, client_id, f"withdrawal amount must be positive, got {amount}")

        if account.available < amount:
            raise InsufficientFundsError(
                transaction_id, client_id, f"available {account.available} is less than requested {amount}"
            )

        self._require_exact(transaction_id, account, available_change=amount.copy_negate())
        account.debit(amount)
        self._applied_transaction_ids.add(transaction_id)

    def dispute(self, transaction_id: int, client_id: int) -> None:
        """Move a deposit's amount from available to held."""
        account, entry = self._find_entry(transaction_id, client_id)
        self._check_transition(transaction_id, client_id, entry, DisputeState.NORMAL)
        self._require_unlocked(transaction_id, account)

        if account.available < entry.amount:
            raise InsufficientFundsError(
                transaction_id, client_id, f"available {account.available} cannot cover disputed {entry.amount}"
            )

        self._require_exact(
            transaction_id, account, available_change=entry.amount.copy_negate(), held_change=entry.amount
        )
        account.hold(entry.amount)
        entry.state = DisputeState.DISPUTED

    def resolve(self, transaction_id: int, client_id: int) -> None:
        """Release a disputed deposit back to available."""
        account, entry = self._find_entry(transaction_id, client_id)
        self._check_transition(transaction_id, client_id, entry, DisputeState.DISPUTED)
        self._require_unlocked(transaction_id, account)

        self._require_exact(
            transaction_id, account, available_change=entry.amount, held_change=entry.amount.copy_negate()
        )
        account.release_hold(entry.amount)
        entry.state = DisputeState.NORMAL

    def chargeback(self, transaction_id: int, client_id: int) -> None:
        """Reverse a disputed deposit and lock the account for good."""
        account, entry = self._find_entry(transaction_id, client_id)
        self._check_transition(transaction_id, client_id, entry, DisputeState.DISPUTED)
        self._require_unlocked(transaction_id, account)

        self._require_exact(transaction_id, account, held_change=entry.amount.copy_negate())
        account.remove_held(entry.amount)
        account.locked = True
        entry.state = DisputeState.CHARGED_BACK
        logger.info(f"Chargeback of tx {transaction_id}: account {client_id} locked")

    def snapshot(self) -> Tuple[AccountSnapshot, ...]:
        """Return all accounts ordered by client id (for final output)."""
        return tuple(self._accounts[client_id].to_snapshot() for client_id in sorted(self._accounts))

    def account(self, client_id: int) -> Optional[AccountSnapshot]:
        account = self._accounts.get(client_id)
        return account.to_snapshot() if account is not None else None

    def entry_state(self, transaction_id: int) -> Optional[DisputeState]:
        entry = self._entries.get(transaction_id)
        return entry.state if entry is not None else None

    def __len__(self) -> int:
        return len(self._accounts)

    def _find_entry(self, transaction_id: int, client_id: int) -> Tuple[ClientAccount, DisputableEntry]:
        # Only deposits have entries, so disputing a withdrawal lands here as not found.
        entry = self._entries.get(transaction_id)
        if entry is None:
            raise TransactionNotFoundError(transaction_id, client_id, f"no disputable transaction {transaction_id}")

        if entry.client_id != client_id:
            raise ClientMismatchError(
                transaction_id, client_id, f"transaction {transaction_id} belongs to client {entry.client_id}"
            )

        return self._accounts[client_id], entry

    @staticmethod
    def _check_transition(
        transaction_id: int, client_id: int, entry: DisputableEntry, required: DisputeState
    ) -> None:
        if entry.state != required:
            raise InvalidStateError(
                transaction_id,
                client_id,
                f"transaction {transaction_id} is {entry.state.value}, expected {required.value}",
            )

    @staticmethod
    def _require_unlocked(transaction_id: int, account: ClientAccount) -> None:
        if account.locked:
            raise AccountLockedError(transaction_id, account.client_id, f"account {account.client_id} is locked")

    @staticmethod
    def _require_exact(
        transaction_id: int,
        account: ClientAccount,
        available_change: Decimal = Decimal("0"),
        held_change: Decimal = Decimal("0"),
    ) -> None:
        """Reject a change whose new balances cannot be represented exactly."""
        try:
            with localcontext(BALANCE_CONTEXT):
                available = account.available + available_change
                held = account.held + held_change
                # total is derived on read, so it must be exact too
                available + held
        except (Inexact, Overflow, InvalidOperation) as e:
            raise InvalidAmountError(
                transaction_id,
                account.client_id,
                f"amount cannot be applied exactly ({type(e).__name__})",
            ) from e
