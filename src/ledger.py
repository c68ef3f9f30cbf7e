import dataclasses
import logging
from typing import Dict, Iterable, Optional

from models import (
    Chargeback,
    ClientAccount,
    Deposit,
    Dispute,
    DisputeStatus,
    Resolve,
    Transaction,
    TransactionRecord,
    TransactionType,
    Withdrawal,
)
from state import LedgerState

logger = logging.getLogger(__name__)


class LedgerStats:
    """Counters for applied and ignored transactions."""

    def __init__(self):
        self.applied = 0
        self.ignored = 0

    def record_applied(self):
        self.applied += 1

    def record_ignored(self):
        self.ignored += 1


class Ledger:
    """
    Applies transactions to client accounts in arrival order.

    Semantically invalid transactions (insufficient funds, unknown or duplicate
    tx, wrong client, bad dispute state, locked account) are ignored rather than
    raised, so one bad record never stops the replay. Every apply either commits
    its whole state transition or changes nothing.
    """

    def __init__(self, state: Optional[LedgerState] = None):
        self._state = state if state is not None else LedgerState()
        self.stats = LedgerStats()

    @property
    def accounts(self) -> Dict[int, ClientAccount]:
        """Snapshot of every referenced account, keyed by client id."""
        return {
            client_id: dataclasses.replace(account)
            for client_id, account in self._state.get_all_accounts().items()
        }

    def apply_all(self, transactions: Iterable[Transaction]) -> None:
        for transaction in transactions:
            self.apply(transaction)

    def apply(self, transaction: Transaction) -> None:
        account = self._state.get_or_create_account(transaction.client_id)

        if account.locked:
            self._ignore(transaction, "account is locked")
            return

        match transaction:
            case Deposit():
                applied = self._handle_deposit(account, transaction)
            case Withdrawal():
                applied = self._handle_withdrawal(account, transaction)
            case Dispute():
                applied = self._handle_dispute(account, transaction)
            case Resolve():
                applied = self._handle_resolve(account, transaction)
            case Chargeback():
                applied = self._handle_chargeback(account, transaction)
            case _:
                raise TypeError(f"not a transaction: {transaction!r}")

        if applied:
            self.stats.record_applied()

    def _ignore(self, transaction: Transaction, reason: str) -> bool:
        logger.debug(
            f"Ignoring {transaction.transaction_type.value} tx {transaction.transaction_id} "
            f"for client {transaction.client_id}: {reason}"
        )
        self.stats.record_ignored()
        return False

    def _handle_deposit(self, account: ClientAccount, transaction: Deposit) -> bool:
        if self._state.has_transaction(transaction.transaction_id):
            return self._ignore(transaction, "duplicate tx id")

        account.credit(transaction.amount)
        self._state.store_transaction(
            transaction.transaction_id,
            TransactionRecord(TransactionType.DEPOSIT, transaction.client_id, transaction.amount),
        )
        return True

    def _handle_withdrawal(self, account: ClientAccount, transaction: Withdrawal) -> bool:
        if self._state.has_transaction(transaction.transaction_id):
            return self._ignore(transaction, "duplicate tx id")

        if account.available < transaction.amount:
            return self._ignore(transaction, f"insufficient funds (available {account.available})")

        account.debit(transaction.amount)
        self._state.store_transaction(
            transaction.transaction_id,
            TransactionRecord(TransactionType.WITHDRAWAL, transaction.client_id, transaction.amount),
        )
        return True

    def _find_referenced(self, transaction: Transaction) -> Optional[TransactionRecord]:
        original = self._state.get_transaction(transaction.transaction_id)

        if original is None:
            self._ignore(transaction, "referenced tx not found")
            return None

        if original.client_id != transaction.client_id:
            self._ignore(transaction, f"referenced tx belongs to client {original.client_id}")
            return None

        return original

    def _handle_dispute(self, account: ClientAccount, transaction: Dispute) -> bool:
        original = self._find_referenced(transaction)
        if original is None:
            return False

        # Withdrawn funds already left the account, only deposits can be held
        if original.transaction_type != TransactionType.DEPOSIT:
            return self._ignore(transaction, "only deposits can be disputed")

        if original.status != DisputeStatus.NONE:
            return self._ignore(transaction, f"tx is {original.status.value}")

        account.hold(original.amount)
        original.status = DisputeStatus.DISPUTED
        return True

    def _handle_resolve(self, account: ClientAccount, transaction: Resolve) -> bool:
        original = self._find_referenced(transaction)
        if original is None:
            return False

        if original.status != DisputeStatus.DISPUTED:
            return self._ignore(transaction, "tx is not disputed")

        account.release_hold(original.amount)
        original.status = DisputeStatus.NONE
        return True

    def _handle_chargeback(self, account: ClientAccount, transaction: Chargeback) -> bool:
        original = self._find_referenced(transaction)
        if original is None:
            return False

        if original.status != DisputeStatus.DISPUTED:
            return self._ignore(transaction, "tx is not disputed")

        account.remove_held(original.amount)
        account.locked = True
        original.status = DisputeStatus.CHARGEBACKED
        return True
