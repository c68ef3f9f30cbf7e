from typing import Dict, Optional

from models import ClientAccount, TransactionRecord


class LedgerState:
    """
    Account and history storage for a single replay.
    Stores client accounts and deposit/withdrawal history for dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transactions: Dict[int, TransactionRecord] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        if client_id not in self._accounts:
            self._accounts[client_id] = ClientAccount(client_id=client_id)
        return self._accounts[client_id]

    def store_transaction(self, transaction_id: int, record: TransactionRecord) -> None:
        """Store history entry for future dispute lookups."""
        self._transactions[transaction_id] = record

    def get_transaction(self, transaction_id: int) -> Optional[TransactionRecord]:
        """Retrieve stored history entry by ID."""
        return self._transactions.get(transaction_id)

    def has_transaction(self, transaction_id: int) -> bool:
        return transaction_id in self._transactions

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)
