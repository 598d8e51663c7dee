import logging
from decimal import Decimal
from typing import Dict, Optional

from models import ClientAccount, DepositRecord

logger = logging.getLogger(__name__)


class StateManager:
    """
    State owned by a single engine instance.
    Stores client accounts and every applied deposit for dispute lookups.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}
        self._deposits: Dict[int, DepositRecord] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
            logger.debug(f"Created new account for client {client_id}")
        return account

    def store_deposit(self, transaction_id: int, client_id: int, amount: Decimal) -> None:
        """Record an applied deposit so it can be disputed later."""
        self._deposits[transaction_id] = DepositRecord(client_id=client_id, amount=amount)

    def get_deposit(self, transaction_id: int) -> Optional[DepositRecord]:
        """Retrieve stored deposit by transaction ID."""
        return self._deposits.get(transaction_id)

    def has_deposit(self, transaction_id: int) -> bool:
        return transaction_id in self._deposits

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def account_count(self) -> int:
        return len(self._accounts)
