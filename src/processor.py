import logging

from errors import (
    AccountLockedError,
    AlreadyChargedBackError,
    AlreadyUnderDisputeError,
    ClientMismatchError,
    DuplicateTransactionError,
    NotUnderDisputeError,
    ProcessingError,
    TransactionNotFoundError,
)
from models import ClientAccount, DepositRecord, DisputeState, ProcessingResult, Transaction, TransactionType
from state import StateManager

logger = logging.getLogger(__name__)


class TransactionProcessor:
    """
    Processes transactions against state, one at a time, in arrival order.
    Soft errors are raised as ProcessingError subclasses by apply() and
    turned into a logged ProcessingResult by process().
    """

    def __init__(self, state: StateManager):
        self._state = state

    def process(self, transaction: Transaction) -> ProcessingResult:
        """
        Process a single transaction.

        Returns:
            SUCCESS: Applied to the account
            REJECTED: Skipped with a soft error, no state changed
        """
        try:
            self.apply(transaction)
        except ProcessingError as e:
            logger.warning(f"Skipped {transaction}: {e}")
            return ProcessingResult.REJECTED
        return ProcessingResult.SUCCESS

    def apply(self, transaction: Transaction) -> None:
        """Apply a transaction, raising ProcessingError if it must be skipped."""
        logger.debug(f"Processing {transaction}")
        # Every record materializes its client's account, even one that is then rejected.
        account = self._state.get_or_create_account(transaction.client_id)

        match transaction.transaction_type:
            case TransactionType.DEPOSIT:
                self._handle_deposit(account, transaction)
            case TransactionType.WITHDRAWAL:
                self._handle_withdrawal(account, transaction)
            case TransactionType.DISPUTE:
                self._handle_dispute(account, transaction)
            case TransactionType.RESOLVE:
                self._handle_resolve(account, transaction)
            case TransactionType.CHARGEBACK:
                self._handle_chargeback(account, transaction)

    def _handle_deposit(self, account: ClientAccount, transaction: Transaction) -> None:
        if account.locked:
            raise AccountLockedError(account.client_id)

        if self._state.has_deposit(transaction.transaction_id):
            raise DuplicateTransactionError(transaction.transaction_id)

        account.credit(transaction.amount)
        self._state.store_deposit(transaction.transaction_id, account.client_id, transaction.amount)

    def _handle_withdrawal(self, account: ClientAccount, transaction: Transaction) -> None:
        if account.locked:
            raise AccountLockedError(account.client_id)

        account.debit(transaction.amount)

    def _handle_dispute(self, account: ClientAccount, transaction: Transaction) -> None:
        deposit = self._find_deposit(transaction)

        if deposit.state == DisputeState.DISPUTED:
            raise AlreadyUnderDisputeError(transaction.transaction_id)
        if deposit.state == DisputeState.CHARGED_BACK:
            raise AlreadyChargedBackError(transaction.transaction_id)

        if account.locked:
            raise AccountLockedError(account.client_id)

        account.hold(deposit.amount)
        deposit.state = DisputeState.DISPUTED

    def _handle_resolve(self, account: ClientAccount, transaction: Transaction) -> None:
        deposit = self._find_disputed_deposit(transaction)

        if account.locked:
            raise AccountLockedError(account.client_id)

        account.release(deposit.amount)
        deposit.state = DisputeState.CLEAN

    def _handle_chargeback(self, account: ClientAccount, transaction: Transaction) -> None:
        deposit = self._find_disputed_deposit(transaction)

        if account.locked:
            raise AccountLockedError(account.client_id)

        account.remove_held_and_lock(deposit.amount)
        deposit.state = DisputeState.CHARGED_BACK
        logger.info(f"Chargeback on tx {transaction.transaction_id}: account {account.client_id} locked")

    def _find_deposit(self, transaction: Transaction) -> DepositRecord:
        deposit = self._state.get_deposit(transaction.transaction_id)

        if deposit is None:
            raise TransactionNotFoundError(transaction.transaction_id)

        if deposit.client_id != transaction.client_id:
            raise ClientMismatchError(transaction.transaction_id, deposit.client_id, transaction.client_id)

        return deposit

    def _find_disputed_deposit(self, transaction: Transaction) -> DepositRecord:
        deposit = self._find_deposit(transaction)

        if deposit.state == DisputeState.CLEAN:
            raise NotUnderDisputeError(transaction.transaction_id)
        if deposit.state == DisputeState.CHARGED_BACK:
            raise AlreadyChargedBackError(transaction.transaction_id)

        return deposit
