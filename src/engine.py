import csv
import logging
from typing import Dict, Iterable, List, TextIO

from errors import InvalidTransactionError
from models import AccountSnapshot, ClientAccount, ProcessingResult, ProcessingStats, Transaction, format_amount, parse_transaction
from processor import TransactionProcessor
from state import StateManager

logger = logging.getLogger(__name__)

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]


class PaymentsEngine:
    """
    Applies a stream of transactions to client accounts, strictly in arrival order.

    A malformed record raises InvalidTransactionError and aborts the run; any
    other rejected record is logged and skipped.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def account_count(self) -> int:
        return self._state.account_count()

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing transactions from {filepath}")
        with open(filepath, "r", newline="", encoding="utf-8") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        """Process CSV rows from any text stream and return final account states."""
        reader = csv.DictReader(stream)
        return self.process_transactions(self._parse_rows(reader))

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """Apply already-parsed transactions in order and return final account states."""
        logger.info("Starting transaction processing")

        for transaction in transactions:
            result = self._processor.process(transaction)
            if result == ProcessingResult.SUCCESS:
                self._stats.record_success()
            else:
                self._stats.record_skip()

        logger.info(
            f"Processing complete: {self._stats.processed} processed, "
            f"{self._stats.skipped} skipped, {self.account_count} accounts"
        )
        return self._state.get_all_accounts()

    def snapshot(self) -> List[AccountSnapshot]:
        return [account.snapshot() for account in self._state.get_all_accounts().values()]

    def export_accounts(self, writer: TextIO) -> None:
        """Write the final account states as CSV to any text sink."""
        logger.info(f"Exporting {self.account_count} accounts")

        csv_writer = csv.writer(writer, lineterminator="\n")
        csv_writer.writerow(OUTPUT_FIELDS)
        for snapshot in self.snapshot():
            csv_writer.writerow([
                snapshot.client_id,
                format_amount(snapshot.available),
                format_amount(snapshot.held),
                format_amount(snapshot.total),
                str(snapshot.locked).lower(),
            ])

    def _parse_rows(self, reader: csv.DictReader) -> Iterable[Transaction]:
        # Rows are parsed lazily so each one is applied before the next is read.
        for row_number, row in self._read_rows(reader):
            try:
                yield parse_transaction(row)
            except InvalidTransactionError as e:
                raise e.at_row(row_number) from e

    def _read_rows(self, reader: csv.DictReader):
        row_number = 0
        try:
            for row in reader:
                row_number += 1
                yield row_number, row
        except (csv.Error, UnicodeDecodeError) as e:
            raise InvalidTransactionError(f"unreadable CSV input: {e}", row_number=row_number + 1) from e
