import csv
import logging
from typing import Iterator, List, TextIO

from models import MalformedRecord, Transaction, parse_transaction

logger = logging.getLogger(__name__)

EXPECTED_HEADER = ["type", "client", "tx", "amount"]


class InvalidHeader(ValueError):
    """Raised when the first CSV row is not `type, client, tx, amount`."""


class TransactionReader:
    """
    Iterates the transactions of a CSV stream in file order.

    Rows are decoded in two steps: the type column is read first, then the
    remaining columns are interpreted for that transaction kind. Malformed rows
    are logged and skipped unless ``abort_on_malformed`` is set, in which case
    the MalformedRecord propagates to the caller. I/O and CSV syntax errors
    always propagate.
    """

    def __init__(self, stream: TextIO, strict: bool = False, abort_on_malformed: bool = False):
        self._reader = csv.reader(stream)
        self._strict = strict
        self._abort_on_malformed = abort_on_malformed
        self.skipped = 0
        self._check_header()

    def _check_header(self) -> None:
        header = []
        for row in self._reader:
            header = [field.strip() for field in row]
            if any(header):
                break
        if header != EXPECTED_HEADER:
            raise InvalidHeader(f"expected header {', '.join(EXPECTED_HEADER)}, got {header}")

    def __iter__(self) -> Iterator[Transaction]:
        for row in self._reader:
            fields = [field.strip() for field in row]
            if not any(fields):
                continue

            try:
                yield self._decode_row(fields)
            except MalformedRecord as e:
                if self._abort_on_malformed:
                    raise MalformedRecord(f"line {self._reader.line_num}: {e}") from e
                self.skipped += 1
                logger.warning(f"Skipping malformed row on line {self._reader.line_num} {row}: {e}")

    def _decode_row(self, fields: List[str]) -> Transaction:
        if len(fields) < 3:
            raise MalformedRecord(f"expected at least 3 fields, got {len(fields)}")
        while len(fields) > 4 and not fields[-1]:
            fields.pop()
        if len(fields) > 4:
            raise MalformedRecord(f"expected at most 4 fields, got {len(fields)}")

        type_tag, client, tx = fields[:3]
        amount = fields[3] if len(fields) == 4 else None
        return parse_transaction(type_tag, client, tx, amount, strict=self._strict)
