import csv
import sys
import logging

from pydantic import ValidationError

from config import config
from ledger import Ledger
from models import MalformedRecord
from reader import InvalidHeader, TransactionReader
from report import write_accounts

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv if argv is None else argv
    if len(argv) != 2:
        print("Usage: ledger-replay <input.csv>", file=sys.stderr)
        return 1

    try:
        settings = config()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    filepath = argv[1]
    ledger = Ledger()
    try:
        with open(filepath, "r", newline="") as f:
            reader = TransactionReader(
                f, strict=settings.strict, abort_on_malformed=settings.abort_on_malformed
            )
            ledger.apply_all(reader)
    except (InvalidHeader, MalformedRecord, OSError, csv.Error) as e:
        logger.error(f"Failed to replay {filepath}: {e}")
        return 1

    logger.info(
        f"Applied: {ledger.stats.applied}, "
        f"Ignored: {ledger.stats.ignored}, "
        f"Malformed rows skipped: {reader.skipped}"
    )

    write_accounts(ledger.accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
