import csv
from decimal import Context, Decimal, ROUND_DOWN
from typing import Dict, TextIO

from models import AMOUNT_PRECISION, ClientAccount

OUTPUT_HEADER = ["client", "available", "held", "total", "locked"]


def format_amount(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    # Wide enough for every integer digit plus four fractional ones
    context = Context(prec=max(28, value.adjusted() + 5))
    truncated = value.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN, context=context)
    if truncated.is_zero():
        return "0.0000"
    return f"{truncated.normalize(context):f}"


def write_accounts(accounts: Dict[int, ClientAccount], out: TextIO) -> None:
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            str(account.locked).lower(),
        ])
