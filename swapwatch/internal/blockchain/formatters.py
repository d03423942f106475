# swapwatch/internal/blockchain/formatters.py

from typing import Sequence

from prettytable import PrettyTable

from swapwatch.internal.blockchain.types import TokenSpec, TradeRecord
from swapwatch.internal.utils.helpers import short_hash


def build_trade_table(
    block_number: int,
    records: Sequence[TradeRecord],
    token0: TokenSpec,
    token1: TokenSpec,
) -> PrettyTable:
    """
    One row per decoded swap of a confirmed block. Amounts are signed:
    negative means the token left the pool.
    """
    table = PrettyTable()
    if not records:
        table.field_names = ["info"]
        table.add_row([f"No swaps in block {block_number}"])
        return table

    table.field_names = ["#", "Tx", "Sender", "Recipient", token0.symbol, token1.symbol, "Direction"]
    table.align = "l"
    table.align[token0.symbol] = "r"
    table.align[token1.symbol] = "r"

    for i, record in enumerate(records, start=1):
        table.add_row([
            i if record.log_index is None else record.log_index,
            short_hash(record.transaction_hash) if record.transaction_hash else "-",
            record.sender,
            record.recipient,
            f"{record.amount0:.{min(token0.decimals, 8)}f}",
            f"{record.amount1:.{min(token1.decimals, 8)}f}",
            record.direction,
        ])

    return table
