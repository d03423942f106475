# swapwatch/internal/watcher/reporter.py

from typing import Callable, List, Optional, Sequence

from swapwatch.internal.blockchain.decoder import EventSchema, decode_trade
from swapwatch.internal.blockchain.formatters import build_trade_table
from swapwatch.internal.blockchain.types import TokenSpec, TradeRecord
from swapwatch.internal.logger import info
from swapwatch.internal.storage.memory import ObservationStore

TradeSink = Callable[[int, Sequence[TradeRecord]], None]


def log_trades(token0: TokenSpec, token1: TokenSpec) -> TradeSink:
    """Default sink: renders the block's trades as a table through the logger."""

    def emit(block_number: int, records: Sequence[TradeRecord]) -> None:
        table = build_trade_table(block_number, records, token0, token1)
        info("\n" + table.get_string())

    return emit


def report_confirmed_block(
    client,
    store: ObservationStore,
    schema: EventSchema,
    token0: TokenSpec,
    token1: TokenSpec,
    block_number: int,
    emit: Optional[TradeSink] = None,
) -> List[TradeRecord]:
    """
    Re-reads the logs of a block that reached the confirmation depth, by the
    hash recorded at ingestion, and decodes them into TradeRecords.

    Blocks without an observation (no watched events seen) are a no-op.
    Decode errors propagate; no partial result is emitted.
    """
    if block_number < 0:
        return []

    observation = store.get(block_number)
    if observation is None:
        return []

    info(f"show block: {block_number}")

    logs = client.get_swap_logs(observation.block_hash)
    records = [decode_trade(log, schema, token0, token1) for log in logs]

    if emit is None:
        emit = log_trades(token0, token1)
    emit(block_number, records)

    return records
