# swapwatch/internal/watcher/service.py

import threading
from collections import deque
from dataclasses import asdict
from typing import Deque, List, Optional, Sequence

from swapwatch.internal.blockchain.head_stream import HeadSubscription
from swapwatch.internal.blockchain.types import CONFIRMATION_DEPTH, BlockHeader, TokenSpec, TradeRecord
from swapwatch.internal.logger import info, debug
from swapwatch.internal.storage.memory import ObservationStore
from swapwatch.internal.utils import helpers
from swapwatch.internal.watcher.detector import check_for_reorganization
from swapwatch.internal.watcher.ingestion import read_and_add_logs
from swapwatch.internal.watcher.reporter import TradeSink, log_trades, report_confirmed_block


class SwapWatcher:
    """
    Drives one cycle per block header: ingest the head block, report the
    block CONFIRMATION_DEPTH behind it, then verify every older observation.
    Cycles never overlap. Any exception ends the run and is re-raised.
    """

    def __init__(
        self,
        client,
        store: ObservationStore,
        token0: TokenSpec,
        token1: TokenSpec,
        schema=None,
        depth: int = CONFIRMATION_DEPTH,
        retention_blocks: int = 0,
        reorg_check_workers: int = 1,
        trades_kept: int = 100,
        emit: Optional[TradeSink] = None,
    ):
        self.client = client
        self.store = store
        self.schema = schema if schema is not None else client.schema
        self.token0 = token0
        self.token1 = token1
        self.depth = depth
        self.retention_blocks = retention_blocks
        self.reorg_check_workers = reorg_check_workers
        self._emit = emit or log_trades(token0, token1)

        self.head: Optional[int] = None
        self.last_reported_block: Optional[int] = None
        self.cycles = 0
        self.recent_trades: Deque[TradeRecord] = deque(maxlen=max(trades_kept, 1))
        self._state_lock = threading.Lock()

    def _record_trades(self, block_number: int, records: Sequence[TradeRecord]) -> None:
        with self._state_lock:
            self.recent_trades.extend(records)
            self.last_reported_block = block_number
        self._emit(block_number, records)

    def process_header(self, header: BlockHeader) -> List[int]:
        info(f"current block: {header.number}")
        p0 = helpers.perf_ns()

        read_and_add_logs(self.client, self.store, header)

        report_confirmed_block(
            self.client,
            self.store,
            self.schema,
            self.token0,
            self.token1,
            header.number - self.depth,
            emit=self._record_trades,
        )

        verified = check_for_reorganization(
            self.client,
            self.store,
            header.number,
            depth=self.depth,
            max_workers=self.reorg_check_workers,
        )

        self.store.prune(header.number, self.depth, self.retention_blocks)

        with self._state_lock:
            self.head = header.number
            self.cycles += 1

        debug(f"Block {header.number} processed in {helpers.ns_to_ms(p0, helpers.perf_ns()):.1f} ms "
              f"(observations={len(self.store)}, verified={len(verified)})")
        return verified

    def run(self, headers) -> None:
        for header in headers:
            self.process_header(header)

    def run_forever(self, poll_interval: float = 1.0, stop_event: Optional[threading.Event] = None,
                    start_block: Optional[int] = None) -> None:
        subscription = HeadSubscription(
            self.client,
            poll_interval=poll_interval,
            start_block=start_block,
            stop_event=stop_event,
        )
        self.run(subscription)
        info("Swap watcher stopped")

    def status(self) -> dict:
        with self._state_lock:
            return {
                "head": self.head,
                "last_reported_block": self.last_reported_block,
                "cycles": self.cycles,
                "observations": len(self.store),
                "confirmation_depth": self.depth,
                "retention_blocks": self.retention_blocks,
            }

    def trades(self, limit: Optional[int] = None) -> List[dict]:
        with self._state_lock:
            records = list(self.recent_trades)
        if limit is not None:
            records = records[-limit:] if limit > 0 else []
        return [asdict(r) for r in records]
