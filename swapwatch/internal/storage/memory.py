# swapwatch/internal/storage/memory.py

import threading
from typing import Dict, List, Optional, Sequence, Tuple

from swapwatch.internal.blockchain.types import BlockObservation
from swapwatch.internal.logger import debug, warn
from swapwatch.internal.utils.helpers import short_hash


class ObservationStore:
    """
    Block number -> BlockObservation, for blocks where at least one watched
    event was seen at ingestion. Entries are immutable; the map itself is
    guarded so HTTP handlers and reorg re-fetch workers can read it while
    the watcher thread inserts.
    """

    def __init__(self):
        self._data: Dict[int, BlockObservation] = {}
        self._lock = threading.Lock()

    def add(self, block_number: int, block_hash: bytes, logs: Sequence) -> Optional[BlockObservation]:
        """Stores the observation and returns it; empty log sequences are never stored."""
        if not logs:
            return None
        observation = BlockObservation(block_number=block_number, block_hash=block_hash, logs=tuple(logs))
        with self._lock:
            previous = self._data.get(block_number)
            self._data[block_number] = observation
        if previous is not None and previous.block_hash != observation.block_hash:
            warn(
                f"Block {block_number} re-announced with a different hash "
                f"({short_hash(previous.block_hash)} -> {short_hash(observation.block_hash)}); replacing observation"
            )
        return observation

    def get(self, block_number: int) -> Optional[BlockObservation]:
        with self._lock:
            return self._data.get(block_number)

    def exists(self, block_number: int) -> bool:
        with self._lock:
            return block_number in self._data

    def items(self) -> List[Tuple[int, BlockObservation]]:
        """Snapshot ordered by block number."""
        with self._lock:
            return sorted(self._data.items())

    def block_numbers(self) -> List[int]:
        with self._lock:
            return sorted(self._data)

    def prune(self, head: int, depth: int, retention_blocks: int) -> List[int]:
        """
        Drops entries deeper than `depth + retention_blocks` behind `head`.
        retention_blocks == 0 means keep everything.
        """
        if retention_blocks <= 0:
            return []
        cutoff = head - depth - retention_blocks
        with self._lock:
            dropped = [b for b in self._data if b < cutoff]
            for b in dropped:
                del self._data[b]
        if dropped:
            debug(f"Pruned {len(dropped)} observation(s) below block {cutoff}")
        return sorted(dropped)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, block_number: int) -> bool:
        return self.exists(block_number)
