# swapwatch/internal/watcher/detector.py

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from swapwatch.internal.blockchain.types import CONFIRMATION_DEPTH, BlockObservation
from swapwatch.internal.logger import debug
from swapwatch.internal.storage.memory import ObservationStore
from swapwatch.internal.utils.helpers import to_hex


class ReorganizationError(RuntimeError):
    """Logs re-fetched by a recorded block hash no longer match the first observation."""

    def __init__(self, observation: BlockObservation, fetched, depth: int):
        self.block_number = observation.block_number
        self.block_hash = observation.block_hash
        self.expected_count = len(observation.logs)
        self.fetched_count = len(fetched)
        self.depth = depth
        super().__init__(
            f"Error: Reorganization happen after depth {depth}! "
            f"block={self.block_number} hash={to_hex(self.block_hash)} "
            f"stored_logs={self.expected_count} fetched_logs={self.fetched_count}"
        )


def depth_past_confirmation(head: int, block_number: int, depth: int = CONFIRMATION_DEPTH) -> Optional[int]:
    """head - (block_number + depth), or None when that would underflow."""
    threshold = block_number + depth
    if head < threshold:
        return None
    return head - threshold


def blocks_due_for_check(store: ObservationStore, head: int, depth: int = CONFIRMATION_DEPTH) -> List[Tuple[int, BlockObservation]]:
    due = []
    for block_number, observation in store.items():
        past = depth_past_confirmation(head, block_number, depth)
        if past is not None and past > 0:
            due.append((block_number, observation))
    return due


def _verify(client, observation: BlockObservation, depth: int) -> int:
    fetched = list(client.get_swap_logs(observation.block_hash))
    if fetched != list(observation.logs):
        raise ReorganizationError(observation, fetched, depth)
    return observation.block_number


def check_for_reorganization(
    client,
    store: ObservationStore,
    head: int,
    depth: int = CONFIRMATION_DEPTH,
    max_workers: int = 1,
) -> List[int]:
    """
    Re-fetches every stored block that is strictly past the confirmation
    depth and requires the exact same ordered log sequence as at ingestion.

    Returns the verified block numbers. Raises ReorganizationError on the
    first mismatch; transport errors propagate unchanged.
    """
    due = blocks_due_for_check(store, head, depth)
    if not due:
        return []

    if max_workers <= 1 or len(due) == 1:
        verified = [_verify(client, observation, depth) for _, observation in due]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(due))) as executor:
            futures = [executor.submit(_verify, client, observation, depth) for _, observation in due]
            # result() re-raises the worker's exception, in block order
            verified = [future.result() for future in futures]

    debug(f"Reorganization check at head {head}: {len(verified)} block(s) verified")
    return verified
