# swapwatch/internal/watcher/ingestion.py

from typing import List

from swapwatch.internal.blockchain.types import BlockHeader
from swapwatch.internal.logger import debug
from swapwatch.internal.storage.memory import ObservationStore
from swapwatch.internal.utils.helpers import short_hash


def read_and_add_logs(client, store: ObservationStore, header: BlockHeader) -> List:
    """
    Fetches the watched event's logs for `header` by block hash and records
    them under the block number when there is at least one. The fetched logs
    are returned either way. Transport errors propagate.
    """
    logs = client.get_swap_logs(header.hash)

    if logs:
        store.add(header.number, header.hash, logs)
        debug(f"Stored {len(logs)} log(s) for block {header.number} ({short_hash(header.hash)})")

    return logs
