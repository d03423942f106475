# swapwatch/internal/blockchain/head_stream.py

import threading
from typing import Iterator, Optional

from swapwatch.internal.blockchain.types import BlockHeader
from swapwatch.internal.logger import info, debug


class HeadSubscription:
    """
    Polls the node for the chain head and yields every new header in order,
    one number at a time with no gaps, starting at the head seen on the
    first poll (or `start_block` when given).

    Query failures are not retried; they propagate to the caller.
    """

    def __init__(
        self,
        client,
        poll_interval: float = 1.0,
        start_block: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.client = client
        self.poll_interval = poll_interval
        self.next_block = start_block
        self.stop_event = stop_event or threading.Event()

    def _should_stop(self) -> bool:
        return self.stop_event.is_set()

    def _sleep(self):
        # Event.wait returns early when stop is requested
        self.stop_event.wait(self.poll_interval)

    def __iter__(self) -> Iterator[BlockHeader]:
        info(f"Head subscription start: from_block={self.next_block if self.next_block is not None else 'latest'} "
             f"poll_interval={self.poll_interval:.3f}s")

        while not self._should_stop():
            latest = self.client.block_number

            if self.next_block is None:
                self.next_block = latest

            if self.next_block > latest:
                self._sleep()
                continue

            while self.next_block <= latest and not self._should_stop():
                header = self.client.get_block_header(self.next_block)
                self.next_block = header.number + 1
                yield header

            self._sleep()

        debug("Head subscription stopped")

    def stop(self):
        self.stop_event.set()
