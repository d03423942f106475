import threading

from swapwatch.internal.blockchain.head_stream import HeadSubscription


class AdvancingClient:
    """Head moves forward by `step` blocks on every block_number poll."""

    def __init__(self, start, step, stop_after, stop_event):
        self.head = start
        self.step = step
        self.stop_after = stop_after
        self.stop_event = stop_event
        self.polls = 0

    @property
    def block_number(self):
        self.polls += 1
        if self.polls > 1:
            self.head += self.step
        if self.head >= self.stop_after:
            self.stop_event.set()
        return self.head

    def get_block_header(self, n):
        from swapwatch.internal.blockchain.types import BlockHeader
        return BlockHeader(number=n, hash=n.to_bytes(32, "big"))


def _collect(subscription, limit=100):
    numbers = []
    for header in subscription:
        numbers.append(header.number)
        if len(numbers) >= limit:
            break
    return numbers


def test_yields_every_block_without_gaps():
    stop = threading.Event()
    client = AdvancingClient(start=100, step=3, stop_after=200, stop_event=stop)
    sub = HeadSubscription(client, poll_interval=0.001, stop_event=stop)

    numbers = _collect(sub, limit=10)

    assert numbers == list(range(100, 110))


def test_explicit_start_block_backfills():
    stop = threading.Event()
    client = AdvancingClient(start=50, step=0, stop_after=1000, stop_event=stop)
    sub = HeadSubscription(client, poll_interval=0.001, start_block=45, stop_event=stop)

    assert _collect(sub, limit=6) == [45, 46, 47, 48, 49, 50]


def test_stop_event_ends_iteration():
    stop = threading.Event()
    stop.set()
    client = AdvancingClient(start=1, step=1, stop_after=10, stop_event=stop)

    assert list(HeadSubscription(client, poll_interval=0.001, stop_event=stop)) == []
    assert client.polls == 0
