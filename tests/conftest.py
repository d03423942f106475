from typing import Dict, List, Optional

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes

from swapwatch.internal.blockchain.client import load_abi
from swapwatch.internal.blockchain.decoder import EventSchema
from swapwatch.internal.blockchain.types import BlockHeader, TokenSpec
from swapwatch.internal.storage.memory import ObservationStore
from swapwatch.internal.utils.config import DEFAULT_ABI_PATH

POOL = "0x5777d92f208679DB4b9778590Fa3CAB3aC9e2168"
SENDER = "0xE592427A0AEce92De3Edee1F18E0157C05861564"
RECIPIENT = "0x1111111111111111111111111111111111111111"


def block_hash(n: int, variant: int = 0) -> bytes:
    return (variant * 1_000_000 + n).to_bytes(32, "big")


def _address_topic(address: str) -> HexBytes:
    return HexBytes(bytes(12) + bytes.fromhex(address[2:]))


def make_swap_log(
    schema: EventSchema,
    amount0: int,
    amount1: int,
    block_number: int = 1,
    log_index: int = 0,
    sender: str = SENDER,
    recipient: str = RECIPIENT,
    tx: int = 1,
    hash_variant: int = 0,
) -> dict:
    """A raw log shaped like web3's get_logs output; amounts are signed int256."""
    data = abi_encode(
        ["int256", "int256", "uint160", "uint128", "int24"],
        [amount0, amount1, 79228162514264337593543950336, 10**18, -276324],
    )
    return {
        "address": POOL,
        "topics": [HexBytes(schema.topic), _address_topic(sender), _address_topic(recipient)],
        "data": HexBytes(data),
        "blockNumber": block_number,
        "blockHash": HexBytes(block_hash(block_number, hash_variant)),
        "transactionHash": HexBytes(tx.to_bytes(32, "big")),
        "transactionIndex": 0,
        "logIndex": log_index,
        "removed": False,
    }


class FakeChainClient:
    """Answers log queries from a hash -> logs mapping that tests can rewrite."""

    def __init__(self, schema: EventSchema, head: int = 0):
        self.schema = schema
        self.logs_by_hash: Dict[bytes, List[dict]] = {}
        self.log_queries: List[bytes] = []
        self.head = head
        self.headers: Dict[int, BlockHeader] = {}
        self.fail_on: Optional[bytes] = None

    def set_logs(self, block_hash_: bytes, logs: List[dict]):
        self.logs_by_hash[bytes(block_hash_)] = list(logs)

    def get_swap_logs(self, block_hash_: bytes) -> List[dict]:
        self.log_queries.append(bytes(block_hash_))
        if self.fail_on is not None and bytes(block_hash_) == self.fail_on:
            raise ConnectionError("node unavailable")
        return list(self.logs_by_hash.get(bytes(block_hash_), []))

    @property
    def block_number(self) -> int:
        return self.head

    def get_block_header(self, block_identifier="latest") -> BlockHeader:
        n = self.head if block_identifier == "latest" else block_identifier
        return self.headers.get(n) or BlockHeader(number=n, hash=block_hash(n))


@pytest.fixture
def swap_schema() -> EventSchema:
    abi = load_abi(DEFAULT_ABI_PATH)
    swap_abi = next(e for e in abi if e.get("type") == "event" and e["name"] == "Swap")
    return EventSchema.from_abi(swap_abi)


@pytest.fixture
def dai():
    return TokenSpec(symbol="DAI", decimals=18)


@pytest.fixture
def usdc():
    return TokenSpec(symbol="USDC", decimals=6)


@pytest.fixture
def client(swap_schema):
    return FakeChainClient(swap_schema)


@pytest.fixture
def store():
    return ObservationStore()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in ("CONFIG_PATH", "ETH_NODE_URL", "CONTRACT_ADDRESS", "ABI_PATH", "EVENT_NAME",
                 "POLL_INTERVAL", "REQUEST_TIMEOUT", "RETENTION_BLOCKS", "REORG_CHECK_WORKERS",
                 "TRADES_KEPT", "AUTO_START"):
        monkeypatch.delenv(name, raising=False)
