# swapwatch/internal/blockchain/types.py

from dataclasses import dataclass, field
from typing import Optional, Tuple

from hexbytes import HexBytes

# Fixed lag behind the chain head before a block is reported and verified.
CONFIRMATION_DEPTH = 5

UINT256_MODULUS = 1 << 256


def as_bytes32(v) -> bytes:
    """
    Accepts hex string (with or without 0x) or raw 32-byte value and returns bytes32.
    Raises ValueError if not 32 bytes after parsing.
    """
    if isinstance(v, (bytes, bytearray)):
        if len(v) != 32:
            raise ValueError(f"bytes32 must be 32 bytes, got {len(v)}")
        return bytes(v)
    if isinstance(v, str):
        hs = v if v.startswith("0x") else f"0x{v}"
        b = bytes(HexBytes(hs))
        if len(b) != 32:
            raise ValueError(f"bytes32 must be 32 bytes, got {len(b)} after parsing '{v}'")
        return b
    raise TypeError(f"Unsupported type for bytes32: {type(v)}")


@dataclass(frozen=True)
class TokenSpec:
    symbol: str
    decimals: int

    @property
    def scale(self) -> float:
        return float(10 ** self.decimals)


@dataclass(frozen=True)
class BlockHeader:
    number: int
    hash: bytes

    def __post_init__(self):
        if self.number < 0:
            raise ValueError(f"block number must be unsigned, got {self.number}")
        object.__setattr__(self, "hash", as_bytes32(self.hash))


@dataclass(frozen=True)
class BlockObservation:
    """Logs matching the watched contract/topic, as first seen for one block."""

    block_number: int
    block_hash: bytes
    logs: Tuple = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "block_hash", as_bytes32(self.block_hash))
        object.__setattr__(self, "logs", tuple(self.logs))


@dataclass
class TradeRecord:
    sender: str
    recipient: str
    amount0: float
    amount1: float
    direction: str
    block_number: Optional[int] = None
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None
