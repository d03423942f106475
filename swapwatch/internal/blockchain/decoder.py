# swapwatch/internal/blockchain/decoder.py

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from swapwatch.internal.blockchain.types import UINT256_MODULUS, TokenSpec, TradeRecord
from swapwatch.internal.utils.helpers import to_hex

_SIGNED_INT = re.compile(r"^int(\d*)$")


class DecodeError(ValueError):
    """A matched log could not be turned into a TradeRecord."""


def _wire_type(abi_type: str) -> str:
    # Signed ints of any width are sign-extended to a full word on the wire;
    # they are read back as that raw uint256 and sign recovery happens later.
    if _SIGNED_INT.match(abi_type):
        return "uint256"
    return abi_type


@dataclass(frozen=True)
class EventParam:
    name: str
    abi_type: str
    indexed: bool

    @property
    def wire_type(self) -> str:
        return _wire_type(self.abi_type)

    @property
    def kind(self) -> str:
        wt = self.wire_type
        if wt == "address":
            return "address"
        if wt.startswith("uint"):
            return "uint"
        return wt


@dataclass(frozen=True)
class EventSchema:
    """Named-parameter layout of one contract event, plus its topic-0 hash."""

    name: str
    params: Tuple[EventParam, ...]

    @classmethod
    def from_abi(cls, event_abi: Mapping[str, Any]) -> "EventSchema":
        if event_abi.get("type", "event") != "event":
            raise ValueError(f"ABI entry '{event_abi.get('name')}' is not an event")
        params = tuple(
            EventParam(name=inp["name"], abi_type=inp["type"], indexed=bool(inp.get("indexed", False)))
            for inp in event_abi.get("inputs", [])
        )
        return cls(name=event_abi["name"], params=params)

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(p.abi_type for p in self.params)})"

    @property
    def topic(self) -> bytes:
        return bytes(Web3.keccak(text=self.signature))

    @property
    def indexed_params(self) -> Tuple[EventParam, ...]:
        return tuple(p for p in self.params if p.indexed)

    @property
    def data_params(self) -> Tuple[EventParam, ...]:
        return tuple(p for p in self.params if not p.indexed)


def _field(raw_log, key: str, default=None):
    if isinstance(raw_log, Mapping):
        return raw_log.get(key, default)
    return getattr(raw_log, key, default)


def twos_complement(value: int) -> int:
    """Magnitude of a negative int256 carried in an unsigned 256-bit word."""
    return UINT256_MODULUS - value


def decode_log_params(raw_log, schema: EventSchema) -> Dict[str, Any]:
    """
    Decodes a raw log (topics + data) into {param name: value}.

    Indexed params come from topics[1:], the rest from the data payload.
    Integer params are returned as the raw unsigned wire word.
    """
    topics = list(_field(raw_log, "topics") or [])
    data = bytes(_field(raw_log, "data") or b"")

    if not topics:
        raise DecodeError(f"{schema.name}: log has no topics")
    if bytes(topics[0]) != schema.topic:
        raise DecodeError(f"{schema.name}: topic0 {to_hex(topics[0])} does not match {to_hex(schema.topic)}")

    indexed = schema.indexed_params
    if len(topics) - 1 != len(indexed):
        raise DecodeError(
            f"{schema.name}: expected {len(indexed)} indexed topics, got {len(topics) - 1}"
        )

    params: Dict[str, Any] = {}
    try:
        for param, topic in zip(indexed, topics[1:]):
            params[param.name] = abi_decode([param.wire_type], bytes(topic))[0]

        data_params = schema.data_params
        values = abi_decode([p.wire_type for p in data_params], data)
        for param, value in zip(data_params, values):
            params[param.name] = value
    except DecodingError as e:
        raise DecodeError(f"{schema.name}: cannot decode log payload: {e}") from e

    return params


def _address_param(params: Mapping[str, Any], name: str) -> str:
    if name not in params:
        raise DecodeError(f"Error while getting {name}: parameter missing")
    value = params[name]
    if not isinstance(value, str) or not Web3.is_address(value):
        raise DecodeError(f"Error while getting {name}: expected address, got {type(value).__name__}")
    return Web3.to_checksum_address(value)


def _uint_param(params: Mapping[str, Any], name: str) -> int:
    if name not in params:
        raise DecodeError(f"Error while getting {name}: parameter missing")
    value = params[name]
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Error while getting {name}: expected uint256, got {type(value).__name__}")
    if not 0 <= value < UINT256_MODULUS:
        raise DecodeError(f"Error while getting {name}: {value} is not an unsigned 256-bit word")
    return value


def build_trade_record(
    params: Mapping[str, Any],
    token0: TokenSpec,
    token1: TokenSpec,
    raw_log=None,
) -> TradeRecord:
    """
    Exactly one pool delta of a swap is an outflow (negative int256). The
    numerically larger unsigned word is taken as that negative leg; on a
    tie amount1 is. Both legs are scaled by their own token's decimals.
    """
    sender = _address_param(params, "sender")
    recipient = _address_param(params, "recipient")
    raw0 = _uint_param(params, "amount0")
    raw1 = _uint_param(params, "amount1")

    if raw0 > raw1:
        amount0 = -(float(twos_complement(raw0)) / token0.scale)
        amount1 = float(raw1) / token1.scale
        direction = f"{token1.symbol} -> {token0.symbol}"
    else:
        amount1 = -(float(twos_complement(raw1)) / token1.scale)
        amount0 = float(raw0) / token0.scale
        direction = f"{token0.symbol} -> {token1.symbol}"

    block_number: Optional[int] = None
    tx_hash: Optional[str] = None
    log_index: Optional[int] = None
    if raw_log is not None:
        block_number = _field(raw_log, "blockNumber")
        tx_hash = to_hex(_field(raw_log, "transactionHash"))
        log_index = _field(raw_log, "logIndex")

    return TradeRecord(
        sender=sender,
        recipient=recipient,
        amount0=amount0,
        amount1=amount1,
        direction=direction,
        block_number=block_number,
        transaction_hash=tx_hash,
        log_index=log_index,
    )


def decode_trade(raw_log, schema: EventSchema, token0: TokenSpec, token1: TokenSpec) -> TradeRecord:
    params = decode_log_params(raw_log, schema)
    return build_trade_record(params, token0, token1, raw_log=raw_log)
