import pytest
from web3 import Web3

from swapwatch.internal.blockchain.decoder import (
    DecodeError,
    EventSchema,
    build_trade_record,
    decode_log_params,
    decode_trade,
    twos_complement,
)
from tests.conftest import RECIPIENT, SENDER, make_swap_log

UNISWAP_V3_SWAP_TOPIC = "c42079f94a6350d7e6235f29174924f928cc2ac818eb64fed8004e115fbcca67"


def _params(amount0, amount1, sender=SENDER, recipient=RECIPIENT):
    return {"sender": sender, "recipient": recipient, "amount0": amount0, "amount1": amount1}


def test_schema_signature_and_topic(swap_schema):
    assert swap_schema.signature == "Swap(address,address,int256,int256,uint160,uint128,int24)"
    assert swap_schema.topic.hex() == UNISWAP_V3_SWAP_TOPIC
    assert [p.name for p in swap_schema.indexed_params] == ["sender", "recipient"]


def test_signed_params_decode_as_unsigned_words(swap_schema):
    amount0 = next(p for p in swap_schema.params if p.name == "amount0")
    tick = next(p for p in swap_schema.params if p.name == "tick")
    assert amount0.wire_type == "uint256"
    assert amount0.kind == "uint"
    assert tick.wire_type == "uint256"


def test_schema_rejects_non_event_entries():
    with pytest.raises(ValueError):
        EventSchema.from_abi({"type": "function", "name": "token0", "inputs": []})


def test_twos_complement():
    assert twos_complement(2**256 - 50) == 50
    assert twos_complement(2**256 - 1) == 1


def test_amount1_larger_is_outflow(dai, usdc):
    record = build_trade_record(_params(100, 2**256 - 50), dai, usdc)

    assert record.amount1 == pytest.approx(-50 / 1e6)
    assert record.amount0 == pytest.approx(100 / 1e18)
    assert record.direction == "DAI -> USDC"


def test_amount0_larger_is_outflow(dai, usdc):
    record = build_trade_record(_params(2**256 - 50, 100), dai, usdc)

    assert record.amount0 == pytest.approx(-50 / 1e18)
    assert record.amount1 == pytest.approx(100 / 1e6)
    assert record.direction == "USDC -> DAI"


def test_swapping_fields_flips_direction(dai, usdc):
    a = build_trade_record(_params(100, 2**256 - 50), dai, usdc)
    b = build_trade_record(_params(2**256 - 50, 100), dai, usdc)
    assert a.direction != b.direction


def test_equal_values_take_amount1_branch(dai, usdc):
    record = build_trade_record(_params(7, 7), dai, usdc)
    assert record.direction == "DAI -> USDC"
    assert record.amount0 == pytest.approx(7 / 1e18)
    assert record.amount1 < 0


def test_both_non_negative_follows_comparison_rule(dai, usdc):
    # Known limitation of the rule: the larger word is treated as negative.
    record = build_trade_record(_params(500, 20), dai, usdc)
    assert record.direction == "USDC -> DAI"
    assert record.amount0 < 0


def test_addresses_are_checksummed(dai, usdc):
    record = build_trade_record(_params(1, 2**256 - 1, sender=SENDER.lower()), dai, usdc)
    assert record.sender == Web3.to_checksum_address(SENDER)
    assert record.recipient == RECIPIENT


@pytest.mark.parametrize("missing", ["sender", "recipient", "amount0", "amount1"])
def test_missing_parameter_is_fatal(dai, usdc, missing):
    params = _params(1, 2**256 - 1)
    del params[missing]
    with pytest.raises(DecodeError, match=missing):
        build_trade_record(params, dai, usdc)


@pytest.mark.parametrize(
    "name, value",
    [
        ("sender", 123),
        ("recipient", "not-an-address"),
        ("amount0", SENDER),
        ("amount1", True),
        ("amount0", -1),
        ("amount1", 2**256),
    ],
)
def test_wrong_kind_is_fatal(dai, usdc, name, value):
    params = _params(1, 2**256 - 1)
    params[name] = value
    with pytest.raises(DecodeError):
        build_trade_record(params, dai, usdc)


def test_decode_log_params_reads_topics_and_data(swap_schema):
    log = make_swap_log(swap_schema, amount0=100, amount1=-50)
    params = decode_log_params(log, swap_schema)

    assert Web3.to_checksum_address(params["sender"]) == SENDER
    assert Web3.to_checksum_address(params["recipient"]) == RECIPIENT
    assert params["amount0"] == 100
    assert params["amount1"] == 2**256 - 50
    assert params["liquidity"] == 10**18


def test_decode_trade_from_raw_log(swap_schema, dai, usdc):
    log = make_swap_log(swap_schema, amount0=-2_500 * 10**18, amount1=2_501 * 10**6, block_number=42, log_index=3)
    record = decode_trade(log, swap_schema, dai, usdc)

    assert record.amount0 == pytest.approx(-2500.0)
    assert record.amount1 == pytest.approx(2501.0)
    assert record.direction == "USDC -> DAI"
    assert record.block_number == 42
    assert record.log_index == 3
    assert record.transaction_hash == "0x" + (1).to_bytes(32, "big").hex()


def test_topic_mismatch_is_fatal(swap_schema):
    log = make_swap_log(swap_schema, amount0=1, amount1=-1)
    log["topics"][0] = bytes(32)
    with pytest.raises(DecodeError, match="topic0"):
        decode_log_params(log, swap_schema)


def test_missing_indexed_topic_is_fatal(swap_schema):
    log = make_swap_log(swap_schema, amount0=1, amount1=-1)
    log["topics"] = log["topics"][:2]
    with pytest.raises(DecodeError, match="indexed topics"):
        decode_log_params(log, swap_schema)


def test_truncated_payload_is_fatal(swap_schema):
    log = make_swap_log(swap_schema, amount0=1, amount1=-1)
    log["data"] = log["data"][:64]
    with pytest.raises(DecodeError, match="cannot decode"):
        decode_log_params(log, swap_schema)
