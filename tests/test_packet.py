"""Tests for order packet decoding."""

import struct

import pytest

from phoenix_book import (
    DecodeError,
    ImmediateOrCancelPacket,
    LimitPacket,
    OrderPacketType,
    PostOnlyPacket,
    SelfTradeBehavior,
    Side,
    decode_ioc_packet,
    decode_limit_packet,
    decode_order_packet,
    decode_post_only_packet,
)


def u8(v):
    return struct.pack("<B", v)


def u64(v):
    return struct.pack("<Q", v)


def u128(v):
    return struct.pack("<QQ", v & ((1 << 64) - 1), v >> 64)


def opt(v):
    return u8(0) if v is None else u8(1) + u64(v)


def post_only_bytes(expiry=True):
    data = u8(0) + u8(1) + u64(22_720) + u64(1500) + u128(77) + u8(1) + u8(0)
    if expiry:
        data += opt(123_456) + opt(None)
    return data


def limit_bytes(match_limit=None, expiry=True):
    data = u8(1) + u8(0) + u64(22_710) + u64(2500) + u8(1) + opt(match_limit) + u128(5) + u8(1)
    if expiry:
        data += opt(None) + opt(1_700_000_000)
    return data


def ioc_bytes(price=None, expiry=True):
    data = (
        u8(2)
        + u8(0)
        + opt(price)
        + u64(0)
        + u64(10_000_000)
        + u64(438)
        + u64(0)
        + u8(0)
        + opt(2048)
        + u128(2**100 + 9)
        + u8(0)
    )
    if expiry:
        data += opt(500) + opt(1_700_000_000)
    return data


def test_post_only():
    """Every field comes back as written, including the trailing expiry options."""
    assert decode_post_only_packet(post_only_bytes()) == PostOnlyPacket(
        side=Side.ASK,
        price_in_ticks=22_720,
        num_base_lots=1500,
        client_order_id=77,
        reject_post_only=True,
        use_only_deposited_funds=False,
        last_valid_slot=123_456,
        last_valid_unix_timestamp_in_seconds=None,
    )


def test_post_only_pre_expiry_layout():
    packet = decode_post_only_packet(post_only_bytes(expiry=False))
    assert packet.price_in_ticks == 22_720
    assert packet.last_valid_slot is None
    assert packet.last_valid_unix_timestamp_in_seconds is None


def test_limit():
    packet = decode_limit_packet(limit_bytes())
    assert packet == LimitPacket(
        side=Side.BID,
        price_in_ticks=22_710,
        num_base_lots=2500,
        self_trade_behavior=SelfTradeBehavior.CANCEL_PROVIDE,
        match_limit=None,
        client_order_id=5,
        use_only_deposited_funds=True,
        last_valid_slot=None,
        last_valid_unix_timestamp_in_seconds=1_700_000_000,
    )
    assert decode_limit_packet(limit_bytes(match_limit=10, expiry=False)).match_limit == 10


def test_ioc_market_order():
    packet = decode_ioc_packet(ioc_bytes())
    assert isinstance(packet, ImmediateOrCancelPacket)
    assert packet.price_in_ticks is None
    assert packet.num_quote_lots == 10_000_000
    assert packet.min_base_lots_to_fill == 438
    assert packet.self_trade_behavior == SelfTradeBehavior.ABORT
    assert packet.match_limit == 2048
    assert packet.client_order_id == 2**100 + 9
    assert packet.last_valid_slot == 500


def test_ioc_pre_expiry_layout():
    packet = decode_ioc_packet(ioc_bytes(price=22_800, expiry=False))
    assert packet.price_in_ticks == 22_800
    assert packet.last_valid_slot is None


def test_decode_order_packet_dispatches_on_type():
    assert isinstance(decode_order_packet(post_only_bytes()), PostOnlyPacket)
    assert isinstance(decode_order_packet(limit_bytes()), LimitPacket)
    assert isinstance(decode_order_packet(ioc_bytes()), ImmediateOrCancelPacket)
    assert OrderPacketType.IMMEDIATE_OR_CANCEL == 2


def test_wrong_packet_type_raises():
    with pytest.raises(DecodeError, match="Expected LIMIT"):
        decode_limit_packet(post_only_bytes())
    with pytest.raises(DecodeError, match="OrderPacketType"):
        decode_order_packet(u8(3) + post_only_bytes()[1:])


@pytest.mark.parametrize(
    "data",
    [
        b"",
        post_only_bytes()[:-3],  # cut inside the slot option
        post_only_bytes(expiry=False)[:-1],
        post_only_bytes() + b"\x00",
    ],
)
def test_malformed_length_raises(data):
    with pytest.raises(DecodeError):
        decode_post_only_packet(data)


def test_invalid_field_values_raise():
    data = bytearray(post_only_bytes())
    data[1] = 2  # side
    with pytest.raises(DecodeError, match="Side"):
        decode_post_only_packet(bytes(data))

    data = bytearray(post_only_bytes())
    data[34] = 2  # reject_post_only
    with pytest.raises(DecodeError, match="bool"):
        decode_post_only_packet(bytes(data))

    data = bytearray(limit_bytes())
    data[18] = 3  # self_trade_behavior
    with pytest.raises(DecodeError, match="SelfTradeBehavior"):
        decode_limit_packet(bytes(data))

    data = bytearray(limit_bytes())
    data[19] = 2  # match_limit option tag
    with pytest.raises(DecodeError, match="option tag"):
        decode_limit_packet(bytes(data))
