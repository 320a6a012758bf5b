"""
Order packet decoding.

Phoenix place-order instructions carry a borsh-encoded order packet:

    [packet type:u8][side:u8][...packet fields...][last_valid_slot:Option<u64>][last_valid_unix_timestamp_in_seconds:Option<u64>]

Options are a u8 tag (0 = None, 1 = Some) followed by the value when set. u128
values are little-endian. Packets written before order expiry existed stop
right before the two trailing options; those decode with both set to None.
"""

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Union

from ..errors import DecodeError
from .ladder import Side
from .quote import SelfTradeBehavior

_U8 = struct.Struct("<B")
_U64 = struct.Struct("<Q")
_U128 = struct.Struct("<QQ")


class OrderPacketType(IntEnum):
    POST_ONLY = 0
    LIMIT = 1
    IMMEDIATE_OR_CANCEL = 2


@dataclass(frozen=True)
class PostOnlyPacket:
    side: Side
    price_in_ticks: int
    num_base_lots: int
    client_order_id: int
    reject_post_only: bool
    use_only_deposited_funds: bool
    last_valid_slot: Optional[int] = None
    last_valid_unix_timestamp_in_seconds: Optional[int] = None


@dataclass(frozen=True)
class LimitPacket:
    side: Side
    price_in_ticks: int
    num_base_lots: int
    self_trade_behavior: SelfTradeBehavior
    match_limit: Optional[int]  # None = no limit
    client_order_id: int
    use_only_deposited_funds: bool
    last_valid_slot: Optional[int] = None
    last_valid_unix_timestamp_in_seconds: Optional[int] = None


@dataclass(frozen=True)
class ImmediateOrCancelPacket:
    """IOC order. `price_in_ticks` of None makes it a market order."""

    side: Side
    price_in_ticks: Optional[int]
    num_base_lots: int
    num_quote_lots: int
    min_base_lots_to_fill: int
    min_quote_lots_to_fill: int
    self_trade_behavior: SelfTradeBehavior
    match_limit: Optional[int]
    client_order_id: int
    use_only_deposited_funds: bool
    last_valid_slot: Optional[int] = None
    last_valid_unix_timestamp_in_seconds: Optional[int] = None


OrderPacket = Union[PostOnlyPacket, LimitPacket, ImmediateOrCancelPacket]


class _PacketReader:
    """Cursor over borsh-encoded packet bytes."""

    def __init__(self, data: bytes):
        self._data = memoryview(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def _unpack(self, fmt: struct.Struct) -> tuple:
        if self.remaining < fmt.size:
            raise DecodeError(f"Order packet truncated at byte {self.offset}")
        values = fmt.unpack_from(self._data, self.offset)
        self.offset += fmt.size
        return values

    def u8(self) -> int:
        return self._unpack(_U8)[0]

    def u64(self) -> int:
        return self._unpack(_U64)[0]

    def u128(self) -> int:
        low, high = self._unpack(_U128)
        return low | high << 64

    def boolean(self) -> bool:
        value = self.u8()
        if value > 1:
            raise DecodeError(f"Invalid bool {value} at byte {self.offset - 1}")
        return value == 1

    def option_u64(self) -> Optional[int]:
        tag = self.u8()
        if tag == 0:
            return None
        if tag == 1:
            return self.u64()
        raise DecodeError(f"Invalid option tag {tag} at byte {self.offset - 1}")

    def enum(self, enum_type: type[IntEnum]) -> IntEnum:
        value = self.u8()
        try:
            return enum_type(value)
        except ValueError:
            raise DecodeError(f"Invalid {enum_type.__name__} {value} at byte {self.offset - 1}") from None


def _side(reader: _PacketReader) -> Side:
    return reader.enum(Side)


def _self_trade_behavior(reader: _PacketReader) -> SelfTradeBehavior:
    return reader.enum(SelfTradeBehavior)


_Fields = tuple[tuple[str, Callable[[_PacketReader], object]], ...]

# Fields shared by the current and the pre-expiry layouts, in wire order
_POST_ONLY_FIELDS: _Fields = (
    ("side", _side),
    ("price_in_ticks", _PacketReader.u64),
    ("num_base_lots", _PacketReader.u64),
    ("client_order_id", _PacketReader.u128),
    ("reject_post_only", _PacketReader.boolean),
    ("use_only_deposited_funds", _PacketReader.boolean),
)

_LIMIT_FIELDS: _Fields = (
    ("side", _side),
    ("price_in_ticks", _PacketReader.u64),
    ("num_base_lots", _PacketReader.u64),
    ("self_trade_behavior", _self_trade_behavior),
    ("match_limit", _PacketReader.option_u64),
    ("client_order_id", _PacketReader.u128),
    ("use_only_deposited_funds", _PacketReader.boolean),
)

_IOC_FIELDS: _Fields = (
    ("side", _side),
    ("price_in_ticks", _PacketReader.option_u64),
    ("num_base_lots", _PacketReader.u64),
    ("num_quote_lots", _PacketReader.u64),
    ("min_base_lots_to_fill", _PacketReader.u64),
    ("min_quote_lots_to_fill", _PacketReader.u64),
    ("self_trade_behavior", _self_trade_behavior),
    ("match_limit", _PacketReader.option_u64),
    ("client_order_id", _PacketReader.u128),
    ("use_only_deposited_funds", _PacketReader.boolean),
)

_LAYOUTS: dict[OrderPacketType, tuple[_Fields, type]] = {
    OrderPacketType.POST_ONLY: (_POST_ONLY_FIELDS, PostOnlyPacket),
    OrderPacketType.LIMIT: (_LIMIT_FIELDS, LimitPacket),
    OrderPacketType.IMMEDIATE_OR_CANCEL: (_IOC_FIELDS, ImmediateOrCancelPacket),
}


def _decode_packet(data: bytes, expected: Optional[OrderPacketType]) -> OrderPacket:
    if len(data) == 0:
        raise DecodeError("Empty order packet")
    reader = _PacketReader(data)
    packet_type = reader.enum(OrderPacketType)
    if expected is not None and packet_type != expected:
        raise DecodeError(f"Expected {expected.name} packet, got {packet_type.name}")

    fields, packet_cls = _LAYOUTS[packet_type]
    values = {name: read(reader) for name, read in fields}
    if reader.remaining:
        values["last_valid_slot"] = reader.option_u64()
        values["last_valid_unix_timestamp_in_seconds"] = reader.option_u64()
    if reader.remaining:
        raise DecodeError(f"{reader.remaining} trailing bytes after {packet_type.name} packet")
    return packet_cls(**values)


def decode_order_packet(data: bytes) -> OrderPacket:
    """
    Decode order packet bytes of any type.

    Raises:
        DecodeError: Unknown packet type, invalid field, truncated or trailing bytes

    Example:
        >>> packet = decode_order_packet(instruction_data[1:])
        >>> if isinstance(packet, ImmediateOrCancelPacket) and packet.price_in_ticks is None:
        ...     print("market order")
    """
    return _decode_packet(data, None)


def decode_post_only_packet(data: bytes) -> PostOnlyPacket:
    return _decode_packet(data, OrderPacketType.POST_ONLY)


def decode_limit_packet(data: bytes) -> LimitPacket:
    return _decode_packet(data, OrderPacketType.LIMIT)


def decode_ioc_packet(data: bytes) -> ImmediateOrCancelPacket:
    return _decode_packet(data, OrderPacketType.IMMEDIATE_OR_CANCEL)
