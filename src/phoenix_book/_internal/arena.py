"""Arena-allocated red-black tree wire format parsing."""

import struct
from dataclasses import dataclass
from typing import Iterator

from ..errors import FreeListCycleError, SizeMismatchError

# Tree metadata block (root, padding) precedes the node allocator.
TREE_HEADER_SIZE = 16
# Allocator: [size:u64][bump_index:i32][free_list_head:i32]
ALLOCATOR_HEADER_SIZE = 16
# Each node carries four u32 registers: next-free/left, right, parent, color.
NODE_REGISTERS_SIZE = 16

_REGISTERS = struct.Struct("<4i")


def arena_tree_size(key_size: int, value_size: int, capacity: int) -> int:
    """Byte width of a tree holding `capacity` nodes of the given key/value widths."""
    return TREE_HEADER_SIZE + ALLOCATOR_HEADER_SIZE + (
        NODE_REGISTERS_SIZE + key_size + value_size
    ) * capacity


@dataclass(frozen=True)
class ArenaEntry:
    """A live node. `address` is the allocator's 1-indexed node address."""

    key: bytes
    value: bytes
    address: int


@dataclass(frozen=True)
class ArenaTree:
    """Live entries in slot order plus the addresses sitting on the free list."""

    entries: tuple[ArenaEntry, ...]
    free: frozenset[int]
    bump_index: int

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ArenaEntry]:
        return iter(self.entries)


def decode_arena_tree(data: bytes, key_size: int, value_size: int) -> ArenaTree:
    """
    Decode a fixed-capacity arena tree into its live entries.

    Wire format: [header:16][allocator_size:u64][bump_index:i32][free_list_head:i32]
    followed by nodes of [registers:4*i32][key][value]. Addresses are 1-indexed,
    so node addresses 1..bump_index-1 have been handed out at some point. A freed
    node stores the next free address in its first register; the chain ends when
    the pointer reaches bump_index.

    Args:
        data: Tree bytes (exactly the tree's sub-buffer of the market account)
        key_size: Byte width of each key
        value_size: Byte width of each value

    Returns:
        ArenaTree with live entries (not on the free list) in address order

    Raises:
        FreeListCycleError: Free list does not terminate within the scanned slots
        SizeMismatchError: Buffer too short to hold the allocator header
    """
    if len(data) < TREE_HEADER_SIZE + ALLOCATOR_HEADER_SIZE:
        raise SizeMismatchError(f"Tree buffer too short: {len(data)} bytes")

    offset = TREE_HEADER_SIZE
    offset += 8  # allocator size
    bump_index, free_list_head = struct.unpack_from("<ii", data, offset)
    offset += 8

    node_size = NODE_REGISTERS_SIZE + key_size + value_size
    nodes: list[tuple[bytes, bytes]] = []
    next_pointers: list[int] = []

    for _ in range(max(bump_index - 1, 0)):
        if offset + node_size > len(data):
            break
        next_free = _REGISTERS.unpack_from(data, offset)[0]
        offset += NODE_REGISTERS_SIZE
        key = bytes(data[offset : offset + key_size])
        offset += key_size
        value = bytes(data[offset : offset + value_size])
        offset += value_size
        nodes.append((key, value))
        next_pointers.append(next_free)

    free = _walk_free_list(free_list_head, bump_index, next_pointers)

    entries = tuple(
        ArenaEntry(key=key, value=value, address=i + 1)
        for i, (key, value) in enumerate(nodes)
        if i + 1 not in free
    )
    return ArenaTree(entries=entries, free=frozenset(free), bump_index=bump_index)


def _walk_free_list(head: int, bump_index: int, next_pointers: list[int]) -> set[int]:
    """Follow the free chain from `head`, bounded by the number of scanned slots."""
    free: set[int] = set()
    # head <= 0 is an untouched (zeroed) allocator: nothing was ever freed
    steps = 0
    while 0 < head < bump_index:
        if head > len(next_pointers):
            raise FreeListCycleError(
                f"Free list points at node {head} beyond the {len(next_pointers)} scanned nodes"
            )
        free.add(head)
        head = next_pointers[head - 1]
        steps += 1
        if steps > len(next_pointers):
            raise FreeListCycleError(
                f"Free list did not reach bump index {bump_index} after {steps} hops"
            )
    return free
