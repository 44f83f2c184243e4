from typing import NamedTuple

from csim.entity.model import ADDRESS_MASK


class AddressParts(NamedTuple):
    tag: int
    set_index: int
    offset: int


def decompose_address(address: int, s: int, b: int) -> AddressParts:
    """Split a 64-bit address into tag, set index and block offset.

    Bits above the 64th are dropped first, so every integer maps to exactly one
    set.
    """
    address &= ADDRESS_MASK
    offset = address & ((1 << b) - 1)
    set_index = (address >> b) & ((1 << s) - 1)
    tag = address >> (s + b)
    return AddressParts(tag, set_index, offset)


__all__ = ["AddressParts", "decompose_address"]
