"""Paged access to a 24-series I2C EEPROM with 16-bit memory addresses."""

from __future__ import annotations

import struct
import time
from collections.abc import Callable, Iterator
from typing import Protocol

DEFAULT_ADDRESS = 0x50
"""7-bit bus address of the memory (0xA0 as an 8-bit write address)."""

PAGE_SIZE = 256
"""Bytes in one page."""
PAGE_COUNT = 4096
"""Number of pages."""

WRITE_CYCLE_DELAY = 0.005
"""Seconds waited after each page write for the internal write cycle."""

_PAGE_SHIFT = PAGE_SIZE.bit_length() - 1
_ADDRESS_MASK = 0xFFFF
_FLOAT = struct.Struct("<f")


class MemoryBus(Protocol):
    """Memory access on an I2C bus, with 7-bit device addresses."""

    def read(self, address: int, register: int, length: int) -> bytes: ...

    def write(self, address: int, register: int, data: bytes) -> None: ...


def float_to_bytes(value: float) -> bytes:
    """Encode ``value`` as a little-endian IEEE 754 single."""
    return _FLOAT.pack(value)


def bytes_to_float(data: bytes) -> float:
    """Decode a little-endian IEEE 754 single from exactly four bytes."""
    if len(data) != _FLOAT.size:
        raise ValueError(f"expected {_FLOAT.size} bytes, got {len(data)}")
    return _FLOAT.unpack(bytes(data))[0]


def _check_location(page: int, offset: int) -> None:
    if not 0 <= page < PAGE_COUNT:
        raise ValueError(f"page {page} out of range 0..{PAGE_COUNT - 1}")
    if not 0 <= offset < PAGE_SIZE:
        raise ValueError(f"offset {offset} out of range 0..{PAGE_SIZE - 1}")


def _memory_address(page: int, offset: int) -> int:
    return ((page << _PAGE_SHIFT) | offset) & _ADDRESS_MASK


def _chunks(page: int, offset: int, size: int) -> Iterator[tuple[int, int, int]]:
    """Yield ``(memory_address, position, length)`` for each page touched."""
    position = 0
    while size > 0:
        length = min(size, PAGE_SIZE - offset)
        yield _memory_address(page, offset), position, length
        page += 1
        offset = 0
        size -= length
        position += length


class Eeprom:
    """An I2C EEPROM organised in pages of :data:`PAGE_SIZE` bytes."""

    def __init__(
        self,
        bus: MemoryBus,
        address: int = DEFAULT_ADDRESS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.bus = bus
        self.address = address
        self.sleep = sleep

    def write(self, page: int, offset: int, data: bytes) -> None:
        """Write ``data`` starting at ``offset`` in ``page``, continuing on following pages."""
        _check_location(page, offset)
        data = bytes(data)
        for memory_address, position, length in _chunks(page, offset, len(data)):
            self.bus.write(self.address, memory_address, data[position:position + length])
            self.sleep(WRITE_CYCLE_DELAY)

    def read(self, page: int, offset: int, size: int) -> bytes:
        """Read ``size`` bytes starting at ``offset`` in ``page``."""
        _check_location(page, offset)
        if size < 0:
            raise ValueError(f"size must not be negative, got {size}")
        return b"".join(
            bytes(self.bus.read(self.address, memory_address, length))
            for memory_address, _, length in _chunks(page, offset, size)
        )

    def erase_page(self, page: int) -> None:
        """Fill one page with 0xFF."""
        _check_location(page, 0)
        self.bus.write(self.address, _memory_address(page, 0), b"\xff" * PAGE_SIZE)
        self.sleep(WRITE_CYCLE_DELAY)

    def write_float(self, page: int, offset: int, value: float) -> None:
        """Store ``value`` as a four-byte single-precision float."""
        self.write(page, offset, float_to_bytes(value))

    def read_float(self, page: int, offset: int) -> float:
        """Load a four-byte single-precision float."""
        return bytes_to_float(self.read(page, offset, _FLOAT.size))