"""Simulated main memory of the MIPS interpreter."""

from __future__ import annotations

MEMSIZE = 1 << 24
MEMOFFSET = 0x10000000

_MASK32 = 0xFFFFFFFF


class AddressError(IndexError):
    """Raised when an access falls outside simulated memory."""


class Memory:
    """Little-endian byte memory mapped at ``offset`` in the guest address space."""

    def __init__(self, size: int = MEMSIZE, offset: int = MEMOFFSET) -> None:
        if size <= 0:
            raise ValueError("memory size must be positive")
        self.size = size
        self.offset = offset & _MASK32
        self._data = bytearray(size)

    def _index(self, addr: int, length: int) -> int:
        address = addr & _MASK32
        index = address - self.offset
        if index < 0 or index + length > self.size:
            raise AddressError(f"address 0x{address:08x} is outside memory")
        return index

    def _fetch(self, addr: int, length: int, signed: bool) -> int:
        index = self._index(addr, length)
        return int.from_bytes(self._data[index:index + length], "little", signed=signed)

    def _store(self, addr: int, length: int, value: int) -> None:
        index = self._index(addr, length)
        mask = (1 << (8 * length)) - 1
        self._data[index:index + length] = (value & mask).to_bytes(length, "little")

    def fetch_word(self, addr: int) -> int:
        """Read a signed 32-bit word."""
        return self._fetch(addr, 4, True)

    def fetch_half(self, addr: int, signed: bool = True) -> int:
        """Read a 16-bit half word."""
        return self._fetch(addr, 2, signed)

    def fetch_byte(self, addr: int, signed: bool = True) -> int:
        """Read one byte."""
        return self._fetch(addr, 1, signed)

    def store_word(self, addr: int, value: int) -> None:
        """Write the low 32 bits of ``value``."""
        self._store(addr, 4, value)

    def store_half(self, addr: int, value: int) -> None:
        """Write the low 16 bits of ``value``."""
        self._store(addr, 2, value)

    def store_byte(self, addr: int, value: int) -> None:
        """Write the low 8 bits of ``value``."""
        self._store(addr, 1, value)

    def read_bytes(self, addr: int, length: int) -> bytes:
        """Return ``length`` bytes starting at ``addr``."""
        if length < 0:
            raise ValueError("length must not be negative")
        index = self._index(addr, length)
        return bytes(self._data[index:index + length])

    def write_bytes(self, addr: int, data: bytes) -> None:
        """Copy ``data`` into memory starting at ``addr``."""
        index = self._index(addr, len(data))
        self._data[index:index + len(data)] = data