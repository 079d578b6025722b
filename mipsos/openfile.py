"""Open files: byte-level reads and writes on top of whole-sector disk I/O."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, Optional

from .filehdr import DiskFull, FileHeader
from .indirect import SECTOR_SIZE, SectorDevice, SectorMap

# Called when a file has to grow: yields the free map to take sectors from
# and, on a clean exit, stores that map back.
Allocator = Callable[[], AbstractContextManager[SectorMap]]


def _div_round_up(value: int, divisor: int) -> int:
    return -(-value // divisor)


class OpenFile:
    """A file whose header is kept in memory while it is open."""

    def __init__(
        self,
        disk: SectorDevice,
        sector: int,
        allocator: Optional[Allocator] = None,
    ) -> None:
        self._disk = disk
        self._sector = sector
        self._allocator = allocator
        self.header = FileHeader.fetch_from(disk, sector)
        self.position = 0

    def __repr__(self) -> str:
        return f"OpenFile(sector={self._sector}, length={self.length()}, position={self.position})"

    def seek(self, position: int) -> None:
        """Set where the next read or write starts."""
        if position < 0:
            raise ValueError("position must not be negative")
        self.position = position

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes from the current position and advance past them."""
        data = self.read_at(size, self.position)
        self.position += len(data)
        return data

    def write(self, data: bytes) -> int:
        """Write ``data`` at the current position and advance past it."""
        written = self.write_at(data, self.position)
        self.position += written
        return written

    def _read_sector(self, index: int) -> bytes:
        raw = self._disk.read_sector(self.header.byte_to_sector(index * SECTOR_SIZE))
        return bytes(raw).ljust(SECTOR_SIZE, b"\0")[:SECTOR_SIZE]

    def read_at(self, size: int, position: int) -> bytes:
        """Read up to ``size`` bytes at ``position``; the result stops at end of file."""
        if position < 0:
            raise ValueError("position must not be negative")
        length = self.header.length
        if size <= 0 or position >= length:
            return b""
        size = min(size, length - position)
        first = position // SECTOR_SIZE
        last = (position + size - 1) // SECTOR_SIZE
        buffer = b"".join(self._read_sector(index) for index in range(first, last + 1))
        start = position - first * SECTOR_SIZE
        return buffer[start:start + size]

    def _extend(self, num_sectors: int) -> None:
        if self._allocator is None:
            raise DiskFull("Not enough disk space to extend the file.")
        with self._allocator() as free_map:
            self.header.extend(free_map, num_sectors)
            self.header.write_back(self._disk, self._sector)

    def write_at(self, data: bytes, position: int) -> int:
        """Write ``data`` at ``position``, growing the file first if it is too short."""
        if position < 0:
            raise ValueError("position must not be negative")
        data = bytes(data)
        count = len(data)
        if count == 0:
            return 0
        end = position + count
        length = self.header.length
        if end > length:
            self._extend(_div_round_up(end - length, SECTOR_SIZE))

        first = position // SECTOR_SIZE
        last = (end - 1) // SECTOR_SIZE
        buffer = bytearray()
        for index in range(first, last + 1):
            start = index * SECTOR_SIZE
            if position <= start and start + SECTOR_SIZE <= end:
                buffer += bytes(SECTOR_SIZE)
            else:
                # partly overwritten: keep the bytes around the new data
                buffer += self._read_sector(index)
        offset = position - first * SECTOR_SIZE
        buffer[offset:offset + count] = data

        for index in range(first, last + 1):
            chunk = buffer[(index - first) * SECTOR_SIZE:(index - first + 1) * SECTOR_SIZE]
            self._disk.write_sector(self.header.byte_to_sector(index * SECTOR_SIZE), bytes(chunk))
        return count

    def length(self) -> int:
        """The number of bytes in the file."""
        return self.header.length