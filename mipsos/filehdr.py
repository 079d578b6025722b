"""File headers (i-nodes) that reach their data through indirect blocks."""

from __future__ import annotations

import struct

from .indirect import (
    DATA_SECTORS_PER_INDIRECT,
    SECTOR_SIZE,
    IndirectBlock,
    SectorDevice,
    SectorMap,
)

FREE_MAP_SECTOR = 0
DIRECTORY_SECTOR = 1

_INT_SIZE = 4
NUM_INDIRECT_BLOCKS = (SECTOR_SIZE - 2 * _INT_SIZE) // _INT_SIZE
BYTES_PER_IB = DATA_SECTORS_PER_INDIRECT * SECTOR_SIZE
MAX_FILE_SIZE = NUM_INDIRECT_BLOCKS * DATA_SECTORS_PER_INDIRECT * SECTOR_SIZE

# On disk: byte count, sector count, indirect block count, then as many
# indirect block sector numbers as fit in the rest of the sector.
_HEADER_SLOTS = (SECTOR_SIZE - 3 * _INT_SIZE) // _INT_SIZE
_HEADER_FORMAT = struct.Struct(f"<3i{_HEADER_SLOTS}i")
HEADER_SIZE = _HEADER_FORMAT.size

_FIRST_DATA_SECTOR = 2
_IB_SECTOR_LIMIT = NUM_INDIRECT_BLOCKS * DATA_SECTORS_PER_INDIRECT + _FIRST_DATA_SECTOR


class FileTooLarge(ValueError):
    """Raised when a file would exceed the largest size a header can describe."""


class DiskFull(Exception):
    """Raised when there are not enough free sectors for a file."""


def _div_round_up(value: int, divisor: int) -> int:
    return -(-value // divisor)


def _take(free_map: SectorMap) -> int:
    sector = free_map.find()
    if sector == -1:
        raise DiskFull("not enough disk space")
    return sector


def _check_ib_sector(sector: int) -> None:
    if not _FIRST_DATA_SECTOR <= sector < _IB_SECTOR_LIMIT:
        raise ValueError(f"corrupt file header: indirect block in sector {sector}")


class FileHeader:
    """Where on disk a file's data lives, and how long the file is."""

    def __init__(self) -> None:
        self.num_bytes = 0
        self.num_sectors = 0
        self.indirect_sectors: list[int] = []
        self.indirect_blocks: list[IndirectBlock] = []

    def __repr__(self) -> str:
        return (
            f"FileHeader(num_bytes={self.num_bytes}, num_sectors={self.num_sectors}, "
            f"indirect_sectors={self.indirect_sectors!r})"
        )

    @property
    def length(self) -> int:
        """The number of bytes in the file."""
        return self.num_bytes

    @property
    def num_indirect_blocks(self) -> int:
        return len(self.indirect_blocks)

    @property
    def data_sectors(self) -> list[int]:
        """All data sectors of the file, in file order."""
        return [sector for block in self.indirect_blocks for sector in block.sectors]

    def _new_block(self, free_map: SectorMap) -> IndirectBlock:
        block = IndirectBlock()
        self.indirect_sectors.append(_take(free_map))
        self.indirect_blocks.append(block)
        return block

    def allocate(self, free_map: SectorMap, size: int) -> None:
        """Take sectors from ``free_map`` for a new file of ``size`` bytes."""
        if size > MAX_FILE_SIZE:
            raise FileTooLarge(
                f"Unable to save file of size {size} to disk, max size is {MAX_FILE_SIZE}."
            )
        if size < 0:
            raise ValueError("file size must not be negative")
        self.num_bytes = size
        self.num_sectors = _div_round_up(size, SECTOR_SIZE)
        self.indirect_sectors = []
        self.indirect_blocks = []
        if free_map.num_clear() < self.num_sectors:
            raise DiskFull(f"Unable to save file of size {size}, not enough disk space.")

        remaining = self.num_sectors
        while remaining > 0:
            block = self._new_block(free_map)
            count = min(remaining, DATA_SECTORS_PER_INDIRECT)
            for _ in range(count):
                block.put_sector(_take(free_map))
            remaining -= count

    def deallocate(self, free_map: SectorMap) -> None:
        """Return all data and indirect block sectors to ``free_map``."""
        used = _div_round_up(self.num_sectors, DATA_SECTORS_PER_INDIRECT)
        for sector, block in zip(self.indirect_sectors[:used], self.indirect_blocks[:used]):
            block.deallocate(free_map)
            free_map.clear(sector)

    @classmethod
    def fetch_from(cls, disk: SectorDevice, sector: int) -> "FileHeader":
        """Read a header, and its indirect blocks, from ``sector`` of ``disk``."""
        raw = bytes(disk.read_sector(sector)).ljust(SECTOR_SIZE, b"\0")
        num_bytes, num_sectors, _count, *slots = _HEADER_FORMAT.unpack_from(raw, 0)
        if num_sectors < 0:
            raise ValueError(f"corrupt file header: {num_sectors} sectors")
        used = _div_round_up(num_sectors, DATA_SECTORS_PER_INDIRECT)
        if used > _HEADER_SLOTS:
            raise ValueError(f"corrupt file header: {num_sectors} sectors")
        header = cls()
        header.num_bytes = num_bytes
        header.num_sectors = num_sectors
        for ib_sector in slots[:used]:
            _check_ib_sector(ib_sector)
            header.indirect_sectors.append(ib_sector)
            header.indirect_blocks.append(IndirectBlock.fetch_from(disk, ib_sector))
        return header

    def write_back(self, disk: SectorDevice, sector: int) -> None:
        """Write this header to ``sector`` and its indirect blocks to theirs."""
        count = len(self.indirect_sectors)
        if count > _HEADER_SLOTS:
            raise FileTooLarge(f"a file header can record at most {_HEADER_SLOTS} indirect blocks")
        slots = self.indirect_sectors + [0] * (_HEADER_SLOTS - count)
        disk.write_sector(
            sector, _HEADER_FORMAT.pack(self.num_bytes, self.num_sectors, count, *slots)
        )
        used = _div_round_up(self.num_sectors, DATA_SECTORS_PER_INDIRECT)
        for ib_sector, block in zip(self.indirect_sectors[:used], self.indirect_blocks[:used]):
            _check_ib_sector(ib_sector)
            block.write_back(disk, ib_sector)

    def byte_to_sector(self, offset: int) -> int:
        """The disk sector that stores byte ``offset`` of the file."""
        if offset < 0:
            raise IndexError(f"offset {offset} is negative")
        index, within = divmod(offset, BYTES_PER_IB)
        if index >= len(self.indirect_blocks):
            raise IndexError(f"offset {offset} is beyond the file's sectors")
        sector = self.indirect_blocks[index].byte_to_sector(within)
        if sector < _FIRST_DATA_SECTOR:
            raise ValueError(f"offset {offset} has no data sector")
        return sector

    def extend(self, free_map: SectorMap, num_sectors: int) -> None:
        """Grow the file by ``num_sectors`` sectors taken from ``free_map``."""
        if num_sectors <= 0:
            raise ValueError("number of sectors to extend by must be positive")
        if free_map.num_clear() < num_sectors:
            raise DiskFull("not enough disk space to extend the file")

        remaining = num_sectors
        while remaining > 0:
            current = self.indirect_blocks[-1] if self.indirect_blocks else None
            room = DATA_SECTORS_PER_INDIRECT - current.num_sectors if current else 0
            if current is None or room <= 0:
                # one more sector for the new indirect block itself
                if free_map.num_clear() < remaining + 1:
                    raise DiskFull("not enough disk space to extend the file")
                if len(self.indirect_blocks) >= NUM_INDIRECT_BLOCKS:
                    raise FileTooLarge("file cannot grow past its largest size")
                current = self._new_block(free_map)
                count = min(remaining, DATA_SECTORS_PER_INDIRECT)
            else:
                if free_map.num_clear() < remaining:
                    raise DiskFull("not enough disk space to extend the file")
                count = min(remaining, room)

            for _ in range(count):
                current.put_sector(_take(free_map))
                remaining -= 1
                self.num_sectors += 1
                self.num_bytes += SECTOR_SIZE