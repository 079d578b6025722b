"""Indirect blocks: one sector that lists the data sectors it owns."""

from __future__ import annotations

import struct
from typing import Protocol

SECTOR_SIZE = 128
_INT_SIZE = 4

# One count followed by as many sector numbers as fit in the rest of a sector.
DATA_SECTORS_PER_INDIRECT = (SECTOR_SIZE - _INT_SIZE) // _INT_SIZE

_FORMAT = struct.Struct(f"<i{DATA_SECTORS_PER_INDIRECT}i")


class SectorDevice(Protocol):
    """A disk that reads and writes whole sectors."""

    def read_sector(self, sector: int) -> bytes: ...

    def write_sector(self, sector: int, data: bytes) -> None: ...


class SectorMap(Protocol):
    """A map of free disk sectors."""

    def find(self) -> int: ...

    def clear(self, sector: int) -> None: ...

    def num_clear(self) -> int: ...


class IndirectBlock:
    """A sector holding the numbers of up to ``DATA_SECTORS_PER_INDIRECT`` data sectors."""

    def __init__(self) -> None:
        self.num_sectors = 0
        self.data_sectors = [-1] * DATA_SECTORS_PER_INDIRECT

    def __repr__(self) -> str:
        return f"IndirectBlock(sectors={self.sectors!r})"

    @property
    def sectors(self) -> list[int]:
        """The data sectors currently allocated to this block."""
        return self.data_sectors[:self.num_sectors]

    @property
    def is_full(self) -> bool:
        return self.num_sectors >= DATA_SECTORS_PER_INDIRECT

    def put_sector(self, sector: int) -> None:
        """Record a newly allocated data sector."""
        if self.is_full:
            raise ValueError("indirect block is full")
        self.data_sectors[self.num_sectors] = sector
        self.num_sectors += 1

    def deallocate(self, free_map: SectorMap) -> None:
        """Return every data sector of this block to ``free_map``."""
        for sector in self.sectors:
            free_map.clear(sector)
        self.num_sectors = 0

    def byte_to_sector(self, offset: int) -> int:
        """The sector holding byte ``offset`` of this block, or -1 if none is recorded."""
        index = offset // SECTOR_SIZE
        if offset < 0 or index >= DATA_SECTORS_PER_INDIRECT:
            raise IndexError(f"offset {offset} is outside the indirect block")
        sector = self.data_sectors[index]
        return sector if sector > 0 else -1

    def pack(self) -> bytes:
        """The on-disk form: exactly one sector."""
        return _FORMAT.pack(self.num_sectors, *self.data_sectors)

    @classmethod
    def unpack(cls, data: bytes) -> "IndirectBlock":
        try:
            count, *sectors = _FORMAT.unpack_from(bytes(data), 0)
        except struct.error as exc:
            raise ValueError("indirect block data is too short") from exc
        if not 0 <= count <= DATA_SECTORS_PER_INDIRECT:
            raise ValueError(f"corrupt indirect block: {count} sectors")
        block = cls()
        block.num_sectors = count
        block.data_sectors = list(sectors)
        return block

    def write_back(self, disk: SectorDevice, sector: int) -> None:
        """Write this block to ``sector`` of ``disk``."""
        disk.write_sector(sector, self.pack())

    @classmethod
    def fetch_from(cls, disk: SectorDevice, sector: int) -> "IndirectBlock":
        """Read a block stored in ``sector`` of ``disk``."""
        return cls.unpack(disk.read_sector(sector))