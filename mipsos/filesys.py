"""The file system: a map of free sectors and one flat directory, both kept as files."""

from __future__ import annotations

import errno
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from .directory import ENTRY_SIZE, Directory
from .filehdr import DIRECTORY_SECTOR, FREE_MAP_SECTOR, DiskFull, FileHeader
from .indirect import SectorDevice
from .openfile import OpenFile

NUM_SECTORS = 1024
BITS_IN_BYTE = 8
NUM_DIR_ENTRIES = 10
DIRECTORY_FILE_SIZE = ENTRY_SIZE * NUM_DIR_ENTRIES


class _FreeMap:
    """One bit per disk sector; a set bit means the sector is in use."""

    def __init__(self, num_bits: int) -> None:
        self.num_bits = num_bits
        self._bits = bytearray(-(-num_bits // BITS_IN_BYTE))

    def _check(self, sector: int) -> None:
        if not 0 <= sector < self.num_bits:
            raise IndexError(f"sector {sector} is outside the disk")

    def mark(self, sector: int) -> None:
        self._check(sector)
        self._bits[sector // BITS_IN_BYTE] |= 1 << (sector % BITS_IN_BYTE)

    def clear(self, sector: int) -> None:
        self._check(sector)
        self._bits[sector // BITS_IN_BYTE] &= ~(1 << (sector % BITS_IN_BYTE)) & 0xFF

    def test(self, sector: int) -> bool:
        self._check(sector)
        return bool(self._bits[sector // BITS_IN_BYTE] & (1 << (sector % BITS_IN_BYTE)))

    def used(self) -> list[int]:
        return [sector for sector in range(self.num_bits) if self.test(sector)]

    def find(self) -> int:
        """Mark and return the first free sector, or -1 when none is left."""
        for sector in range(self.num_bits):
            if not self.test(sector):
                self.mark(sector)
                return sector
        return -1

    def num_clear(self) -> int:
        return self.num_bits - len(self.used())

    def fetch_from(self, file: OpenFile) -> None:
        size = len(self._bits)
        self._bits = bytearray(file.read_at(size, 0).ljust(size, b"\0")[:size])

    def write_back(self, file: OpenFile) -> None:
        file.write_at(bytes(self._bits), 0)


class FileSystem:
    """Files on a sector device: sector 0 holds the free map header, sector 1 the directory's."""

    def __init__(
        self,
        disk: SectorDevice,
        format: bool = False,
        num_sectors: int = NUM_SECTORS,
    ) -> None:
        if num_sectors <= 0 or num_sectors % BITS_IN_BYTE:
            raise ValueError("number of sectors must be a positive multiple of 8")
        self._disk = disk
        self.num_sectors = num_sectors
        if format:
            free_map, directory = self._format()
        self._free_map_file = OpenFile(disk, FREE_MAP_SECTOR)
        self._directory_file = OpenFile(disk, DIRECTORY_SECTOR)
        if format:
            free_map.write_back(self._free_map_file)
            directory.write_back(self._directory_file)

    def __repr__(self) -> str:
        return f"FileSystem(num_sectors={self.num_sectors})"

    @property
    def _free_map_size(self) -> int:
        return self.num_sectors // BITS_IN_BYTE

    def _format(self) -> tuple[_FreeMap, Directory]:
        free_map = _FreeMap(self.num_sectors)
        directory = Directory(NUM_DIR_ENTRIES)
        free_map.mark(FREE_MAP_SECTOR)
        free_map.mark(DIRECTORY_SECTOR)
        map_header = FileHeader()
        map_header.allocate(free_map, self._free_map_size)
        dir_header = FileHeader()
        dir_header.allocate(free_map, DIRECTORY_FILE_SIZE)
        map_header.write_back(self._disk, FREE_MAP_SECTOR)
        dir_header.write_back(self._disk, DIRECTORY_SECTOR)
        return free_map, directory

    def _load_free_map(self) -> _FreeMap:
        free_map = _FreeMap(self.num_sectors)
        free_map.fetch_from(self._free_map_file)
        return free_map

    def _load_directory(self) -> Directory:
        directory = Directory(NUM_DIR_ENTRIES)
        directory.fetch_from(self._directory_file)
        return directory

    @contextmanager
    def _free_map_session(self) -> Iterator[_FreeMap]:
        free_map = self._load_free_map()
        yield free_map
        free_map.write_back(self._free_map_file)

    def create(self, name: str, size: int) -> None:
        """Create file ``name`` with room for ``size`` bytes; nothing is stored on failure."""
        directory = self._load_directory()
        if directory.find(name) is not None:
            raise FileExistsError(errno.EEXIST, "file is already in the directory", name)
        free_map = self._load_free_map()
        sector = free_map.find()
        if sector == -1:
            raise DiskFull("no free block for file header")
        directory.add(name, sector)
        header = FileHeader()
        header.allocate(free_map, size)
        header.write_back(self._disk, sector)
        directory.write_back(self._directory_file)
        free_map.write_back(self._free_map_file)

    def open(self, name: str) -> OpenFile:
        """Open file ``name`` for reading and writing."""
        sector = self._load_directory().find(name)
        if sector is None:
            raise FileNotFoundError(errno.ENOENT, "file is not in the directory", name)
        return OpenFile(self._disk, sector, self._free_map_session)

    def remove(self, name: str) -> None:
        """Delete file ``name`` and give its sectors back."""
        directory = self._load_directory()
        sector = directory.find(name)
        if sector is None:
            raise FileNotFoundError(errno.ENOENT, "file is not in the directory", name)
        header = FileHeader.fetch_from(self._disk, sector)
        free_map = self._load_free_map()
        header.deallocate(free_map)
        free_map.clear(sector)
        directory.remove(name)
        free_map.write_back(self._free_map_file)
        directory.write_back(self._directory_file)

    def list(self, out: Optional[TextIO] = None) -> None:
        """Write the name of every file, one per line."""
        self._load_directory().list(out)

    def print(self, out: Optional[TextIO] = None) -> None:
        """Write the free map and the directory with its entries."""
        out = out if out is not None else sys.stdout
        out.write("Bit map file header:\n")
        FileHeader.fetch_from(self._disk, FREE_MAP_SECTOR)
        out.write("Directory file header:\n")
        FileHeader.fetch_from(self._disk, DIRECTORY_SECTOR)
        used = self._load_free_map().used()
        out.write("Bitmap set:\n" + "".join(f"{sector}, " for sector in used) + "\n")
        self._load_directory().print(self._disk, out)