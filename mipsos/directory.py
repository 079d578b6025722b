"""A flat directory: a fixed table of file names and their header sectors."""

from __future__ import annotations

import errno
import struct
import sys
from dataclasses import dataclass
from typing import Optional, Protocol, TextIO

from .filehdr import FileHeader
from .indirect import SectorDevice

FILE_NAME_MAX_LEN = 9

# in use flag, header sector, name with room for its terminating zero
_ENTRY = struct.Struct(f"<?3xi{FILE_NAME_MAX_LEN + 1}s2x")
ENTRY_SIZE = _ENTRY.size


class _File(Protocol):
    def read_at(self, size: int, position: int) -> bytes: ...

    def write_at(self, data: bytes, position: int) -> int: ...


def _fit(name: str) -> str:
    """The name as it is stored: at most FILE_NAME_MAX_LEN bytes."""
    return name.encode("utf-8")[:FILE_NAME_MAX_LEN].decode("utf-8", "ignore")


@dataclass
class DirectoryEntry:
    """One slot of the directory table."""

    in_use: bool = False
    sector: int = 0
    name: str = ""


class Directory:
    """A table of ``size`` entries mapping names to file header sectors."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("directory size must be positive")
        self.size = size
        self.entries = [DirectoryEntry() for _ in range(size)]

    def __repr__(self) -> str:
        return f"Directory(size={self.size}, names={self.names()!r})"

    def fetch_from(self, file: _File) -> None:
        """Load the table from ``file``."""
        length = self.size * ENTRY_SIZE
        raw = bytes(file.read_at(length, 0)).ljust(length, b"\0")[:length]
        self.entries = [
            DirectoryEntry(
                bool(in_use),
                sector,
                raw_name.split(b"\0", 1)[0].decode("utf-8", "ignore"),
            )
            for in_use, sector, raw_name in _ENTRY.iter_unpack(raw)
        ]

    def write_back(self, file: _File) -> None:
        """Store the table in ``file``."""
        data = b"".join(
            _ENTRY.pack(entry.in_use, entry.sector, entry.name.encode("utf-8"))
            for entry in self.entries
        )
        file.write_at(data, 0)

    def _find_index(self, name: str) -> Optional[int]:
        key = _fit(name)
        return next(
            (index for index, entry in enumerate(self.entries)
             if entry.in_use and entry.name == key),
            None,
        )

    def find(self, name: str) -> Optional[int]:
        """The header sector of ``name``, or None if it is not in the directory."""
        index = self._find_index(name)
        return None if index is None else self.entries[index].sector

    def add(self, name: str, sector: int) -> None:
        """Record ``name`` with its header in ``sector``."""
        if self._find_index(name) is not None:
            raise FileExistsError(errno.EEXIST, "file is already in the directory", name)
        for entry in self.entries:
            if not entry.in_use:
                entry.in_use = True
                entry.name = _fit(name)
                entry.sector = sector
                return
        raise OSError(errno.ENOSPC, "no space in directory", name)

    def remove(self, name: str) -> None:
        """Drop ``name`` from the directory."""
        index = self._find_index(name)
        if index is None:
            raise FileNotFoundError(errno.ENOENT, "file is not in the directory", name)
        self.entries[index].in_use = False

    def names(self) -> list[str]:
        """Names of all files, in table order."""
        return [entry.name for entry in self.entries if entry.in_use]

    def list(self, out: Optional[TextIO] = None) -> None:
        """Write each file name on its own line."""
        out = out if out is not None else sys.stdout
        for name in self.names():
            out.write(f"{name}\n")

    def print(self, disk: SectorDevice, out: Optional[TextIO] = None) -> None:
        """Write every entry with its header sector, reading each header from ``disk``."""
        out = out if out is not None else sys.stdout
        out.write("Directory contents:\n")
        for entry in self.entries:
            if entry.in_use:
                out.write(f"Name: {entry.name}, Sector: {entry.sector}\n")
                FileHeader.fetch_from(disk, entry.sector)
        out.write("\n")