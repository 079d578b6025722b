"""MIPS little-endian COFF object files and the NOFF header that describes them."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import ClassVar, Optional

MIPSELMAGIC = 0x0162
OMAGIC = 0o407
SOMAGIC = 0x0701
NOFFMAGIC = 0xBADFAD

_FILE_FORMAT = struct.Struct("<HHiiiHH")
_AOUT_FORMAT = struct.Struct("<hh8i4ii")
_SECTION_FORMAT = struct.Struct("<8s6iHHi")
_NOFF_FORMAT = struct.Struct("<10i")


class CoffFormatError(ValueError):
    """Raised when data cannot be read as a MIPS COFF file."""


def _unpack(fmt: struct.Struct, data: bytes) -> tuple:
    try:
        return fmt.unpack_from(data, 0)
    except struct.error as exc:
        raise CoffFormatError("File is too short") from exc


@dataclass(frozen=True)
class CoffFileHeader:
    """The COFF file header."""

    magic: int
    num_sections: int
    timestamp: int
    symbol_pointer: int
    num_symbols: int
    optional_header_size: int
    flags: int

    SIZE: ClassVar[int] = _FILE_FORMAT.size

    @classmethod
    def parse(cls, data: bytes) -> "CoffFileHeader":
        return cls(*_unpack(_FILE_FORMAT, data))


@dataclass(frozen=True)
class AoutHeader:
    """The a.out system header that follows the file header."""

    magic: int
    version_stamp: int
    text_size: int
    data_size: int
    bss_size: int
    entry: int
    text_start: int
    data_start: int
    bss_start: int
    gpr_mask: int
    cpr_masks: tuple[int, int, int, int]
    gp_value: int

    SIZE: ClassVar[int] = _AOUT_FORMAT.size

    @classmethod
    def parse(cls, data: bytes) -> "AoutHeader":
        values = _unpack(_AOUT_FORMAT, data)
        return cls(*values[:10], cpr_masks=tuple(values[10:14]), gp_value=values[14])


@dataclass(frozen=True)
class SectionHeader:
    """One COFF section header."""

    name: str
    paddr: int
    vaddr: int
    size: int
    scnptr: int
    relptr: int
    lnnoptr: int
    nreloc: int
    nlnno: int
    flags: int

    SIZE: ClassVar[int] = _SECTION_FORMAT.size

    @classmethod
    def parse(cls, data: bytes) -> "SectionHeader":
        raw_name, *rest = _unpack(_SECTION_FORMAT, data)
        name = raw_name.split(b"\0", 1)[0].decode("latin-1")
        return cls(name, *rest)


@dataclass(frozen=True)
class CoffFile:
    """A parsed COFF file: headers, section table and the raw bytes."""

    header: CoffFileHeader
    aout: AoutHeader
    sections: tuple[SectionHeader, ...]
    data: bytes = field(repr=False)

    @classmethod
    def parse(cls, data: bytes) -> "CoffFile":
        data = bytes(data)
        header = CoffFileHeader.parse(data)
        if header.magic != MIPSELMAGIC:
            raise CoffFormatError("File is not a MIPSEL COFF file")
        aout = AoutHeader.parse(data[CoffFileHeader.SIZE:])
        table_start = CoffFileHeader.SIZE + AoutHeader.SIZE
        sections = tuple(
            SectionHeader.parse(data[table_start + index * SectionHeader.SIZE:])
            for index in range(header.num_sections)
        )
        return cls(header, aout, sections, data)

    def find_section(self, name: str) -> Optional[SectionHeader]:
        """Return the first section called ``name``, or None."""
        return next((s for s in self.sections if s.name == name), None)

    def section_data(self, section: SectionHeader) -> bytes:
        """Return the raw contents of ``section`` from the file."""
        start, size = section.scnptr, section.size
        if start < 0 or size < 0 or start + size > len(self.data):
            raise CoffFormatError("File is too short")
        return self.data[start:start + size]


@dataclass
class Segment:
    """Where a segment lives in the address space and in the NOFF file."""

    virtual_addr: int = 0
    in_file_addr: int = 0
    size: int = 0


@dataclass
class NoffHeader:
    """Header of a NOFF executable: code, initialised and uninitialised data."""

    magic: int = NOFFMAGIC
    code: Segment = field(default_factory=Segment)
    init_data: Segment = field(default_factory=Segment)
    uninit_data: Segment = field(default_factory=Segment)

    SIZE: ClassVar[int] = _NOFF_FORMAT.size

    def pack(self) -> bytes:
        segments = (self.code, self.init_data, self.uninit_data)
        values = [self.magic]
        for segment in segments:
            values += [segment.virtual_addr, segment.in_file_addr, segment.size]
        return _NOFF_FORMAT.pack(*values)

    @classmethod
    def unpack(cls, data: bytes) -> "NoffHeader":
        values = _unpack(_NOFF_FORMAT, data)
        return cls(
            values[0],
            Segment(*values[1:4]),
            Segment(*values[4:7]),
            Segment(*values[7:10]),
        )