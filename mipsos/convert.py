"""Turn COFF executables into flat memory images or NOFF files."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from .coff import (
    OMAGIC,
    CoffFile,
    CoffFormatError,
    NoffHeader,
    SectionHeader,
    Segment,
)

DEFAULT_STACK_SIZE = 1024
_UNINITIALISED = (".bss", ".sbss")

Log = Optional[Callable[[str], object]]


class ConversionError(Exception):
    """Raised when a COFF file cannot be converted."""


def _emit(log: Log, line: str) -> None:
    if log is not None:
        log(line)


def _load(data: bytes) -> CoffFile:
    try:
        coff = CoffFile.parse(data)
    except CoffFormatError as exc:
        raise ConversionError(str(exc)) from exc
    if coff.aout.magic != OMAGIC:
        raise ConversionError("File is not a OMAGIC file")
    return coff


def _contents(coff: CoffFile, section: SectionHeader) -> bytes:
    try:
        return coff.section_data(section)
    except CoffFormatError as exc:
        raise ConversionError(str(exc)) from exc


def _describe(section: SectionHeader) -> str:
    return (
        f'\t"{section.name}", filepos 0x{section.scnptr & 0xFFFFFFFF:x}, '
        f"mempos 0x{section.paddr & 0xFFFFFFFF:x}, "
        f"size 0x{section.size & 0xFFFFFFFF:x}"
    )


def coff_to_flat(data: bytes, stack_size: int = DEFAULT_STACK_SIZE, log: Log = None) -> bytes:
    """Concatenate loadable sections and pad the image out past a stack area."""
    coff = _load(data)
    image = bytearray()
    top = 0
    _emit(log, f"Loading {len(coff.sections)} sections:")
    for section in coff.sections:
        _emit(log, _describe(section))
        top = max(top, section.paddr + section.size)
        if section.name not in _UNINITIALISED:
            image += _contents(coff, section)
    _emit(log, f"Adding stack of size: {stack_size}")
    end = top + stack_size - 4
    if end < 0:
        raise ConversionError("Stack size too small")
    if len(image) < end:
        image.extend(bytes(end - len(image)))
    # a blank word marks where the image ends
    image[end:end + 4] = bytes(4)
    return bytes(image)


def coff_to_noff(data: bytes, log: Log = None) -> bytes:
    """Build a NOFF file from the .text, data and bss sections of a COFF file."""
    coff = _load(data)
    count = len(coff.sections)
    _emit(log, f"numsections {count} ")
    header = NoffHeader()
    body = bytearray()
    _emit(log, f"Loading {count} sections:")
    for section in coff.sections:
        _emit(log, _describe(section))
        name = section.name
        if section.size == 0:
            continue
        if name == ".text":
            header.code = Segment(section.paddr, NoffHeader.SIZE + len(body), section.size)
            body += _contents(coff, section)
        elif name in (".data", ".rdata"):
            if header.init_data.size != 0:
                raise ConversionError("Can't handle both data and rdata")
            header.init_data = Segment(section.paddr, NoffHeader.SIZE + len(body), section.size)
            body += _contents(coff, section)
        elif name in _UNINITIALISED:
            uninit = header.uninit_data
            if uninit.size != 0:
                if section.paddr == uninit.virtual_addr + uninit.size:
                    raise ConversionError("Can't handle both bss and sbss")
                uninit.size += section.size
            else:
                header.uninit_data = Segment(section.paddr, 0, section.size)
        else:
            raise ConversionError(f"Unknown segment type: {name}")
    return header.pack() + bytes(body)


def _command(
    argv: Optional[Sequence[str]],
    prog: str,
    target_label: str,
    convert: Callable[[bytes], bytes],
    discard_on_error: bool,
) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print(f"Usage: {prog} <coffFileName> <{target_label}>", file=sys.stderr)
        return 1
    source, target = Path(args[0]), Path(args[1])
    try:
        data = source.read_bytes()
    except OSError as exc:
        print(f"{source}: {exc.strerror}", file=sys.stderr)
        return 1
    try:
        handle = target.open("wb")
    except OSError as exc:
        print(f"{target}: {exc.strerror}", file=sys.stderr)
        return 1
    failed = False
    with handle:
        try:
            handle.write(convert(data))
        except ConversionError as exc:
            print(exc, file=sys.stderr)
            failed = True
        except OSError:
            print("Unable to write file", file=sys.stderr)
            failed = True
    if failed:
        if discard_on_error:
            target.unlink(missing_ok=True)
        return 1
    return 0


def flat_main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line entry: convert a COFF file to a flat image."""
    return _command(argv, "coff2flat", "flatFileName",
                    lambda data: coff_to_flat(data, log=print), False)


def noff_main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line entry: convert a COFF file to a NOFF file."""
    return _command(argv, "coff2noff", "noffFileName",
                    lambda data: coff_to_noff(data, log=print), True)