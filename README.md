# mipsos

Building blocks for an instructional operating-system setting around
little-endian MIPS programs:

- reading MIPS COFF executables and converting them into a flat memory
  image or into the simple NOFF segment format,
- decoding MIPS instruction fields and naming opcodes,
- a little-endian simulated memory mapped at a fixed guest address,
- a small sector-based file system, with files that grow through indirect
  blocks, a fixed-size directory and a free-sector bitmap.

The package uses only the Python standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Commands

### coff2noff

```
coff2noff <coffFileName> <noffFileName>
```

Reads a MIPS COFF executable linked without shared text and writes a NOFF
file: a header that records where the code, initialised data and
uninitialised data segments sit in the file and in the virtual address
space, followed by the code and data. The sections are listed as they are
loaded. A file that is too short, is not a little-endian MIPS COFF file, is
not an `OMAGIC` executable, holds both `.data` and `.rdata`, or holds a
section of an unknown type is rejected with a message on standard error and
exit status 1, and the partly written output file is removed.

### coff2flat

```
coff2flat <coffFileName> <flatFileName>
```

Concatenates the contents of every section except `.bss` and `.sbss`, then
pads the image with a 1024-byte stack area ending in a zero word, so the
image can be copied straight into memory.

## Library use

### Object files

`mipsos.coff` holds the object-file structures. `CoffFile.parse` reads a
whole executable and raises `CoffFormatError` on bad input;
`CoffFile.find_section` and `CoffFile.section_data` get at its sections.
`NoffHeader.pack` and `NoffHeader.unpack` write and read the 40-byte NOFF
header, made of a magic number and three `Segment`s.

`mipsos.convert.coff_to_noff` and `mipsos.convert.coff_to_flat` do the
conversions on bytes in memory and raise `ConversionError`. Both take an
optional `log` callable that receives the progress lines.

```python
from pathlib import Path
from mipsos.convert import coff_to_noff
from mipsos.coff import NoffHeader

noff = coff_to_noff(Path("halt.coff").read_bytes())
header = NoffHeader.unpack(noff)
print(header.code.size, header.init_data.size, header.uninit_data.size)
```

### Instructions

`mipsos.isa` has the `Opcode`, `Special` and `BCond` enumerations, field
extractors and the mnemonic tables:

```python
from mipsos.isa import rd, rs, rt, immed, normal_op_name, special_op_name

word = 0x00851020          # add r2,r4,r5
assert (rd(word), rs(word), rt(word)) == (2, 4, 5)
assert immed(0xFFFF) == -1
assert special_op_name(word & 0x3F) == "add"
assert normal_op_name(0o43) == "lw"
```

### Memory

`mipsos.memory.Memory` is a byte array of 16 MiB by default, mapped at guest
address `0x10000000`. It reads and writes little-endian words, half words
and bytes (`fetch_word`, `fetch_half`, `fetch_byte`, `store_word`, ...) and
raw byte runs (`read_bytes`, `write_bytes`). An access outside it raises
`AddressError`.

### File system

`mipsos.filesys.FileSystem` works on any object with
`read_sector(sector) -> bytes` and `write_sector(sector, data)`, using
128-byte sectors; sector 0 holds the header of the free-sector map and
sector 1 that of the directory. The disk has 1024 sectors unless told
otherwise, and the directory has room for 10 names of up to 9 bytes.

```python
from mipsos.filesys import FileSystem

class RamDisk:
    def __init__(self, count=1024):
        self.sectors = [bytes(128)] * count

    def read_sector(self, sector):
        return self.sectors[sector]

    def write_sector(self, sector, data):
        self.sectors[sector] = bytes(data)

fs = FileSystem(RamDisk(), format=True)
fs.create("notes", 0)
f = fs.open("notes")
f.write(b"hello")
f.seek(0)
assert f.read(5) == b"hello"
fs.list()                  # prints "notes"
fs.remove("notes")
```

`create` raises `FileExistsError` for a name already present, `DiskFull`
(from `mipsos.filehdr`) when sectors run out, `FileTooLarge` past the
largest file a header can describe, and `OSError` when the directory is
full. `open` and `remove` raise `FileNotFoundError` for an unknown name.
Files are `mipsos.openfile.OpenFile` objects with `read`, `write`,
`read_at`, `write_at`, `seek` and `length`; writing past the end of a file
extends it sector by sector.

The lower layers are usable on their own: `mipsos.indirect.IndirectBlock`,
`mipsos.filehdr.FileHeader` and `mipsos.directory.Directory`.
`mipsos.fstest` holds `copy` (a host file into the file system),
`print_file` and `performance_test`, which writes a 50,000-byte file in
10-byte chunks, reads it back and removes it.

## What the package does not do

It does not run MIPS programs: there is no instruction interpreter, no
system-call handling and no command that loads an executable and starts it.
It has no disassembler and no command that dumps the sections, relocations
or symbols of an object file. It provides no disk device of its own: the
file system needs a sector device supplied by the caller, as in the example
above, and keeps nothing on the host beyond what that device stores.