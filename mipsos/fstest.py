"""Copy host files in, print files out, and stress the file system."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional, TextIO

from .filehdr import DiskFull
from .filesys import FileSystem

TRANSFER_SIZE = 10

FILE_NAME = "TestFile"
CONTENTS = b"1234567890"
CONTENT_SIZE = len(CONTENTS)
FILE_SIZE = CONTENT_SIZE * 5000


def copy(fs: FileSystem, source: str | os.PathLike[str], dest: str) -> None:
    """Copy host file ``source`` into the file system as ``dest``."""
    with Path(source).open("rb") as src:
        length = os.fstat(src.fileno()).st_size
        fs.create(dest, length)
        target = fs.open(dest)
        while chunk := src.read(TRANSFER_SIZE):
            target.write(chunk)


def print_file(fs: FileSystem, name: str, out: Optional[TextIO] = None) -> None:
    """Write the contents of file ``name`` to ``out``."""
    out = out if out is not None else sys.stdout
    file = fs.open(name)
    while chunk := file.read(TRANSFER_SIZE):
        out.write(chunk.decode("latin-1"))


def _file_write(fs: FileSystem, out: TextIO) -> None:
    out.write(f"Sequential write of {FILE_SIZE} byte file, in {CONTENT_SIZE} byte chunks\n")
    fs.create(FILE_NAME, 0)
    file = fs.open(FILE_NAME)
    for _ in range(0, FILE_SIZE, CONTENT_SIZE):
        try:
            written = file.write(CONTENTS)
        except DiskFull as exc:
            raise OSError(f"Perf test: unable to write {FILE_NAME}") from exc
        if written < CONTENT_SIZE:
            raise OSError(f"Perf test: unable to write {FILE_NAME}")


def _file_read(fs: FileSystem, out: TextIO) -> None:
    out.write(f"Sequential read of {FILE_SIZE} byte file, in {CONTENT_SIZE} byte chunks\n")
    file = fs.open(FILE_NAME)
    for _ in range(0, FILE_SIZE, CONTENT_SIZE):
        if file.read(CONTENT_SIZE) != CONTENTS:
            raise OSError(f"Perf test: unable to read {FILE_NAME}")


def performance_test(fs: FileSystem, out: Optional[TextIO] = None) -> None:
    """Write a large file in small chunks, read it back, then remove it."""
    out = out if out is not None else sys.stdout
    out.write("Starting file system performance test:\n")
    _file_write(fs, out)
    _file_read(fs, out)
    fs.remove(FILE_NAME)