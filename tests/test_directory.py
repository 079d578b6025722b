import errno
import io

import pytest

from mipsos.directory import ENTRY_SIZE, FILE_NAME_MAX_LEN, Directory
from mipsos.filehdr import FileHeader
from mipsos.indirect import SECTOR_SIZE


class BufferFile:
    def __init__(self):
        self.data = bytearray()

    def read_at(self, size, position):
        return bytes(self.data[position:position + size])

    def write_at(self, data, position):
        end = position + len(data)
        if len(self.data) < end:
            self.data.extend(bytes(end - len(self.data)))
        self.data[position:end] = data
        return len(data)


class MemoryDisk:
    def __init__(self, num_sectors):
        self.sectors = [bytes(SECTOR_SIZE) for _ in range(num_sectors)]

    def read_sector(self, sector):
        return self.sectors[sector]

    def write_sector(self, sector, data):
        self.sectors[sector] = bytes(data).ljust(SECTOR_SIZE, b"\0")


class BitMap:
    def __init__(self, size):
        self.bits = [False] * size

    def find(self):
        for index, used in enumerate(self.bits):
            if not used:
                self.bits[index] = True
                return index
        return -1

    def clear(self, index):
        self.bits[index] = False

    def num_clear(self):
        return self.bits.count(False)


def test_add_then_find():
    directory = Directory(4)
    directory.add("alpha", 7)
    assert directory.find("alpha") == 7


def test_find_missing_returns_none():
    directory = Directory(4)
    directory.add("alpha", 7)
    assert directory.find("beta") is None


def test_duplicate_add_raises():
    directory = Directory(4)
    directory.add("alpha", 7)
    with pytest.raises(FileExistsError):
        directory.add("alpha", 8)
    assert directory.find("alpha") == 7


def test_full_directory_raises():
    directory = Directory(2)
    directory.add("a", 2)
    directory.add("b", 3)
    with pytest.raises(OSError) as info:
        directory.add("c", 4)
    assert info.value.errno == errno.ENOSPC
    assert directory.names() == ["a", "b"]


def test_remove():
    directory = Directory(4)
    directory.add("alpha", 7)
    directory.remove("alpha")
    assert directory.find("alpha") is None
    with pytest.raises(FileNotFoundError):
        directory.remove("alpha")


def test_removed_slot_is_reused_in_table_order():
    directory = Directory(4)
    directory.add("a", 2)
    directory.add("b", 3)
    directory.remove("a")
    directory.add("c", 4)
    assert directory.names() == ["c", "b"]


def test_long_names_are_truncated_and_matched_on_prefix():
    directory = Directory(4)
    long_name = "abcdefghijklm"
    directory.add(long_name, 5)
    assert directory.names() == [long_name[:FILE_NAME_MAX_LEN]]
    assert directory.find(long_name[:FILE_NAME_MAX_LEN] + "zz") == 5


def test_write_back_and_fetch_round_trip():
    file = BufferFile()
    directory = Directory(5)
    directory.add("one", 10)
    directory.add("two", 11)
    directory.add("three", 12)
    directory.remove("two")
    directory.write_back(file)

    loaded = Directory(5)
    loaded.fetch_from(file)
    assert loaded.names() == ["one", "three"]
    assert loaded.find("three") == 12
    assert loaded.entries == directory.entries


def test_table_occupies_fixed_size_entries():
    file = BufferFile()
    directory = Directory(3)
    directory.write_back(file)
    assert len(file.data) == 3 * ENTRY_SIZE
    assert ENTRY_SIZE == 20


def test_fetch_from_short_file_gives_empty_directory():
    directory = Directory(3)
    directory.fetch_from(BufferFile())
    assert directory.names() == []


def test_list_writes_names():
    directory = Directory(4)
    directory.add("a", 2)
    directory.add("b", 3)
    out = io.StringIO()
    directory.list(out)
    assert out.getvalue() == "a\nb\n"


def test_print_reads_headers():
    disk = MemoryDisk(32)
    bitmap = BitMap(32)
    bitmap.find()
    bitmap.find()
    sector = bitmap.find()
    header = FileHeader()
    header.allocate(bitmap, 10)
    header.write_back(disk, sector)

    directory = Directory(4)
    directory.add("data", sector)
    out = io.StringIO()
    directory.print(disk, out)
    assert out.getvalue() == f"Directory contents:\nName: data, Sector: {sector}\n\n"


def test_size_must_be_positive():
    with pytest.raises(ValueError):
        Directory(0)