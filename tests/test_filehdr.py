import struct

import pytest

from mipsos.filehdr import (
    BYTES_PER_IB,
    MAX_FILE_SIZE,
    DiskFull,
    FileHeader,
    FileTooLarge,
)
from mipsos.indirect import DATA_SECTORS_PER_INDIRECT, SECTOR_SIZE


class FakeDisk:
    def __init__(self):
        self.sectors = {}

    def read_sector(self, sector):
        return self.sectors.get(sector, bytes(SECTOR_SIZE))

    def write_sector(self, sector, data):
        assert len(data) == SECTOR_SIZE
        self.sectors[sector] = bytes(data)


class FakeFreeMap:
    def __init__(self, size):
        self.bits = [False] * size

    def mark(self, sector):
        self.bits[sector] = True

    def find(self):
        for index, used in enumerate(self.bits):
            if not used:
                self.bits[index] = True
                return index
        return -1

    def clear(self, sector):
        self.bits[sector] = False

    def num_clear(self):
        return self.bits.count(False)


def fresh_map(size=256):
    free_map = FakeFreeMap(size)
    free_map.mark(0)
    free_map.mark(1)
    return free_map


def test_allocate_small_file():
    free_map = fresh_map()
    before = free_map.num_clear()
    header = FileHeader()
    header.allocate(free_map, 3 * SECTOR_SIZE - 10)
    assert header.length == 3 * SECTOR_SIZE - 10
    assert header.num_sectors == 3
    assert header.num_indirect_blocks == 1
    assert free_map.num_clear() == before - 4
    used = header.data_sectors + header.indirect_sectors
    assert len(set(used)) == len(used)
    assert min(used) >= 2


def test_allocate_empty_file_uses_nothing():
    free_map = fresh_map()
    before = free_map.num_clear()
    header = FileHeader()
    header.allocate(free_map, 0)
    assert header.num_sectors == 0
    assert header.indirect_blocks == []
    assert free_map.num_clear() == before


def test_allocate_spans_indirect_blocks():
    free_map = fresh_map()
    header = FileHeader()
    header.allocate(free_map, (DATA_SECTORS_PER_INDIRECT + 1) * SECTOR_SIZE)
    assert header.num_indirect_blocks == 2
    assert header.indirect_blocks[0].num_sectors == DATA_SECTORS_PER_INDIRECT
    assert header.indirect_blocks[1].num_sectors == 1


def test_allocate_too_large():
    with pytest.raises(FileTooLarge):
        FileHeader().allocate(fresh_map(), MAX_FILE_SIZE + 1)


def test_allocate_not_enough_space():
    free_map = fresh_map(8)
    with pytest.raises(DiskFull):
        FileHeader().allocate(free_map, 10 * SECTOR_SIZE)


def test_allocate_no_room_for_indirect_block():
    free_map = fresh_map(6)
    with pytest.raises(DiskFull):
        FileHeader().allocate(free_map, free_map.num_clear() * SECTOR_SIZE)


def test_byte_to_sector_follows_data_sectors():
    header = FileHeader()
    size = (DATA_SECTORS_PER_INDIRECT + 3) * SECTOR_SIZE
    header.allocate(fresh_map(), size)
    found = [header.byte_to_sector(offset) for offset in range(0, size, SECTOR_SIZE)]
    assert found == header.data_sectors
    assert header.byte_to_sector(BYTES_PER_IB) == header.indirect_blocks[1].sectors[0]
    assert header.byte_to_sector(SECTOR_SIZE + 5) == header.data_sectors[1]


def test_byte_to_sector_out_of_range():
    header = FileHeader()
    header.allocate(fresh_map(), SECTOR_SIZE)
    with pytest.raises(IndexError):
        header.byte_to_sector(BYTES_PER_IB)
    with pytest.raises(ValueError):
        header.byte_to_sector(SECTOR_SIZE)


def test_deallocate_returns_all_sectors():
    free_map = fresh_map()
    before = free_map.num_clear()
    header = FileHeader()
    header.allocate(free_map, (DATA_SECTORS_PER_INDIRECT + 2) * SECTOR_SIZE)
    assert free_map.num_clear() < before
    header.deallocate(free_map)
    assert free_map.num_clear() == before


def test_write_back_fetch_from_round_trip():
    disk = FakeDisk()
    header = FileHeader()
    size = (DATA_SECTORS_PER_INDIRECT + 4) * SECTOR_SIZE + 17
    header.allocate(fresh_map(), size)
    header.write_back(disk, 1)
    loaded = FileHeader.fetch_from(disk, 1)
    assert loaded.length == size
    assert loaded.num_sectors == header.num_sectors
    assert loaded.indirect_sectors == header.indirect_sectors
    assert loaded.data_sectors == header.data_sectors
    assert loaded.byte_to_sector(size - 1) == header.byte_to_sector(size - 1)


def test_fetch_from_rejects_bad_indirect_sector():
    disk = FakeDisk()
    raw = struct.pack("<32i", 10, 1, 1, *([0] * 29))
    disk.write_sector(4, raw)
    with pytest.raises(ValueError):
        FileHeader.fetch_from(disk, 4)


def test_extend_empty_file():
    free_map = fresh_map()
    before = free_map.num_clear()
    header = FileHeader()
    header.allocate(free_map, 0)
    header.extend(free_map, 2)
    assert header.num_sectors == 2
    assert header.length == 2 * SECTOR_SIZE
    assert header.num_indirect_blocks == 1
    assert free_map.num_clear() == before - 3


def test_extend_fills_current_block_first():
    free_map = fresh_map()
    header = FileHeader()
    header.allocate(free_map, SECTOR_SIZE)
    before = free_map.num_clear()
    header.extend(free_map, 3)
    assert header.num_indirect_blocks == 1
    assert header.indirect_blocks[0].num_sectors == 4
    assert free_map.num_clear() == before - 3
    assert header.byte_to_sector(3 * SECTOR_SIZE) == header.data_sectors[3]


def test_extend_starts_new_block_when_full():
    free_map = fresh_map()
    header = FileHeader()
    header.allocate(free_map, DATA_SECTORS_PER_INDIRECT * SECTOR_SIZE)
    header.extend(free_map, 1)
    assert header.num_indirect_blocks == 2
    assert header.num_sectors == DATA_SECTORS_PER_INDIRECT + 1
    assert header.byte_to_sector(BYTES_PER_IB) == header.indirect_blocks[1].sectors[0]


def test_extend_disk_full():
    free_map = fresh_map(8)
    header = FileHeader()
    header.allocate(free_map, 0)
    with pytest.raises(DiskFull):
        header.extend(free_map, 20)


def test_extend_needs_positive_count():
    header = FileHeader()
    header.allocate(fresh_map(), 0)
    with pytest.raises(ValueError):
        header.extend(fresh_map(), 0)