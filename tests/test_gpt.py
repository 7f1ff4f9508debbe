"""Tests for the ``gpt`` module."""

import pytest

from partscan.gpt import (
    PARTITION_NAME_UNNAMED,
    Header,
    Partition,
    PartitionEntry,
    decode_name,
    read_partitions,
)
from partscan.report import Advisory, AdvisoryKind
from partscan.source import BufferSource

from .images import (
    EFI_SYSTEM_PARTITION,
    UNUSED,
    gpt_entry,
    gpt_header,
    gpt_image,
    protective_mbr,
)


def read(data):
    return read_partitions(BufferSource(data))


def test_structure_layout():
    """Test that the raw structures match the on-disk layout."""
    assert len(Header) == 92
    assert Header.offset_of('revision') == 8
    assert Header.offset_of('partition_array_lba') == 72
    assert Header.offset_of('partition_entries_count') == 80
    assert Header.offset_of('partition_entry_size') == 84
    assert len(PartitionEntry) == 128
    assert PartitionEntry.offset_of('start_lba') == 32
    assert PartitionEntry.offset_of('end_lba') == 40
    assert PartitionEntry.offset_of('name') == 56


def test_header():
    header = Header.from_buffer(gpt_header(revision=0x00010002, entries_count=4))
    assert header.signature == b'EFI PART'
    assert header.revision_major == 1
    assert header.revision_minor == 2
    assert header.partition_array_lba == 2
    assert header.partition_entries_count == 4
    assert header.partition_entry_size == 128
    assert header.partition_array_offset == 1024
    assert header.required_size == 1024 + 4 * 128


class TestDecodeName:
    """Tests for ``decode_name()``."""

    @pytest.mark.parametrize(
        'name', ['', 'EFI System Partition', 'Linux filesystem', 'x' * 36, '~ !@#']
    )
    def test_ascii(self, name):
        assert decode_name(name.encode('utf-16le').ljust(72, b'\x00')) == name

    @pytest.mark.parametrize(
        ['name', 'expected'],
        [
            ('Dätä', 'Dt'),
            ('Ω-Root', '-Root'),
            ('数据', ''),
            ('tab\there', 'tabhere'),
            ('del\x7f', 'del'),
        ],
    )
    def test_non_ascii_dropped(self, name, expected):
        """Test that only printable ASCII characters are kept."""
        assert decode_name(name.encode('utf-16le').ljust(72, b'\x00')) == expected

    def test_stop_at_null(self):
        """Test that decoding stops at the first null code unit."""
        b = 'A'.encode('utf-16le') + b'\x00\x00' + 'B'.encode('utf-16le')
        assert decode_name(b.ljust(72, b'\x00')) == 'A'

    def test_high_byte_set(self):
        """Test that a code unit is dropped if its high byte is set, even if its low
        byte is printable.
        """
        assert decode_name(b'A\x01B\x00') == 'B'

    def test_odd_length(self):
        assert decode_name(b'A\x00B') == 'A'


def test_single_partition(gpt_image_single):
    """Test that a single used entry yields a single partition."""
    header, records = read(gpt_image_single)
    assert header.partition_entries_count == 128
    assert len(records) == 1

    p = records[0]
    assert isinstance(p, Partition)
    assert p.number == 1
    assert p.start_lba == 34
    assert p.end_lba == 2047
    assert p.length_lba == 2014
    assert p.name == 'Linux filesystem'
    assert p.size == 2014 * 512
    assert p.size_gib == pytest.approx((2047 - 34 + 1) * 512 / 2**30)
    assert p.size_gib == pytest.approx(0.00096, abs=1e-5)


def test_unnamed():
    _, (p,) = read(gpt_image([gpt_entry(2048, 4095)]))
    assert p.name == PARTITION_NAME_UNNAMED == 'Unnamed'


def test_sequential_numbering():
    """Test that partitions are numbered by their position among used entries."""
    entries = [bytes(128)] * 6
    entries[0] = gpt_entry(2048, 4095, name='a', type_guid=EFI_SYSTEM_PARTITION)
    entries[2] = gpt_entry(4096, 8191, name='b')
    entries[5] = gpt_entry(8192, 16383, name='c')
    _, records = read(gpt_image(entries))
    assert [(p.number, p.name) for p in records] == [(1, 'a'), (2, 'b'), (3, 'c')]
    assert records[0].type_guid == EFI_SYSTEM_PARTITION


def test_skip_unused_with_garbage():
    """Test that an all-zero type GUID marks an entry unused, even if its other
    fields hold values.
    """
    entries = [
        gpt_entry(100, 200, name='garbage', type_guid=UNUSED),
        gpt_entry(2048, 4095, name='used'),
    ]
    _, records = read(gpt_image(entries))
    assert len(records) == 1
    assert records[0].number == 1
    assert records[0].name == 'used'


def test_large_entry_size():
    """Test that entries are located using the entry size found in the header."""
    entries = [
        gpt_entry(2048, 4095, name='first', entry_size=256),
        gpt_entry(4096, 8191, name='second', entry_size=256),
    ]
    _, records = read(gpt_image(entries, entries_count=4, entry_size=256))
    assert [p.name for p in records] == ['first', 'second']


def test_array_lba():
    """Test that the partition entry array is read from the LBA found in the
    header.
    """
    data = gpt_image([gpt_entry(2048, 4095, name='far')], array_lba=8, entries_count=4)
    _, records = read(data)
    assert records[0].name == 'far'


def test_no_partitions():
    """Test that a valid header without used entries yields a single advisory."""
    header, records = read(gpt_image([gpt_entry(100, 200, type_guid=UNUSED)]))
    assert header is not None
    assert records == (
        Advisory(
            AdvisoryKind.NO_PARTITIONS,
            'GPT structure valid (Rev 1.0)',
            'No active partitions found in partition table',
        ),
    )


def test_no_partition_entries():
    _, records = read(gpt_image(entries_count=0, entry_size=0))
    assert [a.kind for a in records] == [AdvisoryKind.NO_PARTITIONS]


@pytest.mark.parametrize('size', [0, 512, 1023])
def test_insufficient_data(size):
    """Test that less than two sectors yield a single advisory."""
    data = (protective_mbr() + b'\x00' * 1024)[:size]
    header, records = read(data)
    assert header is None
    assert records == (
        Advisory(
            AdvisoryKind.INSUFFICIENT_DATA,
            'GPT detected but insufficient data',
            'Need at least 1KB of data to read GPT header',
            1024,
        ),
    )


def test_invalid_signature():
    data = protective_mbr() + gpt_header(signature=b'EFI FART')
    header, records = read(data)
    assert header is None
    assert len(records) == 1
    assert records[0].kind is AdvisoryKind.INVALID_SIGNATURE
    assert records[0].info == 'Invalid GPT signature in header'
    assert records[0].required_size is None


@pytest.mark.parametrize('missing', [1, 128, 16384])
def test_truncated_table(gpt_image_single, missing):
    """Test that a partition entry array extending past the data yields a single
    advisory carrying the required amount of bytes.
    """
    required = 2 * 512 + 128 * 128
    assert len(gpt_image_single) == required

    header, records = read(gpt_image_single[:-missing])
    assert header.partition_entries_count == 128
    assert records == (
        Advisory(
            AdvisoryKind.TABLE_TRUNCATED,
            'GPT detected (Rev 1.0, 128 partitions)',
            f'Need at least {required} bytes to read all partition entries',
            required,
        ),
    )


def test_truncated_table_header_only():
    header, records = read(protective_mbr() + gpt_header())
    assert len(records) == 1
    assert records[0].kind is AdvisoryKind.TABLE_TRUNCATED
    assert records[0].required_size == 17408


@pytest.mark.parametrize('entry_size', [1, 48, 64, 127])
def test_invalid_entry_size(entry_size):
    """Test that entries too small to hold the fields of a partition entry are
    reported instead of read.
    """
    data = gpt_image(entries_count=4, entry_size=entry_size).ljust(4096, b'\x00')
    header, records = read(data)
    assert header.partition_entry_size == entry_size
    assert [a.kind for a in records] == [AdvisoryKind.INVALID_HEADER]


def test_inverted_bounds():
    """Test that an entry ending before it starts is reported as an advisory and
    does not take up a partition number.
    """
    entries = [
        gpt_entry(4095, 2048, name='inverted'),
        gpt_entry(4096, 8191, name='ok'),
    ]
    _, records = read(gpt_image(entries))
    assert len(records) == 2
    assert records[0].kind is AdvisoryKind.INVALID_ENTRY
    assert records[0].entry == 1
    assert isinstance(records[1], Partition)
    assert records[1].number == 1


def test_inverted_bounds_only():
    _, records = read(gpt_image([gpt_entry(4095, 2048)]))
    assert [a.kind for a in records] == [
        AdvisoryKind.INVALID_ENTRY,
        AdvisoryKind.NO_PARTITIONS,
    ]


def test_partition_bounds():
    with pytest.raises(ValueError):
        Partition(1, 10, 9, 'Unnamed', EFI_SYSTEM_PARTITION)
    assert Partition(1, 10, 10, 'Unnamed', EFI_SYSTEM_PARTITION).length_lba == 1
