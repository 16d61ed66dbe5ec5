"""Tests for archive packing layout."""

import pytest

from gfarch.checksum import checksum
from gfarch.errors import (
    ArchiveLayoutError,
    ArchivePackError,
    EntryCountMismatchError,
    InvalidFilenameError,
)
from gfarch.model import (
    KNOWN_CUSTOM_GFCP_OFFSET,
    CompressionScheme,
    Entry,
    FormatVersion,
    LayoutOffset,
    align_up,
    read_u32,
)
from gfarch.writer import pack, pack_files


def entry_records(data):
    count = read_u32(data, 0x2C)
    return [
        tuple(read_u32(data, 0x30 + i * 16 + field) for field in (0, 4, 8, 12))
        for i in range(count)
    ]


class TestHeader:
    def test_fixed_fields(self, sample_entries, identity_codecs):
        data = pack(sample_entries, codecs=identity_codecs)

        assert data[0:4] == b"GFAC"
        assert read_u32(data, 0x04) == 0x0301
        assert data[0x08] == 1
        assert read_u32(data, 0x0C) == 0x2C
        # 4 + 4 * 16 + len("sea_turtle_01.brres\0bg.tpl\0empty.bin\0level.map\0")
        assert read_u32(data, 0x10) == 0x73
        assert read_u32(data, 0x14) == 0xB0
        assert read_u32(data, 0x18) == 0x14 + 80
        assert read_u32(data, 0x2C) == 4
        assert len(data) == 0xB0 + 0x14 + 80

    @pytest.mark.parametrize(
        "version, code",
        [(FormatVersion.V2_0, 0x0200), (FormatVersion.V3_0, 0x0300), (FormatVersion.V3_1, 0x0301)],
    )
    def test_version_code(self, sample_entries, identity_codecs, version, code):
        data = pack(sample_entries, version=version, codecs=identity_codecs)
        assert read_u32(data, 0x04) == code

    def test_version_does_not_change_layout(self, sample_entries, identity_codecs):
        v2 = pack(sample_entries, version=FormatVersion.V2_0, codecs=identity_codecs)
        v3 = pack(sample_entries, version=FormatVersion.V3_1, codecs=identity_codecs)
        assert len(v2) == len(v3)
        assert v2[:4] + v2[8:] == v3[:4] + v3[8:]


class TestEntryTable:
    def test_records(self, sample_entries, identity_codecs):
        data = pack(sample_entries, codecs=identity_codecs)
        records = entry_records(data)

        assert [r[0] for r in records] == [checksum(name) for name, _ in sample_entries]
        assert [r[1] for r in records] == [0x70, 0x84, 0x8B, 0x95 | 0x80000000]
        assert [r[2] for r in records] == [5, 20, 0, 32]
        assert [r[3] for r in records] == [0xB0, 0xC0, 0xE0, 0xE0]

    def test_only_last_entry_flagged(self, sample_entries, identity_codecs):
        data = pack(sample_entries, codecs=identity_codecs)
        flagged = [i for i, r in enumerate(entry_records(data)) if r[1] & 0x80000000]
        assert flagged == [len(sample_entries) - 1]

    def test_single_entry_flagged(self, identity_codecs):
        data = pack([("only.bin", b"x")], codecs=identity_codecs)
        assert entry_records(data)[0][1] & 0x80000000

    def test_offsets_aligned(self, identity_codecs):
        entries = [(f"f{i}.bin", bytes(i * 7)) for i in range(10)]
        records = entry_records(pack(entries, codecs=identity_codecs))
        for prev, cur, (_, contents) in zip(records, records[1:], entries):
            assert cur[3] - prev[3] == align_up(len(contents))

    def test_filename_table(self, sample_entries, identity_codecs):
        data = pack(sample_entries, codecs=identity_codecs)
        table = b"sea_turtle_01.brres\0bg.tpl\0empty.bin\0level.map\0"
        assert data[0x70 : 0x70 + len(table)] == table


class TestPayload:
    def test_compression_header(self, sample_entries, identity_codecs):
        data = pack(sample_entries, compression=CompressionScheme.LZ10, codecs=identity_codecs)
        gfcp = read_u32(data, 0x14)

        assert data[gfcp : gfcp + 4] == b"GFCP"
        assert read_u32(data, gfcp + 4) == 1
        assert read_u32(data, gfcp + 8) == 3
        assert read_u32(data, gfcp + 12) == 80
        assert read_u32(data, gfcp + 16) == 80

    def test_payload_padding(self, sample_entries, identity_codecs):
        data = pack(sample_entries, codecs=identity_codecs)
        payload = data[0xB0 + 0x14 :]

        assert payload[0:16] == b"\x01" * 5 + bytes(11)
        assert payload[16:48] == bytes(range(20)) + bytes(12)
        assert payload[48:80] == b"MAP\x00" * 8

    def test_bpe_type_code(self, sample_entries):
        data = pack(sample_entries, compression=CompressionScheme.BPE)
        assert read_u32(data, read_u32(data, 0x14) + 8) == 1

    def test_deterministic(self, sample_entries):
        assert pack(sample_entries) == pack(sample_entries)
        assert pack(sample_entries, compression=CompressionScheme.LZ10) == pack(
            sample_entries, compression=CompressionScheme.LZ10
        )


class TestCustomLayout:
    @pytest.mark.parametrize("count", [1, 5, 40])
    def test_gfcp_at_fixed_offset(self, identity_codecs, count):
        entries = [(f"model_{i:03d}.brres", bytes([i]) * (i + 1)) for i in range(count)]
        data = pack(
            entries,
            layout=LayoutOffset.custom(KNOWN_CUSTOM_GFCP_OFFSET),
            codecs=identity_codecs,
        )

        assert read_u32(data, 0x14) == 0x2000
        assert data[0x2000:0x2004] == b"GFCP"
        assert entry_records(data)[0][3] == 0x2000

    def test_size(self, sample_entries, identity_codecs):
        data = pack(sample_entries, layout=LayoutOffset.custom(0x2000), codecs=identity_codecs)
        assert len(data) == 0x2000 + 0x14 + 80
        assert read_u32(data, 0x10) == 0x73

    def test_overlapping_offset_rejected(self, sample_entries):
        with pytest.raises(ArchiveLayoutError):
            pack(sample_entries, layout=LayoutOffset.custom(0x40))


class TestPreconditions:
    def test_nul_in_filename(self):
        with pytest.raises(InvalidFilenameError):
            pack([("bad\0name", b"x")])

    def test_not_a_pair(self):
        with pytest.raises(ArchivePackError):
            pack([("lonely",)])

    def test_contents_not_bytes(self):
        with pytest.raises(ArchivePackError):
            pack([("a.txt", "text")])

    def test_count_mismatch(self):
        with pytest.raises(EntryCountMismatchError):
            pack_files(["a", "b"], [b"1"])

    def test_pack_files(self, identity_codecs):
        assert pack_files(["a", "b"], [b"1", b"2"], codecs=identity_codecs) == pack(
            [("a", b"1"), ("b", b"2")], codecs=identity_codecs
        )

    def test_accepts_entries_and_bytes_names(self, identity_codecs):
        assert pack([Entry("a", b"1"), (b"b", b"2")], codecs=identity_codecs) == pack(
            [("a", b"1"), ("b", b"2")], codecs=identity_codecs
        )

    def test_empty_archive(self, identity_codecs):
        data = pack([], codecs=identity_codecs)
        assert read_u32(data, 0x2C) == 0
        assert read_u32(data, 0x10) == 4
        assert data[0x40:0x44] == b"GFCP"
