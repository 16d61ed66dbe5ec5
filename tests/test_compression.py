"""Tests for the compression adapter."""

import pytest
from ndspy import lz10

from gfarch.compression import (
    DEFAULT_CODECS,
    LZ10_HEADER_SIZE,
    BpeCodec,
    Lz10Codec,
    get_codec,
)
from gfarch.errors import ArchiveLayoutError, BPEDecompressError, LZ10DecompressError
from gfarch.model import CompressionScheme

PAYLOAD = b"Kirby " * 50 + bytes(12)


class TestLz10Codec:
    def test_strips_lz10_header(self):
        encoded = Lz10Codec().encode(PAYLOAD)
        assert encoded == lz10.compress(PAYLOAD)[LZ10_HEADER_SIZE:]

    def test_decode_rebuilds_header(self):
        codec = Lz10Codec()
        assert codec.decode(codec.encode(PAYLOAD), len(PAYLOAD)) == PAYLOAD

    def test_rejects_short_stream(self):
        with pytest.raises(LZ10DecompressError):
            Lz10Codec().decode(b"", 32)

    def test_rejects_oversized_declaration(self):
        with pytest.raises(LZ10DecompressError):
            Lz10Codec().decode(b"\x00", 0x1000000)

    def test_rejects_reference_before_output_start(self):
        # First token is a back-reference of distance 1 with nothing written yet
        with pytest.raises(LZ10DecompressError, match="back-reference"):
            Lz10Codec().decode(b"\x80\x00\x00", 3)

    def test_rejects_reference_past_written_bytes(self):
        # Two literals, then a reference reaching 3 bytes back
        with pytest.raises(LZ10DecompressError, match="back-reference"):
            Lz10Codec().decode(b"\x20AB\x00\x02", 5)

    def test_accepts_reference_to_first_byte(self):
        # One literal, then 3 copies of it at distance 1
        assert Lz10Codec().decode(b"\x40A\x00\x00", 4) == b"AAAA"

    def test_rejects_oversized_payload(self):
        with pytest.raises(ArchiveLayoutError):
            Lz10Codec().encode(bytes(0x1000001))


class TestBpeCodec:
    def test_round_trip(self):
        codec = BpeCodec()
        assert codec.decode(codec.encode(PAYLOAD), len(PAYLOAD)) == PAYLOAD

    def test_stack_size_is_used(self):
        codec = BpeCodec(stack_size=1)
        with pytest.raises(BPEDecompressError):
            codec.decode(BpeCodec().encode(b"z" * 2000), 2000)


class TestRegistry:
    def test_defaults(self):
        assert isinstance(get_codec(CompressionScheme.BPE), BpeCodec)
        assert isinstance(get_codec(CompressionScheme.LZ10), Lz10Codec)
        assert isinstance(get_codec(CompressionScheme.LZ77), Lz10Codec)

    def test_accepts_wire_code(self):
        assert get_codec(3) is DEFAULT_CODECS[CompressionScheme.LZ10]

    def test_override(self, identity_codecs):
        codec = get_codec(CompressionScheme.BPE, identity_codecs)
        assert codec is identity_codecs[CompressionScheme.BPE]

    def test_partial_override_falls_back(self, identity_codecs):
        codecs = {CompressionScheme.BPE: identity_codecs[CompressionScheme.BPE]}
        assert get_codec(CompressionScheme.LZ10, codecs) is DEFAULT_CODECS[CompressionScheme.LZ10]
