"""
Compression adapter for GfArch payloads.

GfArch keeps payload sizes in its own GFCP header, so codec streams are
stored without their usual framing: the LZ10 header is stripped on encode
and rebuilt from the GFCP header on decode.
"""

import struct
from typing import Dict, Mapping, Optional

from loguru import logger
from ndspy import lz10

from .bpe import DEFAULT_BPE_STACK_SIZE, Bpe
from .errors import ArchiveLayoutError, LZ10DecompressError
from .model import CompressionScheme

LZ10_TAG = 0x10
LZ10_HEADER_SIZE = 4
LZ10_MAX_SIZE = 0xFFFFFF


def _check_back_references(chunk: bytes, decompressed_size: int) -> None:
    """Reject LZ10 back-references that point before the start of the output.

    ndspy resolves such a reference against the end of its output buffer
    instead of failing. Running out of input is left to the decoder.
    """
    pos = 0
    written = 0
    size = len(chunk)

    while written < decompressed_size and pos < size:
        flags = chunk[pos]
        pos += 1
        for bit in range(7, -1, -1):
            if written >= decompressed_size or pos >= size:
                return
            if flags >> bit & 1:
                if pos + 1 >= size:
                    return
                token = chunk[pos] << 8 | chunk[pos + 1]
                distance = (token & 0xFFF) + 1
                if distance > written:
                    raise LZ10DecompressError(
                        f"LZ10 back-reference at 0x{pos:X} reaches {distance} bytes "
                        f"back with only {written} written"
                    )
                written += (token >> 12) + 3
                pos += 2
            else:
                written += 1
                pos += 1


class Codec:
    """Encode/decode interface the reader and writer compress through."""

    scheme: CompressionScheme

    def encode(self, payload: bytes) -> bytes:
        raise NotImplementedError

    def decode(self, chunk: bytes, decompressed_size: int) -> bytes:
        raise NotImplementedError


class BpeCodec(Codec):
    scheme = CompressionScheme.BPE

    def __init__(self, stack_size: int = DEFAULT_BPE_STACK_SIZE):
        self.stack_size = stack_size

    def encode(self, payload: bytes) -> bytes:
        return Bpe.compress(payload)

    def decode(self, chunk: bytes, decompressed_size: int) -> bytes:
        return Bpe.decompress(chunk, self.stack_size)


class Lz10Codec(Codec):
    scheme = CompressionScheme.LZ10

    def encode(self, payload: bytes) -> bytes:
        if len(payload) > LZ10_MAX_SIZE:
            raise ArchiveLayoutError(
                f"Payload of {len(payload)} bytes exceeds the LZ10 size limit"
            )
        framed = lz10.compress(bytes(payload))
        return framed[LZ10_HEADER_SIZE:]

    def decode(self, chunk: bytes, decompressed_size: int) -> bytes:
        if decompressed_size > LZ10_MAX_SIZE:
            raise LZ10DecompressError(
                f"Declared size {decompressed_size} exceeds the LZ10 size limit"
            )
        _check_back_references(chunk, decompressed_size)
        header = struct.pack("<I", (decompressed_size << 8) | LZ10_TAG)
        try:
            return lz10.decompress(header + bytes(chunk))
        except (TypeError, IndexError, struct.error) as e:
            raise LZ10DecompressError(f"LZ10 stream rejected: {e}") from e


DEFAULT_CODECS: Dict[CompressionScheme, Codec] = {
    CompressionScheme.BPE: BpeCodec(),
    CompressionScheme.LZ10: Lz10Codec(),
}


def get_codec(
    scheme: CompressionScheme,
    codecs: Optional[Mapping[CompressionScheme, Codec]] = None,
) -> Codec:
    """Look up the codec for a scheme, preferring any caller-supplied override."""
    scheme = CompressionScheme(scheme)
    if codecs is not None and scheme in codecs:
        codec = codecs[scheme]
    else:
        codec = DEFAULT_CODECS[scheme]
    logger.debug("Using {} for {}", type(codec).__name__, scheme.name)
    return codec
