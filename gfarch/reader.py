"""GfArch archive reader."""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from loguru import logger

from .checksum import checksum
from .compression import Codec, get_codec
from .errors import (
    ArchiveHeaderError,
    CompressionHeaderError,
    DecompressionError,
    TruncatedArchiveError,
    UnsupportedCompressionTypeError,
)
from .model import (
    DEFAULT_LAYOUT,
    ENTRY_SIZE,
    FILE_COUNT_OFFSET,
    FILE_INFO_SIZE_OFFSET,
    GFAC_MAGIC,
    GFCP_HEADER_SIZE,
    GFCP_MAGIC,
    GFCP_OFFSET_OFFSET,
    HEADER_SIZE,
    NAME_OFFSET_MASK,
    VERSION_OFFSET,
    CompressionScheme,
    FormatVersion,
    LayoutOffset,
    decode_filename,
    default_gfcp_offset,
    read_u32,
)


@dataclass
class EntryRecord:
    """One entry table record with its resolved name and contents."""

    filename: str
    checksum: int
    name_offset: int  # masked to 24 bits
    flags: int  # top byte of the name offset field
    decompressed_size: int
    decompressed_offset: int
    contents: bytes = b""

    @property
    def is_last(self) -> bool:
        return bool(self.flags & 0x80)


@dataclass
class ParsedArchive:
    version_code: int
    compression: CompressionScheme
    file_info_size: int
    gfcp_offset: int
    decompressed_size: int
    compressed_size: int
    entries: List[EntryRecord] = field(default_factory=list)

    @property
    def version(self) -> Optional[FormatVersion]:
        try:
            return FormatVersion(self.version_code)
        except ValueError:
            return None

    @property
    def layout(self) -> LayoutOffset:
        if self.gfcp_offset == default_gfcp_offset(self.file_info_size):
            return DEFAULT_LAYOUT
        return LayoutOffset.custom(self.gfcp_offset)

    def files(self) -> List[Tuple[str, bytes]]:
        return [(e.filename, e.contents) for e in self.entries]


def _read_name(data: bytes, offset: int) -> bytes:
    if offset >= len(data):
        raise TruncatedArchiveError(f"Filename offset 0x{offset:X} past end of data")
    end = data.find(b"\x00", offset)
    if end == -1:
        raise TruncatedArchiveError(f"Unterminated filename at 0x{offset:X}")
    return data[offset:end]


def _read_entries(data: bytes, file_count: int) -> List[EntryRecord]:
    table_end = HEADER_SIZE + file_count * ENTRY_SIZE
    if table_end > len(data):
        raise TruncatedArchiveError(
            f"Entry table for {file_count} files ends at 0x{table_end:X}, "
            f"past end of data (0x{len(data):X} bytes)"
        )

    entries = []
    for i in range(file_count):
        record_offset = HEADER_SIZE + i * ENTRY_SIZE
        name_checksum = read_u32(data, record_offset)
        name_field = read_u32(data, record_offset + 4)
        size = read_u32(data, record_offset + 8)
        offset = read_u32(data, record_offset + 12)

        raw_name = _read_name(data, name_field & NAME_OFFSET_MASK)
        if checksum(raw_name) != name_checksum:
            logger.warning(
                "Checksum mismatch for {!r}: stored 0x{:08X}, computed 0x{:08X}",
                raw_name,
                name_checksum,
                checksum(raw_name),
            )

        entries.append(
            EntryRecord(
                filename=decode_filename(raw_name),
                checksum=name_checksum,
                name_offset=name_field & NAME_OFFSET_MASK,
                flags=name_field >> 24,
                decompressed_size=size,
                decompressed_offset=offset,
            )
        )
    return entries


def _read_gfcp_header(data: bytes, gfcp_offset: int) -> Tuple[CompressionScheme, int, int]:
    if gfcp_offset + GFCP_HEADER_SIZE > len(data):
        raise TruncatedArchiveError(
            f"GFCP header at 0x{gfcp_offset:X} past end of data (0x{len(data):X} bytes)"
        )

    magic = data[gfcp_offset : gfcp_offset + 4]
    if magic != GFCP_MAGIC:
        raise CompressionHeaderError(
            f"Invalid GFCP magic at 0x{gfcp_offset:X}: {magic!r}, expected {GFCP_MAGIC!r}"
        )

    type_code = read_u32(data, gfcp_offset + 8)
    try:
        compression = CompressionScheme(type_code)
    except ValueError:
        raise UnsupportedCompressionTypeError(type_code) from None

    decompressed_size = read_u32(data, gfcp_offset + 12)
    compressed_size = read_u32(data, gfcp_offset + 16)
    return compression, decompressed_size, compressed_size


def read_archive(
    data: bytes, codecs: Optional[Mapping[CompressionScheme, Codec]] = None
) -> ParsedArchive:
    """Parse a GfArch archive, decompressing its payload and slicing every entry."""
    data = bytes(data)

    magic = data[0:4]
    if magic != GFAC_MAGIC:
        raise ArchiveHeaderError(f"Invalid GfArch magic: {magic!r}, expected {GFAC_MAGIC!r}")

    version_code = read_u32(data, VERSION_OFFSET)
    file_info_size = read_u32(data, FILE_INFO_SIZE_OFFSET)
    gfcp_offset = read_u32(data, GFCP_OFFSET_OFFSET)
    file_count = read_u32(data, FILE_COUNT_OFFSET)

    entries = _read_entries(data, file_count)
    compression, decompressed_size, compressed_size = _read_gfcp_header(data, gfcp_offset)

    archive = ParsedArchive(
        version_code=version_code,
        compression=compression,
        file_info_size=file_info_size,
        gfcp_offset=gfcp_offset,
        decompressed_size=decompressed_size,
        compressed_size=compressed_size,
        entries=entries,
    )
    if archive.version is None:
        logger.warning("Unknown GfArch version 0x{:04X}", version_code)

    logger.debug(
        "GfArch 0x{:04X}: {} files, {} at 0x{:X} ({} -> {} bytes)",
        version_code,
        file_count,
        compression.name,
        gfcp_offset,
        compressed_size,
        decompressed_size,
    )

    payload_start = gfcp_offset + GFCP_HEADER_SIZE
    payload_end = payload_start + compressed_size
    if payload_end > len(data):
        raise TruncatedArchiveError(
            f"Compressed payload ends at 0x{payload_end:X}, "
            f"past end of data (0x{len(data):X} bytes)"
        )

    codec = get_codec(compression, codecs)
    payload = codec.decode(data[payload_start:payload_end], decompressed_size)
    if len(payload) != decompressed_size:
        raise DecompressionError(
            f"Decompressed size mismatch: expected {decompressed_size}, got {len(payload)}"
        )

    for entry in entries:
        start = entry.decompressed_offset - gfcp_offset
        end = start + entry.decompressed_size
        if start < 0 or end > len(payload):
            raise TruncatedArchiveError(
                f"Entry {entry.filename!r} spans 0x{entry.decompressed_offset:X}"
                f"+0x{entry.decompressed_size:X}, outside the payload at "
                f"0x{gfcp_offset:X}+0x{len(payload):X}"
            )
        entry.contents = payload[start:end]

    return archive


def extract(
    data: bytes, codecs: Optional[Mapping[CompressionScheme, Codec]] = None
) -> List[Tuple[str, bytes]]:
    """Return (filename, contents) pairs in entry table order."""
    return read_archive(data, codecs).files()
