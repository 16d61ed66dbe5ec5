"""GfArch archive writer."""

from typing import List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from .checksum import checksum
from .compression import Codec, get_codec
from .errors import ArchiveLayoutError, ArchivePackError, EntryCountMismatchError
from .model import (
    COMPRESSED_FLAG,
    COMPRESSED_FLAG_OFFSET,
    DEFAULT_COMPRESSION,
    DEFAULT_LAYOUT,
    DEFAULT_VERSION,
    ENTRY_SIZE,
    FILE_COUNT_OFFSET,
    FILE_COUNT_SIZE,
    FILE_INFO_OFFSET,
    FILE_INFO_POINTER_OFFSET,
    FILE_INFO_SIZE_OFFSET,
    GFAC_MAGIC,
    GFCP_FORMAT_VERSION,
    GFCP_HEADER_SIZE,
    GFCP_MAGIC,
    GFCP_OFFSET_OFFSET,
    HEADER_SIZE,
    LAST_ENTRY_FLAG,
    NAME_OFFSET_MASK,
    PAYLOAD_SIZE_OFFSET,
    U32_MAX,
    VERSION_OFFSET,
    CompressionScheme,
    Entry,
    FormatVersion,
    LayoutOffset,
    align_up,
    encode_filename,
    write_u32,
)

EntryLike = Union[Entry, Tuple[Union[str, bytes], bytes]]


def _normalize_entries(entries: Sequence[EntryLike]) -> Tuple[List[bytes], List[bytes]]:
    names = []
    contents = []
    for i, item in enumerate(entries):
        try:
            name, data = item
        except (TypeError, ValueError):
            raise ArchivePackError(
                f"Entry {i} is not a (filename, contents) pair: {item!r}"
            ) from None
        if not isinstance(name, (str, bytes, bytearray)):
            raise ArchivePackError(f"Entry {i} filename is not a string")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ArchivePackError(f"Entry {i} contents are not bytes")
        names.append(encode_filename(name))
        contents.append(bytes(data))
    return names, contents


def _build_payload(contents: List[bytes]) -> bytes:
    payload = bytearray()
    for data in contents:
        payload += data
        payload += bytes(align_up(len(data)) - len(data))
    return bytes(payload)


def pack(
    entries: Sequence[EntryLike],
    version: FormatVersion = DEFAULT_VERSION,
    compression: CompressionScheme = DEFAULT_COMPRESSION,
    layout: LayoutOffset = DEFAULT_LAYOUT,
    codecs: Optional[Mapping[CompressionScheme, Codec]] = None,
) -> bytes:
    """
    Build a GfArch archive.

    Args:
        entries: (filename, contents) pairs or Entry objects, in table order
        version: Header version
        compression: Payload compression scheme
        layout: GFCP header placement
        codecs: Optional codec overrides by scheme

    Returns:
        Archive bytes
    """
    version = FormatVersion(version)
    compression = CompressionScheme(compression)
    names, contents = _normalize_entries(entries)
    file_count = len(names)

    names_size = sum(len(name) + 1 for name in names)
    file_info_size = FILE_COUNT_SIZE + file_count * ENTRY_SIZE + names_size
    names_start = HEADER_SIZE + file_count * ENTRY_SIZE
    names_end = FILE_INFO_OFFSET + file_info_size

    if file_count and names_end - len(names[-1]) - 1 > NAME_OFFSET_MASK:
        raise ArchiveLayoutError("Filename table does not fit in 24-bit name offsets")

    gfcp_offset = layout.resolve(file_info_size)
    if gfcp_offset < names_end:
        raise ArchiveLayoutError(
            f"GFCP offset 0x{gfcp_offset:X} overlaps the filename table "
            f"ending at 0x{names_end:X}"
        )

    payload = _build_payload(contents)
    if gfcp_offset + len(payload) > U32_MAX:
        raise ArchiveLayoutError("Decompressed offsets do not fit in 32 bits")

    compressed_chunk = get_codec(compression, codecs).encode(payload)

    total_size = gfcp_offset + GFCP_HEADER_SIZE + len(compressed_chunk)
    if total_size > U32_MAX:
        raise ArchiveLayoutError(f"Archive of {total_size} bytes exceeds 32-bit offsets")

    logger.debug(
        "Packing {} files as GfArch 0x{:04X}, {} at 0x{:X} ({} -> {} bytes)",
        file_count,
        version.value,
        compression.name,
        gfcp_offset,
        len(payload),
        len(compressed_chunk),
    )

    out = bytearray(total_size)

    out[0:4] = GFAC_MAGIC
    write_u32(out, version.value, VERSION_OFFSET)
    out[COMPRESSED_FLAG_OFFSET] = COMPRESSED_FLAG
    write_u32(out, FILE_INFO_OFFSET, FILE_INFO_POINTER_OFFSET)
    write_u32(out, file_info_size, FILE_INFO_SIZE_OFFSET)
    write_u32(out, gfcp_offset, GFCP_OFFSET_OFFSET)
    write_u32(out, GFCP_HEADER_SIZE + len(compressed_chunk), PAYLOAD_SIZE_OFFSET)
    write_u32(out, file_count, FILE_COUNT_OFFSET)

    entry_cursor = HEADER_SIZE
    name_cursor = names_start
    data_cursor = gfcp_offset

    for i, (name, data) in enumerate(zip(names, contents)):
        name_field = name_cursor
        if i == file_count - 1:
            name_field |= LAST_ENTRY_FLAG

        write_u32(out, checksum(name), entry_cursor)
        write_u32(out, name_field, entry_cursor + 4)
        write_u32(out, len(data), entry_cursor + 8)
        write_u32(out, data_cursor, entry_cursor + 12)

        out[name_cursor : name_cursor + len(name)] = name

        entry_cursor += ENTRY_SIZE
        name_cursor += len(name) + 1
        data_cursor += align_up(len(data))

    out[gfcp_offset : gfcp_offset + 4] = GFCP_MAGIC
    write_u32(out, GFCP_FORMAT_VERSION, gfcp_offset + 4)
    write_u32(out, compression.value, gfcp_offset + 8)
    write_u32(out, len(payload), gfcp_offset + 12)
    write_u32(out, len(compressed_chunk), gfcp_offset + 16)

    chunk_start = gfcp_offset + GFCP_HEADER_SIZE
    out[chunk_start : chunk_start + len(compressed_chunk)] = compressed_chunk

    return bytes(out)


def pack_files(
    filenames: Sequence[Union[str, bytes]],
    contents: Sequence[bytes],
    version: FormatVersion = DEFAULT_VERSION,
    compression: CompressionScheme = DEFAULT_COMPRESSION,
    layout: LayoutOffset = DEFAULT_LAYOUT,
    codecs: Optional[Mapping[CompressionScheme, Codec]] = None,
) -> bytes:
    """Pack parallel filename and contents sequences."""
    if len(filenames) != len(contents):
        raise EntryCountMismatchError(
            f"{len(filenames)} filenames but {len(contents)} contents"
        )
    return pack(list(zip(filenames, contents)), version, compression, layout, codecs)
