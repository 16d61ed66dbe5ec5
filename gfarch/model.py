"""
GfArch container format model.

Format:
    Header (0x30 bytes):
        - 0x00, 4 bytes: Magic "GFAC"
        - 0x04, 4 bytes: Version (0x0200, 0x0300 or 0x0301)
        - 0x08, 1 byte:  Compressed flag (always 1)
        - 0x0C, 4 bytes: File info pointer (always 0x2C)
        - 0x10, 4 bytes: File info size (count + entry table + names, unaligned)
        - 0x14, 4 bytes: GFCP offset
        - 0x18, 4 bytes: GFCP header + compressed payload size
        - 0x2C, 4 bytes: File count
    Entry table (16 bytes/file):
        - 4 bytes: Name checksum
        - 4 bytes: Name offset (bit 31 flags the last entry)
        - 4 bytes: Decompressed size
        - 4 bytes: Decompressed offset
    Filename table: NUL-terminated names in entry order.
    GFCP header (0x14 bytes):
        - 4 bytes: Magic "GFCP"
        - 4 bytes: Format version (always 1)
        - 4 bytes: Compression type (1 = BPE, 3 = LZ10)
        - 4 bytes: Decompressed payload size
        - 4 bytes: Compressed payload size
    Payload: entry contents, 16-byte aligned, 0x00 padded, compressed as one
    stream. Decompressed offsets are absolute, as if the payload were
    decompressed in place at the GFCP offset.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .errors import ArchiveLayoutError, InvalidFilenameError, TruncatedArchiveError

GFAC_MAGIC = b"GFAC"
GFCP_MAGIC = b"GFCP"

ALIGNMENT = 16
HEADER_SIZE = 0x30
ENTRY_SIZE = 16
FILE_COUNT_SIZE = 4
GFCP_HEADER_SIZE = 0x14
GFCP_FORMAT_VERSION = 1

VERSION_OFFSET = 0x04
COMPRESSED_FLAG_OFFSET = 0x08
FILE_INFO_POINTER_OFFSET = 0x0C
FILE_INFO_SIZE_OFFSET = 0x10
GFCP_OFFSET_OFFSET = 0x14
PAYLOAD_SIZE_OFFSET = 0x18
FILE_COUNT_OFFSET = 0x2C

FILE_INFO_OFFSET = 0x2C
COMPRESSED_FLAG = 1

NAME_OFFSET_MASK = 0x00FFFFFF
LAST_ENTRY_FLAG = 0x80000000
U32_MAX = 0xFFFFFFFF

# Some titles always place the GFCP header here
KNOWN_CUSTOM_GFCP_OFFSET = 0x2000


class FormatVersion(IntEnum):
    V2_0 = 0x0200
    V3_0 = 0x0300
    V3_1 = 0x0301

    @classmethod
    def from_string(cls, text: str) -> "FormatVersion":
        """Parse "2.0", "3.0" or "3.1"."""
        major, _, minor = text.strip().partition(".")
        try:
            code = (int(major) << 8) | int(minor or "0")
        except ValueError:
            raise ValueError(f"Invalid version string: {text!r}") from None
        return cls(code)

    def __str__(self) -> str:
        return f"{self.value >> 8}.{self.value & 0xFF}"


class CompressionScheme(IntEnum):
    BPE = 1
    LZ10 = 3
    LZ77 = 3  # legacy name for the LZ10 slot

    @classmethod
    def from_string(cls, text: str) -> "CompressionScheme":
        try:
            return cls[text.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown compression scheme: {text!r}") from None


DEFAULT_VERSION = FormatVersion.V3_1
DEFAULT_COMPRESSION = CompressionScheme.BPE


def read_u32(data: Union[bytes, bytearray, memoryview], offset: int) -> int:
    if offset < 0 or offset + 4 > len(data):
        raise TruncatedArchiveError(
            f"Read of u32 at 0x{offset:X} past end of data (0x{len(data):X} bytes)"
        )
    return int.from_bytes(data[offset : offset + 4], "little")


def write_u32(data: bytearray, value: int, offset: int) -> None:
    data[offset : offset + 4] = value.to_bytes(4, "little")


def align_up(value: int, alignment: int = ALIGNMENT) -> int:
    return (value + alignment - 1) & ~(alignment - 1)


def default_gfcp_offset(file_info_size: int) -> int:
    return HEADER_SIZE + align_up(file_info_size)


@dataclass(frozen=True)
class LayoutOffset:
    """Where the GFCP header goes: after the file info (default) or at a fixed offset."""

    gfcp_offset: Optional[int] = None

    def __post_init__(self):
        offset = self.gfcp_offset
        if offset is not None and (offset < 0 or offset > U32_MAX):
            raise ArchiveLayoutError(f"GFCP offset out of range: {offset:#x}")

    @classmethod
    def custom(cls, offset: int) -> "LayoutOffset":
        return cls(offset)

    @property
    def is_default(self) -> bool:
        return self.gfcp_offset is None

    def resolve(self, file_info_size: int) -> int:
        if self.gfcp_offset is None:
            return default_gfcp_offset(file_info_size)
        return self.gfcp_offset

    def __str__(self) -> str:
        if self.gfcp_offset is None:
            return "default"
        return f"custom(0x{self.gfcp_offset:X})"


DEFAULT_LAYOUT = LayoutOffset()


def encode_filename(name: Union[str, bytes]) -> bytes:
    """Encode a filename one byte per character, rejecting embedded NULs."""
    if isinstance(name, (bytes, bytearray)):
        raw = bytes(name)
    else:
        try:
            raw = name.encode("latin-1")
        except UnicodeEncodeError:
            raise InvalidFilenameError(
                f"Filename has characters outside one-byte range: {name!r}"
            ) from None
    if b"\x00" in raw:
        raise InvalidFilenameError(f"Filename contains NUL: {name!r}")
    return raw


def decode_filename(raw: bytes) -> str:
    return raw.decode("latin-1")


@dataclass
class Entry:
    filename: str
    contents: bytes

    def __iter__(self):
        # Allows `name, data = entry`
        return iter((self.filename, self.contents))
