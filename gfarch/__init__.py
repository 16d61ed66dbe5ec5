"""
gfarch - GfArch (GFAC/GFCP) container format utilities.
"""

from .archive import GfArchive, load_archive, save_archive
from .checksum import checksum
from .compression import DEFAULT_CODECS, BpeCodec, Codec, Lz10Codec, get_codec
from .errors import (
    ArchiveHeaderError,
    ArchiveLayoutError,
    ArchivePackError,
    BPEDecompressError,
    CompressionHeaderError,
    DecompressionError,
    EntryCountMismatchError,
    GfArchError,
    InvalidFilenameError,
    LZ10DecompressError,
    TruncatedArchiveError,
    UnsupportedCompressionTypeError,
)
from .model import (
    DEFAULT_LAYOUT,
    KNOWN_CUSTOM_GFCP_OFFSET,
    CompressionScheme,
    Entry,
    FormatVersion,
    LayoutOffset,
)
from .reader import ParsedArchive, extract, read_archive
from .writer import pack, pack_files

__all__ = [
    "GfArchive",
    "load_archive",
    "save_archive",
    "checksum",
    "extract",
    "read_archive",
    "ParsedArchive",
    "pack",
    "pack_files",
    "Codec",
    "BpeCodec",
    "Lz10Codec",
    "DEFAULT_CODECS",
    "get_codec",
    "CompressionScheme",
    "FormatVersion",
    "LayoutOffset",
    "DEFAULT_LAYOUT",
    "KNOWN_CUSTOM_GFCP_OFFSET",
    "Entry",
    "GfArchError",
    "ArchiveHeaderError",
    "CompressionHeaderError",
    "UnsupportedCompressionTypeError",
    "TruncatedArchiveError",
    "DecompressionError",
    "BPEDecompressError",
    "LZ10DecompressError",
    "ArchivePackError",
    "InvalidFilenameError",
    "EntryCountMismatchError",
    "ArchiveLayoutError",
]
